import time
from typing import Callable

from fastapi import Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.routing import APIRoute

from .errors import format_stack, message_for_exception, status_for_exception
from .request_context import (
    CORRELATION_RESPONSE_HEADER,
    build_log_context,
    current_user_id,
    get_correlation_id,
    read_json_body,
)


def _elapsed_ms(started: float) -> int:
    return int(round((time.perf_counter() - started) * 1000))


class LoggingRoute(APIRoute):
    """Роут, который пишет в журнал ровно одну запись на каждый запрос.

    Ошибка пишется с уровнем error и пробрасывается дальше без изменений,
    ответ для клиента формирует обработчик исключений.
    """

    def get_route_handler(self) -> Callable:
        original_route_handler = super().get_route_handler()

        async def logging_route_handler(request: Request) -> Response:
            # клиентский x-correlation-id или новый uuid
            correlation_id = get_correlation_id(request)
            started = time.perf_counter()

            body = await read_json_body(request)
            request.state.request_body = body
            log_context = build_log_context(request, correlation_id, body)
            store_logger = request.app.state.store_logger

            try:
                response = await original_route_handler(request)
            except Exception as exc:
                log_context.user_id = log_context.user_id or current_user_id(request)
                log_context.status_code = status_for_exception(exc)
                log_context.response_time = _elapsed_ms(started)
                await run_in_threadpool(
                    store_logger.error, f"HTTP Error: {message_for_exception(exc)}",
                    format_stack(exc), "HTTP", log_context,
                )
                raise

            response.headers[CORRELATION_RESPONSE_HEADER] = correlation_id
            log_context.user_id = log_context.user_id or current_user_id(request)
            log_context.status_code = response.status_code
            log_context.response_time = _elapsed_ms(started)
            await run_in_threadpool(store_logger.log_http_request, log_context)
            return response

        return logging_route_handler
