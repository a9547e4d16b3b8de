import uuid
from dataclasses import asdict

import structlog

from .metrics import log_write_failures_total
from ..application.dto import LogContext
from ..application.use_cases.query_logs import ILogRepository
from ..domain.entities import utcnow

# уровни журнала -> методы консольного логгера
CONSOLE_METHODS = {
    "log": "info",
    "warn": "warning",
    "error": "error",
    "debug": "debug",
    "verbose": "debug",
}


class StoreLogger:
    """Логгер с двумя каналами: консоль (structlog) и журнал в хранилище.

    Ошибка записи в хранилище не пробрасывается: она уходит в консоль, чтобы
    недоступная БД не роняла обработку запроса.
    """

    def __init__(self, repo: ILogRepository, console=None):
        self.repo = repo
        self.console = console or structlog.get_logger("user_service")

    def _write(self, level: str, message: str, context: str | None = None,
               log_context: LogContext | None = None, error: str | None = None,
               stack: str | None = None) -> None:
        fields = {k: v for k, v in asdict(log_context or LogContext()).items() if v is not None}
        getattr(self.console, CONSOLE_METHODS[level])(message, context=context,
                                                      correlation_id=fields.get("correlation_id"))
        extra = fields.pop("metadata", None)
        fields.setdefault("correlation_id", str(uuid.uuid4()))
        try:
            self.repo.save(
                level=level, message=message, context=context, error=error, stack=stack,
                extra=extra, timestamp=utcnow(), **fields,
            )
        except Exception as e:
            log_write_failures_total.inc()
            self.console.error("Failed to save log record", error=str(e), level=level, log_message=message)

    def log(self, message: str, context: str | None = None, log_context: LogContext | None = None) -> None:
        self._write("log", message, context, log_context)

    def warn(self, message: str, context: str | None = None, log_context: LogContext | None = None) -> None:
        self._write("warn", message, context, log_context)

    def debug(self, message: str, context: str | None = None, log_context: LogContext | None = None) -> None:
        self._write("debug", message, context, log_context)

    def verbose(self, message: str, context: str | None = None, log_context: LogContext | None = None) -> None:
        self._write("verbose", message, context, log_context)

    def error(self, message: str, stack: str | None = None, context: str | None = None,
              log_context: LogContext | None = None) -> None:
        self._write("error", message, context, log_context, error=message, stack=stack)

    def log_http_request(self, log_context: LogContext) -> None:
        message = (f"{log_context.method} {log_context.url} - "
                   f"{log_context.status_code} - {log_context.response_time}ms")
        self.log(message, "HTTP", log_context)
