"""Request snapshot shared by the logging route and the exception normalizer."""
import json
import uuid

from fastapi import Request

from ...application.dto import LogContext

CORRELATION_HEADER = "x-correlation-id"
CORRELATION_RESPONSE_HEADER = "X-Correlation-ID"
FILTERED = "[FILTERED]"

# длины индексируемых колонок журнала
MAX_CORRELATION_ID_LENGTH = 64
MAX_IP_LENGTH = 255
MAX_METHOD_LENGTH = 16

SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "x-api-key", "x-auth-token", "password"})
SENSITIVE_BODY_FIELDS = frozenset({"password", "token", "secret", "key", "auth"})


def clip(value: str | None, limit: int) -> str | None:
    return value[:limit] if value else value


def get_client_ip(request: Request) -> str:
    client_host = request.client.host if request.client else None
    ip = (
        request.headers.get("x-forwarded-for")
        or request.headers.get("x-real-ip")
        or client_host
        or "unknown"
    )
    return clip(ip, MAX_IP_LENGTH)


def filter_headers(headers) -> dict:
    return {
        k: (FILTERED if k.lower() in SENSITIVE_HEADERS else v)
        for k, v in dict(headers).items()
    }


def sanitize_body(body):
    # только верхний уровень, вложенные объекты не обходим
    if not isinstance(body, dict):
        return body
    return {k: (FILTERED if k.lower() in SENSITIVE_BODY_FIELDS else v) for k, v in body.items()}


def full_url(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def get_correlation_id(request: Request) -> str:
    correlation_id = getattr(request.state, "correlation_id", None)
    if not correlation_id:
        correlation_id = clip(request.headers.get(CORRELATION_HEADER), MAX_CORRELATION_ID_LENGTH) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
    return correlation_id


def current_user_id(request: Request) -> str | None:
    return getattr(request.state, "user_id", None)


async def read_json_body(request: Request):
    body = await request.body()
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        return None


def build_log_context(request: Request, correlation_id: str, body=None) -> LogContext:
    return LogContext(
        method=clip(request.method, MAX_METHOD_LENGTH),
        url=full_url(request),
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        user_id=current_user_id(request),
        session_id=getattr(request.state, "session_id", None) or request.headers.get("x-session-id"),
        correlation_id=correlation_id,
        query_params=dict(request.query_params),
        route_params=dict(request.path_params),
        headers=filter_headers(request.headers),
        request_body=sanitize_body(body),
    )
