from dataclasses import dataclass, field
from datetime import datetime

from ..domain.entities import UserRole


@dataclass
class RegisterUserInput:
    email: str
    password: str
    name: str
    role: UserRole = UserRole.STUDENT
    student_id: str | None = None
    profile: dict = field(default_factory=dict)


@dataclass
class LogFilters:
    level: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    ip_address: str | None = None
    user_id: str | None = None
    correlation_id: str | None = None
    limit: int = 100
    skip: int = 0


@dataclass
class LogContext:
    """Снимок запроса, который пишется в лог вместе с сообщением."""
    method: str | None = None
    url: str | None = None
    status_code: int | None = None
    response_time: int | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    user_id: str | None = None
    session_id: str | None = None
    correlation_id: str | None = None
    request_body: object = None
    query_params: dict | None = None
    route_params: dict | None = None
    headers: dict | None = None
    metadata: dict | None = None
