from datetime import datetime, timezone
from typing import Annotated, Any, Generic, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, StringConstraints
from pydantic.alias_generators import to_camel

from ...domain.entities import UserRole

T = TypeVar("T")


def as_utc(value: datetime) -> datetime:
    # в хранилище наивное UTC, наружу отдаём с явной зоной
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value

UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class CamelModel(BaseModel):
    # на проводе camelCase, в коде snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class RegisterReq(CamelModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=6)
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    role: UserRole
    student_id: str | None = Field(default=None, pattern=r"^[A-Z0-9]+$")
    profile: dict[str, Any] | None = None

class LoginReq(CamelModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=1)

class UserResp(CamelModel):
    id: int
    email: str
    name: str
    role: UserRole
    student_id: str | None = None
    is_active: bool = True
    last_login: UtcDatetime | None = None
    profile: dict[str, Any] = Field(default_factory=dict)
    created_at: UtcDatetime | None = None
    updated_at: UtcDatetime | None = None

class LoginData(CamelModel):
    user: UserResp
    token: str
    token_type: str = "bearer"

class RoleData(CamelModel):
    role: UserRole

class ValidateData(CamelModel):
    exists: bool
    user: UserResp | None = None

class LogResp(CamelModel):
    id: int
    level: str
    message: str
    context: str | None = None
    method: str | None = None
    url: str | None = None
    status_code: int | None = None
    response_time: int | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    user_id: str | None = None
    session_id: str | None = None
    correlation_id: str
    request_body: Any = None
    query_params: dict[str, Any] | None = None
    route_params: dict[str, Any] | None = None
    headers: dict[str, Any] | None = None
    error: str | None = None
    stack: str | None = None
    metadata: dict[str, Any] | None = None
    timestamp: UtcDatetime

class LogStatResp(CamelModel):
    level: str
    count: int
    avg_response_time: float | None = None

class Envelope(BaseModel, Generic[T]):
    success: bool = True
    message: str | None = None
    data: T | None = None

class ErrorResp(CamelModel):
    status_code: int
    timestamp: str
    path: str
    method: str
    message: str
    correlation_id: str
