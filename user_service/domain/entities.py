from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    # в хранилище лежит наивное UTC-время, так одинаково ведут себя sqlite и postgres
    return datetime.now(timezone.utc).replace(tzinfo=None)


class UserRole(str, Enum):
    STUDENT = "STUDENT"
    MODERATOR = "MODERATOR"


@dataclass(frozen=True)
class User:
    """Пользователь без пароля: хэш живёт только в хранилище."""
    id: int | None
    email: str
    name: str
    role: UserRole = UserRole.STUDENT
    student_id: str | None = None
    is_active: bool = True
    last_login: datetime | None = None
    profile: dict = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None
