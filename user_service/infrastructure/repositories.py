from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import UserORM
from ..application.errors import ConflictError
from ..application.use_cases.register_user import IUserRepository
from ..domain.entities import User, UserRole

EMAIL_TAKEN = "User with this email already exists"


def to_domain(u: UserORM) -> User:
    return User(
        id=u.id,
        email=u.email,
        name=u.name,
        role=UserRole(u.role),
        student_id=u.student_id,
        is_active=u.is_active,
        last_login=u.last_login,
        profile=dict(u.profile or {}),
        created_at=u.created_at,
        updated_at=u.updated_at,
    )


class UserRepository(IUserRepository):
    def __init__(self, db: Session): self.db = db

    def _row_by_email(self, email: str) -> UserORM | None:
        return self.db.query(UserORM).filter(UserORM.email == email).first()

    def get_by_email(self, email: str) -> User | None:
        row = self._row_by_email(email)
        return to_domain(row) if row else None

    def get_by_id(self, user_id: int) -> User | None:
        row = self.db.get(UserORM, user_id)
        return to_domain(row) if row else None

    def get_by_student_id(self, student_id: str) -> User | None:
        row = self.db.query(UserORM).filter(UserORM.student_id == student_id).first()
        return to_domain(row) if row else None

    def get_credentials(self, email: str) -> tuple[User, str] | None:
        row = self._row_by_email(email)
        return (to_domain(row), row.password_hash) if row else None

    def list_by_role(self, role: UserRole) -> list[User]:
        rows = self.db.query(UserORM).filter(UserORM.role == role.value).order_by(UserORM.id).all()
        return [to_domain(r) for r in rows]

    def student_ids_with_prefix(self, prefix: str) -> list[str]:
        rows = self.db.query(UserORM.student_id).filter(UserORM.student_id.like(f"{prefix}%")).all()
        return [r[0] for r in rows]

    def create(self, email: str, password_hash: str, name: str, role: UserRole = UserRole.STUDENT,
               student_id: str | None = None, profile: dict | None = None) -> User:
        row = UserORM(email=email, password_hash=password_hash, name=name, role=role.value,
                      student_id=student_id, profile=profile or {})
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError:
            # уникальный индекс - последний рубеж при гонке регистраций
            self.db.rollback()
            if self._row_by_email(email):
                raise ConflictError(EMAIL_TAKEN)
            raise ConflictError(f"Student ID {student_id} is already assigned")
        self.db.refresh(row)
        return to_domain(row)

    def set_last_login(self, user_id: int, when: datetime) -> User | None:
        row = self.db.get(UserORM, user_id)
        if not row:
            return None
        row.last_login = when
        self.db.commit(); self.db.refresh(row)
        return to_domain(row)

    def _delete_row(self, row: UserORM | None) -> User | None:
        if not row:
            return None
        user = to_domain(row)
        self.db.delete(row); self.db.commit()
        return user

    def delete_by_id(self, user_id: int) -> User | None:
        return self._delete_row(self.db.get(UserORM, user_id))

    def delete_by_student_id(self, student_id: str) -> User | None:
        row = self.db.query(UserORM).filter(UserORM.student_id == student_id).first()
        return self._delete_row(row)
