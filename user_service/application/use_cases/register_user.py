from datetime import datetime, timezone

from ...domain.entities import User, UserRole
from ..dto import RegisterUserInput
from ..errors import ConflictError, OperationFailed, ServiceError, ValidationFailed

STUDENT_ID_PREFIX = "STD"


class IUserRepository:
    def get_by_email(self, email: str) -> User | None: ...
    def get_by_id(self, user_id: int) -> User | None: ...
    def get_by_student_id(self, student_id: str) -> User | None: ...
    def get_credentials(self, email: str) -> tuple[User, str] | None: ...
    def list_by_role(self, role: UserRole) -> list[User]: ...
    def student_ids_with_prefix(self, prefix: str) -> list[str]: ...
    def create(self, email: str, password_hash: str, name: str, role: UserRole = UserRole.STUDENT,
               student_id: str | None = None, profile: dict | None = None) -> User: ...
    def set_last_login(self, user_id: int, when: datetime) -> User | None: ...
    def delete_by_id(self, user_id: int) -> User | None: ...
    def delete_by_student_id(self, student_id: str) -> User | None: ...

class IPasswordHasher:
    def hash(self, plain: str) -> str: ...
    def verify(self, plain: str, hashed: str) -> bool: ...


def normalize_email(email: str) -> str:
    return email.strip().lower()


def next_student_id(year: int, existing: list[str]) -> str:
    """STD<год><номер>: максимальный номер за год + 1, не меньше трёх цифр."""
    prefix = f"{STUDENT_ID_PREFIX}{year}"
    last = 0
    for sid in existing:
        suffix = sid[len(prefix):] if sid and sid.startswith(prefix) else ""
        if suffix.isdigit():
            last = max(last, int(suffix))
    return f"{prefix}{last + 1:03d}"


class RegisterUser:
    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher):
        self.repo = repo
        self.hasher = hasher

    def generate_student_id(self) -> str:
        # читаем и инкрементируем без блокировки: от коллизий спасает уникальный индекс
        year = datetime.now(timezone.utc).year
        existing = self.repo.student_ids_with_prefix(f"{STUDENT_ID_PREFIX}{year}")
        return next_student_id(year, existing)

    def execute(self, data: RegisterUserInput) -> User:
        try:
            email = normalize_email(data.email)
            name = (data.name or "").strip()
            if not email or not name:
                raise ValidationFailed("email and name are required")
            if self.repo.get_by_email(email):
                raise ConflictError("User with this email already exists")
            pwd_hash = self.hasher.hash(data.password)

            student_id = data.student_id
            if not student_id and data.role == UserRole.STUDENT:
                student_id = self.generate_student_id()

            return self.repo.create(
                email, pwd_hash, name,
                role=data.role, student_id=student_id, profile=data.profile,
            )
        except ServiceError:
            raise
        except Exception as e:
            raise OperationFailed(f"Failed to create user: {e}") from e
