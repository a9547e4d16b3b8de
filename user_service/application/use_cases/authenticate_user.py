from ...domain.entities import User, utcnow
from ..errors import OperationFailed
from .register_user import IPasswordHasher, IUserRepository, normalize_email


class AuthenticateUser:
    """Проверка пары email/пароль.

    Неверные учётные данные - это не ошибка, а ``None``: решение об ответе 401
    принимает роутер.
    """

    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher):
        self.repo = repo
        self.hasher = hasher

    def execute(self, email: str, password: str) -> User | None:
        try:
            found = self.repo.get_credentials(normalize_email(email))
            if not found:
                return None
            user, password_hash = found
            if not self.hasher.verify(password, password_hash):
                return None
            return self.repo.set_last_login(user.id, utcnow()) or user
        except Exception as e:
            raise OperationFailed(f"Failed to validate user: {e}") from e
