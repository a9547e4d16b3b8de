from functools import wraps

from ...domain.entities import User, UserRole
from ..errors import NotFoundError, OperationFailed, ServiceError
from .register_user import IUserRepository


def _store_call(action: str):
    # типизированные ошибки пробрасываем как есть, остальное оборачиваем
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except ServiceError:
                raise
            except Exception as e:
                raise OperationFailed(f"Failed to {action}: {e}") from e
        return wrapper
    return decorator


class UserQueries:
    def __init__(self, repo: IUserRepository):
        self.repo = repo

    @_store_call("find user")
    def find_by_id(self, user_id: int) -> User:
        user = self.repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    @_store_call("find student")
    def find_by_student_id(self, student_id: str) -> User:
        user = self.repo.get_by_student_id(student_id)
        if not user:
            raise NotFoundError("Student not found")
        return user

    @_store_call("get students")
    def list_students(self) -> list[User]:
        return self.repo.list_by_role(UserRole.STUDENT)

    @_store_call("get user role")
    def get_role(self, user_id: int) -> UserRole:
        return self.find_by_id(user_id).role

    @_store_call("delete student")
    def delete_by_student_id(self, student_id: str) -> User:
        user = self.repo.delete_by_student_id(student_id)
        if not user:
            raise NotFoundError("Student not found")
        return user

    @_store_call("delete user")
    def delete_by_id(self, user_id: int) -> User:
        user = self.repo.delete_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user
