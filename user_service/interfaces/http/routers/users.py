from fastapi import APIRouter, Depends, Request, status

from ....application.dto import RegisterUserInput
from ....application.errors import ServiceError, UnauthorizedError
from ....application.use_cases.authenticate_user import AuthenticateUser
from ....application.use_cases.register_user import RegisterUser
from ....application.use_cases.user_queries import UserQueries
from ....domain.entities import User
from ....infrastructure.cache import delete_cache, get_cache, role_key, set_cache
from ....infrastructure.metrics import (
    cache_hits_total,
    cache_misses_total,
    login_attempts_total,
    user_registrations_total,
)
from ....infrastructure.peer_sync import PeerSync
from ....infrastructure.rate_limit import LOGIN_LIMIT, REGISTER_LIMIT, limiter
from ....infrastructure.repositories import UserRepository
from ....infrastructure.security import PasswordHasher, create_access_token
from ..authz import get_claims, get_current_user_id, require_moderator, require_service_token
from ..dependencies import get_password_hasher, get_peer_sync, get_user_queries, get_user_repository
from ..logging_route import LoggingRoute
from ..schemas import Envelope, LoginData, LoginReq, RegisterReq, RoleData, UserResp, ValidateData

router = APIRouter(prefix="/users", tags=["users"], route_class=LoggingRoute)

# guards выполняются по порядку: сначала токен, потом роль
moderator_only = [Depends(get_claims), Depends(require_moderator)]
service_only = [Depends(get_claims), Depends(require_service_token)]


def user_out(user: User) -> UserResp:
    return UserResp.model_validate(user)


@router.post("/register", response_model=Envelope[UserResp], status_code=status.HTTP_201_CREATED)
@limiter.limit(REGISTER_LIMIT)
def register(
    request: Request,
    payload: RegisterReq,
    repo: UserRepository = Depends(get_user_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
    peer_sync: PeerSync = Depends(get_peer_sync),
):
    uc = RegisterUser(repo=repo, hasher=hasher)
    user = uc.execute(RegisterUserInput(
        email=payload.email,
        password=payload.password,
        name=payload.name,
        role=payload.role,
        student_id=payload.student_id,
        profile=payload.profile or {},
    ))
    user_registrations_total.labels(role=user.role.value).inc()
    data = user_out(user)
    # модераторов дублируем в соседний сервис, если он настроен
    peer_sync.notify(user, data.model_dump(by_alias=True, mode="json"),
                     getattr(request.state, "correlation_id", None))
    return Envelope[UserResp](message="User registered successfully", data=data)


@router.post("/login", response_model=Envelope[LoginData])
@limiter.limit(LOGIN_LIMIT)
def login(
    request: Request,
    payload: LoginReq,
    repo: UserRepository = Depends(get_user_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
):
    user = AuthenticateUser(repo=repo, hasher=hasher).execute(payload.email, payload.password)
    if not user:
        login_attempts_total.labels(result="failure").inc()
        raise UnauthorizedError("Invalid email or password")
    login_attempts_total.labels(result="success").inc()
    request.state.user_id = str(user.id)
    token = create_access_token(user)
    return Envelope[LoginData](message="Login successful", data=LoginData(user=user_out(user), token=token))


@router.get("/profile", response_model=Envelope[UserResp])
def profile(
    user_id: int = Depends(get_current_user_id),
    queries: UserQueries = Depends(get_user_queries),
):
    return Envelope[UserResp](data=user_out(queries.find_by_id(user_id)))


@router.get("/students/all", response_model=Envelope[list[UserResp]], dependencies=moderator_only)
def list_students(queries: UserQueries = Depends(get_user_queries)):
    return Envelope[list[UserResp]](data=[user_out(u) for u in queries.list_students()])


@router.get("/student/{student_id}", response_model=Envelope[UserResp], dependencies=moderator_only)
def get_by_student_id(student_id: str, queries: UserQueries = Depends(get_user_queries)):
    return Envelope[UserResp](data=user_out(queries.find_by_student_id(student_id)))


@router.delete("/student/{student_id}", response_model=Envelope[UserResp], dependencies=moderator_only)
def delete_by_student_id(student_id: str, queries: UserQueries = Depends(get_user_queries)):
    user = queries.delete_by_student_id(student_id)
    delete_cache(role_key(user.id))
    return Envelope[UserResp](message=f"Student with ID {student_id} deleted successfully.", data=user_out(user))


@router.delete("/user/{user_id}", response_model=Envelope[UserResp], dependencies=moderator_only)
def delete_by_user_id(user_id: int, queries: UserQueries = Depends(get_user_queries)):
    user = queries.delete_by_id(user_id)
    delete_cache(role_key(user.id))
    return Envelope[UserResp](message=f"User with ID {user_id} deleted successfully.", data=user_out(user))


# --- Internal API для соседних сервисов:

@router.get("/internal/role/{user_id}", response_model=Envelope[RoleData])
def get_user_role(user_id: int, queries: UserQueries = Depends(get_user_queries)):
    cache_key = role_key(user_id)
    cached = get_cache(cache_key)
    if cached:
        cache_hits_total.inc()
        return Envelope[RoleData](data=RoleData(role=cached))

    cache_misses_total.inc()
    role = queries.get_role(user_id)
    set_cache(cache_key, role.value)
    return Envelope[RoleData](data=RoleData(role=role))


@router.get("/internal/validate/{user_id}", response_model=Envelope[ValidateData])
def validate_user_exists(user_id: str, queries: UserQueries = Depends(get_user_queries)):
    # соседним сервисам любой сбой проверки отдаётся как "пользователя нет"
    try:
        user = queries.find_by_id(int(user_id))
    except (ValueError, ServiceError):
        return Envelope[ValidateData](success=False, data=ValidateData(exists=False, user=None))
    return Envelope[ValidateData](data=ValidateData(exists=True, user=user_out(user)))


@router.get("/internal/student/{student_id}", response_model=Envelope[UserResp], dependencies=service_only)
def get_by_student_id_s2s(student_id: str, queries: UserQueries = Depends(get_user_queries)):
    return Envelope[UserResp](data=user_out(queries.find_by_student_id(student_id)))


# объявлен последним, чтобы не перехватывать /profile и прочие пути из одного сегмента
@router.get("/{user_id}", response_model=Envelope[UserResp], dependencies=moderator_only)
def get_user_by_id(user_id: int, queries: UserQueries = Depends(get_user_queries)):
    return Envelope[UserResp](data=user_out(queries.find_by_id(user_id)))
