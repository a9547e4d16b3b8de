import os
import sys
import pytest

CURRENT_DIR = os.path.dirname(__file__)
SERVICE_ROOT = os.path.dirname(CURRENT_DIR)
if SERVICE_ROOT not in sys.path:
    sys.path.insert(0, SERVICE_ROOT)

# Настройки читаются при импорте, поэтому окружение задаём до импорта приложения
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["SERVICE_TOKEN"] = "test-service-token"
os.environ.pop("PEER_SYNC_URL", None)

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from user_service.domain.entities import User, UserRole
from user_service.infrastructure.db import get_db
from user_service.infrastructure.models import Base, LogORM
from user_service.infrastructure.security import create_access_token
from user_service.main import create_app

# Тестовая БД в памяти, одно соединение на все потоки
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def app():
    """Свежее приложение на тестовой БД"""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    application = create_app(bind=test_engine, session_factory=TestingSessionLocal)
    application.dependency_overrides[get_db] = override_get_db
    yield application
    Base.metadata.drop_all(bind=test_engine)

@pytest.fixture
def client(app):
    """Фикстура для тестового клиента"""
    return TestClient(app)

@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def journal(db_session):
    """Записи журнала, от старых к новым"""
    def _records(context: str | None = None):
        db_session.expire_all()
        q = db_session.query(LogORM)
        if context:
            q = q.filter(LogORM.context == context)
        return q.order_by(LogORM.id).all()
    return _records

@pytest.fixture
def register(client):
    """Регистрирует пользователя через API и возвращает ответ"""
    def _register(email="student@example.com", password="secret1", name="Student",
                  role="STUDENT", **extra):
        payload = {"email": email, "password": password, "name": name, "role": role, **extra}
        return client.post("/users/register", json=payload)
    return _register

def make_token(user_id: int, role: str = "STUDENT", email: str = "someone@example.com") -> str:
    user = User(id=user_id, email=email, name="Token", role=UserRole(role))
    return create_access_token(user)

def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def moderator_headers():
    return auth_header(make_token(9999, role="MODERATOR", email="mod@example.com"))
