from datetime import datetime

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from user_service.application.errors import ForbiddenError, OperationFailed

ERROR_KEYS = {"statusCode", "timestamp", "path", "method", "message", "correlationId"}


@pytest.fixture
def failing_client(app):
    """Приложение с роутами, которые падают по-разному"""
    @app.get("/boom")
    def boom():
        raise RuntimeError("boom")

    @app.get("/silent")
    def silent():
        raise ValueError()

    @app.get("/forbidden")
    def forbidden():
        raise ForbiddenError("nope")

    @app.get("/store")
    def store():
        raise OperationFailed("Failed to find user: db down")

    @app.get("/teapot")
    def teapot():
        raise HTTPException(status_code=418, detail="I'm a teapot")

    return TestClient(app, raise_server_exceptions=False)


def test_unexpected_error_is_500(failing_client, journal):
    """Необработанное исключение - 500 в общем формате"""
    response = failing_client.get("/boom", headers={"x-correlation-id": "c-1"})
    assert response.status_code == 500
    body = response.json()
    assert set(body) == ERROR_KEYS
    assert body["statusCode"] == 500
    assert body["message"] == "boom"
    assert body["path"] == "/boom"
    assert body["method"] == "GET"
    assert body["correlationId"] == "c-1"
    assert response.headers["X-Correlation-ID"] == "c-1"
    datetime.fromisoformat(body["timestamp"])

    [http_record] = journal("HTTP")
    assert http_record.level == "error"
    assert http_record.status_code == 500
    assert http_record.message == "HTTP Error: boom"
    [exc_record] = journal("Exception")
    assert exc_record.message == "Unhandled Exception: boom"
    assert "RuntimeError" in exc_record.stack


def test_empty_message_gets_default(failing_client):
    body = failing_client.get("/silent").json()
    assert body["message"] == "Internal server error"


def test_typed_errors_keep_status(failing_client):
    assert failing_client.get("/forbidden").status_code == 403
    store = failing_client.get("/store")
    assert store.status_code == 500
    assert store.json()["message"] == "Failed to find user: db down"
    teapot = failing_client.get("/teapot")
    assert teapot.status_code == 418
    assert teapot.json()["message"] == "I'm a teapot"


def test_unknown_route_is_normalized(client, journal):
    """404 на неизвестный путь тоже в общем формате и с correlation id"""
    response = client.get("/nope")
    assert response.status_code == 404
    body = response.json()
    assert set(body) == ERROR_KEYS
    assert body["correlationId"] == response.headers["X-Correlation-ID"]
    assert journal("HTTP") == []
    assert len(journal("Exception")) == 1


def test_method_not_allowed_is_normalized(client):
    response = client.put("/health")
    assert response.status_code == 405
    assert response.json()["statusCode"] == 405


def test_normalizer_survives_logging_failure(app, client):
    """Сломанный логгер не мешает ответить клиенту"""
    app.state.store_logger = None
    response = client.get("/nope", headers={"x-correlation-id": "c-2"})
    assert response.status_code == 404
    assert response.json()["correlationId"] == "c-2"
