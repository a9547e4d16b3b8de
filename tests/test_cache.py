import pytest
from unittest.mock import MagicMock, patch

from user_service.infrastructure import cache
from user_service.infrastructure.cache import delete_cache, get_cache, role_key, set_cache


@pytest.fixture(autouse=True)
def cache_enabled(monkeypatch):
    monkeypatch.setattr(cache.settings, "CACHE_ENABLED", True)

@pytest.fixture
def cache_off(monkeypatch):
    monkeypatch.setattr(cache.settings, "CACHE_ENABLED", False)


@patch('user_service.infrastructure.cache.get_redis')
def test_get_cache_hit(mock_redis):
    """Тест получения значения из кэша (hit)"""
    mock_client = MagicMock()
    mock_client.get.return_value = '"MODERATOR"'
    mock_redis.return_value = mock_client

    result = get_cache(role_key(5))
    assert result == "MODERATOR"
    mock_client.get.assert_called_once_with("user:5:role")

@patch('user_service.infrastructure.cache.get_redis')
def test_get_cache_miss(mock_redis):
    """Тест получения значения из кэша (miss)"""
    mock_client = MagicMock()
    mock_client.get.return_value = None
    mock_redis.return_value = mock_client

    assert get_cache("test_key") is None

@patch('user_service.infrastructure.cache.get_redis')
def test_get_cache_error(mock_redis):
    """Тест обработки ошибки при получении из кэша"""
    mock_redis.side_effect = Exception("Redis error")
    assert get_cache("test_key") is None

@patch('user_service.infrastructure.cache.get_redis')
def test_set_cache(mock_redis):
    """Тест сохранения значения в кэш"""
    mock_client = MagicMock()
    mock_redis.return_value = mock_client

    assert set_cache("test_key", "STUDENT", ttl=300) is True
    mock_client.setex.assert_called_once_with("test_key", 300, '"STUDENT"')

@patch('user_service.infrastructure.cache.get_redis')
def test_set_cache_error(mock_redis):
    """Тест обработки ошибки при сохранении в кэш"""
    mock_redis.side_effect = Exception("Redis error")
    assert set_cache("test_key", "STUDENT") is False

@patch('user_service.infrastructure.cache.get_redis')
def test_delete_cache(mock_redis):
    """Тест удаления значения из кэша"""
    mock_client = MagicMock()
    mock_redis.return_value = mock_client

    assert delete_cache("test_key") is True
    mock_client.delete.assert_called_once_with("test_key")

@patch('user_service.infrastructure.cache.get_redis')
def test_cache_disabled(mock_redis, monkeypatch):
    """Выключенный кэш не трогает Redis"""
    monkeypatch.setattr(cache.settings, "CACHE_ENABLED", False)
    assert get_cache("k") is None
    assert set_cache("k", 1) is False
    assert delete_cache("k") is False
    mock_redis.assert_not_called()


@patch('user_service.interfaces.http.routers.users.get_cache')
def test_role_endpoint_uses_cache(mock_get_cache, client):
    """Роль из кэша отдаётся без обращения к БД"""
    mock_get_cache.return_value = "MODERATOR"
    response = client.get("/users/internal/role/42")
    assert response.status_code == 200
    assert response.json()["data"] == {"role": "MODERATOR"}
    mock_get_cache.assert_called_once_with("user:42:role")

@patch('user_service.interfaces.http.routers.users.set_cache')
def test_role_endpoint_fills_cache(mock_set_cache, cache_off, client, register):
    user_id = register().json()["data"]["id"]
    client.get(f"/users/internal/role/{user_id}")
    mock_set_cache.assert_called_once_with(f"user:{user_id}:role", "STUDENT")

@patch('user_service.interfaces.http.routers.users.delete_cache')
def test_delete_invalidates_role_cache(mock_delete_cache, client, register, moderator_headers):
    user_id = register().json()["data"]["id"]
    client.delete(f"/users/user/{user_id}", headers=moderator_headers)
    mock_delete_cache.assert_called_once_with(f"user:{user_id}:role")
