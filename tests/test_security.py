import pytest
from jose import JWTError, jwt

from user_service.config import settings
from user_service.domain.entities import User, UserRole
from user_service.infrastructure.security import PasswordHasher, create_access_token, decode_token


def test_hash_and_verify():
    """Хэш не совпадает с паролем и проверяется"""
    hasher = PasswordHasher()
    hashed = hasher.hash("secret1")
    assert hashed != "secret1"
    assert hasher.verify("secret1", hashed)
    assert not hasher.verify("secret2", hashed)


def test_token_claims():
    user = User(id=7, email="m@example.com", name="M", role=UserRole.MODERATOR)
    claims = decode_token(create_access_token(user))
    assert claims["sub"] == "7"
    assert claims["email"] == "m@example.com"
    assert claims["role"] == "MODERATOR"
    assert "exp" in claims


def test_invalid_token():
    with pytest.raises(JWTError):
        decode_token("invalid_token")


def test_token_with_wrong_secret():
    token = jwt.encode({"sub": "1"}, "other-secret", algorithm=settings.JWT_ALGORITHM)
    with pytest.raises(JWTError):
        decode_token(token)


def test_token_without_subject():
    token = jwt.encode({"email": "x@example.com"}, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    with pytest.raises(JWTError):
        decode_token(token)


def test_expired_token():
    user = User(id=1, email="s@example.com", name="S", role=UserRole.STUDENT)
    with pytest.raises(JWTError):
        decode_token(create_access_token(user, minutes=-1))
