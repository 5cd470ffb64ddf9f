from datetime import timedelta

import jwt

from app.core.config import settings
from app.core.security import create_access_token, decode_access_token, hash_password, verify_password


def test_password_hash_round_trip():
    hashed = hash_password("secret123")
    assert verify_password("secret123", hashed)
    assert not verify_password("secret124", hashed)


def test_long_passwords_use_first_72_bytes():
    hashed = hash_password("x" * 100)
    assert verify_password("x" * 72, hashed)


def test_missing_or_malformed_hash():
    assert not verify_password("secret123", None)
    assert not verify_password("secret123", "not-a-bcrypt-hash")


def test_token_carries_user_claims():
    payload = decode_access_token(create_access_token(42, email="a@school.edu", role="admin"))
    assert payload.user_id == 42
    assert (payload.email, payload.role) == ("a@school.edu", "admin")


def test_expired_or_tampered_token_is_rejected():
    assert decode_access_token(create_access_token(1, expires_in=timedelta(seconds=-5))) is None
    assert decode_access_token(create_access_token(1) + "x") is None


def test_token_requires_numeric_subject_and_expiry():
    no_exp = jwt.encode({"sub": "1"}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    assert decode_access_token(no_exp) is None
    bad_sub = jwt.encode(
        {"sub": "admin", "exp": 4102444800}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm
    )
    assert decode_access_token(bad_sub) is None
