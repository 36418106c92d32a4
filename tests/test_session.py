# tests/test_session.py
"""Tests for JWT session issuance."""

from datetime import UTC, datetime, timedelta

from jose import jwt

from wallet_auth.models import User
from wallet_auth.services.session import JwtSessionIssuer

SECRET = "unit-test-secret"


def _user() -> User:
    return User(id="2b8c6f0e-8d55-4c1e-9e0f-2d7b1c3a4f5e", public_key="wallet-address")


def test_issue_encodes_identity_claims() -> None:
    issuer = JwtSessionIssuer(secret_key=SECRET, algorithm="HS256", expire_minutes=10)
    token = issuer.issue(_user())

    claims = jwt.decode(token, SECRET, algorithms=["HS256"])
    assert claims["sub"] == _user().id
    assert claims["address"] == "wallet-address"
    assert claims["exp"] - claims["iat"] == 600


def test_decode_round_trip_and_rejections() -> None:
    issuer = JwtSessionIssuer(secret_key=SECRET, algorithm="HS256")
    token = issuer.issue(_user())
    assert issuer.decode(token)["sub"] == _user().id

    other = JwtSessionIssuer(secret_key="another-secret", algorithm="HS256")
    assert other.decode(token) is None
    assert issuer.decode("garbage") is None


def test_expired_token_is_rejected() -> None:
    past = datetime.now(UTC) - timedelta(hours=2)
    issuer = JwtSessionIssuer(
        secret_key=SECRET, algorithm="HS256", expire_minutes=30, clock=lambda: past
    )
    assert issuer.decode(issuer.issue(_user())) is None


def test_token_without_subject_is_rejected() -> None:
    issuer = JwtSessionIssuer(secret_key=SECRET, algorithm="HS256")
    token = jwt.encode({"address": "wallet-address"}, SECRET, algorithm="HS256")
    assert issuer.decode(token) is None
