# tests/conftest.py
from __future__ import annotations

import json
import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

import base58
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from nacl.signing import SigningKey
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-with-enough-entropy-0123456789")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("NONCE_BACKEND", "memory")

from wallet_auth.api.v1.dependencies import get_nonce_store_dep
from wallet_auth.db.session import Base
from wallet_auth.db.session import get_db as app_get_session
from wallet_auth.main import app as fastapi_app
from wallet_auth.services.crypto import SignedAuthMessage, SignedMessageVerifier
from wallet_auth.services.nonce_store import InMemoryNonceStore

TEST_DB_URL = "sqlite://"


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def _make_engine() -> Engine:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = _make_engine()
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    session = Session(
        bind=connection,
        join_transaction_mode="create_savepoint",
        autoflush=False,
        expire_on_commit=False,
    )
    try:
        yield session
    finally:
        session.close()
        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def store_session_factory() -> Iterator[sessionmaker[Session]]:
    """Session factory on a private database for the SQL nonce store."""
    engine = _make_engine()
    try:
        yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    finally:
        engine.dispose()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def nonce_store(clock: FakeClock) -> InMemoryNonceStore:
    return InMemoryNonceStore(ttl_seconds=300, clock=clock)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def override_dependencies(
    app: FastAPI, db_session: Session, nonce_store: InMemoryNonceStore
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_nonce_store_dep] = lambda: nonce_store
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_nonce_store_dep, None)


@pytest.fixture()
def client(app: FastAPI, override_dependencies: None) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def _generate_wallet() -> dict[str, Any]:
    signing_key = SigningKey.generate()
    address = base58.b58encode(bytes(signing_key.verify_key)).decode()
    return {"signing_key": signing_key, "address": address}


@pytest.fixture()
def wallet() -> dict[str, Any]:
    """Return a fresh Ed25519 wallet for the primary test user."""
    return _generate_wallet()


@pytest.fixture()
def other_wallet() -> dict[str, Any]:
    """Return a second, unrelated wallet."""
    return _generate_wallet()


def sign_message(signing_key: SigningKey, message: SignedAuthMessage) -> str:
    """Sign the canonical form of ``message`` and return a base58 signature."""
    signed = signing_key.sign(SignedMessageVerifier.canonical_bytes(message))
    return base58.b58encode(signed.signature).decode()


@pytest.fixture()
def build_login_payload() -> Callable[..., dict[str, str]]:
    """Return a helper that builds a signed ``/auth/login`` body."""

    def _build(
        wallet: dict[str, Any],
        nonce: str,
        *,
        signing_key: SigningKey | None = None,
        domain: str = "app.example.com",
        statement: str = "Sign in to Wallet Auth",
    ) -> dict[str, str]:
        message = SignedAuthMessage(
            public_key=wallet["address"],
            nonce=nonce,
            domain=domain,
            statement=statement,
        )
        raw = json.dumps(
            {
                "domain": domain,
                "publicKey": wallet["address"],
                "statement": statement,
                "nonce": nonce,
            }
        )
        signature = sign_message(signing_key or wallet["signing_key"], message)
        return {"message": raw, "signature": signature}

    return _build
