"""Expiring, single-use login challenges keyed by wallet address.

A store holds at most one outstanding challenge per identity key. Issuing a
new nonce replaces the previous one, and ``consume`` is an atomic
check-and-delete so a captured proof can only ever be redeemed once.
Expiry is always decided against the store's clock at read time; physical
purging only reclaims storage.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import lru_cache
from threading import Lock
from typing import Final, Protocol

import redis
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from wallet_auth.core.errors import NonceStoreError
from wallet_auth.core.settings import settings
from wallet_auth.db.session import SessionLocal
from wallet_auth.db.time import Clock, as_utc, utcnow
from wallet_auth.models import NonceChallenge

logger = logging.getLogger(__name__)

NONCE_BYTES: Final[int] = 16
_LOCK_STRIPES: Final[int] = 64


def generate_nonce() -> str:
    """Return a 128-bit random nonce, hex encoded."""
    return secrets.token_hex(NONCE_BYTES)


def _nonces_equal(stored: str, presented: str) -> bool:
    return secrets.compare_digest(stored.encode("utf-8"), presented.encode("utf-8"))


class NonceStore(Protocol):
    """Contract shared by every challenge store backend."""

    def issue(self, identity_key: str) -> str:
        """Create a challenge for the key, replacing any prior one, and return its nonce."""
        ...

    def peek(self, identity_key: str) -> str | None:
        """Return the active nonce for the key without consuming it."""
        ...

    def consume(self, identity_key: str, presented_nonce: str) -> bool:
        """Atomically redeem the active challenge if the nonce matches."""
        ...

    def purge_expired(self) -> int:
        """Reclaim storage held by expired challenges and return how many were removed."""
        ...


@dataclass(frozen=True)
class _Challenge:
    nonce: str
    expires_at: datetime


class InMemoryNonceStore:
    """Process-local challenge store.

    Keys are guarded by a fixed set of striped locks, so the check-and-delete
    in ``consume`` is serialized per key while unrelated keys rarely contend.
    """

    def __init__(self, ttl_seconds: int | None = None, clock: Clock = utcnow) -> None:
        self._ttl = timedelta(seconds=ttl_seconds or settings.nonce_ttl_seconds)
        self._clock = clock
        self._challenges: dict[str, _Challenge] = {}
        self._locks = [Lock() for _ in range(_LOCK_STRIPES)]

    def _lock_for(self, identity_key: str) -> Lock:
        return self._locks[hash(identity_key) % _LOCK_STRIPES]

    def issue(self, identity_key: str) -> str:
        nonce = generate_nonce()
        challenge = _Challenge(nonce=nonce, expires_at=self._clock() + self._ttl)
        with self._lock_for(identity_key):
            self._challenges[identity_key] = challenge
        return nonce

    def peek(self, identity_key: str) -> str | None:
        with self._lock_for(identity_key):
            challenge = self._challenges.get(identity_key)
        if challenge is None or self._clock() >= challenge.expires_at:
            return None
        return challenge.nonce

    def consume(self, identity_key: str, presented_nonce: str) -> bool:
        with self._lock_for(identity_key):
            challenge = self._challenges.get(identity_key)
            if challenge is None:
                return False
            if self._clock() >= challenge.expires_at:
                return False
            if not _nonces_equal(challenge.nonce, presented_nonce):
                return False
            del self._challenges[identity_key]
            return True

    def purge_expired(self) -> int:
        now = self._clock()
        removed = 0
        for identity_key in list(self._challenges):
            with self._lock_for(identity_key):
                challenge = self._challenges.get(identity_key)
                if challenge is not None and now >= challenge.expires_at:
                    del self._challenges[identity_key]
                    removed += 1
        return removed


class SqlNonceStore:
    """Challenge store persisted in the ``nonce_challenge`` table.

    ``consume`` is a single conditional DELETE; the database guarantees that
    only one concurrent statement can remove the row, and the affected row
    count tells each caller whether it won.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        ttl_seconds: int | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._ttl = timedelta(seconds=ttl_seconds or settings.nonce_ttl_seconds)
        self._clock = clock

    def issue(self, identity_key: str) -> str:
        nonce = generate_nonce()
        expires_at = self._clock() + self._ttl
        try:
            with self._session_factory() as db:
                try:
                    db.merge(
                        NonceChallenge(identity_key=identity_key, nonce=nonce, expires_at=expires_at)
                    )
                    db.commit()
                except IntegrityError:
                    # A concurrent issue inserted the row first; overwrite it.
                    db.rollback()
                    db.execute(
                        update(NonceChallenge)
                        .where(NonceChallenge.identity_key == identity_key)
                        .values(nonce=nonce, expires_at=expires_at)
                    )
                    db.commit()
        except SQLAlchemyError as err:
            raise NonceStoreError() from err
        return nonce

    def peek(self, identity_key: str) -> str | None:
        try:
            with self._session_factory() as db:
                challenge = db.scalar(
                    select(NonceChallenge).where(NonceChallenge.identity_key == identity_key)
                )
        except SQLAlchemyError as err:
            raise NonceStoreError("Failed to read nonce") from err
        if challenge is None or self._clock() >= as_utc(challenge.expires_at):
            return None
        return challenge.nonce

    def consume(self, identity_key: str, presented_nonce: str) -> bool:
        now = self._clock()
        try:
            with self._session_factory() as db:
                result = db.execute(
                    delete(NonceChallenge).where(
                        NonceChallenge.identity_key == identity_key,
                        NonceChallenge.nonce == presented_nonce,
                        NonceChallenge.expires_at > now,
                    )
                )
                db.commit()
        except SQLAlchemyError as err:
            raise NonceStoreError("Failed to consume nonce") from err
        return result.rowcount == 1

    def purge_expired(self) -> int:
        now = self._clock()
        try:
            with self._session_factory() as db:
                result = db.execute(delete(NonceChallenge).where(NonceChallenge.expires_at <= now))
                db.commit()
        except SQLAlchemyError as err:
            raise NonceStoreError("Failed to purge expired nonces") from err
        return result.rowcount


# KEYS[1] = challenge key; ARGV[1] = presented nonce; ARGV[2] = now in epoch milliseconds.
_CONSUME_SCRIPT: Final[str] = """
local value = redis.call('GET', KEYS[1])
if not value then
    return 0
end
local sep = string.find(value, '|', 1, true)
if not sep then
    return 0
end
local expires_ms = tonumber(string.sub(value, 1, sep - 1))
local nonce = string.sub(value, sep + 1)
if nonce ~= ARGV[1] or expires_ms <= tonumber(ARGV[2]) then
    return 0
end
redis.call('DEL', KEYS[1])
return 1
"""


def _epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


class RedisNonceStore:
    """Challenge store kept in Redis.

    Each challenge is stored as ``"<expires_ms>|<nonce>"`` with a Redis TTL
    matching the nonce lifetime. The stored expiry, not the Redis TTL, decides
    whether a challenge is still active. ``consume`` runs as one Lua script so
    the compare and the delete happen in a single server-side step.
    """

    def __init__(
        self,
        client: redis.Redis | None = None,
        ttl_seconds: int | None = None,
        clock: Clock = utcnow,
        key_prefix: str = "wallet-auth:nonce:",
    ) -> None:
        self._redis = client or redis.Redis.from_url(settings.redis_url, decode_responses=True)
        self._ttl = timedelta(seconds=ttl_seconds or settings.nonce_ttl_seconds)
        self._clock = clock
        self._prefix = key_prefix
        self._consume_script = self._redis.register_script(_CONSUME_SCRIPT)

    def _key(self, identity_key: str) -> str:
        return f"{self._prefix}{identity_key}"

    def issue(self, identity_key: str) -> str:
        nonce = generate_nonce()
        expires_ms = _epoch_ms(self._clock() + self._ttl)
        try:
            self._redis.set(
                self._key(identity_key),
                f"{expires_ms}|{nonce}",
                px=int(self._ttl.total_seconds() * 1000),
            )
        except redis.RedisError as err:
            raise NonceStoreError() from err
        return nonce

    def peek(self, identity_key: str) -> str | None:
        try:
            value = self._redis.get(self._key(identity_key))
        except redis.RedisError as err:
            raise NonceStoreError("Failed to read nonce") from err
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        expires_raw, _, nonce = value.partition("|")
        if not nonce or _epoch_ms(self._clock()) >= int(expires_raw):
            return None
        return nonce

    def consume(self, identity_key: str, presented_nonce: str) -> bool:
        try:
            result = self._consume_script(
                keys=[self._key(identity_key)],
                args=[presented_nonce, _epoch_ms(self._clock())],
            )
        except redis.RedisError as err:
            raise NonceStoreError("Failed to consume nonce") from err
        return int(result) == 1

    def purge_expired(self) -> int:
        """Redis evicts keys on its own TTL; nothing to reclaim here."""
        return 0


@lru_cache(maxsize=1)
def get_nonce_store() -> NonceStore:
    """Return the process-wide nonce store for the configured backend."""
    backend = settings.nonce_backend
    logger.info("Using %s nonce store", backend)
    if backend == "redis":
        return RedisNonceStore()
    if backend == "database":
        return SqlNonceStore()
    return InMemoryNonceStore()
