"""Lookup and lazy provisioning of wallet-backed users."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wallet_auth.core.settings import settings
from wallet_auth.models import User

logger = logging.getLogger(__name__)

AUTH_STATUS_SUCCESS = "success"


class IdentityRepository(Protocol):
    """Persistence contract for identities keyed by public key."""

    def find_by_public_key(self, public_key: str) -> User | None: ...

    def create(self, public_key: str) -> User: ...

    def record_auth_result(self, public_key: str, status: str, timestamp: datetime) -> None: ...


def placeholder_email(public_key: str) -> str:
    """Return the placeholder contact address assigned to new wallet users."""
    return f"{public_key}@{settings.placeholder_email_domain}"


class SqlIdentityRepository:
    """Identity repository backed by the ``wallet_user`` table."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_public_key(self, public_key: str) -> User | None:
        return self.db.scalar(select(User).where(User.public_key == public_key))

    def create(self, public_key: str) -> User:
        """Insert a user for ``public_key``.

        Two first logins for the same wallet may race; the loser of the
        unique-key race gets the winner's record back.
        """
        user = User(public_key=public_key, email=placeholder_email(public_key))
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = self.find_by_public_key(public_key)
            if existing is None:
                raise
            return existing
        self.db.refresh(user)
        logger.info("Provisioned user %s for wallet %s", user.id, public_key)
        return user

    def record_auth_result(self, public_key: str, status: str, timestamp: datetime) -> None:
        self.db.execute(
            update(User)
            .where(User.public_key == public_key)
            .values(nonce=None, last_auth_at=timestamp, last_auth_status=status)
        )
        self.db.commit()
