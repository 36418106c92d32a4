"""SQLAlchemy model for wallet-backed user identities."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from wallet_auth.db.session import Base
from wallet_auth.db.time import utcnow


def _new_user_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """Identity bound to a single wallet public key."""

    __tablename__ = "wallet_user"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_user_id)
    public_key: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Residual challenge reference; cleared on every successful login.
    nonce: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    last_auth_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_auth_status: Mapped[str | None] = mapped_column(String(16), nullable=True)

    @property
    def address(self) -> str:
        """Return the wallet address, which is the encoded public key."""
        return self.public_key
