"""SQLAlchemy model backing the database nonce store."""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from wallet_auth.db.session import Base


class NonceChallenge(Base):
    """Outstanding login challenge, at most one per identity key."""

    __tablename__ = "nonce_challenge"

    identity_key: Mapped[str] = mapped_column(String(64), primary_key=True)
    nonce: Mapped[str] = mapped_column(Text, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
