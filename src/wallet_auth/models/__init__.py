"""SQLAlchemy models for the Wallet Auth service."""

from .nonce import NonceChallenge
from .user import User

__all__ = [
    "NonceChallenge",
    "User",
]
