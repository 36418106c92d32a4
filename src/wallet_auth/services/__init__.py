"""Business logic services for the Wallet Auth service."""

from .auth import ChallengeResponseOrchestrator, LoginResult
from .crypto import SignedAuthMessage, SignedMessageVerifier
from .identity import IdentityRepository, SqlIdentityRepository
from .nonce_store import InMemoryNonceStore, NonceStore, RedisNonceStore, SqlNonceStore
from .session import JwtSessionIssuer, SessionIssuer
from .sweeper import NonceSweeper

__all__ = [
    "ChallengeResponseOrchestrator",
    "LoginResult",
    "SignedAuthMessage",
    "SignedMessageVerifier",
    "IdentityRepository",
    "SqlIdentityRepository",
    "NonceStore",
    "InMemoryNonceStore",
    "SqlNonceStore",
    "RedisNonceStore",
    "JwtSessionIssuer",
    "SessionIssuer",
    "NonceSweeper",
]
