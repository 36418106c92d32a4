"""Pydantic schemas for the Wallet Auth API."""

from .auth import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    NonceRequest,
    NonceResponse,
)
from .user import UserProfile

__all__ = [
    "ErrorResponse",
    "LoginRequest",
    "LoginResponse",
    "NonceRequest",
    "NonceResponse",
    "UserProfile",
]
