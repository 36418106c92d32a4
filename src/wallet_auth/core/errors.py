"""Typed failures raised by the authentication protocol.

Every failure carries the HTTP status it maps to so the API layer can turn
it into a response without inspecting the message text.
"""

from __future__ import annotations

from fastapi import status


class AuthError(Exception):
    """Base class for all authentication failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Authentication failed"

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class MalformedMessage(AuthError):
    """The signed message payload could not be parsed."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Malformed message"


class InvalidSignature(AuthError):
    """The signature does not verify against the embedded public key."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid signature"


class InvalidOrExpiredNonce(AuthError):
    """No active challenge matches the presented nonce.

    Absent, expired, consumed and mismatched nonces all raise this same error.
    """

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid or expired nonce"


class AuthInfrastructureError(AuthError):
    """A backing service failed after the caller's proof was accepted."""

    default_message = "Login failed"

    @classmethod
    def wrap(cls, err: BaseException) -> AuthInfrastructureError:
        """Build an infrastructure error, keeping any status the cause carries.

        The cause's text stays out of the client-facing message; callers log it.
        """
        carried = getattr(err, "status_code", None)
        if not isinstance(carried, int):
            carried = getattr(err, "status", None)
        status_code = carried if isinstance(carried, int) and 400 <= carried < 600 else None
        return cls(status_code=status_code)


class NonceStoreError(AuthInfrastructureError):
    """The nonce store could not read or write a challenge."""

    default_message = "Failed to generate nonce"


class InvalidPublicKey(ValueError):
    """The embedded public key is not a valid encoded Ed25519 key."""
