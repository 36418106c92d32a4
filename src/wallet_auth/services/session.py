"""Session credential issuance."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Protocol

from jose import JWTError, jwt

from wallet_auth.core.settings import settings
from wallet_auth.db.time import Clock, utcnow
from wallet_auth.models import User


class SessionIssuer(Protocol):
    """Mints a session credential for a resolved identity."""

    def issue(self, identity: User) -> str: ...


class JwtSessionIssuer:
    """Issues HS256 JWTs whose subject is the user id."""

    def __init__(
        self,
        secret_key: str | None = None,
        algorithm: str | None = None,
        expire_minutes: int | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.jwt_algorithm
        self.expire_minutes = expire_minutes or settings.access_token_expire_minutes
        self._clock = clock

    def issue(self, identity: User) -> str:
        issued_at = self._clock()
        claims: dict[str, Any] = {
            "sub": identity.id,
            "address": identity.public_key,
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=self.expire_minutes),
        }
        token: str = jwt.encode(claims, self.secret_key, algorithm=self.algorithm)
        return token

    def decode(self, token: str) -> dict[str, Any] | None:
        """Return the verified claims of ``token``, or None if it is invalid or expired."""
        try:
            payload: dict[str, Any] = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None
        if "sub" not in payload:
            return None
        return payload


def get_session_issuer() -> JwtSessionIssuer:
    """Return a session issuer configured from settings."""
    return JwtSessionIssuer()
