"""Shared API dependencies for the authentication protocol and session checks."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from wallet_auth.db.session import get_db
from wallet_auth.models import User
from wallet_auth.services.auth import ChallengeResponseOrchestrator
from wallet_auth.services.identity import SqlIdentityRepository
from wallet_auth.services.nonce_store import NonceStore, get_nonce_store
from wallet_auth.services.session import JwtSessionIssuer, get_session_issuer

# HTTP Bearer scheme for session credentials; missing headers become 401 below.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_nonce_store_dep() -> NonceStore:
    return get_nonce_store()


def get_session_issuer_dep() -> JwtSessionIssuer:
    return get_session_issuer()


NonceStoreDep = Annotated[NonceStore, Depends(get_nonce_store_dep)]
SessionIssuerDep = Annotated[JwtSessionIssuer, Depends(get_session_issuer_dep)]


def get_orchestrator(
    db: SessionDep,
    nonce_store: NonceStoreDep,
    sessions: SessionIssuerDep,
) -> ChallengeResponseOrchestrator:
    """Assemble the login protocol from request-scoped collaborators."""
    return ChallengeResponseOrchestrator(
        nonce_store=nonce_store,
        identities=SqlIdentityRepository(db),
        sessions=sessions,
    )


OrchestratorDep = Annotated[ChallengeResponseOrchestrator, Depends(get_orchestrator)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
    sessions: SessionIssuerDep,
) -> User:
    """Resolve the user bound to the bearer session credential.

    Raises:
        HTTPException: 401 if the credential is missing, invalid, expired or
            refers to an unknown user.
    """
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None or not credentials.credentials:
        raise unauthorized

    payload = sessions.decode(credentials.credentials)
    if payload is None:
        raise unauthorized

    user = db.get(User, payload["sub"])
    if user is None:
        raise unauthorized
    return user


CurrentUserDep = Annotated[User, Depends(get_current_user)]
