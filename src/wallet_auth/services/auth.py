"""Challenge-response login protocol.

Per wallet address the protocol moves through
``Unchallenged -> Challenged -> (Verified | Rejected) -> Consumed``:

1. ``request_nonce`` issues a challenge.
2. ``login`` parses the signed message, verifies the signature, redeems the
   challenge, resolves (or provisions) the user and issues a session.

A rejected signature never touches the challenge, so the wallet can retry
with a correct signature. Once the challenge is redeemed it stays redeemed,
even if identity resolution or session issuance fails afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from wallet_auth.core.errors import (
    AuthInfrastructureError,
    InvalidOrExpiredNonce,
    InvalidPublicKey,
    InvalidSignature,
)
from wallet_auth.db.time import Clock, utcnow
from wallet_auth.models import User
from wallet_auth.services.crypto import SignedMessageVerifier
from wallet_auth.services.identity import AUTH_STATUS_SUCCESS, IdentityRepository
from wallet_auth.services.nonce_store import NonceStore
from wallet_auth.services.session import SessionIssuer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful login."""

    token: str
    user: User
    created: bool


class ChallengeResponseOrchestrator:
    """Runs nonce issuance and signed login against injected collaborators."""

    def __init__(
        self,
        nonce_store: NonceStore,
        identities: IdentityRepository,
        sessions: SessionIssuer,
        verifier: SignedMessageVerifier | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.nonce_store = nonce_store
        self.identities = identities
        self.sessions = sessions
        self.verifier = verifier or SignedMessageVerifier()
        self._clock = clock

    def request_nonce(self, identity_key: str) -> str:
        """Issue a fresh challenge for ``identity_key``, superseding any prior one."""
        nonce = self.nonce_store.issue(identity_key)
        logger.debug("Issued nonce for %s", identity_key)
        return nonce

    def login(self, raw_message: str, signature: str) -> LoginResult:
        """Authenticate a signed login message.

        Raises:
            MalformedMessage: The message could not be parsed.
            InvalidSignature: The signature does not verify.
            InvalidOrExpiredNonce: No active challenge matches the nonce.
            AuthInfrastructureError: Identity or session services failed.
        """
        message = self.verifier.parse(raw_message)

        try:
            valid = self.verifier.verify(message, signature)
        except InvalidPublicKey as err:
            logger.info("Rejected login with undecodable public key: %s", err)
            raise InvalidSignature() from err
        if not valid:
            logger.info("Rejected login for %s: invalid signature", message.public_key)
            raise InvalidSignature()

        if not self.nonce_store.consume(message.public_key, message.nonce):
            logger.info("Rejected login for %s: invalid or expired nonce", message.public_key)
            raise InvalidOrExpiredNonce()

        try:
            user, created = self._resolve_identity(message.public_key)
            user_id = user.id
            token = self.sessions.issue(user)
            if not token:
                raise AuthInfrastructureError("Session issuer returned no credential")
            self.identities.record_auth_result(
                message.public_key, AUTH_STATUS_SUCCESS, self._clock()
            )
        except AuthInfrastructureError:
            logger.error("Login for %s failed after proof accepted", message.public_key)
            raise
        except Exception as err:
            logger.error("Login for %s failed after proof accepted", message.public_key, exc_info=True)
            raise AuthInfrastructureError.wrap(err) from err

        logger.info("Wallet %s logged in as user %s", message.public_key, user_id)
        return LoginResult(token=token, user=user, created=created)

    def _resolve_identity(self, public_key: str) -> tuple[User, bool]:
        user = self.identities.find_by_public_key(public_key)
        if user is not None:
            return user, False
        return self.identities.create(public_key), True
