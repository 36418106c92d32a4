"""Parsing and verification of wallet-signed login messages."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Final

import base58
from cryptography.exceptions import InvalidSignature as _CryptoInvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from wallet_auth.core.errors import InvalidPublicKey, MalformedMessage

PUBKEY_LENGTH_BYTES: Final[int] = 32
SIGNATURE_LENGTH_BYTES: Final[int] = 64


@dataclass(frozen=True)
class SignedAuthMessage:
    """Login message a wallet signs to answer a challenge.

    Attributes:
        public_key: Base58-encoded Ed25519 public key, which is also the
            wallet address and the identity key of the challenge.
        nonce: Nonce previously issued to ``public_key``.
        domain: Host the wallet was asked to sign in to.
        statement: Human-readable text shown to the wallet owner.
    """

    public_key: str
    nonce: str
    domain: str = ""
    statement: str = ""


def _required_str(payload: dict[str, Any], field: str) -> str:
    value = payload.get(field)
    if not isinstance(value, str) or not value.strip():
        raise MalformedMessage(f"Message field '{field}' must be a non-empty string")
    return value


def _optional_str(payload: dict[str, Any], field: str) -> str:
    value = payload.get(field, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise MalformedMessage(f"Message field '{field}' must be a string")
    return value


class SignedMessageVerifier:
    """Turns raw login messages into :class:`SignedAuthMessage` and checks signatures."""

    @staticmethod
    def parse(raw: str | bytes) -> SignedAuthMessage:
        """Deserialize a JSON login message.

        Raises:
            MalformedMessage: If the payload is not a JSON object or a
                required field is missing or has the wrong type.
        """
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError) as err:
            raise MalformedMessage("Message is not valid JSON") from err
        if not isinstance(payload, dict):
            raise MalformedMessage("Message must be a JSON object")

        public_key = _required_str(payload, "publicKey")
        if public_key != public_key.strip():
            raise MalformedMessage("Message field 'publicKey' must not contain surrounding whitespace")

        return SignedAuthMessage(
            public_key=public_key,
            nonce=_required_str(payload, "nonce"),
            domain=_optional_str(payload, "domain"),
            statement=_optional_str(payload, "statement"),
        )

    @staticmethod
    def canonical_bytes(message: SignedAuthMessage) -> bytes:
        """Return the exact bytes a wallet signs for ``message``."""
        text = (
            f"{message.domain} wants you to sign in with your wallet:\n"
            f"{message.public_key}\n"
            "\n"
            f"{message.statement}\n"
            "\n"
            f"Nonce: {message.nonce}"
        )
        return text.encode("utf-8")

    @staticmethod
    def decode_public_key(public_key: str) -> Ed25519PublicKey:
        """Decode a base58 wallet address into an Ed25519 public key.

        Raises:
            InvalidPublicKey: If the address is not canonical base58 or not
                32 bytes.
        """
        try:
            raw = base58.b58decode(public_key)
        except ValueError as err:
            raise InvalidPublicKey(f"Invalid base58 public key: {err}") from err
        if len(raw) != PUBKEY_LENGTH_BYTES:
            raise InvalidPublicKey("Ed25519 public keys must be 32 bytes")
        if base58.b58encode(raw).decode("ascii") != public_key:
            raise InvalidPublicKey("Public key is not in canonical base58 form")
        try:
            return Ed25519PublicKey.from_public_bytes(raw)
        except ValueError as err:
            raise InvalidPublicKey(str(err)) from err

    @staticmethod
    def verify(message: SignedAuthMessage, signature: str) -> bool:
        """Verify a base58 signature over the canonical form of ``message``.

        Returns:
            True if the signature is valid for the embedded public key,
            False for any undecodable or cryptographically invalid signature.

        Raises:
            InvalidPublicKey: If the embedded public key cannot be decoded.
        """
        pubkey = SignedMessageVerifier.decode_public_key(message.public_key)
        try:
            signature_bytes = base58.b58decode(signature)
        except ValueError:
            return False
        if len(signature_bytes) != SIGNATURE_LENGTH_BYTES:
            return False
        try:
            pubkey.verify(signature_bytes, SignedMessageVerifier.canonical_bytes(message))
        except _CryptoInvalidSignature:
            return False
        return True
