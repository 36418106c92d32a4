"""Authentication request and response schemas."""

from pydantic import BaseModel, Field


class NonceRequest(BaseModel):
    """Request for a fresh login challenge."""

    address: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Wallet address (base58-encoded Ed25519 public key)",
    )


class NonceResponse(BaseModel):
    """Challenge nonce the wallet must embed in its signed message."""

    nonce: str = Field(..., description="Single-use nonce, valid for a limited time")


class LoginRequest(BaseModel):
    """Signed login submission."""

    message: str = Field(..., description="JSON-serialized signed message")
    signature: str = Field(..., description="Base58-encoded Ed25519 signature over the message")


class LoginResponse(BaseModel):
    """Response returned after successful login."""

    token: str = Field(..., description="Session credential (JWT)")


class ErrorResponse(BaseModel):
    """Error body returned for every authentication failure."""

    error: str
