"""User-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserProfile(BaseModel):
    """Public view of an authenticated wallet identity."""

    id: str = Field(..., description="Durable user identifier")
    address: str = Field(..., description="Wallet address bound to this user")
    last_auth_at: datetime | None = Field(None, description="Time of the last successful login")
    last_auth_status: str | None = Field(None, description="Outcome of the last login")

    model_config = ConfigDict(from_attributes=True)
