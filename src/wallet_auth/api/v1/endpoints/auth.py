"""Wallet authentication endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from wallet_auth.api.v1.dependencies import OrchestratorDep
from wallet_auth.schemas.auth import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    NonceRequest,
    NonceResponse,
)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/nonce",
    summary="Issue a login challenge for a wallet",
    response_model=NonceResponse,
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse}},
)
def issue_nonce(payload: NonceRequest, orchestrator: OrchestratorDep) -> NonceResponse:
    """Create a nonce the wallet must sign; any earlier nonce for it stops working."""
    nonce = orchestrator.request_nonce(payload.address)
    return NonceResponse(nonce=nonce)


@router.post(
    "/login",
    summary="Authenticate with a wallet-signed message",
    status_code=status.HTTP_200_OK,
    response_model=LoginResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
def login(payload: LoginRequest, orchestrator: OrchestratorDep) -> LoginResponse:
    """Verify the signed challenge and return a session token."""
    result = orchestrator.login(payload.message, payload.signature)
    return LoginResponse(token=result.token)
