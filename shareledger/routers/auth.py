"""Wallet identity endpoints - connect (find or create) and verify."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from shareledger.auth import get_current_profile
from shareledger.database import get_session
from shareledger.models import Profile
from shareledger.schemas.profiles import (
    ProfileResponse,
    WalletConnectRequest,
    WalletConnectResponse,
)
from shareledger.services import profiles as profile_service

router = APIRouter()


@router.post(
    "/auth/wallet-connect",
    response_model=WalletConnectResponse,
    summary="Connect a wallet",
)
async def wallet_connect(
    data: WalletConnectRequest,
    session: AsyncSession = Depends(get_session),
) -> WalletConnectResponse:
    """Return the profile for a wallet address, creating it on first connect."""
    try:
        profile = await profile_service.resolve_wallet(session, data.wallet_address)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    return WalletConnectResponse(user=ProfileResponse.model_validate(profile))


@router.get(
    "/auth/verify",
    response_model=WalletConnectResponse,
    summary="Verify the calling wallet",
)
async def verify(
    profile: Profile = Depends(get_current_profile),
) -> WalletConnectResponse:
    """Return the profile the X-Wallet-Address header resolves to."""
    return WalletConnectResponse(user=ProfileResponse.model_validate(profile))
