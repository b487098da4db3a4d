"""Wallet identity for trader endpoints.

The caller identifies itself with an ``X-Wallet-Address`` header. The
address is resolved to a profile (created on first sight) before any ledger
operation runs; the ledger only ever sees the resulting profile id.
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from shareledger.database import get_session
from shareledger.models import Profile
from shareledger.services import profiles as profile_service

# Wallet address header scheme
wallet_header = APIKeyHeader(name="X-Wallet-Address", auto_error=False)


async def get_optional_profile(
    wallet_address: str | None = Security(wallet_header),
    session: AsyncSession = Depends(get_session),
) -> Profile | None:
    """Resolve the calling wallet if one was sent.

    Returns:
        The caller's profile, or None when no header was provided
    """
    if not wallet_address or not wallet_address.strip():
        return None
    return await profile_service.resolve_wallet(session, wallet_address)


async def get_current_profile(
    profile: Profile | None = Depends(get_optional_profile),
) -> Profile:
    """Require a resolved wallet identity.

    Raises:
        HTTPException: 401 if no wallet address header was provided
    """
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing wallet address",
            headers={"WWW-Authenticate": "WalletAddress"},
        )
    return profile
