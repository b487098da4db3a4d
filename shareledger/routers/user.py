"""User API endpoints - the caller's profile, holdings and history."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from shareledger.auth import get_current_profile
from shareledger.database import get_session
from shareledger.models import Profile
from shareledger.routers.trading import transaction_response
from shareledger.schemas.ledger import (
    HoldingResponse,
    HoldingsListResponse,
    TransactionListResponse,
)
from shareledger.schemas.profiles import ProfileResponse
from shareledger.services import ledger as ledger_service

router = APIRouter()


@router.get(
    "/user/profile",
    response_model=ProfileResponse,
    summary="Get my profile",
)
async def get_profile(
    profile: Profile = Depends(get_current_profile),
) -> ProfileResponse:
    """Get the profile resolved from the caller's wallet address."""
    return ProfileResponse.model_validate(profile)


@router.get(
    "/user/shares",
    response_model=HoldingsListResponse,
    summary="Get my holdings",
)
async def get_shares(
    include_empty: bool = Query(
        default=False, description="Also list holdings sold down to zero shares"
    ),
    profile: Profile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
) -> HoldingsListResponse:
    """Get the caller's share holdings with property details."""
    holdings = await ledger_service.get_holdings_for_user(
        session, profile.id, include_empty=include_empty
    )
    return HoldingsListResponse(
        holdings=[HoldingResponse.model_validate(h) for h in holdings]
    )


@router.get(
    "/transactions",
    response_model=TransactionListResponse,
    summary="Get my transactions",
)
async def get_transactions(
    limit: int | None = Query(default=None, ge=1, le=1000, description="Maximum rows"),
    profile: Profile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
) -> TransactionListResponse:
    """Get the caller's buy and sell history, newest first."""
    transactions = await ledger_service.get_transactions_for_user(
        session, profile.id, limit=limit
    )
    return TransactionListResponse(
        transactions=[transaction_response(t, t.property) for t in transactions]
    )
