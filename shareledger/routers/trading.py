"""Trading API endpoints - buy and sell shares (requires wallet identity)."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from shareledger.auth import get_current_profile
from shareledger.database import get_session
from shareledger.errors import (
    ConflictRetryExhausted,
    InsufficientHolding,
    InsufficientSupply,
    InvariantViolation,
    LedgerError,
    LedgerValidationError,
    PersistenceFailure,
    PropertyNotFound,
)
from shareledger.models import Profile, Property, Transaction
from shareledger.schemas.ledger import TradeRequest, TradeResponse, TransactionResponse
from shareledger.services import ledger as ledger_service

router = APIRouter()

# Ledger error -> HTTP status
_ERROR_STATUS: dict[type[LedgerError], int] = {
    LedgerValidationError: status.HTTP_400_BAD_REQUEST,
    PropertyNotFound: status.HTTP_404_NOT_FOUND,
    InsufficientSupply: status.HTTP_400_BAD_REQUEST,
    InsufficientHolding: status.HTTP_400_BAD_REQUEST,
    InvariantViolation: status.HTTP_409_CONFLICT,
    ConflictRetryExhausted: status.HTTP_503_SERVICE_UNAVAILABLE,
    PersistenceFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def ledger_http_error(error: LedgerError) -> HTTPException:
    """Translate a ledger error into an HTTP error response."""
    status_code = _ERROR_STATUS.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR)
    headers = {"Retry-After": "1"} if error.retryable else None
    return HTTPException(status_code=status_code, detail=str(error), headers=headers)


def transaction_response(
    transaction: Transaction, prop: Property | None = None
) -> TransactionResponse:
    """Build the API view of a transaction."""
    return TransactionResponse(
        id=transaction.id,
        property_id=transaction.property_id,
        kind=transaction.kind.value,
        shares=transaction.shares,
        price_per_share=transaction.price_per_share,
        total_value=transaction.price_per_share * transaction.shares,
        created_at=transaction.created_at,
        property_name=prop.name if prop else None,
        property_location=prop.location if prop else None,
    )


@router.post(
    "/properties/{property_id}/buy",
    response_model=TradeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Buy shares of a property",
)
async def buy(
    property_id: str,
    data: TradeRequest,
    profile: Profile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
) -> TradeResponse:
    """Buy shares from the property's available supply.

    - **shares**: Number of shares (positive integer)
    """
    user_id = profile.id
    try:
        transaction = await ledger_service.buy_shares(session, property_id, user_id, data.shares)
    except LedgerError as e:
        raise ledger_http_error(e)

    prop = await session.get(Property, property_id)
    return TradeResponse(
        message="Shares purchased successfully",
        transaction=transaction_response(transaction, prop),
    )


@router.post(
    "/properties/{property_id}/sell",
    response_model=TradeResponse,
    summary="Sell shares of a property",
)
async def sell(
    property_id: str,
    data: TradeRequest,
    profile: Profile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_session),
) -> TradeResponse:
    """Sell held shares back to the property's available supply.

    - **shares**: Number of shares (positive integer)
    """
    user_id = profile.id
    try:
        transaction = await ledger_service.sell_shares(session, property_id, user_id, data.shares)
    except LedgerError as e:
        raise ledger_http_error(e)

    prop = await session.get(Property, property_id)
    return TradeResponse(
        message="Shares sold successfully",
        transaction=transaction_response(transaction, prop),
    )
