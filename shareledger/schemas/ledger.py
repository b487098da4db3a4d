"""Pydantic schemas for buy/sell and ledger read endpoints."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class TransactionKind(str, Enum):
    """Direction of a ledger movement (matching the model enum)."""

    BUY = "BUY"
    SELL = "SELL"


# ============================================================================
# Buy / sell
# ============================================================================


class TradeRequest(BaseModel):
    """Request body for buying or selling shares."""

    # strict: "5" or 5.0 are rejected rather than coerced
    shares: int = Field(..., gt=0, strict=True, description="Number of shares")


class TransactionResponse(BaseModel):
    """Response schema for one ledger transaction."""

    id: str
    property_id: str
    kind: TransactionKind
    shares: int
    price_per_share: Decimal
    total_value: Decimal
    created_at: datetime
    property_name: str | None = None
    property_location: str | None = None


class TradeResponse(BaseModel):
    """Response for a successful buy or sell."""

    message: str
    transaction: TransactionResponse


class TransactionListResponse(BaseModel):
    """Response for listing a user's transactions."""

    transactions: list[TransactionResponse] = Field(default_factory=list)


# ============================================================================
# Holdings
# ============================================================================


class HoldingResponse(BaseModel):
    """A user's shares in one property, with property display fields."""

    property_id: str
    name: str
    location: str
    image_url: str | None = None
    rental_yield: Decimal | None = None
    price_per_share: Decimal
    total_shares: int
    shares: int
    value: Decimal = Field(..., description="shares * price_per_share")

    model_config = {"from_attributes": True}


class HoldingsListResponse(BaseModel):
    """Response for listing holdings."""

    holdings: list[HoldingResponse] = Field(default_factory=list)
