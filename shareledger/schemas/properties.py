"""Pydantic schemas for property endpoints."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class PropertyCreate(BaseModel):
    """Request schema for listing a property."""

    id: str | None = Field(
        default=None,
        min_length=1,
        max_length=64,
        description="Optional explicit id (generated when omitted)",
    )
    name: str = Field(..., min_length=1, max_length=255, description="Property name")
    location: str = Field(..., min_length=1, max_length=255, description="City / address")
    description: str | None = Field(default=None, max_length=5000)
    image_url: str | None = Field(default=None, max_length=2048)
    rental_yield: Decimal | None = Field(
        default=None,
        ge=0,
        le=100,
        max_digits=5,
        decimal_places=2,
        description="Annual rental yield in percent",
    )
    total_shares: int = Field(..., gt=0, description="Number of shares the property is split into")
    # Matches the Numeric(15, 2) column, so the stored price is never rounded
    price_per_share: Decimal = Field(
        ..., gt=0, max_digits=15, decimal_places=2, description="Fixed price of one share"
    )


class OwnerPublic(BaseModel):
    """Public view of the profile that listed a property."""

    id: str
    email: str | None = None
    wallet_address: str

    model_config = {"from_attributes": True}


class PropertyResponse(BaseModel):
    """Response schema for property data."""

    id: str
    name: str
    location: str
    description: str | None = None
    image_url: str | None = None
    rental_yield: Decimal | None = None
    total_shares: int
    available_shares: int
    price_per_share: Decimal
    owner_id: str | None = None
    owner: OwnerPublic | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PropertyListResponse(BaseModel):
    """Response for listing properties."""

    properties: list[PropertyResponse] = Field(default_factory=list)
