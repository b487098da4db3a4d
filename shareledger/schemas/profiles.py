"""Pydantic schemas for wallet identity endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field


class WalletConnectRequest(BaseModel):
    """Request schema for connecting a wallet."""

    wallet_address: str = Field(
        ..., alias="walletAddress", min_length=1, max_length=255
    )

    model_config = {"populate_by_name": True}


class ProfileResponse(BaseModel):
    """Response schema for profile data."""

    id: str
    wallet_address: str
    email: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class WalletConnectResponse(BaseModel):
    """Response for wallet connect (find-or-create)."""

    user: ProfileResponse
