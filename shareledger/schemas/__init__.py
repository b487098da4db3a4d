"""Pydantic schemas for request/response validation."""

from shareledger.schemas.ledger import (
    HoldingResponse,
    HoldingsListResponse,
    TradeRequest,
    TradeResponse,
    TransactionKind,
    TransactionListResponse,
    TransactionResponse,
)
from shareledger.schemas.profiles import (
    ProfileResponse,
    WalletConnectRequest,
    WalletConnectResponse,
)
from shareledger.schemas.properties import (
    OwnerPublic,
    PropertyCreate,
    PropertyListResponse,
    PropertyResponse,
)

__all__ = [
    # Ledger schemas
    "TradeRequest",
    "TradeResponse",
    "TransactionKind",
    "TransactionResponse",
    "TransactionListResponse",
    "HoldingResponse",
    "HoldingsListResponse",
    # Profile schemas
    "WalletConnectRequest",
    "WalletConnectResponse",
    "ProfileResponse",
    # Property schemas
    "PropertyCreate",
    "PropertyResponse",
    "PropertyListResponse",
    "OwnerPublic",
]
