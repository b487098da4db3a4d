"""
SQLAlchemy models for the share ledger.

This module exports all models and the Base class for easy imports:
    from shareledger.models import Base, Profile, Property, Holding, Transaction
"""

from shareledger.database import Base
from shareledger.models.profile import Profile
from shareledger.models.property import Property
from shareledger.models.holding import Holding
from shareledger.models.transaction import Transaction, TransactionKind

__all__ = [
    "Base",
    "Profile",
    "Property",
    "Holding",
    "Transaction",
    "TransactionKind",
]
