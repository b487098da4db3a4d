"""
Transaction model - historical record of ledger movements.

Single source of truth for trade history. Transactions are append-only
(never modified or deleted) and record the price per share that was in
effect when the buy or sell executed.
"""

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Enum, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shareledger.database import Base, utcnow


class TransactionKind(enum.Enum):
    """Direction of a ledger movement."""

    BUY = "BUY"  # Shares moved from the property pool to the user
    SELL = "SELL"  # Shares moved from the user back to the pool


class Transaction(Base):
    """A completed buy or sell."""

    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String, primary_key=True)

    property_id: Mapped[str] = mapped_column(
        String, ForeignKey("properties.id"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("profiles.id"), nullable=False
    )

    kind: Mapped[TransactionKind] = mapped_column(Enum(TransactionKind), nullable=False)

    # Number of shares moved
    shares: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # Copied from the property at execution time
    price_per_share: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    # Relationships
    property: Mapped["Property"] = relationship(back_populates="transactions")
    user: Mapped["Profile"] = relationship(back_populates="transactions")

    # Database constraints
    __table_args__ = (
        CheckConstraint("shares > 0", name="check_transaction_shares_positive"),
        CheckConstraint("price_per_share > 0", name="check_transaction_price_positive"),
        Index("ix_transactions_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"Transaction(id={self.id!r}, {self.kind.value} {self.shares} of "
            f"{self.property_id!r} @ {self.price_per_share}, user={self.user_id!r})"
        )


# Import at end to avoid circular imports
from shareledger.models.profile import Profile
from shareledger.models.property import Property
