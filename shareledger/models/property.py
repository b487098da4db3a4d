"""
Property model - a tokenized real-estate asset split into shares.

total_shares is fixed at creation. available_shares is the unheld pool and
only moves through the ledger's buy/sell operations, so that

    available_shares + sum(holdings.shares) == total_shares

holds for every property at all times.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shareledger.database import Base, utcnow


class Property(Base):
    """A property whose ownership is traded as fractional shares."""

    __tablename__ = "properties"

    id: Mapped[str] = mapped_column(String, primary_key=True)

    # Display fields
    name: Mapped[str] = mapped_column(String, nullable=False)
    location: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String, nullable=True)

    # Annual rental yield in percent (e.g. 5.25)
    rental_yield: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)

    # Share supply
    total_shares: Mapped[int] = mapped_column(BigInteger, nullable=False)
    available_shares: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # Static price, copied onto every transaction at execution time
    price_per_share: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    # Lister of the property (optional, as in the wallet-only flow)
    owner_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("profiles.id"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    # Relationships
    owner: Mapped["Profile"] = relationship(back_populates="properties")
    holdings: Mapped[list["Holding"]] = relationship(back_populates="property")
    transactions: Mapped[list["Transaction"]] = relationship(back_populates="property")

    # Database constraints
    __table_args__ = (
        CheckConstraint("total_shares > 0", name="check_total_shares_positive"),
        CheckConstraint("available_shares >= 0", name="check_available_non_negative"),
        CheckConstraint(
            "available_shares <= total_shares", name="check_available_not_exceed_total"
        ),
        CheckConstraint("price_per_share > 0", name="check_price_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"Property(id={self.id!r}, name={self.name!r}, "
            f"available={self.available_shares}/{self.total_shares})"
        )


# Import at end to avoid circular imports
from shareledger.models.holding import Holding
from shareledger.models.profile import Profile
from shareledger.models.transaction import Transaction
