"""
Holding model - tracks share ownership.

Represents how many shares of each property a user holds.
Uses a composite primary key (user_id, property_id).
"""

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shareledger.database import Base, utcnow


class Holding(Base):
    """Share balance of one user in one property."""

    __tablename__ = "holdings"

    # Composite primary key: user + property
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("profiles.id"), primary_key=True
    )
    property_id: Mapped[str] = mapped_column(
        String, ForeignKey("properties.id"), primary_key=True
    )

    # Number of shares held
    # A holding that drops to 0 is kept, not deleted
    shares: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    # Relationships
    user: Mapped["Profile"] = relationship(back_populates="holdings")
    property: Mapped["Property"] = relationship(back_populates="holdings")

    # Database constraints
    __table_args__ = (
        CheckConstraint("shares >= 0", name="check_holding_shares_non_negative"),
    )

    def __repr__(self) -> str:
        return f"Holding(user={self.user_id!r}, property={self.property_id!r}, shares={self.shares})"


# Import at end to avoid circular imports
from shareledger.models.profile import Profile
from shareledger.models.property import Property
