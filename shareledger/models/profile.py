"""
Profile model - a wallet-identified participant.

Profiles are created by the identity resolver the first time a wallet
address is seen. The ledger only ever refers to them by id.
"""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shareledger.database import Base, utcnow


class Profile(Base):
    """A participant identified by wallet address."""

    __tablename__ = "profiles"

    # Primary key: opaque user id (uuid string)
    id: Mapped[str] = mapped_column(String, primary_key=True)

    # Normalized (lower-case) wallet address, one profile per wallet
    wallet_address: Mapped[str] = mapped_column(String, unique=True, nullable=False)

    email: Mapped[str | None] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    # Relationships
    holdings: Mapped[list["Holding"]] = relationship(back_populates="user")
    transactions: Mapped[list["Transaction"]] = relationship(back_populates="user")
    properties: Mapped[list["Property"]] = relationship(back_populates="owner")

    def __repr__(self) -> str:
        return f"Profile(id={self.id!r}, wallet_address={self.wallet_address!r})"


# Import at end to avoid circular imports
from shareledger.models.holding import Holding
from shareledger.models.property import Property
from shareledger.models.transaction import Transaction
