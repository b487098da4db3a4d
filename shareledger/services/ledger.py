"""Ledger engine - atomic buy/sell of property shares.

Every buy and sell is one database transaction made of guarded writes:

1. The property row is updated first, with the supply check expressed in
   the UPDATE's WHERE clause (``available_shares >= n`` for a buy,
   ``available_shares + n <= total_shares`` for a sell). Zero affected rows
   means the check failed against the committed state, never a stale read.
2. That first write takes the property's row lock (the database write lock
   on SQLite), so the rest of the operation is serialized per property
   until COMMIT. Buys and sells always lock property before holding.
3. The holding is credited (update, falling back to insert) or debited
   (guarded ``shares >= n``), and one Transaction row is appended.

Business rejections roll back and raise immediately. Transient store
conflicts (lock timeouts, serialization failures) roll back and are retried
a bounded number of times. Constraint violations are never retried.
"""

import asyncio
import logging
import os
import uuid
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import and_, desc, func, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shareledger import telemetry
from shareledger.database import utcnow
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
from shareledger.models import Holding, Property, Transaction, TransactionKind

logger = logging.getLogger(__name__)

# Retry budget for write conflicts
MAX_ATTEMPTS = int(os.getenv("LEDGER_MAX_ATTEMPTS", "5"))
RETRY_BASE_DELAY = float(os.getenv("LEDGER_RETRY_BASE_DELAY", "0.02"))
RETRY_MAX_DELAY = 0.5


@dataclass
class HoldingSummary:
    """A user's balance in one property, joined with display fields."""

    property_id: str
    name: str
    location: str
    image_url: str | None
    rental_yield: Decimal | None
    price_per_share: Decimal
    total_shares: int
    shares: int

    @property
    def value(self) -> Decimal:
        """Holding value at the property's listed price."""
        return self.price_per_share * self.shares


@dataclass
class LedgerState:
    """Supply accounting for one property."""

    total_shares: int
    available_shares: int
    held_shares: int

    @property
    def balanced(self) -> bool:
        """Whether available + held == total."""
        return self.available_shares + self.held_shares == self.total_shares


def generate_transaction_id() -> str:
    """Generate a unique transaction ID."""
    return str(uuid.uuid4())


def validate_shares(shares) -> int:
    """Check that a share count is a positive integer.

    Raises:
        LedgerValidationError: For bools, non-integers, zero or negatives
    """
    if isinstance(shares, bool) or not isinstance(shares, int):
        raise LedgerValidationError(f"Share count must be an integer, got {shares!r}")
    if shares <= 0:
        raise LedgerValidationError(f"Share count must be positive, got {shares}")
    return shares


# ============================================================================
# Mutating operations
# ============================================================================


async def buy_shares(
    session: AsyncSession,
    property_id: str,
    user_id: str,
    shares: int,
    max_attempts: int | None = None,
) -> Transaction:
    """Move shares from a property's available pool to a user's holding.

    Args:
        session: Database session (committed or rolled back by this call)
        property_id: Property to buy into
        user_id: Already-resolved buyer id
        shares: Number of shares, must be positive
        max_attempts: Override for the conflict retry budget

    Returns:
        The committed BUY transaction

    Raises:
        LedgerValidationError: shares is not a positive integer
        PropertyNotFound: property_id does not exist
        InsufficientSupply: fewer than `shares` shares are available
        ConflictRetryExhausted: concurrent writers kept conflicting
        PersistenceFailure: the store failed
    """
    shares = validate_shares(shares)
    return await _run_atomically(
        session, TransactionKind.BUY, _buy_once, property_id, user_id, shares, max_attempts
    )


async def sell_shares(
    session: AsyncSession,
    property_id: str,
    user_id: str,
    shares: int,
    max_attempts: int | None = None,
) -> Transaction:
    """Move shares from a user's holding back to the property's pool.

    Args:
        session: Database session (committed or rolled back by this call)
        property_id: Property to sell out of
        user_id: Already-resolved seller id
        shares: Number of shares, must be positive
        max_attempts: Override for the conflict retry budget

    Returns:
        The committed SELL transaction

    Raises:
        LedgerValidationError: shares is not a positive integer
        PropertyNotFound: property_id does not exist
        InsufficientHolding: the user holds fewer than `shares` shares
        InvariantViolation: the pool would exceed total_shares
        ConflictRetryExhausted: concurrent writers kept conflicting
        PersistenceFailure: the store failed
    """
    shares = validate_shares(shares)
    return await _run_atomically(
        session, TransactionKind.SELL, _sell_once, property_id, user_id, shares, max_attempts
    )


async def _run_atomically(
    session: AsyncSession,
    kind: TransactionKind,
    operation,
    property_id: str,
    user_id: str,
    shares: int,
    max_attempts: int | None,
) -> Transaction:
    """Run one buy/sell attempt per database transaction until it commits."""
    max_attempts = max_attempts or MAX_ATTEMPTS
    attempt = 0

    while True:
        attempt += 1
        try:
            transaction = await operation(session, property_id, user_id, shares)
            await session.commit()
        except LedgerError as e:
            await session.rollback()
            telemetry.record_rejection(kind.value, e.code)
            logger.info(
                "Ledger operation rejected",
                extra={
                    "kind": kind.value,
                    "reason": e.code,
                    "property_id": property_id,
                    "user_id": user_id,
                    "shares": shares,
                },
            )
            raise
        except OperationalError as e:
            await session.rollback()
            if e.connection_invalidated:
                logger.error("Ledger store connection lost", exc_info=True)
                raise PersistenceFailure(f"Database connection lost: {e.orig}") from e
            if attempt >= max_attempts:
                telemetry.record_rejection(kind.value, ConflictRetryExhausted.code)
                logger.warning(
                    "Ledger conflict retries exhausted",
                    extra={"kind": kind.value, "property_id": property_id, "attempts": attempt},
                )
                raise ConflictRetryExhausted(attempt) from e

            telemetry.record_conflict_retry(kind.value)
            logger.warning(
                "Ledger write conflict, retrying",
                extra={
                    "kind": kind.value,
                    "property_id": property_id,
                    "attempt": attempt,
                    "error": str(e.orig),
                },
            )
            await asyncio.sleep(min(RETRY_MAX_DELAY, RETRY_BASE_DELAY * (2 ** (attempt - 1))))
            continue
        except IntegrityError as e:
            await session.rollback()
            telemetry.record_rejection(kind.value, PersistenceFailure.code)
            logger.error("Ledger write violated a database constraint", exc_info=True)
            raise PersistenceFailure(
                f"Database constraint violated: {e.orig}", retryable=False
            ) from e
        except DBAPIError as e:
            await session.rollback()
            logger.error("Ledger transaction aborted by the store", exc_info=True)
            raise PersistenceFailure(f"Database error: {e.orig}") from e

        # Bring any copies already in the identity map up to date
        await session.get(Property, property_id, populate_existing=True)
        await session.get(Holding, (user_id, property_id), populate_existing=True)

        telemetry.record_trade(kind.value, property_id, shares, transaction.price_per_share)
        logger.info(
            "Ledger transaction committed",
            extra={
                "transaction_id": transaction.id,
                "kind": kind.value,
                "property_id": property_id,
                "user_id": user_id,
                "shares": shares,
                "price_per_share": float(transaction.price_per_share),
                "attempts": attempt,
            },
        )
        return transaction


async def _buy_once(
    session: AsyncSession, property_id: str, user_id: str, shares: int
) -> Transaction:
    """One buy attempt inside the session's current transaction."""
    prop = await _load_property(session, property_id)

    # Check-and-decrement in a single statement
    result = await session.execute(
        update(Property)
        .where(and_(Property.id == property_id, Property.available_shares >= shares))
        .values(
            available_shares=Property.available_shares - shares,
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        available = await _available_shares(session, property_id)
        raise InsufficientSupply(property_id, shares, available)

    # Credit the holding, creating it on the first buy
    if not await _credit_holding(session, user_id, property_id, shares):
        try:
            async with session.begin_nested():
                session.add(Holding(user_id=user_id, property_id=property_id, shares=shares))
        except IntegrityError:
            # Inserted by a concurrent first buy since the update above
            if not await _credit_holding(session, user_id, property_id, shares):
                raise

    return await _append_transaction(session, prop, user_id, TransactionKind.BUY, shares)


async def _sell_once(
    session: AsyncSession, property_id: str, user_id: str, shares: int
) -> Transaction:
    """One sell attempt inside the session's current transaction."""
    prop = await _load_property(session, property_id)

    # Return shares to the pool, never above total_shares
    result = await session.execute(
        update(Property)
        .where(
            and_(
                Property.id == property_id,
                Property.available_shares + shares <= Property.total_shares,
            )
        )
        .values(
            available_shares=Property.available_shares + shares,
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        held = await _held_shares(session, user_id, property_id)
        if held < shares:
            raise InsufficientHolding(property_id, shares, held)
        raise InvariantViolation(
            f"Selling {shares} shares would raise available supply of "
            f"'{property_id}' above its total"
        )

    # Debit the holding only if it covers the sale
    result = await session.execute(
        update(Holding)
        .where(
            and_(
                Holding.user_id == user_id,
                Holding.property_id == property_id,
                Holding.shares >= shares,
            )
        )
        .values(shares=Holding.shares - shares, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        held = await _held_shares(session, user_id, property_id)
        raise InsufficientHolding(property_id, shares, held)

    return await _append_transaction(session, prop, user_id, TransactionKind.SELL, shares)


async def _load_property(session: AsyncSession, property_id: str) -> Property:
    """Fetch a property fresh from the database or raise PropertyNotFound."""
    prop = await session.get(Property, property_id, populate_existing=True)
    if prop is None:
        raise PropertyNotFound(property_id)
    return prop


async def _credit_holding(
    session: AsyncSession, user_id: str, property_id: str, shares: int
) -> bool:
    """Add shares to an existing holding. Returns False if there is none."""
    result = await session.execute(
        update(Holding)
        .where(and_(Holding.user_id == user_id, Holding.property_id == property_id))
        .values(shares=Holding.shares + shares, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0


async def _available_shares(session: AsyncSession, property_id: str) -> int:
    result = await session.execute(
        select(Property.available_shares).where(Property.id == property_id)
    )
    return int(result.scalar_one())


async def _held_shares(session: AsyncSession, user_id: str, property_id: str) -> int:
    result = await session.execute(
        select(Holding.shares).where(
            and_(Holding.user_id == user_id, Holding.property_id == property_id)
        )
    )
    held = result.scalar_one_or_none()
    return int(held) if held is not None else 0


async def _append_transaction(
    session: AsyncSession,
    prop: Property,
    user_id: str,
    kind: TransactionKind,
    shares: int,
) -> Transaction:
    """Record the movement at the property's current price."""
    transaction = Transaction(
        id=generate_transaction_id(),
        property_id=prop.id,
        user_id=user_id,
        kind=kind,
        shares=shares,
        price_per_share=prop.price_per_share,
        created_at=utcnow(),
    )
    session.add(transaction)
    await session.flush()
    return transaction


# ============================================================================
# Read operations
# ============================================================================


async def get_holding(
    session: AsyncSession, user_id: str, property_id: str
) -> Holding | None:
    """Get a user's holding in one property.

    Args:
        session: Database session
        user_id: Holder
        property_id: Property

    Returns:
        Holding or None if the user never bought into the property
    """
    result = await session.execute(
        select(Holding).where(
            and_(Holding.user_id == user_id, Holding.property_id == property_id)
        )
    )
    return result.scalar_one_or_none()


async def get_holdings_for_user(
    session: AsyncSession, user_id: str, include_empty: bool = False
) -> list[HoldingSummary]:
    """Get a user's holdings joined with property display fields.

    Args:
        session: Database session
        user_id: Holder
        include_empty: Also list holdings that were sold down to zero

    Returns:
        Holdings ordered by property name
    """
    query = (
        select(Holding, Property)
        .join(Property, Holding.property_id == Property.id)
        .where(Holding.user_id == user_id)
    )
    if not include_empty:
        query = query.where(Holding.shares > 0)

    query = query.order_by(Property.name, Property.id)
    result = await session.execute(query)

    return [
        HoldingSummary(
            property_id=prop.id,
            name=prop.name,
            location=prop.location,
            image_url=prop.image_url,
            rental_yield=prop.rental_yield,
            price_per_share=prop.price_per_share,
            total_shares=prop.total_shares,
            shares=holding.shares,
        )
        for holding, prop in result.all()
    ]


async def get_transactions_for_user(
    session: AsyncSession, user_id: str, limit: int | None = None
) -> list[Transaction]:
    """Get a user's transactions, most recent first.

    Args:
        session: Database session
        user_id: User whose history to read
        limit: Maximum number of transactions to return

    Returns:
        Transactions with their property loaded
    """
    query = (
        select(Transaction)
        .options(selectinload(Transaction.property))
        .where(Transaction.user_id == user_id)
        .order_by(desc(Transaction.created_at))
    )
    if limit is not None:
        query = query.limit(limit)

    result = await session.execute(query)
    return list(result.scalars().all())


async def get_property_ledger_state(
    session: AsyncSession, property_id: str
) -> LedgerState | None:
    """Get supply accounting for a property.

    Args:
        session: Database session
        property_id: Property to inspect

    Returns:
        LedgerState or None if the property does not exist
    """
    result = await session.execute(
        select(Property.total_shares, Property.available_shares).where(
            Property.id == property_id
        )
    )
    row = result.one_or_none()
    if row is None:
        return None

    held = await session.execute(
        select(func.coalesce(func.sum(Holding.shares), 0)).where(
            Holding.property_id == property_id
        )
    )
    return LedgerState(
        total_shares=int(row.total_shares),
        available_shares=int(row.available_shares),
        held_shares=int(held.scalar_one()),
    )
