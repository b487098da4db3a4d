"""Profile service - wallet address identity resolution.

Resolution happens before a ledger operation starts and commits on its
own, so creating a profile never shares a database transaction with a
buy or sell.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shareledger.models import Profile

logger = logging.getLogger(__name__)


def normalize_wallet_address(wallet_address: str) -> str:
    """Canonical form of a wallet address (trimmed, lower-case).

    Raises:
        ValueError: If the address is empty
    """
    normalized = wallet_address.strip().lower()
    if not normalized:
        raise ValueError("Wallet address must not be empty")
    return normalized


async def get_profile(session: AsyncSession, profile_id: str) -> Profile | None:
    """Get a profile by id."""
    result = await session.execute(select(Profile).where(Profile.id == profile_id))
    return result.scalar_one_or_none()


async def get_profile_by_wallet(
    session: AsyncSession, wallet_address: str
) -> Profile | None:
    """Get a profile by (normalized) wallet address."""
    result = await session.execute(
        select(Profile).where(
            Profile.wallet_address == normalize_wallet_address(wallet_address)
        )
    )
    return result.scalar_one_or_none()


async def resolve_wallet(session: AsyncSession, wallet_address: str) -> Profile:
    """Find the profile for a wallet address, creating it on first sight.

    Args:
        session: Database session
        wallet_address: Address as sent by the client

    Returns:
        The existing or newly created profile

    Raises:
        ValueError: If the address is empty
    """
    address = normalize_wallet_address(wallet_address)

    profile = await get_profile_by_wallet(session, address)
    if profile is not None:
        return profile

    profile = Profile(id=str(uuid.uuid4()), wallet_address=address)
    session.add(profile)
    try:
        await session.commit()
    except IntegrityError:
        # Another request created the profile between our select and insert
        await session.rollback()
        return await get_profile_by_wallet(session, address)

    logger.info(
        "Profile created for wallet",
        extra={"user_id": profile.id, "wallet_address": address},
    )
    return profile
