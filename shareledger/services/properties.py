"""Property service - listing and creating properties."""

import uuid

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shareledger.database import utcnow
from shareledger.models import Property
from shareledger.schemas.properties import PropertyCreate


def generate_property_id() -> str:
    """Generate a unique property ID."""
    return str(uuid.uuid4())


async def get_property(session: AsyncSession, property_id: str) -> Property | None:
    """Get a single property with its owner profile.

    Args:
        session: Database session
        property_id: Property ID

    Returns:
        Property or None if not found
    """
    result = await session.execute(
        select(Property)
        .options(selectinload(Property.owner))
        .where(Property.id == property_id)
    )
    return result.scalar_one_or_none()


async def list_properties(session: AsyncSession) -> list[Property]:
    """Get all properties, newest first, with owner profiles.

    Args:
        session: Database session

    Returns:
        List of all properties
    """
    result = await session.execute(
        select(Property)
        .options(selectinload(Property.owner))
        .order_by(desc(Property.created_at))
    )
    return list(result.scalars().all())


async def create_property(
    session: AsyncSession, data: PropertyCreate, owner_id: str | None = None
) -> Property:
    """List a new property.

    All shares start in the available pool, so the supply invariant
    holds from the first moment the property exists.

    Args:
        session: Database session
        data: Property creation data
        owner_id: Profile listing the property (optional)

    Returns:
        The created property with owner loaded
    """
    now = utcnow()
    prop = Property(
        id=data.id or generate_property_id(),
        name=data.name,
        location=data.location,
        description=data.description,
        image_url=data.image_url,
        rental_yield=data.rental_yield,
        total_shares=data.total_shares,
        available_shares=data.total_shares,
        price_per_share=data.price_per_share,
        owner_id=owner_id,
        created_at=now,
        updated_at=now,
    )
    session.add(prop)
    await session.commit()

    # Load the owner relationship for the response
    await session.refresh(prop, ["owner"])
    return prop
