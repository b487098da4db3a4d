"""Property API endpoints - listing is public, creation records the caller."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shareledger.auth import get_optional_profile
from shareledger.database import get_session
from shareledger.models import Profile
from shareledger.schemas.properties import (
    PropertyCreate,
    PropertyListResponse,
    PropertyResponse,
)
from shareledger.services import properties as property_service

router = APIRouter()


@router.get(
    "/properties",
    response_model=PropertyListResponse,
    summary="List all properties",
)
async def list_properties(
    session: AsyncSession = Depends(get_session),
) -> PropertyListResponse:
    """Get all listed properties, newest first."""
    properties = await property_service.list_properties(session)
    return PropertyListResponse(
        properties=[PropertyResponse.model_validate(p) for p in properties]
    )


@router.get(
    "/properties/{property_id}",
    response_model=PropertyResponse,
    summary="Get property details",
)
async def get_property(
    property_id: str,
    session: AsyncSession = Depends(get_session),
) -> PropertyResponse:
    """Get a property with its owner profile."""
    prop = await property_service.get_property(session, property_id)
    if not prop:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Property '{property_id}' not found",
        )
    return PropertyResponse.model_validate(prop)


@router.post(
    "/properties",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="List a new property",
)
async def create_property(
    data: PropertyCreate,
    profile: Profile | None = Depends(get_optional_profile),
    session: AsyncSession = Depends(get_session),
) -> PropertyResponse:
    """List a property for fractional ownership.

    - **name** / **location**: Display fields
    - **total_shares**: Number of shares, all of which start available
    - **price_per_share**: Fixed price of one share
    - **rental_yield**, **image_url**, **description**: Optional
    """
    owner_id = profile.id if profile else None
    try:
        prop = await property_service.create_property(session, data, owner_id=owner_id)
    except IntegrityError as e:
        await session.rollback()
        if data.id and await property_service.get_property(session, data.id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Property with id '{data.id}' already exists",
            )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid property data: {e.orig}",
        )
    return PropertyResponse.model_validate(prop)
