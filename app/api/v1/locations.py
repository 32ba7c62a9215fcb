"""
Work location management endpoints (company admin)
"""
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.core.deps import get_db, require_company_admin, CurrentUser
from app.schemas.location import LocationCreate, LocationUpdate, LocationOut, LocationQrOut
from app.services.location_service import (
    create_location,
    list_locations,
    get_location,
    update_location,
    delete_location,
    qr_payload,
)

router = APIRouter()


@router.post("", response_model=LocationOut, status_code=status.HTTP_201_CREATED)
async def create_location_endpoint(
    location_data: LocationCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    return create_location(db, current_user.company_id, location_data, current_user.id)


@router.get("", response_model=List[LocationOut])
async def list_locations_endpoint(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    return list_locations(db, current_user.company_id)


@router.get("/{location_id}", response_model=LocationOut)
async def get_location_endpoint(
    location_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    return get_location(db, current_user.company_id, location_id)


@router.get("/{location_id}/qr", response_model=LocationQrOut)
async def get_location_qr_endpoint(
    location_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    """Payload to print as the location's QR code"""
    location = get_location(db, current_user.company_id, location_id)
    return LocationQrOut(location_id=location.id, payload=qr_payload(location))


@router.patch("/{location_id}", response_model=LocationOut)
async def update_location_endpoint(
    location_id: int,
    location_data: LocationUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    return update_location(db, current_user.company_id, location_id, location_data, current_user.id)


@router.delete("/{location_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_location_endpoint(
    location_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    """
    Delete a location

    Employees assigned to it keep the reference and show the deleted-location label.
    """
    delete_location(db, current_user.company_id, location_id, current_user.id)
