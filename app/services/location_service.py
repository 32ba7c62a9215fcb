"""
Location service - business logic for work locations (QR targets)
"""
import json
from typing import List, Optional
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from app.models.location import Location, DELETED_LOCATION_NAME
from app.schemas.location import LocationCreate, LocationUpdate
from app.services.audit_service import log_audit


def create_location(
    db: Session,
    company_id: int,
    location_data: LocationCreate,
    actor_id: int
) -> Location:
    """
    Create a new work location

    Args:
        db: Database session
        company_id: Owning company
        location_data: Location creation data
        actor_id: ID of the admin creating the location

    Returns:
        Created Location instance
    """
    location = Location(
        company_id=company_id,
        name=location_data.name,
        latitude=location_data.latitude,
        longitude=location_data.longitude,
        radius=location_data.radius,
        require_selfie=location_data.require_selfie,
    )
    db.add(location)
    db.commit()
    db.refresh(location)

    log_audit(
        db=db,
        actor_kind="COMPANY_ADMIN",
        actor_id=actor_id,
        action="CREATE",
        entity_type="locations",
        entity_id=location.id,
        meta={"name": location.name, "radius": location.radius}
    )

    return location


def list_locations(db: Session, company_id: int) -> List[Location]:
    return db.query(Location).filter(Location.company_id == company_id).order_by(Location.id).all()


def get_location(db: Session, company_id: int, location_id: int) -> Location:
    """Get a company location by ID or raise 404"""
    location = db.query(Location).filter(
        Location.id == location_id,
        Location.company_id == company_id
    ).first()
    if not location:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Location with id {location_id} not found"
        )
    return location


def update_location(
    db: Session,
    company_id: int,
    location_id: int,
    location_data: LocationUpdate,
    actor_id: int
) -> Location:
    """Update a location. Takes effect on the next scan; existing records are unaffected."""
    location = get_location(db, company_id, location_id)

    changes = location_data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(location, field, value)

    db.commit()
    db.refresh(location)

    log_audit(
        db=db,
        actor_kind="COMPANY_ADMIN",
        actor_id=actor_id,
        action="UPDATE",
        entity_type="locations",
        entity_id=location.id,
        meta={"updated_fields": changes}
    )

    return location


def delete_location(db: Session, company_id: int, location_id: int, actor_id: int) -> None:
    """
    Delete a location. Employees that reference it keep the dangling id and resolve
    to the deleted-location state; its QR code stops working.
    """
    location = get_location(db, company_id, location_id)
    name = location.name
    db.delete(location)
    db.commit()

    log_audit(
        db=db,
        actor_kind="COMPANY_ADMIN",
        actor_id=actor_id,
        action="DELETE",
        entity_type="locations",
        entity_id=location_id,
        meta={"name": name}
    )


def qr_payload(location: Location) -> str:
    """Content of the printed QR code for a location"""
    return json.dumps({"locationId": location.id})


def describe_assigned_location(db: Session, company_id: int, location_id: Optional[int]) -> Optional[str]:
    """
    Display name for an employee's assigned location: None if unassigned,
    DELETED_LOCATION_NAME if the referenced location no longer exists.
    """
    if location_id is None:
        return None
    location = db.query(Location).filter(
        Location.id == location_id,
        Location.company_id == company_id
    ).first()
    return location.name if location else DELETED_LOCATION_NAME
