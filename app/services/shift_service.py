"""
Shift service - business logic for shift management
"""
from typing import List
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from app.models.shift import Shift
from app.schemas.shift import ShiftCreate, ShiftUpdate
from app.services.audit_service import log_audit


def create_shift(db: Session, company_id: int, shift_data: ShiftCreate, actor_id: int) -> Shift:
    """
    Create a new shift

    Args:
        db: Database session
        company_id: Owning company
        shift_data: Shift creation data (HH:MM already validated)
        actor_id: ID of the admin creating the shift

    Returns:
        Created Shift instance
    """
    shift = Shift(
        company_id=company_id,
        name=shift_data.name,
        start_time=shift_data.start_time,
        end_time=shift_data.end_time,
    )
    db.add(shift)
    db.commit()
    db.refresh(shift)

    log_audit(
        db=db,
        actor_kind="COMPANY_ADMIN",
        actor_id=actor_id,
        action="CREATE",
        entity_type="shifts",
        entity_id=shift.id,
        meta={"name": shift.name, "start_time": shift.start_time, "end_time": shift.end_time}
    )

    return shift


def list_shifts(db: Session, company_id: int) -> List[Shift]:
    return db.query(Shift).filter(Shift.company_id == company_id).order_by(Shift.start_time, Shift.id).all()


def get_shift(db: Session, company_id: int, shift_id: int) -> Shift:
    shift = db.query(Shift).filter(Shift.id == shift_id, Shift.company_id == company_id).first()
    if not shift:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Shift with id {shift_id} not found"
        )
    return shift


def update_shift(db: Session, company_id: int, shift_id: int, shift_data: ShiftUpdate, actor_id: int) -> Shift:
    """Update a shift. Only future records see the new times; shift_name on old records is a snapshot."""
    shift = get_shift(db, company_id, shift_id)

    changes = shift_data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(shift, field, value)

    db.commit()
    db.refresh(shift)

    log_audit(
        db=db,
        actor_kind="COMPANY_ADMIN",
        actor_id=actor_id,
        action="UPDATE",
        entity_type="shifts",
        entity_id=shift.id,
        meta={"updated_fields": changes}
    )

    return shift


def delete_shift(db: Session, company_id: int, shift_id: int, actor_id: int) -> None:
    """Delete a shift. Employees still pointing at it are simply unflagged from then on."""
    shift = get_shift(db, company_id, shift_id)
    db.delete(shift)
    db.commit()

    log_audit(
        db=db,
        actor_kind="COMPANY_ADMIN",
        actor_id=actor_id,
        action="DELETE",
        entity_type="shifts",
        entity_id=shift_id,
    )
