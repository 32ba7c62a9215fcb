"""
Shift management endpoints (company admin)
"""
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.core.deps import get_db, require_company_admin, CurrentUser
from app.schemas.shift import ShiftCreate, ShiftUpdate, ShiftOut
from app.services.shift_service import create_shift, list_shifts, get_shift, update_shift, delete_shift

router = APIRouter()


@router.post("", response_model=ShiftOut, status_code=status.HTTP_201_CREATED)
async def create_shift_endpoint(
    shift_data: ShiftCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    return create_shift(db, current_user.company_id, shift_data, current_user.id)


@router.get("", response_model=List[ShiftOut])
async def list_shifts_endpoint(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    return list_shifts(db, current_user.company_id)


@router.get("/{shift_id}", response_model=ShiftOut)
async def get_shift_endpoint(
    shift_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    return get_shift(db, current_user.company_id, shift_id)


@router.patch("/{shift_id}", response_model=ShiftOut)
async def update_shift_endpoint(
    shift_id: int,
    shift_data: ShiftUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    return update_shift(db, current_user.company_id, shift_id, shift_data, current_user.id)


@router.delete("/{shift_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shift_endpoint(
    shift_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    delete_shift(db, current_user.company_id, shift_id, current_user.id)
