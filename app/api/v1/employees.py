"""
Employee management endpoints (company admin)
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.core.deps import get_db, require_company_admin, CurrentUser
from app.schemas.employee import (
    EmployeeCreate,
    EmployeeUpdate,
    EmployeeOut,
    EmployeeListResponse,
    FaceEnrollRequest,
    PasswordReset,
)
from app.services.employee_service import (
    create_employee,
    list_employees,
    get_employee,
    update_employee,
    reset_password,
    regenerate_device_code,
    delete_employee,
    enroll_face,
    employee_to_out,
)

router = APIRouter()


@router.post("", response_model=EmployeeOut, status_code=status.HTTP_201_CREATED)
async def create_employee_endpoint(
    employee_data: EmployeeCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    """Create an employee; the response carries the device code for first login"""
    employee = create_employee(db, current_user.company_id, employee_data, current_user.id)
    return employee_to_out(db, employee)


@router.get("", response_model=EmployeeListResponse)
async def list_employees_endpoint(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    employees = list_employees(db, current_user.company_id)
    items = [employee_to_out(db, e) for e in employees]
    return EmployeeListResponse(items=items, total=len(items))


@router.get("/{employee_id}", response_model=EmployeeOut)
async def get_employee_endpoint(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    return employee_to_out(db, get_employee(db, current_user.company_id, employee_id))


@router.patch("/{employee_id}", response_model=EmployeeOut)
async def update_employee_endpoint(
    employee_id: int,
    employee_data: EmployeeUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    employee = update_employee(db, current_user.company_id, employee_id, employee_data, current_user.id)
    return employee_to_out(db, employee)


@router.post("/{employee_id}/reset-password", response_model=EmployeeOut)
async def reset_password_endpoint(
    employee_id: int,
    password_data: PasswordReset,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    employee = reset_password(db, current_user.company_id, employee_id, password_data.new_password, current_user.id)
    return employee_to_out(db, employee)


@router.post("/{employee_id}/device-code", response_model=EmployeeOut)
async def regenerate_device_code_endpoint(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    """Issue a new device code (e.g. lost phone)"""
    employee = regenerate_device_code(db, current_user.company_id, employee_id, current_user.id)
    return employee_to_out(db, employee)


@router.post("/{employee_id}/face", response_model=EmployeeOut)
def enroll_face_endpoint(
    employee_id: int,
    body: FaceEnrollRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    """Enroll the reference face from a descriptor or an image"""
    employee = enroll_face(
        db,
        current_user.company_id,
        employee_id,
        current_user.id,
        descriptor=body.face_descriptor,
        image=body.image,
    )
    return employee_to_out(db, employee)


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employee_endpoint(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_company_admin),
):
    """
    Delete an employee

    Attendance records and requests are kept with their name snapshot.
    """
    delete_employee(db, current_user.company_id, employee_id, current_user.id)
