"""
Employee service - business logic for employee management
"""
import logging
from typing import List, Optional, Sequence
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from app.models.employee import Employee
from app.models.location import Location
from app.models.shift import Shift
from app.schemas.employee import EmployeeCreate, EmployeeUpdate, EmployeeOut
from app.core.security import hash_password, generate_device_code
from app.services.attendance_service import forget_employee_lock
from app.services.audit_service import log_audit
from app.services.face_service import extract_descriptor, serialize_descriptor, validate_descriptor
from app.services.location_service import describe_assigned_location

logger = logging.getLogger(__name__)

_DEVICE_CODE_ATTEMPTS = 20


def _unique_device_code(db: Session) -> str:
    for _ in range(_DEVICE_CODE_ATTEMPTS):
        code = generate_device_code()
        if not db.query(Employee.id).filter(Employee.device_code == code).first():
            return code
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Could not allocate a unique device code"
    )


def _check_assignment(db: Session, company_id: int, shift_id: Optional[int], location_id: Optional[int]) -> None:
    """Shift/location being assigned must exist in the company."""
    if shift_id is not None:
        if not db.query(Shift.id).filter(Shift.id == shift_id, Shift.company_id == company_id).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Shift with id {shift_id} not found"
            )
    if location_id is not None:
        if not db.query(Location.id).filter(Location.id == location_id, Location.company_id == company_id).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Location with id {location_id} not found"
            )


def employee_to_out(db: Session, employee: Employee) -> EmployeeOut:
    """Build EmployeeOut, resolving the assigned location name (deleted locations included)."""
    out = EmployeeOut.model_validate(employee)
    out.location_name = describe_assigned_location(db, employee.company_id, employee.location_id)
    out.has_face = bool(employee.face_descriptor)
    return out


def create_employee(
    db: Session,
    company_id: int,
    employee_data: EmployeeCreate,
    actor_id: int
) -> Employee:
    """
    Create a new employee with a fresh device code

    Args:
        db: Database session
        company_id: Company the employee belongs to
        employee_data: Employee creation data
        actor_id: ID of the admin creating the employee

    Returns:
        Created Employee instance

    Raises:
        HTTPException: If the username is taken or an assignment is invalid
    """
    existing = db.query(Employee).filter(
        Employee.company_id == company_id,
        Employee.username == employee_data.username
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Employee with username '{employee_data.username}' already exists"
        )

    _check_assignment(db, company_id, employee_data.shift_id, employee_data.location_id)

    employee = Employee(
        company_id=company_id,
        username=employee_data.username,
        name=employee_data.name,
        password_hash=hash_password(employee_data.password) if employee_data.password else None,
        device_code=_unique_device_code(db),
        shift_id=employee_data.shift_id,
        location_id=employee_data.location_id,
    )
    db.add(employee)
    db.commit()
    db.refresh(employee)

    log_audit(
        db=db,
        actor_kind="COMPANY_ADMIN",
        actor_id=actor_id,
        action="CREATE",
        entity_type="employees",
        entity_id=employee.id,
        meta={"username": employee.username, "name": employee.name}
    )

    return employee


def list_employees(db: Session, company_id: int) -> List[Employee]:
    return db.query(Employee).filter(Employee.company_id == company_id).order_by(Employee.id).all()


def get_employee(db: Session, company_id: int, employee_id: int) -> Employee:
    """Get a company employee by ID or raise 404"""
    employee = db.query(Employee).filter(
        Employee.id == employee_id,
        Employee.company_id == company_id
    ).first()
    if not employee:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Employee with id {employee_id} not found"
        )
    return employee


def update_employee(
    db: Session,
    company_id: int,
    employee_id: int,
    employee_data: EmployeeUpdate,
    actor_id: int
) -> Employee:
    """
    Update an employee. Fields explicitly sent as null clear the shift/location assignment.
    Existing attendance records keep their name snapshot.
    """
    employee = get_employee(db, company_id, employee_id)
    changes = employee_data.model_dump(exclude_unset=True)

    if changes.get("name") is None:
        changes.pop("name", None)
    _check_assignment(db, company_id, changes.get("shift_id"), changes.get("location_id"))

    for field, value in changes.items():
        setattr(employee, field, value)

    db.commit()
    db.refresh(employee)

    log_audit(
        db=db,
        actor_kind="COMPANY_ADMIN",
        actor_id=actor_id,
        action="UPDATE",
        entity_type="employees",
        entity_id=employee.id,
        meta={"updated_fields": changes}
    )

    return employee


def reset_password(db: Session, company_id: int, employee_id: int, new_password: str, actor_id: int) -> Employee:
    employee = get_employee(db, company_id, employee_id)
    employee.password_hash = hash_password(new_password)
    db.commit()
    db.refresh(employee)

    log_audit(
        db=db,
        actor_kind="COMPANY_ADMIN",
        actor_id=actor_id,
        action="RESET_PASSWORD",
        entity_type="employees",
        entity_id=employee.id,
    )
    return employee


def regenerate_device_code(db: Session, company_id: int, employee_id: int, actor_id: int) -> Employee:
    """Issue a new device code; the old one stops working immediately."""
    employee = get_employee(db, company_id, employee_id)
    employee.device_code = _unique_device_code(db)
    db.commit()
    db.refresh(employee)

    log_audit(
        db=db,
        actor_kind="COMPANY_ADMIN",
        actor_id=actor_id,
        action="REGENERATE_DEVICE_CODE",
        entity_type="employees",
        entity_id=employee.id,
    )
    return employee


def delete_employee(db: Session, company_id: int, employee_id: int, actor_id: int) -> None:
    """
    Delete an employee. Their attendance records and requests are kept (orphaned) and
    still show the name snapshot taken when they were written.
    """
    employee = get_employee(db, company_id, employee_id)
    username = employee.username
    db.delete(employee)
    db.commit()
    forget_employee_lock(employee_id)

    log_audit(
        db=db,
        actor_kind="COMPANY_ADMIN",
        actor_id=actor_id,
        action="DELETE",
        entity_type="employees",
        entity_id=employee_id,
        meta={"username": username}
    )


def enroll_face(
    db: Session,
    company_id: int,
    employee_id: int,
    actor_id: int,
    descriptor: Optional[Sequence[float]] = None,
    image: Optional[str] = None,
) -> Employee:
    """
    Store the employee's reference face descriptor.

    Args:
        descriptor: Descriptor computed on the device (preferred)
        image: Base64 image, run through the server face model when no descriptor is given

    Raises:
        HTTPException: 400 if neither is given or the descriptor has the wrong shape
        NoFaceDetected / FaceModelUnavailable: From server-side extraction
    """
    employee = get_employee(db, company_id, employee_id)

    if descriptor is None and image:
        descriptor = extract_descriptor(image)
    if descriptor is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide face_descriptor or image"
        )

    try:
        values = validate_descriptor(descriptor)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    employee.face_descriptor = serialize_descriptor(values)
    db.commit()
    db.refresh(employee)

    log_audit(
        db=db,
        actor_kind="COMPANY_ADMIN",
        actor_id=actor_id,
        action="ENROLL_FACE",
        entity_type="employees",
        entity_id=employee.id,
    )
    logger.info("Face enrolled for employee %s", employee.id)
    return employee
