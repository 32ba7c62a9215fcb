"""
Dependencies and guards for FastAPI endpoints
"""
import enum
from dataclasses import dataclass
from typing import Generator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.security import decode_token
from app.db.session import SessionLocal
from app.models.company import AdminAccount, AdminRole
from app.models.employee import Employee


security = HTTPBearer()


class PrincipalKind(str, enum.Enum):
    EMPLOYEE = "EMPLOYEE"
    COMPANY_ADMIN = "COMPANY_ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


@dataclass(frozen=True)
class CurrentUser:
    """
    The authenticated caller. ``kind`` is fixed at login (JWT ``kind`` claim); exactly one of
    ``employee`` / ``admin`` is set according to it.
    """
    kind: PrincipalKind
    id: int
    company_id: Optional[int]
    name: str
    username: str
    employee: Optional[Employee] = None
    admin: Optional[AdminAccount] = None


def get_db() -> Generator:
    """Dependency for getting database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _unauthorized(detail: str = "Invalid authentication credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_principal(db: Session, kind: PrincipalKind, principal_id: int) -> Optional[CurrentUser]:
    """Load the account for a (kind, id) pair. Returns None if it no longer exists."""
    if kind == PrincipalKind.EMPLOYEE:
        employee = db.query(Employee).filter(Employee.id == principal_id).first()
        if employee is None:
            return None
        return CurrentUser(
            kind=kind,
            id=employee.id,
            company_id=employee.company_id,
            name=employee.name,
            username=employee.username,
            employee=employee,
        )

    admin = db.query(AdminAccount).filter(AdminAccount.id == principal_id).first()
    if admin is None or admin.role != kind.value:
        return None
    return CurrentUser(
        kind=kind,
        id=admin.id,
        company_id=admin.company_id,
        name=admin.name,
        username=admin.username,
        admin=admin,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> CurrentUser:
    """
    Get current authenticated user from JWT token
    """
    try:
        payload = decode_token(credentials.credentials)
        kind = PrincipalKind(payload.get("kind"))
        principal_id = int(payload.get("sub"))
    except (ValueError, TypeError):
        raise _unauthorized()

    user = resolve_principal(db, kind, principal_id)
    if user is None:
        raise _unauthorized("User not found")
    return user


def require_employee(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Only employees can scan, see their next action and file exception requests"""
    if current_user.kind != PrincipalKind.EMPLOYEE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only employees can perform this action"
        )
    return current_user


def require_company_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Company admins manage their own company's data"""
    if current_user.kind != PrincipalKind.COMPANY_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Company admin role required."
        )
    return current_user


def require_super_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if current_user.kind != PrincipalKind.SUPER_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Super admin role required."
        )
    return current_user


def principal_kind_for_admin(admin: AdminAccount) -> PrincipalKind:
    return PrincipalKind.SUPER_ADMIN if admin.role == AdminRole.SUPER_ADMIN.value else PrincipalKind.COMPANY_ADMIN
