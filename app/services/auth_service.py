"""
Authentication service - credential checks and super admin bootstrap
"""
import logging
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from app.core.config import settings
from app.core.deps import CurrentUser, PrincipalKind, principal_kind_for_admin, resolve_principal
from app.core.security import hash_password, verify_password, create_access_token
from app.models.company import AdminAccount, AdminRole
from app.models.employee import Employee
from app.schemas.auth import LoginRequest

logger = logging.getLogger(__name__)


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid username or password"
    )


def authenticate(db: Session, login_data: LoginRequest) -> CurrentUser:
    """
    Resolve login credentials to a principal.

    Device code -> employee (passwordless). Username + password -> admin account first,
    then employee (scoped to company_id when given).

    Raises:
        HTTPException: 401 on bad credentials
    """
    if login_data.device_code:
        code = login_data.device_code.strip().upper()
        employee = db.query(Employee).filter(Employee.device_code == code).first()
        if not employee:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Mã thiết bị không hợp lệ."
            )
        return resolve_principal(db, PrincipalKind.EMPLOYEE, employee.id)

    admin = db.query(AdminAccount).filter(AdminAccount.username == login_data.username).first()
    if admin:
        if not verify_password(login_data.password, admin.password_hash):
            raise _invalid_credentials()
        return resolve_principal(db, principal_kind_for_admin(admin), admin.id)

    query = db.query(Employee).filter(Employee.username == login_data.username)
    if login_data.company_id is not None:
        query = query.filter(Employee.company_id == login_data.company_id)
    candidates = query.all()
    for employee in candidates:
        if verify_password(login_data.password, employee.password_hash):
            return resolve_principal(db, PrincipalKind.EMPLOYEE, employee.id)
    raise _invalid_credentials()


def issue_token(user: CurrentUser) -> str:
    # JWT 'sub' claim must be a string
    return create_access_token(data={
        "sub": str(user.id),
        "kind": user.kind.value,
        "company_id": user.company_id,
    })


def ensure_super_admin(db: Session) -> None:
    """Create the initial super admin from settings if no super admin exists yet."""
    exists = db.query(AdminAccount.id).filter(AdminAccount.role == AdminRole.SUPER_ADMIN.value).first()
    if exists:
        return

    admin = AdminAccount(
        company_id=None,
        username=settings.INITIAL_SUPER_ADMIN_USERNAME,
        password_hash=hash_password(settings.INITIAL_SUPER_ADMIN_PASSWORD),
        name="Super Admin",
        role=AdminRole.SUPER_ADMIN.value,
    )
    db.add(admin)
    db.commit()
    logger.info("Initial super admin '%s' created", admin.username)
