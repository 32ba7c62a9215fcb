"""
Company service - tenant provisioning by the super admin
"""
from typing import List
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from app.models.company import Company, AdminAccount, AdminRole
from app.schemas.company import CompanyCreate
from app.core.security import hash_password
from app.services.audit_service import log_audit


def create_company(db: Session, company_data: CompanyCreate, actor_id: int) -> Company:
    """
    Create a company and its first company admin in one transaction

    Raises:
        HTTPException: If the admin username is already taken
    """
    existing = db.query(AdminAccount).filter(AdminAccount.username == company_data.admin_username).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Admin with username '{company_data.admin_username}' already exists"
        )

    company = Company(name=company_data.name)
    db.add(company)
    db.flush()

    admin = AdminAccount(
        company_id=company.id,
        username=company_data.admin_username,
        password_hash=hash_password(company_data.admin_password),
        name=company_data.admin_name or company_data.admin_username,
        role=AdminRole.COMPANY_ADMIN.value,
    )
    db.add(admin)
    db.commit()
    db.refresh(company)

    log_audit(
        db=db,
        actor_kind="SUPER_ADMIN",
        actor_id=actor_id,
        action="CREATE",
        entity_type="companies",
        entity_id=company.id,
        meta={"name": company.name, "admin_username": admin.username}
    )

    return company


def list_companies(db: Session) -> List[Company]:
    return db.query(Company).order_by(Company.id).all()
