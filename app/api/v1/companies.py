"""
Company provisioning endpoints (super admin)
"""
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.core.deps import get_db, require_super_admin, CurrentUser
from app.schemas.company import CompanyCreate, CompanyOut
from app.services.company_service import create_company, list_companies

router = APIRouter()


@router.post("", response_model=CompanyOut, status_code=status.HTTP_201_CREATED)
async def create_company_endpoint(
    company_data: CompanyCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_super_admin),
):
    """Create a company with its first company admin"""
    return create_company(db, company_data, current_user.id)


@router.get("", response_model=List[CompanyOut])
async def list_companies_endpoint(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_super_admin),
):
    return list_companies(db)
