"""
Authentication endpoints
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.core.deps import get_db, get_current_user, CurrentUser
from app.schemas.auth import LoginRequest, TokenResponse, MeOut
from app.services.audit_service import log_audit
from app.services.auth_service import authenticate, issue_token

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    db: Session = Depends(get_db)
):
    """
    Authenticate and return a JWT token.

    Employees may use their device code; admins and employees may use username + password.
    The token carries the principal kind, so the caller type is fixed for the token's lifetime.
    """
    user = authenticate(db, login_data)
    access_token = issue_token(user)

    log_audit(
        db=db,
        actor_kind=user.kind.value,
        actor_id=user.id,
        action="AUTH_LOGIN_SUCCESS",
        entity_type="auth",
        meta={"username": user.username, "via": "device_code" if login_data.device_code else "password"}
    )
    logger.info("Login: kind=%s id=%s", user.kind.value, user.id)

    return TokenResponse(access_token=access_token, token_type="bearer", kind=user.kind)


@router.get("/me", response_model=MeOut)
async def me(current_user: CurrentUser = Depends(get_current_user)):
    """Current authenticated principal"""
    return MeOut(
        kind=current_user.kind,
        id=current_user.id,
        company_id=current_user.company_id,
        name=current_user.name,
        username=current_user.username,
    )
