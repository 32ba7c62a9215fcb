"""
Authentication schemas
"""
from typing import Optional
from pydantic import BaseModel, Field, model_validator

from app.core.deps import PrincipalKind


class LoginRequest(BaseModel):
    """
    Login request schema.

    Employees sign in with their 5-character device code, or with username + password.
    Admins always use username + password.
    """
    device_code: Optional[str] = Field(None, description="Employee device code (passwordless)")
    username: Optional[str] = Field(None, description="Username")
    password: Optional[str] = Field(None, description="Password")
    company_id: Optional[int] = Field(None, description="Company ID (employee username login)")

    @model_validator(mode="after")
    def _check_credentials(self):
        if self.device_code:
            return self
        if not self.username or not self.password:
            raise ValueError("Provide device_code, or username and password")
        return self


class TokenResponse(BaseModel):
    """Token response schema"""
    access_token: str
    token_type: str = "bearer"
    kind: PrincipalKind


class MeOut(BaseModel):
    """Resolved current user"""
    kind: PrincipalKind
    id: int
    company_id: Optional[int]
    name: str
    username: str
