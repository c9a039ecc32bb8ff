from pydantic import BaseModel, Field
from typing import Optional

class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""

class LoginResponse(BaseModel):
    success: bool
    license_key: Optional[str] = None
    token: Optional[str] = None

class DashboardResponse(BaseModel):
    license_key: str
    status: str
    expires_at: Optional[str] = None

class ToggleRequest(BaseModel):
    status: str

class CreateLicenseRequest(BaseModel):
    days_valid: int = Field(default=0, ge=0)

class CreateLicenseResponse(BaseModel):
    success: bool = True
    license_key: str
    expires_at: Optional[str] = None

class CreateCustomerRequest(BaseModel):
    username: str
    password: str
    license_key: str
