from fastapi import APIRouter, Depends, HTTPException
from ..dependencies import get_core, get_current_customer
from ..schemas.accounts import DashboardResponse, LoginRequest, LoginResponse, ToggleRequest
from ..schemas.agent import SuccessResponse
from ..services.core import LicenseCore

router = APIRouter(tags=["customer"])


@router.post("/api/login", response_model=LoginResponse, response_model_exclude_none=True)
def login(payload: LoginRequest, core: LicenseCore = Depends(get_core)):
    session = core.accounts.login(payload.username, payload.password)
    if session is None:
        return LoginResponse(success=False)
    return LoginResponse(success=True, **session)


@router.get("/customer/dashboard", response_model=DashboardResponse)
def dashboard(customer: dict = Depends(get_current_customer), core: LicenseCore = Depends(get_core)):
    data = core.accounts.dashboard(customer["sub"])
    if data is None:
        raise HTTPException(status_code=404, detail="License not found")
    return data


@router.post("/customer/toggle", response_model=SuccessResponse)
def toggle(payload: ToggleRequest, customer: dict = Depends(get_current_customer), core: LicenseCore = Depends(get_core)):
    if not core.accounts.set_license_status(customer["sub"], payload.status):
        raise HTTPException(status_code=401, detail="Customer not found")
    return SuccessResponse()
