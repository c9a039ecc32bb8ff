from fastapi import APIRouter, Depends
from ..dependencies import admin_required, get_core
from ..schemas.accounts import CreateCustomerRequest, CreateLicenseRequest, CreateLicenseResponse
from ..schemas.agent import SuccessResponse
from ..services.core import LicenseCore

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(admin_required)])


@router.post("/create-license", response_model=CreateLicenseResponse)
def create_license(payload: CreateLicenseRequest | None = None, core: LicenseCore = Depends(get_core)):
    days_valid = payload.days_valid if payload else 0
    record = core.accounts.create_license(days_valid)
    return CreateLicenseResponse(
        license_key=record.license_key,
        expires_at=record.expires_at.isoformat() if record.expires_at else None,
    )


@router.post("/create-customer", response_model=SuccessResponse)
def create_customer(payload: CreateCustomerRequest, core: LicenseCore = Depends(get_core)):
    core.accounts.create_customer(payload.username, payload.password, payload.license_key)
    return SuccessResponse()
