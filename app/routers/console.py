from typing import List
from fastapi import APIRouter, Depends
from ..dependencies import console_access, get_core
from ..schemas.agent import SuccessResponse
from ..schemas.console import (
    BanRequest,
    BanResponse,
    EnqueueActionRequest,
    EnqueueActionResponse,
    LogEntryResponse,
    PlayerResponse,
    StatusResponse,
)
from ..services.core import LicenseCore

router = APIRouter(prefix="/console/{license_key}", tags=["console"])


@router.get("/status", response_model=StatusResponse)
def get_status(license_key: str = Depends(console_access), core: LicenseCore = Depends(get_core)):
    return core.get_status(license_key)


@router.get("/players", response_model=List[PlayerResponse])
def get_players(license_key: str = Depends(console_access), core: LicenseCore = Depends(get_core)):
    return core.get_players(license_key)


@router.post("/ban", response_model=SuccessResponse)
def ban_player(payload: BanRequest, license_key: str = Depends(console_access), core: LicenseCore = Depends(get_core)):
    return core.ban_player(license_key, payload.player)


@router.get("/bans", response_model=List[BanResponse])
def get_bans(license_key: str = Depends(console_access), core: LicenseCore = Depends(get_core)):
    return core.get_bans(license_key)


@router.get("/logs", response_model=List[LogEntryResponse], response_model_exclude_none=True)
def get_logs(license_key: str = Depends(console_access), core: LicenseCore = Depends(get_core)):
    """Most recent entries first."""
    return core.get_logs(license_key)


@router.post("/actions", response_model=EnqueueActionResponse)
def enqueue_action(
    payload: EnqueueActionRequest,
    license_key: str = Depends(console_access),
    core: LicenseCore = Depends(get_core),
):
    return core.enqueue_action(license_key, payload.type, payload.payload)
