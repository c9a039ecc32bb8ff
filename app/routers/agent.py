from typing import List
from fastapi import APIRouter, Depends
from ..dependencies import get_core
from ..schemas.agent import (
    HeartbeatRequest,
    LogRequest,
    PollActionsRequest,
    SuccessResponse,
    VerifyRequest,
    VerifyResponse,
)
from ..schemas.console import ActionResponse
from ..services.core import LicenseCore
from ..services.shards import RosterEntry

router = APIRouter(prefix="/api", tags=["agent"])


@router.post("/verify", response_model=VerifyResponse, response_model_exclude_none=True)
def verify(payload: VerifyRequest, core: LicenseCore = Depends(get_core)):
    # Rejections are normal results, never HTTP errors
    return core.verify_license(payload.license_key, payload.hwid)


@router.post("/heartbeat", response_model=SuccessResponse)
def heartbeat(payload: HeartbeatRequest, core: LicenseCore = Depends(get_core)):
    roster = None
    if payload.roster is not None:
        roster = [RosterEntry(player_id=p.player_id, name=p.name, ping=p.ping) for p in payload.roster]
    return core.heartbeat(payload.license_key, roster, payload.version, payload.uptime)


@router.post("/actions/poll", response_model=List[ActionResponse])
def poll_actions(payload: PollActionsRequest, core: LicenseCore = Depends(get_core)):
    return core.drain_actions(payload.license_key)


@router.post("/logs", response_model=SuccessResponse)
def push_log(payload: LogRequest, core: LicenseCore = Depends(get_core)):
    return core.append_log(payload.license_key, payload.message, payload.kind, payload.title, payload.meta)
