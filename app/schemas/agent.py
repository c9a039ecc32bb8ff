from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

class VerifyRequest(BaseModel):
    license_key: Optional[str] = None
    hwid: Optional[str] = None

class VerifyResponse(BaseModel):
    valid: bool
    reason: Optional[str] = None
    payload: Optional[str] = None
    signature: Optional[str] = None

class RosterEntryIn(BaseModel):
    player_id: str = Field(..., min_length=1)
    name: str = ""
    ping: Optional[int] = None

class HeartbeatRequest(BaseModel):
    license_key: str
    roster: Optional[List[RosterEntryIn]] = None
    version: Optional[str] = None
    uptime: Optional[int] = Field(default=None, ge=0)

class PollActionsRequest(BaseModel):
    license_key: str

class LogRequest(BaseModel):
    license_key: str
    message: str
    kind: Optional[str] = None
    title: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None

class SuccessResponse(BaseModel):
    success: bool = True
