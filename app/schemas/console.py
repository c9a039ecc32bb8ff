from pydantic import BaseModel
from typing import Any, Dict, Optional

class StatusResponse(BaseModel):
    online: bool
    players: int
    uptime: int
    version: Optional[str] = None

class PlayerResponse(BaseModel):
    player_id: str
    name: str
    ping: Optional[int] = None

class BanRequest(BaseModel):
    player: str

class BanResponse(BaseModel):
    player: str
    time: int

class LogEntryResponse(BaseModel):
    time: int
    kind: str
    message: str
    title: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None

class EnqueueActionRequest(BaseModel):
    type: str
    payload: Any = None

class EnqueueActionResponse(BaseModel):
    id: str

class ActionResponse(BaseModel):
    id: str
    type: str
    payload: Any = None
    created_at: int
