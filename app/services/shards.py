"""
Per-license ephemeral state.

Every license key owns one ``LicenseShard`` guarded by its own lock, so a busy
license never blocks requests for another one. The registry lock is only held
to look up or create a shard. Nothing here survives a restart.
"""
import threading
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional


@dataclass(frozen=True)
class RosterEntry:
    player_id: str
    name: str
    ping: Optional[int] = None

    def as_dict(self) -> Dict[str, Any]:
        return {"player_id": self.player_id, "name": self.name, "ping": self.ping}


@dataclass(frozen=True)
class LiveServerState:
    roster: List[RosterEntry]
    version: Optional[str]
    uptime: int
    last_heartbeat: int


@dataclass(frozen=True)
class BanEntry:
    player: str
    time: int

    def as_dict(self) -> Dict[str, Any]:
        return {"player": self.player, "time": self.time}


@dataclass(frozen=True)
class LogEntry:
    time: int
    kind: str
    message: str
    title: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"time": self.time, "kind": self.kind, "message": self.message}
        if self.title is not None:
            data["title"] = self.title
        if self.meta is not None:
            data["meta"] = self.meta
        return data


@dataclass(frozen=True)
class Action:
    id: str
    type: str
    payload: Any
    created_at: int

    def as_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "type": self.type, "payload": self.payload, "created_at": self.created_at}


@dataclass
class LicenseShard:
    license_key: str
    lock: threading.Lock = field(default_factory=threading.Lock)
    live: Optional[LiveServerState] = None
    bans: List[BanEntry] = field(default_factory=list)
    # Created by the log buffer with its capacity as maxlen
    logs: Optional[Deque[LogEntry]] = None
    actions: List[Action] = field(default_factory=list)


class ShardRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._shards: Dict[str, LicenseShard] = {}

    def get(self, license_key: str) -> LicenseShard:
        with self._lock:
            shard = self._shards.get(license_key)
            if shard is None:
                shard = self._shards[license_key] = LicenseShard(license_key)
            return shard

    def peek(self, license_key: str) -> Optional[LicenseShard]:
        """Like ``get`` but never creates; reads of unknown keys stay side-effect free."""
        with self._lock:
            return self._shards.get(license_key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._shards)
