import logging
from typing import Any, Dict, Iterable, Optional

from ..core.clock import Clock, now_ms, system_clock
from ..core.errors import require_key
from .shards import LiveServerState, RosterEntry, ShardRegistry

logger = logging.getLogger(__name__)

DEFAULT_ONLINE_TTL_MS = 30_000


class LivenessTracker:
    """
    Heartbeat ingestion and TTL-derived online status. There is no background
    sweep: a server is online while its last heartbeat is younger than the TTL,
    and its last report stays readable after it goes quiet.
    """

    def __init__(self, registry: ShardRegistry, clock: Clock = system_clock, online_ttl_ms: int = DEFAULT_ONLINE_TTL_MS) -> None:
        self.registry = registry
        self.clock = clock
        self.online_ttl_ms = online_ttl_ms

    def heartbeat(
        self,
        license_key: str,
        roster: Optional[Iterable[RosterEntry]] = None,
        version: Optional[str] = None,
        uptime: Optional[int] = None,
    ) -> Dict[str, bool]:
        license_key = require_key(license_key)
        shard = self.registry.get(license_key)
        state = LiveServerState(
            roster=list(roster or []),
            version=version,
            uptime=int(uptime or 0),
            last_heartbeat=now_ms(self.clock),
        )
        with shard.lock:
            if shard.live is None:
                logger.info("First heartbeat from %s (version=%s)", license_key, version)
            shard.live = state
        return {"success": True}

    def status(self, license_key: str) -> Dict[str, Any]:
        license_key = require_key(license_key)
        shard = self.registry.peek(license_key)
        live = None
        if shard is not None:
            with shard.lock:
                live = shard.live
        if live is None:
            return {"online": False, "players": 0, "uptime": 0, "version": None}
        return {
            "online": (now_ms(self.clock) - live.last_heartbeat) < self.online_ttl_ms,
            "players": len(live.roster),
            "uptime": live.uptime,
            "version": live.version,
        }
