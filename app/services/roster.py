import logging
from typing import Dict, List

from ..core.clock import Clock, now_ms, system_clock
from ..core.errors import ValidationError, require_key
from .shards import BanEntry, RosterEntry, ShardRegistry

logger = logging.getLogger(__name__)


class RosterStore:
    """Roster snapshots come from heartbeats; bans are an append-only event log."""

    def __init__(self, registry: ShardRegistry, clock: Clock = system_clock) -> None:
        self.registry = registry
        self.clock = clock

    def players(self, license_key: str) -> List[RosterEntry]:
        shard = self.registry.peek(require_key(license_key))
        if shard is None:
            return []
        with shard.lock:
            return list(shard.live.roster) if shard.live else []

    def ban(self, license_key: str, player: str) -> Dict[str, bool]:
        license_key = require_key(license_key)
        player = (player or "").strip() if isinstance(player, str) else ""
        if not player:
            raise ValidationError("player required")
        shard = self.registry.get(license_key)
        # Repeat bans are kept as separate events; the list is never capped
        with shard.lock:
            shard.bans.append(BanEntry(player=player, time=now_ms(self.clock)))
        logger.info("Ban recorded for %s on %s", player, license_key)
        return {"success": True}

    def bans(self, license_key: str) -> List[BanEntry]:
        shard = self.registry.peek(require_key(license_key))
        if shard is None:
            return []
        with shard.lock:
            return list(shard.bans)
