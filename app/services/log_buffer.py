from collections import deque
from typing import Any, Dict, List, Optional

from ..core.clock import Clock, now_ms, system_clock
from ..core.errors import ValidationError, require_key
from .shards import LogEntry, ShardRegistry

DEFAULT_LOG_CAPACITY = 300


class LogRingBuffer:
    """Newest-first diagnostic log per license; the oldest entries fall off silently."""

    def __init__(self, registry: ShardRegistry, clock: Clock = system_clock, capacity: int = DEFAULT_LOG_CAPACITY) -> None:
        self.registry = registry
        self.clock = clock
        self.capacity = capacity

    def log(
        self,
        license_key: str,
        message: str,
        kind: Optional[str] = None,
        title: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, bool]:
        license_key = require_key(license_key)
        if not isinstance(message, str):
            raise ValidationError("message must be a string")
        entry = LogEntry(time=now_ms(self.clock), kind=kind or "info", message=message, title=title, meta=meta)
        shard = self.registry.get(license_key)
        with shard.lock:
            if shard.logs is None:
                shard.logs = deque(maxlen=self.capacity)
            shard.logs.appendleft(entry)
        return {"success": True}

    def entries(self, license_key: str) -> List[LogEntry]:
        shard = self.registry.peek(require_key(license_key))
        if shard is None:
            return []
        with shard.lock:
            return list(shard.logs or ())
