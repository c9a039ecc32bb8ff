import logging
from typing import Any, Dict, List

from ..core.clock import Clock, now_ms, system_clock
from ..core.errors import ValidationError, require_key
from ..core.ids import IdGenerator
from .shards import Action, ShardRegistry

logger = logging.getLogger(__name__)

DEFAULT_ACTION_CAPACITY = 200
DEFAULT_EVICT_BATCH = 50


class ActionMailbox:
    """
    Console-to-agent command queue, one FIFO per license.

    ``drain`` hands every queued action to exactly one poll and forgets it:
    no acknowledgement, no retry. When a queue is full the oldest batch is
    dropped before appending, so actions nobody polls for are eventually lost.
    """

    def __init__(
        self,
        registry: ShardRegistry,
        ids: IdGenerator,
        clock: Clock = system_clock,
        capacity: int = DEFAULT_ACTION_CAPACITY,
        evict_batch: int = DEFAULT_EVICT_BATCH,
    ) -> None:
        self.registry = registry
        self.ids = ids
        self.clock = clock
        self.capacity = capacity
        self.evict_batch = evict_batch

    def enqueue(self, license_key: str, action_type: str, payload: Any = None) -> Dict[str, str]:
        license_key = require_key(license_key)
        action_type = (action_type or "").strip() if isinstance(action_type, str) else ""
        if not action_type:
            raise ValidationError("action type required")
        created_at = now_ms(self.clock)
        action = Action(id=self.ids.action_id(created_at), type=action_type, payload=payload, created_at=created_at)
        shard = self.registry.get(license_key)
        with shard.lock:
            if len(shard.actions) + 1 > self.capacity:
                dropped = shard.actions[: self.evict_batch]
                del shard.actions[: self.evict_batch]
                logger.warning("Action queue for %s full, evicted %d unpolled actions", license_key, len(dropped))
            shard.actions.append(action)
        return {"id": action.id}

    def drain(self, license_key: str) -> List[Action]:
        shard = self.registry.peek(require_key(license_key))
        if shard is None:
            return []
        with shard.lock:
            actions, shard.actions = shard.actions, []
        return actions
