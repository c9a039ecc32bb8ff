"""
Transport-agnostic entry points for agents and consoles.

``build_core`` wires every component from settings. The HTTP layer keeps one
instance on ``app.state``; tests build their own isolated instances.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from ..core.clock import Clock, system_clock
from ..core.config import Settings
from ..core.errors import SigningKeyMissing
from ..core.ids import IdGenerator
from ..core.signing import TokenIssuer
from .accounts import AccountService
from .license_resolver import LicenseResolver
from .license_store import GuardedStore, LicenseStore
from .liveness import LivenessTracker
from .log_buffer import LogRingBuffer
from .mailbox import ActionMailbox
from .roster import RosterStore
from .shards import RosterEntry, ShardRegistry

logger = logging.getLogger(__name__)


class LicenseCore:
    def __init__(
        self,
        resolver: Optional[LicenseResolver],
        tracker: LivenessTracker,
        roster: RosterStore,
        logs: LogRingBuffer,
        mailbox: ActionMailbox,
        accounts: AccountService,
        store: Optional[GuardedStore] = None,
    ) -> None:
        self.resolver = resolver
        self.tracker = tracker
        self.roster = roster
        self.logs = logs
        self.mailbox = mailbox
        self.accounts = accounts
        self.store = store

    @property
    def can_issue_tokens(self) -> bool:
        return self.resolver is not None

    def verify_license(self, license_key: Optional[str], hwid: Optional[str] = None) -> Dict[str, Any]:
        if self.resolver is None:
            raise SigningKeyMissing("Token issuance is disabled: no signing secret configured.")
        return self.resolver.verify(license_key, hwid).as_dict()

    def heartbeat(
        self,
        license_key: str,
        roster: Optional[Iterable[RosterEntry]] = None,
        version: Optional[str] = None,
        uptime: Optional[int] = None,
    ) -> Dict[str, bool]:
        return self.tracker.heartbeat(license_key, roster, version, uptime)

    def get_status(self, license_key: str) -> Dict[str, Any]:
        return self.tracker.status(license_key)

    def get_players(self, license_key: str) -> List[Dict[str, Any]]:
        return [p.as_dict() for p in self.roster.players(license_key)]

    def ban_player(self, license_key: str, player: str) -> Dict[str, bool]:
        return self.roster.ban(license_key, player)

    def get_bans(self, license_key: str) -> List[Dict[str, Any]]:
        return [b.as_dict() for b in self.roster.bans(license_key)]

    def append_log(
        self,
        license_key: str,
        message: str,
        kind: Optional[str] = None,
        title: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, bool]:
        return self.logs.log(license_key, message, kind, title, meta)

    def get_logs(self, license_key: str) -> List[Dict[str, Any]]:
        return [e.as_dict() for e in self.logs.entries(license_key)]

    def enqueue_action(self, license_key: str, action_type: str, payload: Any = None) -> Dict[str, str]:
        return self.mailbox.enqueue(license_key, action_type, payload)

    def drain_actions(self, license_key: str) -> List[Dict[str, Any]]:
        return [a.as_dict() for a in self.mailbox.drain(license_key)]

    def close(self) -> None:
        if self.store is not None:
            self.store.close()


def build_core(
    settings: Settings,
    store: LicenseStore,
    clock: Clock = system_clock,
    ids: Optional[IdGenerator] = None,
) -> LicenseCore:
    ids = ids or IdGenerator()
    guarded = GuardedStore(store, timeout=settings.STORE_TIMEOUT_SECONDS)
    registry = ShardRegistry()

    try:
        issuer = TokenIssuer(settings.LICENSE_SIGNING_SECRET, clock=clock)
        resolver = LicenseResolver(guarded, issuer, clock=clock)
    except SigningKeyMissing:
        logger.critical("LICENSE_SIGNING_SECRET is not set; license verification is disabled")
        resolver = None

    return LicenseCore(
        resolver=resolver,
        tracker=LivenessTracker(registry, clock=clock, online_ttl_ms=settings.ONLINE_TTL_MS),
        roster=RosterStore(registry, clock=clock),
        logs=LogRingBuffer(registry, clock=clock, capacity=settings.LOG_CAPACITY),
        mailbox=ActionMailbox(
            registry,
            ids,
            clock=clock,
            capacity=settings.ACTION_CAPACITY,
            evict_batch=settings.ACTION_EVICT_BATCH,
        ),
        accounts=AccountService(guarded, ids, settings, clock=clock),
        store=guarded,
    )
