import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..core.clock import Clock, as_utc, system_clock, to_datetime
from ..core.errors import UpstreamUnavailable
from ..core.signing import TokenIssuer
from .license_store import GuardedStore

logger = logging.getLogger(__name__)

ACTIVE = "ACTIVE"

MISSING_KEY = "MISSING_KEY"
NOT_FOUND = "NOT_FOUND"
EXPIRED = "EXPIRED"
HWID_MISMATCH = "HWID_MISMATCH"
UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass(frozen=True)
class VerificationDecision:
    valid: bool
    reason: Optional[str] = None
    payload: Optional[str] = None
    signature: Optional[str] = None

    @classmethod
    def reject(cls, reason: str) -> "VerificationDecision":
        return cls(valid=False, reason=reason)

    def as_dict(self) -> Dict[str, Any]:
        if self.valid:
            return {"valid": True, "payload": self.payload, "signature": self.signature}
        return {"valid": False, "reason": self.reason}


class LicenseResolver:
    """
    Applies license policy in a fixed order and signs a token on success:
    key present, record exists, status ACTIVE, not expired, device matches.

    The store read is the only call that can fail a verification; it fails
    closed. Device binding and the last_seen touch go out as one best-effort
    write that the result never waits for.
    """

    def __init__(self, store: GuardedStore, issuer: TokenIssuer, clock: Clock = system_clock) -> None:
        self.store = store
        self.issuer = issuer
        self.clock = clock

    def verify(self, license_key: Optional[str], hwid: Optional[str] = None) -> VerificationDecision:
        license_key = (license_key or "").strip()
        if not license_key:
            return VerificationDecision.reject(MISSING_KEY)
        hwid = (hwid or "").strip() or None

        try:
            return self._verify(license_key, hwid)
        except UpstreamUnavailable as e:
            logger.warning("License lookup failed for %s: %s", license_key, e)
            return VerificationDecision.reject(UPSTREAM_UNAVAILABLE)
        except Exception:
            logger.exception("Unexpected error verifying %s", license_key)
            return VerificationDecision.reject(INTERNAL_ERROR)

    def _verify(self, license_key: str, hwid: Optional[str]) -> VerificationDecision:
        record = self.store.get_license(license_key)
        if record is None:
            return VerificationDecision.reject(NOT_FOUND)

        if record.status != ACTIVE:
            return VerificationDecision.reject(record.status)

        now = to_datetime(self.clock)
        expires_at = as_utc(record.expires_at)
        if expires_at is not None and expires_at < now:
            return VerificationDecision.reject(EXPIRED)

        write_back: Dict[str, Any] = {"last_seen": now}
        if record.hwid:
            if record.hwid != hwid:
                return VerificationDecision.reject(HWID_MISMATCH)
        elif hwid:
            # Concurrent first binds are not serialized; the last write wins
            write_back["hwid"] = hwid

        # The decision never waits on this write
        self.store.submit_update(record.license_key, **write_back)

        token = self.issuer.issue(record.license_key, record.status, expires_at)
        return VerificationDecision(valid=True, payload=token.payload, signature=token.signature)
