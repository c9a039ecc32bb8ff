import hashlib
import hmac
import json
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from .clock import Clock, as_utc, now_ms, system_clock
from .errors import SigningKeyMissing


@dataclass(frozen=True)
class SignedToken:
    payload: str
    signature: str


def canonical_payload(license_key: str, status: str, expires_at: Optional[datetime], issued_at: int) -> str:
    """
    Compact JSON with a fixed key order. Agents recompute the HMAC over these
    exact bytes, so the order and separators must never change.
    """
    expires = as_utc(expires_at)
    body: Dict[str, Any] = {
        "license_key": license_key,
        "status": status,
        "expires_at": expires.isoformat() if expires else None,
        "issued_at": issued_at,
    }
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False)


class TokenIssuer:
    def __init__(self, secret: str, clock: Clock = system_clock) -> None:
        if not secret:
            raise SigningKeyMissing("LICENSE_SIGNING_SECRET is not set.")
        self._secret = secret.encode("utf-8")
        self._clock = clock
        self._lock = threading.Lock()
        self._last_issued = 0

    def _next_issued_at(self) -> int:
        # Strictly increasing so two tokens never share a payload
        with self._lock:
            issued = max(now_ms(self._clock), self._last_issued + 1)
            self._last_issued = issued
            return issued

    def sign(self, payload: str) -> str:
        return hmac.new(self._secret, payload.encode("utf-8"), hashlib.sha256).hexdigest()

    def issue(self, license_key: str, status: str, expires_at: Optional[datetime]) -> SignedToken:
        payload = canonical_payload(license_key, status, expires_at, self._next_issued_at())
        return SignedToken(payload=payload, signature=self.sign(payload))

    def verify_signature(self, payload: str, signature: str) -> bool:
        if not isinstance(payload, str) or not isinstance(signature, str):
            return False
        return hmac.compare_digest(self.sign(payload), signature.lower())
