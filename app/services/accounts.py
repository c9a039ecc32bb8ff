import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from ..core.clock import Clock, system_clock, to_datetime
from ..core.config import Settings
from ..core.errors import ValidationError
from ..core.ids import IdGenerator
from ..core.security import create_access_token, get_password_hash, verify_password
from .license_resolver import ACTIVE
from .license_store import CustomerRecord, LicenseRecord, LicenseStore

logger = logging.getLogger(__name__)


def _required(value: Any, name: str) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationError(f"{name} required")
    return text


class AccountService:
    """Admin issuance and customer self-service, all delegated to the record store."""

    def __init__(self, store: LicenseStore, ids: IdGenerator, settings: Settings, clock: Clock = system_clock) -> None:
        self.store = store
        self.ids = ids
        self.settings = settings
        self.clock = clock

    def create_license(self, days_valid: int = 0) -> LicenseRecord:
        expires_at = None
        if days_valid and days_valid > 0:
            expires_at = to_datetime(self.clock) + timedelta(days=days_valid)
        record = LicenseRecord(license_key=self.ids.license_key(), status=ACTIVE, expires_at=expires_at)
        created = self.store.insert_license(record)
        logger.info("Issued license %s (expires_at=%s)", created.license_key, created.expires_at)
        return created

    def create_customer(self, username: str, password: str, license_key: str) -> CustomerRecord:
        username = _required(username, "username")
        license_key = _required(license_key, "license_key")
        if not isinstance(password, str) or not password:
            raise ValidationError("password required")
        record = CustomerRecord(username=username, password_hash=get_password_hash(password), license_key=license_key)
        created = self.store.insert_customer(record)
        logger.info("Created customer %s for %s", username, license_key)
        return created

    def login(self, username: str, password: str) -> Optional[Dict[str, str]]:
        """Returns the customer's license key and a session token, or None on bad credentials."""
        if not isinstance(username, str) or not username or not isinstance(password, str) or not password:
            return None
        customer = self.store.get_customer(username)
        if customer is None or not verify_password(password, customer.password_hash):
            return None
        token = create_access_token(
            {"sub": customer.username, "license_key": customer.license_key},
            timedelta(minutes=self.settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            secret=self.settings.JWT_SECRET_KEY,
            algorithm=self.settings.JWT_ALGORITHM,
        )
        return {"license_key": customer.license_key, "token": token}

    def dashboard(self, username: str) -> Optional[Dict[str, Any]]:
        customer = self.store.get_customer(username)
        if customer is None:
            return None
        lic = self.store.get_license(customer.license_key)
        if lic is None:
            return None
        return {
            "license_key": lic.license_key,
            "status": lic.status,
            "expires_at": lic.expires_at.isoformat() if lic.expires_at else None,
        }

    def set_license_status(self, username: str, status: str) -> bool:
        status = _required(status, "status")
        customer = self.store.get_customer(username)
        if customer is None:
            return False
        self.store.update_license(customer.license_key, status=status)
        logger.info("Customer %s set %s to %s", username, customer.license_key, status)
        return True
