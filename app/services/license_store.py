"""
Record store for licenses and customers.

The license core only reads and writes through the ``LicenseStore`` interface:
each call returns a record, ``None`` when nothing matches, or raises. The
SQLAlchemy implementation below is the one the service ships with;
``GuardedStore`` wraps any implementation with a timeout so a slow database
cannot hold a request (or the per-license locks) indefinitely.
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeout, wait
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Protocol, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from ..core.clock import as_utc
from ..core.errors import RecordConflict, UpstreamUnavailable
from ..models.customer import Customer
from ..models.license import License

logger = logging.getLogger(__name__)

T = TypeVar("T")

UPDATABLE_FIELDS = frozenset({"hwid", "last_seen", "status"})


@dataclass(frozen=True)
class LicenseRecord:
    license_key: str
    status: str
    expires_at: Optional[datetime] = None
    hwid: Optional[str] = None
    last_seen: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class CustomerRecord:
    username: str
    password_hash: str
    license_key: str
    created_at: Optional[datetime] = None


class LicenseStore(Protocol):
    def get_license(self, license_key: str) -> Optional[LicenseRecord]: ...

    def update_license(self, license_key: str, **fields: Any) -> None: ...

    def insert_license(self, record: LicenseRecord) -> LicenseRecord: ...

    def get_customer(self, username: str) -> Optional[CustomerRecord]: ...

    def insert_customer(self, record: CustomerRecord) -> CustomerRecord: ...


def _license_record(row: License) -> LicenseRecord:
    return LicenseRecord(
        license_key=row.license_key,
        status=row.status,
        expires_at=as_utc(row.expires_at),
        hwid=row.hwid,
        last_seen=as_utc(row.last_seen),
        created_at=as_utc(row.created_at),
    )


def _customer_record(row: Customer) -> CustomerRecord:
    return CustomerRecord(
        username=row.username,
        password_hash=row.password_hash,
        license_key=row.license_key,
        created_at=as_utc(row.created_at),
    )


class SqlLicenseStore:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def get_license(self, license_key: str) -> Optional[LicenseRecord]:
        with self._session_factory() as db:
            row = db.query(License).filter(License.license_key == license_key).first()
            return _license_record(row) if row else None

    def update_license(self, license_key: str, **fields: Any) -> None:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update license fields: {sorted(unknown)}")
        with self._session_factory() as db:
            db.query(License).filter(License.license_key == license_key).update(fields)
            db.commit()

    def insert_license(self, record: LicenseRecord) -> LicenseRecord:
        row = License(
            license_key=record.license_key,
            status=record.status,
            expires_at=record.expires_at,
            hwid=record.hwid,
        )
        with self._session_factory() as db:
            db.add(row)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise RecordConflict(f"License {record.license_key} already exists")
            db.refresh(row)
            return _license_record(row)

    def get_customer(self, username: str) -> Optional[CustomerRecord]:
        with self._session_factory() as db:
            row = db.query(Customer).filter(Customer.username == username).first()
            return _customer_record(row) if row else None

    def insert_customer(self, record: CustomerRecord) -> CustomerRecord:
        row = Customer(
            username=record.username,
            password_hash=record.password_hash,
            license_key=record.license_key,
        )
        with self._session_factory() as db:
            db.add(row)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise RecordConflict(f"Customer {record.username} already exists")
            db.refresh(row)
            return _customer_record(row)


class GuardedStore:
    """
    Runs every store call on a worker pool with a timeout.

    Timeouts and store exceptions surface as ``UpstreamUnavailable``;
    ``RecordConflict`` passes through untouched. A timed-out call keeps
    running on its worker, so a late write may still land. At most
    ``max_pending`` calls may be queued or running; past that, new calls are
    refused instead of piling up behind a hung store.
    """

    def __init__(self, store: LicenseStore, timeout: float = 3.0, max_workers: int = 8, max_pending: int = 64) -> None:
        self._store = store
        self._timeout = timeout
        self._max_pending = max_pending
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="license-store")
        self._lock = threading.Lock()
        self._pending: set[Future] = set()

    def _submit(self, name: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> Future:
        with self._lock:
            in_flight = sum(1 for f in self._pending if not f.done())
            if in_flight >= self._max_pending:
                raise UpstreamUnavailable(f"{name} rejected: {in_flight} store calls already pending")
            future = self._executor.submit(fn, *args, **kwargs)
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def _call(self, name: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        future = self._submit(name, fn, *args, **kwargs)
        try:
            return future.result(timeout=self._timeout)
        except FutureTimeout:
            raise UpstreamUnavailable(f"{name} timed out after {self._timeout}s")
        except RecordConflict:
            raise
        except Exception as e:
            raise UpstreamUnavailable(f"{name} failed: {e}") from e

    def get_license(self, license_key: str) -> Optional[LicenseRecord]:
        return self._call("get_license", self._store.get_license, license_key)

    def update_license(self, license_key: str, **fields: Any) -> None:
        self._call("update_license", self._store.update_license, license_key, **fields)

    def submit_update(self, license_key: str, **fields: Any) -> Optional[Future]:
        """Fire-and-forget ``update_license``; failures are logged, never raised."""
        try:
            future = self._submit("update_license", self._store.update_license, license_key, **fields)
        except UpstreamUnavailable as e:
            logger.warning("Write-back %s for %s dropped: %s", sorted(fields), license_key, e)
            return None

        def _log_failure(done: Future) -> None:
            if not done.cancelled() and done.exception() is not None:
                logger.warning("Write-back %s for %s failed: %s", sorted(fields), license_key, done.exception())

        future.add_done_callback(_log_failure)
        return future

    def insert_license(self, record: LicenseRecord) -> LicenseRecord:
        return self._call("insert_license", self._store.insert_license, record)

    def get_customer(self, username: str) -> Optional[CustomerRecord]:
        return self._call("get_customer", self._store.get_customer, username)

    def insert_customer(self, record: CustomerRecord) -> CustomerRecord:
        return self._call("insert_customer", self._store.insert_customer, record)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait for queued calls, such as write-backs, to finish. True if none remain."""
        with self._lock:
            pending = list(self._pending)
        _, not_done = wait(pending, timeout=self._timeout if timeout is None else timeout)
        return not not_done

    def close(self) -> None:
        # Give in-flight write-backs one timeout window before dropping the rest
        self.flush()
        self._executor.shutdown(wait=False, cancel_futures=True)
