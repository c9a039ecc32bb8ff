"""Domain errors shared by the services and mapped to HTTP in ``app.main``."""


class GhostGuardError(Exception):
    """Base class for errors raised by the license core."""


class ValidationError(GhostGuardError):
    """Missing or malformed input. Raised before any store call."""


class UpstreamUnavailable(GhostGuardError):
    """The license record store failed or timed out."""


class RecordConflict(GhostGuardError):
    """An insert collided with an existing unique key."""


class SigningKeyMissing(GhostGuardError):
    """No signing secret was configured, so tokens cannot be issued."""


def require_key(license_key) -> str:
    key = (license_key or "").strip() if isinstance(license_key, str) else ""
    if not key:
        raise ValidationError("license_key required")
    return key
