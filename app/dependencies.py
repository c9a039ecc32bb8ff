from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from .core.config import Settings
from .core.security import decode_access_token, secret_matches
from .services.core import LicenseCore

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_core(request: Request) -> LicenseCore:
    return request.app.state.core


def admin_required(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
):
    token = credentials.credentials if credentials else None
    if not secret_matches(token, settings.ADMIN_SECRET):
        raise HTTPException(status_code=401, detail="UNAUTHORIZED")
    return True


def get_current_customer(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> dict:
    """Decode the customer JWT; returns its claims (``sub`` is the username)."""
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        payload = decode_access_token(credentials.credentials, settings.JWT_SECRET_KEY, settings.JWT_ALGORITHM)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    if not payload.get("sub") or not payload.get("license_key"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")
    return payload


def console_access(license_key: str, customer: dict = Depends(get_current_customer)) -> str:
    # Consoles may only read and steer the license their account owns
    if customer["license_key"] != license_key:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="License not owned by this account")
    return license_key
