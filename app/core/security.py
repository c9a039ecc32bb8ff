import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from passlib.context import CryptContext

from .config import settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None,
    secret: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, secret or settings.JWT_SECRET_KEY, algorithm=algorithm or settings.JWT_ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str, secret: Optional[str] = None, algorithm: Optional[str] = None) -> dict:
    """Raises ``jwt.PyJWTError`` (including ``ExpiredSignatureError``) on a bad token."""
    return jwt.decode(token, secret or settings.JWT_SECRET_KEY, algorithms=[algorithm or settings.JWT_ALGORITHM])


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def secret_matches(provided: Optional[str], expected: Optional[str]) -> bool:
    # An unset secret never matches, so admin routes stay closed by default
    if not provided or not expected:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))
