"""Session tokens issued by the external auth provider.

Only verification lives here; sign-in is handled upstream. ``create_access_token``
exists for the provider integration and tests.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import jwt, JWTError

from ..config import get_settings

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60


def create_access_token(sub: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": sub, "exp": expire}
    return jwt.encode(to_encode, get_settings().secret_key, algorithm=ALGORITHM)


def decode_subject(token: str) -> Optional[str]:
    """Return the ``sub`` claim, or None for an invalid/expired token."""
    try:
        payload = jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None
    sub = payload.get("sub")
    return sub or None
