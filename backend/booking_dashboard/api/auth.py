from fastapi import Depends, Header, Cookie
from sqlalchemy.orm import Session
from ..db.session import get_db
from ..db import models
from ..errors import UnauthorizedError
from ..services.auth_service import decode_subject

SESSION_COOKIE = "session"


def _extract_token(authorization: str | None, session_cookie: str | None) -> str | None:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(None, 1)[1]
    return session_cookie or None


def get_current_user_optional(
    db: Session = Depends(get_db),
    authorization: str | None = Header(None),
    session: str | None = Cookie(None, alias=SESSION_COOKIE),
) -> models.User | None:
    """Best-effort user retrieval from a bearer header or the session cookie."""
    token = _extract_token(authorization, session)
    if not token:
        return None
    sub = decode_subject(token)
    if not sub:
        return None
    return db.query(models.User).filter(models.User.id == sub).first()


def get_current_user_id(
    authorization: str | None = Header(None),
    session: str | None = Cookie(None, alias=SESSION_COOKIE),
) -> str:
    """Session subject without a database lookup; existence is checked by the caller."""
    token = _extract_token(authorization, session)
    sub = decode_subject(token) if token else None
    if not sub:
        raise UnauthorizedError()
    return sub


def get_current_user(user: models.User | None = Depends(get_current_user_optional)) -> models.User:
    if user is None:
        raise UnauthorizedError()
    return user
