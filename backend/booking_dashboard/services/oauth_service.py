"""Nylas hosted-auth flow for connecting a user's calendar (a "grant").

PKCE (S256) is used; the code verifier stays server-side in the state store,
keyed by ``state`` together with the id of the user who started the flow.
"""
import base64
import hashlib
import logging
import secrets
import time
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from urllib.parse import urlencode

import requests
from prometheus_client import Counter, Histogram
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..db import models
from ..errors import BaseAppException, NotFoundError, ConflictError
from .state_store import StateStore, get_state_store

logger = logging.getLogger(__name__)

OAUTH_START_COUNT = Counter(
    "booking_dashboard_oauth_start_total", "OAuth start requests", ["provider"]
)
OAUTH_EXCHANGE_COUNT = Counter(
    "booking_dashboard_oauth_exchange_total", "OAuth code exchange attempts", ["provider", "outcome"]
)
OAUTH_EXCHANGE_LATENCY = Histogram(
    "booking_dashboard_oauth_exchange_duration_seconds", "OAuth code exchange latency", ["provider"]
)


class OAuthError(BaseAppException):
    def __init__(self, code: str, message: str):
        super().__init__(code, message, http_status=400)


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def make_pkce_pair() -> tuple[str, str]:
    verifier = _b64url(secrets.token_bytes(32))
    challenge = _b64url(hashlib.sha256(verifier.encode("utf-8")).digest())
    return verifier, challenge


class OAuthService:
    PROVIDER = "nylas"

    def __init__(self, settings: Settings | None = None, state_store: StateStore | None = None,
                 session: requests.Session | None = None,
                 time_provider=time.time):
        self.settings = settings or get_settings()
        self.state_store = state_store or get_state_store()
        self._session = session or requests.Session()
        self._now = time_provider

    def _require_config(self) -> None:
        if not self.settings.nylas_configured:
            raise OAuthError("OAUTH_CONFIG_MISSING", "Nylas client credentials not configured")

    def start_auth(self, redirect_uri: str, user_id: str, provider: Optional[str] = None,
                   login_hint: Optional[str] = None) -> Dict[str, str]:
        """Return the hosted-auth URL and the state to echo back on callback."""
        self._require_config()
        state = _b64url(secrets.token_bytes(18))
        code_verifier, code_challenge = make_pkce_pair()

        params = {
            "client_id": self.settings.nylas_client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "access_type": "online",
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
        }
        if provider:
            params["provider"] = provider
        if login_hint:
            params["login_hint"] = login_hint
        authorization_url = f"{self.settings.nylas_api_uri}/v3/connect/auth?{urlencode(params)}"

        self.state_store.put(
            state,
            {"code_verifier": code_verifier, "user_id": user_id, "redirect_uri": redirect_uri},
            self._now(),
        )
        OAUTH_START_COUNT.labels(provider=self.PROVIDER).inc()
        return {"authorization_url": authorization_url, "state": state}

    def exchange_code(self, db: Session, user_id: str, code: str, redirect_uri: str,
                      state: str) -> models.User:
        """Exchange the callback code for a grant and store it on the user."""
        self._require_config()
        pending = self.state_store.pop(state) if state else None
        if not pending or pending.get("user_id") != user_id:
            raise OAuthError("OAUTH_STATE_INVALID", "State not found or expired")
        if pending.get("redirect_uri") != redirect_uri:
            raise OAuthError("OAUTH_REDIRECT_MISMATCH", "redirect_uri does not match the auth request")

        token = self._fetch_token(code, redirect_uri, pending["code_verifier"])
        grant_id = token.get("grant_id")
        if not grant_id:
            raise OAuthError("OAUTH_CODE_INVALID", "Token response carried no grant")

        user = db.query(models.User).filter(models.User.id == user_id).first()
        if not user:
            raise NotFoundError("USER_NOT_FOUND", "User not found")
        holder = (
            db.query(models.User)
            .filter(models.User.grant_id == grant_id, models.User.id != user_id)
            .first()
        )
        if holder:
            raise ConflictError("GRANT_ALREADY_LINKED", "This calendar is already connected to another account")
        user.grant_id = grant_id
        user.grant_email = token.get("email") or user.grant_email
        user.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(user)
        logger.info("calendar grant connected", extra={"user_id": user_id})
        return user

    def _fetch_token(self, code: str, redirect_uri: str, code_verifier: str) -> Dict[str, Any]:
        body = {
            "client_id": self.settings.nylas_client_id,
            "client_secret": self.settings.nylas_api_key,
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
            "code_verifier": code_verifier,
        }
        with OAUTH_EXCHANGE_LATENCY.labels(provider=self.PROVIDER).time():
            try:
                resp = self._session.post(
                    f"{self.settings.nylas_api_uri}/v3/connect/token",
                    json=body,
                    timeout=self.settings.nylas_timeout_seconds,
                )
                resp.raise_for_status()
                token = resp.json()
            except (requests.RequestException, ValueError) as e:
                OAUTH_EXCHANGE_COUNT.labels(provider=self.PROVIDER, outcome="error").inc()
                logger.warning("code exchange failed", extra={"error": str(e)})
                raise OAuthError("OAUTH_CODE_INVALID", f"Failed to exchange code: {e}") from e
        OAUTH_EXCHANGE_COUNT.labels(provider=self.PROVIDER, outcome="success").inc()
        return token
