from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from ..db.session import get_db
from ..db import models
from ..services.oauth_service import OAuthService
from .auth import get_current_user
from .deps import get_oauth_service

router = APIRouter(prefix="/oauth", tags=["oauth"])


@router.get("/nylas/auth")
def start_nylas_auth(
    redirect_uri: str = Query(...),
    provider: Optional[str] = Query(None),
    current_user: models.User = Depends(get_current_user),
    oauth_service: OAuthService = Depends(get_oauth_service),
):
    return oauth_service.start_auth(
        redirect_uri, user_id=current_user.id, provider=provider, login_hint=current_user.email
    )


@router.get("/nylas/exchange")
def exchange_nylas_code(
    code: str = Query(...),
    redirect_uri: str = Query(...),
    state: str = Query(...),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    oauth_service: OAuthService = Depends(get_oauth_service),
):
    user = oauth_service.exchange_code(db, current_user.id, code, redirect_uri, state)
    return {"grantId": user.grant_id, "grantEmail": user.grant_email}
