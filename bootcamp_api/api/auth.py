from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from bootcamp_api.core.config import settings
from bootcamp_api.core.deps import get_current_user
from bootcamp_api.core.security import create_user_token
from bootcamp_api.db.session import get_db
from bootcamp_api.models.user import User
from bootcamp_api.schemas.auth import TokenResponse, UserLogin, UserRegister
from bootcamp_api.services.rate_limit import enforce_login_rate_limit
from bootcamp_api.services.storage import serialize_row
from bootcamp_api.services.users import EmailAlreadyRegistered, authenticate, normalize_email, register_user

router = APIRouter()
logger = logging.getLogger(__name__)

USER_HIDDEN_FIELDS = ("password_hash",)


def _client_ip(request: Request) -> str | None:
    if settings.TRUST_PROXY_HEADERS:
        first = str(request.headers.get("x-forwarded-for") or "").split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return str(request.client.host)
    return None


def _token_response(user: User) -> JSONResponse:
    token = create_user_token(str(user.id), user.role)
    response = JSONResponse(TokenResponse(token=token).model_dump())
    response.set_cookie(
        key=settings.JWT_COOKIE_NAME,
        value=token,
        max_age=int(settings.JWT_COOKIE_EXPIRE_DAYS) * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return response


@router.post("/register", response_model=TokenResponse)
def register(payload: UserRegister, db: Session = Depends(get_db)):
    try:
        user = register_user(db, name=payload.name, email=payload.email, password=payload.password, role=payload.role)
    except EmailAlreadyRegistered:
        raise HTTPException(status_code=400, detail="Email is already registered")
    logger.info("user registered id=%s role=%s", user.id, user.role)
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
def login(payload: UserLogin, request: Request, db: Session = Depends(get_db)):
    email = normalize_email(payload.email)
    if not email or not payload.password:
        raise HTTPException(status_code=400, detail="Please provide an email and password")
    enforce_login_rate_limit(email, _client_ip(request))
    user = authenticate(db, email, payload.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _token_response(user)


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return {"success": True, "data": serialize_row(user, hidden=USER_HIDDEN_FIELDS)}
