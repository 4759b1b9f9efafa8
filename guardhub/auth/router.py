from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..errors import InvalidCredentials
from ..limiter import limiter
from ..logging import structlog
from ..models.models import User
from ..schemas.auth import (
    AuthStatusResponse,
    LoginRequest,
    LoginResponse,
    PublicUser,
)
from . import sessions
from .security import (
    get_current_user,
    mark_login,
    resolve_user,
    session_token_from,
    verify_credentials,
)


router = APIRouter(prefix="/api", tags=["auth"])
log = structlog.get_logger()


def set_session_cookie(response: JSONResponse, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_seconds,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.session_cookie_samesite,
    )


def clear_session_cookie(response: JSONResponse) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.session_cookie_samesite,
    )


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.login_rate_limit)
def login(request: Request, req: LoginRequest, db: Session = Depends(get_db)):
    try:
        user = verify_credentials(db, req.username, req.password)
    except InvalidCredentials as e:
        log.info("login_failed")
        return JSONResponse(status_code=e.status_code, content={"success": False, "error": e.message})

    # Never reuse a session id the caller arrived with
    previous = session_token_from(request)
    if previous:
        sessions.destroy_session(db, previous)

    token = sessions.create_session(
        db,
        user,
        user_agent=request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
    )
    mark_login(db, user)
    log.info("login_succeeded", user_id=str(user.id))
    body = LoginResponse(success=True, user=PublicUser.model_validate(user))
    response = JSONResponse(content=jsonable_encoder(body, exclude_none=True))
    set_session_cookie(response, token)
    return response


@router.post("/logout")
def logout(request: Request, db: Session = Depends(get_db)):
    sessions.destroy_session(db, session_token_from(request))
    log.info("logout")
    response = JSONResponse(content={"success": True, "message": "Logout successful"})
    clear_session_cookie(response)
    return response


@router.get("/auth/status", response_model=AuthStatusResponse, response_model_exclude_none=True)
def auth_status(request: Request, db: Session = Depends(get_db)):
    user = resolve_user(db, session_token_from(request))
    if user is None:
        return AuthStatusResponse(authenticated=False)
    return AuthStatusResponse(authenticated=True, user=PublicUser.model_validate(user))


@router.get("/auth/user", response_model=PublicUser)
def auth_user(user: User = Depends(get_current_user)):
    return user
