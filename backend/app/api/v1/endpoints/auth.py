from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session
from app.api.deps import CurrentUser, get_current_user, get_notifier
from app.core.config import settings
from app.core.rate_limiting import RATE_LIMITS, limiter
from app.db.session import get_db
from app.schemas.auth import (
    ChangePasswordRequest, ForgotPasswordRequest, LoginData, LoginRequest, LoginUser,
    ResetPasswordRequest, TokenData,
)
from app.schemas.common import APIResponse, MessageResponse
from app.services.auth_service import AuthService, display_name
from app.services.notifications.notifier import Notifier

router = APIRouter()


def _set_refresh_cookie(response: Response, token: str):
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.ENVIRONMENT == "production",
        samesite="strict",
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
    )


@router.post("/login", response_model=APIResponse[LoginData])
@limiter.limit(RATE_LIMITS["auth_login"])
def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: Session = Depends(get_db)
):
    """
    Log in as a brand, influencer or admin.

    The access token is returned in the body; the refresh token is set as
    an httpOnly cookie.
    """
    user, access, refresh = AuthService.login(db, credentials.email, credentials.password, credentials.role)
    _set_refresh_cookie(response, refresh)
    return APIResponse(
        message="Login successful",
        data=LoginData(
            user=LoginUser(
                id=user.id,
                role=credentials.role,
                name=display_name(user, credentials.role),
                email=user.email,
                status=getattr(user, "status", None),
            ),
            token=access,
        ),
    )


@router.post("/refresh", response_model=APIResponse[TokenData])
def refresh_token(
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    """Exchange the refresh cookie for a new access token"""
    access, refresh = AuthService.refresh(db, request.cookies.get(settings.REFRESH_COOKIE_NAME))
    _set_refresh_cookie(response, refresh)
    return APIResponse(message="Token refreshed", data=TokenData(token=access))


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response):
    response.delete_cookie(settings.REFRESH_COOKIE_NAME, httponly=True, samesite="strict")
    return MessageResponse(message="Logged out successfully")


@router.get("/me")
def me(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return {"success": True, "data": AuthService.profile(db, current_user.id, current_user.role)}


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit(RATE_LIMITS["password_reset"])
async def forgot_password(
    request: Request,
    payload: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    message = await AuthService.forgot_password(db, notifier, payload.email)
    return MessageResponse(message=message)


@router.post("/reset-password", response_model=MessageResponse)
@limiter.limit(RATE_LIMITS["password_reset"])
def reset_password(
    request: Request,
    payload: ResetPasswordRequest,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    AuthService.reset_password(db, notifier, payload.token, payload.new_password, payload.role)
    return MessageResponse(message="Password has been reset successfully. You can now log in.")


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    payload: ChangePasswordRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    AuthService.change_password(
        db, current_user.id, current_user.role, payload.current_password, payload.new_password
    )
    return MessageResponse(message="Password changed successfully")
