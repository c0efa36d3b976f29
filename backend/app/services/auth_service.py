from datetime import timedelta
from typing import Any, Dict, Optional, Tuple

import jwt
from sqlalchemy.orm import Session
import logging

from app.core.config import settings
from app.core.exceptions import (
    AuthenticationError, MarketplaceException, NotFoundError, PermissionDeniedError, ValidationError,
)
from app.core.security import (
    TOKEN_TYPE_REFRESH, create_access_token, create_refresh_token, decode_refresh_token,
    generate_reset_token, get_password_hash, verify_password,
)
from app.models import Admin, Brand, Influencer
from app.models.common import utcnow
from app.schemas.admin import AdminOut
from app.schemas.brand import BrandOut
from app.schemas.influencer import InfluencerOut
from app.services.notifications.email_sender import EmailDeliveryError
from app.services.notifications.notifier import Notifier

logger = logging.getLogger(__name__)

ROLE_MODELS = {
    "brand": Brand,
    "influencer": Influencer,
    "admin": Admin,
}

PROFILE_SCHEMAS = {
    "brand": BrandOut,
    "influencer": InfluencerOut,
    "admin": AdminOut,
}

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent."


def display_name(user, role: str) -> Optional[str]:
    if role == "brand":
        return user.brand_name
    return user.name


def issue_tokens(user, role: str) -> Tuple[str, str]:
    access = create_access_token(
        user.id, role, extra={"email": user.email, "name": display_name(user, role)}
    )
    return access, create_refresh_token(user.id, role)


class AuthService:
    @staticmethod
    def get_user(db: Session, user_id: str, role: str):
        model = ROLE_MODELS.get(role)
        if model is None:
            return None
        return db.query(model).filter(model.id == user_id).first()

    @staticmethod
    def login(db: Session, email: str, password: str, role: str):
        """Returns (user, access_token, refresh_token)"""
        model = ROLE_MODELS[role]
        user = db.query(model).filter(model.email == email.lower()).first()
        if not user:
            raise ValidationError("Invalid credentials or role mismatch")

        if role == "influencer" and user.status == "rejected":
            raise PermissionDeniedError("Account has been rejected. Please contact support.")
        if role == "influencer" and user.status == "pending":
            raise PermissionDeniedError("Account is pending approval. Please wait for admin verification.")

        if not verify_password(password, user.hashed_password):
            raise ValidationError("Invalid credentials")

        access, refresh = issue_tokens(user, role)
        logger.info(f"{role} {user.id} logged in")
        return user, access, refresh

    @staticmethod
    def refresh(db: Session, refresh_token: Optional[str]) -> Tuple[str, str]:
        if not refresh_token:
            raise AuthenticationError("Refresh token not provided")
        try:
            payload = decode_refresh_token(refresh_token)
        except jwt.PyJWTError:
            raise AuthenticationError("Invalid refresh token")
        if payload.get("type") != TOKEN_TYPE_REFRESH:
            raise AuthenticationError("Invalid refresh token")

        role = payload.get("role")
        user = AuthService.get_user(db, payload.get("id"), role)
        if not user:
            raise AuthenticationError("Invalid refresh token")
        return issue_tokens(user, role)

    @staticmethod
    def profile(db: Session, user_id: str, role: str) -> Dict[str, Any]:
        user = AuthService.get_user(db, user_id, role)
        if not user:
            raise NotFoundError("User not found")
        data = PROFILE_SCHEMAS[role].model_validate(user).model_dump(by_alias=True, mode="json")
        data["role"] = role
        return data

    @staticmethod
    def _find_by_email(db: Session, email: str):
        for role, model in ROLE_MODELS.items():
            user = db.query(model).filter(model.email == email.lower()).first()
            if user:
                return user, role
        return None, None

    @staticmethod
    async def forgot_password(db: Session, notifier: Notifier, email: str) -> str:
        """
        Store a short-lived reset token and mail the link.

        Returns the same message whether or not the email is registered.
        If the email cannot be sent the token is cleared again.
        """
        user, role = AuthService._find_by_email(db, email)
        if not user:
            return FORGOT_PASSWORD_MESSAGE

        token = generate_reset_token()
        user.password_reset_token = token
        user.password_reset_expires = utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
        db.commit()

        try:
            await notifier.password_reset_requested(user.email, token, role)
        except EmailDeliveryError as e:
            logger.error(f"Password reset email error for {user.email}: {e}")
            user.password_reset_token = None
            user.password_reset_expires = None
            db.commit()
            raise MarketplaceException("Failed to send password reset email. Please try again.", 500)

        return FORGOT_PASSWORD_MESSAGE

    @staticmethod
    def reset_password(db: Session, notifier: Notifier, token: str, new_password: str, role: str):
        model = ROLE_MODELS[role]
        user = db.query(model).filter(
            model.password_reset_token == token,
            model.password_reset_expires > utcnow(),
        ).first()
        if not user:
            raise ValidationError("Invalid or expired reset token")

        user.hashed_password = get_password_hash(new_password)
        user.password_reset_token = None
        user.password_reset_expires = None
        user.is_validated = True
        db.commit()

        notifier.password_reset_confirmed(user.email)
        logger.info(f"Password reset for {role} {user.id}")

    @staticmethod
    def change_password(db: Session, user_id: str, role: str, current_password: str, new_password: str):
        user = AuthService.get_user(db, user_id, role)
        if not user:
            raise NotFoundError("User not found")
        if not verify_password(current_password, user.hashed_password):
            raise ValidationError("Current password is incorrect")
        if verify_password(new_password, user.hashed_password):
            raise ValidationError("New password must be different from current password")

        user.hashed_password = get_password_hash(new_password)
        db.commit()
