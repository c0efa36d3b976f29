import logging
from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.exceptions import AuthenticationError, PermissionDeniedError
from app.core.security import TOKEN_TYPE_ACCESS, decode_access_token
from app.services.notifications.notifier import Notifier

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class CurrentUser:
    """Identity carried by a verified access token"""

    def __init__(self, id: str, role: str, email: Optional[str] = None, name: Optional[str] = None):
        self.id = id
        self.role = role
        self.email = email
        self.name = name

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token is required")

    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.PyJWTError as e:
        logger.info(f"Rejected access token: {e}")
        raise PermissionDeniedError("Invalid or expired token")

    if payload.get("type", TOKEN_TYPE_ACCESS) != TOKEN_TYPE_ACCESS or not payload.get("id"):
        raise PermissionDeniedError("Invalid or expired token")

    return CurrentUser(
        id=payload["id"],
        role=payload.get("role", "user"),
        email=payload.get("email"),
        name=payload.get("name"),
    )


def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if current_user.role != "admin":
        raise PermissionDeniedError("Admin access required")
    return current_user


def require_brand(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if current_user.role != "brand":
        raise PermissionDeniedError("Brand access required")
    return current_user


def require_influencer(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if current_user.role != "influencer":
        raise PermissionDeniedError("Influencer access required")
    return current_user


def get_notifier(request: Request) -> Notifier:
    notifier = getattr(request.app.state, "notifier", None)
    if notifier is None:
        notifier = Notifier()
        request.app.state.notifier = notifier
    return notifier
