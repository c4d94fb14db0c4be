# Auth package
from .dependencies import get_current_user, require_admin
from .utils import (
    create_access_token,
    create_refresh_token,
    create_user_token,
    get_password_hash,
    verify_password,
    verify_token,
)

__all__ = [
    "get_current_user",
    "require_admin",
    "create_access_token",
    "create_refresh_token",
    "create_user_token",
    "get_password_hash",
    "verify_password",
    "verify_token",
]
