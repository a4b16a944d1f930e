"""Core configuration, auth, and shared infrastructure."""

from membership.core.config import Settings, get_settings
from membership.core.constants import (
    ROLE_ADMIN,
    ROLE_MEMBER,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    DEFAULT_BOOKING_PURPOSE,
    MAX_BOOKING_PURPOSE_LENGTH,
)
from membership.core.auth import (
    verify_password,
    hash_password,
    create_access_token,
    decode_access_token,
    new_setup_token,
    hash_token,
)
from membership.core.limiter import limiter

__all__ = [
    "Settings",
    "get_settings",
    "ROLE_ADMIN",
    "ROLE_MEMBER",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "DEFAULT_BOOKING_PURPOSE",
    "MAX_BOOKING_PURPOSE_LENGTH",
    "verify_password",
    "hash_password",
    "create_access_token",
    "decode_access_token",
    "new_setup_token",
    "hash_token",
    "limiter",
]
