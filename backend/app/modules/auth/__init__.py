# Authentication module

from app.modules.auth.dependencies import (
    get_current_user,
    get_optional_user,
    get_current_admin,
    get_current_staff,
    get_user_roles,
    require_roles,
    is_staff,
)

__all__ = [
    "get_current_user",
    "get_optional_user",
    "get_current_admin",
    "get_current_staff",
    "get_user_roles",
    "require_roles",
    "is_staff",
]
