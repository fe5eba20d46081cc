"""
Authentication session module.

Identity accessors over the cached login, the post-login warm-up sequence
and logout.
"""

from .session import (
    Identity,
    get_company_name,
    get_user_data,
    get_user_uuid,
    get_user_role,
    get_identity,
    is_authenticated,
    is_admin,
    is_authenticated_admin,
    store_identity,
    complete_login,
    logout,
)

__all__ = [
    "Identity",
    "get_company_name",
    "get_user_data",
    "get_user_uuid",
    "get_user_role",
    "get_identity",
    "is_authenticated",
    "is_admin",
    "is_authenticated_admin",
    "store_identity",
    "complete_login",
    "logout",
]
