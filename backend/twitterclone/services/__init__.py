"""Service layer public API.

Re-exports
----------
- :class:`BaseService` and :class:`KeyedLock` (shared primitives)
- :class:`TokenService` with :class:`TokenConfig`
- :class:`AuthService` with its DTOs
- :class:`EngagementService` with its DTOs
"""

from __future__ import annotations

from ._shared.base import BaseService
from ._shared.locks import KeyedLock
from .auth.dto import AuthOut, CurrentUser, LoginIn, LogoutIn, RefreshIn, SignupIn
from .auth.service import AuthService
from .engagement.dto import PostCreateIn, PostOut, ToggleOut
from .engagement.service import EngagementService
from .tokens.dto import AccessTokenOut, RefreshTokenOut, TokenConfig
from .tokens.service import TokenService

__all__ = [
    # Base
    "BaseService",
    "KeyedLock",
    # Tokens
    "TokenService",
    "TokenConfig",
    "AccessTokenOut",
    "RefreshTokenOut",
    # Auth
    "AuthService",
    "SignupIn",
    "LoginIn",
    "LogoutIn",
    "RefreshIn",
    "AuthOut",
    "CurrentUser",
    # Engagement
    "EngagementService",
    "PostCreateIn",
    "PostOut",
    "ToggleOut",
]
