"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import AuthResponseSchema, LoginSchema, RefreshTokenSchema, SignupSchema
from .post import PostCreateSchema, PostSchema, ToggleSchema

__all__ = [
    "SignupSchema",
    "LoginSchema",
    "RefreshTokenSchema",
    "AuthResponseSchema",
    "PostCreateSchema",
    "PostSchema",
    "ToggleSchema",
]
