"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from twitterclone.repositories.base import BaseRepository
from twitterclone.repositories.engagement import EngagementRepository
from twitterclone.repositories.post import PostRepository
from twitterclone.repositories.refresh_token import RefreshTokenRepository
from twitterclone.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "EngagementRepository",
    "PostRepository",
    "RefreshTokenRepository",
    "UserRepository",
]
