from twitterclone.models.engagement import Bookmark, Like, Retweet
from twitterclone.models.post import Post, PostKind
from twitterclone.models.refresh_token import RefreshToken
from twitterclone.models.user import User

__all__ = [
    "Bookmark",
    "Like",
    "Post",
    "PostKind",
    "RefreshToken",
    "Retweet",
    "User",
]
