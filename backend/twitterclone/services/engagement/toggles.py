"""The ``(user, post)`` membership toggle, described once for all relations."""

from __future__ import annotations

from dataclasses import dataclass

from twitterclone.models import Bookmark, Like, Retweet


@dataclass(frozen=True, slots=True)
class ToggleRelation:
    """
    One engagement relation the toggle engine can flip.

    :param kind: Short name, also the first element of the lock key.
    :param repository: Attribute on the Unit of Work holding the relation's
        :class:`~twitterclone.repositories.engagement.EngagementRepository`.
    :param model: Mapped class of the relation rows.
    :param counter: ``Post`` counter column driven by the relation, or
        ``None`` when toggling touches no counter.
    :param on_state: State reported after creating the row.
    :param off_state: State reported after deleting the row.
    """

    kind: str
    repository: str
    model: type
    counter: str | None
    on_state: str
    off_state: str

    def state(self, active: bool) -> str:
        return self.on_state if active else self.off_state


LIKE = ToggleRelation(
    kind="like",
    repository="likes",
    model=Like,
    counter="like_count",
    on_state="LIKED",
    off_state="UNLIKED",
)
RETWEET = ToggleRelation(
    kind="retweet",
    repository="retweets",
    model=Retweet,
    counter="retweet_count",
    on_state="RETWEETED",
    off_state="UNRETWEETED",
)
BOOKMARK = ToggleRelation(
    kind="bookmark",
    repository="bookmarks",
    model=Bookmark,
    counter=None,
    on_state="BOOKMARKED",
    off_state="UNBOOKMARKED",
)
