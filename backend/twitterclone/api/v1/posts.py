"""Post, reply and engagement endpoints.

Every route needing an identity resolves it once through :func:`require_user`
and hands it to the service explicitly.
"""

from __future__ import annotations

from flask import Blueprint

from twitterclone.api.deps import get_services, json_response, load_json, require_user, timing
from twitterclone.schemas import PostCreateSchema, PostSchema, ToggleSchema
from twitterclone.services.auth.dto import CurrentUser
from twitterclone.services.engagement.dto import PostCreateIn

bp = Blueprint("posts", __name__)

create_schema = PostCreateSchema()
post_schema = PostSchema()
posts_schema = PostSchema(many=True)
toggle_schema = ToggleSchema()


# --------------------------------- Posts ----------------------------------- #


@bp.post("")
@timing
@require_user
def create_post(*, user: CurrentUser):
    """Create a root post or a reply for the acting user."""

    data = load_json(create_schema)
    post = get_services().engagement.create_post(user, PostCreateIn(**data))
    return json_response({"data": post_schema.dump(post)}, status=201)


@bp.delete("/<int:post_id>")
@timing
@require_user
def delete_post(post_id: int, *, user: CurrentUser):
    """Delete one of the acting user's posts."""

    get_services().engagement.delete_post(user, post_id)
    return "", 204


@bp.get("")
@timing
def list_posts():
    """Every root post, newest first."""

    posts = get_services().engagement.get_all_posts()
    return json_response({"data": posts_schema.dump(posts)})


@bp.get("/by-username/<username>")
@timing
def posts_by_username(username: str):
    posts = get_services().engagement.get_posts_by_username(username)
    return json_response({"data": posts_schema.dump(posts)})


@bp.get("/replies-by-username/<username>")
@timing
def replies_by_username(username: str):
    posts = get_services().engagement.get_replies_by_username(username)
    return json_response({"data": posts_schema.dump(posts)})


@bp.get("/retweets-by-username/<username>")
@timing
def retweets_by_username(username: str):
    posts = get_services().engagement.get_retweets_by_username(username)
    return json_response({"data": posts_schema.dump(posts)})


@bp.get("/liked-by-username/<username>")
@timing
def liked_by_username(username: str):
    posts = get_services().engagement.get_liked_by_username(username)
    return json_response({"data": posts_schema.dump(posts)})


@bp.get("/<int:post_id>/replies")
@timing
def replies_for_post(post_id: int):
    posts = get_services().engagement.get_replies_for_post(post_id)
    return json_response({"data": posts_schema.dump(posts)})


@bp.get("/bookmarks")
@timing
@require_user
def bookmarks(*, user: CurrentUser):
    """The acting user's bookmarks. Nobody else's are ever listed."""

    posts = get_services().engagement.get_bookmarks(user)
    return json_response({"data": posts_schema.dump(posts)})


# -------------------------------- Toggles ---------------------------------- #


@bp.post("/<int:post_id>/like")
@timing
@require_user
def toggle_like(post_id: int, *, user: CurrentUser):
    out = get_services().engagement.toggle_like(user, post_id)
    return json_response({"data": toggle_schema.dump(out)})


@bp.post("/<int:post_id>/retweet")
@timing
@require_user
def toggle_retweet(post_id: int, *, user: CurrentUser):
    out = get_services().engagement.toggle_retweet(user, post_id)
    return json_response({"data": toggle_schema.dump(out)})


@bp.post("/<int:post_id>/bookmark")
@timing
@require_user
def toggle_bookmark(post_id: int, *, user: CurrentUser):
    out = get_services().engagement.toggle_bookmark(user, post_id)
    return json_response({"data": toggle_schema.dump(out)})


# --------------------------- Engagement reads ------------------------------ #


@bp.get("/<int:post_id>/is-liked")
@timing
@require_user
def is_liked(post_id: int, *, user: CurrentUser):
    return json_response({"data": get_services().engagement.is_liked(user, post_id)})


@bp.get("/<int:post_id>/is-retweeted")
@timing
@require_user
def is_retweeted(post_id: int, *, user: CurrentUser):
    return json_response({"data": get_services().engagement.is_retweeted(user, post_id)})


@bp.get("/<int:post_id>/is-bookmarked")
@timing
@require_user
def is_bookmarked(post_id: int, *, user: CurrentUser):
    return json_response({"data": get_services().engagement.is_bookmarked(user, post_id)})


@bp.get("/<int:post_id>/like-count")
@timing
def like_count(post_id: int):
    return json_response({"data": get_services().engagement.like_counter(post_id)})


@bp.get("/<int:post_id>/retweet-count")
@timing
def retweet_count(post_id: int):
    return json_response({"data": get_services().engagement.retweet_counter(post_id)})
