"""Post resource schemas."""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates, validates_schema

from twitterclone.models.post import MAX_TEXT_LENGTH, PostKind


class PostCreateSchema(Schema):
    """Payload for creating a root post or a reply."""

    text = fields.String(required=True, validate=validate.Length(min=1, max=MAX_TEXT_LENGTH))
    kind = fields.Enum(PostKind, load_default=PostKind.ORIGINAL)
    parent_id = fields.Integer(data_key="parentId", load_default=None, allow_none=True)

    @validates("text")
    def _not_blank(self, value: str, **kwargs) -> None:
        if not value.strip():
            raise ValidationError("Text must not be blank.")

    @validates_schema
    def _parent_matches_kind(self, data, **kwargs) -> None:
        kind = data.get("kind", PostKind.ORIGINAL)
        parent_id = data.get("parent_id")
        if kind is PostKind.REPLY and parent_id is None:
            raise ValidationError("A reply needs a parentId.", field_name="parentId")
        if kind is PostKind.ORIGINAL and parent_id is not None:
            raise ValidationError("Only replies carry a parentId.", field_name="parentId")


class PostSchema(Schema):
    """Public projection of a post with its author and counters."""

    id = fields.Integer(required=True)
    first_name = fields.String(data_key="firstName")
    last_name = fields.String(data_key="lastName")
    username = fields.String()
    profile_picture_path = fields.String(data_key="profilePicturePath")
    text = fields.String()
    kind = fields.Enum(PostKind)
    parent_id = fields.Integer(data_key="parentId", allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")
    reply_count = fields.Integer(data_key="replyCount")
    retweet_count = fields.Integer(data_key="retweetCount")
    like_count = fields.Integer(data_key="likeCount")


class ToggleSchema(Schema):
    """Outcome of a like/retweet/bookmark toggle."""

    state = fields.String(required=True)
    active = fields.Boolean(required=True)
    count = fields.Integer(allow_none=True)
