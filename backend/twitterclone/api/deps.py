"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request
from marshmallow import Schema

from twitterclone.core.errors import Unauthorized
from twitterclone.services.container import ServiceContainer
from twitterclone.services.container import get_services as _get_services

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "bearer "


def get_services() -> ServiceContainer:
    """Return the service container bound to the current application."""

    return _get_services()


def load_json(schema: Schema) -> dict[str, Any]:
    """Validate the JSON body with ``schema``; a missing body counts as ``{}``."""

    return schema.load(request.get_json(silent=True) or {})


def bearer_token() -> str:
    """Extract the access token from ``Authorization: Bearer <token>``.

    :raises Unauthorized: When the header is absent or not a bearer credential.
    """

    header = request.headers.get("Authorization", "")
    if not header.lower().startswith(BEARER_PREFIX):
        raise Unauthorized("Missing bearer token", code="missing_token")
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise Unauthorized("Missing bearer token", code="missing_token")
    return token


def require_user(func: F) -> F:
    """Resolve the acting user once and pass it to the view as ``user``."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        user = get_services().auth.resolve_current_user(bearer_token())
        return func(*args, user=user, **kwargs)

    return wrapper  # type: ignore[return-value]


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
