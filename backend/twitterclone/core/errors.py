"""Centralized JSON (RFC 7807) error handling for the API."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from twitterclone.core.logger import ensure_request_id
from twitterclone.services._shared.errors import (
    ConflictError,
    DuplicateIdentityError,
    ForbiddenError,
    InvalidPostError,
    InvalidTokenError,
    NotFoundError,
    ServiceError,
    UnauthenticatedError,
    UnavailableError,
    UserNotFoundError,
)

log = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = "1"


def _http_status_to_code(status_code: int) -> str:
    """Map common HTTP status codes to canonical, stable error codes."""
    mapping = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        415: "unsupported_media_type",
        422: "unprocessable_entity",
        500: "internal_server_error",
        503: "service_unavailable",
    }
    return mapping.get(status_code, "error")


def _as_problem(
    *,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build an RFC 7807 Problem Details dict.

    :param status: HTTP status code.
    :param code: Stable machine-consumable error code.
    :param message: Human-readable error summary (safe for clients).
    :param details: Optional safe, structured details.
    :returns: Problem+JSON dictionary.
    """
    problem: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path if request else None,
        "code": code,
    }
    if details:
        problem["details"] = details
    problem["request_id"] = ensure_request_id()
    return problem


def _problem_response(problem: dict[str, Any]) -> Response:
    """Return a Flask response with the ``application/problem+json`` media type."""
    resp = jsonify(problem)
    resp.mimetype = "application/problem+json"
    return resp


class APIError(Exception):
    """
    Represent a JSON-serializable API error.

    :param message: Human-readable description presented to clients.
    :param status_code: HTTP status code to return. Defaults to ``400``.
    :param code: Machine-readable identifier. Defaults to ``"bad_request"``.
    :param details: Optional structured payload included in the response.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}

    def to_problem(self) -> dict[str, Any]:
        """Serialize error metadata into an RFC 7807 problem."""
        return _as_problem(
            status=self.status_code,
            code=self.code,
            message=self.message,
            details=self.details or None,
        )


class Unauthorized(APIError):
    """401 when a request lacks usable credentials."""

    def __init__(self, message: str = "Unauthorized", code: str = "unauthorized") -> None:
        super().__init__(message, status_code=HTTPStatus.UNAUTHORIZED, code=code)


def translate_service_error(exc: ServiceError) -> APIError:
    """
    Map a service-layer error to its stable HTTP representation.

    Order matters: specific subclasses are checked before their parents.
    Token failures always surface with one generic message so expired and
    forged tokens are indistinguishable to clients.
    """
    if isinstance(exc, UserNotFoundError):
        return APIError(str(exc), status_code=HTTPStatus.NOT_FOUND, code="user_not_found")
    if isinstance(exc, NotFoundError):
        return APIError(str(exc), status_code=HTTPStatus.NOT_FOUND, code="not_found")
    if isinstance(exc, DuplicateIdentityError):
        return APIError(str(exc), status_code=HTTPStatus.CONFLICT, code="duplicate_identity")
    if isinstance(exc, ConflictError):
        return APIError(str(exc), status_code=HTTPStatus.CONFLICT, code="conflict")
    if isinstance(exc, UnauthenticatedError):
        return Unauthorized(str(exc), code="unauthenticated")
    if isinstance(exc, InvalidTokenError):
        return Unauthorized("Invalid or expired token", code="invalid_token")
    if isinstance(exc, ForbiddenError):
        return APIError(str(exc), status_code=HTTPStatus.FORBIDDEN, code="forbidden")
    if isinstance(exc, InvalidPostError):
        return APIError(
            str(exc), status_code=HTTPStatus.UNPROCESSABLE_ENTITY, code="invalid_post"
        )
    if isinstance(exc, UnavailableError):
        return APIError(str(exc), status_code=HTTPStatus.SERVICE_UNAVAILABLE, code="unavailable")
    return APIError(str(exc), status_code=HTTPStatus.BAD_REQUEST, code="bad_request")


def init_app(app: Flask) -> None:
    """
    Attach JSON error handlers to the Flask app.

    Notes
    -----
    - Guarantees RFC 7807 responses for all handled errors.
    - 5xx are logged with ``exc_info``; 4xx as warnings without tracebacks.
    """

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        problem = err.to_problem()
        level = log.error if err.status_code >= 500 else log.warning
        level(
            "APIError: code=%s status=%s msg=%s request_id=%s",
            err.code,
            err.status_code,
            err.message,
            problem.get("request_id"),
        )
        return _problem_response(problem), err.status_code

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        api_err = translate_service_error(err)
        if isinstance(err, InvalidTokenError) and err.reason:
            log.info("Token rejected: reason=%s", err.reason)
        response, status = handle_api_error(api_err)
        if isinstance(err, UnavailableError):
            response.headers["Retry-After"] = RETRY_AFTER_SECONDS
        return response, status

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        error_code = _http_status_to_code(status)
        message = (err.description or error_code.replace("_", " ").capitalize()).strip()
        if status == HTTPStatus.NOT_FOUND and request:
            message = f"Route '{request.path}' not found"
        problem = _as_problem(status=status, code=error_code, message=message)
        level = log.error if status >= 500 else log.warning
        level(
            "HTTPException: code=%s status=%s detail=%s request_id=%s",
            error_code,
            status,
            message,
            problem.get("request_id"),
        )
        return _problem_response(problem), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        problem = _as_problem(
            status=HTTPStatus.UNPROCESSABLE_ENTITY,
            code="validation_error",
            message="Validation failed",
            details={"errors": err.messages},
        )
        log.warning("ValidationError: request_id=%s", problem.get("request_id"))
        return _problem_response(problem), HTTPStatus.UNPROCESSABLE_ENTITY

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        problem = _as_problem(
            status=HTTPStatus.CONFLICT,
            code="conflict",
            message="Resource conflict",
        )
        log.error("IntegrityError: request_id=%s", problem.get("request_id"), exc_info=True)
        return _problem_response(problem), HTTPStatus.CONFLICT

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        problem = _as_problem(
            status=HTTPStatus.SERVICE_UNAVAILABLE,
            code="unavailable",
            message="Service temporarily unavailable",
        )
        log.error("OperationalError: request_id=%s", problem.get("request_id"), exc_info=True)
        response = _problem_response(problem)
        response.headers["Retry-After"] = RETRY_AFTER_SECONDS
        return response, HTTPStatus.SERVICE_UNAVAILABLE

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        problem = _as_problem(
            status=HTTPStatus.INTERNAL_SERVER_ERROR,
            code="internal_server_error",
            message="Unexpected error",
        )
        log.error("Unhandled exception: request_id=%s", problem.get("request_id"), exc_info=True)
        return _problem_response(problem), HTTPStatus.INTERNAL_SERVER_ERROR
