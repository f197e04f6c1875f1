# twitterclone/services/auth/service.py
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from twitterclone.models.user import User
from twitterclone.services._shared.base import BaseService
from twitterclone.services._shared.errors import (
    DuplicateIdentityError,
    InvalidTokenError,
    UnauthenticatedError,
    UserNotFoundError,
    violates,
)
from twitterclone.services.auth.dto import (
    AuthOut,
    CurrentUser,
    LoginIn,
    LogoutIn,
    RefreshIn,
    SignupIn,
)
from twitterclone.services.tokens.service import TokenService

log = logging.getLogger(__name__)


class AuthService(BaseService):
    """
    Authentication lifecycle service (signup / login / refresh / logout).

    Credentials are checked through :class:`UserRepository`; tokens are issued
    and verified through :class:`TokenService`. The service never stores the
    acting identity: :meth:`resolve_current_user` returns it and callers pass
    it on explicitly.
    """

    def __init__(
        self,
        *,
        tokens: TokenService,
        default_profile_picture: str,
        default_banner_picture: str,
    ) -> None:
        """
        :param tokens: Token issuance/verification service.
        :param default_profile_picture: Media reference assigned at signup.
        :param default_banner_picture: Media reference assigned at signup.
        """
        self.tokens = tokens
        self.default_profile_picture = default_profile_picture
        self.default_banner_picture = default_banner_picture

    # ------------------------------------------------------------------ #
    # Signup
    # ------------------------------------------------------------------ #

    def signup(self, dto: SignupIn) -> CurrentUser:
        """
        Register a new user. Issues no tokens; a login is required afterwards.

        :raises DuplicateIdentityError: If the username (any case) or the
            email is already taken.
        """
        try:
            with self.rw_uow() as uow:
                if uow.users.exists_by_username(dto.username):
                    raise DuplicateIdentityError("username")
                if uow.users.exists_by_email(dto.email):
                    raise DuplicateIdentityError("email")

                user = User(
                    first_name=dto.first_name.strip(),
                    last_name=dto.last_name.strip(),
                    username=dto.username,
                    email=dto.email,
                    profile_picture_path=self.default_profile_picture,
                    banner_picture_path=self.default_banner_picture,
                )
                user.password = dto.password
                uow.users.add(user)
                out = self._to_current_user(user)
        except IntegrityError as exc:
            # Lost a race against a concurrent signup for the same identity.
            if violates(exc, "uq_users_email") or violates(exc, "users.email"):
                raise DuplicateIdentityError("email") from exc
            raise DuplicateIdentityError("username") from exc

        log.info("auth.signup", extra={"username": out.username})
        return out

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> AuthOut:
        """
        Verify credentials and issue an access/refresh token pair.

        :raises UnauthenticatedError: Unknown username or wrong password,
            indistinguishably.
        """
        with self.ro_uow() as uow:
            user = uow.users.authenticate(dto.username, dto.password)
            username = user.username if user is not None else None

        if username is None:
            log.warning("auth.login.failed", extra={"username": dto.username})
            raise UnauthenticatedError()

        access = self.tokens.issue_access_token(username)
        refresh = self.tokens.issue_refresh_token(username)
        return AuthOut(
            access_token=access.token,
            refresh_token=refresh.token,
            username=username,
            expires_at=access.expires_at,
        )

    # ------------------------------------------------------------------ #
    # Refresh with rotation
    # ------------------------------------------------------------------ #

    def refresh_token(self, dto: RefreshIn) -> AuthOut:
        """
        Exchange a refresh token for a new access token and a rotated refresh token.

        The identity comes from the stored record. A caller-supplied username
        that differs from it is rejected and the presented token is revoked.

        :raises InvalidTokenError: Unknown, consumed, expired or mismatched token.
        """
        try:
            record = self.tokens.validate_refresh_token(dto.refresh_token)
            if dto.username is not None and dto.username != record.username:
                self.tokens.revoke_refresh_token(dto.refresh_token)
                raise InvalidTokenError(reason="username_mismatch")
            rotated = self.tokens.rotate_refresh_token(dto.refresh_token)
        except InvalidTokenError as exc:
            log.warning(
                "auth.refresh.rejected",
                extra={"reason": exc.reason, "username": dto.username},
            )
            raise

        access = self.tokens.issue_access_token(rotated.username)
        return AuthOut(
            access_token=access.token,
            refresh_token=rotated.token,
            username=rotated.username,
            expires_at=access.expires_at,
        )

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        """
        Revoke a refresh token. Idempotent: an unknown token is not an error.

        Possession of the token is sufficient; a username mismatch is only logged.
        """
        record = self.tokens.find_refresh_token(dto.refresh_token)
        if record is not None and dto.username is not None and record.username != dto.username:
            log.warning(
                "auth.logout.username_mismatch",
                extra={"username": dto.username, "reason": "username_mismatch"},
            )
        self.tokens.revoke_refresh_token(dto.refresh_token)

    # ------------------------------------------------------------------ #
    # Identity
    # ------------------------------------------------------------------ #

    def resolve_current_user(self, access_token: str) -> CurrentUser:
        """
        Resolve the acting user from an access token.

        :raises InvalidTokenError: If the token fails verification.
        :raises UserNotFoundError: If the subject no longer maps to a user.
        """
        subject = self.tokens.validate_access_token(access_token)
        with self.ro_uow() as uow:
            user = uow.users.get_by_username(subject)
            if user is None:
                raise UserNotFoundError(subject)
            return self._to_current_user(user)

    def find_all_usernames(self) -> list[str]:
        """Every registered username, alphabetically."""
        with self.ro_uow() as uow:
            return uow.users.list_usernames()

    @staticmethod
    def _to_current_user(user: User) -> CurrentUser:
        return CurrentUser(
            id=user.id,
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
        )
