from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone

from bizdesk.domain.errors import AuthorizationError, DuplicateError, ValidationError
from bizdesk.domain.models import AuthSession, SessionCookie, User

log = logging.getLogger("bizdesk.auth")

COOKIE_NAME = "auth_token"


@dataclass(frozen=True)
class LoginPolicy:
    max_failed_attempts: int = 5
    lockout_seconds: int = 60


def generate_token() -> str:
    return secrets.token_urlsafe(32)


class AuthService:
    def __init__(self, repo, policy: LoginPolicy | None = None, session_max_age: int = 60 * 60 * 24 * 7, secure_cookies: bool = False):
        self.repo = repo
        self.policy = policy or LoginPolicy()
        self.session_max_age = int(session_max_age)
        self.secure_cookies = secure_cookies

    def _cookie(self, token: str) -> SessionCookie:
        return SessionCookie(
            name=COOKIE_NAME,
            value=token,
            max_age=self.session_max_age,
            http_only=True,
            secure=self.secure_cookies,
        )

    def sign_up(self, name: str, email: str, password: str, confirm_password: str) -> AuthSession:
        name = (name or "").strip()
        email = (email or "").strip().lower()
        if not name or not email or not password:
            raise ValidationError("All fields are required")
        if password != confirm_password:
            raise ValidationError("Passwords do not match")
        if self.repo.email_exists(email):
            raise DuplicateError("User with this email already exists")

        token = generate_token()
        user = self.repo.create_user(name, email, password, token)
        log.info("user_signed_up user_id=%s", user.id)
        return AuthSession(user=user, token=token, cookie=self._cookie(token))

    def login(self, email: str, password: str) -> AuthSession:
        email = (email or "").strip().lower()
        if not email or not password:
            raise ValidationError("Email and password are required")

        state = self.repo.get_user_security_state(email)
        if state:
            _attempts, locked_until = state
            if locked_until:
                # SQLite datetime() values are naive UTC
                until = datetime.fromisoformat(locked_until).replace(tzinfo=timezone.utc)
                now = datetime.now(timezone.utc)
                if now < until:
                    remaining = int((until - now).total_seconds())
                    raise AuthorizationError(f"Account is temporarily locked. Retry in {remaining}s.")

        user = self.repo.authenticate_user(email, password)
        if not user:
            attempts, locked_until = self.repo.record_login_failure(
                email,
                self.policy.max_failed_attempts,
                self.policy.lockout_seconds,
            )
            log.warning("login_failed email=%s attempts=%s", email, attempts)
            if locked_until is not None:
                raise AuthorizationError("Too many failed attempts. Account is temporarily locked.")
            raise AuthorizationError("Invalid email or password")

        self.repo.clear_login_guard(user.id)
        token = user.auth_token
        if not token:
            token = generate_token()
            self.repo.set_auth_token(user.id, token)
        log.info("user_logged_in user_id=%s", user.id)
        return AuthSession(
            user=User(id=user.id, name=user.name, email=user.email, auth_token=token, created_at=user.created_at),
            token=token,
            cookie=self._cookie(token),
            redirect="/dashboard",
        )

    def logout_cookie(self) -> SessionCookie:
        return SessionCookie(name=COOKIE_NAME, value="", max_age=0, http_only=True, secure=self.secure_cookies)

    def current_user(self, token: str | None) -> User | None:
        if not token:
            return None
        return self.repo.get_user_by_token(token)

    def verify_token(self, token: str | None) -> bool:
        return self.current_user(token) is not None
