from __future__ import annotations

import logging

from bizdesk.actions.base import ActionHandler, Form, action, form_str
from bizdesk.domain.errors import DatabaseError
from bizdesk.domain.results import ActionResult

log = logging.getLogger("bizdesk.auth")

RESET_MESSAGE = "If your email is registered, you will receive a password reset link"


class AuthActions(ActionHandler):
    def __init__(self, db, auth):
        super().__init__(db)
        self.auth = auth

    @action("Sign up")
    def sign_up(self, form: Form) -> ActionResult:
        session = self.auth.sign_up(
            form_str(form, "name"),
            form_str(form, "email"),
            form.get("password") or "",
            form.get("confirm-password") or "",
        )
        return ActionResult.ok("Account created successfully", session)

    @action("Login")
    def login(self, form: Form) -> ActionResult:
        session = self.auth.login(form_str(form, "email"), form.get("password") or "")
        return ActionResult.ok("Login successful", session)

    def forgot_password(self, form: Form) -> ActionResult:
        """Same answer whether or not the email exists, even on database errors."""
        email = form_str(form, "reset-email")
        if not email:
            return ActionResult.fail("Email is required")
        try:
            known = self.auth.repo.email_exists(email.lower())
            log.info("password_reset_requested known=%s", known)
        except DatabaseError as exc:
            log.error("Forgot password error: %s", exc)
        return ActionResult.ok(RESET_MESSAGE)

    def logout(self) -> ActionResult:
        return ActionResult.ok("Logged out", {"cookie": self.auth.logout_cookie(), "redirect": "/"})

    def get_current_user(self, token: str | None):
        """The user owning ``token``, or None when it is unknown or the database is down."""
        if not token:
            return None
        self.db.reset_retry_state()
        try:
            return self.auth.current_user(token)
        except DatabaseError as exc:
            log.error("Get current user error: %s", exc)
            return None

    def verify_token(self, token: str | None) -> bool:
        if not token:
            return False
        self.db.reset_retry_state()
        try:
            return self.auth.verify_token(token)
        except DatabaseError as exc:
            log.error("Verify token error: %s", exc)
            return False
