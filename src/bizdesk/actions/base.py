from __future__ import annotations

import functools
import json
import logging
import math
from typing import Any, Callable, Mapping, Optional

from bizdesk.domain.errors import AppError, DatabaseError, ValidationError
from bizdesk.domain.results import ActionResult

log = logging.getLogger("bizdesk.actions")

Form = Mapping[str, Any]


# ---------- form parsing ----------
def form_str(form: Form, key: str) -> Optional[str]:
    value = form.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def form_int(form: Form, key: str) -> Optional[int]:
    """Integer field, or None when missing, empty, "null" or not a finite number."""
    value = form_str(form, key)
    if value is None or value.lower() in ("null", "undefined"):
        return None
    try:
        return int(value)
    except ValueError:
        try:
            return int(float(value))
        except (ValueError, OverflowError):
            return None


def form_float(form: Form, key: str) -> Optional[float]:
    value = form_str(form, key)
    if value is None:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def form_items(form: Form, key: str = "items") -> list:
    raw = form.get(key)
    if isinstance(raw, list):
        return raw
    try:
        items = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Invalid items format") from exc
    if not isinstance(items, list):
        raise ValidationError("Invalid items format")
    return items


# ---------- result envelope ----------
class ActionHandler:
    """Base for the action entry points; owns the database handle for error reporting."""

    def __init__(self, db):
        self.db = db

    def database_error_message(self, exc: Exception) -> str:
        last = self.db.last_error() if self.db is not None else None
        detail = str(last or exc) or "Unknown error"
        return f"Database error: {detail}. Please try again later."


def action(label: str, default: Callable[[], Any] | None = None):
    """Turn a handler method into one that always returns an ActionResult.

    The wrapped method returns ``ActionResult`` on success and raises
    ``AppError`` subclasses on failure; ``default`` builds the ``data`` payload
    sent back alongside a failure.
    """

    def deco(fn: Callable[..., ActionResult]) -> Callable[..., ActionResult]:
        @functools.wraps(fn)
        def wrapper(self: ActionHandler, *args, **kwargs) -> ActionResult:
            fallback = default() if default else None
            if self.db is not None:
                self.db.reset_retry_state()
            try:
                return fn(self, *args, **kwargs)
            except DatabaseError as exc:
                log.error("%s error: %s", label, exc)
                return ActionResult.fail(self.database_error_message(exc), fallback)
            except AppError as exc:
                log.info("%s rejected: %s", label, exc)
                return ActionResult.fail(str(exc), fallback)
            except Exception as exc:
                log.exception("%s failed unexpectedly", label)
                return ActionResult.fail(f"Unexpected error: {exc}", fallback)

        return wrapper

    return deco
