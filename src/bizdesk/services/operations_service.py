from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from bizdesk.domain.errors import DatabaseError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DbCheckReport:
    success: bool
    is_connected: bool
    message: str
    integrity: str
    last_error: Optional[str]
    env_vars: list[str] = field(default_factory=list)
    generated_at: str = ""


def _database_env_vars() -> list[str]:
    # names only, values may hold credentials
    return sorted(k for k in os.environ if "BIZDESK" in k or "DATABASE" in k or "SQLITE" in k)


class OperationsService:
    def __init__(self, db, repo):
        self.db = db
        self.repo = repo

    def check_database(self) -> DbCheckReport:
        self.db.reset_retry_state()
        integrity = "unknown"
        try:
            success = self.db.ping()
            integrity = self.repo.integrity_check()
        except DatabaseError as exc:
            log.error("db_check_failed error=%s", exc)
            success = False

        last_error = self.db.last_error()
        return DbCheckReport(
            success=success,
            is_connected=self.db.is_connected(),
            message="Database connection successful" if success else "Database connection failed",
            integrity=integrity,
            last_error=str(last_error) if last_error else None,
            env_vars=_database_env_vars(),
            generated_at=datetime.now().isoformat(timespec="seconds"),
        )
