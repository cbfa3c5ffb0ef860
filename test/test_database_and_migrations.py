from pathlib import Path

import pytest

from bizdesk.domain.errors import DatabaseError
from bizdesk.repositories.database import Database, RetryPolicy
from bizdesk.repositories.schema import run_migrations
from bizdesk.repositories.sqlite_repo import SqliteRepository
from bizdesk.services import OperationsService


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_migrations_are_idempotent(tmp_path: Path):
    db = Database(tmp_path / "m.db")
    assert run_migrations(db) == 3
    assert run_migrations(db) == 3

    cols = {r["name"] for r in db.fetch_all("PRAGMA table_info(users)")}
    assert {"failed_attempts", "locked_until", "auth_token"} <= cols
    tables = {r["name"] for r in db.fetch_all("SELECT name FROM sqlite_master WHERE type='table'")}
    assert {"products", "sales", "sale_items", "purchases", "purchase_items", "stock_movements",
            "product_stock_history", "customers", "suppliers"} <= tables


def test_negative_stock_is_rejected_by_the_schema(tmp_path: Path):
    db = Database(tmp_path / "c.db")
    run_migrations(db)
    with pytest.raises(DatabaseError):
        db.execute("INSERT INTO products (name, price, stock) VALUES ('x', 1, -1)")


def test_retry_policy_fails_fast_within_backoff(tmp_path: Path):
    clock = FakeClock()
    db = Database(tmp_path / "nowhere" / "x.db", RetryPolicy(max_attempts=2, backoff_seconds=5), clock=clock)

    for _ in range(3):
        with pytest.raises(DatabaseError, match="unable to open"):
            db.connect()
    assert db.state.attempts == 3

    # over the limit and inside the window: no new attempt is made
    with pytest.raises(DatabaseError):
        db.connect()
    assert db.state.attempts == 3

    clock.now += 6
    with pytest.raises(DatabaseError):
        db.connect()
    assert db.state.attempts == 4

    db.reset_retry_state()
    assert db.state.attempts == 0
    assert isinstance(db.last_error(), Exception)


def test_transaction_rolls_back_on_error(tmp_path: Path):
    db = Database(tmp_path / "t.db")
    run_migrations(db)

    with pytest.raises(RuntimeError):
        with db.transaction() as cur:
            cur.execute("INSERT INTO products (name, price, stock) VALUES ('x', 1, 1)")
            raise RuntimeError("boom")

    assert db.fetch_one("SELECT COUNT(*) AS n FROM products")["n"] == 0


def test_db_check_reports_health(tmp_path: Path):
    db = Database(tmp_path / "ok.db")
    repo = SqliteRepository(db)
    repo.init_db()

    report = OperationsService(db, repo).check_database()

    assert report.success is True
    assert report.is_connected is True
    assert report.integrity == "ok"
    assert report.message == "Database connection successful"


def test_db_check_reports_failure(tmp_path: Path):
    db = Database(tmp_path / "missing" / "bad.db")

    report = OperationsService(db, SqliteRepository(db)).check_database()

    assert report.success is False
    assert report.is_connected is False
    assert report.last_error
