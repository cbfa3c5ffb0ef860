import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture
def app(tmp_path: Path):
    from bizdesk.application.container import build_container

    return build_container(tmp_path / "bizdesk.db")


def make_user(repo, email: str = "owner@example.com", password: str = "Secret#123"):
    return repo.create_user("Owner", email, password, f"token-{email}")


def make_product(repo, user_id: int, name: str = "Widget", stock: int = 5, price: float = 10.0):
    return repo.create_product(name, "General", None, price, stock, user_id)
