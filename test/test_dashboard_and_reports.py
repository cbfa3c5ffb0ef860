import json
from pathlib import Path

from openpyxl import load_workbook

from bizdesk.config import get_app_paths, load_settings
from bizdesk.main import main

from conftest import make_product, make_user


def _seed(app):
    user = make_user(app.repo)
    cheap = make_product(app.repo, user.id, "Cheap", stock=3, price=2.0)
    dear = make_product(app.repo, user.id, "Dear", stock=50, price=100.0)
    customer = app.customers.add_customer("Ana", user_id=user.id)
    app.sales.create_sale(
        [{"product_id": dear.id, "quantity": 2, "price": 150}], 300, user.id, status="Completed", customer_id=customer.id
    )
    cancelled = app.sales.create_sale([{"product_id": cheap.id, "quantity": 1, "price": 5}], 5, user.id)
    app.sales.update_sale(
        cancelled.id, [{"product_id": cheap.id, "quantity": 1, "price": 5}], 5, user.id, status="Cancelled"
    )
    app.purchases.create_purchase(
        [{"product_id": dear.id, "quantity": 1, "price": 80}], 80, user.id, status="Received", supplier="Acme"
    )
    return user


def test_dashboard_summary_excludes_cancelled(app):
    user = _seed(app)

    summary = app.stock.dashboard(user.id)

    assert summary.total_sales == 300
    assert summary.total_purchases == 80
    assert summary.total_profit == 220
    assert [(c.name, c.order_count, c.total_spent) for c in summary.top_customers] == [("Ana", 1, 300)]
    assert [p.name for p in summary.low_stock_products] == ["Cheap"]
    assert len(summary.recent_sales) == 2


def test_stock_summary_counts_value_and_low_stock(app):
    user = _seed(app)

    summary = app.stock.summary(user.id)

    # Cheap: 3 - 1 = 2 units; Dear: 50 - 2 + 1 = 49 units
    assert summary.total_products == 2
    assert summary.stock_value == 2 * 2.0 + 49 * 100.0
    assert summary.low_stock_count == 1
    assert summary.out_of_stock_count == 0
    assert 0 < len(summary.recent_movements) <= 5


def test_low_stock_threshold_can_be_overridden(app):
    user = _seed(app)

    assert [p.name for p in app.stock.low_stock_products(user.id, threshold=49)] == ["Cheap", "Dear"]


def test_dashboard_export_writes_workbook(app, tmp_path: Path):
    user = _seed(app)
    out = tmp_path / "reports" / "dashboard.xlsx"

    res = app.stock_actions.export_dashboard_report(user.id, out)

    assert res.success is True
    assert out.exists()
    wb = load_workbook(out)
    assert wb.sheetnames == ["Summary", "Sales", "Purchases", "Low stock"]
    assert wb["Summary"]["B3"].value == 300
    assert wb["Sales"].max_row == 3
    assert wb["Purchases"]["C2"].value == "Acme"
    assert wb["Low stock"]["B2"].value == "Cheap"


def test_settings_come_from_environment(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("BIZDESK_DB_PATH", str(tmp_path / "db" / "custom.db"))
    monkeypatch.setenv("BIZDESK_ENV", "production")
    monkeypatch.setenv("BIZDESK_LOW_STOCK_THRESHOLD", "4")

    paths = get_app_paths()
    settings = load_settings()

    assert paths.db_path == tmp_path / "db" / "custom.db"
    assert paths.logs_dir.exists()
    assert settings.production is True
    assert settings.low_stock_threshold == 4
    assert settings.retry_max_attempts == 3


def test_cli_db_check_and_summary(monkeypatch, tmp_path: Path, capsys):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("BIZDESK_DB_PATH", str(tmp_path / "cli.db"))

    assert main(["init-db"]) == 0
    assert main(["db-check"]) == 0
    report = json.loads(capsys.readouterr().out.split("\n", 1)[1])
    assert report["integrity"] == "ok"

    assert main(["summary", "1"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["data"]["total_sales"] == 0


def test_recent_purchases_are_limited_to_five(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=0)
    for _ in range(7):
        app.purchases.create_purchase([{"product_id": p.id, "quantity": 1, "price": 1}], 1, user.id)

    assert len(app.repo.list_purchases(user.id)) == 7
    assert len(app.repo.list_purchases(user.id, limit=2)) == 2
    assert len(app.stock.dashboard(user.id).recent_purchases) == 5
