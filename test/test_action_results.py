import json
from pathlib import Path

from bizdesk.actions import ProductActions, StockActions
from bizdesk.domain.models import DashboardSummary, StockSummary
from bizdesk.repositories.database import Database, RetryPolicy
from bizdesk.repositories.sqlite_repo import SqliteRepository
from bizdesk.services import InventoryService, ReportingService, StockService

from conftest import make_product, make_user


def test_add_sale_rejects_malformed_items(app):
    user = make_user(app.repo)
    res = app.sale_actions.add_sale({"items": "not json", "total_amount": "10", "user_id": str(user.id)})

    assert res.success is False
    assert res.message == "Invalid items format"


def test_add_sale_requires_total_items_and_user(app):
    res = app.sale_actions.add_sale({"items": "[]", "total_amount": "10", "user_id": "1"})

    assert res.success is False
    assert "required" in res.message


def test_add_sale_reports_insufficient_stock(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=5)
    form = {
        "items": json.dumps([{"product_id": p.id, "quantity": 6, "price": 10}]),
        "total_amount": "60",
        "user_id": str(user.id),
        "customer_id": "null",
    }

    res = app.sale_actions.add_sale(form)

    assert res.success is False
    assert res.message == f"Insufficient stock for product ID {p.id}"
    assert app.repo.get_product(p.id).stock == 5


def test_add_sale_and_details_succeed(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=5)
    form = {
        "items": [{"product_id": p.id, "quantity": 2, "price": 10}],
        "total_amount": 20,
        "user_id": user.id,
        "status": "Completed",
    }

    res = app.sale_actions.add_sale(form)
    assert res.success is True
    assert res.message == "Sale added successfully"

    details = app.sale_actions.get_sale_details(res.data.id)
    assert details.success is True
    assert details.data.sale.status == "Completed"
    assert [it.quantity for it in details.data.items] == [2]


def test_unknown_status_is_rejected(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=5)
    res = app.purchase_actions.add_purchase(
        {
            "items": [{"product_id": p.id, "quantity": 1, "price": 1}],
            "total_amount": 1,
            "user_id": user.id,
            "status": "Shipped",
        }
    )

    assert res.success is False
    assert res.message.startswith("Status must be one of")


def test_purchase_status_action_moves_stock(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=0)
    created = app.purchase_actions.add_purchase(
        {"items": [{"product_id": p.id, "quantity": 3, "price": 1}], "total_amount": 3, "user_id": user.id}
    )

    res = app.purchase_actions.update_purchase_status(created.data.id, "Received", user.id)

    assert res.success is True
    assert res.data.status == "Received"
    assert app.repo.get_product(p.id).stock == 3


def test_product_actions_validate_form(app):
    res = app.product_actions.add_product({"name": "Lamp", "price": "abc"})
    assert res.success is False
    assert res.message == "Name and valid price are required"

    user = make_user(app.repo)
    ok = app.product_actions.add_product({"name": "Lamp", "price": "9.5", "stock": "3", "user_id": str(user.id)})
    assert ok.success is True
    assert ok.data.stock == 3

    adjusted = app.product_actions.adjust_product_stock(
        {"product_id": ok.data.id, "quantity": "2", "type": "increase", "user_id": user.id}
    )
    assert adjusted.message == "Stock increased successfully"
    assert adjusted.data.stock == 5


def test_list_actions_return_empty_list_on_failure(app):
    res = app.sale_actions.get_user_sales(None)

    assert res.success is False
    assert res.data == []


def test_database_failure_is_reported_with_retry_hint(tmp_path: Path):
    db = Database(tmp_path / "missing" / "dir" / "bizdesk.db", RetryPolicy(max_attempts=1, backoff_seconds=60))
    repo = SqliteRepository(db)
    actions = ProductActions(db, InventoryService(repo))

    res = actions.get_products()

    assert res.success is False
    assert res.message.startswith("Database error: ")
    assert res.message.endswith("Please try again later.")
    assert res.data == []
    assert db.is_connected() is False


def test_summary_actions_fall_back_to_zeroed_payloads(tmp_path: Path):
    db = Database(tmp_path / "missing" / "bizdesk.db")
    repo = SqliteRepository(db)
    actions = StockActions(db, StockService(repo), ReportingService(repo))

    stock = actions.get_stock_summary(1)
    dashboard = actions.get_user_dashboard_summary(1)

    assert stock.success is False
    assert stock.data == StockSummary()
    assert dashboard.data == DashboardSummary()


def test_action_result_serialises_without_empty_data():
    from bizdesk.domain.results import ActionResult

    assert ActionResult.fail("nope").as_dict() == {"success": False, "message": "nope"}
    assert ActionResult.ok("yes", [1]).as_dict() == {"success": True, "message": "yes", "data": [1]}


def test_party_actions_round_trip(app):
    user = make_user(app.repo)

    added = app.supplier_actions.add_supplier({"name": "Acme", "email": "sales@acme.test", "user_id": user.id})
    assert added.message == "Supplier added successfully"

    renamed = app.supplier_actions.update_supplier({"id": added.data.id, "name": "Acme Ltd", "user_id": user.id})
    assert renamed.data.name == "Acme Ltd"

    assert app.supplier_actions.update_supplier({"id": "", "name": "x"}).message == "ID and name are required"
    assert app.supplier_actions.delete_supplier(added.data.id).success is True
    assert app.supplier_actions.get_suppliers(user.id).data == []

    customer = app.customer_actions.add_customer({"name": "", "user_id": user.id})
    assert customer.success is False
    assert customer.message == "Name is required"


def test_non_finite_numbers_are_rejected_as_validation_errors(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=5)
    items = json.dumps([{"product_id": p.id, "quantity": 1, "price": 10}])

    for total in ("nan", "inf", "-Infinity"):
        res = app.sale_actions.add_sale({"items": items, "total_amount": total, "user_id": user.id})
        assert res.success is False
        assert "required" in res.message
        assert not res.message.startswith("Database error")

    res = app.sale_actions.add_sale({"items": items, "total_amount": "10", "user_id": "inf"})
    assert res.success is False
    assert "required" in res.message

    bad_qty = json.dumps([{"product_id": p.id, "quantity": float("inf"), "price": 10}])
    res = app.purchase_actions.add_purchase({"items": bad_qty, "total_amount": "10", "user_id": user.id})
    assert res.message == "Invalid items format"

    bad_price = json.dumps([{"product_id": p.id, "quantity": 1, "price": float("nan")}])
    res = app.purchase_actions.add_purchase({"items": bad_price, "total_amount": "10", "user_id": user.id})
    assert res.message == "Price must be >= 0."

    res = app.product_actions.add_product({"name": "Lamp", "price": "nan", "user_id": user.id})
    assert res.message == "Name and valid price are required"

    assert app.repo.list_sales(user.id) == []
    assert app.repo.list_purchases(user.id) == []
    assert app.repo.get_product(p.id).stock == 5
    assert app.db.is_connected() is True
