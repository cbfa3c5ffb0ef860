import json
import threading

import pytest

from bizdesk.domain.errors import InsufficientStockError, NotFoundError, ValidationError

from conftest import make_product, make_user


def _stock(app, product_id: int) -> int:
    return app.repo.get_product(product_id).stock


def test_sale_larger_than_stock_fails_and_leaves_no_trace(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=5)

    with pytest.raises(InsufficientStockError, match=f"product ID {p.id}"):
        app.sales.create_sale([{"product_id": p.id, "quantity": 6, "price": 10}], 60, user.id)

    assert _stock(app, p.id) == 5
    assert app.repo.list_sales(user.id) == []
    assert app.repo.list_stock_movements(product_id=p.id) == []


def test_failing_second_line_rolls_back_the_first(app):
    user = make_user(app.repo)
    a = make_product(app.repo, user.id, "A", stock=5)
    b = make_product(app.repo, user.id, "B", stock=1)

    with pytest.raises(InsufficientStockError):
        app.sales.create_sale(
            [
                {"product_id": a.id, "quantity": 2, "price": 1},
                {"product_id": b.id, "quantity": 3, "price": 1},
            ],
            5,
            user.id,
        )

    assert _stock(app, a.id) == 5
    assert _stock(app, b.id) == 1


def test_sale_reduces_stock_and_records_out_movement(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=5)

    sale = app.sales.create_sale([{"product_id": p.id, "quantity": 2, "price": 10}], 20, user.id)

    assert sale.status == "Pending"
    assert _stock(app, p.id) == 3
    movements = app.repo.list_stock_movements(product_id=p.id)
    assert [(m.type, m.quantity, m.source, m.reference_id) for m in movements] == [("out", 2, "sale", sale.id)]


def test_sale_edit_applies_only_the_net_change(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=10)
    sale = app.sales.create_sale([{"product_id": p.id, "quantity": 4, "price": 5}], 20, user.id)
    assert _stock(app, p.id) == 6

    app.sales.update_sale(sale.id, [{"product_id": p.id, "quantity": 7, "price": 5}], 35, user.id)
    assert _stock(app, p.id) == 3

    app.sales.update_sale(sale.id, [{"product_id": p.id, "quantity": 1, "price": 5}], 5, user.id)
    assert _stock(app, p.id) == 9
    assert [it.quantity for it in app.repo.sale_items(sale.id)] == [1]


def test_sale_edit_beyond_available_stock_keeps_previous_state(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=5)
    sale = app.sales.create_sale([{"product_id": p.id, "quantity": 2, "price": 5}], 10, user.id)

    with pytest.raises(InsufficientStockError):
        app.sales.update_sale(sale.id, [{"product_id": p.id, "quantity": 8, "price": 5}], 40, user.id)

    assert _stock(app, p.id) == 3
    assert [it.quantity for it in app.repo.sale_items(sale.id)] == [2]
    assert app.repo.get_sale(sale.id).total_amount == 10


def test_sale_delete_restores_stock(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=5)
    sale = app.sales.create_sale([{"product_id": p.id, "quantity": 5, "price": 1}], 5, user.id)
    assert _stock(app, p.id) == 0

    app.sales.delete_sale(sale.id, user.id)

    assert _stock(app, p.id) == 5
    assert app.repo.get_sale(sale.id) is None


def test_pending_purchase_does_not_touch_stock_until_received(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=2)

    purchase = app.purchases.create_purchase(
        [{"product_id": p.id, "quantity": 10, "price": 3}], 30, user.id, supplier="Acme"
    )
    assert purchase.status == "Pending"
    assert _stock(app, p.id) == 2

    app.purchases.update_status(purchase.id, "Received", user.id)
    assert _stock(app, p.id) == 12

    # same status again is a no-op for stock
    app.purchases.update_status(purchase.id, "Received", user.id)
    assert _stock(app, p.id) == 12

    app.purchases.update_status(purchase.id, "Cancelled", user.id)
    assert _stock(app, p.id) == 2


def test_received_purchase_delete_round_trip(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=1)

    purchase = app.purchases.create_purchase(
        [{"product_id": p.id, "quantity": 4, "price": 2}], 8, user.id, status="Received"
    )
    assert _stock(app, p.id) == 5

    app.purchases.delete_purchase(purchase.id, user.id)
    assert _stock(app, p.id) == 1
    assert app.repo.get_purchase(purchase.id) is None


def test_received_purchase_cannot_be_deleted_once_stock_was_sold(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=0)
    purchase = app.purchases.create_purchase(
        [{"product_id": p.id, "quantity": 4, "price": 2}], 8, user.id, status="Received"
    )
    app.sales.create_sale([{"product_id": p.id, "quantity": 3, "price": 5}], 15, user.id)

    with pytest.raises(InsufficientStockError, match="^Cannot delete: "):
        app.purchases.delete_purchase(purchase.id, user.id)

    assert _stock(app, p.id) == 1
    assert app.repo.get_purchase(purchase.id) is not None


def test_purchase_edit_reverses_old_received_items_before_applying_new(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=0)
    purchase = app.purchases.create_purchase(
        [{"product_id": p.id, "quantity": 5, "price": 1}], 5, user.id, status="Received"
    )
    assert _stock(app, p.id) == 5

    app.purchases.update_purchase(
        purchase.id, [{"product_id": p.id, "quantity": 2, "price": 1}], 2, user.id, status="Received"
    )
    assert _stock(app, p.id) == 2

    app.purchases.update_purchase(
        purchase.id, [{"product_id": p.id, "quantity": 9, "price": 1}], 9, user.id, status="Pending"
    )
    assert _stock(app, p.id) == 0
    assert app.repo.get_purchase(purchase.id).status == "Pending"


def test_stock_out_movement_never_drives_stock_negative(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=3)

    with pytest.raises(InsufficientStockError, match="Insufficient stock for this operation"):
        app.stock.add_movement(p.id, 4, "out", "manual", user.id)
    assert _stock(app, p.id) == 3

    movement = app.stock.add_movement(p.id, 3, "out", "manual", user.id, notes="damaged")
    assert movement.type == "out"
    assert _stock(app, p.id) == 0


def test_stock_movement_validation(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=3)

    with pytest.raises(ValidationError, match="'in' or 'out'"):
        app.stock.add_movement(p.id, 1, "sideways", "manual", user.id)
    with pytest.raises(ValidationError, match="required"):
        app.stock.add_movement(p.id, 1, "in", None, user.id)
    with pytest.raises(NotFoundError):
        app.stock.add_movement(p.id + 100, 1, "in", "manual", user.id)


def test_manual_adjustment_writes_adjustment_history(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=4)

    with pytest.raises(InsufficientStockError, match="Insufficient stock for adjustment"):
        app.inventory.adjust_stock(p.id, 5, "decrease", user_id=user.id)

    product = app.inventory.adjust_stock(p.id, 3, "decrease", notes="count fix", user_id=user.id)
    assert product.stock == 1

    history = app.inventory.stock_history(p.id)
    assert history[0].type == "adjustment"
    assert history[0].notes == "count fix"
    # the initial stock is recorded too
    assert [h.notes for h in history][-1] == "Initial stock"


def test_product_edit_records_stock_delta(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=4)

    app.inventory.update_product(p.id, "Widget", 10.0, stock=9, user_id=user.id)

    latest = app.inventory.stock_history(p.id)[0]
    assert (latest.type, latest.quantity) == ("increase", 5)


def test_sale_with_unknown_customer_is_rejected(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=4)

    with pytest.raises(NotFoundError, match="Customer not found"):
        app.sales.create_sale([{"product_id": p.id, "quantity": 1, "price": 1}], 1, user.id, customer_id=999)
    assert _stock(app, p.id) == 4


def test_concurrent_sales_cannot_oversell(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=5)
    form = {
        "items": json.dumps([{"product_id": p.id, "quantity": 3, "price": 1}]),
        "total_amount": "3",
        "user_id": str(user.id),
    }
    barrier = threading.Barrier(8)
    results = []

    def sell():
        barrier.wait()
        results.append(app.sale_actions.add_sale(form))

    threads = [threading.Thread(target=sell) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(r.success for r in results) == 1
    assert {r.message for r in results if not r.success} == {f"Insufficient stock for product ID {p.id}"}
    assert _stock(app, p.id) == 2
    assert len(app.repo.list_sales(user.id)) == 1


def test_stock_stays_non_negative_across_mixed_operations(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=2)

    def item(qty):
        return [{"product_id": p.id, "quantity": qty, "price": 1}]

    def attempt(fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except InsufficientStockError:
            return None

    purchase = app.purchases.create_purchase(item(4), 4, user.id)
    steps = [
        (lambda: attempt(app.sales.create_sale, item(3), 3, user.id), 2),
        (lambda: app.purchases.update_status(purchase.id, "Received", user.id), 6),
        (lambda: attempt(app.sales.create_sale, item(5), 5, user.id), 1),
        (lambda: attempt(app.inventory.adjust_stock, p.id, 2, "decrease", user_id=user.id), 1),
        (lambda: attempt(app.purchases.update_status, purchase.id, "Cancelled", user.id), 1),
        (lambda: app.stock.add_movement(p.id, 3, "in", "manual", user.id), 4),
        (lambda: attempt(app.purchases.delete_purchase, purchase.id, user.id), 0),
        (lambda: attempt(app.stock.add_movement, p.id, 1, "out", "manual", user.id), 0),
        (lambda: app.inventory.adjust_stock(p.id, 2, "increase", user_id=user.id), 2),
    ]
    for run, expected in steps:
        run()
        stock = _stock(app, p.id)
        assert stock >= 0
        assert stock == expected

    sale = app.repo.list_sales(user.id)[0]
    assert attempt(app.sales.update_sale, sale.id, item(8), 8, user.id) is None
    assert _stock(app, p.id) == 2
    app.sales.update_sale(sale.id, item(7), 7, user.id)
    assert _stock(app, p.id) == 0
