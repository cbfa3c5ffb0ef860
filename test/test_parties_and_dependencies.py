import pytest

from bizdesk.domain.errors import DependencyError, NotFoundError, ValidationError

from conftest import make_product, make_user


def test_customer_with_sales_cannot_be_deleted(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=5)
    customer = app.customers.add_customer("Ana", "ana@example.com", user_id=user.id)
    app.sales.create_sale([{"product_id": p.id, "quantity": 1, "price": 10}], 10, user.id, customer_id=customer.id)

    with pytest.raises(DependencyError, match="Cannot delete customer with existing sales"):
        app.customers.delete_customer(customer.id)

    listed = app.customers.list_customers(user.id)
    assert [(c.name, c.order_count) for c in listed] == [("Ana", 1)]


def test_supplier_with_purchases_cannot_be_deleted(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=0)
    supplier = app.suppliers.add_supplier("Acme", user_id=user.id)
    app.purchases.create_purchase(
        [{"product_id": p.id, "quantity": 1, "price": 1}], 1, user.id, supplier_id=supplier.id
    )

    with pytest.raises(DependencyError, match="Cannot delete supplier with existing purchases"):
        app.suppliers.delete_supplier(supplier.id)

    details = app.purchases.get_details(app.repo.list_purchases(user.id)[0].id)
    assert details.purchase.supplier_name == "Acme"
    assert details.items[0].product_name == "Widget"


def test_product_used_in_a_sale_cannot_be_deleted(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=5)
    app.sales.create_sale([{"product_id": p.id, "quantity": 1, "price": 10}], 10, user.id)

    with pytest.raises(DependencyError, match="used in sales or purchases"):
        app.inventory.delete_product(p.id)
    assert app.repo.get_product(p.id) is not None


def test_unused_product_is_deleted_with_its_history(app):
    user = make_user(app.repo)
    p = make_product(app.repo, user.id, stock=5)
    app.stock.add_movement(p.id, 2, "in", "manual", user.id)

    app.inventory.delete_product(p.id)

    assert app.repo.get_product(p.id) is None
    assert app.repo.stock_history_for_product(p.id) == []
    with pytest.raises(NotFoundError):
        app.inventory.delete_product(p.id)


def test_customer_crud(app):
    user = make_user(app.repo)
    c = app.customers.add_customer("  Bob  ", " bob@example.com ", None, "Main st", user.id)
    assert c.name == "Bob"
    assert c.email == "bob@example.com"

    updated = app.customers.update_customer(c.id, "Robert", phone="555", user_id=user.id)
    assert updated.name == "Robert"
    assert updated.phone == "555"

    app.customers.delete_customer(c.id)
    assert app.customers.list_customers(user.id) == []


def test_party_name_is_required(app):
    with pytest.raises(ValidationError):
        app.customers.add_customer("   ")
    with pytest.raises(ValidationError):
        app.suppliers.add_supplier("")


def test_products_are_listed_per_owner(app):
    alice = make_user(app.repo, "alice@example.com")
    bob = make_user(app.repo, "bob@example.com")
    make_product(app.repo, alice.id, "Hammer")
    make_product(app.repo, bob.id, "Saw")

    assert [p.name for p in app.inventory.list_products(alice.id)] == ["Hammer"]
    assert len(app.inventory.list_products()) == 2

    with pytest.raises(NotFoundError, match="Failed to update product"):
        app.inventory.update_product(
            app.inventory.list_products(bob.id)[0].id, "Saw", 12.0, stock=1, user_id=alice.id
        )
