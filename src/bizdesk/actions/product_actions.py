from __future__ import annotations

from typing import Optional

from bizdesk.actions.base import ActionHandler, Form, action, form_float, form_int, form_str
from bizdesk.domain.errors import ValidationError
from bizdesk.domain.results import ActionResult


class ProductActions(ActionHandler):
    def __init__(self, db, inventory):
        super().__init__(db)
        self.inventory = inventory

    @action("Get products", default=list)
    def get_products(self, user_id: Optional[int] = None) -> ActionResult:
        return ActionResult.ok(data=self.inventory.list_products(user_id))

    @action("Get product")
    def get_product_by_id(self, product_id: int) -> ActionResult:
        if not product_id:
            raise ValidationError("Product ID is required")
        return ActionResult.ok(data=self.inventory.get_product(product_id))

    @action("Add product")
    def add_product(self, form: Form) -> ActionResult:
        name = form_str(form, "name")
        price = form_float(form, "price")
        if not name or price is None:
            raise ValidationError("Name and valid price are required")
        product = self.inventory.add_product(
            name,
            price,
            stock=form_int(form, "stock") or 0,
            category=form_str(form, "category"),
            description=form_str(form, "description"),
            user_id=form_int(form, "user_id"),
        )
        return ActionResult.ok("Product added successfully", product)

    @action("Update product")
    def update_product(self, form: Form) -> ActionResult:
        product_id = form_int(form, "id")
        name = form_str(form, "name")
        price = form_float(form, "price")
        if not product_id or not name or price is None:
            raise ValidationError("ID, name, and valid price are required")
        product = self.inventory.update_product(
            product_id,
            name,
            price,
            stock=form_int(form, "stock") or 0,
            category=form_str(form, "category"),
            description=form_str(form, "description"),
            user_id=form_int(form, "user_id"),
        )
        return ActionResult.ok("Product updated successfully", product)

    @action("Delete product")
    def delete_product(self, product_id: int) -> ActionResult:
        if not product_id:
            raise ValidationError("Product ID is required")
        self.inventory.delete_product(product_id)
        return ActionResult.ok("Product deleted successfully")

    @action("Get product stock history", default=list)
    def get_product_stock_history(self, product_id: int) -> ActionResult:
        if not product_id:
            raise ValidationError("Product ID is required")
        return ActionResult.ok(data=self.inventory.stock_history(product_id))

    @action("Adjust product stock")
    def adjust_product_stock(self, form: Form) -> ActionResult:
        direction = form_str(form, "type")
        product = self.inventory.adjust_stock(
            form_int(form, "product_id"),
            form_int(form, "quantity"),
            direction,
            notes=form_str(form, "notes"),
            user_id=form_int(form, "user_id"),
        )
        verb = "increased" if direction == "increase" else "decreased"
        return ActionResult.ok(f"Stock {verb} successfully", product)
