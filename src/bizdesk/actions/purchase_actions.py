from __future__ import annotations

from bizdesk.actions.base import ActionHandler, Form, action, form_float, form_int, form_items, form_str
from bizdesk.domain.errors import ValidationError
from bizdesk.domain.results import ActionResult


class PurchaseActions(ActionHandler):
    def __init__(self, db, purchases):
        super().__init__(db)
        self.purchases = purchases

    @action("Get purchases", default=list)
    def get_purchases(self) -> ActionResult:
        return ActionResult.ok(data=self.purchases.list_purchases())

    @action("Get user purchases", default=list)
    def get_user_purchases(self, user_id: int) -> ActionResult:
        if not user_id:
            raise ValidationError("User ID is required")
        return ActionResult.ok(data=self.purchases.list_purchases(user_id))

    @action("Get purchase details")
    def get_purchase_details(self, purchase_id: int) -> ActionResult:
        if not purchase_id:
            raise ValidationError("Purchase ID is required")
        return ActionResult.ok(data=self.purchases.get_details(purchase_id))

    @action("Add purchase")
    def add_purchase(self, form: Form) -> ActionResult:
        items = form_items(form)
        total = form_float(form, "total_amount")
        user_id = form_int(form, "user_id")
        if total is None or not items or not user_id:
            raise ValidationError("Total amount, at least one item, and user ID are required")
        purchase = self.purchases.create_purchase(
            items,
            total,
            user_id,
            status=form_str(form, "status"),
            supplier_id=form_int(form, "supplier_id"),
            supplier=form_str(form, "supplier"),
        )
        return ActionResult.ok("Purchase added successfully", purchase)

    @action("Update purchase")
    def update_purchase(self, form: Form) -> ActionResult:
        items = form_items(form)
        purchase_id = form_int(form, "id")
        total = form_float(form, "total_amount")
        user_id = form_int(form, "user_id")
        if not purchase_id or total is None or not items or not user_id:
            raise ValidationError("Purchase ID, total amount, at least one item, and user ID are required")
        purchase = self.purchases.update_purchase(
            purchase_id,
            items,
            total,
            user_id,
            status=form_str(form, "status"),
            supplier_id=form_int(form, "supplier_id"),
            supplier=form_str(form, "supplier"),
            purchase_date=form_str(form, "purchase_date"),
        )
        return ActionResult.ok("Purchase updated successfully", purchase)

    @action("Update purchase status")
    def update_purchase_status(self, purchase_id: int, status: str, user_id: int | None = None) -> ActionResult:
        purchase = self.purchases.update_status(purchase_id, status, user_id)
        return ActionResult.ok("Purchase status updated successfully", purchase)

    @action("Delete purchase")
    def delete_purchase(self, purchase_id: int, user_id: int | None = None) -> ActionResult:
        self.purchases.delete_purchase(purchase_id, user_id)
        return ActionResult.ok("Purchase deleted successfully")
