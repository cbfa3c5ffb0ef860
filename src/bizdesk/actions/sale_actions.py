from __future__ import annotations

from bizdesk.actions.base import ActionHandler, Form, action, form_float, form_int, form_items, form_str
from bizdesk.domain.errors import ValidationError
from bizdesk.domain.results import ActionResult


class SaleActions(ActionHandler):
    def __init__(self, db, sales):
        super().__init__(db)
        self.sales = sales

    @action("Get user sales", default=list)
    def get_user_sales(self, user_id: int) -> ActionResult:
        return ActionResult.ok(data=self.sales.list_sales(user_id))

    @action("Get sale details")
    def get_sale_details(self, sale_id: int) -> ActionResult:
        return ActionResult.ok(data=self.sales.get_details(sale_id))

    @action("Add sale")
    def add_sale(self, form: Form) -> ActionResult:
        items = form_items(form)
        total = form_float(form, "total_amount")
        user_id = form_int(form, "user_id")
        if total is None or not items or not user_id:
            raise ValidationError("Total amount, at least one item, and user ID are required")
        sale = self.sales.create_sale(
            items,
            total,
            user_id,
            status=form_str(form, "status"),
            customer_id=form_int(form, "customer_id"),
        )
        return ActionResult.ok("Sale added successfully", sale)

    @action("Update sale")
    def update_sale(self, form: Form) -> ActionResult:
        items = form_items(form)
        sale_id = form_int(form, "id")
        total = form_float(form, "total_amount")
        user_id = form_int(form, "user_id")
        if not sale_id or total is None or not items or not user_id:
            raise ValidationError("Sale ID, total amount, at least one item, and user ID are required")
        sale = self.sales.update_sale(
            sale_id,
            items,
            total,
            user_id,
            status=form_str(form, "status"),
            customer_id=form_int(form, "customer_id"),
            sale_date=form_str(form, "sale_date"),
        )
        return ActionResult.ok("Sale updated successfully", sale)

    @action("Delete sale")
    def delete_sale(self, sale_id: int, user_id: int | None = None) -> ActionResult:
        self.sales.delete_sale(sale_id, user_id)
        return ActionResult.ok("Sale deleted successfully")
