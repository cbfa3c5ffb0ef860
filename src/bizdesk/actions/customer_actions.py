from __future__ import annotations

from typing import Optional

from bizdesk.actions.base import ActionHandler, Form, action, form_int, form_str
from bizdesk.domain.errors import ValidationError
from bizdesk.domain.results import ActionResult


class CustomerActions(ActionHandler):
    def __init__(self, db, customers):
        super().__init__(db)
        self.customers = customers

    @action("Get customers", default=list)
    def get_customers(self, user_id: Optional[int] = None) -> ActionResult:
        return ActionResult.ok(data=self.customers.list_customers(user_id))

    @action("Add customer")
    def add_customer(self, form: Form) -> ActionResult:
        customer = self.customers.add_customer(
            form_str(form, "name"),
            form_str(form, "email"),
            form_str(form, "phone"),
            form_str(form, "address"),
            form_int(form, "user_id"),
        )
        return ActionResult.ok("Customer added successfully", customer)

    @action("Update customer")
    def update_customer(self, form: Form) -> ActionResult:
        customer_id = form_int(form, "id")
        name = form_str(form, "name")
        if not customer_id or not name:
            raise ValidationError("ID and name are required")
        customer = self.customers.update_customer(
            customer_id,
            name,
            form_str(form, "email"),
            form_str(form, "phone"),
            form_str(form, "address"),
            form_int(form, "user_id"),
        )
        return ActionResult.ok("Customer updated successfully", customer)

    @action("Delete customer")
    def delete_customer(self, customer_id: int) -> ActionResult:
        if not customer_id:
            raise ValidationError("Customer ID is required")
        self.customers.delete_customer(customer_id)
        return ActionResult.ok("Customer deleted successfully")
