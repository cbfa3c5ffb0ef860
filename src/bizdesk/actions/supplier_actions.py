from __future__ import annotations

from typing import Optional

from bizdesk.actions.base import ActionHandler, Form, action, form_int, form_str
from bizdesk.domain.errors import ValidationError
from bizdesk.domain.results import ActionResult


class SupplierActions(ActionHandler):
    def __init__(self, db, suppliers):
        super().__init__(db)
        self.suppliers = suppliers

    @action("Get suppliers", default=list)
    def get_suppliers(self, user_id: Optional[int] = None) -> ActionResult:
        return ActionResult.ok(data=self.suppliers.list_suppliers(user_id))

    @action("Add supplier")
    def add_supplier(self, form: Form) -> ActionResult:
        supplier = self.suppliers.add_supplier(
            form_str(form, "name"),
            form_str(form, "email"),
            form_str(form, "phone"),
            form_str(form, "address"),
            form_int(form, "user_id"),
        )
        return ActionResult.ok("Supplier added successfully", supplier)

    @action("Update supplier")
    def update_supplier(self, form: Form) -> ActionResult:
        supplier_id = form_int(form, "id")
        name = form_str(form, "name")
        if not supplier_id or not name:
            raise ValidationError("ID and name are required")
        supplier = self.suppliers.update_supplier(
            supplier_id,
            name,
            form_str(form, "email"),
            form_str(form, "phone"),
            form_str(form, "address"),
            form_int(form, "user_id"),
        )
        return ActionResult.ok("Supplier updated successfully", supplier)

    @action("Delete supplier")
    def delete_supplier(self, supplier_id: int) -> ActionResult:
        if not supplier_id:
            raise ValidationError("Supplier ID is required")
        self.suppliers.delete_supplier(supplier_id)
        return ActionResult.ok("Supplier deleted successfully")
