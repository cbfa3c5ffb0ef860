from __future__ import annotations

import logging
from typing import Optional

from bizdesk.domain.errors import NotFoundError, ValidationError
from bizdesk.domain.models import Supplier
from bizdesk.services.validation import clean_text, require_text

log = logging.getLogger(__name__)


class SupplierService:
    def __init__(self, repo):
        self.repo = repo

    def list_suppliers(self, user_id: Optional[int] = None) -> list[Supplier]:
        return self.repo.list_suppliers(user_id)

    def get_supplier(self, supplier_id: int) -> Supplier:
        c = self.repo.get_supplier(int(supplier_id))
        if not c:
            raise NotFoundError("Supplier not found")
        return c

    def add_supplier(self, name: str, email=None, phone=None, address=None, user_id: Optional[int] = None) -> Supplier:
        name = require_text(name, "Name is required")
        supplier = self.repo.create_supplier(name, clean_text(email), clean_text(phone), clean_text(address), user_id)
        log.info("supplier_created id=%s actor=%s", supplier.id, user_id)
        return supplier

    def update_supplier(
        self, supplier_id: int, name: str, email=None, phone=None, address=None, user_id: Optional[int] = None
    ) -> Supplier:
        if not supplier_id:
            raise ValidationError("ID and name are required")
        name = require_text(name, "ID and name are required")
        supplier = self.repo.update_supplier(
            int(supplier_id), name, clean_text(email), clean_text(phone), clean_text(address), user_id
        )
        if supplier is None:
            raise NotFoundError("Failed to update supplier")
        return supplier

    def delete_supplier(self, supplier_id: int) -> None:
        if not self.repo.delete_supplier(int(supplier_id)):
            raise NotFoundError("Failed to delete supplier")
        log.info("supplier_deleted id=%s", supplier_id)
