from __future__ import annotations

import logging
from typing import Iterable, Optional

from bizdesk.domain.errors import NotFoundError, ValidationError
from bizdesk.domain.models import PURCHASE_STATUSES, PurchaseDetails, PurchaseHeader
from bizdesk.services.validation import clean_text, line_items, require_status, valid_amount

log = logging.getLogger("bizdesk.stock")


class PurchaseService:
    """Purchases only touch stock while their status is ``Received``."""

    def __init__(self, repo):
        self.repo = repo

    def list_purchases(self, user_id: Optional[int] = None) -> list[PurchaseHeader]:
        return self.repo.list_purchases(user_id)

    def get_details(self, purchase_id: int) -> PurchaseDetails:
        header = self.repo.get_purchase(int(purchase_id))
        if not header:
            raise NotFoundError("Purchase not found")
        return PurchaseDetails(purchase=header, items=self.repo.purchase_items(int(purchase_id)))

    def _check_supplier(self, supplier_id: Optional[int]) -> None:
        if supplier_id and self.repo.get_supplier(int(supplier_id)) is None:
            raise NotFoundError("Supplier not found")

    @staticmethod
    def _check_total(total_amount: Optional[float]) -> float:
        if not valid_amount(total_amount):
            raise ValidationError("Total amount must be a number >= 0.")
        return float(total_amount)

    def create_purchase(
        self,
        items: Iterable,
        total_amount: float,
        user_id: int,
        status: Optional[str] = None,
        supplier_id: Optional[int] = None,
        supplier: Optional[str] = None,
    ) -> PurchaseHeader:
        """
        items: [{product_id, quantity, price}]
        """
        total = self._check_total(total_amount)
        status = require_status(status, PURCHASE_STATUSES, "Pending")
        lines = line_items(self.repo, items)
        self._check_supplier(supplier_id)

        purchase = self.repo.create_purchase(supplier_id, clean_text(supplier), total, status, lines, user_id)
        log.info(
            "purchase_created purchase_id=%s status=%s items=%s actor=%s",
            purchase.id, status, len(lines), user_id,
        )
        return purchase

    def update_purchase(
        self,
        purchase_id: int,
        items: Iterable,
        total_amount: float,
        user_id: int,
        status: Optional[str] = None,
        supplier_id: Optional[int] = None,
        supplier: Optional[str] = None,
        purchase_date: Optional[str] = None,
    ) -> PurchaseHeader:
        if not purchase_id:
            raise ValidationError("Purchase ID is required")
        total = self._check_total(total_amount)
        status = require_status(status, PURCHASE_STATUSES, "Pending")
        lines = line_items(self.repo, items)
        self._check_supplier(supplier_id)

        purchase = self.repo.update_purchase(
            int(purchase_id), supplier_id, clean_text(supplier), clean_text(purchase_date), total, status, lines, user_id
        )
        log.info("purchase_updated purchase_id=%s status=%s actor=%s", purchase_id, status, user_id)
        return purchase

    def update_status(self, purchase_id: int, status: str, user_id: Optional[int] = None) -> PurchaseHeader:
        if not purchase_id or not clean_text(status):
            raise ValidationError("Purchase ID and status are required")
        status = require_status(status, PURCHASE_STATUSES, "Pending")
        purchase = self.repo.set_purchase_status(int(purchase_id), status, user_id)
        log.info("purchase_status purchase_id=%s status=%s actor=%s", purchase_id, status, user_id)
        return purchase

    def delete_purchase(self, purchase_id: int, user_id: Optional[int] = None) -> None:
        if not purchase_id:
            raise ValidationError("Purchase ID is required")
        self.repo.delete_purchase(int(purchase_id), user_id)
        log.info("purchase_deleted purchase_id=%s actor=%s", purchase_id, user_id)
