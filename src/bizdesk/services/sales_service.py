from __future__ import annotations

import logging
from typing import Iterable, Optional

from bizdesk.domain.errors import NotFoundError, ValidationError
from bizdesk.domain.models import SALE_STATUSES, SaleDetails, SaleHeader
from bizdesk.services.validation import clean_text, line_items, require_status, valid_amount

log = logging.getLogger("bizdesk.stock")


class SalesService:
    def __init__(self, repo):
        self.repo = repo

    def list_sales(self, user_id: int) -> list[SaleHeader]:
        if not user_id:
            raise ValidationError("User ID is required")
        return self.repo.list_sales(int(user_id))

    def get_details(self, sale_id: int) -> SaleDetails:
        if not sale_id:
            raise ValidationError("Sale ID is required")
        header = self.repo.get_sale(int(sale_id))
        if not header:
            raise NotFoundError("Sale not found")
        return SaleDetails(sale=header, items=self.repo.sale_items(int(sale_id)))

    def _check_customer(self, customer_id: Optional[int]) -> None:
        if customer_id and self.repo.get_customer(int(customer_id)) is None:
            raise NotFoundError("Customer not found")

    def create_sale(
        self,
        items: Iterable,
        total_amount: float,
        user_id: int,
        status: Optional[str] = None,
        customer_id: Optional[int] = None,
    ) -> SaleHeader:
        """
        items: [{product_id, quantity, price}]

        Stock leaves inventory at creation regardless of the sale status.
        """
        if not valid_amount(total_amount):
            raise ValidationError("Total amount must be a number >= 0.")
        status = require_status(status, SALE_STATUSES, "Pending")
        lines = line_items(self.repo, items)
        self._check_customer(customer_id)

        sale = self.repo.create_sale(customer_id or None, float(total_amount), status, lines, user_id)
        log.info("sale_created sale_id=%s items=%s total=%.2f actor=%s", sale.id, len(lines), total_amount, user_id)
        return sale

    def update_sale(
        self,
        sale_id: int,
        items: Iterable,
        total_amount: float,
        user_id: int,
        status: Optional[str] = None,
        customer_id: Optional[int] = None,
        sale_date: Optional[str] = None,
    ) -> SaleHeader:
        if not sale_id:
            raise ValidationError("Sale ID is required")
        if not valid_amount(total_amount):
            raise ValidationError("Total amount must be a number >= 0.")
        status = require_status(status, SALE_STATUSES, "Pending")
        lines = line_items(self.repo, items)
        self._check_customer(customer_id)

        sale = self.repo.update_sale(
            int(sale_id), customer_id or None, clean_text(sale_date), float(total_amount), status, lines, user_id
        )
        log.info("sale_updated sale_id=%s items=%s actor=%s", sale_id, len(lines), user_id)
        return sale

    def delete_sale(self, sale_id: int, user_id: Optional[int] = None) -> None:
        if not sale_id:
            raise ValidationError("Sale ID is required")
        self.repo.delete_sale(int(sale_id), user_id)
        log.info("sale_deleted sale_id=%s actor=%s", sale_id, user_id)
