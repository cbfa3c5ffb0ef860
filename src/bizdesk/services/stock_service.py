from __future__ import annotations

import logging
from typing import Optional

from bizdesk.domain.errors import ValidationError
from bizdesk.domain.models import DashboardSummary, Product, StockMovement, StockSummary
from bizdesk.services.validation import clean_text

log = logging.getLogger("bizdesk.stock")

MOVEMENT_TYPES = ("in", "out")


class StockService:
    def __init__(self, repo, low_stock_threshold: int = 10):
        self.repo = repo
        self.low_stock_threshold = int(low_stock_threshold)

    def history(self, product_id: Optional[int] = None, user_id: Optional[int] = None) -> list[StockMovement]:
        return self.repo.list_stock_movements(product_id=product_id, user_id=user_id)

    def low_stock_products(self, user_id: int, threshold: Optional[int] = None) -> list[Product]:
        limit = self.low_stock_threshold if threshold is None else int(threshold)
        return self.repo.low_stock_products(int(user_id), limit)

    def add_movement(
        self,
        product_id: int,
        quantity: int,
        movement_type: str,
        source: str,
        user_id: int,
        reference_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> StockMovement:
        source = clean_text(source)
        if not product_id or not quantity or not movement_type or not source or not user_id:
            raise ValidationError("Product ID, quantity, type, source, and user ID are required")
        if movement_type not in MOVEMENT_TYPES:
            raise ValidationError("Type must be 'in' or 'out'")
        if quantity <= 0:
            raise ValidationError("Quantity must be >= 1.")

        movement = self.repo.add_stock_movement(
            int(product_id), int(quantity), movement_type, source, reference_id, clean_text(notes), int(user_id)
        )
        log.info(
            "stock_movement_added id=%s product_id=%s type=%s qty=%s actor=%s",
            movement.id, product_id, movement_type, quantity, user_id,
        )
        return movement

    def summary(self, user_id: int) -> StockSummary:
        return self.repo.stock_summary(int(user_id), self.low_stock_threshold)

    def dashboard(self, user_id: int) -> DashboardSummary:
        if not user_id:
            raise ValidationError("User ID is required")
        return self.repo.dashboard_summary(int(user_id), self.low_stock_threshold)
