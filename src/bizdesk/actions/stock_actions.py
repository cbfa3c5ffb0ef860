from __future__ import annotations

from pathlib import Path
from typing import Optional

from bizdesk.actions.base import ActionHandler, Form, action, form_int, form_str
from bizdesk.domain.errors import ValidationError
from bizdesk.domain.models import DashboardSummary, StockSummary
from bizdesk.domain.results import ActionResult


class StockActions(ActionHandler):
    def __init__(self, db, stock, reporting):
        super().__init__(db)
        self.stock = stock
        self.reporting = reporting

    @action("Get stock history", default=list)
    def get_stock_history(self, product_id: Optional[int] = None, user_id: Optional[int] = None) -> ActionResult:
        return ActionResult.ok(data=self.stock.history(product_id, user_id))

    @action("Get low stock products", default=list)
    def get_low_stock_products(self, user_id: int, threshold: Optional[int] = None) -> ActionResult:
        return ActionResult.ok(data=self.stock.low_stock_products(user_id, threshold))

    @action("Add stock movement")
    def add_stock_movement(self, form: Form) -> ActionResult:
        movement = self.stock.add_movement(
            form_int(form, "product_id"),
            form_int(form, "quantity"),
            form_str(form, "type"),
            form_str(form, "source"),
            form_int(form, "user_id"),
            reference_id=form_int(form, "reference_id"),
            notes=form_str(form, "notes"),
        )
        return ActionResult.ok("Stock movement recorded successfully", movement)

    @action("Get stock summary", default=StockSummary)
    def get_stock_summary(self, user_id: int) -> ActionResult:
        return ActionResult.ok(data=self.stock.summary(user_id))

    @action("Get user dashboard summary", default=DashboardSummary)
    def get_user_dashboard_summary(self, user_id: int) -> ActionResult:
        return ActionResult.ok(data=self.stock.dashboard(user_id))

    @action("Export dashboard report")
    def export_dashboard_report(self, user_id: int, path: str | Path) -> ActionResult:
        if not path:
            raise ValidationError("Output path is required")
        out = self.reporting.export_dashboard_excel(path, user_id)
        return ActionResult.ok("Report exported successfully", out)
