from __future__ import annotations

import logging
from typing import Optional

from bizdesk.domain.errors import NotFoundError, ValidationError
from bizdesk.domain.models import Product, StockHistoryEntry
from bizdesk.services.validation import clean_text, require_text, valid_amount

log = logging.getLogger("bizdesk.stock")


class InventoryService:
    def __init__(self, repo):
        self.repo = repo

    def list_products(self, user_id: Optional[int] = None) -> list[Product]:
        return self.repo.list_products(user_id)

    def get_product(self, product_id: int) -> Product:
        p = self.repo.get_product(int(product_id))
        if not p:
            raise NotFoundError("Product not found")
        return p

    def add_product(
        self,
        name: str,
        price: float,
        stock: int = 0,
        category: Optional[str] = None,
        description: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Product:
        name = require_text(name, "Name and valid price are required")
        if not valid_amount(price):
            raise ValidationError("Name and valid price are required")
        stock = int(stock or 0)
        if stock < 0:
            raise ValidationError("Stock must be >= 0.")
        product = self.repo.create_product(name, clean_text(category), clean_text(description), float(price), stock, user_id)
        log.info("product_created id=%s stock=%s actor=%s", product.id, stock, user_id)
        return product

    def update_product(
        self,
        product_id: int,
        name: str,
        price: float,
        stock: int = 0,
        category: Optional[str] = None,
        description: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Product:
        name = clean_text(name)
        if not product_id or not name or not valid_amount(price):
            raise ValidationError("ID, name, and valid price are required")
        stock = int(stock or 0)
        if stock < 0:
            raise ValidationError("Stock must be >= 0.")
        product = self.repo.update_product(
            int(product_id), name, clean_text(category), clean_text(description), float(price), stock, user_id
        )
        if product is None:
            raise NotFoundError("Failed to update product")
        log.info("product_updated id=%s stock=%s actor=%s", product.id, product.stock, user_id)
        return product

    def delete_product(self, product_id: int) -> None:
        if not self.repo.delete_product(int(product_id)):
            raise NotFoundError("Failed to delete product")
        log.info("product_deleted id=%s", product_id)

    def stock_history(self, product_id: int) -> list[StockHistoryEntry]:
        return self.repo.stock_history_for_product(int(product_id))

    def adjust_stock(
        self,
        product_id: int,
        quantity: int,
        direction: str,
        notes: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Product:
        if not product_id or quantity is None or quantity <= 0 or not direction:
            raise ValidationError("Product ID, valid quantity, and adjustment type are required")
        if direction not in ("increase", "decrease"):
            raise ValidationError("Type must be 'increase' or 'decrease'")
        product = self.repo.adjust_product_stock(int(product_id), int(quantity), direction, clean_text(notes), user_id)
        log.info(
            "stock_adjusted product_id=%s direction=%s qty=%s stock_after=%s actor=%s",
            product_id, direction, quantity, product.stock, user_id,
        )
        return product
