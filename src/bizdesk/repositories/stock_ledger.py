"""Stock counter primitives shared by every stock-changing transaction.

All functions take the cursor of an open transaction and never commit. A
decrease is a single conditional ``UPDATE ... WHERE stock >= ?``; zero
affected rows means either the product is gone or the stock is short, and
the caller's transaction is expected to roll back on the raised error.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from bizdesk.domain.errors import InsufficientStockError, NotFoundError

log = logging.getLogger("bizdesk.stock")


def _product_exists(cur: sqlite3.Cursor, product_id: int) -> bool:
    cur.execute("SELECT 1 FROM products WHERE id = ?", (int(product_id),))
    return cur.fetchone() is not None


def current_stock(cur: sqlite3.Cursor, product_id: int) -> int:
    cur.execute("SELECT stock FROM products WHERE id = ?", (int(product_id),))
    row = cur.fetchone()
    if row is None:
        raise NotFoundError(f"Product not found: {product_id}")
    return int(row[0])


def increase_stock(cur: sqlite3.Cursor, product_id: int, quantity: int) -> int:
    cur.execute(
        "UPDATE products SET stock = stock + ?, updated_at = datetime('now') WHERE id = ?",
        (int(quantity), int(product_id)),
    )
    if cur.rowcount == 0:
        raise NotFoundError(f"Product not found: {product_id}")
    return current_stock(cur, product_id)


def decrease_stock(
    cur: sqlite3.Cursor,
    product_id: int,
    quantity: int,
    message: str | None = None,
) -> int:
    cur.execute(
        """
        UPDATE products
        SET stock = stock - ?, updated_at = datetime('now')
        WHERE id = ? AND stock >= ?
        """,
        (int(quantity), int(product_id), int(quantity)),
    )
    if cur.rowcount == 0:
        if not _product_exists(cur, product_id):
            raise NotFoundError(f"Product not found: {product_id}")
        raise InsufficientStockError(
            message or f"Insufficient stock for product ID {product_id}",
            product_id=int(product_id),
        )
    return current_stock(cur, product_id)


def record_movement(
    cur: sqlite3.Cursor,
    product_id: int,
    quantity: int,
    movement_type: str,
    source: str,
    reference_id: Optional[int],
    notes: Optional[str],
    created_by: Optional[int],
) -> int:
    cur.execute(
        """
        INSERT INTO stock_movements (
            product_id, quantity, type, source, reference_id, notes, created_by
        ) VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (int(product_id), int(quantity), movement_type, source, reference_id, notes, created_by),
    )
    log.info(
        "stock_movement product_id=%s type=%s qty=%s source=%s ref=%s actor=%s",
        product_id, movement_type, quantity, source, reference_id, created_by,
    )
    return int(cur.lastrowid)


def record_history(
    cur: sqlite3.Cursor,
    product_id: int,
    quantity: int,
    history_type: str,
    reference_type: str,
    notes: Optional[str],
    created_by: Optional[int],
    reference_id: Optional[int] = None,
) -> int:
    cur.execute(
        """
        INSERT INTO product_stock_history (
            product_id, quantity, type, reference_id, reference_type, notes, created_by
        ) VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (int(product_id), int(quantity), history_type, reference_id, reference_type, notes, created_by),
    )
    log.info(
        "stock_history product_id=%s type=%s qty=%s ref_type=%s actor=%s",
        product_id, history_type, quantity, reference_type, created_by,
    )
    return int(cur.lastrowid)


def receive_items(
    cur: sqlite3.Cursor,
    items: list[tuple[int, int]],
    source: str,
    reference_id: Optional[int],
    notes: Optional[str],
    created_by: Optional[int],
) -> None:
    """Add each ``(product_id, quantity)`` to stock with an ``in`` ledger row."""
    for product_id, quantity in items:
        increase_stock(cur, product_id, quantity)
        record_movement(cur, product_id, quantity, "in", source, reference_id, notes, created_by)


def release_items(
    cur: sqlite3.Cursor,
    items: list[tuple[int, int]],
    source: str,
    reference_id: Optional[int],
    notes: Optional[str],
    created_by: Optional[int],
    message_prefix: str = "",
) -> None:
    """Take each ``(product_id, quantity)`` out of stock with an ``out`` ledger row."""
    for product_id, quantity in items:
        decrease_stock(
            cur,
            product_id,
            quantity,
            message=f"{message_prefix}Insufficient stock for product ID {product_id}",
        )
        record_movement(cur, product_id, quantity, "out", source, reference_id, notes, created_by)
