from __future__ import annotations

import hashlib
import hmac
import secrets
import sqlite3
from typing import Iterable, Optional

from bizdesk.domain.errors import DependencyError, NotFoundError
from bizdesk.domain.models import (
    RECEIVED,
    Customer,
    DashboardSummary,
    LineItem,
    Product,
    PurchaseHeader,
    PurchaseLine,
    SaleHeader,
    SaleLine,
    StockHistoryEntry,
    StockMovement,
    StockSummary,
    Supplier,
    TopCustomer,
    User,
)
from bizdesk.repositories import stock_ledger
from bizdesk.repositories.database import Database
from bizdesk.repositories.schema import run_migrations


_PRODUCT_COLS = "id, name, category, description, price, stock, created_by, created_at, updated_at"
_PURCHASE_COLS = (
    "p.id, p.supplier_id, p.supplier, p.total_amount, p.status, p.purchase_date, "
    "p.created_by, p.created_at, p.updated_at"
)
_SALE_COLS = (
    "s.id, s.customer_id, s.total_amount, s.status, s.sale_date, "
    "s.created_by, s.created_at, s.updated_at"
)


def _product(r: sqlite3.Row) -> Product:
    return Product(
        id=int(r["id"]),
        name=str(r["name"]),
        category=r["category"],
        description=r["description"],
        price=float(r["price"]),
        stock=int(r["stock"]),
        created_by=r["created_by"],
        created_at=str(r["created_at"]),
        updated_at=str(r["updated_at"]),
    )


def _purchase(r: sqlite3.Row) -> PurchaseHeader:
    keys = r.keys()
    return PurchaseHeader(
        id=int(r["id"]),
        supplier_id=r["supplier_id"],
        supplier=r["supplier"],
        total_amount=float(r["total_amount"]),
        status=str(r["status"]),
        purchase_date=str(r["purchase_date"]),
        created_by=r["created_by"],
        created_at=str(r["created_at"]),
        updated_at=str(r["updated_at"]),
        supplier_name=r["supplier_name"] if "supplier_name" in keys else None,
    )


def _sale(r: sqlite3.Row) -> SaleHeader:
    keys = r.keys()
    return SaleHeader(
        id=int(r["id"]),
        customer_id=r["customer_id"],
        total_amount=float(r["total_amount"]),
        status=str(r["status"]),
        sale_date=str(r["sale_date"]),
        created_by=r["created_by"],
        created_at=str(r["created_at"]),
        updated_at=str(r["updated_at"]),
        customer_name=r["customer_name"] if "customer_name" in keys else None,
    )


def _movement(r: sqlite3.Row) -> StockMovement:
    keys = r.keys()
    return StockMovement(
        id=int(r["id"]),
        product_id=int(r["product_id"]),
        quantity=int(r["quantity"]),
        type=str(r["type"]),
        source=str(r["source"]),
        reference_id=r["reference_id"],
        notes=r["notes"],
        created_by=r["created_by"],
        created_at=str(r["created_at"]),
        product_name=r["product_name"] if "product_name" in keys else None,
        category=r["category"] if "category" in keys else None,
        user_name=r["user_name"] if "user_name" in keys else None,
    )


def _pairs(items: Iterable) -> list[tuple[int, int]]:
    """(product_id, quantity) pairs from stored rows or LineItems."""
    out = []
    for it in items:
        if isinstance(it, LineItem):
            out.append((it.product_id, it.quantity))
        else:
            out.append((int(it["product_id"]), int(it["quantity"])))
    return out


class SqliteRepository:
    def __init__(self, db: Database):
        self.db = db

    def init_db(self) -> int:
        return run_migrations(self.db)

    # ---------- Users ----------
    def create_user(self, name: str, email: str, password: str, auth_token: str) -> User:
        with self.db.transaction() as cur:
            cur.execute(
                """
                INSERT INTO users (name, email, password_hash, auth_token)
                VALUES (?, ?, ?, ?)
                """,
                (name, email, self._hash_password(password), auth_token),
            )
            uid = int(cur.lastrowid)
            cur.execute("SELECT id, name, email, auth_token, created_at FROM users WHERE id = ?", (uid,))
            r = cur.fetchone()
        return User(id=int(r["id"]), name=str(r["name"]), email=str(r["email"]), auth_token=r["auth_token"], created_at=str(r["created_at"]))

    def email_exists(self, email: str) -> bool:
        return self.db.fetch_one("SELECT 1 FROM users WHERE email = ?", (email,)) is not None

    def get_user_security_state(self, email: str) -> tuple[int, Optional[str]] | None:
        r = self.db.fetch_one("SELECT failed_attempts, locked_until FROM users WHERE email = ?", (email,))
        if not r:
            return None
        return int(r["failed_attempts"]), (str(r["locked_until"]) if r["locked_until"] is not None else None)

    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        r = self.db.fetch_one(
            "SELECT id, name, email, password_hash, auth_token, created_at FROM users WHERE email = ?",
            (email,),
        )
        if not r or not self._verify_password(str(r["password_hash"]), password):
            return None
        return User(id=int(r["id"]), name=str(r["name"]), email=str(r["email"]), auth_token=r["auth_token"], created_at=str(r["created_at"]))

    def record_login_failure(self, email: str, max_attempts: int, lockout_seconds: int) -> tuple[int, Optional[str]]:
        with self.db.transaction() as cur:
            cur.execute("SELECT id, failed_attempts FROM users WHERE email = ?", (email,))
            row = cur.fetchone()
            if not row:
                return 0, None
            attempts = int(row["failed_attempts"]) + 1
            locked_until = None
            if attempts >= int(max_attempts):
                attempts = 0
                cur.execute(
                    "UPDATE users SET failed_attempts = ?, locked_until = datetime('now', ?) WHERE id = ?",
                    (attempts, f"+{int(lockout_seconds)} seconds", int(row["id"])),
                )
                cur.execute("SELECT locked_until FROM users WHERE id = ?", (int(row["id"]),))
                locked_until = str(cur.fetchone()[0])
            else:
                cur.execute("UPDATE users SET failed_attempts = ? WHERE id = ?", (attempts, int(row["id"])))
        return attempts, locked_until

    def clear_login_guard(self, user_id: int) -> None:
        self.db.execute("UPDATE users SET failed_attempts = 0, locked_until = NULL WHERE id = ?", (int(user_id),))

    def set_auth_token(self, user_id: int, token: str) -> None:
        self.db.execute("UPDATE users SET auth_token = ? WHERE id = ?", (token, int(user_id)))

    def get_user_by_token(self, token: str) -> Optional[User]:
        r = self.db.fetch_one("SELECT id, name, email, created_at FROM users WHERE auth_token = ?", (token,))
        if not r:
            return None
        return User(id=int(r["id"]), name=str(r["name"]), email=str(r["email"]), created_at=str(r["created_at"]))

    # ---------- Products ----------
    def list_products(self, user_id: Optional[int] = None) -> list[Product]:
        if user_id:
            rows = self.db.fetch_all(
                f"SELECT {_PRODUCT_COLS} FROM products WHERE created_by = ? ORDER BY created_at DESC, id DESC",
                (int(user_id),),
            )
        else:
            rows = self.db.fetch_all(f"SELECT {_PRODUCT_COLS} FROM products ORDER BY created_at DESC, id DESC")
        return [_product(r) for r in rows]

    def get_product(self, product_id: int) -> Optional[Product]:
        r = self.db.fetch_one(f"SELECT {_PRODUCT_COLS} FROM products WHERE id = ?", (int(product_id),))
        return _product(r) if r else None

    def create_product(
        self,
        name: str,
        category: Optional[str],
        description: Optional[str],
        price: float,
        stock: int,
        created_by: Optional[int],
    ) -> Product:
        with self.db.transaction() as cur:
            cur.execute(
                """
                INSERT INTO products (name, category, description, price, stock, created_by)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (name, category, description, float(price), int(stock), created_by),
            )
            pid = int(cur.lastrowid)
            if stock > 0:
                stock_ledger.record_history(cur, pid, stock, "adjustment", "manual", "Initial stock", created_by)
            cur.execute(f"SELECT {_PRODUCT_COLS} FROM products WHERE id = ?", (pid,))
            return _product(cur.fetchone())

    def update_product(
        self,
        product_id: int,
        name: str,
        category: Optional[str],
        description: Optional[str],
        price: float,
        stock: int,
        user_id: Optional[int] = None,
    ) -> Optional[Product]:
        """Returns None when ``user_id`` is given and does not own the product."""
        with self.db.transaction() as cur:
            cur.execute(f"SELECT {_PRODUCT_COLS} FROM products WHERE id = ?", (int(product_id),))
            current = cur.fetchone()
            if current is None:
                raise NotFoundError("Product not found")

            sql = """
                UPDATE products
                SET name = ?, category = ?, description = ?, price = ?, stock = ?, updated_at = datetime('now')
                WHERE id = ?
            """
            params: list = [name, category, description, float(price), int(stock), int(product_id)]
            if user_id:
                sql += " AND created_by = ?"
                params.append(int(user_id))
            cur.execute(sql, params)
            if cur.rowcount == 0:
                return None

            old_stock = int(current["stock"])
            if stock != old_stock:
                delta = stock - old_stock
                stock_ledger.record_history(
                    cur,
                    product_id,
                    abs(delta),
                    "increase" if delta > 0 else "decrease",
                    "manual",
                    "Stock adjustment from product edit",
                    user_id or current["created_by"],
                )
            cur.execute(f"SELECT {_PRODUCT_COLS} FROM products WHERE id = ?", (int(product_id),))
            return _product(cur.fetchone())

    def delete_product(self, product_id: int) -> bool:
        with self.db.transaction() as cur:
            cur.execute("SELECT COUNT(*) FROM sale_items WHERE product_id = ?", (int(product_id),))
            used_in_sales = int(cur.fetchone()[0])
            cur.execute("SELECT COUNT(*) FROM purchase_items WHERE product_id = ?", (int(product_id),))
            used_in_purchases = int(cur.fetchone()[0])
            if used_in_sales or used_in_purchases:
                raise DependencyError("Cannot delete product that has been used in sales or purchases")

            cur.execute("DELETE FROM product_stock_history WHERE product_id = ?", (int(product_id),))
            cur.execute("DELETE FROM stock_movements WHERE product_id = ?", (int(product_id),))
            cur.execute("DELETE FROM products WHERE id = ?", (int(product_id),))
            return cur.rowcount > 0

    def stock_history_for_product(self, product_id: int) -> list[StockHistoryEntry]:
        rows = self.db.fetch_all(
            """
            SELECT id, product_id, quantity, type, reference_id, reference_type, notes, created_at AS date
            FROM product_stock_history
            WHERE product_id = ?
            ORDER BY created_at DESC, id DESC
            """,
            (int(product_id),),
        )
        return [
            StockHistoryEntry(
                id=int(r["id"]),
                product_id=int(r["product_id"]),
                quantity=int(r["quantity"]),
                type=str(r["type"]),
                reference_id=r["reference_id"],
                reference_type=r["reference_type"],
                notes=r["notes"],
                date=str(r["date"]),
            )
            for r in rows
        ]

    def adjust_product_stock(
        self,
        product_id: int,
        quantity: int,
        direction: str,
        notes: Optional[str],
        user_id: Optional[int],
    ) -> Product:
        with self.db.transaction() as cur:
            if direction == "increase":
                stock_ledger.increase_stock(cur, product_id, quantity)
            else:
                stock_ledger.decrease_stock(cur, product_id, quantity, message="Insufficient stock for adjustment")
            # manual adjustments keep the 'adjustment' tag in both directions
            stock_ledger.record_history(
                cur, product_id, quantity, "adjustment", "manual", notes or "Manual stock adjustment", user_id
            )
            cur.execute(f"SELECT {_PRODUCT_COLS} FROM products WHERE id = ?", (int(product_id),))
            return _product(cur.fetchone())

    # ---------- Customers / Suppliers ----------
    def _list_parties(self, table: str, child_table: str, child_fk: str, count_col: str, user_id: Optional[int]) -> list[sqlite3.Row]:
        where = "WHERE t.created_by = ?" if user_id else ""
        params = (int(user_id),) if user_id else ()
        return self.db.fetch_all(
            f"""
            SELECT t.id, t.name, t.email, t.phone, t.address, t.created_by, t.created_at, t.updated_at,
                   COUNT(c.id) AS {count_col}
            FROM {table} t
            LEFT JOIN {child_table} c ON t.id = c.{child_fk}
            {where}
            GROUP BY t.id
            ORDER BY t.created_at DESC, t.id DESC
            """,
            params,
        )

    def _insert_party(self, table: str, name: str, email, phone, address, created_by) -> int:
        res = self.db.execute(
            f"INSERT INTO {table} (name, email, phone, address, created_by) VALUES (?, ?, ?, ?, ?)",
            (name, email, phone, address, created_by),
        )
        return int(res.lastrowid)

    def _update_party(self, table: str, party_id: int, name: str, email, phone, address, user_id) -> bool:
        sql = f"""
            UPDATE {table}
            SET name = ?, email = ?, phone = ?, address = ?, updated_at = datetime('now')
            WHERE id = ?
        """
        params: list = [name, email, phone, address, int(party_id)]
        if user_id:
            sql += " AND created_by = ?"
            params.append(int(user_id))
        return self.db.execute(sql, params).rowcount > 0

    def _delete_party(self, table: str, party_id: int, child_table: str, child_fk: str, blocked_message: str) -> bool:
        with self.db.transaction() as cur:
            cur.execute(f"SELECT COUNT(*) FROM {child_table} WHERE {child_fk} = ?", (int(party_id),))
            if int(cur.fetchone()[0]) > 0:
                raise DependencyError(blocked_message)
            cur.execute(f"DELETE FROM {table} WHERE id = ?", (int(party_id),))
            return cur.rowcount > 0

    def list_customers(self, user_id: Optional[int] = None) -> list[Customer]:
        rows = self._list_parties("customers", "sales", "customer_id", "order_count", user_id)
        return [Customer(**dict(r)) for r in rows]

    def get_customer(self, customer_id: int) -> Optional[Customer]:
        r = self.db.fetch_one(
            "SELECT id, name, email, phone, address, created_by, created_at, updated_at FROM customers WHERE id = ?",
            (int(customer_id),),
        )
        return Customer(**dict(r)) if r else None

    def create_customer(self, name: str, email, phone, address, created_by) -> Customer:
        cid = self._insert_party("customers", name, email, phone, address, created_by)
        return self.get_customer(cid)

    def update_customer(self, customer_id: int, name: str, email, phone, address, user_id=None) -> Optional[Customer]:
        if not self._update_party("customers", customer_id, name, email, phone, address, user_id):
            return None
        return self.get_customer(customer_id)

    def delete_customer(self, customer_id: int) -> bool:
        return self._delete_party(
            "customers", customer_id, "sales", "customer_id", "Cannot delete customer with existing sales"
        )

    def list_suppliers(self, user_id: Optional[int] = None) -> list[Supplier]:
        rows = self._list_parties("suppliers", "purchases", "supplier_id", "purchase_count", user_id)
        return [Supplier(**dict(r)) for r in rows]

    def get_supplier(self, supplier_id: int) -> Optional[Supplier]:
        r = self.db.fetch_one(
            "SELECT id, name, email, phone, address, created_by, created_at, updated_at FROM suppliers WHERE id = ?",
            (int(supplier_id),),
        )
        return Supplier(**dict(r)) if r else None

    def create_supplier(self, name: str, email, phone, address, created_by) -> Supplier:
        sid = self._insert_party("suppliers", name, email, phone, address, created_by)
        return self.get_supplier(sid)

    def update_supplier(self, supplier_id: int, name: str, email, phone, address, user_id=None) -> Optional[Supplier]:
        if not self._update_party("suppliers", supplier_id, name, email, phone, address, user_id):
            return None
        return self.get_supplier(supplier_id)

    def delete_supplier(self, supplier_id: int) -> bool:
        return self._delete_party(
            "suppliers", supplier_id, "purchases", "supplier_id", "Cannot delete supplier with existing purchases"
        )

    # ---------- Purchases ----------
    def list_purchases(self, user_id: Optional[int] = None, limit: Optional[int] = None) -> list[PurchaseHeader]:
        where = "WHERE p.created_by = ?" if user_id else ""
        params: list = [int(user_id)] if user_id else []
        tail = ""
        if limit:
            tail = "LIMIT ?"
            params.append(int(limit))
        rows = self.db.fetch_all(
            f"""
            SELECT {_PURCHASE_COLS}, s.name AS supplier_name
            FROM purchases p
            LEFT JOIN suppliers s ON p.supplier_id = s.id
            {where}
            ORDER BY p.purchase_date DESC, p.id DESC
            {tail}
            """,
            params,
        )
        return [_purchase(r) for r in rows]

    def get_purchase(self, purchase_id: int) -> Optional[PurchaseHeader]:
        r = self.db.fetch_one(
            f"""
            SELECT {_PURCHASE_COLS}, s.name AS supplier_name
            FROM purchases p
            LEFT JOIN suppliers s ON p.supplier_id = s.id
            WHERE p.id = ?
            """,
            (int(purchase_id),),
        )
        return _purchase(r) if r else None

    def purchase_items(self, purchase_id: int) -> list[PurchaseLine]:
        rows = self.db.fetch_all(
            """
            SELECT pi.id, pi.purchase_id, pi.product_id, pi.quantity, pi.price,
                   p.name AS product_name, p.category
            FROM purchase_items pi
            JOIN products p ON pi.product_id = p.id
            WHERE pi.purchase_id = ?
            ORDER BY pi.id
            """,
            (int(purchase_id),),
        )
        return [PurchaseLine(**dict(r)) for r in rows]

    @staticmethod
    def _insert_purchase_items(cur: sqlite3.Cursor, purchase_id: int, items: list[LineItem]) -> None:
        for it in items:
            cur.execute(
                "INSERT INTO purchase_items (purchase_id, product_id, quantity, price) VALUES (?, ?, ?, ?)",
                (purchase_id, it.product_id, it.quantity, it.price),
            )

    def create_purchase(
        self,
        supplier_id: Optional[int],
        supplier: Optional[str],
        total_amount: float,
        status: str,
        items: list[LineItem],
        user_id: Optional[int],
    ) -> PurchaseHeader:
        with self.db.transaction() as cur:
            cur.execute(
                """
                INSERT INTO purchases (supplier_id, supplier, total_amount, status, created_by, purchase_date)
                VALUES (?, ?, ?, ?, ?, datetime('now'))
                """,
                (supplier_id, supplier, float(total_amount), status, user_id),
            )
            purchase_id = int(cur.lastrowid)
            self._insert_purchase_items(cur, purchase_id, items)
            if status == RECEIVED:
                stock_ledger.receive_items(
                    cur, _pairs(items), "purchase", purchase_id, f"Purchase #{purchase_id} received", user_id
                )
        return self.get_purchase(purchase_id)

    def update_purchase(
        self,
        purchase_id: int,
        supplier_id: Optional[int],
        supplier: Optional[str],
        purchase_date: Optional[str],
        total_amount: float,
        status: str,
        items: list[LineItem],
        user_id: Optional[int],
    ) -> PurchaseHeader:
        with self.db.transaction() as cur:
            # status has to be read before the header is overwritten
            cur.execute("SELECT status FROM purchases WHERE id = ?", (int(purchase_id),))
            row = cur.fetchone()
            if row is None:
                raise NotFoundError("Purchase not found")
            old_status = str(row["status"])

            cur.execute("SELECT product_id, quantity FROM purchase_items WHERE purchase_id = ?", (int(purchase_id),))
            current_items = cur.fetchall()

            if old_status == RECEIVED:
                stock_ledger.release_items(
                    cur, _pairs(current_items), "purchase", purchase_id, f"Purchase #{purchase_id} edited", user_id
                )

            cur.execute(
                """
                UPDATE purchases
                SET supplier_id = ?, supplier = ?, total_amount = ?, status = ?,
                    purchase_date = COALESCE(?, purchase_date), updated_at = datetime('now')
                WHERE id = ?
                """,
                (supplier_id, supplier, float(total_amount), status, purchase_date, int(purchase_id)),
            )
            cur.execute("DELETE FROM purchase_items WHERE purchase_id = ?", (int(purchase_id),))
            self._insert_purchase_items(cur, purchase_id, items)

            if status == RECEIVED:
                stock_ledger.receive_items(
                    cur, _pairs(items), "purchase", purchase_id, f"Purchase #{purchase_id} edited", user_id
                )
        return self.get_purchase(purchase_id)

    def set_purchase_status(self, purchase_id: int, status: str, user_id: Optional[int] = None) -> PurchaseHeader:
        with self.db.transaction() as cur:
            cur.execute("SELECT status, created_by FROM purchases WHERE id = ?", (int(purchase_id),))
            row = cur.fetchone()
            if row is None:
                raise NotFoundError("Purchase not found")
            old_status = str(row["status"])
            actor = user_id or row["created_by"]

            cur.execute(
                "UPDATE purchases SET status = ?, updated_at = datetime('now') WHERE id = ?",
                (status, int(purchase_id)),
            )

            if old_status != status and RECEIVED in (old_status, status):
                cur.execute("SELECT product_id, quantity FROM purchase_items WHERE purchase_id = ?", (int(purchase_id),))
                pairs = _pairs(cur.fetchall())
                note = f"Purchase #{purchase_id} status {old_status} -> {status}"
                if status == RECEIVED:
                    stock_ledger.receive_items(cur, pairs, "purchase", purchase_id, note, actor)
                else:
                    stock_ledger.release_items(cur, pairs, "purchase", purchase_id, note, actor)
        return self.get_purchase(purchase_id)

    def delete_purchase(self, purchase_id: int, user_id: Optional[int] = None) -> None:
        with self.db.transaction() as cur:
            cur.execute("SELECT status, created_by FROM purchases WHERE id = ?", (int(purchase_id),))
            row = cur.fetchone()
            if row is None:
                raise NotFoundError("Purchase not found")

            if str(row["status"]) == RECEIVED:
                cur.execute("SELECT product_id, quantity FROM purchase_items WHERE purchase_id = ?", (int(purchase_id),))
                stock_ledger.release_items(
                    cur,
                    _pairs(cur.fetchall()),
                    "purchase",
                    purchase_id,
                    f"Purchase #{purchase_id} deleted",
                    user_id or row["created_by"],
                    message_prefix="Cannot delete: ",
                )

            cur.execute("DELETE FROM purchase_items WHERE purchase_id = ?", (int(purchase_id),))
            cur.execute("DELETE FROM purchases WHERE id = ?", (int(purchase_id),))

    # ---------- Sales ----------
    def list_sales(self, user_id: Optional[int] = None, limit: Optional[int] = None) -> list[SaleHeader]:
        where = "WHERE s.created_by = ?" if user_id else ""
        params: list = [int(user_id)] if user_id else []
        tail = ""
        if limit:
            tail = "LIMIT ?"
            params.append(int(limit))
        rows = self.db.fetch_all(
            f"""
            SELECT {_SALE_COLS}, c.name AS customer_name
            FROM sales s
            LEFT JOIN customers c ON s.customer_id = c.id
            {where}
            ORDER BY s.sale_date DESC, s.id DESC
            {tail}
            """,
            params,
        )
        return [_sale(r) for r in rows]

    def get_sale(self, sale_id: int) -> Optional[SaleHeader]:
        r = self.db.fetch_one(
            f"""
            SELECT {_SALE_COLS}, c.name AS customer_name
            FROM sales s
            LEFT JOIN customers c ON s.customer_id = c.id
            WHERE s.id = ?
            """,
            (int(sale_id),),
        )
        return _sale(r) if r else None

    def sale_items(self, sale_id: int) -> list[SaleLine]:
        rows = self.db.fetch_all(
            """
            SELECT si.id, si.sale_id, si.product_id, si.quantity, si.price,
                   p.name AS product_name, p.category
            FROM sale_items si
            JOIN products p ON si.product_id = p.id
            WHERE si.sale_id = ?
            ORDER BY si.id
            """,
            (int(sale_id),),
        )
        return [SaleLine(**dict(r)) for r in rows]

    @staticmethod
    def _sell_items(cur: sqlite3.Cursor, sale_id: int, items: list[LineItem], note: str, user_id: Optional[int]) -> None:
        for it in items:
            # guard first, so a short item never gets a sale_items row
            stock_ledger.release_items(cur, [(it.product_id, it.quantity)], "sale", sale_id, note, user_id)
            cur.execute(
                "INSERT INTO sale_items (sale_id, product_id, quantity, price) VALUES (?, ?, ?, ?)",
                (sale_id, it.product_id, it.quantity, it.price),
            )

    def create_sale(
        self,
        customer_id: Optional[int],
        total_amount: float,
        status: str,
        items: list[LineItem],
        user_id: Optional[int],
    ) -> SaleHeader:
        with self.db.transaction() as cur:
            cur.execute(
                """
                INSERT INTO sales (customer_id, total_amount, status, created_by, sale_date, updated_at)
                VALUES (?, ?, ?, ?, datetime('now'), datetime('now'))
                """,
                (customer_id, float(total_amount), status, user_id),
            )
            sale_id = int(cur.lastrowid)
            self._sell_items(cur, sale_id, items, f"Sale #{sale_id}", user_id)
        return self.get_sale(sale_id)

    def update_sale(
        self,
        sale_id: int,
        customer_id: Optional[int],
        sale_date: Optional[str],
        total_amount: float,
        status: str,
        items: list[LineItem],
        user_id: Optional[int],
    ) -> SaleHeader:
        with self.db.transaction() as cur:
            cur.execute("SELECT id FROM sales WHERE id = ?", (int(sale_id),))
            if cur.fetchone() is None:
                raise NotFoundError("Sale not found")

            cur.execute("SELECT product_id, quantity FROM sale_items WHERE sale_id = ?", (int(sale_id),))
            stock_ledger.receive_items(
                cur, _pairs(cur.fetchall()), "sale", sale_id, f"Sale #{sale_id} edited: restore", user_id
            )

            cur.execute(
                """
                UPDATE sales
                SET customer_id = ?, total_amount = ?, status = ?,
                    sale_date = COALESCE(?, sale_date), updated_at = datetime('now')
                WHERE id = ?
                """,
                (customer_id, float(total_amount), status, sale_date, int(sale_id)),
            )
            cur.execute("DELETE FROM sale_items WHERE sale_id = ?", (int(sale_id),))
            self._sell_items(cur, sale_id, items, f"Sale #{sale_id} edited", user_id)
        return self.get_sale(sale_id)

    def delete_sale(self, sale_id: int, user_id: Optional[int] = None) -> None:
        with self.db.transaction() as cur:
            cur.execute("SELECT created_by FROM sales WHERE id = ?", (int(sale_id),))
            row = cur.fetchone()
            if row is None:
                raise NotFoundError("Sale not found")

            cur.execute("SELECT product_id, quantity FROM sale_items WHERE sale_id = ?", (int(sale_id),))
            stock_ledger.receive_items(
                cur, _pairs(cur.fetchall()), "sale", sale_id, f"Sale #{sale_id} deleted", user_id or row["created_by"]
            )
            cur.execute("DELETE FROM sale_items WHERE sale_id = ?", (int(sale_id),))
            cur.execute("DELETE FROM sales WHERE id = ?", (int(sale_id),))

    # ---------- Stock ----------
    def list_stock_movements(
        self,
        product_id: Optional[int] = None,
        user_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[StockMovement]:
        clauses = []
        params: list = []
        if product_id:
            clauses.append("sm.product_id = ?")
            params.append(int(product_id))
        elif user_id:
            clauses.append("p.created_by = ?")
            params.append(int(user_id))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        tail = ""
        if limit:
            tail = "LIMIT ?"
            params.append(int(limit))
        rows = self.db.fetch_all(
            f"""
            SELECT sm.id, sm.product_id, sm.quantity, sm.type, sm.source, sm.reference_id,
                   sm.notes, sm.created_by, sm.created_at,
                   p.name AS product_name, p.category, u.name AS user_name
            FROM stock_movements sm
            JOIN products p ON sm.product_id = p.id
            LEFT JOIN users u ON sm.created_by = u.id
            {where}
            ORDER BY sm.created_at DESC, sm.id DESC
            {tail}
            """,
            params,
        )
        return [_movement(r) for r in rows]

    def low_stock_products(self, user_id: int, threshold: int, limit: Optional[int] = None) -> list[Product]:
        params: list = [int(threshold), int(user_id)]
        tail = ""
        if limit:
            tail = "LIMIT ?"
            params.append(int(limit))
        rows = self.db.fetch_all(
            f"""
            SELECT {_PRODUCT_COLS}
            FROM products
            WHERE stock <= ? AND created_by = ?
            ORDER BY stock ASC, id ASC
            {tail}
            """,
            params,
        )
        return [_product(r) for r in rows]

    def add_stock_movement(
        self,
        product_id: int,
        quantity: int,
        movement_type: str,
        source: str,
        reference_id: Optional[int],
        notes: Optional[str],
        user_id: Optional[int],
    ) -> StockMovement:
        with self.db.transaction() as cur:
            if movement_type == "in":
                stock_ledger.increase_stock(cur, product_id, quantity)
            else:
                stock_ledger.decrease_stock(cur, product_id, quantity, message="Insufficient stock for this operation")
            movement_id = stock_ledger.record_movement(
                cur, product_id, quantity, movement_type, source, reference_id, notes, user_id
            )
            cur.execute(
                """
                SELECT id, product_id, quantity, type, source, reference_id, notes, created_by, created_at
                FROM stock_movements WHERE id = ?
                """,
                (movement_id,),
            )
            return _movement(cur.fetchone())

    def stock_summary(self, user_id: int, threshold: int) -> StockSummary:
        with self.db.connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT COUNT(*) AS total,
                       COALESCE(SUM(stock * price), 0) AS value,
                       COALESCE(SUM(CASE WHEN stock <= ? THEN 1 ELSE 0 END), 0) AS low,
                       COALESCE(SUM(CASE WHEN stock = 0 THEN 1 ELSE 0 END), 0) AS out_of_stock
                FROM products
                WHERE created_by = ?
                """,
                (int(threshold), int(user_id)),
            )
            r = cur.fetchone()
        recent = self.list_stock_movements(user_id=user_id, limit=5)
        return StockSummary(
            total_products=int(r["total"]),
            stock_value=float(r["value"]),
            low_stock_count=int(r["low"]),
            out_of_stock_count=int(r["out_of_stock"]),
            recent_movements=recent,
        )

    # ---------- Dashboard ----------
    def dashboard_summary(self, user_id: int, threshold: int) -> DashboardSummary:
        with self.db.connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT COALESCE(SUM(total_amount), 0) FROM sales WHERE status != 'Cancelled' AND created_by = ?",
                (int(user_id),),
            )
            total_sales = float(cur.fetchone()[0])
            cur.execute(
                "SELECT COALESCE(SUM(total_amount), 0) FROM purchases WHERE status != 'Cancelled' AND created_by = ?",
                (int(user_id),),
            )
            total_purchases = float(cur.fetchone()[0])
            cur.execute(
                """
                SELECT c.id, c.name, COUNT(s.id) AS order_count, SUM(s.total_amount) AS total_spent
                FROM customers c
                JOIN sales s ON c.id = s.customer_id
                WHERE s.status != 'Cancelled' AND s.created_by = ?
                GROUP BY c.id
                ORDER BY total_spent DESC
                LIMIT 5
                """,
                (int(user_id),),
            )
            top = [
                TopCustomer(id=int(r["id"]), name=str(r["name"]), order_count=int(r["order_count"]), total_spent=float(r["total_spent"]))
                for r in cur.fetchall()
            ]

        return DashboardSummary(
            total_sales=total_sales,
            total_purchases=total_purchases,
            total_profit=total_sales - total_purchases,
            recent_sales=self.list_sales(user_id, limit=5),
            recent_purchases=self.list_purchases(user_id, limit=5),
            low_stock_products=self.low_stock_products(user_id, threshold, limit=5),
            top_customers=top,
        )

    # ---------- Health ----------
    def integrity_check(self) -> str:
        r = self.db.fetch_one("PRAGMA integrity_check")
        return str(r[0]) if r else "unknown"

    # ---------- Passwords ----------
    @staticmethod
    def _hash_password(password: str, *, rounds: int = 200_000, salt: str | None = None) -> str:
        salt = salt or secrets.token_hex(16)
        digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt), rounds).hex()
        return f"pbkdf2_sha256${rounds}${salt}${digest}"

    @staticmethod
    def _verify_password(stored: str, provided: str) -> bool:
        if not stored.startswith("pbkdf2_sha256$"):
            return False
        try:
            _algo, rounds_s, salt, digest = stored.split("$", 3)
            candidate = hashlib.pbkdf2_hmac(
                "sha256",
                provided.encode("utf-8"),
                bytes.fromhex(salt),
                int(rounds_s),
            ).hex()
        except ValueError:
            return False
        return hmac.compare_digest(candidate, digest)
