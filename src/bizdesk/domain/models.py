from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional


PURCHASE_STATUSES = ("Pending", "Received", "Cancelled")
SALE_STATUSES = ("Pending", "Completed", "Cancelled")
RECEIVED = "Received"


@dataclass(frozen=True)
class User:
    id: int
    name: str
    email: str
    auth_token: Optional[str] = None
    created_at: Optional[str] = None


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    category: Optional[str]
    description: Optional[str]
    price: float
    stock: int
    created_by: Optional[int]
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class Customer:
    id: int
    name: str
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    created_by: Optional[int]
    created_at: str
    updated_at: str
    order_count: int = 0


@dataclass(frozen=True)
class Supplier:
    id: int
    name: str
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    created_by: Optional[int]
    created_at: str
    updated_at: str
    purchase_count: int = 0


@dataclass(frozen=True)
class LineItem:
    """One requested line of a purchase or sale, before it is stored."""

    product_id: int
    quantity: int
    price: float


@dataclass(frozen=True)
class PurchaseHeader:
    id: int
    supplier_id: Optional[int]
    supplier: Optional[str]
    total_amount: float
    status: str
    purchase_date: str
    created_by: Optional[int]
    created_at: str
    updated_at: str
    supplier_name: Optional[str] = None


@dataclass(frozen=True)
class PurchaseLine:
    id: int
    purchase_id: int
    product_id: int
    quantity: int
    price: float
    product_name: str
    category: Optional[str]


@dataclass(frozen=True)
class PurchaseDetails:
    purchase: PurchaseHeader
    items: list[PurchaseLine]


@dataclass(frozen=True)
class SaleHeader:
    id: int
    customer_id: Optional[int]
    total_amount: float
    status: str
    sale_date: str
    created_by: Optional[int]
    created_at: str
    updated_at: str
    customer_name: Optional[str] = None


@dataclass(frozen=True)
class SaleLine:
    id: int
    sale_id: int
    product_id: int
    quantity: int
    price: float
    product_name: str
    category: Optional[str]


@dataclass(frozen=True)
class SaleDetails:
    sale: SaleHeader
    items: list[SaleLine]


@dataclass(frozen=True)
class StockMovement:
    id: int
    product_id: int
    quantity: int
    type: str
    source: str
    reference_id: Optional[int]
    notes: Optional[str]
    created_by: Optional[int]
    created_at: str
    product_name: Optional[str] = None
    category: Optional[str] = None
    user_name: Optional[str] = None


@dataclass(frozen=True)
class StockHistoryEntry:
    id: int
    product_id: int
    quantity: int
    type: str
    reference_id: Optional[int]
    reference_type: Optional[str]
    notes: Optional[str]
    date: str


@dataclass(frozen=True)
class TopCustomer:
    id: int
    name: str
    order_count: int
    total_spent: float


@dataclass(frozen=True)
class StockSummary:
    total_products: int = 0
    stock_value: float = 0.0
    low_stock_count: int = 0
    out_of_stock_count: int = 0
    recent_movements: list[StockMovement] = field(default_factory=list)


@dataclass(frozen=True)
class DashboardSummary:
    total_sales: float = 0.0
    total_purchases: float = 0.0
    total_profit: float = 0.0
    recent_sales: list[SaleHeader] = field(default_factory=list)
    recent_purchases: list[PurchaseHeader] = field(default_factory=list)
    low_stock_products: list[Product] = field(default_factory=list)
    top_customers: list[TopCustomer] = field(default_factory=list)


@dataclass(frozen=True)
class SessionCookie:
    name: str
    value: str
    max_age: int
    http_only: bool = True
    secure: bool = False
    path: str = "/"


@dataclass(frozen=True)
class AuthSession:
    user: User
    token: str
    cookie: SessionCookie
    redirect: Optional[str] = None
