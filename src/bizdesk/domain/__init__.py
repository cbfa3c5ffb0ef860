from .models import (
    Customer,
    Product,
    PurchaseHeader,
    PurchaseLine,
    SaleHeader,
    SaleLine,
    StockMovement,
    Supplier,
    User,
)
from .errors import (
    AppError,
    AuthorizationError,
    DatabaseError,
    DependencyError,
    DuplicateError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from .results import ActionResult

__all__ = [
    "Customer",
    "Product",
    "PurchaseHeader",
    "PurchaseLine",
    "SaleHeader",
    "SaleLine",
    "StockMovement",
    "Supplier",
    "User",
    "AppError",
    "AuthorizationError",
    "DatabaseError",
    "DependencyError",
    "DuplicateError",
    "InsufficientStockError",
    "NotFoundError",
    "ValidationError",
    "ActionResult",
]
