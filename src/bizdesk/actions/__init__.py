from .auth_actions import AuthActions
from .customer_actions import CustomerActions
from .product_actions import ProductActions
from .purchase_actions import PurchaseActions
from .sale_actions import SaleActions
from .stock_actions import StockActions
from .supplier_actions import SupplierActions

__all__ = [
    "AuthActions",
    "CustomerActions",
    "ProductActions",
    "PurchaseActions",
    "SaleActions",
    "StockActions",
    "SupplierActions",
]
