from .auth_service import AuthService
from .customer_service import CustomerService
from .inventory_service import InventoryService
from .operations_service import OperationsService
from .purchase_service import PurchaseService
from .reporting_service import ReportingService
from .sales_service import SalesService
from .stock_service import StockService
from .supplier_service import SupplierService

__all__ = [
    "AuthService",
    "CustomerService",
    "InventoryService",
    "OperationsService",
    "PurchaseService",
    "ReportingService",
    "SalesService",
    "StockService",
    "SupplierService",
]
