from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from bizdesk.actions import (
    AuthActions,
    CustomerActions,
    ProductActions,
    PurchaseActions,
    SaleActions,
    StockActions,
    SupplierActions,
)
from bizdesk.config import Settings
from bizdesk.repositories.database import Database, RetryPolicy
from bizdesk.repositories.sqlite_repo import SqliteRepository
from bizdesk.services.auth_service import AuthService
from bizdesk.services.customer_service import CustomerService
from bizdesk.services.inventory_service import InventoryService
from bizdesk.services.operations_service import OperationsService
from bizdesk.services.purchase_service import PurchaseService
from bizdesk.services.reporting_service import ReportingService
from bizdesk.services.sales_service import SalesService
from bizdesk.services.stock_service import StockService
from bizdesk.services.supplier_service import SupplierService


@dataclass(frozen=True)
class AppContainer:
    db: Database
    repo: SqliteRepository
    customers: CustomerService
    suppliers: SupplierService
    inventory: InventoryService
    purchases: PurchaseService
    sales: SalesService
    stock: StockService
    reporting: ReportingService
    auth: AuthService
    operations: OperationsService
    customer_actions: CustomerActions
    supplier_actions: SupplierActions
    product_actions: ProductActions
    purchase_actions: PurchaseActions
    sale_actions: SaleActions
    stock_actions: StockActions
    auth_actions: AuthActions


def build_container(db_path: Path | str, settings: Settings | None = None) -> AppContainer:
    settings = settings or Settings()
    db = Database(
        db_path,
        RetryPolicy(max_attempts=settings.retry_max_attempts, backoff_seconds=settings.retry_backoff_seconds),
    )
    repo = SqliteRepository(db)
    repo.init_db()

    customers = CustomerService(repo)
    suppliers = SupplierService(repo)
    inventory = InventoryService(repo)
    purchases = PurchaseService(repo)
    sales = SalesService(repo)
    stock = StockService(repo, settings.low_stock_threshold)
    reporting = ReportingService(repo, settings.low_stock_threshold)
    auth = AuthService(repo, session_max_age=settings.session_max_age, secure_cookies=settings.production)
    operations = OperationsService(db, repo)

    return AppContainer(
        db=db,
        repo=repo,
        customers=customers,
        suppliers=suppliers,
        inventory=inventory,
        purchases=purchases,
        sales=sales,
        stock=stock,
        reporting=reporting,
        auth=auth,
        operations=operations,
        customer_actions=CustomerActions(db, customers),
        supplier_actions=SupplierActions(db, suppliers),
        product_actions=ProductActions(db, inventory),
        purchase_actions=PurchaseActions(db, purchases),
        sale_actions=SaleActions(db, sales),
        stock_actions=StockActions(db, stock, reporting),
        auth_actions=AuthActions(db, auth),
    )
