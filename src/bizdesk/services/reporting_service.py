from __future__ import annotations

from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from bizdesk.domain.errors import ValidationError


class ReportingService:
    def __init__(self, repo, low_stock_threshold: int = 10):
        self.repo = repo
        self.low_stock_threshold = int(low_stock_threshold)

    def export_dashboard_excel(self, path: str | Path, user_id: int) -> Path:
        if not user_id:
            raise ValidationError("User ID is required")
        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, start_row: int, end_row: int, end_col: int):
            ref = f"A{start_row}:{get_column_letter(end_col)}{end_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        summary = self.repo.dashboard_summary(int(user_id), self.low_stock_threshold)
        stock = self.repo.stock_summary(int(user_id), self.low_stock_threshold)

        # -------- 1) Summary --------
        ws = wb.active
        ws.title = "Summary"
        ws["A1"] = "Summary"
        ws["A1"].font = Font(bold=True, size=14)

        rows = [
            ("Total sales", summary.total_sales, "money"),
            ("Total purchases", summary.total_purchases, "money"),
            ("Profit (sales - purchases)", summary.total_profit, "money"),
            ("Products", stock.total_products, "int"),
            ("Stock value", stock.stock_value, "money"),
            ("Low stock products", stock.low_stock_count, "int"),
            ("Out of stock products", stock.out_of_stock_count, "int"),
        ]
        start_row = 3
        for i, (label, val, kind) in enumerate(rows):
            r = start_row + i
            ws[f"A{r}"] = label
            ws[f"B{r}"] = val
            if kind == "money":
                money(ws[f"B{r}"])
        set_widths(ws, {"A": 30, "B": 18})

        # -------- 2) Sales --------
        ws2 = wb.create_sheet("Sales")
        ws2.append(["Sale ID", "Date", "Customer", "Status", "Product", "Qty", "Price", "Line Total"])
        bold_row(ws2, 1)
        for s in self.repo.list_sales(int(user_id)):
            for it in self.repo.sale_items(s.id):
                ws2.append([
                    s.id, s.sale_date, s.customer_name or "", s.status,
                    it.product_name, it.quantity, it.price, it.quantity * it.price,
                ])
                money(ws2.cell(row=ws2.max_row, column=7))
                money(ws2.cell(row=ws2.max_row, column=8))
        ws2.freeze_panes = "A2"
        set_widths(ws2, {"A": 10, "B": 22, "C": 24, "D": 12, "E": 30, "F": 6, "G": 12, "H": 14})
        if ws2.max_row >= 2:
            add_table(ws2, "SalesDetail", 1, ws2.max_row, 8)

        # -------- 3) Purchases --------
        ws3 = wb.create_sheet("Purchases")
        ws3.append(["Purchase ID", "Date", "Supplier", "Status", "Product", "Qty", "Price", "Line Total"])
        bold_row(ws3, 1)
        for p in self.repo.list_purchases(int(user_id)):
            for it in self.repo.purchase_items(p.id):
                ws3.append([
                    p.id, p.purchase_date, p.supplier_name or p.supplier or "", p.status,
                    it.product_name, it.quantity, it.price, it.quantity * it.price,
                ])
                money(ws3.cell(row=ws3.max_row, column=7))
                money(ws3.cell(row=ws3.max_row, column=8))
        ws3.freeze_panes = "A2"
        set_widths(ws3, {"A": 12, "B": 22, "C": 24, "D": 12, "E": 30, "F": 6, "G": 12, "H": 14})
        if ws3.max_row >= 2:
            add_table(ws3, "PurchasesDetail", 1, ws3.max_row, 8)

        # -------- 4) Low stock --------
        ws4 = wb.create_sheet("Low stock")
        ws4.append(["Product ID", "Name", "Category", "Stock", "Price"])
        bold_row(ws4, 1)
        for prod in self.repo.low_stock_products(int(user_id), self.low_stock_threshold):
            ws4.append([prod.id, prod.name, prod.category or "", prod.stock, prod.price])
            money(ws4.cell(row=ws4.max_row, column=5))
        set_widths(ws4, {"A": 12, "B": 30, "C": 18, "D": 8, "E": 12})

        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        wb.save(out)
        return out
