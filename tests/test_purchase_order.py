"""Tests for purchase order PDF/XLSX generation."""
import io
import re
from datetime import date

import pytest
from openpyxl import load_workbook
from reportlab.pdfgen import canvas

from src.forms.purchase_order import (
    generate_purchase_order, shipping_method_text, truncate, format_po_date, total_quantity,
    PDF_MIMETYPE, XLSX_MIMETYPE,
)

ITEMS = [
    {"storeName": "新前橋店", "category": "ブラシ", "itemName": "サイドブラシ", "quantity": 2},
    {"storeName": "高崎棟高店", "category": "ノズル", "itemName": "高圧ノズル", "quantity": "3"},
]
STORE = {"name": "SPLASH'N'GO!新前橋店", "email": "shinmaebashi@example.com"}


class TestHelpers:

    def test_shipping_method_text(self):
        assert shipping_method_text("air") == "Air shipment"
        assert shipping_method_text("next_order").startswith("At the same time")
        assert shipping_method_text("courier") == "courier"

    def test_truncate(self):
        assert truncate("a" * 30, 30, 27) == "a" * 30
        assert truncate("a" * 31, 30, 27) == "a" * 27 + "..."
        assert truncate(None, 15, 12) == ""

    def test_po_date(self):
        assert format_po_date(date(2025, 1, 5)) == "January 5, 2025"

    def test_total_quantity(self):
        assert total_quantity(ITEMS) == 5


# ═══════════════════════════════════════════════════════════════════════════════
# DOCUMENTS
# ═══════════════════════════════════════════════════════════════════════════════

class TestGenerate:

    def test_pdf(self):
        result = generate_purchase_order(ITEMS, STORE, "air", "pdf", order_number="PO-12345")
        assert result["ok"]
        assert result["mimetype"] == PDF_MIMETYPE
        assert result["filename"] == "purchase_order_PO-12345.pdf"
        assert result["content"].startswith(b"%PDF")

    def test_pdf_many_items_paginates(self):
        items = [dict(ITEMS[0], itemName=f"部品{i}") for i in range(30)]
        result = generate_purchase_order(items, STORE, "sea", "pdf")
        assert result["ok"]
        assert result["content"].startswith(b"%PDF")
        assert result["content"].rstrip().endswith(b"%%EOF")

    def test_excel_layout(self):
        result = generate_purchase_order(ITEMS, STORE, "sea", "excel", order_number="PO-00042",
                                         po_date=date(2025, 3, 1))
        assert result["mimetype"] == XLSX_MIMETYPE
        assert result["filename"] == "purchase_order_PO-00042.xlsx"
        ws = load_workbook(io.BytesIO(result["content"])).active
        assert ws.title == "Purchase Order"
        assert ws["A1"].value == "PURCHASE ORDER"
        assert ws["A3"].value == "Order Number: PO-00042"
        assert ws["A4"].value == "Date: March 1, 2025"
        assert ws["A17"].value == "Shipping Method: Sea shipment"
        assert [c.value for c in ws[19]] == ["Item Name", "Category", "Store Name", "Quantity"]
        assert [c.value for c in ws[20]] == ["サイドブラシ", "ブラシ", "新前橋店", 2]
        assert ws["D21"].value == 3
        assert ws["A23"].value == "Total Items:"
        assert ws["B23"].value == 2
        assert ws["B24"].value == 5

    def test_generated_number(self):
        result = generate_purchase_order(ITEMS, STORE, "air", "excel")
        assert re.fullmatch(r"PO-\d{5}", result["order_number"])

    @pytest.mark.parametrize("items,store,fmt", [
        ([], STORE, "pdf"),
        (ITEMS, None, "pdf"),
        (ITEMS, STORE, ""),
    ])
    def test_missing_data(self, items, store, fmt):
        result = generate_purchase_order(items, store, "air", fmt)
        assert result == {"ok": False, "error": "Missing required data", "status": 400}

    def test_unsupported_format(self):
        result = generate_purchase_order(ITEMS, STORE, "air", "docx")
        assert result["status"] == 400
        assert "docx" in result["error"]


class TestPdfLayout:

    @pytest.fixture
    def drawn(self, monkeypatch):
        """(y in points, text) for every drawString call."""
        calls = []
        original = canvas.Canvas.drawString

        def spy(self, x, y, text, *args, **kwargs):
            calls.append((y, text))
            return original(self, x, y, text, *args, **kwargs)

        monkeypatch.setattr(canvas.Canvas, "drawString", spy)
        return calls

    @pytest.mark.parametrize("count", [1, 2, 5, 9, 30])
    def test_everything_lands_on_the_page(self, drawn, count):
        items = [dict(ITEMS[0], itemName=f"部品{i}") for i in range(count)]
        assert generate_purchase_order(items, STORE, "air", "pdf")["ok"]
        assert [(y, t) for y, t in drawn if y <= 0] == []
        assert [t for _, t in drawn].count("Gunma 379-2154, Japan") == 1
        assert sum(1 for _, t in drawn if t.startswith("部品")) == count
