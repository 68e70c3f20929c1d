"""
Purchase Order Generator (parts orders → supplier)
===================================================
One purchase order per parts cart, rendered as PDF (reportlab) or
XLSX (openpyxl). Documents are built in memory and returned as bytes.

Usage:
    from src.forms.purchase_order import generate_purchase_order
    result = generate_purchase_order(items, store_info, "air", "pdf")
    if result["ok"]:
        send_file(io.BytesIO(result["content"]), mimetype=result["mimetype"], ...)
"""

import io
import logging
from datetime import date

from openpyxl import Workbook
from openpyxl.styles import Font
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfgen import canvas

from src.core import orders, pricing

log = logging.getLogger("po_gen")

PDF_MIMETYPE = "application/pdf"
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
FORMATS = ("pdf", "excel")

BUYER = {
    "name": "Splash Brothers Inc.",
}

SUPPLIER = {
    "name": "Hefei Topwell Machinery Co., Ltd.",
    "tel": "+8618226629892",
    "contact": "Liv Wang",
    "email": "liv@topwellclean.com",
    "address": [
        "#3 Building, Room 3001, Jiaqiao Lehu Mansion,",
        "Fanhua Avenue Road, Economic Development Zone,",
        "Hefei City, Anhui Province, China",
    ],
}

SHIP_TO = {
    "name": "SPLASH'N'GO!",
    "attn": "Person in Charge",
    "line1": "2-4-15 Amagawa-Oshima-machi, Maebashi-shi",
    "line2": "Gunma 379-2154",
    "country": "Japan",
}

SHIPPING_METHOD_TEXT = {
    "air": "Air shipment",
    "sea": "Sea shipment",
    "next_order": "At the same time as the next car wash machine order",
}

# Item names are Japanese; the CID font ships with reportlab
JP_FONT = "HeiseiKakuGo-W5"
_font_registered = False

PAGE_W, PAGE_H = A4

# mm from the top edge
TOP_MARGIN = 20
BOTTOM_LIMIT = 287
ROW_H = 10
# Rule, totals and the shipping-address box below the last item
FOOTER_H = 95


def shipping_method_text(method: str) -> str:
    return SHIPPING_METHOD_TEXT.get(method, method or "")


def truncate(text, limit: int, keep: int) -> str:
    text = str(text or "")
    return text[:keep] + "..." if len(text) > limit else text


def format_po_date(d: date = None) -> str:
    """'January 5, 2025'"""
    d = d or date.today()
    return f"{d.strftime('%B')} {d.day}, {d.year}"


def total_quantity(items: list) -> int:
    return sum(int(pricing.to_number(it.get("quantity"))) for it in items)


def _ensure_font():
    global _font_registered
    if not _font_registered:
        pdfmetrics.registerFont(UnicodeCIDFont(JP_FONT))
        _font_registered = True


# ═══════════════════════════════════════════════════════════════════════
# PDF
# ═══════════════════════════════════════════════════════════════════════

def build_pdf(order_number: str, items: list, store_info: dict, shipping_method: str,
              po_date: str) -> bytes:
    """Fixed-coordinate layout, positions in mm from the top-left corner."""
    _ensure_font()
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    c.setTitle(f"Purchase Order {order_number}")

    def text(x, y, s, font="Helvetica", size=12):
        c.setFont(font, size)
        c.drawString(x * mm, PAGE_H - y * mm, s)

    def line(x1, y1, x2, y2):
        c.line(x1 * mm, PAGE_H - y1 * mm, x2 * mm, PAGE_H - y2 * mm)

    c.setFont("Helvetica-Bold", 20)
    c.drawCentredString(PAGE_W / 2, PAGE_H - 25 * mm, "PURCHASE ORDER")

    text(20, 45, f"Order Number: {order_number}")
    text(20, 55, f"Date: {po_date}")

    text(20, 75, "FROM:", "Helvetica-Bold")
    text(20, 85, BUYER["name"])
    text(20, 95, f"Email: {store_info.get('email', '')}", JP_FONT)

    text(110, 75, "TO:", "Helvetica-Bold")
    text(110, 85, SUPPLIER["name"])
    text(110, 95, f"Tel: {SUPPLIER['tel']}")
    text(110, 105, SUPPLIER["contact"])
    text(110, 115, f"Email: {SUPPLIER['email']}")
    text(110, 125, f"Add: {SUPPLIER['address'][0]}", size=9)
    text(110, 135, f"     {SUPPLIER['address'][1]}", size=9)
    text(110, 145, f"     {SUPPLIER['address'][2]}", size=9)

    text(20, 165, "Shipping Method:", "Helvetica-Bold")
    text(65, 165, shipping_method_text(shipping_method))

    for x, label in ((20, "Item Name"), (85, "Category"), (125, "Store"), (165, "Qty")):
        text(x, 185, label, "Helvetica-Bold")
    line(20, 190, 185, 190)

    y = 200
    for item in items:
        if y + ROW_H > BOTTOM_LIMIT:
            c.showPage()
            y = TOP_MARGIN + 5
        text(20, y, truncate(item.get("itemName"), 30, 27), JP_FONT, 10)
        text(85, y, truncate(item.get("category"), 15, 12), JP_FONT, 10)
        text(125, y, truncate(item.get("storeName"), 15, 12), JP_FONT, 10)
        text(165, y, str(item.get("quantity", "")), size=10)
        y += ROW_H

    if y + FOOTER_H > BOTTOM_LIMIT:
        c.showPage()
        y = TOP_MARGIN
    line(20, y + 5, 185, y + 5)
    y += 15
    text(20, y, f"Total Items: {len(items)}", "Helvetica-Bold")
    text(125, y, f"Total Quantity: {total_quantity(items)}", "Helvetica-Bold")

    y += 25
    box_h = 55
    c.rect(20 * mm, PAGE_H - (y + box_h) * mm, 165 * mm, box_h * mm, stroke=1, fill=0)
    text(25, y + 12, "Shipping Address:", "Helvetica-Bold")
    text(25, y + 22, SHIP_TO["name"])
    text(25, y + 32, f"Attn: {SHIP_TO['attn']}")
    text(25, y + 42, SHIP_TO["line1"])
    text(25, y + 52, f"{SHIP_TO['line2']}, {SHIP_TO['country']}")

    c.showPage()
    c.save()
    return buf.getvalue()


# ═══════════════════════════════════════════════════════════════════════
# Excel
# ═══════════════════════════════════════════════════════════════════════

def build_excel(order_number: str, items: list, store_info: dict, shipping_method: str,
                po_date: str) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Purchase Order"

    rows = [
        ["PURCHASE ORDER"],
        [],
        [f"Order Number: {order_number}"],
        [f"Date: {po_date}"],
        [],
        ["FROM:", BUYER["name"]],
        ["Email:", store_info.get("email", "")],
        [],
        ["TO:", SUPPLIER["name"]],
        ["Tel:", SUPPLIER["tel"]],
        ["Contact:", SUPPLIER["contact"]],
        ["Email:", SUPPLIER["email"]],
        ["Address:", SUPPLIER["address"][0]],
        ["", SUPPLIER["address"][1]],
        ["", SUPPLIER["address"][2]],
        [],
        [f"Shipping Method: {shipping_method_text(shipping_method)}"],
        [],
        ["Item Name", "Category", "Store Name", "Quantity"],
    ]
    header_row = len(rows)
    for it in items:
        rows.append([it.get("itemName", ""), it.get("category", ""), it.get("storeName", ""),
                     int(pricing.to_number(it.get("quantity")))])
    rows += [
        [],
        ["Total Items:", len(items)],
        ["Total Quantity:", total_quantity(items)],
        [],
        ["=== SHIPPING ADDRESS ==="],
        ["Shipping Address:", SHIP_TO["name"]],
        ["Attn:", SHIP_TO["attn"]],
        ["Address:", SHIP_TO["line1"]],
        ["", SHIP_TO["line2"]],
        ["Country:", SHIP_TO["country"]],
    ]
    for r in rows:
        ws.append(r)

    ws["A1"].font = Font(bold=True, size=16)
    for cell in ws[header_row]:
        cell.font = Font(bold=True)
    ws.column_dimensions["A"].width = 40
    ws.column_dimensions["B"].width = 50
    ws.column_dimensions["C"].width = 20

    out = io.BytesIO()
    wb.save(out)
    return out.getvalue()


# ═══════════════════════════════════════════════════════════════════════
# Entry point
# ═══════════════════════════════════════════════════════════════════════

def generate_purchase_order(items, store_info, shipping_method, fmt,
                            order_number: str = None, po_date: date = None) -> dict:
    """
    Returns {"ok": True, content, mimetype, filename, order_number} or
    {"ok": False, "error", "status": 400}. Rendering errors propagate.
    """
    if not items or not store_info or not fmt:
        return {"ok": False, "error": "Missing required data", "status": 400}
    if fmt not in FORMATS:
        return {"ok": False, "error": f"Unsupported format: {fmt}", "status": 400}

    order_number = order_number or orders.generate_order_number("PO")
    date_text = format_po_date(po_date)

    if fmt == "pdf":
        content = build_pdf(order_number, items, store_info, shipping_method, date_text)
        mimetype, ext = PDF_MIMETYPE, "pdf"
    else:
        content = build_excel(order_number, items, store_info, shipping_method, date_text)
        mimetype, ext = XLSX_MIMETYPE, "xlsx"

    log.info("PO %s: %s, %d items, %d bytes", order_number, ext, len(items), len(content))
    return {
        "ok": True,
        "content": content,
        "mimetype": mimetype,
        "filename": f"purchase_order_{order_number}.{ext}",
        "order_number": order_number,
    }
