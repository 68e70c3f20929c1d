"""
orders.py — Order submission, history read-back and admin updates

Row layout (Order_history / hirock_item_history, 47 cells):
  A order number | B date (YYYY/MM/DD, JST) | C time (HH:MM) | D store | E email
  F.. item groups of 4: name, size, color, quantity (7 groups, F..AG)
  AT shipping date | AU status

One logical order can span both sheets (and several rows when it has more
than 7 items per sheet). Readers merge by order number.
"""

import hashlib
import logging
import time
from datetime import datetime
from zoneinfo import ZoneInfo

from src.api.trace import Trace
from src.core import catalog, pricing, routing, sheets

log = logging.getLogger("orders")

JST = ZoneInfo("Asia/Tokyo")

ROW_WIDTH = 47
ITEM_START = 5
ITEM_FIELDS = 4
ITEM_SLOTS = 7
SHIPPING_DATE_IDX = 45   # AT
STATUS_IDX = 46          # AU
SHIPPING_DATE_COL = "AT"
STATUS_COL = "AU"

STATUS_PROCESSING = "処理中"
STATUS_IN_PROGRESS = "対応中"
STATUS_SHIPPED = "出荷済み"
KNOWN_STATUSES = (STATUS_PROCESSING, STATUS_IN_PROGRESS, STATUS_SHIPPED)

# Chemical goods are handled outside the admin screen
ADMIN_EXCLUDED_ITEMS = ["スプシャン", "スプワックス", "スプコート", "セラミック", "スプタイヤ",
                        "マイクロファイバー", "ピッカークロス"]

SHEET_FOR_ROUTE = {
    routing.SHEET_REGULAR: sheets.ORDER_HISTORY,
    routing.SHEET_HIROCK: sheets.HIROCK_HISTORY,
}
# Admin lookups check the partner sheet first
LOOKUP_ORDER = (sheets.HIROCK_HISTORY, sheets.ORDER_HISTORY)


# ═══════════════════════════════════════════════════════════════════════
# Order numbers and timestamps
# ═══════════════════════════════════════════════════════════════════════

def generate_order_number(prefix: str = "ORD", ts_ms: int = None) -> str:
    """MD5 of the millisecond timestamp → 5 digits. Same timestamp, same number."""
    if ts_ms is None:
        ts_ms = int(time.time() * 1000)
    digest = hashlib.md5(str(ts_ms).encode("ascii")).hexdigest()
    return f"{prefix}-{int(digest[:6], 16) % 100000:05d}"


def now_jst_strings(now: datetime = None) -> tuple:
    """('2025/01/05', '09:07') in Asia/Tokyo."""
    now = (now or datetime.now(JST)).astimezone(JST)
    return now.strftime("%Y/%m/%d"), now.strftime("%H:%M")


# ═══════════════════════════════════════════════════════════════════════
# Save order
# ═══════════════════════════════════════════════════════════════════════

def process_order_items(items: list) -> list:
    """Banner sets are stored as 1 set; promotional items store the chosen tier size."""
    out = []
    for item in items:
        name = item.get("item_name", "")
        if pricing.is_banner_set(name):
            item = dict(item, quantity=1)
        elif pricing.is_special_item(name) and item.get("selectedQuantity"):
            item = dict(item, quantity=int(pricing.to_number(item["selectedQuantity"])))
        out.append(item)
    return out


def reprice_items(items: list, products: list, store_name: str = None) -> list:
    """
    Replace client item_price with the catalog price where the product is known.
    Unknown products keep the client price. Promotional tiers are priced on
    selectedQuantity when the cart carries it.
    """
    out = []
    for item in items:
        name = item.get("item_name", "")
        product = catalog.find_product(products, name, item.get("selectedColor", ""))
        if product is None:
            out.append(item)
            continue
        quantity = item.get("quantity")
        if pricing.is_special_item(name) and item.get("selectedQuantity"):
            quantity = item["selectedQuantity"]
        price = pricing.resolve_unit_price(product, store_name,
                                           size=item.get("selectedSize", ""),
                                           quantity=quantity)
        out.append(dict(item, item_price=price))
    return out


def _blank_row(order_number, date_str, time_str, store_info) -> list:
    row = [""] * ROW_WIDTH
    row[0] = order_number
    row[1] = date_str
    row[2] = time_str
    row[3] = store_info.get("name", "")
    row[4] = store_info.get("email", "")
    return row


def build_order_rows(order_number: str, date_str: str, time_str: str,
                     store_info: dict, items: list) -> list:
    """47-cell rows; more than 7 items continue on extra rows with the same number."""
    rows = []
    for start in range(0, len(items), ITEM_SLOTS):
        row = _blank_row(order_number, date_str, time_str, store_info)
        for slot, item in enumerate(items[start:start + ITEM_SLOTS]):
            base = ITEM_START + slot * ITEM_FIELDS
            row[base] = item.get("item_name", "")
            row[base + 1] = item.get("selectedSize") or ""
            row[base + 2] = item.get("selectedColor") or ""
            row[base + 3] = str(item.get("quantity", ""))
        rows.append(row)
    return rows


def _load_catalog(client) -> list:
    try:
        return catalog.load_available_items(client)
    except Exception as e:
        log.warning("Catalog unavailable, routing every item to %s: %s", sheets.ORDER_HISTORY, e)
        return []


def save_order(client, items, store_info, total_amount=None, now: datetime = None,
               notify: bool = True, run_async: bool = None) -> dict:
    """
    Append the order to the history sheets and fan out notification email.

    Returns {"ok": True, "orderNumber", "sheets", "totals"} or
    {"ok": False, "error", "status": 400}. Sheet append errors propagate;
    any exception fails the run's trace before it is re-raised.
    """
    if not items or not store_info:
        return {"ok": False, "error": "Missing required data", "status": 400}

    t = Trace("save_order", store=store_info.get("name", ""), items=len(items))
    try:
        return _save_order(t, client, items, store_info, total_amount, now, notify, run_async)
    except Exception as e:
        if t.finished_at is None:
            t.fail("Unexpected error", error=f"{type(e).__name__}: {e}")
        raise


def _save_order(t, client, items, store_info, total_amount, now, notify, run_async) -> dict:
    store_name = store_info.get("name", "")
    processed = process_order_items(items)
    order_number = generate_order_number("ORD")
    t.context["order_number"] = order_number
    date_str, time_str = now_jst_strings(now)
    log.info("Order %s: %d items from %s", order_number, len(processed), store_name)

    products = _load_catalog(client)
    priced = reprice_items(processed, products, store_name)
    totals = pricing.cart_totals(priced)
    if total_amount is not None and round(pricing.to_number(total_amount)) != totals["total"]:
        log.warning("Order %s: client total %s differs from server total %s",
                    order_number, total_amount, totals["total"])
        t.warn("Total mismatch", client=total_amount, server=totals["total"])

    split = routing.categorize_items_by_sheet(priced, products)
    t.step("Routed", regular=len(split[routing.SHEET_REGULAR]),
           hirock=len(split[routing.SHEET_HIROCK]))

    written = {}
    for route in (routing.SHEET_REGULAR, routing.SHEET_HIROCK):
        route_items = split[route]
        if not route_items:
            continue
        sheet = SHEET_FOR_ROUTE[route]
        rows = build_order_rows(order_number, date_str, time_str, store_info, route_items)
        try:
            for row in rows:
                client.append_row(f"{sheet}!A1", row)
        except Exception as e:
            t.fail("Append failed", sheet=sheet, error=str(e))
            raise
        written[sheet] = len(route_items)
        t.step("Appended", sheet=sheet, rows=len(rows))

    if notify:
        from src.agents import notify_agent
        groups = routing.group_items_by_partner(priced, products)
        notify_agent.notify_order(order_number, store_info, priced, groups,
                                  totals=totals, run_async=run_async)
        t.step("Notifications dispatched", partners=len(groups))

    t.ok("Saved", sheets=written)
    return {"ok": True, "orderNumber": order_number, "sheets": written, "totals": totals}


# ═══════════════════════════════════════════════════════════════════════
# History read-back
# ═══════════════════════════════════════════════════════════════════════

def _cell(row: list, idx: int) -> str:
    return row[idx] if idx < len(row) and row[idx] is not None else ""


def parse_row_items(row: list) -> list:
    items = []
    end = min(len(row), ITEM_START + ITEM_SLOTS * ITEM_FIELDS)
    for i in range(ITEM_START, end, ITEM_FIELDS):
        if not row[i]:
            continue
        items.append({
            "name": row[i],
            "size": _cell(row, i + 1),
            "color": _cell(row, i + 2),
            "quantity": _cell(row, i + 3) or "1",
        })
    return items


def parse_order_history(rows: list) -> list:
    orders = []
    for index, row in enumerate(rows):
        orders.append({
            "orderNumber": _cell(row, 0) or f"ORD-{index + 1:05d}",
            "orderDate": _cell(row, 1),
            "orderTime": _cell(row, 2),
            "storeName": _cell(row, 3),
            "email": _cell(row, 4),
            "items": parse_row_items(row),
            "status": _cell(row, STATUS_IDX) or STATUS_PROCESSING,
            "shippingDate": _cell(row, SHIPPING_DATE_IDX) or None,
        })
    return orders


def merge_orders(*record_lists) -> list:
    """Union items per order number; a shipped part marks the whole order shipped."""
    merged = {}
    for records in record_lists:
        for rec in records:
            key = rec["orderNumber"]
            existing = merged.get(key)
            if existing is None:
                merged[key] = dict(rec, items=list(rec["items"]))
                continue
            existing["items"].extend(rec["items"])
            if rec["status"] == STATUS_SHIPPED:
                existing["status"] = STATUS_SHIPPED
                existing["shippingDate"] = rec["shippingDate"]
    return sorted(merged.values(), key=lambda o: f"{o['orderDate']} {o['orderTime']}",
                  reverse=True)


def _is_excluded(item_name: str) -> bool:
    return any(x in item_name for x in ADMIN_EXCLUDED_ITEMS)


def load_order_history(client, store_name: str = None, exclude_chemicals: bool = False) -> list:
    regular = parse_order_history(client.get_values(f"{sheets.ORDER_HISTORY}!A2:AV"))
    hirock = parse_order_history(client.get_values(f"{sheets.HIROCK_HISTORY}!A2:AV"))
    orders = merge_orders(regular, hirock)
    if store_name:
        orders = [o for o in orders if o["storeName"] == store_name]
    if exclude_chemicals:
        trimmed = []
        for o in orders:
            items = [it for it in o["items"] if not _is_excluded(it["name"])]
            if items:
                trimmed.append(dict(o, items=items))
        orders = trimmed
    return orders


# ═══════════════════════════════════════════════════════════════════════
# Admin updates
# ═══════════════════════════════════════════════════════════════════════

def find_order_rows(client, sheet: str, order_number: str) -> list:
    """1-indexed sheet rows whose column A equals order_number."""
    col = client.get_values(f"{sheet}!A2:A")
    return [i + 2 for i, row in enumerate(col) if row and row[0] == order_number]


def locate_order(client, order_number: str):
    """(sheet, rows) of the first sheet in LOOKUP_ORDER holding the order, else (None, [])."""
    for sheet in LOOKUP_ORDER:
        rows = find_order_rows(client, sheet, order_number)
        if rows:
            return sheet, rows
    return None, []


def _patch(client, order_number: str, col: str, value) -> dict:
    sheet, rows = locate_order(client, order_number)
    if not sheet:
        log.info("Order %s not found in any sheet", order_number)
        return {"ok": False, "error": "Order not found in any sheet", "status": 404}
    for row in rows:
        client.update_cell(sheets.cell(sheet, col, row), value)
    return {"ok": True, "sheet": sheet, "rows": rows}


def update_order_status(client, order_number: str, new_status: str) -> dict:
    if not order_number or not new_status:
        return {"ok": False, "error": "Order number and new status are required", "status": 400}
    if new_status not in KNOWN_STATUSES:
        log.warning("Order %s: unknown status %r accepted as-is", order_number, new_status)
    result = _patch(client, order_number, STATUS_COL, new_status)
    if result["ok"]:
        log.info("Order %s → %s (%s)", order_number, new_status, result["sheet"])
    return result


def get_hirock_order_items(client, order_number: str) -> dict:
    if not order_number:
        return {"ok": False, "error": "Order number is required", "status": 400}
    rows = client.get_values(f"{sheets.HIROCK_HISTORY}!A2:AV")
    if not rows:
        return {"ok": False, "error": "No orders found", "status": 404}
    matches = [r for r in rows if r and r[0] == order_number]
    if not matches:
        return {"ok": False, "error": "Order not found", "status": 404}
    items = []
    for row in matches:
        items.extend(parse_row_items(row))
    first = matches[0]
    return {
        "ok": True,
        "orderNumber": order_number,
        "storeName": _cell(first, 3),
        "email": _cell(first, 4),
        "items": items,
    }


def update_shipping_date(client, order_number: str, shipping_date: str,
                         notify: bool = True, run_async: bool = None) -> dict:
    """
    Patch AT on the order's rows. Partner-sheet orders also get a shipping
    notification listing that sheet's items only.
    """
    if not order_number:
        return {"ok": False, "error": "Order number is required", "status": 400}
    result = _patch(client, order_number, SHIPPING_DATE_COL, shipping_date or "")
    if not result["ok"]:
        return result
    log.info("Order %s shipping date → %s (%s)", order_number, shipping_date, result["sheet"])

    if notify and result["sheet"] == sheets.HIROCK_HISTORY:
        info = get_hirock_order_items(client, order_number)
        if info["ok"] and info["email"]:
            from src.agents import notify_agent
            notify_agent.dispatch(
                "shipping", notify_agent.send_shipping_notification,
                info["email"], order_number, info["storeName"], shipping_date, info["items"],
                run_async=run_async)
        else:
            log.warning("Order %s: no store email for shipping notification", order_number)
    return result
