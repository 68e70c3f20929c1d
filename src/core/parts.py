"""
Machine spare parts — catalog (machine_item) and orders (machine_item_history).
"""

import logging

from src.api.trace import Trace
from src.core import orders, sheets

log = logging.getLogger("parts")

MACHINE_ITEM_RANGE = f"{sheets.MACHINE_ITEM}!A2:D"


def _cell(row: list, idx: int) -> str:
    return str(row[idx]).strip() if idx < len(row) and row[idx] is not None else ""


def parse_machine_items(rows: list) -> list:
    """machine_item rows → parts records; rows with a blank field are dropped."""
    items = []
    for i, row in enumerate(rows):
        store, category, name = (_cell(row, c) for c in (1, 2, 3))
        if not (store and category and name):
            continue
        items.append({
            "id": f"machine-item-{i + 1}",
            "storeName": store,
            "category": category,
            "itemName": name,
        })
    return items


def load_machine_items(client) -> list:
    items = parse_machine_items(client.get_values(MACHINE_ITEM_RANGE))
    log.info("Machine items: %d", len(items))
    return items


def build_parts_rows(order_number, date_str, time_str, store_info, items, shipping_method) -> list:
    return [
        [
            order_number,
            date_str,
            time_str,
            store_info.get("name", ""),
            store_info.get("email", ""),
            item.get("storeName", ""),
            item.get("category", ""),
            item.get("itemName", ""),
            str(item.get("quantity", "")),
            shipping_method,
        ]
        for item in items
    ]


def save_parts_order(client, items, store_info, shipping_method="", now=None,
                     notify: bool = True, run_async: bool = None) -> dict:
    """Shipping method is optional; a blank one is stored as an empty J cell."""
    if not items or not store_info:
        return {"ok": False, "error": "Missing required data", "status": 400}
    shipping_method = shipping_method or ""

    order_number = orders.generate_order_number("PO")
    t = Trace("parts_order", order_number=order_number, store=store_info.get("name", ""))
    date_str, time_str = orders.now_jst_strings(now)

    try:
        for row in build_parts_rows(order_number, date_str, time_str, store_info, items,
                                    shipping_method):
            client.append_row(f"{sheets.MACHINE_ITEM_HISTORY}!A1", row)
    except Exception as e:
        t.fail("Append failed", error=str(e))
        raise
    t.step("Appended", rows=len(items))
    log.info("Parts order %s: %d lines from %s", order_number, len(items), store_info.get("name"))

    if notify and store_info.get("email"):
        from src.agents import notify_agent
        notify_agent.dispatch(
            "parts", notify_agent.send_parts_order_confirmation,
            store_info["email"], order_number, store_info.get("name", ""), items, shipping_method,
            run_async=run_async)
        t.step("Confirmation dispatched")

    t.ok("Saved")
    return {
        "ok": True,
        "orderNumber": order_number,
        "orderData": {"items": items, "storeInfo": store_info, "shippingMethod": shipping_method},
    }
