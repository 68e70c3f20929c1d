# routes_catalog.py — Sheet proxy, machine items, store login, cart totals, quantity options, health

import logging

from flask import jsonify, request

from src.api.dashboard import bp, json_body, json_error, upstream_error
from src.core import catalog, orders, parts, pricing, sheets, stores
from src.core.secrets import validate_all

log = logging.getLogger("dashboard")

STORE_INFO_QUERY = stores.STORE_INFO_RANGE

# Sheet-proxy ranges for the named tabs; anything else is passed through
PROXY_RANGES = {
    sheets.AVAILABLE_ITEMS: catalog.AVAILABLE_ITEMS_RANGE,
    sheets.ORDER_HISTORY: f"{sheets.ORDER_HISTORY}!A2:AV",
    sheets.HIROCK_HISTORY: f"{sheets.HIROCK_HISTORY}!A2:AV",
}

# Served for any other tab when the spreadsheet is not configured
FALLBACK_SHEET_ROWS = [
    ["store1", "テスト店舗1", "東京都渋谷区", "03-1234-5678", "山田太郎", "test1@example.com"],
    ["store2", "テスト店舗2", "大阪府大阪市", "06-1234-5678", "佐藤次郎", "test2@example.com"],
]


def _fallback_for(sheet: str):
    if sheet == STORE_INFO_QUERY:
        return stores.fallback_rows()
    return FALLBACK_SHEET_ROWS


# ═══════════════════════════════════════════════════════════════════════
# Sheet proxy
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/api/sheets", methods=["GET"])
def api_sheets():
    """Read a tab. Catalog → grouped products, history tabs → parsed orders."""
    sheet = request.args.get("sheet", "")
    if not sheet:
        return json_error("Sheet name is required", 400)

    try:
        client = sheets.get_client()
    except sheets.SheetsNotConfigured as e:
        log.warning("Sheets not configured (%s), serving fallback for %s", e, sheet)
        return jsonify(_fallback_for(sheet))

    range_a1 = PROXY_RANGES.get(sheet, sheet)
    try:
        rows = client.get_values(range_a1)
    except Exception as e:
        if sheet == STORE_INFO_QUERY:
            log.warning("store_info fetch failed (%s), serving fallback stores", e)
            return jsonify(stores.fallback_rows())
        return upstream_error("Error fetching data from Google Sheets", e,
                              with_stack=True, sheet=sheet)

    if not rows:
        log.warning("No data found in sheet: %s", range_a1)
        if sheet == STORE_INFO_QUERY:
            return jsonify(stores.fallback_rows())
        return json_error("No data found", 404, sheet=sheet)

    if sheet == sheets.AVAILABLE_ITEMS:
        return jsonify(catalog.process_available_items(rows))
    if sheet in (sheets.ORDER_HISTORY, sheets.HIROCK_HISTORY):
        return jsonify(orders.parse_order_history(rows))
    return jsonify(rows)


@bp.route("/api/machine-items", methods=["GET"])
def api_machine_items():
    try:
        items = parts.load_machine_items(sheets.get_client())
    except Exception as e:
        return upstream_error("Failed to fetch machine items", e)
    return jsonify(items)


# ═══════════════════════════════════════════════════════════════════════
# Store login
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/api/login", methods=["POST"])
def api_login():
    data = json_body()
    store_id = (data.get("storeId") or data.get("id") or "").strip()
    email = (data.get("email") or "").strip()
    password = data.get("password") or ""
    if not (store_id and email and password):
        return json_error("Store ID, email and password are required", 400)

    try:
        rows = stores.load_store_rows(sheets.get_client())
    except Exception as e:
        log.warning("store_info unavailable (%s), using fallback stores", e)
        rows = []
    if not rows:
        rows = stores.fallback_rows(include_parts_account=True)

    store = stores.authenticate_store(rows, store_id, email, password)
    if store is None:
        return json_error("Invalid store ID, email or password", 401)
    log.info("Store login: %s (%s)", store["id"], store["name"])
    return jsonify({"success": True, "store": store})


# ═══════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/api/cart/totals", methods=["POST"])
def api_cart_totals():
    """Subtotal / tax / shipping / total and delivery estimate for a client cart."""
    items = json_body().get("items")
    if not isinstance(items, list):
        return json_error("items must be a list", 400)
    totals = pricing.cart_totals(items)
    totals["delivery"] = pricing.delivery_range(items)
    return jsonify(totals)


@bp.route("/api/quantity-options", methods=["GET"])
def api_quantity_options():
    """Selectable amounts for one product (?name=, optional ?color=)."""
    name = request.args.get("name", "").strip()
    if not name:
        return json_error("Product name is required", 400)
    try:
        products = catalog.load_available_items(sheets.get_client())
    except sheets.SheetsNotConfigured:
        products = []
    except Exception as e:
        return upstream_error("Failed to fetch catalog", e)
    product = catalog.find_product(products, name, request.args.get("color", "")) or {"name": name}
    return jsonify({"name": name, "options": pricing.quantity_options(product)})


# ═══════════════════════════════════════════════════════════════════════
# Health
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/api/health", methods=["GET"])
def api_health():
    report = validate_all()
    return jsonify({
        "status": "ok",
        "sheets_configured": sheets.is_configured() and sheets.has_credentials(),
        "config": {"set": report["set"], "total": report["total"]},
        "warnings": report["warnings"],
    })
