# routes_orders.py — Order submission, history and admin updates

import logging

from flask import jsonify, request

from src.api.dashboard import (bp, admin_required, json_body, json_error, result_error,
                               upstream_error)
from src.api.trace import get_trace, get_traces
from src.core import orders, sheets

log = logging.getLogger("dashboard")


@bp.route("/api/save-order", methods=["POST"])
def api_save_order():
    data = json_body()
    items = data.get("items")
    store_info = data.get("storeInfo")
    if not items or not isinstance(items, list) or not store_info:
        return json_error("Missing required data", 400)

    try:
        result = orders.save_order(sheets.get_client(), items, store_info,
                                   total_amount=data.get("totalAmount"))
    except Exception as e:
        return upstream_error("Failed to save order data", e)
    if not result["ok"]:
        return result_error(result)
    return jsonify({"success": True, "orderNumber": result["orderNumber"],
                    "totals": result["totals"]})


@bp.route("/api/orders", methods=["GET"])
def api_orders():
    """Merged order history. ?store=<name> for a store view, ?admin=1 for the admin view."""
    admin_view = request.args.get("admin", "").lower() in ("1", "true", "yes")
    store = request.args.get("store") or None
    if admin_view:
        return _admin_orders(store)
    try:
        result = orders.load_order_history(sheets.get_client(), store_name=store)
    except Exception as e:
        return upstream_error("Failed to fetch order history", e)
    return jsonify(result)


@admin_required
def _admin_orders(store):
    try:
        result = orders.load_order_history(sheets.get_client(), store_name=store,
                                           exclude_chemicals=True)
    except Exception as e:
        return upstream_error("Failed to fetch order history", e)
    return jsonify(result)


@bp.route("/api/update-order-status", methods=["POST"])
@admin_required
def api_update_order_status():
    data = json_body()
    order_number = data.get("orderNumber")
    new_status = data.get("newStatus") or data.get("status")
    if not order_number or not new_status:
        return json_error("Order number and new status are required", 400)
    try:
        result = orders.update_order_status(sheets.get_client(), order_number, new_status)
    except Exception as e:
        return upstream_error("Failed to update order status", e)
    if not result["ok"]:
        return result_error(result)
    return jsonify({"success": True, "sheet": result["sheet"]})


@bp.route("/api/update-shipping-date", methods=["POST"])
@admin_required
def api_update_shipping_date():
    data = json_body()
    order_number = data.get("orderNumber")
    if not order_number:
        return json_error("Order number is required", 400)
    try:
        result = orders.update_shipping_date(sheets.get_client(), order_number,
                                             data.get("shippingDate"))
    except Exception as e:
        return upstream_error("Failed to update shipping date", e)
    if not result["ok"]:
        return result_error(result)
    return jsonify({"success": True, "sheet": result["sheet"]})


@bp.route("/api/get-hirock-order-items", methods=["GET"])
def api_get_hirock_order_items():
    order_number = request.args.get("orderNumber", "")
    if not order_number:
        return json_error("Order number is required", 400)
    try:
        result = orders.get_hirock_order_items(sheets.get_client(), order_number)
    except Exception as e:
        return upstream_error("Failed to fetch order items", e)
    if not result["ok"]:
        return result_error(result)
    result.pop("ok")
    return jsonify(result)


# ═══════════════════════════════════════════════════════════════════════
# Workflow traces
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/api/admin/traces", methods=["GET"])
@admin_required
def api_traces():
    limit = request.args.get("limit", 50, type=int)
    return jsonify(get_traces(workflow=request.args.get("workflow"),
                              status=request.args.get("status"), limit=limit))


@bp.route("/api/admin/traces/<trace_id>", methods=["GET"])
@admin_required
def api_trace_detail(trace_id):
    trace = get_trace(trace_id)
    if trace is None:
        return json_error("Trace not found", 404)
    return jsonify(trace)
