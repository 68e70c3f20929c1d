# routes_parts.py — Machine parts orders and purchase-order documents

import io
import logging

from flask import jsonify, send_file

from src.api.dashboard import bp, json_body, json_error, result_error, upstream_error
from src.core import parts, sheets
from src.forms.purchase_order import generate_purchase_order

log = logging.getLogger("dashboard")


@bp.route("/api/save-parts-order", methods=["POST"])
def api_save_parts_order():
    data = json_body()
    items = data.get("items")
    store_info = data.get("storeInfo")
    shipping_method = data.get("shippingMethod") or ""
    if not items or not store_info:
        return json_error("Missing required data", 400)

    try:
        result = parts.save_parts_order(sheets.get_client(), items, store_info, shipping_method)
    except Exception as e:
        return upstream_error("Failed to save parts order data", e)
    if not result["ok"]:
        return result_error(result)
    return jsonify({"success": True, "orderNumber": result["orderNumber"],
                    "orderData": result["orderData"]})


@bp.route("/api/generate-purchase-order", methods=["POST"])
def api_generate_purchase_order():
    data = json_body()
    try:
        result = generate_purchase_order(
            data.get("items"), data.get("storeInfo"), data.get("shippingMethod", ""),
            data.get("format"), order_number=data.get("orderNumber"))
    except Exception as e:
        return upstream_error("Failed to generate purchase order", e)
    if not result["ok"]:
        return result_error(result)
    return send_file(io.BytesIO(result["content"]), mimetype=result["mimetype"],
                     as_attachment=True, download_name=result["filename"])
