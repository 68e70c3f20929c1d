# routes_mail.py — Direct email endpoints
# Synchronous: the caller sees the SMTP outcome.

import logging

from flask import jsonify

from src.api.dashboard import bp, json_body, json_error, upstream_error
from src.agents import notify_agent

log = logging.getLogger("dashboard")

MISSING_PARAMS = "必要なパラメータが不足しています"
SEND_FAILED = "メールの送信に失敗しました"


def _require(data: dict, *fields):
    missing = [f for f in fields if not data.get(f)]
    if missing:
        log.warning("Email request missing %s", ", ".join(missing))
    return not missing


def _sent(result: dict):
    return jsonify({"success": True, "messageId": result.get("messageId")})


@bp.route("/api/send-email", methods=["POST"])
def api_send_email():
    data = json_body()
    if not _require(data, "to", "orderNumber", "storeName", "items"):
        return json_error(MISSING_PARAMS, 400)
    try:
        result = notify_agent.send_order_confirmation(
            data["to"], data["orderNumber"], data["storeName"], data["items"],
            total_amount=data.get("totalAmount"), subject=data.get("subject"))
    except Exception as e:
        return upstream_error(SEND_FAILED, e)
    return _sent(result)


@bp.route("/api/send-partner-email", methods=["POST"])
def api_send_partner_email():
    data = json_body()
    if not _require(data, "to", "orderNumber", "storeName", "items"):
        return json_error(MISSING_PARAMS, 400)
    try:
        result = notify_agent.send_partner_notification(
            data["to"], data["orderNumber"], data["storeName"], data["items"],
            partner_name=data.get("partnerName", ""), subject=data.get("subject"))
    except Exception as e:
        return upstream_error(SEND_FAILED, e)
    return _sent(result)


@bp.route("/api/send-shipping-notification", methods=["POST"])
def api_send_shipping_notification():
    data = json_body()
    if not _require(data, "to", "orderNumber", "storeName", "items"):
        return json_error(MISSING_PARAMS, 400)
    try:
        result = notify_agent.send_shipping_notification(
            data["to"], data["orderNumber"], data["storeName"],
            data.get("shippingDate", ""), data["items"])
    except Exception as e:
        return upstream_error(SEND_FAILED, e)
    return _sent(result)


@bp.route("/api/send-parts-order-email", methods=["POST"])
def api_send_parts_order_email():
    data = json_body()
    if not _require(data, "to", "orderNumber", "storeName", "items", "shippingMethod"):
        return json_error(MISSING_PARAMS, 400)
    try:
        result = notify_agent.send_parts_order_confirmation(
            data["to"], data["orderNumber"], data["storeName"], data["items"],
            data["shippingMethod"])
    except Exception as e:
        return upstream_error(SEND_FAILED, e)
    return _sent(result)
