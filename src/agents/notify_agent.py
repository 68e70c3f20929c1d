"""
notify_agent.py — Transactional email for the ordering backend

EMAILS:
  ┌──────────────────────────────┬──────────────────────┬──────────────────────────┐
  │ Event                        │ To                   │ Subject                  │
  ├──────────────────────────────┼──────────────────────┼──────────────────────────┤
  │ order saved                  │ store                │ 【SPLASH'N'GO!】発注確認  │
  │ order saved (per partner)    │ partner              │ 【SPLASH'N'GO!】発注通知  │
  │ shipping date set (hirock)   │ store                │ 【SPLASH'N'GO!】出荷通知  │
  │ parts order saved            │ store, Cc head office│ 【SPLASH'N'GO!】部品発注確認│
  └──────────────────────────────┴──────────────────────┴──────────────────────────┘

SETUP (env vars, see src/core/secrets.py):
  SMTP_HOST / SMTP_PORT  = smtp.gmail.com / 587
  SMTP_SECURE            = true → SMTP_SSL, otherwise STARTTLS
  SMTP_USER / SMTP_PASSWORD / SMTP_FROM
  NOTIFY_ASYNC           = false → send inline (tests, local debugging)

Order notifications are best-effort: a failed send is logged and never
reaches the order response.
"""

import logging
import smtplib
import threading
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid

from src.agents import email_templates as tpl
from src.core import pricing
from src.core.secrets import get_key, get_flag, get_int

log = logging.getLogger("notify")

SUBJECT_PREFIX = "【SPLASH'N'GO!】"


def _subject(kind: str, order_number: str) -> str:
    return f"{SUBJECT_PREFIX}{kind} ({order_number})"


# ══════════════════════════════════════════════════════════════════════════════
# TRANSPORT
# ══════════════════════════════════════════════════════════════════════════════

def _smtp_connection():
    host = get_key("smtp_host")
    port = get_int("smtp_port", 587)
    if get_flag("smtp_secure"):
        return smtplib.SMTP_SSL(host, port, timeout=30)
    server = smtplib.SMTP(host, port, timeout=30)
    server.starttls()
    return server


def send_email(to: str, subject: str, html: str, cc: str = None) -> dict:
    """
    Send one HTML email. Raises on transport errors; callers on the order
    path go through dispatch(), which logs instead.
    """
    msg = MIMEMultipart("alternative")
    msg["From"] = get_key("smtp_from")
    msg["To"] = to
    if cc:
        msg["Cc"] = cc
    msg["Subject"] = subject
    msg["Message-ID"] = make_msgid(domain="splashngo.example.com")
    msg.attach(MIMEText(html, "html", "utf-8"))

    with _smtp_connection() as server:
        user = get_key("smtp_user")
        if user:
            server.login(user, get_key("smtp_password"))
        server.send_message(msg)

    log.info("Email sent: %s → %s%s", subject[:60], to, f" (cc {cc})" if cc else "")
    return {"ok": True, "to": to, "subject": subject, "messageId": msg["Message-ID"]}


def _send_quietly(label: str, fn, *args, **kwargs) -> dict:
    try:
        return fn(*args, **kwargs)
    except Exception as e:
        log.error("%s email failed: %s", label, e)
        return {"ok": False, "error": str(e)}


def dispatch(label: str, fn, *args, run_async: bool = None, **kwargs) -> dict:
    """
    Best-effort send. Runs fn on a daemon thread unless NOTIFY_ASYNC=false
    or run_async=False.
    """
    if run_async is None:
        run_async = get_flag("notify_async")
    if run_async:
        t = threading.Thread(
            target=_send_quietly,
            args=(label, fn) + args,
            kwargs=kwargs,
            daemon=True,
            name=f"mail-{label[:16]}",
        )
        t.start()
        return {"ok": True, "async": True}
    return _send_quietly(label, fn, *args, **kwargs)


# ══════════════════════════════════════════════════════════════════════════════
# EMAILS
# ══════════════════════════════════════════════════════════════════════════════

def send_order_confirmation(to: str, order_number: str, store_name: str, items: list,
                            totals: dict = None, total_amount=None, subject: str = None) -> dict:
    if totals is None:
        totals = pricing.cart_totals(items)
    if total_amount is not None:
        totals = dict(totals, total=round(pricing.to_number(total_amount)))
    html = tpl.order_confirmation_html(order_number, store_name, items, totals,
                                       delivery=pricing.delivery_range(items))
    return send_email(to, subject or _subject("発注確認", order_number), html)


def send_partner_notification(to: str, order_number: str, store_name: str, items: list,
                              partner_name: str = "", subject: str = None) -> dict:
    html = tpl.partner_notification_html(order_number, store_name, partner_name, items)
    return send_email(to, subject or _subject("発注通知", order_number), html)


def send_shipping_notification(to: str, order_number: str, store_name: str,
                               shipping_date: str, items: list) -> dict:
    html = tpl.shipping_notification_html(order_number, store_name, shipping_date, items)
    return send_email(to, _subject("出荷通知", order_number), html)


def send_parts_order_confirmation(to: str, order_number: str, store_name: str, items: list,
                                  shipping_method: str) -> dict:
    html = tpl.parts_order_confirmation_html(order_number, store_name, items, shipping_method)
    return send_email(to, _subject("部品発注確認", order_number), html,
                      cc=tpl.HEAD_OFFICE_EMAIL)


def notify_order(order_number: str, store_info: dict, items: list, partner_groups: dict,
                 totals: dict = None, run_async: bool = None) -> dict:
    """Store confirmation plus one mail per partner group. Never raises."""
    results = {"confirmation": None, "partners": {}}
    to = store_info.get("email", "")
    if to:
        results["confirmation"] = dispatch(
            "confirmation", send_order_confirmation, to, order_number,
            store_info.get("name", ""), items, totals=totals, run_async=run_async)
    else:
        log.warning("Order %s: store has no email, skipping confirmation", order_number)

    if not partner_groups:
        log.info("Order %s: no partner items, no partner mail", order_number)
    for name, group in partner_groups.items():
        results["partners"][name] = dispatch(
            f"partner-{name}", send_partner_notification, group["email"], order_number,
            store_info.get("name", ""), group["items"], partner_name=name, run_async=run_async)
    return results
