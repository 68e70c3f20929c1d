"""
email_templates.py — HTML bodies for every transactional email.

All templates share the SPLASH'N'GO! header/footer frame. Values coming
from the sheet or the request body are HTML-escaped before interpolation.
"""

from datetime import datetime
from html import escape
from zoneinfo import ZoneInfo

from src.core import pricing
from src.core.secrets import public_base_url

JST = ZoneInfo("Asia/Tokyo")

BRAND = "SPLASH'N'GO!"
HEAD_OFFICE_EMAIL = "info@splashbrothers.co.jp"
HEAD_OFFICE_PHONE = "050-1748-0947"

# Parts confirmation shows the Japanese reading next to each method
PARTS_SHIPPING_METHOD_TEXT = {
    "air": "Air shipment (航空便)",
    "sea": "Sea shipment (船便)",
    "next_order": "At the same time as the next car wash machine order (次回洗車機注文と同時)",
}

_TD = 'style="padding: 8px; border-bottom: 1px solid #eee;"'
_TD_C = 'style="padding: 8px; border-bottom: 1px solid #eee; text-align: center;"'
_TD_R = 'style="padding: 8px; border-bottom: 1px solid #eee; text-align: right;"'
_TH = 'style="padding: 10px; text-align: {align}; font-weight: 600;"'


def _e(value) -> str:
    return escape(str(value if value is not None else ""))


def _yen(amount) -> str:
    return f"¥{round(pricing.to_number(amount)):,}"


def now_jst_text() -> str:
    return datetime.now(JST).strftime("%Y/%m/%d %H:%M:%S")


def _frame(title: str, body: str, accent: str = "#0ea5e9") -> str:
    return f"""
    <div style="font-family: sans-serif; max-width: 600px; margin: 0 auto;">
      <div style="background: {accent}; color: white; padding: 20px; text-align: center; border-radius: 8px 8px 0 0;">
        <h1 style="margin: 0; font-size: 24px;">{BRAND}</h1>
        <p style="margin: 5px 0 0; font-size: 16px;">{_e(title)}</p>
      </div>
      <div style="padding: 25px; background-color: #f8fafc; border-left: 1px solid #e2e8f0; border-right: 1px solid #e2e8f0;">
        {body}
      </div>
      <div style="background-color: #1e293b; color: white; padding: 15px; text-align: center; font-size: 12px; border-radius: 0 0 8px 8px;">
        <p style="margin: 0 0 5px;">© {datetime.now(JST).year} {BRAND} All rights reserved.</p>
        <p style="margin: 0;">お問い合わせ: <a href="mailto:{HEAD_OFFICE_EMAIL}" style="color: #7dd3fc;">{HEAD_OFFICE_EMAIL}</a> | {HEAD_OFFICE_PHONE}</p>
      </div>
    </div>
    """


def _item_variant(item: dict) -> str:
    parts = []
    if item.get("selectedColor"):
        parts.append(f"カラー: {item['selectedColor']}")
    if item.get("selectedSize"):
        parts.append(f"サイズ: {item['selectedSize']}")
    return " / ".join(parts)


def _cart_rows(items: list, with_price: bool) -> str:
    rows = []
    for it in items:
        variant = _item_variant(it)
        name = _e(it.get("item_name", ""))
        if variant:
            name += f'<br><span style="color: #64748b; font-size: 12px;">{_e(variant)}</span>'
        cells = f"<td {_TD}>{name}</td><td {_TD_C}>{_e(pricing.format_quantity(it))}</td>"
        if with_price:
            cells += f"<td {_TD_R}>{_yen(pricing.line_total(it))}</td>"
        rows.append(f"<tr>{cells}</tr>")
    return "".join(rows)


def order_confirmation_html(order_number: str, store_name: str, items: list,
                            totals: dict, delivery: str = "") -> str:
    delivery_line = (
        f'<p><strong>お届け予定:</strong> {_e(delivery)}</p>' if delivery else ""
    )
    shipping_row = ""
    if totals.get("shippingFee"):
        shipping_row = f'<p style="margin: 4px 0;">送料: {_yen(totals["shippingFee"])}</p>'
    body = f"""
        <p>{_e(store_name)} 様</p>
        <p>この度はご発注をいただき、誠にありがとうございます。<br>以下の内容でご発注を承りました。</p>
        <div style="background-color: white; border-radius: 8px; padding: 20px; margin: 20px 0; border: 1px solid #e2e8f0;">
          <h2 style="margin-top: 0; font-size: 18px;">発注情報</h2>
          <p><strong>発注番号:</strong> {_e(order_number)}</p>
          <p><strong>発注日時:</strong> {now_jst_text()}</p>
          {delivery_line}
          <table style="width: 100%; border-collapse: collapse;">
            <thead><tr style="background-color: #f1f5f9;">
              <th {_TH.format(align="left")}>商品名</th>
              <th {_TH.format(align="center")}>数量</th>
              <th {_TH.format(align="right")}>金額</th>
            </tr></thead>
            <tbody>{_cart_rows(items, with_price=True)}</tbody>
          </table>
          <div style="margin-top: 20px; text-align: right;">
            <p style="margin: 4px 0;">小計: {_yen(totals.get("subtotal", 0))}</p>
            <p style="margin: 4px 0;">消費税(10%): {_yen(totals.get("tax", 0))}</p>
            {shipping_row}
            <p style="margin: 4px 0; font-size: 18px;"><strong>合計: {_yen(totals.get("total", 0))}</strong></p>
          </div>
        </div>
        <p>商品の準備が整い次第、発送いたします。</p>
    """
    return _frame("発注確認", body)


def partner_notification_html(order_number: str, store_name: str, partner_name: str,
                              items: list) -> str:
    body = f"""
        <p>{_e(partner_name)} 御中</p>
        <p>いつもお世話になっております。<br>{BRAND} より以下の商品の発注がございました。ご手配をお願いいたします。</p>
        <div style="background-color: white; border-radius: 8px; padding: 20px; margin: 20px 0; border: 1px solid #e2e8f0;">
          <p><strong>発注番号:</strong> {_e(order_number)}</p>
          <p><strong>発注店舗:</strong> {_e(store_name)}</p>
          <p><strong>発注日時:</strong> {now_jst_text()}</p>
          <table style="width: 100%; border-collapse: collapse;">
            <thead><tr style="background-color: #f1f5f9;">
              <th {_TH.format(align="left")}>商品名</th>
              <th {_TH.format(align="center")}>数量</th>
            </tr></thead>
            <tbody>{_cart_rows(items, with_price=False)}</tbody>
          </table>
        </div>
    """
    return _frame("発注通知", body, accent="#6366f1")


def shipping_notification_html(order_number: str, store_name: str, shipping_date: str,
                               items: list) -> str:
    rows = "".join(
        f"<tr><td {_TD}>{_e(it.get('name'))}</td>"
        f"<td {_TD_C}>{_e(it.get('size'))}</td>"
        f"<td {_TD_C}>{_e(it.get('color'))}</td>"
        f"<td {_TD_C}>{_e(it.get('quantity'))}</td></tr>"
        for it in items
    )
    body = f"""
        <p>{_e(store_name)} 様</p>
        <p>ご発注いただいた商品を出荷いたしました。</p>
        <div style="background-color: white; border-radius: 8px; padding: 20px; margin: 20px 0; border: 1px solid #e2e8f0;">
          <p><strong>発注番号:</strong> {_e(order_number)}</p>
          <p><strong>出荷日:</strong> {_e(shipping_date)}</p>
          <table style="width: 100%; border-collapse: collapse;">
            <thead><tr style="background-color: #f1f5f9;">
              <th {_TH.format(align="left")}>商品名</th>
              <th {_TH.format(align="center")}>サイズ</th>
              <th {_TH.format(align="center")}>カラー</th>
              <th {_TH.format(align="center")}>数量</th>
            </tr></thead>
            <tbody>{rows}</tbody>
          </table>
        </div>
        <p>到着まで今しばらくお待ちください。</p>
        <p><a href="{_e(public_base_url())}/order-history" style="color: #16a34a;">発注履歴を確認する</a></p>
    """
    return _frame("出荷のお知らせ", body, accent="#16a34a")


def parts_shipping_method_text(method: str) -> str:
    return PARTS_SHIPPING_METHOD_TEXT.get(method, method)


def parts_order_confirmation_html(order_number: str, store_name: str, items: list,
                                  shipping_method: str) -> str:
    rows = "".join(
        f"<tr><td {_TD}>{_e(it.get('itemName'))}</td>"
        f"<td {_TD_C}>{_e(it.get('category'))}</td>"
        f"<td {_TD_C}>{_e(it.get('storeName'))}</td>"
        f"<td {_TD_C}>{_e(it.get('quantity'))}個</td></tr>"
        for it in items
    )
    total_qty = sum(int(pricing.to_number(it.get("quantity"))) for it in items)
    body = f"""
        <p>{_e(store_name)} 様</p>
        <p>この度は部品のご発注をいただき、誠にありがとうございます。<br>以下の内容でご発注を承りました。</p>
        <div style="background-color: white; border-radius: 8px; padding: 20px; margin: 20px 0; border: 1px solid #fde68a;">
          <h2 style="margin-top: 0; color: #d97706; font-size: 18px;">発注情報</h2>
          <p><strong>発注番号:</strong> {_e(order_number)}</p>
          <p><strong>発注日時:</strong> {now_jst_text()}</p>
          <p><strong>配送方法:</strong> {_e(parts_shipping_method_text(shipping_method))}</p>
          <h3 style="margin: 20px 0 10px; color: #d97706; font-size: 16px;">発注部品</h3>
          <table style="width: 100%; border-collapse: collapse;">
            <thead><tr style="background-color: #fef3c7;">
              <th {_TH.format(align="left")}>部品名</th>
              <th {_TH.format(align="center")}>カテゴリー</th>
              <th {_TH.format(align="center")}>店舗</th>
              <th {_TH.format(align="center")}>数量</th>
            </tr></thead>
            <tbody>{rows}</tbody>
          </table>
          <div style="margin-top: 20px; text-align: right;">
            <p><strong>合計部品種類:</strong> {len(items)}種類</p>
            <p><strong>合計数量:</strong> {total_qty}個</p>
          </div>
        </div>
        <p>部品の手配を開始いたします。<br>進捗状況につきましては、別途ご連絡させていただきます。</p>
    """
    return _frame("部品発注確認", body, accent="#eab308")
