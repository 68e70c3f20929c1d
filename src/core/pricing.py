"""
Pricing, quantity and lead-time rules for the store catalog.

Nothing here is computed from data — every price is a table lookup:

  1. Store-specific override   (STORE_SPECIFIC_PRICES, store → product substring)
  2. Fixed quantity tiers       (FIXED_QUANTITY_PRICE_MAP, promotional goods)
  3. Apparel size table         (TSHIRT_PRICES / HOODIE_PRICES)
  4. Catalog prices[0] × quantity

Cart totals add a flat 10% consumption tax and a flat ¥1,000 shipping fee
when any apparel item is present.
"""

import logging
import re
from datetime import date, timedelta
from typing import Optional

log = logging.getLogger("pricing")

TAX_RATE = 0.10
APPAREL_SHIPPING_FEE = 1000

# ═══════════════════════════════════════════════════════════════════════════════
# ITEM CLASSES — matched by substring of the product name
# ═══════════════════════════════════════════════════════════════════════════════

APPAREL_ITEMS = ["Tシャツ", "フーディ", "ワークシャツ", "つなぎ"]
SIZE_PRICED_ITEMS = ["Tシャツ", "フーディ"]

SPECIAL_PROMOTIONAL_ITEMS = [
    "ポイントカード",
    "サブスクメンバーズカード",
    "サブスクフライヤー",
    "フリーチケット",
    "クーポン券",
    "名刺",
    "のぼり",
    "お年賀",
    "利用規約",
    "ピッカークロス",
]

# Banner sets are always stored as a single set
BANNER_SET_ITEMS = ["のぼり(6枚1セット)", "のぼり(10枚1セット)"]

THREE_WEEK_DELIVERY_ITEMS = [
    "Tシャツ", "フーディ", "ワークシャツ", "つなぎ",
    "ポイントカード", "サブスクメンバーズカード", "サブスクフライヤー",
    "フリーチケット", "クーポン券", "のぼり", "お年賀", "利用規約",
]
FOUR_DAY_DELIVERY_ITEMS = ["スプシャン", "スプワックス", "スプコート", "セラミック", "スプタイヤ", "ピッカークロス"]

PROMOTIONAL_CATEGORY = "販促グッズ"
CHEMICAL_CATEGORY = "液剤"

# ═══════════════════════════════════════════════════════════════════════════════
# PRICE TABLES (JPY, tax excluded)
# ═══════════════════════════════════════════════════════════════════════════════

FIXED_QUANTITY_PRICE_MAP = {
    "ポイントカード": [
        {"quantity": 1000, "label": "1000枚", "price": 29370},
        {"quantity": 3000, "label": "3000枚", "price": 46090},
        {"quantity": 5000, "label": "5000枚", "price": 62920},
    ],
    "サブスクメンバーズカード": [
        {"quantity": 500, "label": "500枚", "price": 23540},
        {"quantity": 1000, "label": "1000枚", "price": 36080},
        {"quantity": 1500, "label": "1500枚", "price": 48620},
    ],
    "サブスクフライヤー": [
        {"quantity": 500, "label": "500枚", "price": 6600},
        {"quantity": 1000, "label": "1000枚", "price": 7370},
        {"quantity": 1500, "label": "1500枚", "price": 8360},
    ],
    "フリーチケット": [{"quantity": 1000, "label": "1000枚", "price": 23100}],
    "クーポン券": [{"quantity": 1000, "label": "1000枚", "price": 42680}],
    "のぼり(10枚1セット)": [{"quantity": 10, "label": "10枚1セット", "price": 26620}],
    "のぼり(6枚1セット)": [{"quantity": 6, "label": "6枚1セット", "price": 19140}],
    "お年賀": [{"quantity": 100, "label": "100枚", "price": 25000}],
    "利用規約": [
        {"quantity": 500, "label": "500枚", "price": 999999},
        {"quantity": 1000, "label": "1000枚", "price": 999999},
    ],
    "ピッカークロス": [
        {"quantity": 400, "label": "400枚", "price": 30000},
        {"quantity": 800, "label": "800枚", "price": 60000},
        {"quantity": 1200, "label": "1200枚", "price": 90000},
    ],
}

TSHIRT_PRICES = {"M": 1810, "L": 1810, "XL": 1810, "XXL": 2040}
HOODIE_PRICES = {"M": 3210, "L": 3210, "XL": 3210, "XXL": 3770, "XXXL": 4000}
TSHIRT_DEFAULT_PRICE = 1810
HOODIE_DEFAULT_PRICE = 3210

STORE_SPECIFIC_PRICES = {
    "SPLASH'N'GO!伊勢崎韮塚店": {"スプワックス": 40000, "スプコート": 25000},
    "SPLASH'N'GO!高崎棟高店": {"スプワックス": 37000, "スプコート": 23000},
    "SPLASH'N'GO!足利緑町店": {"スプワックス": 37000, "スプコート": 23000},
    "SPLASH'N'GO!新前橋店": {"スプワックス": 26000, "スプコート": 20000},
}


# ═══════════════════════════════════════════════════════════════════════════════
# Classification
# ═══════════════════════════════════════════════════════════════════════════════

def _contains_any(name: str, needles: list) -> bool:
    return any(n in (name or "") for n in needles)


def is_apparel(name: str) -> bool:
    return _contains_any(name, APPAREL_ITEMS)


def has_size_based_price(name: str) -> bool:
    return _contains_any(name, SIZE_PRICED_ITEMS)


def is_special_item(name: str) -> bool:
    return _contains_any(name, SPECIAL_PROMOTIONAL_ITEMS)


def is_banner_set(name: str) -> bool:
    return _contains_any(name, BANNER_SET_ITEMS)


def to_number(value) -> float:
    """'¥1,810' → 1810.0; lists use their first entry; junk → 0."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else ""
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = re.sub(r"[^0-9.\-]+", "", str(value or ""))
    try:
        return float(cleaned) if cleaned else 0.0
    except ValueError:
        return 0.0


# ═══════════════════════════════════════════════════════════════════════════════
# Price lookup
# ═══════════════════════════════════════════════════════════════════════════════

def store_specific_price(product_name: str, store_name: Optional[str]) -> Optional[int]:
    if not store_name:
        return None
    for needle, price in STORE_SPECIFIC_PRICES.get(store_name, {}).items():
        if needle in product_name:
            return price
    return None


def fixed_quantity_price(product_name: str, quantity) -> Optional[int]:
    """Tier price for a promotional item at exactly `quantity` (last matching key wins)."""
    found = None
    qty = int(to_number(quantity))
    for needle, tiers in FIXED_QUANTITY_PRICE_MAP.items():
        if needle in product_name:
            for tier in tiers:
                if tier["quantity"] == qty:
                    found = tier["price"]
    return found


def banner_set_price(product_name: str) -> Optional[int]:
    """A banner set has one tier; its price holds whatever quantity the cart carries."""
    for needle in BANNER_SET_ITEMS:
        if needle in product_name:
            return FIXED_QUANTITY_PRICE_MAP[needle][0]["price"]
    return None


def apparel_size_price(product_name: str, size: str) -> Optional[int]:
    if not size or not has_size_based_price(product_name):
        return None
    if "Tシャツ" in product_name:
        return TSHIRT_PRICES.get(size, TSHIRT_DEFAULT_PRICE)
    if "フーディ" in product_name:
        return HOODIE_PRICES.get(size, HOODIE_DEFAULT_PRICE)
    return None


def resolve_unit_price(product: dict, store_name: Optional[str] = None,
                       size: str = "", quantity=None) -> float:
    """
    Price for one cart line's pricing unit, following the lookup order above.

    For special promotional items the result is the whole tier price for
    `quantity` pieces; for everything else it is the per-unit price.
    """
    name = product.get("name", "")

    override = store_specific_price(name, store_name)
    if override is not None and not is_apparel(name) and not is_special_item(name):
        return float(override)

    if is_special_item(name):
        tier = fixed_quantity_price(name, quantity)
        if tier is None:
            tier = banner_set_price(name)
        if tier is not None:
            return float(tier)
        amounts = product.get("amounts") or []
        prices = product.get("prices") or []
        try:
            idx = amounts.index(int(to_number(quantity)))
            return to_number(prices[idx])
        except (TypeError, ValueError, IndexError):
            return 0.0

    size_price = apparel_size_price(name, size)
    if size_price is not None:
        return float(size_price)

    return to_number(product.get("prices") or "0")


def quantity_options(product: dict) -> list:
    """Selectable amounts for a product: fixed tiers first, catalog tiers otherwise."""
    name = product.get("name", "")
    for needle, tiers in FIXED_QUANTITY_PRICE_MAP.items():
        if needle in name:
            return [{"value": str(t["quantity"]), "label": t["label"], "price": t["price"]} for t in tiers]
    unit = "本" if "液剤" in name else "枚"
    prices = product.get("prices") or []
    options = []
    for i, amount in enumerate(product.get("amounts") or []):
        price_text = prices[i] if i < len(prices) else "0"
        options.append({
            "value": str(amount),
            "label": f"{amount}{unit} ({price_text})",
            "price": to_number(price_text),
        })
    return options or [{"value": "1", "label": "1", "price": 0}]


# ═══════════════════════════════════════════════════════════════════════════════
# Cart math
# ═══════════════════════════════════════════════════════════════════════════════

def _quantity(item: dict) -> int:
    try:
        return int(item.get("quantity") or 0)
    except (TypeError, ValueError):
        return 0


def line_total(item: dict) -> float:
    """Special items carry a fixed tier price; everything else is unit × quantity."""
    price = to_number(item.get("item_price"))
    if is_special_item(item.get("item_name", "")):
        return price
    return price * _quantity(item)


def cart_totals(items: list) -> dict:
    subtotal = sum(line_total(it) for it in items)
    tax = subtotal * TAX_RATE
    shipping = APPAREL_SHIPPING_FEE if any(is_apparel(it.get("item_name", "")) for it in items) else 0
    return {
        "subtotal": round(subtotal),
        "tax": round(tax),
        "shippingFee": shipping,
        "total": round(subtotal + tax + shipping),
    }


def format_quantity(item: dict) -> str:
    name = item.get("item_name", "")
    if is_banner_set(name):
        return "1セット"
    if is_special_item(name):
        return f"{item.get('quantity')}枚"
    return f"{item.get('quantity')}{'本' if '液剤' in name else '枚'}"


# ═══════════════════════════════════════════════════════════════════════════════
# Lead time (display only)
# ═══════════════════════════════════════════════════════════════════════════════

def estimate_delivery(item_name: str, category: str = "", lead_time: str = "",
                      today: Optional[date] = None) -> date:
    today = today or date.today()
    if _contains_any(item_name, THREE_WEEK_DELIVERY_ITEMS):
        return today + timedelta(weeks=3)
    if _contains_any(item_name, FOUR_DAY_DELIVERY_ITEMS):
        return today + timedelta(days=4)
    if category == PROMOTIONAL_CATEGORY:
        return today + timedelta(weeks=3)
    if category == CHEMICAL_CATEGORY:
        return today + timedelta(days=4)
    if lead_time == "即日":
        return today
    m = re.search(r"\d+", lead_time or "")
    return today + timedelta(weeks=int(m.group()) if m else 0)


def format_jp_date(d: date) -> str:
    return f"{d.year}年{d.month:02d}月{d.day:02d}日"


def delivery_range(items: list, today: Optional[date] = None) -> str:
    """'2025年01月26日頃' or 'earliest - latest頃' across the cart."""
    if not items:
        return "データなし"
    dates = [
        estimate_delivery(it.get("item_name", ""), it.get("item_category", ""),
                          it.get("lead_time", ""), today)
        for it in items
    ]
    lo, hi = min(dates), max(dates)
    if lo == hi:
        return f"{format_jp_date(lo)}頃"
    return f"{format_jp_date(lo)} - {format_jp_date(hi)}頃"
