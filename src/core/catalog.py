"""
Product catalog — turns raw Available_items rows into grouped products.

Sheet layout (row 2 onward):
  A category | B (unused) | C name | D color | E size | F amount
  G price | H price per piece | I partner name | J partner email | K image URL

One product per (name, color). Sizes and amount tiers collapse into lists;
prices[i] / pricesPerPiece[i] always belong to amounts[i].
"""

import hashlib
import logging
import re
from typing import Optional

from src.core import sheets

log = logging.getLogger("catalog")

AVAILABLE_ITEMS_RANGE = f"{sheets.AVAILABLE_ITEMS}!A2:K"
DEFAULT_LEAD_TIME = "2週間"

_DRIVE_FILE_RE = re.compile(r"/d/([^/]+)")


def convert_google_drive_url(url: str) -> str:
    """Drive share links (file/d/<id>/view) → directly viewable image URL."""
    if not url:
        return ""
    if "drive.google.com/file/d/" in url:
        m = _DRIVE_FILE_RE.search(url)
        if m:
            return f"https://drive.google.com/uc?export=view&id={m.group(1)}"
    return url


def _cell(row: list, idx: int) -> str:
    if idx < len(row) and row[idx] is not None:
        return str(row[idx]).strip()
    return ""


def parse_amount(text) -> Optional[int]:
    """'1,000枚' → 1000. Blank or digit-free text → None."""
    digits = re.sub(r"[^0-9]", "", str(text or ""))
    return int(digits) if digits else None


def _product_id(key: str) -> str:
    return hashlib.md5(key.encode("utf-8")).hexdigest()[:7]


def process_available_items(rows: list) -> list:
    """Group raw sheet rows into product records (see module docstring)."""
    grouped = {}

    for row in rows:
        name = _cell(row, 2)
        color = _cell(row, 3)
        size = _cell(row, 4)
        amount_text = _cell(row, 5)
        price = _cell(row, 6)
        price_per_piece = _cell(row, 7)
        image_url = _cell(row, 10)

        key = f"{name}-{color}"
        item = grouped.get(key)
        if item is None:
            item = {
                "id": _product_id(key),
                "category": _cell(row, 0),
                "name": name,
                "color": color,
                "colors": [],
                "sizes": [],
                "amounts": set(),
                "prices": {},
                "pricesPerPiece": {},
                "leadTime": DEFAULT_LEAD_TIME,
                "partnerName": _cell(row, 8),
                "partnerEmail": _cell(row, 9),
                "imageUrl": convert_google_drive_url(image_url),
            }
            grouped[key] = item

        if image_url and not item["imageUrl"]:
            item["imageUrl"] = convert_google_drive_url(image_url)
        if color and color not in item["colors"]:
            item["colors"].append(color)
        if size and size not in item["sizes"]:
            item["sizes"].append(size)

        amount = parse_amount(amount_text)
        if amount is None:
            continue
        item["amounts"].add(amount)
        if price:
            item["prices"][amount] = price
        if price_per_piece:
            item["pricesPerPiece"][amount] = price_per_piece

    products = []
    for item in grouped.values():
        amounts = sorted(item["amounts"])
        item["prices"] = [item["prices"].get(a, "0") for a in amounts]
        item["pricesPerPiece"] = [item["pricesPerPiece"].get(a, "0") for a in amounts]
        item["amounts"] = amounts
        products.append(item)

    with_images = sum(1 for p in products if p["imageUrl"])
    log.info("Catalog: %d rows → %d products (%d with images)", len(rows), len(products), with_images)
    return products


def load_available_items(client) -> list:
    """Fetch and group the live catalog."""
    return process_available_items(client.get_values(AVAILABLE_ITEMS_RANGE))


def find_product(products: list, name: str, color: str = "") -> Optional[dict]:
    """Exact (name, color) lookup, falling back to the first product with that name."""
    fallback = None
    for p in products:
        if p["name"] != name:
            continue
        if not color or p["color"] == color:
            return p
        if fallback is None:
            fallback = p
    return fallback
