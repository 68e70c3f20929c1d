"""
Partner routing — which history sheet an order line goes to, and which
partner gets notified about it.

Lookup per item:
  1. Chemical products (APICA_PRODUCTS) → always the regular sheet.
  2. Exact catalog name (normalized) → that product's partner.
  3. Legacy fuzzy name match, first hit in catalog order.
  4. No match → regular sheet, no partner.
"""

import logging
from typing import Optional

log = logging.getLogger("routing")

HIROCK_PARTNER_NAME = "ハイロックデザインオフィス"

# Products handled by 株式会社アピカ — never routed to a partner sheet
APICA_PRODUCTS = ["スプシャン", "スプワックス", "スプコート", "セラミック", "マイクロファイバー", "スプタイヤ"]

SHEET_REGULAR = "regular"
SHEET_HIROCK = "hirock"


def _norm(name: str) -> str:
    return (name or "").lower().strip()


def match_product_name(order_item_name: str, available_item_name: str) -> bool:
    """Exact, substring either way, or ≥50% shared whitespace tokens."""
    a = _norm(order_item_name)
    b = _norm(available_item_name)
    if a == b:
        return True
    if a in b or b in a:
        return True
    a_words = a.split()
    b_words = b.split()
    common = [w for w in a_words if w in b_words]
    return bool(common) and len(common) >= min(len(a_words), len(b_words)) / 2


def is_apica_product(name: str) -> bool:
    return any(p in (name or "") for p in APICA_PRODUCTS)


def build_partner_index(available_items: list) -> dict:
    """normalized catalog name → first catalog entry carrying that name."""
    index = {}
    for av in available_items:
        key = _norm(av.get("name", ""))
        if key and key not in index:
            index[key] = av
    return index


def find_catalog_match(item_name: str, available_items: list,
                       index: Optional[dict] = None) -> Optional[dict]:
    if index is None:
        index = build_partner_index(available_items)
    exact = index.get(_norm(item_name))
    if exact is not None:
        return exact
    for av in available_items:
        if match_product_name(item_name, av.get("name", "")):
            return av
    return None


def sheet_for_item(item: dict, available_items: list, index: Optional[dict] = None) -> str:
    name = item.get("item_name", "")
    if is_apica_product(name):
        return SHEET_REGULAR
    match = find_catalog_match(name, available_items, index)
    if match is not None and match.get("partnerName") == HIROCK_PARTNER_NAME:
        return SHEET_HIROCK
    return SHEET_REGULAR


def categorize_items_by_sheet(items: list, available_items: list) -> dict:
    """Split order lines into {"hirock": [...], "regular": [...]} preserving order."""
    index = build_partner_index(available_items)
    out = {SHEET_HIROCK: [], SHEET_REGULAR: []}
    for item in items:
        out[sheet_for_item(item, available_items, index)].append(item)
    log.info("Routing: %d regular, %d hirock", len(out[SHEET_REGULAR]), len(out[SHEET_HIROCK]))
    return out


def group_items_by_partner(items: list, available_items: list) -> dict:
    """
    partner name → {name, email, items}. Only catalog matches that carry both a
    partner name and a partner email form a group.
    """
    index = build_partner_index(available_items)
    groups = {}
    for item in items:
        name = item.get("item_name", "")
        match = find_catalog_match(name, available_items, index)
        if match is None:
            log.debug("No catalog match for %s", name)
            continue
        partner, email = match.get("partnerName", ""), match.get("partnerEmail", "")
        if not (partner and email):
            log.debug("Incomplete partner info for %s: name=%r email=%r", name, partner, email)
            continue
        group = groups.setdefault(partner, {"name": partner, "email": email, "items": []})
        group["items"].append(item)
    return groups
