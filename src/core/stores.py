"""
Store directory — store_info sheet parsing and store login.

store_info!A2:G
  A id | B name | C phone | D zip | E address | F email | G password

The password column holds either a werkzeug hash (pbkdf2:/scrypt:) or a
legacy plaintext value. Passwords never leave this module.
"""

import hmac
import logging
from typing import Optional

from werkzeug.security import check_password_hash

from src.core import sheets

log = logging.getLogger("stores")

STORE_INFO_RANGE = f"{sheets.STORE_INFO}!A2:G"

# Served when the spreadsheet is unreachable so local setups can still log in
FALLBACK_STORE_ROWS = [
    ["store1", "テスト店舗1", "100-0001", "東京都渋谷区", "03-1234-5678", "test1@example.com", "password1"],
    ["store2", "テスト店舗2", "530-0001", "大阪府大阪市", "06-1234-5678", "test2@example.com", "password2"],
]
PARTS_ORDER_ACCOUNT = ["parts_order", "部品発注", "", "", "", "parts@splashbrothers.co.jp", "parts2025"]

_HASH_PREFIXES = ("pbkdf2:", "scrypt:")


def _cell(row: list, idx: int) -> str:
    return str(row[idx]).strip() if idx < len(row) and row[idx] is not None else ""


def parse_store_row(row: list) -> dict:
    return {
        "id": _cell(row, 0),
        "name": _cell(row, 1),
        "phone": _cell(row, 2),
        "zipCode": _cell(row, 3),
        "address": _cell(row, 4),
        "email": _cell(row, 5),
    }


def password_matches(stored: str, given: str) -> bool:
    if not stored or given is None:
        return False
    if stored.startswith(_HASH_PREFIXES):
        return check_password_hash(stored, given)
    return hmac.compare_digest(stored.encode("utf-8"), str(given).encode("utf-8"))


def authenticate_store(rows: list, store_id: str, email: str, password: str) -> Optional[dict]:
    """Public StoreInfo for the row matching id + email + password, else None."""
    for row in rows:
        if _cell(row, 0) != store_id or _cell(row, 5) != email:
            continue
        if password_matches(_cell(row, 6), password):
            return parse_store_row(row)
        log.info("Login rejected for store %s: bad password", store_id)
        return None
    log.info("Login rejected: no store %s / %s", store_id, email)
    return None


def fallback_rows(include_parts_account: bool = False) -> list:
    rows = [list(r) for r in FALLBACK_STORE_ROWS]
    if include_parts_account:
        rows.append(list(PARTS_ORDER_ACCOUNT))
    return rows


def load_store_rows(client) -> list:
    return client.get_values(STORE_INFO_RANGE)
