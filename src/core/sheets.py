"""
sheets.py — Google Sheets access layer

Thin wrapper around the Sheets v4 values API. Every read/write in the app goes
through SheetsClient so tests can swap in an in-memory fake via get_client().

    client = get_client()
    rows = client.get_values("Available_items!A2:K")
    client.append_row("Order_history!A1", row)
    client.update_cell("Order_history!AU5", "出荷済み")
"""

import json
import logging
import re
import threading

from src.core.secrets import get_key

log = logging.getLogger("sheets")

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

# Sheet (tab) names
AVAILABLE_ITEMS = "Available_items"
ORDER_HISTORY = "Order_history"
HIROCK_HISTORY = "hirock_item_history"
STORE_INFO = "store_info"
MACHINE_ITEM = "machine_item"
MACHINE_ITEM_HISTORY = "machine_item_history"


class SheetsNotConfigured(RuntimeError):
    """SHEET_ID or Google credentials are missing."""


# ═══════════════════════════════════════════════════════════════════════
# A1 notation helpers
# ═══════════════════════════════════════════════════════════════════════

_A1_RE = re.compile(r"^([A-Z]+)(\d*)$")


def col_to_index(col: str) -> int:
    """'A' → 0, 'AT' → 45, 'AU' → 46."""
    n = 0
    for ch in col.upper():
        n = n * 26 + (ord(ch) - 64)
    return n - 1


def parse_range(a1: str) -> dict:
    """
    Split "Sheet!A2:K" into {sheet, start_col, start_row, end_col, end_row}.
    Columns are 0-indexed, rows 1-indexed; open ends are None.
    A bare sheet name covers the whole tab.
    """
    sheet, _, cells = a1.partition("!")
    out = {"sheet": sheet, "start_col": 0, "start_row": 1, "end_col": None, "end_row": None}
    if not cells:
        return out
    start, _, end = cells.partition(":")
    m = _A1_RE.match(start)
    if not m:
        raise ValueError(f"Bad A1 range: {a1}")
    out["start_col"] = col_to_index(m.group(1))
    if m.group(2):
        out["start_row"] = int(m.group(2))
    if end:
        m = _A1_RE.match(end)
        if not m:
            raise ValueError(f"Bad A1 range: {a1}")
        out["end_col"] = col_to_index(m.group(1))
        out["end_row"] = int(m.group(2)) if m.group(2) else None
    elif m.group(2):
        out["end_col"] = out["start_col"]
        out["end_row"] = out["start_row"]
    return out


def cell(sheet: str, col: str, row: int) -> str:
    return f"{sheet}!{col}{row}"


# ═══════════════════════════════════════════════════════════════════════
# Client
# ═══════════════════════════════════════════════════════════════════════

def _load_credentials():
    """Service-account credentials: inline JSON wins over the key file."""
    from google.oauth2 import service_account

    raw = get_key("google_credentials_json")
    if raw:
        return service_account.Credentials.from_service_account_info(json.loads(raw), scopes=SCOPES)
    path = get_key("google_credentials_file")
    if path:
        return service_account.Credentials.from_service_account_file(path, scopes=SCOPES)
    raise SheetsNotConfigured("Google credentials are not configured")


class SheetsClient:
    """Values API for one spreadsheet."""

    def __init__(self, spreadsheet_id: str, service=None):
        self.spreadsheet_id = spreadsheet_id
        self._service = service

    @property
    def values(self):
        if self._service is None:
            from googleapiclient.discovery import build
            self._service = build("sheets", "v4", credentials=_load_credentials(),
                                  cache_discovery=False)
        return self._service.spreadsheets().values()

    def get_values(self, range_a1: str) -> list:
        resp = self.values.get(spreadsheetId=self.spreadsheet_id, range=range_a1,
                               majorDimension="ROWS").execute()
        rows = resp.get("values", []) or []
        log.debug("GET %s → %d rows", range_a1, len(rows))
        return rows

    def append_row(self, range_a1: str, row: list) -> dict:
        resp = self.values.append(
            spreadsheetId=self.spreadsheet_id,
            range=range_a1,
            valueInputOption="USER_ENTERED",
            insertDataOption="INSERT_ROWS",
            body={"values": [row]},
        ).execute()
        log.info("APPEND %s (%d cells)", range_a1, len(row))
        return resp

    def update_cell(self, range_a1: str, value) -> dict:
        resp = self.values.update(
            spreadsheetId=self.spreadsheet_id,
            range=range_a1,
            valueInputOption="USER_ENTERED",
            body={"values": [[value]]},
        ).execute()
        log.info("UPDATE %s = %r", range_a1, value)
        return resp


_client = None
_client_lock = threading.Lock()


def is_configured() -> bool:
    return bool(get_key("sheet_id"))


def has_credentials() -> bool:
    return bool(get_key("google_credentials_json") or get_key("google_credentials_file"))


def get_client() -> SheetsClient:
    """Shared client for the configured spreadsheet (built lazily)."""
    global _client
    sheet_id = get_key("sheet_id")
    if not sheet_id:
        raise SheetsNotConfigured("SHEET_ID is not set")
    if not has_credentials():
        raise SheetsNotConfigured("Google credentials are not configured")
    with _client_lock:
        if _client is None or _client.spreadsheet_id != sheet_id:
            _client = SheetsClient(sheet_id)
        return _client


def reset_client():
    global _client
    with _client_lock:
        _client = None
