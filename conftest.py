"""
Shared pytest fixtures for the store ordering test suite.

Spreadsheet access is replaced by FakeSheets, an in-memory stand-in for
SheetsClient that understands the A1 ranges the app uses. SMTP is replaced
by FakeSMTP, which records every message instead of sending it.
"""
import base64
import smtplib

import pytest
from werkzeug.security import generate_password_hash

from src.core import sheets as sheets_mod


# ── In-memory spreadsheet ─────────────────────────────────────────────────────

class FakeSheets:
    """Tabs are lists of rows; row 1 (index 0) is the header."""

    def __init__(self, tabs=None):
        self.tabs = {name: [list(r) for r in rows] for name, rows in (tabs or {}).items()}
        self.appends = []
        self.updates = []
        self.fail_on = set()   # sheet names whose reads/writes raise

    def _tab(self, name):
        if name in self.fail_on:
            raise RuntimeError(f"Sheets API error for {name}")
        return self.tabs.setdefault(name, [])

    def get_values(self, range_a1):
        r = sheets_mod.parse_range(range_a1)
        tab = self._tab(r["sheet"])
        last_row = len(tab) if r["end_row"] is None else min(r["end_row"], len(tab))
        out = []
        for row in tab[r["start_row"] - 1:last_row]:
            end = None if r["end_col"] is None else r["end_col"] + 1
            cells = list(row[r["start_col"]:end])
            while cells and cells[-1] in ("", None):
                cells.pop()
            out.append(cells)
        while out and not out[-1]:
            out.pop()
        return out

    def append_row(self, range_a1, row):
        r = sheets_mod.parse_range(range_a1)
        self._tab(r["sheet"]).append(list(row))
        self.appends.append((range_a1, list(row)))
        return {"updates": {"updatedRows": 1}}

    def update_cell(self, range_a1, value):
        r = sheets_mod.parse_range(range_a1)
        tab = self._tab(r["sheet"])
        while len(tab) < r["start_row"]:
            tab.append([])
        row = tab[r["start_row"] - 1]
        while len(row) <= r["start_col"]:
            row.append("")
        row[r["start_col"]] = value
        self.updates.append((range_a1, value))
        return {"updatedCells": 1}

    # test helpers
    def rows(self, name):
        """Data rows (header excluded)."""
        return self.tabs.get(name, [])[1:]


HISTORY_HEADER = ["発注番号", "発注日", "発注時間", "店舗名", "メールアドレス"]


# ── Sample data ───────────────────────────────────────────────────────────────

@pytest.fixture
def available_rows():
    """Available_items!A2:K rows."""
    return [
        ["アパレル", "", "Tシャツ", "Black", "L", "1", "¥1,810", "¥1,810",
         "ハイロックデザインオフィス", "hirock@example.com",
         "https://drive.google.com/file/d/abc123/view?usp=sharing"],
        ["アパレル", "", "Tシャツ", "Black", "XXL", "1", "¥2,040", "¥2,040",
         "ハイロックデザインオフィス", "hirock@example.com", ""],
        ["アパレル", "", "フーディ", "Gray", "M", "1", "¥3,210", "¥3,210",
         "ハイロックデザインオフィス", "hirock@example.com", ""],
        ["液剤", "", "スプワックス", "", "", "1本", "¥30,000", "¥30,000",
         "株式会社アピカ", "apica@example.com", ""],
        ["販促グッズ", "", "ポイントカード", "", "", "3,000枚", "¥46,090", "¥15.36",
         "印刷パートナー", "print@example.com", ""],
        ["販促グッズ", "", "ポイントカード", "", "", "1,000枚", "¥29,370", "¥29.37",
         "印刷パートナー", "print@example.com", ""],
        ["備品", "", "ブラシ", "", "", "", "¥500", "", "", "", ""],
    ]


@pytest.fixture
def store_rows():
    """store_info!A2:G rows — one hashed password, one legacy plaintext."""
    return [
        ["S001", "SPLASH'N'GO!新前橋店", "027-000-0000", "371-0000", "群馬県前橋市",
         "shinmaebashi@example.com", generate_password_hash("secret-pass")],
        ["S002", "SPLASH'N'GO!高崎棟高店", "027-111-1111", "370-0000", "群馬県高崎市",
         "takasaki@example.com", "plainpass"],
    ]


@pytest.fixture
def machine_rows():
    return [
        ["1", "新前橋店", "ブラシ", "サイドブラシ"],
        ["2", "高崎棟高店", "ノズル", "高圧ノズル"],
        ["3", "", "ノズル", "店舗名なし"],
    ]


@pytest.fixture
def store_info():
    return {"id": "S001", "name": "SPLASH'N'GO!新前橋店", "email": "shinmaebashi@example.com"}


@pytest.fixture
def fake_sheets(available_rows, store_rows, machine_rows):
    return FakeSheets({
        "Available_items": [["カテゴリ"]] + available_rows,
        "Order_history": [list(HISTORY_HEADER)],
        "hirock_item_history": [list(HISTORY_HEADER)],
        "store_info": [["ID"]] + store_rows,
        "machine_item": [["No"]] + machine_rows,
        "machine_item_history": [["発注番号"]],
    })


@pytest.fixture
def use_fake_sheets(fake_sheets, monkeypatch):
    """Route every sheets.get_client() call to the in-memory fake."""
    monkeypatch.setattr(sheets_mod, "get_client", lambda: fake_sheets)
    return fake_sheets


# ── SMTP capture ──────────────────────────────────────────────────────────────

class FakeSMTP:
    sent = []
    fail = False

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.tls = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.tls = True

    def login(self, user, password):
        self.user = user

    def send_message(self, msg):
        if FakeSMTP.fail:
            raise smtplib.SMTPException("connection refused")
        FakeSMTP.sent.append(msg)


@pytest.fixture(autouse=True)
def smtp_outbox(monkeypatch):
    """List of email.message.Message objects 'sent' during the test. Never touches the network."""
    FakeSMTP.sent = []
    FakeSMTP.fail = False
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(smtplib, "SMTP_SSL", FakeSMTP)
    return FakeSMTP.sent


# ── Environment isolation ─────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("SHEET_ID", "GOOGLE_APPLICATION_CREDENTIALS", "GOOGLE_APPLICATION_CREDENTIALS_JSON",
                "ADMIN_PASS", "SMTP_SECURE", "SMTP_USER", "NEXT_PUBLIC_VERCEL_URL",
                "NEXT_PUBLIC_BASE_URL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("NOTIFY_ASYNC", "false")
    monkeypatch.setenv("APP_ENV", "test")
    sheets_mod.reset_client()

    from src.api.trace import clear_traces
    clear_traces()


# ── Flask test client ─────────────────────────────────────────────────────────

def basic_auth_header(user="admin", pw="admin-pass"):
    creds = base64.b64encode(f"{user}:{pw}".encode()).decode()
    return {"Authorization": f"Basic {creds}"}


@pytest.fixture
def app():
    from app import create_app
    return create_app(testing=True)


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c
