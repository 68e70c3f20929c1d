"""Tests for store_info parsing and store login."""
from werkzeug.security import generate_password_hash

from src.core import stores


class TestParse:

    def test_public_fields_only(self, store_rows):
        store = stores.parse_store_row(store_rows[0])
        assert store == {"id": "S001", "name": "SPLASH'N'GO!新前橋店", "phone": "027-000-0000",
                         "zipCode": "371-0000", "address": "群馬県前橋市",
                         "email": "shinmaebashi@example.com"}

    def test_short_row(self):
        assert stores.parse_store_row(["S9", "店"])["email"] == ""


class TestPassword:

    def test_hash(self):
        stored = generate_password_hash("pw")
        assert stores.password_matches(stored, "pw")
        assert not stores.password_matches(stored, "PW")

    def test_plaintext(self):
        assert stores.password_matches("pw", "pw")
        assert not stores.password_matches("pw", "pw ")

    def test_blank_stored_never_matches(self):
        assert not stores.password_matches("", "")
        assert not stores.password_matches("pw", None)


class TestAuthenticate:

    def test_success(self, store_rows):
        store = stores.authenticate_store(store_rows, "S001", "shinmaebashi@example.com", "secret-pass")
        assert store["id"] == "S001"
        assert "password" not in store

    def test_email_must_match(self, store_rows):
        assert stores.authenticate_store(store_rows, "S001", "takasaki@example.com",
                                         "secret-pass") is None

    def test_wrong_password(self, store_rows):
        assert stores.authenticate_store(store_rows, "S002", "takasaki@example.com", "x") is None

    def test_unknown_store(self, store_rows):
        assert stores.authenticate_store(store_rows, "S404", "a@example.com", "x") is None


class TestFallback:

    def test_plain_fallback(self):
        assert [r[0] for r in stores.fallback_rows()] == ["store1", "store2"]

    def test_parts_account(self):
        rows = stores.fallback_rows(include_parts_account=True)
        store = stores.authenticate_store(rows, "parts_order", "parts@splashbrothers.co.jp", "parts2025")
        assert store["name"] == "部品発注"

    def test_copies(self):
        rows = stores.fallback_rows()
        rows[0][0] = "changed"
        assert stores.FALLBACK_STORE_ROWS[0][0] == "store1"

    def test_load(self, fake_sheets):
        assert len(stores.load_store_rows(fake_sheets)) == 2
