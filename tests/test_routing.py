"""Tests for partner/sheet routing."""
import pytest

from src.core.catalog import process_available_items
from src.core.routing import (
    HIROCK_PARTNER_NAME, match_product_name, is_apica_product, find_catalog_match,
    categorize_items_by_sheet, group_items_by_partner,
)


def _item(name, **kw):
    return dict({"item_name": name, "quantity": 1}, **kw)


@pytest.fixture
def products(available_rows):
    return process_available_items(available_rows)


class TestMatchProductName:

    @pytest.mark.parametrize("a,b,expected", [
        ("Tシャツ", "tシャツ", True),
        ("  Tシャツ ", "Tシャツ", True),
        ("Tシャツ Black", "Tシャツ", True),
        ("red cap", "blue cap", True),
        ("red cap large", "blue hat small", False),
        ("red cap", "blue hat", False),
    ])
    def test_rules(self, a, b, expected):
        assert match_product_name(a, b) is expected

    def test_apica(self):
        assert is_apica_product("スプワックス 18L")
        assert not is_apica_product("Tシャツ")


# ═══════════════════════════════════════════════════════════════════════════════
# SHEET SPLIT
# ═══════════════════════════════════════════════════════════════════════════════

class TestCategorize:

    def test_mixed_order(self, products):
        items = [_item("Tシャツ"), _item("スプワックス"), _item("ブラシ")]
        split = categorize_items_by_sheet(items, products)
        assert [i["item_name"] for i in split["hirock"]] == ["Tシャツ"]
        assert [i["item_name"] for i in split["regular"]] == ["スプワックス", "ブラシ"]

    def test_chemical_never_goes_to_partner_sheet(self):
        catalog = [{"name": "スプワックス", "partnerName": HIROCK_PARTNER_NAME, "partnerEmail": "h@x"}]
        split = categorize_items_by_sheet([_item("スプワックス")], catalog)
        assert split["hirock"] == []
        assert len(split["regular"]) == 1

    def test_unknown_item_is_regular(self, products):
        split = categorize_items_by_sheet([_item("存在しない商品")], products)
        assert len(split["regular"]) == 1

    def test_exact_name_beats_earlier_fuzzy_match(self):
        catalog = [
            {"name": "Tシャツ ロング", "partnerName": "Other Print", "partnerEmail": "o@x"},
            {"name": "Tシャツ", "partnerName": HIROCK_PARTNER_NAME, "partnerEmail": "h@x"},
        ]
        split = categorize_items_by_sheet([_item("Tシャツ")], catalog)
        assert len(split["hirock"]) == 1

    def test_fuzzy_fallback_still_applies(self):
        catalog = [{"name": "Tシャツ", "partnerName": HIROCK_PARTNER_NAME, "partnerEmail": "h@x"}]
        assert find_catalog_match("Tシャツ Black XL", catalog)["name"] == "Tシャツ"

    def test_empty_catalog(self):
        split = categorize_items_by_sheet([_item("Tシャツ")], [])
        assert split == {"hirock": [], "regular": [_item("Tシャツ")]}


# ═══════════════════════════════════════════════════════════════════════════════
# PARTNER GROUPS
# ═══════════════════════════════════════════════════════════════════════════════

class TestPartnerGroups:

    def test_groups_by_partner(self, products):
        items = [_item("Tシャツ"), _item("スプワックス"), _item("ブラシ"), _item("ポイントカード"),
                 _item("フーディ")]
        groups = group_items_by_partner(items, products)
        assert set(groups) == {HIROCK_PARTNER_NAME, "株式会社アピカ", "印刷パートナー"}
        assert [i["item_name"] for i in groups[HIROCK_PARTNER_NAME]["items"]] == ["Tシャツ", "フーディ"]
        assert groups["株式会社アピカ"]["email"] == "apica@example.com"

    def test_partner_without_email_is_skipped(self):
        catalog = [{"name": "ステッカー", "partnerName": "Print Co", "partnerEmail": ""}]
        assert group_items_by_partner([_item("ステッカー")], catalog) == {}
