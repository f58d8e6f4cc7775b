"""Tests for favorites record normalization."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from favsync.models import FavoriteItem
from favsync.retrieval.normalize import (
    apply_item_details,
    extract_item_list,
    infer_gender,
    normalize_item,
    normalize_items,
    parse_price,
)

SITE = "https://www.vinted.fr"


def test_normalize_nested_price_and_sold_status() -> None:
    item = normalize_item({"id": 42, "price": {"amount": "19.99"}, "status": "sold"}, site_base_url=SITE)

    assert item.external_id == "42"
    assert item.price == Decimal("19.99")
    assert item.sold is True


def test_normalize_missing_price_defaults_to_zero() -> None:
    item = normalize_item({"id": 7, "title": "Veste"}, site_base_url=SITE)

    assert item.price == Decimal("0")
    assert item.sold is False
    assert item.product_url == f"{SITE}/items/7"


def test_normalize_reads_alternative_field_names() -> None:
    raw = {
        "item": {
            "id": "991",
            "title": "Robe longue",
            "price": "12,50",
            "brand": {"title": "Zara"},
            "size": {"title": "M"},
            "status": "Très bon état",
            "catalog_id": 1234,
            "photos": [{"url": "https://img.example/1.jpg"}],
            "url": "https://www.vinted.fr/items/991-robe-longue",
            "user": {"login": "seller42"},
            "is_closed": True,
        }
    }

    item = normalize_item(raw, site_base_url=SITE)

    assert item.external_id == "991"
    assert item.price == Decimal("12.50")
    assert item.brand == "Zara"
    assert item.size_label == "M"
    assert item.condition == "Très bon état"
    assert item.category == "1234"
    assert item.image_url == "https://img.example/1.jpg"
    assert item.product_url.endswith("991-robe-longue")
    assert item.seller_handle == "seller42"
    assert item.sold is True


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (15, Decimal("15")),
        ("7.5", Decimal("7.5")),
        ("1 299,00 €", Decimal("1299.00")),
        ("1,299.50", Decimal("1299.50")),
        ("1.234,56", Decimal("1234.56")),
        ("free", Decimal("0")),
        (-3, Decimal("0")),
        (None, Decimal("0")),
        (True, Decimal("0")),
        ({"amount": None}, Decimal("0")),
        ("NaN", Decimal("0")),
    ],
)
def test_parse_price(value, expected) -> None:
    assert parse_price(value) == expected


def test_records_without_id_are_skipped() -> None:
    items = normalize_items([{"title": "no id"}, {"id": 1, "title": "ok"}], site_base_url=SITE)

    assert [item.external_id for item in items] == ["1"]


@pytest.mark.parametrize("key", ["items", "favourite_items", "item_favourites"])
def test_extract_item_list_accepts_known_shapes(key) -> None:
    assert extract_item_list({key: [{"id": 1}, "junk"]}) == [{"id": 1}]


def test_extract_item_list_treats_unknown_shape_as_empty() -> None:
    assert extract_item_list({"pagination": {}}) == []
    assert extract_item_list(["not", "a", "mapping"]) == []


def test_item_details_fill_category_gender_and_listing_date() -> None:
    item = FavoriteItem(external_id="5", title="Jean", category="77")
    detail = {
        "item": {
            "catalog_tree": [{"title": "Femmes"}, {"title": "Vêtements"}, {"title": "Jeans"}],
            "created_at_ts": 1_700_000_000,
        }
    }

    enriched = apply_item_details(item, detail)

    assert enriched.category == "Jeans"
    assert enriched.gender == "women"
    assert enriched.listed_at == datetime.fromtimestamp(1_700_000_000, tz=timezone.utc)
    assert item.category == "77"


def test_infer_gender_reads_url_slugs() -> None:
    assert infer_gender("https://www.vinted.fr/items/12-pull-homme-laine") == "men"
    assert infer_gender("Jouets") is None


@pytest.mark.parametrize(("flag", "sold"), [("false", False), ("0", False), ("true", True), (1, True), (None, False)])
def test_closed_flag_strings_are_parsed(flag, sold) -> None:
    item = normalize_item({"id": 3, "title": "Sac", "is_closed": flag}, site_base_url=SITE)

    assert item.sold is sold
