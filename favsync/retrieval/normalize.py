"""Map raw favorites API records onto :class:`FavoriteItem`.

The endpoint is unofficial and its record shape drifts, so every field is
read from a list of candidate locations and missing or unparsable values fall
back to defaults instead of failing the batch.
"""
from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping, Optional, Sequence

from ..models import FavoriteItem

logger = logging.getLogger(__name__)

ITEM_LIST_KEYS = ("items", "favourite_items", "item_favourites")

GENDER_KEYWORDS = (
    ("women", ("femme", "femmes", "women", "woman", "womens")),
    ("men", ("homme", "hommes", "men", "man", "mens")),
    ("kids", ("enfant", "enfants", "kids", "kid", "bébé", "bebe", "fille", "garçon", "garcon")),
)


def _dig(record: Mapping[str, Any], path: str) -> Any:
    node: Any = record
    for part in path.split("."):
        if isinstance(node, Mapping):
            node = node.get(part)
        elif isinstance(node, list) and part.isdigit():
            index = int(part)
            node = node[index] if index < len(node) else None
        else:
            return None
        if node is None:
            return None
    return node


def first_value(record: Mapping[str, Any], *paths: str) -> Optional[str]:
    """First non-empty value among dotted ``paths``, as a string."""
    for path in paths:
        value = _dig(record, path)
        if value is None or isinstance(value, (Mapping, list)):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def parse_price(value: Any) -> Decimal:
    """Non-negative decimal price; 0 when absent or unparsable."""
    if isinstance(value, Mapping):
        value = value.get("amount")
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, str):
        value = value.strip().replace("\u00a0", "").replace(" ", "").replace("\u20ac", "")
        if "," in value and "." in value:
            # The separator that comes last is the decimal point
            thousands = "." if value.rfind(",") > value.rfind(".") else ","
            value = value.replace(thousands, "").replace(",", ".")
        else:
            value = value.replace(",", ".")
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        logger.warning(f"Unparsable price {value!r}; using 0")
        return Decimal("0")
    if not price.is_finite() or price < 0:
        return Decimal("0")
    return price


def as_bool(value: Any) -> bool:
    """Read API booleans that may arrive as strings or numbers."""
    if isinstance(value, str):
        return value.strip().casefold() in {"1", "true", "yes"}
    return bool(value)


def extract_item_list(payload: Any) -> List[Mapping[str, Any]]:
    """Item records of one favorites response; empty when the shape is unknown."""
    if not isinstance(payload, Mapping):
        return []
    for key in ITEM_LIST_KEYS:
        value = payload.get(key)
        if isinstance(value, list):
            return [entry for entry in value if isinstance(entry, Mapping)]
    return []


def unwrap_record(raw: Mapping[str, Any]) -> Mapping[str, Any]:
    inner = raw.get("item")
    if isinstance(inner, Mapping) and "id" in inner:
        return inner
    return raw


def normalize_item(raw: Mapping[str, Any], *, site_base_url: str) -> FavoriteItem:
    """Normalize one record. Raises ``ValueError`` if it has no id."""
    record = unwrap_record(raw)
    external_id = first_value(record, "id")
    if external_id is None:
        raise ValueError("record has no id")

    status = first_value(record, "status")
    sold = as_bool(record.get("is_closed")) or (status or "").casefold() == "sold"

    return FavoriteItem(
        external_id=external_id,
        title=first_value(record, "title") or "",
        price=parse_price(record.get("price")),
        sold=sold,
        brand=first_value(record, "brand_title", "brand.title"),
        size_label=first_value(record, "size_title", "size.title"),
        condition=status,
        category=first_value(record, "catalog_title", "catalog.title", "catalog_id"),
        image_url=first_value(record, "photo.url", "photo.full_size_url", "photos.0.url"),
        product_url=first_value(record, "url") or f"{site_base_url}/items/{external_id}",
        seller_handle=first_value(record, "user.login"),
    )


def normalize_items(records: Sequence[Mapping[str, Any]], *, site_base_url: str) -> List[FavoriteItem]:
    items = []
    for raw in records:
        try:
            items.append(normalize_item(raw, site_base_url=site_base_url))
        except ValueError as exc:
            logger.warning(f"Skipping favorites record: {exc}")
    return items


def infer_gender(*texts: Optional[str]) -> Optional[str]:
    words = set()
    for text in texts:
        if text:
            for token in text.casefold().replace("/", " ").replace("-", " ").replace("_", " ").split():
                words.add(token)
    for gender, keywords in GENDER_KEYWORDS:
        if words.intersection(keywords):
            return gender
    return None


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if not text:
        return None
    if isinstance(value, (int, float)) or text.isdigit():
        try:
            return datetime.fromtimestamp(float(text), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def apply_item_details(item: FavoriteItem, payload: Any) -> FavoriteItem:
    """Return a copy of ``item`` completed from an item detail response."""
    if not isinstance(payload, Mapping):
        return item
    detail = payload.get("item") if isinstance(payload.get("item"), Mapping) else payload

    tree = detail.get("catalog_tree")
    tree_titles = [node.get("title") for node in tree if isinstance(node, Mapping)] if isinstance(tree, list) else []
    category = (
        first_value(detail, "catalog.title", "catalog_title")
        or (tree_titles[-1] if tree_titles and tree_titles[-1] else None)
        or first_value(detail, "category", "service_fee_catalog_title", "catalog_branch_title")
        or item.category
    )

    gender = first_value(detail, "gender", "user.gender")
    if gender is None:
        gender = infer_gender(" ".join(t for t in tree_titles if t), category, item.title, item.product_url)

    listed_at = _parse_timestamp(detail.get("created_at_ts")) or item.listed_at

    return dataclasses.replace(item, category=category, gender=gender or item.gender, listed_at=listed_at)


__all__ = [
    "ITEM_LIST_KEYS",
    "apply_item_details",
    "as_bool",
    "extract_item_list",
    "first_value",
    "infer_gender",
    "normalize_item",
    "normalize_items",
    "parse_price",
    "unwrap_record",
]
