"""Paginated favorites retrieval and normalization."""

from .enrichment import ItemEnricher
from .favorites import FavoritesRetriever, build_headers, fetch_all
from .normalize import normalize_item, parse_price

__all__ = [
    "FavoritesRetriever",
    "ItemEnricher",
    "build_headers",
    "fetch_all",
    "normalize_item",
    "parse_price",
]
