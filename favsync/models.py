"""Data models shared by the login, retrieval and dispatch stages."""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

_VALID_SAME_SITE = {None, "Strict", "Lax", "None"}


@dataclass(frozen=True, slots=True)
class CookieRecord:
    """One cookie scoped to the tracked site.

    ``expires_at`` is a Unix timestamp in seconds; ``None`` means a session
    cookie.
    """

    name: str
    value: str
    domain: str
    path: str = "/"
    expires_at: Optional[float] = None
    secure: bool = False
    http_only: bool = False
    same_site: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Cookie name cannot be empty")
        if not self.domain:
            raise ValueError("Cookie domain cannot be empty")
        if self.same_site not in _VALID_SAME_SITE:
            raise ValueError(f"Invalid same_site value: {self.same_site!r}")

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CookieRecord":
        """Accept Playwright cookies as well as previously serialised records."""

        expires = payload.get("expiresAt", payload.get("expires", payload.get("expirationDate")))
        if isinstance(expires, str):
            expires = expires.strip()
            if not expires:
                expires = None
            else:
                try:
                    expires = float(expires)
                except ValueError:
                    expires = datetime.fromisoformat(expires).timestamp()
        if expires is not None:
            expires = float(expires)
            # Playwright reports session cookies with expires == -1
            if expires < 0:
                expires = None

        return cls(
            name=payload["name"],
            value=str(payload.get("value", "")),
            domain=payload["domain"],
            path=payload.get("path") or "/",
            expires_at=expires,
            secure=bool(payload.get("secure", False)),
            http_only=bool(payload.get("httpOnly") or payload.get("http_only", False)),
            same_site=payload.get("sameSite") or payload.get("same_site"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Backend representation: name, value, domain, path and expiresAt."""

        return {
            "name": self.name,
            "value": self.value,
            "domain": self.domain,
            "path": self.path,
            "expiresAt": self.expires_at,
        }

    def to_playwright_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "value": self.value,
            "domain": self.domain,
            "path": self.path,
            "secure": self.secure,
            "httpOnly": self.http_only,
        }
        if self.same_site is not None:
            payload["sameSite"] = self.same_site
        if self.expires_at is not None:
            payload["expires"] = self.expires_at
        return payload


@dataclass(frozen=True, slots=True)
class SessionArtifacts:
    """Cookie set plus auxiliary tokens proving an authenticated identity."""

    cookies: Tuple[CookieRecord, ...] = ()
    csrf_token: Optional[str] = None
    anonymous_id: Optional[str] = None

    @property
    def has_cookies(self) -> bool:
        return bool(self.cookies)

    def cookie(self, name: str) -> Optional[str]:
        for record in self.cookies:
            if record.name == name:
                return record.value
        return None

    def cookie_header(self) -> str:
        return "; ".join(f"{record.name}={record.value}" for record in self.cookies)

    def with_cookies(self, updates: Sequence[CookieRecord]) -> "SessionArtifacts":
        """Copy with ``updates`` applied; a newer cookie replaces any older one of the same name."""

        merged = list(self.cookies)
        for update in updates:
            replaced = False
            for index, record in enumerate(merged):
                if record.name == update.name:
                    merged[index] = dataclasses.replace(record, value=update.value, expires_at=update.expires_at)
                    replaced = True
            if not replaced:
                merged.append(update)
        return dataclasses.replace(self, cookies=dedupe_cookies(merged))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cookies": [record.to_dict() for record in self.cookies],
            "csrfToken": self.csrf_token,
            "anonymousId": self.anonymous_id,
        }


@dataclass(frozen=True, slots=True)
class FavoriteItem:
    """Normalized favorite listing."""

    external_id: str
    title: str
    price: Decimal = Decimal("0")
    sold: bool = False
    brand: Optional[str] = None
    size_label: Optional[str] = None
    condition: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    product_url: Optional[str] = None
    seller_handle: Optional[str] = None
    gender: Optional[str] = None
    listed_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.external_id:
            raise ValueError("external_id cannot be empty")
        if self.price < 0:
            raise ValueError("price cannot be negative")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "externalId": self.external_id,
            "title": self.title,
            "brand": self.brand,
            "sizeLabel": self.size_label,
            "condition": self.condition,
            "category": self.category,
            "gender": self.gender,
            "price": float(self.price),
            "imageUrl": self.image_url,
            "productUrl": self.product_url,
            "sellerHandle": self.seller_handle,
            "sold": self.sold,
            "listedAt": self.listed_at.isoformat() if self.listed_at else None,
        }


@dataclass(slots=True)
class RetrievalPage:
    page_number: int
    items: List[Mapping[str, Any]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.page_number < 1:
            raise ValueError("page_number is 1-based")


@dataclass(slots=True)
class RetrievalResult:
    """Outcome of walking the favorites endpoint."""

    items: List[FavoriteItem] = field(default_factory=list)
    pages_fetched: int = 0
    capped: bool = False
    duplicates: int = 0

    @property
    def count(self) -> int:
        return len(self.items)


@dataclass(slots=True)
class DispatchResult:
    """Backend acknowledgment for one dispatched batch."""

    success: bool
    count: int
    message: Optional[str] = None
    new_items: Optional[int] = None
    total_items: Optional[int] = None
    status: Optional[int] = None

    @classmethod
    def from_response(cls, status: int, count: int, payload: Any) -> "DispatchResult":
        if not isinstance(payload, Mapping):
            return cls(success=True, count=count, status=status)
        return cls(
            success=bool(payload.get("success", True)),
            count=count,
            message=payload.get("message"),
            new_items=payload.get("newItems"),
            total_items=payload.get("totalItems"),
            status=status,
        )


def dedupe_cookies(records: Sequence[CookieRecord]) -> Tuple[CookieRecord, ...]:
    """Drop repeated (name, domain, path) entries, keeping the first."""

    seen = set()
    ordered = []
    for record in records:
        key = (record.name, record.domain, record.path)
        if key in seen:
            continue
        seen.add(key)
        ordered.append(record)
    return tuple(ordered)


__all__ = [
    "CookieRecord",
    "DispatchResult",
    "FavoriteItem",
    "RetrievalPage",
    "RetrievalResult",
    "SessionArtifacts",
    "dedupe_cookies",
]
