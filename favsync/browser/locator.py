"""Ordered fallback element lookup.

Login pages on the tracked site ship unstable markup and frequently render
hidden duplicate forms, so callers describe an element as a list of
:class:`LocatorSpec` candidates and :func:`locate` returns the first one that
is actually visible.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Literal, Optional

from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)

LocatorKind = Literal["css", "text", "role"]

# Hidden duplicates beyond this many matches are not worth probing.
MAX_CANDIDATES_PER_SPEC = 5


@dataclass(frozen=True, slots=True)
class LocatorSpec:
    """One way of finding an element.

    ``css`` specs take a Playwright selector, ``text`` specs match visible text
    and ``role`` specs match an ARIA role with an optional accessible name.
    """

    value: str
    kind: LocatorKind = "css"
    name: Optional[str] = None

    @classmethod
    def css(cls, selector: str) -> "LocatorSpec":
        return cls(selector, "css")

    @classmethod
    def text(cls, text: str) -> "LocatorSpec":
        return cls(text, "text")

    @classmethod
    def role(cls, role: str, name: Optional[str] = None) -> "LocatorSpec":
        return cls(role, "role", name)

    def resolve(self, scope: Any):
        if self.kind == "css":
            return scope.locator(self.value)
        if self.kind == "text":
            return scope.get_by_text(self.value, exact=False)
        if self.kind == "role":
            if self.name is None:
                return scope.get_by_role(self.value)
            return scope.get_by_role(self.value, name=self.name, exact=False)
        raise ValueError(f"Unsupported locator kind: {self.kind!r}")

    def describe(self) -> str:
        if self.kind == "role" and self.name:
            return f"role={self.value}[{self.name}]"
        return f"{self.kind}={self.value}"


async def locate(strategies: Iterable[LocatorSpec], scope: Any):
    """Return the first visible match across ``strategies``, or ``None``.

    ``None`` is the normal "not found" result; callers decide whether that is
    a failure or a cue to try another input method. Nothing is clicked or
    typed here.
    """
    for spec in strategies:
        try:
            candidates = spec.resolve(scope)
            count = await candidates.count()
            for index in range(min(count, MAX_CANDIDATES_PER_SPEC)):
                candidate = candidates.nth(index)
                if await candidate.is_visible():
                    logger.debug(f"Located {spec.describe()} (match {index + 1}/{count})")
                    return candidate
        except PlaywrightError as exc:
            # Invalid or detached selectors just move on to the next strategy
            logger.debug(f"Locator {spec.describe()} failed: {exc}")
    return None


async def any_visible(strategies: Iterable[LocatorSpec], scope: Any) -> bool:
    return await locate(strategies, scope) is not None


__all__ = ["LocatorSpec", "any_visible", "locate"]
