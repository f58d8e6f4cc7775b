"""Scripted stand-ins for Playwright pages used by the login tests.

A :class:`FakePage` shows one :class:`FakeScreen` at a time. Elements are
keyed the way :class:`favsync.browser.locator.LocatorSpec` resolves them:
CSS selectors as-is, ``"text=<text>"`` for text lookups and
``"role=<role>|<name>"`` for role lookups. Clicking an element, pressing Enter
or filling a field can switch to another screen.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from playwright.async_api import Error as PlaywrightError


class FakeElement:
    def __init__(self, *, visible: bool = True, on_click: Optional[str] = None, on_fill: Optional[str] = None, fails: bool = False):
        self.visible = visible
        self.on_click = on_click
        self.on_fill = on_fill
        self.fails = fails
        self.clicks = 0
        self.value: Optional[str] = None


class FakeScreen:
    def __init__(
        self,
        url: str,
        *,
        text: str = "",
        elements: Optional[Dict[str, Union[FakeElement, List[FakeElement]]]] = None,
        on_enter: Optional[str] = None,
        focus_input: bool = False,
        page_state: Optional[Dict[str, Any]] = None,
    ):
        self.url = url
        self.text = text
        self.elements = elements or {}
        self.on_enter = on_enter
        self.focus_input = focus_input
        self.page_state = page_state or {}


class FakeLocator:
    def __init__(self, page: "FakePage", key: str, index: Optional[int] = None):
        self.page = page
        self.key = key
        self.index = index

    def _elements(self) -> List[FakeElement]:
        found = self.page.screen.elements.get(self.key)
        if found is None:
            return []
        return found if isinstance(found, list) else [found]

    def _element(self) -> FakeElement:
        elements = self._elements()
        index = self.index or 0
        if index >= len(elements):
            raise PlaywrightError(f"element {self.key} not attached")
        return elements[index]

    async def count(self) -> int:
        return len(self._elements())

    def nth(self, index: int) -> "FakeLocator":
        return FakeLocator(self.page, self.key, index)

    async def is_visible(self) -> bool:
        elements = self._elements()
        index = self.index or 0
        return index < len(elements) and elements[index].visible

    async def click(self, **kwargs) -> None:
        element = self._element()
        if element.fails:
            raise PlaywrightError(f"click on {self.key} intercepted")
        element.clicks += 1
        self.page.actions.append(("click", self.key))
        if element.on_click:
            self.page.show(element.on_click)

    async def fill(self, value: str, **kwargs) -> None:
        element = self._element()
        element.value = value
        self.page.actions.append(("fill", self.key))
        if element.on_fill:
            self.page.show(element.on_fill)


class FakeKeyboard:
    def __init__(self, page: "FakePage"):
        self.page = page
        self.typed: List[str] = []

    async def press(self, key: str) -> None:
        self.page.actions.append(("press", key))
        if key == "Enter" and self.page.screen.on_enter:
            self.page.show(self.page.screen.on_enter)

    async def type(self, text: str, delay: float = 0) -> None:
        self.typed.append(text)
        self.page.actions.append(("type", text))


class FakeContext:
    def __init__(self, cookies: Optional[List[Dict[str, Any]]] = None):
        self._cookies = cookies or []

    async def cookies(self) -> List[Dict[str, Any]]:
        return list(self._cookies)


class FakePage:
    def __init__(
        self,
        screens: Dict[str, FakeScreen],
        start: str,
        *,
        routes: Optional[Dict[str, str]] = None,
        cookies: Optional[List[Dict[str, Any]]] = None,
    ):
        self.screens = screens
        self.screen = screens[start]
        self.routes = routes or {}
        self.keyboard = FakeKeyboard(self)
        self.context = FakeContext(cookies)
        self.visited: List[str] = []
        self.actions: List[tuple] = []
        self.waits = 0

    def show(self, name: str) -> None:
        self.screen = self.screens[name]

    @property
    def url(self) -> str:
        return self.screen.url

    async def goto(self, url: str, **kwargs) -> None:
        self.visited.append(url)
        target = self.routes.get(url)
        if target:
            self.show(target)

    async def wait_for_load_state(self, *args, **kwargs) -> None:
        return None

    async def wait_for_timeout(self, timeout: float) -> None:
        self.waits += 1

    async def inner_text(self, selector: str, **kwargs) -> str:
        return self.screen.text

    async def evaluate(self, script: str, *args) -> Any:
        if "activeElement" in script:
            return self.screen.focus_input
        return dict(self.screen.page_state)

    async def screenshot(self, **kwargs) -> bytes:
        return b""

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    def get_by_text(self, text: str, exact: bool = False) -> FakeLocator:
        return FakeLocator(self, f"text={text}")

    def get_by_role(self, role: str, name: Optional[str] = None, exact: bool = False) -> FakeLocator:
        return FakeLocator(self, f"role={role}|{name or ''}")


async def no_sleep(seconds: float) -> None:
    return None


class RecordingSleep:
    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
