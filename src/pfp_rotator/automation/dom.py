"""Minimal async DOM interface used by the page automator.

The automator and its selector strategies only talk to ``Document`` and
``Element``. ``PlaywrightDocument`` adapts a live Playwright page; tests
use synthetic trees that implement the same methods.
"""

import base64
from typing import List, Optional, Protocol

from playwright.async_api import ElementHandle, Page


class Element(Protocol):
    async def query_all(self, selector: str) -> List["Element"]: ...

    async def closest(self, selector: str) -> Optional["Element"]: ...

    async def text(self) -> str: ...

    async def get_attribute(self, name: str) -> Optional[str]: ...

    async def is_visible(self) -> bool: ...

    async def click(self) -> None: ...

    async def assign_file(self, name: str, mime_type: str, data: bytes) -> None: ...


class Document(Protocol):
    @property
    def url(self) -> str: ...

    async def query_all(self, selector: str) -> List[Element]: ...


# A script cannot pick a file the way a user does, so the input's FileList is
# replaced directly and bubbling change/input events are fired for page logic.
ASSIGN_FILE_JS = """
(input, file) => {
    const bytes = Uint8Array.from(atob(file.b64), c => c.charCodeAt(0));
    const picked = new File([bytes], file.name, { type: file.type });
    const transfer = new DataTransfer();
    transfer.items.add(picked);
    input.files = transfer.files;
    input.dispatchEvent(new Event('change', { bubbles: true }));
    input.dispatchEvent(new Event('input', { bubbles: true }));
    return input.files.length;
}
"""

CLOSEST_JS = "(el, selector) => el.closest(selector)"


class PlaywrightElement:
    """Element backed by a Playwright ElementHandle."""

    def __init__(self, handle: ElementHandle):
        self.handle = handle

    async def query_all(self, selector: str) -> List["PlaywrightElement"]:
        return [PlaywrightElement(h) for h in await self.handle.query_selector_all(selector)]

    async def closest(self, selector: str) -> Optional["PlaywrightElement"]:
        result = await self.handle.evaluate_handle(CLOSEST_JS, selector)
        element = result.as_element()
        if element is None:
            await result.dispose()
            return None
        return PlaywrightElement(element)

    async def text(self) -> str:
        return (await self.handle.inner_text()) or ""

    async def get_attribute(self, name: str) -> Optional[str]:
        return await self.handle.get_attribute(name)

    async def is_visible(self) -> bool:
        return await self.handle.is_visible()

    async def click(self) -> None:
        await self.handle.click()

    async def assign_file(self, name: str, mime_type: str, data: bytes) -> None:
        await self.handle.evaluate(ASSIGN_FILE_JS, {
            "name": name,
            "type": mime_type,
            "b64": base64.b64encode(data).decode("ascii"),
        })


class PlaywrightDocument:
    """Document backed by a Playwright Page."""

    def __init__(self, page: Page):
        self.page = page

    @property
    def url(self) -> str:
        return self.page.url

    async def query_all(self, selector: str) -> List[PlaywrightElement]:
        return [PlaywrightElement(h) for h in await self.page.query_selector_all(selector)]
