"""Element lookup strategies.

Each strategy is an independent coroutine ``(document) -> element | None``.
``first_match`` tries them in order and returns the first visible hit, so a
later strategy only runs once every earlier one came back empty.
"""

import logging
from typing import Awaitable, Callable, Iterable, Optional, Sequence

from pfp_rotator.automation import selectors
from pfp_rotator.automation.dom import Document, Element
from pfp_rotator.exceptions import ElementNotFound

logger = logging.getLogger(__name__)

Strategy = Callable[[Document], Awaitable[Optional[Element]]]


def normalize_text(value: Optional[str]) -> str:
    return " ".join((value or "").split()).lower()


async def matches_text(element: Element, texts: Iterable[str]) -> bool:
    """True if the element's text or aria-label contains one of ``texts``."""
    label = normalize_text(await element.text())
    aria = normalize_text(await element.get_attribute("aria-label"))
    return any(t in label or t in aria for t in texts)


async def first_visible(candidates: Iterable[Element]) -> Optional[Element]:
    for element in candidates:
        if await element.is_visible():
            return element
    return None


async def first_visible_by_selectors(document: Document, selector_list: Sequence[str]) -> Optional[Element]:
    """First visible element for the first selector (in order) that has one."""
    for selector in selector_list:
        found = await first_visible(await document.query_all(selector))
        if found is not None:
            logger.debug(f"Matched selector {selector}")
            return found
    return None


async def first_visible_by_text(
    elements: Iterable[Element],
    texts: Iterable[str]
) -> Optional[Element]:
    texts = tuple(texts)
    for element in elements:
        if await matches_text(element, texts) and await element.is_visible():
            return element
    return None


async def edit_button_by_attributes(document: Document) -> Optional[Element]:
    """Strategy (a): fixed attribute / ARIA-label selectors."""
    return await first_visible_by_selectors(document, selectors.EDIT_BUTTON_SELECTORS)


async def edit_button_near_photo(document: Document) -> Optional[Element]:
    """Strategy (b): a button with an edit text inside the profile photo container."""
    for photo in await document.query_all(selectors.PROFILE_PHOTO_SELECTORS):
        container = await photo.closest(selectors.PROFILE_PHOTO_CONTAINERS)
        if container is None:
            continue
        found = await first_visible_by_text(
            await container.query_all(selectors.BUTTON_LIKE), selectors.EDIT_TEXTS
        )
        if found is not None:
            return found
    return None


async def edit_button_by_text_scan(document: Document) -> Optional[Element]:
    """Strategy (c): every button-like element on the page, matched by text."""
    return await first_visible_by_text(
        await document.query_all(selectors.BUTTON_LIKE), selectors.EDIT_TEXTS
    )


EDIT_BUTTON_STRATEGIES: Sequence[Strategy] = (
    edit_button_by_attributes,
    edit_button_near_photo,
    edit_button_by_text_scan,
)


async def first_match(document: Document, strategies: Sequence[Strategy]) -> Optional[Element]:
    for strategy in strategies:
        element = await strategy(document)
        if element is not None:
            logger.debug(f"Element found by {strategy.__name__}")
            return element
    return None


async def find_profile_picture_edit_button(
    document: Document,
    strategies: Sequence[Strategy] = EDIT_BUTTON_STRATEGIES
) -> Element:
    """
    Locate the profile picture edit control.

    Raises:
        ElementNotFound: No strategy produced a visible element
    """
    element = await first_match(document, strategies)
    if element is None:
        raise ElementNotFound("Could not find profile picture edit button")
    return element


async def find_control(
    document: Document,
    attribute_selectors: Sequence[str],
    class_selectors: Sequence[str],
    texts: Sequence[str]
) -> Optional[Element]:
    """Find a dialog control by attribute, then class, then button text."""
    found = await first_visible_by_selectors(document, attribute_selectors)
    if found is None:
        found = await first_visible_by_selectors(document, class_selectors)
    if found is None:
        found = await first_visible_by_text(await document.query_all("button"), texts)
    return found
