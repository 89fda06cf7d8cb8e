"""Drive the profile page UI to set a new profile picture.

Sequence for one updateProfilePicture command:
1. Guard: do nothing unless the document is a profile page
2. Locate the edit control (attribute selectors, photo proximity, text scan)
3. Click it and let the dialog settle
4. Poll for a visible file input
5. Fetch the image bytes from the backend
6. Assign the file to the input and fire change/input events
7. Wait for the upload indicator to disappear (bounded, timeout only logged)
8. Click save/apply, then done/close, if present

Every wait is a fixed-interval sleep. This is a best-effort script: if a late
step's selectors miss, the page may be left with the file staged but unsaved.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple

import httpx

from pfp_rotator.automation import selectors
from pfp_rotator.automation.dom import Document, Element
from pfp_rotator.automation.finders import (
    find_control,
    find_profile_picture_edit_button,
    first_visible,
    first_visible_by_selectors,
)
from pfp_rotator.exceptions import ElementNotFound, FetchFailed
from pfp_rotator.rotation.commands import Ack, UpdateProfilePicture

logger = logging.getLogger(__name__)


@dataclass
class AutomationTimings:
    """Delays, poll intervals and bounds (seconds). Tests shrink these to zero."""
    click_settle: float = 1.0
    file_input_attempts: int = 10
    file_input_interval: float = 0.5
    upload_poll_interval: float = 0.5
    upload_max_wait: float = 30.0
    upload_settle: float = 1.0
    save_settle: float = 2.0
    close_settle: float = 1.0
    fetch_timeout: float = 30.0


def guess_image_type(data: bytes) -> str:
    """Detect an image MIME type from magic bytes (defaults to image/png)."""
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    return "image/png"


def is_profile_page(url: str) -> bool:
    return selectors.PROFILE_URL_FRAGMENT in (url or "")


class PageAutomator:
    """Apply one image to the profile page behind ``document``."""

    def __init__(
        self,
        document: Document,
        timings: Optional[AutomationTimings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        self.document = document
        self.timings = timings or AutomationTimings()
        self._http_client = http_client
        self._sleep = sleep
        self._clock = clock

    async def apply(self, command: UpdateProfilePicture) -> Ack:
        """Run the full sequence; any failure becomes a negative Ack."""
        if not is_profile_page(self.document.url):
            logger.info(f"Not on a profile page ({self.document.url}); skipping update")
            return Ack.failure(f"Not on a profile page: {self.document.url}")

        try:
            await self.update_profile_picture(command.image_path, command.image_name)
        except Exception as e:
            logger.error(f"Error updating profile picture: {e}")
            return Ack.failure(str(e))
        return Ack(success=True)

    async def update_profile_picture(self, image_path: str, image_name: str) -> None:
        """
        Steps 2-8 of the module sequence.

        Raises:
            ElementNotFound: Edit control or file input not found
            FetchFailed: Image could not be fetched from the backend
        """
        logger.info(f"Starting profile picture update with: {image_name}")

        edit_button = await find_profile_picture_edit_button(self.document)
        await edit_button.click()
        await self._sleep(self.timings.click_settle)

        file_input = await self.wait_for_file_input()
        data, mime_type = await self.fetch_image(image_path)

        await file_input.assign_file(image_name, mime_type, data)
        logger.debug(f"Assigned {image_name} ({mime_type}, {len(data)} bytes) to file input")

        await self.wait_for_upload_complete()
        await self.save_changes()

        logger.info("Profile picture update sequence finished")

    async def wait_for_file_input(self) -> Element:
        """
        Poll for a visible file input.

        Raises:
            ElementNotFound: Not visible after ``file_input_attempts`` polls
        """
        for _ in range(self.timings.file_input_attempts):
            found = await first_visible(await self.document.query_all(selectors.FILE_INPUT))
            if found is not None:
                return found
            await self._sleep(self.timings.file_input_interval)
        raise ElementNotFound("Could not find file input")

    async def fetch_image(self, image_path: str) -> Tuple[bytes, str]:
        """
        Download the image from the backend.

        Returns:
            (bytes, mime type)

        Raises:
            FetchFailed: Transport error or non-2xx response
        """
        client = self._http_client or httpx.AsyncClient(timeout=self.timings.fetch_timeout)
        try:
            response = await client.get(image_path)
        except httpx.HTTPError as e:
            raise FetchFailed(f"Failed to fetch image: {e}") from e
        finally:
            if self._http_client is None:
                await client.aclose()

        if not response.is_success:
            raise FetchFailed(f"Failed to fetch image: {response.status_code}")

        data = response.content
        mime_type = response.headers.get("content-type", "").split(";")[0].strip()
        if not mime_type.startswith("image/"):
            mime_type = guess_image_type(data)
        return data, mime_type

    async def wait_for_upload_complete(self) -> bool:
        """
        Wait for the upload progress indicator to go away.

        Returns:
            True if it disappeared, False if ``upload_max_wait`` elapsed
        """
        start = self._clock()
        while self._clock() - start < self.timings.upload_max_wait:
            indicator = await first_visible_by_selectors(
                self.document, (selectors.UPLOAD_PROGRESS_SELECTORS,)
            )
            if indicator is None:
                await self._sleep(self.timings.upload_settle)
                return True
            await self._sleep(self.timings.upload_poll_interval)

        logger.warning("Upload timeout reached; continuing")
        return False

    async def save_changes(self) -> Tuple[bool, bool]:
        """
        Click save/apply, then done/close, when present.

        Returns:
            (saved, closed)
        """
        saved = closed = False

        save_button = await find_control(
            self.document,
            selectors.SAVE_ATTRIBUTE_SELECTORS,
            selectors.SAVE_CLASS_SELECTORS,
            selectors.SAVE_TEXTS
        )
        if save_button is not None:
            await save_button.click()
            saved = True
            await self._sleep(self.timings.save_settle)
        else:
            logger.warning("No save/apply control found; file may be staged but unsaved")

        done_button = await find_control(
            self.document,
            selectors.DONE_ATTRIBUTE_SELECTORS,
            selectors.DONE_CLASS_SELECTORS,
            selectors.DONE_TEXTS
        )
        if done_button is not None:
            await done_button.click()
            closed = True
            await self._sleep(self.timings.close_settle)

        return saved, closed
