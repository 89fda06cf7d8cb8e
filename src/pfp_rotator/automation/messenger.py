"""One-shot delivery of updateProfilePicture to a tab's page automator."""

import asyncio
import logging
from typing import Any, Callable, Optional

import httpx

from pfp_rotator.automation.dom import Document, PlaywrightDocument
from pfp_rotator.automation.page_automator import AutomationTimings, PageAutomator
from pfp_rotator.rotation.commands import Ack, UpdateProfilePicture

logger = logging.getLogger(__name__)

DEFAULT_ACK_TIMEOUT = 120.0


class TabMessenger:
    """
    Send a command to the automator attached to a tab and wait for its Ack.

    Returns None when no acknowledgement arrives within ``ack_timeout``;
    the caller decides what a missing ack means.
    """

    def __init__(
        self,
        timings: Optional[AutomationTimings] = None,
        ack_timeout: float = DEFAULT_ACK_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
        document_factory: Callable[[Any], Document] = PlaywrightDocument
    ):
        self.timings = timings or AutomationTimings()
        self.ack_timeout = ack_timeout
        self.http_client = http_client
        self.document_factory = document_factory

    async def send(self, tab: Any, command: UpdateProfilePicture) -> Optional[Ack]:
        automator = PageAutomator(
            self.document_factory(tab),
            timings=self.timings,
            http_client=self.http_client
        )
        try:
            return await asyncio.wait_for(automator.apply(command), timeout=self.ack_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"No acknowledgement for {command.image_name} within {self.ack_timeout}s")
            return None
