"""Periodic profile picture rotation.

RotationScheduler owns its timer and is constructed once per process with an
explicit start()/stop() lifecycle.

States:
- idle: no timer task
- armed: a timer task fires tick() every settings.interval_minutes()

Each tick:
1. Re-check the enabled flag (abort if it was switched off)
2. List stored images (no-op when empty)
3. Find or open the target tab and wait for it to load
4. Pick images[rotation_index % len(images)]
5. Dispatch updateProfilePicture; a missing or negative ack is a warning
6. Advance the index modulo the image count and stamp lastUpdate, always
   under advance-on-attempt, only on a positive ack under advance-on-confirm
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Protocol

from pfp_rotator.config import RotationPolicy
from pfp_rotator.rotation.commands import Ack, UpdateProfilePicture
from pfp_rotator.rotation.settings import Settings, SettingsStore
from pfp_rotator.storage.models import StoredImage

logger = logging.getLogger(__name__)


class ImageSource(Protocol):
    def list(self) -> List[StoredImage]: ...


class TabProvider(Protocol):
    async def find_or_open(self, url: str) -> Any: ...


class Dispatcher(Protocol):
    async def send(self, tab: Any, command: UpdateProfilePicture) -> Optional[Ack]: ...


class SchedulerState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"


class TickStatus(str, Enum):
    APPLIED = "applied"
    UNCONFIRMED = "unconfirmed"
    DISABLED = "disabled"
    NO_IMAGES = "no_images"
    TAB_UNAVAILABLE = "tab_unavailable"


@dataclass
class TickResult:
    """Outcome of one tick."""
    status: TickStatus
    image: Optional[str] = None
    index: Optional[int] = None
    next_index: Optional[int] = None
    advanced: bool = False
    error: Optional[str] = None


TickListener = Callable[[TickResult], Awaitable[None]]


class RotationScheduler:
    """Rotate the profile picture through stored images on a timer."""

    def __init__(
        self,
        settings_store: SettingsStore,
        images: ImageSource,
        tabs: TabProvider,
        dispatcher: Dispatcher,
        backend_url: str,
        target_url: str,
        policy: RotationPolicy = RotationPolicy.ADVANCE_ON_ATTEMPT,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc)
    ):
        self.settings_store = settings_store
        self.images = images
        self.tabs = tabs
        self.dispatcher = dispatcher
        self.backend_url = backend_url.rstrip("/")
        self.target_url = target_url
        self.policy = policy
        self._sleep = sleep
        self._now = now
        self._timer: Optional[asyncio.Task] = None
        self._period_seconds: Optional[float] = None
        self._listeners: List[TickListener] = []

    @property
    def state(self) -> SchedulerState:
        if self._timer is not None and not self._timer.done():
            return SchedulerState.ARMED
        return SchedulerState.IDLE

    @property
    def period_seconds(self) -> Optional[float]:
        """Current timer period, None while idle."""
        return self._period_seconds if self.state == SchedulerState.ARMED else None

    def add_listener(self, listener: TickListener) -> None:
        """Register a coroutine called with every TickResult."""
        self._listeners.append(listener)

    async def start(self) -> SchedulerState:
        """Arm (or stay idle) according to the stored settings."""
        return await self._rearm(self.settings_store.load())

    async def stop(self) -> None:
        """Cancel the timer. An in-flight tick is left to finish."""
        await self._clear_timer()

    async def apply_settings(self, settings: Settings) -> SchedulerState:
        """Persist ``settings`` and re-arm the timer with the new period."""
        self.settings_store.save(settings)
        return await self._rearm(settings)

    async def force_update(self) -> TickResult:
        """Run one tick immediately, independent of the timer."""
        return await self.tick()

    async def _clear_timer(self) -> None:
        timer, self._timer = self._timer, None
        self._period_seconds = None
        if timer is None or timer.done():
            return
        timer.cancel()
        try:
            await timer
        except asyncio.CancelledError:
            pass

    async def _rearm(self, settings: Settings) -> SchedulerState:
        # Always clear first so two timers never fire for the same settings
        await self._clear_timer()

        if not settings.enabled:
            logger.info("Auto-update is disabled; scheduler idle")
            return SchedulerState.IDLE

        minutes = settings.interval_minutes()
        self._period_seconds = minutes * 60.0
        self._timer = asyncio.create_task(self._run(self._period_seconds), name="pfp-rotation-timer")
        logger.info(f"Next update scheduled in {minutes} minutes")
        return SchedulerState.ARMED

    async def _run(self, period_seconds: float) -> None:
        while True:
            await self._sleep(period_seconds)
            try:
                # Shielded so re-arming mid-tick does not abort an apply in progress
                await asyncio.shield(self.tick())
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error during scheduled update: {e}", exc_info=True)

    async def tick(self) -> TickResult:
        """Run one rotation step. See module docstring for the sequence."""
        settings = self.settings_store.load()
        if not settings.enabled:
            logger.info("Auto-update is disabled; skipping tick")
            return await self._finish(TickResult(status=TickStatus.DISABLED))

        images = await asyncio.to_thread(self.images.list)
        if not images:
            logger.info("No images available for update")
            return await self._finish(TickResult(status=TickStatus.NO_IMAGES))

        try:
            tab = await self.tabs.find_or_open(self.target_url)
        except Exception as e:
            logger.error(f"Could not open target tab {self.target_url}: {e}")
            return await self._finish(TickResult(status=TickStatus.TAB_UNAVAILABLE, error=str(e)))

        index = settings.rotation_index % len(images)
        image = images[index]
        command = UpdateProfilePicture(
            image_path=f"{self.backend_url}/images/{image.filename}",
            image_name=image.filename
        )
        logger.info(f"Applying image {index + 1}/{len(images)}: {image.filename}")

        ack = await self.dispatcher.send(tab, command)
        confirmed = ack is not None and ack.success
        error = None
        if not confirmed:
            error = ack.error if ack is not None and ack.error else "no acknowledgement from page"
            logger.warning(f"Apply of {image.filename} not confirmed: {error}")

        next_index = (index + 1) % len(images)
        advanced = confirmed or self.policy == RotationPolicy.ADVANCE_ON_ATTEMPT
        if advanced:
            self.settings_store.update({
                "currentImageIndex": next_index,
                "lastUpdate": self._now().isoformat(),
            })
        else:
            logger.info(f"Rotation index kept at {index} ({self.policy.value})")

        return await self._finish(TickResult(
            status=TickStatus.APPLIED if confirmed else TickStatus.UNCONFIRMED,
            image=image.filename,
            index=index,
            next_index=next_index if advanced else index,
            advanced=advanced,
            error=error
        ))

    async def _finish(self, result: TickResult) -> TickResult:
        for listener in self._listeners:
            try:
                await listener(result)
            except Exception as e:
                logger.warning(f"Tick listener failed: {e}")
        return result
