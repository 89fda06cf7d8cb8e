"""Tests for control command handlers."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.services.control import build_command_router
from pfp_rotator.exceptions import InvalidArgument
from pfp_rotator.rotation import (
    Ack,
    ForceUpdate,
    GenerateFromBase,
    GetSettings,
    SchedulerState,
    SettingsStore,
    TickResult,
    TickStatus,
    UpdateProfilePicture,
    UpdateSettings,
)


@pytest.fixture
def settings_store(tmp_path):
    return SettingsStore(tmp_path / "settings.json")


@pytest.fixture
def generation():
    service = MagicMock()
    service.generate = AsyncMock()
    service.generate_from_base = AsyncMock()
    return service


@pytest.fixture
def scheduler():
    mock = MagicMock()
    mock.target_url = "https://www.linkedin.com/in/me/"
    mock.tabs.find_or_open = AsyncMock(return_value="tab")
    mock.dispatcher.send = AsyncMock(return_value=Ack())
    mock.apply_settings = AsyncMock(return_value=SchedulerState.ARMED)
    mock.force_update = AsyncMock()
    return mock


@pytest.fixture
def router(generation, settings_store, scheduler):
    return build_command_router(generation, settings_store, scheduler)


@pytest.mark.unit
class TestControlHandlers:
    """Each command handler."""

    @pytest.mark.asyncio
    async def test_get_settings(self, router):
        ack = await router.dispatch(GetSettings())

        assert ack.success is True
        assert ack.settings["frequency"] == "weekly"
        assert ack.settings["isEnabled"] is True

    @pytest.mark.asyncio
    async def test_update_settings_persists_and_rearms(self, router, settings_store, scheduler):
        ack = await router.dispatch(UpdateSettings(settings={"frequency": "daily"}))

        assert ack.to_message() == {"success": True}
        assert settings_store.load().frequency.value == "daily"
        applied = scheduler.apply_settings.await_args.args[0]
        assert applied.frequency.value == "daily"

    @pytest.mark.asyncio
    async def test_update_settings_invalid(self, router, scheduler):
        ack = await router.dispatch(UpdateSettings(settings={"numImages": 500}))

        assert ack.success is False
        assert "Invalid settings" in ack.error
        scheduler.apply_settings.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_generate_from_base_reports_count(self, router, generation):
        generation.generate_from_base.return_value = MagicMock(count=4)

        ack = await router.dispatch(GenerateFromBase(num_images=4))

        assert ack.to_message() == {"success": True, "count": 4}
        generation.generate_from_base.assert_awaited_once_with(4)

    @pytest.mark.asyncio
    async def test_generate_error_becomes_failed_ack(self, router, generation):
        generation.generate_from_base.side_effect = InvalidArgument("No base image file found in base-pfp")

        ack = await router.dispatch(GenerateFromBase(num_images=2))

        assert ack.success is False
        assert "No base image file found" in ack.error

    @pytest.mark.asyncio
    async def test_generate_images_bad_data_url(self, router, generation):
        ack = await router.dispatch_raw({"action": "generateImages", "basePhoto": "", "numImages": 2})

        assert ack.success is False
        generation.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_profile_picture_forwards_to_tab(self, router, scheduler):
        command = UpdateProfilePicture(image_path="http://localhost:3000/images/a.png", image_name="a.png")

        ack = await router.dispatch(command)

        assert ack.success is True
        scheduler.dispatcher.send.assert_awaited_once_with("tab", command)

    @pytest.mark.asyncio
    async def test_update_profile_picture_without_ack(self, router, scheduler):
        scheduler.dispatcher.send.return_value = None
        command = UpdateProfilePicture(image_path="http://x/images/a.png", image_name="a.png")

        ack = await router.dispatch(command)

        assert ack.success is False
        assert "No acknowledgement" in ack.error

    @pytest.mark.asyncio
    async def test_update_profile_picture_tab_error(self, router, scheduler):
        scheduler.tabs.find_or_open.side_effect = RuntimeError("browser closed")
        command = UpdateProfilePicture(image_path="http://x/images/a.png", image_name="a.png")

        ack = await router.dispatch(command)

        assert ack.success is False
        assert "browser closed" in ack.error

    @pytest.mark.asyncio
    @pytest.mark.parametrize("result,success,error", [
        (TickResult(status=TickStatus.APPLIED, image="a.png"), True, None),
        (TickResult(status=TickStatus.NO_IMAGES), False, "No images available for update"),
        (TickResult(status=TickStatus.DISABLED), False, "Auto-update is disabled"),
        (TickResult(status=TickStatus.UNCONFIRMED, error="Could not find file input"),
         False, "Could not find file input"),
    ])
    async def test_force_update(self, router, scheduler, result, success, error):
        scheduler.force_update.return_value = result

        ack = await router.dispatch(ForceUpdate())

        assert ack.success is success
        assert ack.error == error
