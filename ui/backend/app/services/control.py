"""Handlers for control surface commands."""

import logging
from functools import wraps

from pfp_rotator.exceptions import RotatorError
from pfp_rotator.rotation import (
    Ack,
    CommandRouter,
    ForceUpdate,
    GenerateFromBase,
    GenerateImages,
    GetSettings,
    RotationScheduler,
    SettingsStore,
    TickStatus,
    UpdateProfilePicture,
    UpdateSettings,
)

from app.services.generation_service import GenerationService, decode_data_url

logger = logging.getLogger(__name__)

TICK_ERRORS = {
    TickStatus.DISABLED: "Auto-update is disabled",
    TickStatus.NO_IMAGES: "No images available for update",
}


def reporting(handler):
    """Turn an exception raised by a handler into a failed Ack."""

    @wraps(handler)
    async def wrapper(command):
        try:
            return await handler(command)
        except RotatorError as e:
            logger.error(f"{type(command).__name__} failed: {e}")
            return Ack.failure(str(e))
        except Exception as e:
            logger.error(f"{type(command).__name__} crashed: {e}", exc_info=True)
            return Ack.failure(str(e) or type(e).__name__)

    return wrapper


def build_command_router(
    generation: GenerationService,
    settings_store: SettingsStore,
    scheduler: RotationScheduler
) -> CommandRouter:
    """Wire every command variant to the backend services."""

    @reporting
    async def update_profile_picture(command: UpdateProfilePicture) -> Ack:
        try:
            tab = await scheduler.tabs.find_or_open(scheduler.target_url)
        except Exception as e:
            logger.error(f"Could not open target tab: {e}")
            return Ack.failure(f"Could not open target tab: {e}")
        ack = await scheduler.dispatcher.send(tab, command)
        return ack if ack is not None else Ack.failure("No acknowledgement from page")

    @reporting
    async def generate_images(command: GenerateImages) -> Ack:
        base = decode_data_url(command.base_photo)
        result = await generation.generate(base, command.num_images)
        return Ack(count=result.count)

    @reporting
    async def generate_from_base(command: GenerateFromBase) -> Ack:
        result = await generation.generate_from_base(command.num_images)
        return Ack(count=result.count)

    @reporting
    async def get_settings(command: GetSettings) -> Ack:
        return Ack(settings=settings_store.load().to_storage())

    @reporting
    async def update_settings(command: UpdateSettings) -> Ack:
        settings = settings_store.update(command.settings)
        state = await scheduler.apply_settings(settings)
        logger.info(f"Settings updated; scheduler {state.value}")
        return Ack()

    @reporting
    async def force_update(command: ForceUpdate) -> Ack:
        result = await scheduler.force_update()
        if result.status == TickStatus.APPLIED:
            return Ack()
        return Ack.failure(result.error or TICK_ERRORS.get(result.status, result.status.value))

    return CommandRouter({
        UpdateProfilePicture: update_profile_picture,
        GenerateImages: generate_images,
        GenerateFromBase: generate_from_base,
        GetSettings: get_settings,
        UpdateSettings: update_settings,
        ForceUpdate: force_update,
    })
