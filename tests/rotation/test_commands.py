"""Tests for command messages and the command router."""

from unittest.mock import AsyncMock

import pytest

from pfp_rotator.exceptions import InvalidArgument
from pfp_rotator.rotation import (
    Ack,
    CommandRouter,
    ForceUpdate,
    GenerateFromBase,
    GenerateImages,
    GetSettings,
    UpdateProfilePicture,
    UpdateSettings,
    parse_command,
)
from pfp_rotator.rotation.commands import COMMAND_TYPES


def all_handlers():
    return {command_type: AsyncMock(return_value=Ack()) for command_type in COMMAND_TYPES}


@pytest.mark.unit
class TestParseCommand:
    """Tagged message parsing."""

    @pytest.mark.parametrize("payload,expected", [
        ({"action": "updateProfilePicture", "imagePath": "http://h/images/a.png", "imageName": "a.png"},
         UpdateProfilePicture),
        ({"action": "generateImages", "basePhoto": "data:image/png;base64,AAAA", "numImages": 3},
         GenerateImages),
        ({"action": "generateFromBase", "numImages": 4}, GenerateFromBase),
        ({"action": "getSettings"}, GetSettings),
        ({"action": "updateSettings", "settings": {"frequency": "daily"}}, UpdateSettings),
        ({"action": "forceUpdate"}, ForceUpdate),
    ])
    def test_parses_each_variant(self, payload, expected):
        assert isinstance(parse_command(payload), expected)

    def test_aliases_populate_fields(self):
        command = parse_command({"action": "updateProfilePicture", "imagePath": "u", "imageName": "n"})
        assert command.image_path == "u"
        assert command.image_name == "n"

    def test_default_image_count(self):
        assert parse_command({"action": "generateFromBase"}).num_images == 10

    def test_unknown_action(self):
        with pytest.raises(InvalidArgument):
            parse_command({"action": "selfDestruct"})

    def test_missing_field(self):
        with pytest.raises(InvalidArgument):
            parse_command({"action": "updateProfilePicture", "imageName": "a.png"})

    def test_commands_are_immutable(self):
        command = ForceUpdate()
        with pytest.raises(Exception):
            command.action = "getSettings"


@pytest.mark.unit
class TestAck:
    """Response shapes."""

    def test_success_only(self):
        assert Ack().to_message() == {"success": True}

    def test_count(self):
        assert Ack(count=4).to_message() == {"success": True, "count": 4}

    def test_failure(self):
        assert Ack.failure("nope").to_message() == {"success": False, "error": "nope"}


@pytest.mark.unit
class TestCommandRouter:
    """Exhaustive handler mapping."""

    def test_missing_handler_refused(self):
        """A router without a handler for every variant cannot be built."""
        handlers = all_handlers()
        del handlers[ForceUpdate]

        with pytest.raises(ValueError, match="ForceUpdate"):
            CommandRouter(handlers)

    def test_unknown_handler_key_refused(self):
        handlers = all_handlers()
        handlers[Ack] = AsyncMock()

        with pytest.raises(ValueError, match="Ack"):
            CommandRouter(handlers)

    @pytest.mark.asyncio
    async def test_dispatch_routes_by_type(self):
        handlers = all_handlers()
        handlers[GetSettings].return_value = Ack(settings={"frequency": "daily"})
        router = CommandRouter(handlers)

        ack = await router.dispatch(GetSettings())

        assert ack.settings == {"frequency": "daily"}
        handlers[GetSettings].assert_awaited_once()
        handlers[ForceUpdate].assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dispatch_raw_parse_error_is_failed_ack(self):
        router = CommandRouter(all_handlers())

        ack = await router.dispatch_raw({"action": "nope"})

        assert ack.success is False
        assert "Invalid command" in ack.error
