"""Messages between the control surface, the scheduler and the page automator.

Every message is one variant of the closed ``Command`` union, tagged by
``action``. ``CommandRouter`` refuses to build unless each variant has a
handler, so a new command cannot be added without handling it.
"""

import typing
from typing import Any, Awaitable, Callable, Dict, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from pfp_rotator.exceptions import InvalidArgument


class _Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class UpdateProfilePicture(_Message):
    """Apply one stored image in the target page."""
    action: Literal["updateProfilePicture"] = "updateProfilePicture"
    image_path: str = Field(alias="imagePath")
    image_name: str = Field(alias="imageName")


class GenerateImages(_Message):
    """Generate variations from an inline base photo (data URL)."""
    action: Literal["generateImages"] = "generateImages"
    base_photo: str = Field(alias="basePhoto")
    num_images: int = Field(default=10, alias="numImages")


class GenerateFromBase(_Message):
    """Generate variations from the base photo in the fixed folder."""
    action: Literal["generateFromBase"] = "generateFromBase"
    num_images: int = Field(default=10, alias="numImages")


class GetSettings(_Message):
    action: Literal["getSettings"] = "getSettings"


class UpdateSettings(_Message):
    """Persist settings and re-arm the scheduler."""
    action: Literal["updateSettings"] = "updateSettings"
    settings: Dict[str, Any]


class ForceUpdate(_Message):
    """Run one rotation tick now."""
    action: Literal["forceUpdate"] = "forceUpdate"


Command = typing.Annotated[
    Union[UpdateProfilePicture, GenerateImages, GenerateFromBase, GetSettings, UpdateSettings, ForceUpdate],
    Field(discriminator="action")
]

COMMAND_TYPES = typing.get_args(typing.get_args(Command)[0])

_command_adapter = TypeAdapter(Command)


def parse_command(payload: Dict[str, Any]) -> BaseModel:
    """
    Parse a raw message into its Command variant.

    Raises:
        InvalidArgument: Unknown action or malformed fields
    """
    try:
        return _command_adapter.validate_python(payload)
    except ValidationError as e:
        raise InvalidArgument(f"Invalid command: {e.errors()[0]['msg']}") from e


class Ack(BaseModel):
    """Response to a command. Only the fields that apply are serialized."""
    success: bool = True
    count: Optional[int] = None
    error: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None

    @classmethod
    def failure(cls, error: str) -> "Ack":
        return cls(success=False, error=error)

    def to_message(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


Handler = Callable[[Any], Awaitable[Ack]]


class CommandRouter:
    """Route each Command variant to its handler."""

    def __init__(self, handlers: Dict[Type[BaseModel], Handler]):
        """
        Args:
            handlers: One coroutine handler per Command variant

        Raises:
            ValueError: A variant has no handler, or a handler key is not a variant
        """
        missing = [t.__name__ for t in COMMAND_TYPES if t not in handlers]
        if missing:
            raise ValueError(f"No handler for command(s): {', '.join(missing)}")
        unknown = [t.__name__ for t in handlers if t not in COMMAND_TYPES]
        if unknown:
            raise ValueError(f"Not a command type: {', '.join(unknown)}")
        self._handlers = dict(handlers)

    async def dispatch(self, command: BaseModel) -> Ack:
        return await self._handlers[type(command)](command)

    async def dispatch_raw(self, payload: Dict[str, Any]) -> Ack:
        """Parse and dispatch; parse errors become a failed Ack."""
        try:
            command = parse_command(payload)
        except InvalidArgument as e:
            return Ack.failure(str(e))
        return await self.dispatch(command)
