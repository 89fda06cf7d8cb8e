"""Push notifications to connected control clients."""
import logging
from typing import Any, Dict

from pfp_rotator.rotation import TickResult

from .connection_manager import ConnectionManager

logger = logging.getLogger(__name__)


def tick_message(result: TickResult) -> Dict[str, Any]:
    """Serialize a TickResult for the control surface."""
    return {
        "type": "rotation_applied",
        "data": {
            "status": result.status.value,
            "image": result.image,
            "index": result.index,
            "nextIndex": result.next_index,
            "advanced": result.advanced,
            "error": result.error,
        }
    }


def tick_broadcaster(manager: ConnectionManager):
    """Return a scheduler listener that broadcasts each tick to all clients."""

    async def broadcast_tick(result: TickResult) -> None:
        if manager.connection_count == 0:
            return
        delivered = await manager.broadcast(tick_message(result))
        logger.debug(f"Tick {result.status.value} pushed to {delivered} client(s)")

    return broadcast_tick
