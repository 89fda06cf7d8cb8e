"""WebSocket endpoint for control surface commands."""
import logging

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)


async def control_websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for the control surface.

    Protocol:
    - On connect: sends {"type": "connected", "client_id": "..."}
    - Client can send {"type": "ping"} -> receives {"type": "pong"}
    - Client sends a command {"action": "...", ...[, "id": ...]} and receives
      exactly one response {"type": "response", "success": ..., ...[, "id": ...]}
    - Server pushes {"type": "rotation_applied", "data": {...}} after each tick
    """
    manager = websocket.app.state.connection_manager
    command_router = websocket.app.state.command_router

    await websocket.accept()
    client_id = manager.connect(websocket)
    logger.info(f"Control client connected: {client_id}")

    try:
        await manager.send(client_id, {"type": "connected", "client_id": client_id})

        while True:
            try:
                data = await websocket.receive_json()
            except ValueError:
                await manager.send(client_id, {"type": "response", "success": False, "error": "Invalid JSON"})
                continue
            if not isinstance(data, dict):
                await manager.send(client_id, {"type": "response", "success": False, "error": "Expected a JSON object"})
                continue

            if data.get("type") == "ping":
                await manager.send(client_id, {"type": "pong"})
                continue

            logger.debug(f"Control command from {client_id}: {data.get('action')}")
            ack = await command_router.dispatch_raw(data)
            response = {"type": "response", **ack.to_message()}
            if "id" in data:
                response["id"] = data["id"]
            if not await manager.send(client_id, response):
                break

    except WebSocketDisconnect:
        logger.info(f"Control client disconnected: {client_id}")
    finally:
        manager.disconnect(client_id)
