"""WebSocket endpoint for browser-driven recording sessions.

The browser owns the camera; the server owns the session. The client sends
JSON commands (``start``, ``stop``, ``discard``, ``accept``,
``select_device``, ``devices``) and binary frames holding media fragments
produced while recording. The server runs the countdown / recording timers
and answers with JSON ``RecorderMessage`` objects (state updates, device
lists, the created Song, errors).

On ``accept`` the clip is handed to the generation orchestrator and the
client receives the ``processing`` Song straight away.
"""

import json
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from vibetune.api.routes.songs import _to_response
from vibetune.core.exceptions import MissingFieldError, VibeTuneError
from vibetune.core.models import RecorderCommand, RecorderMessage, RecorderMessageType
from vibetune.core.utils import clean_text
from vibetune.services.recorder import (
    Accept,
    Discard,
    FeedCaptureBackend,
    RecorderSnapshot,
    SelectDevice,
    Start,
    Stop,
    create_recorder_controller,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/record")
async def record_ws(
    websocket: WebSocket,
    user_id: str | None = Query(None),
    mime_type: str = Query("video/webm"),
) -> None:
    """Recorder session endpoint.

    Query params:
        user_id: Default owner of songs created from this session.
        mime_type: Container type of the media fragments the client sends.
    """
    await websocket.accept()
    settings = websocket.app.state.settings
    orchestrator = websocket.app.state.orchestrator
    backend = FeedCaptureBackend()
    closed = False

    async def send(message_type: RecorderMessageType, data: dict) -> None:
        message = RecorderMessage(type=message_type, data=data)
        await websocket.send_json(message.model_dump(mode="json"))

    async def on_change(snapshot: RecorderSnapshot) -> None:
        if not closed:
            await send(RecorderMessageType.state, snapshot.to_dict())

    async def on_handoff(clip: bytes, clip_type: str, description: str | None, owner: str | None):
        song = await orchestrator.submit(clip, clip_type, user_id=owner, description=description)
        await send(RecorderMessageType.song, _to_response(song).model_dump(mode="json"))
        return song

    controller = create_recorder_controller(
        settings,
        backend=backend,
        on_handoff=on_handoff,
        on_change=on_change,
        mime_type=mime_type,
    )
    logger.info("Recorder connected (user_id=%s)", user_id)
    await send(RecorderMessageType.connected, controller.snapshot.to_dict())

    async def handle(command: RecorderCommand) -> None:
        action = command.action
        if action == "devices":
            devices = await backend.list_devices()
            await send(RecorderMessageType.devices, {"devices": [d.to_dict() for d in devices]})
        elif action == "start":
            await controller.dispatch(Start(command.device_id))
        elif action == "stop":
            await controller.dispatch(Stop())
        elif action == "discard":
            await controller.dispatch(Discard())
        elif action == "accept":
            owner = clean_text(command.user_id) or clean_text(user_id)
            if not owner:
                raise MissingFieldError("user_id")
            await controller.dispatch(Accept(command.description, owner))
        elif action == "select_device":
            await controller.dispatch(SelectDevice(command.device_id))
        else:
            raise VibeTuneError(f"Unknown action: {action}", code="UNKNOWN_ACTION", status_code=400)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            if message.get("bytes") is not None:
                controller.feed(message["bytes"])
                continue
            try:
                command = RecorderCommand.model_validate(json.loads(message.get("text") or ""))
                await handle(command)
            except (ValueError, ValidationError):
                await send(RecorderMessageType.error, {"detail": "Invalid command", "code": "INVALID_COMMAND"})
            except VibeTuneError as exc:
                await send(RecorderMessageType.error, {"detail": exc.detail, "code": exc.code})
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("Recorder session failed")
    finally:
        closed = True
        await controller.close()
        logger.info("Recorder disconnected (user_id=%s)", user_id)
