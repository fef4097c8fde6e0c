import json
import logging
from typing import Literal

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from ot_trace.api.deps import get_app_settings, get_db, get_payload_renderer
from ot_trace.core.config import Settings
from ot_trace.core.exceptions import OTTraceError, UnknownUnitError
from ot_trace.db.crud.trace import get_client_log, get_initial_state, get_trace
from ot_trace.utils.presentation import PayloadRenderer
from ot_trace.utils.sequence import TraceView
from ot_trace.utils.websocket import manager

logger = logging.getLogger(__name__)

router = APIRouter()


class ViewEvent(BaseModel):
    """Message sent by a viewer.

    - pointer_enter / pointer_leave: ``unit`` is the key of an operation unit
    - reload: rebuild the view from the stored log
    """
    type: Literal["pointer_enter", "pointer_leave", "reload"]
    unit: str | None = None


def _load_view(db: Session, trace_id: str, render_payload: PayloadRenderer, strict: bool) -> TraceView | None:
    trace = get_trace(db, trace_id)
    if not trace:
        return None
    return TraceView(get_client_log(db, trace_id), get_initial_state(trace), render_payload, strict=strict)


def _init_message(trace_id: str, view: TraceView) -> dict:
    return {
        "type": "init",
        "trace_id": trace_id,
        "items": [item.model_dump(mode="json") for item in view.items],
        "units": {key: unit.inline_detail().model_dump(mode="json") for key, unit in view.units.items()},
    }


def _units_message(view: TraceView) -> dict:
    return {"type": "units", "units": [unit.model_dump(mode="json") for unit in view.visible_units()]}


async def _send(websocket: WebSocket, message: dict):
    await websocket.send_text(json.dumps(message, ensure_ascii=False))


@router.websocket("/ws/traces/{trace_id}")
async def trace_view_endpoint(
    websocket: WebSocket,
    trace_id: str,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    render_payload: PayloadRenderer = Depends(get_payload_renderer),
):
    await manager.connect(websocket, trace_id)
    view = None
    try:
        try:
            view = await run_in_threadpool(_load_view, db, trace_id, render_payload, settings.strict_diagrams)
        except OTTraceError as e:
            await _send(websocket, {"type": "error", "message": f"Cannot render trace: {e}"})
            await websocket.close()
            return
        if view is None:
            await _send(websocket, {"type": "error", "message": "Trace not found"})
            await websocket.close()
            return

        logger.info("Viewer connected to trace %s", trace_id)
        await _send(websocket, _init_message(trace_id, view))

        while True:
            try:
                raw = await websocket.receive_text()
            except WebSocketDisconnect:
                logger.info("Viewer disconnected from trace %s", trace_id)
                break

            try:
                event = ViewEvent(**json.loads(raw))
            except (ValueError, TypeError, ValidationError) as e:
                await _send(websocket, {"type": "error", "message": f"Invalid message format: {e}"})
                continue

            if event.type == "reload":
                try:
                    reloaded = await run_in_threadpool(
                        _load_view, db, trace_id, render_payload, settings.strict_diagrams
                    )
                except OTTraceError as e:
                    # keep serving the previous view
                    await _send(websocket, {"type": "error", "message": f"Cannot render trace: {e}"})
                    continue
                if reloaded is None:
                    await _send(websocket, {"type": "error", "message": "Trace not found"})
                    await websocket.close()
                    return
                # hover state does not survive a reload
                view.close()
                view = reloaded
                await _send(websocket, _init_message(trace_id, view))
                continue

            try:
                if event.type == "pointer_enter":
                    view.pointer_enter(event.unit)
                else:
                    view.pointer_leave(event.unit)
            except UnknownUnitError:
                await _send(websocket, {"type": "error", "message": f"Unknown unit: {event.unit}"})
                continue
            await _send(websocket, _units_message(view))
    finally:
        if view is not None:
            view.close()
        manager.disconnect(websocket, trace_id)
