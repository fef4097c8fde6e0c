from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ot_trace.api.deps import get_app_settings, get_db, get_trace_or_404
from ot_trace.core.config import Settings
from ot_trace.core.exceptions import LogPositionConflictError
from ot_trace.db.crud.trace import (
    append_log_item,
    create_trace,
    get_client_log,
    get_initial_state,
    get_log_item_records,
)
from ot_trace.db.models import Trace
from ot_trace.db.schemas.client_log import ClientLogItem
from ot_trace.db.schemas.trace import (
    ClientLogItemOut,
    RenderedTraceItemOut,
    RenderedTraceOut,
    TraceCreate,
    TraceOut,
    TraceWithLogOut,
)
from ot_trace.utils.narrative import render_entry_label, render_state_label
from ot_trace.utils.sequence import render_client_log
from ot_trace.utils.websocket import manager

router = APIRouter(prefix="/traces", tags=["traces"])


@router.post("/", response_model=TraceOut, status_code=status.HTTP_201_CREATED)
def create(trace_in: TraceCreate, db: Session = Depends(get_db)):
    return create_trace(db, trace_in)


@router.get("/{trace_id}", response_model=TraceWithLogOut)
def get_with_log(trace: Trace = Depends(get_trace_or_404), db: Session = Depends(get_db)):
    records = get_log_item_records(db, trace.id)
    return TraceWithLogOut(
        id=trace.id,
        title=trace.title,
        initial_state=trace.initial_state,
        created_at=trace.created_at,
        client_log=[
            ClientLogItemOut(position=r.position, entry=r.entry, new_state=r.new_state) for r in records
        ],
    )


@router.post("/{trace_id}/entries", response_model=ClientLogItemOut, status_code=status.HTTP_201_CREATED)
async def append_entry(
    item: ClientLogItem,
    trace: Trace = Depends(get_trace_or_404),
    db: Session = Depends(get_db),
):
    try:
        record = await run_in_threadpool(append_log_item, db, trace.id, item)
    except LogPositionConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    out = ClientLogItemOut(position=record.position, entry=record.entry, new_state=record.new_state)
    # open views are stale now; they decide themselves when to reload
    await manager.broadcast(
        trace.id,
        {"type": "appended", "trace_id": trace.id, "item": out.model_dump(mode="json")},
    )
    return out


@router.get("/{trace_id}/render", response_model=RenderedTraceOut)
def render(
    trace: Trace = Depends(get_trace_or_404),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    items = render_client_log(
        get_client_log(db, trace.id),
        get_initial_state(trace),
        strict=settings.strict_diagrams,
    )
    return RenderedTraceOut(
        id=trace.id,
        title=trace.title,
        items=[
            RenderedTraceItemOut(
                **item.model_dump(),
                entry_label=render_entry_label(item.entry_layout) if item.entry_layout else None,
                state_label=render_state_label(item.state_layout),
            )
            for item in items
        ],
    )
