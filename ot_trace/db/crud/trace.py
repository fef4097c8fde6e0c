import logging
from typing import List

from pydantic import TypeAdapter
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ot_trace.core.exceptions import LogPositionConflictError
from ot_trace.db.models import ClientLogItemRecord, Trace
from ot_trace.db.schemas.client_log import ClientLogItem, SynchronizationState
from ot_trace.db.schemas.trace import TraceCreate

logger = logging.getLogger(__name__)

_state_adapter = TypeAdapter(SynchronizationState)


def create_trace(db: Session, trace_in: TraceCreate) -> Trace:
    """Create a new, empty trace in the database."""
    db_trace = Trace(
        title=trace_in.title,
        initial_state=_state_adapter.dump_python(trace_in.initial_state, mode="json"),
    )
    db.add(db_trace)
    db.commit()
    db.refresh(db_trace)
    logger.info("Created trace %s", db_trace.id)
    return db_trace


def get_trace(db: Session, trace_id: str) -> Trace | None:
    """Retrieve a trace by its ID."""
    return db.query(Trace).filter(Trace.id == trace_id).first()


APPEND_ATTEMPTS = 3


def _next_position(db: Session, trace_id: str) -> int:
    last_position = (
        db.query(func.max(ClientLogItemRecord.position))
        .filter(ClientLogItemRecord.trace_id == trace_id)
        .scalar()
    )
    return (last_position or 0) + 1


def append_log_item(db: Session, trace_id: str, item: ClientLogItem) -> ClientLogItemRecord:
    """Append an item after the last one of the trace. Items are never updated.

    A concurrent append can take the same position first; the unique
    (trace_id, position) constraint rejects ours and we retry with a fresh one.
    """
    dumped = item.model_dump(mode="json")
    for attempt in range(1, APPEND_ATTEMPTS + 1):
        record = ClientLogItemRecord(
            trace_id=trace_id,
            position=_next_position(db, trace_id),
            entry=dumped["entry"],
            new_state=dumped["new_state"],
        )
        db.add(record)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(
                "Position %d of trace %s taken concurrently (attempt %d)", record.position, trace_id, attempt
            )
            continue
        db.refresh(record)
        logger.debug("Appended %s to trace %s at %d", record.entry["type"], trace_id, record.position)
        return record
    raise LogPositionConflictError(trace_id)


def get_log_item_records(db: Session, trace_id: str) -> List[ClientLogItemRecord]:
    """Retrieve the trace's stored items, oldest first."""
    return (
        db.query(ClientLogItemRecord)
        .filter(ClientLogItemRecord.trace_id == trace_id)
        .order_by(ClientLogItemRecord.position.asc())
        .all()
    )


def get_client_log(db: Session, trace_id: str) -> List[ClientLogItem]:
    return [
        ClientLogItem(entry=record.entry, new_state=record.new_state)
        for record in get_log_item_records(db, trace_id)
    ]


def get_initial_state(trace: Trace):
    return _state_adapter.validate_python(trace.initial_state)
