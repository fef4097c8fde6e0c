from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from ot_trace.core.config import Settings, get_settings
from ot_trace.db.crud.trace import get_trace
from ot_trace.db.models import Trace
from ot_trace.db.session import SessionLocal
from ot_trace.utils.presentation import PayloadRenderer, render_payload_as_text


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_app_settings() -> Settings:
    return get_settings()


def get_payload_renderer() -> PayloadRenderer:
    """Renderer for the application-specific operation payload; override to customise."""
    return render_payload_as_text


def get_trace_or_404(trace_id: str, db: Session = Depends(get_db)) -> Trace:
    trace = get_trace(db, trace_id)
    if not trace:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trace not found")
    return trace
