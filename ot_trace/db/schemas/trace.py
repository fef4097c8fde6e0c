from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ot_trace.db.schemas.client_log import (
    ClientEntryType,
    ClientLogEntry,
    ClientLogItem,
    SynchronizationState,
    SynchronizationStateStatus,
)
from ot_trace.db.schemas.operation import Operation

TooltipPlacement = Literal["top", "bottom", "left", "right"]


class Point(BaseModel):
    x: int
    y: int


class DiagramArrow(BaseModel):
    """An operation drawn as an arrow from one document state to another."""
    operation: Operation
    start: Point
    end: Point
    tooltip_placement: TooltipPlacement = "bottom"


class ArrowDiagram(BaseModel):
    """Conflict diagram for the external diagram renderer.

    - links: (ancestor, descendant) arrow index pairs, drawn on opposite
      sides of a square; each pair is exactly one transformation apart
    """
    width: int
    height: int
    arrows: List[DiagramArrow]
    links: List[Tuple[int, int]] = Field(default_factory=list)


class EntryLayout(BaseModel):
    entry_type: ClientEntryType
    label_template: str
    label_fields: Dict[str, Operation] = Field(default_factory=dict)
    diagram: Optional[ArrowDiagram] = None


class StateLayout(BaseModel):
    status: SynchronizationStateStatus
    label_template: str
    label_fields: Dict[str, Operation] = Field(default_factory=dict)
    server_revision: Optional[int] = None


class TraceItem(BaseModel):
    """One rendered row, newest first. The initial state row has no entry."""
    key: str
    entry: Optional[ClientLogEntry] = None
    entry_layout: Optional[EntryLayout] = None
    state: SynchronizationState
    state_layout: StateLayout


class TooltipDetail(BaseModel):
    revision_label: Optional[str] = None
    payload: Any = None


class UnitStateOut(BaseModel):
    key: str
    operation_id: str
    status: str
    color: str
    tooltip_placement: TooltipPlacement
    tooltip_open: bool
    tooltip_content: TooltipDetail | str | None = None


class TraceCreate(BaseModel):
    title: str | None = "Untitled Trace"
    initial_state: SynchronizationState


class TraceOut(BaseModel):
    id: str
    title: str
    initial_state: SynchronizationState
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ClientLogItemOut(ClientLogItem):
    position: int


class TraceWithLogOut(TraceOut):
    client_log: List[ClientLogItemOut] = Field(default_factory=list)


class RenderedTraceItemOut(TraceItem):
    entry_label: Optional[str] = None
    state_label: str


class RenderedTraceOut(BaseModel):
    id: str
    title: str
    items: List[RenderedTraceItemOut]
