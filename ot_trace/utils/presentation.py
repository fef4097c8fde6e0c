"""Interactive unit bound to one operation shown in a trace.

Each unit runs a small state machine driven by two kinds of events: local
pointer enter/leave, and changes of the view's hovered operation. While
another unit is hovered, a related unit shows how the two versions relate
without opening itself.
"""

import logging
import zlib
from enum import Enum
from typing import Any, Callable, Optional

from ot_trace.db.schemas.operation import Operation, OperationWithoutPayload
from ot_trace.db.schemas.trace import TooltipDetail, TooltipPlacement, UnitStateOut
from ot_trace.utils.hover import HoverCoordinator
from ot_trace.utils.relationship import Relationship, describe_relationship, relate

logger = logging.getLogger(__name__)

PayloadRenderer = Callable[[Any], Any]

CLIENT_COLORS = (
    "#e6194b",
    "#3cb44b",
    "#4363d8",
    "#f58231",
    "#911eb4",
    "#42d4f4",
    "#f032e6",
    "#9a6324",
)


def get_client_color(author: str) -> str:
    return CLIENT_COLORS[zlib.crc32(author.encode("utf-8")) % len(CLIENT_COLORS)]


def render_payload_as_text(base: Any) -> str:
    return "" if base is None else str(base)


def render_operation_detail(render_payload: PayloadRenderer, operation: Operation) -> TooltipDetail:
    revision_label = f"变更 {operation.revision}" if operation.revision is not None else None
    return TooltipDetail(revision_label=revision_label, payload=render_payload(operation.base))


class SelfOpenStatus(str, Enum):
    CLOSED = "CLOSED"
    CLOSING = "CLOSING"
    OPEN = "OPEN"


class OperationPresentationUnit:
    def __init__(
        self,
        operation: Operation,
        coordinator: HoverCoordinator,
        render_payload: PayloadRenderer = render_payload_as_text,
        key: str | None = None,
        tooltip_placement: TooltipPlacement = "bottom",
    ):
        self.operation = operation
        self.coordinator = coordinator
        self.render_payload = render_payload
        self.key = key or operation.meta.id
        self.tooltip_placement = tooltip_placement
        self.status = SelfOpenStatus.CLOSED
        self.relationship: Optional[Relationship] = None
        self._detail: Optional[TooltipDetail] = None
        self._unsubscribe = coordinator.subscribe(self._on_hover_changed)
        self._on_hover_changed(coordinator.get_hovered())

    @property
    def color(self) -> str:
        return get_client_color(self.operation.meta.author)

    @property
    def is_related_operation_hovered(self) -> bool:
        return self.relationship is not None and self.relationship.is_related

    @property
    def tooltip_open(self) -> bool:
        return self.status is SelfOpenStatus.OPEN or self.is_related_operation_hovered

    @property
    def tooltip_content(self) -> TooltipDetail | str | None:
        if self.status is SelfOpenStatus.OPEN:
            return self._detail
        if self.is_related_operation_hovered:
            return describe_relationship(self.relationship)
        return None

    def pointer_enter(self) -> None:
        if self.status is SelfOpenStatus.OPEN:
            return
        self.status = SelfOpenStatus.OPEN
        self._detail = render_operation_detail(self.render_payload, self.operation)
        self.coordinator.set_hovered(self.operation, owner=self)

    def pointer_leave(self) -> None:
        if self.status is not SelfOpenStatus.OPEN:
            return
        if self.coordinator.get_hovered() is not None:
            self.status = SelfOpenStatus.CLOSING
        else:
            self.status = SelfOpenStatus.CLOSED
        self.coordinator.release(self)

    def inline_detail(self) -> TooltipDetail:
        return render_operation_detail(self.render_payload, self.operation)

    def _on_hover_changed(self, hovered: Optional[OperationWithoutPayload]) -> None:
        if self.status is SelfOpenStatus.OPEN and not self.coordinator.is_owned_by(self):
            # superseded by another unit; the slot is no longer ours to clear
            self.status = SelfOpenStatus.CLOSING if hovered is not None else SelfOpenStatus.CLOSED
        if self.status is SelfOpenStatus.CLOSING and hovered is None:
            self.status = SelfOpenStatus.CLOSED
        self.relationship = relate(self.operation, hovered) if hovered is not None else None

    def snapshot(self) -> UnitStateOut:
        return UnitStateOut(
            key=self.key,
            operation_id=self.operation.meta.id,
            status=self.status.value,
            color=self.color,
            tooltip_placement=self.tooltip_placement,
            tooltip_open=self.tooltip_open,
            tooltip_content=self.tooltip_content,
        )

    def dispose(self) -> None:
        self._unsubscribe()
        if self.coordinator.release(self):
            logger.debug("Unit %s released the hover slot on dispose", self.key)
        self.status = SelfOpenStatus.CLOSED
        self.relationship = None
