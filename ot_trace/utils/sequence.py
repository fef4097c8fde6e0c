"""Fold a client log into the rendered trace, newest entry first."""

import logging
from typing import Dict, Iterator, List, Sequence, Tuple

from ot_trace.core.exceptions import DiagramInconsistencyError, UnknownUnitError
from ot_trace.db.schemas.client_log import ClientLogItem
from ot_trace.db.schemas.operation import Operation
from ot_trace.db.schemas.trace import TraceItem, UnitStateOut
from ot_trace.utils.dispatcher import dispatch_entry, dispatch_state, validate_layout
from ot_trace.utils.hover import HoverCoordinator
from ot_trace.utils.presentation import (
    OperationPresentationUnit,
    PayloadRenderer,
    render_payload_as_text,
)

logger = logging.getLogger(__name__)

INITIAL_STATE_KEY = "initial-state"


def log_entry_key(position: int) -> str:
    return f"log-entry-{position}"


def render_client_log(client_log: Sequence[ClientLogItem], initial_state, strict: bool = False) -> List[TraceItem]:
    """Pair every entry with the state it produced, newest first.

    Keys follow the entry's chronological position so a row keeps its key as
    the log grows. The last row shows ``initial_state`` without an entry.
    """
    items = []
    for position in range(len(client_log), 0, -1):
        log_item = client_log[position - 1]
        layout = dispatch_entry(log_item.entry)
        try:
            validate_layout(layout)
        except DiagramInconsistencyError as e:
            if strict:
                raise
            logger.warning("Entry %d has an inconsistent diagram: %s", position, e)
        items.append(
            TraceItem(
                key=log_entry_key(position),
                entry=log_item.entry,
                entry_layout=layout,
                state=log_item.new_state,
                state_layout=dispatch_state(log_item.new_state),
            )
        )
    items.append(
        TraceItem(key=INITIAL_STATE_KEY, state=initial_state, state_layout=dispatch_state(initial_state))
    )
    return items


def _operation_slots(item: TraceItem) -> Iterator[Tuple[str, Operation, str]]:
    if item.entry_layout is not None:
        if item.entry_layout.diagram is not None:
            for i, arrow in enumerate(item.entry_layout.diagram.arrows):
                yield f"{item.key}/diagram/{i}", arrow.operation, arrow.tooltip_placement
        for name, operation in item.entry_layout.label_fields.items():
            yield f"{item.key}/label/{name}", operation, "bottom"
    for name, operation in item.state_layout.label_fields.items():
        yield f"{item.key}/state/{name}", operation, "bottom"


class TraceView:
    """A rendered trace together with the interactive units of its operations.

    All units share one HoverCoordinator, created with the view and dropped
    by ``close()``; separate views never see each other's hover state.
    """

    def __init__(
        self,
        client_log: Sequence[ClientLogItem],
        initial_state,
        render_payload: PayloadRenderer = render_payload_as_text,
        strict: bool = False,
    ):
        self.coordinator = HoverCoordinator()
        self.items = render_client_log(client_log, initial_state, strict=strict)
        self.units: Dict[str, OperationPresentationUnit] = {}
        for item in self.items:
            for key, operation, placement in _operation_slots(item):
                self.units[key] = OperationPresentationUnit(
                    operation,
                    self.coordinator,
                    render_payload=render_payload,
                    key=key,
                    tooltip_placement=placement,
                )
        logger.debug("Built trace view with %d rows and %d units", len(self.items), len(self.units))

    def unit(self, key: str) -> OperationPresentationUnit:
        try:
            return self.units[key]
        except KeyError:
            raise UnknownUnitError(key) from None

    def pointer_enter(self, key: str) -> None:
        self.unit(key).pointer_enter()

    def pointer_leave(self, key: str) -> None:
        self.unit(key).pointer_leave()

    def visible_units(self) -> List[UnitStateOut]:
        return [unit.snapshot() for unit in self.units.values() if unit.tooltip_open]

    def close(self) -> None:
        for unit in self.units.values():
            unit.dispose()
        self.coordinator.close()
