"""Map log entries and synchronization states to what gets drawn for them.

Every entry type gets a label template plus the operations its fields refer
to. The two conflict entries also get an arrow diagram: each operation is an
arrow between two document states, and opposite sides of every square are
versions of the same edit, one transformation apart.
"""

import logging
from typing import Callable, Dict, List, Tuple

from ot_trace.core.exceptions import DiagramInconsistencyError, UnhandledLogEntryError
from ot_trace.db.schemas import client_log as log_types
from ot_trace.db.schemas.client_log import ClientEntryType, SynchronizationStateStatus
from ot_trace.db.schemas.operation import Operation
from ot_trace.db.schemas.trace import ArrowDiagram, DiagramArrow, EntryLayout, Point, StateLayout
from ot_trace.utils.relationship import Relationship, relate

logger = logging.getLogger(__name__)

ONE_STEP = Relationship.ancestor(1)


def _diagram(width: int, height: int, arrows: List[Tuple[Operation, Point, Point, str]], links) -> ArrowDiagram:
    return ArrowDiagram(
        width=width,
        height=height,
        arrows=[
            DiagramArrow(operation=operation, start=start, end=end, tooltip_placement=placement)
            for operation, start, end, placement in arrows
        ],
        links=links,
    )


def _user_edit_added_to_buffer(entry: log_types.UserEditAddedToBuffer) -> EntryLayout:
    return EntryLayout(entry_type=entry.type, label_template="user_edit_added_to_buffer")


def _user_edit_immediately_sent_to_server(entry: log_types.UserEditImmediatelySentToServer) -> EntryLayout:
    return EntryLayout(
        entry_type=entry.type,
        label_template="user_edit_immediately_sent_to_server",
        label_fields={"operation": entry.operation},
    )


def _user_edit_stored_as_buffer(entry: log_types.UserEditStoredAsBuffer) -> EntryLayout:
    return EntryLayout(
        entry_type=entry.type,
        label_template="user_edit_stored_as_buffer",
        label_fields={"operation": entry.operation},
    )


def _received_own_operation(entry: log_types.ReceivedOwnOperation) -> EntryLayout:
    return EntryLayout(
        entry_type=entry.type,
        label_template="received_own_operation",
        label_fields={"acknowledged_operation": entry.acknowledged_operation},
    )


def _received_own_operation_and_sent_buffer(entry: log_types.ReceivedOwnOperationAndSentBuffer) -> EntryLayout:
    return EntryLayout(
        entry_type=entry.type,
        label_template="received_own_operation_and_sent_buffer",
        label_fields={
            "acknowledged_operation": entry.acknowledged_operation,
            "sent_buffer": entry.sent_buffer,
        },
    )


def _received_server_operation_while_synchronized(
    entry: log_types.ReceivedServerOperationWhileSynchronized,
) -> EntryLayout:
    return EntryLayout(
        entry_type=entry.type,
        label_template="received_server_operation_while_synchronized",
        label_fields={"received_operation": entry.received_operation},
    )


def _received_server_operation_while_awaiting_operation(
    entry: log_types.ReceivedServerOperationWhileAwaitingOperation,
) -> EntryLayout:
    top_left = Point(x=20, y=15)
    top_right = Point(x=125, y=20)
    bottom_left = Point(x=15, y=120)
    bottom_right = Point(x=120, y=125)

    diagram = _diagram(
        140,
        140,
        [
            (entry.awaited_operation, top_left, top_right, "top"),
            (entry.transformed_awaited_operation, bottom_left, bottom_right, "bottom"),
            (entry.received_operation, top_left, bottom_left, "left"),
            (entry.transformed_received_operation, top_right, bottom_right, "right"),
        ],
        links=[(0, 1), (2, 3)],
    )
    return EntryLayout(
        entry_type=entry.type,
        label_template="received_server_operation_while_awaiting_operation",
        label_fields={
            "received_operation": entry.received_operation,
            "awaited_operation": entry.awaited_operation,
            "transformed_received_operation": entry.transformed_received_operation,
            "transformed_awaited_operation": entry.transformed_awaited_operation,
        },
        diagram=diagram,
    )


def _received_server_operation_while_awaiting_operation_with_buffer(
    entry: log_types.ReceivedServerOperationWhileAwaitingOperationWithBuffer,
) -> EntryLayout:
    top_left = Point(x=20, y=15)
    top_center = Point(x=125, y=20)
    top_right = Point(x=230, y=25)
    bottom_left = Point(x=15, y=120)
    bottom_center = Point(x=120, y=125)
    bottom_right = Point(x=225, y=130)

    diagram = _diagram(
        245,
        145,
        [
            (entry.awaited_operation, top_left, top_center, "top"),
            (entry.transformed_awaited_operation, bottom_left, bottom_center, "bottom"),
            (entry.buffer_operation, top_center, top_right, "top"),
            (entry.transformed_buffer_operation, bottom_center, bottom_right, "bottom"),
            (entry.received_operation, top_left, bottom_left, "left"),
            (entry.once_transformed_received_operation, top_center, bottom_center, "bottom"),
            (entry.twice_transformed_received_operation, top_right, bottom_right, "right"),
        ],
        links=[(0, 1), (2, 3), (4, 5), (5, 6)],
    )
    return EntryLayout(
        entry_type=entry.type,
        label_template="received_server_operation_while_awaiting_operation_with_buffer",
        label_fields={
            "received_operation": entry.received_operation,
            "awaited_operation": entry.awaited_operation,
            "buffer_operation": entry.buffer_operation,
            "twice_transformed_received_operation": entry.twice_transformed_received_operation,
            "transformed_awaited_operation": entry.transformed_awaited_operation,
            "transformed_buffer_operation": entry.transformed_buffer_operation,
        },
        diagram=diagram,
    )


_ENTRY_LAYOUTS: Dict[ClientEntryType, Callable[..., EntryLayout]] = {
    ClientEntryType.USER_EDIT_ADDED_TO_BUFFER: _user_edit_added_to_buffer,
    ClientEntryType.USER_EDIT_IMMEDIATELY_SENT_TO_SERVER: _user_edit_immediately_sent_to_server,
    ClientEntryType.USER_EDIT_STORED_AS_BUFFER: _user_edit_stored_as_buffer,
    ClientEntryType.RECEIVED_OWN_OPERATION: _received_own_operation,
    ClientEntryType.RECEIVED_OWN_OPERATION_AND_SENT_BUFFER: _received_own_operation_and_sent_buffer,
    ClientEntryType.RECEIVED_SERVER_OPERATION_WHILE_SYNCHRONIZED: _received_server_operation_while_synchronized,
    ClientEntryType.RECEIVED_SERVER_OPERATION_WHILE_AWAITING_OPERATION: (
        _received_server_operation_while_awaiting_operation
    ),
    ClientEntryType.RECEIVED_SERVER_OPERATION_WHILE_AWAITING_OPERATION_WITH_BUFFER: (
        _received_server_operation_while_awaiting_operation_with_buffer
    ),
}


def _synchronized(state: log_types.Synchronized) -> StateLayout:
    return StateLayout(
        status=state.status,
        label_template="synchronized",
        server_revision=state.server_revision,
    )


def _awaiting_operation(state: log_types.AwaitingOperation) -> StateLayout:
    return StateLayout(
        status=state.status,
        label_template="awaiting_operation",
        label_fields={"awaited_operation": state.awaited_operation},
    )


def _awaiting_operation_with_buffer(state: log_types.AwaitingOperationWithBuffer) -> StateLayout:
    return StateLayout(
        status=state.status,
        label_template="awaiting_operation_with_buffer",
        label_fields={"awaited_operation": state.awaited_operation, "buffer": state.buffer},
    )


_STATE_LAYOUTS: Dict[SynchronizationStateStatus, Callable[..., StateLayout]] = {
    SynchronizationStateStatus.SYNCHRONIZED: _synchronized,
    SynchronizationStateStatus.AWAITING_OPERATION: _awaiting_operation,
    SynchronizationStateStatus.AWAITING_OPERATION_WITH_BUFFER: _awaiting_operation_with_buffer,
}

if set(_ENTRY_LAYOUTS) != set(ClientEntryType) or set(_STATE_LAYOUTS) != set(SynchronizationStateStatus):
    raise RuntimeError("Layout dispatch tables do not cover every tag")


def _lookup(table, tag_type, tag):
    try:
        return table[tag_type(tag)]
    except (ValueError, KeyError):
        raise UnhandledLogEntryError(tag) from None


def dispatch_entry(entry) -> EntryLayout:
    build = _lookup(_ENTRY_LAYOUTS, ClientEntryType, getattr(entry, "type", None))
    return build(entry)


def dispatch_state(state) -> StateLayout:
    build = _lookup(_STATE_LAYOUTS, SynchronizationStateStatus, getattr(state, "status", None))
    return build(state)


def validate_layout(layout: EntryLayout) -> None:
    """Check that every linked pair of arrows is exactly one transformation apart.

    Raises DiagramInconsistencyError on the first link that is not.
    """
    if layout.diagram is None:
        return
    arrows = layout.diagram.arrows
    for ancestor_index, descendant_index in layout.diagram.links:
        ancestor = arrows[ancestor_index].operation
        descendant = arrows[descendant_index].operation
        relationship = relate(ancestor, descendant)
        if relationship != ONE_STEP:
            raise DiagramInconsistencyError(
                f"{layout.entry_type.value}: operation {ancestor.meta.id} "
                f"{list(ancestor.transformed_against)} and {descendant.meta.id} "
                f"{list(descendant.transformed_against)} are {relationship.kind.value}"
                f"({relationship.steps}), expected one transformation apart"
            )
