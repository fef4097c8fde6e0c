"""Hover state shared by the operation units of one rendered trace.

Hovering an operation publishes it here; every other unit of the same view
listens and decides on its own whether the hovered operation is a version of
its own. Only the unit that published the current value may clear it.
"""

import logging
from typing import Callable, List, Optional

from ot_trace.db.schemas.operation import Operation, OperationWithoutPayload

logger = logging.getLogger(__name__)

HoverListener = Callable[[Optional[OperationWithoutPayload]], None]


class HoverCoordinator:
    """The hovered operation of one rendered trace, shared by all of its units.

    A single slot, not a queue: the latest ``set_hovered`` wins. Units never
    reference each other, they only publish here and listen for changes.
    """

    def __init__(self):
        self._hovered: Optional[OperationWithoutPayload] = None
        self._owner: Optional[object] = None
        self._listeners: List[HoverListener] = []

    def get_hovered(self) -> Optional[OperationWithoutPayload]:
        return self._hovered

    def set_hovered(self, operation: Optional[OperationWithoutPayload], owner: object = None) -> None:
        if isinstance(operation, Operation):
            operation = operation.without_payload()
        owner = owner if operation is not None else None
        if operation == self._hovered and owner is self._owner:
            return
        self._hovered = operation
        self._owner = owner
        logger.debug("Hovered operation is now %s", operation.meta.id if operation else None)
        # listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            listener(operation)

    def is_owned_by(self, owner: object) -> bool:
        return self._hovered is not None and self._owner is owner

    def release(self, owner: object) -> bool:
        """Clear the slot if ``owner`` published its current value.

        Returns False for a stale clear, which leaves the slot untouched.
        """
        if not self.is_owned_by(owner):
            logger.debug("Ignoring stale hover clear")
            return False
        self.set_hovered(None)
        return True

    def subscribe(self, listener: HoverListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        self._listeners.clear()
        self._hovered = None
        self._owner = None
