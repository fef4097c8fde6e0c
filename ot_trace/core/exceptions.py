class OTTraceError(Exception):
    """Base class for errors raised by the trace core."""


class UnhandledLogEntryError(OTTraceError, TypeError):
    """A log entry or synchronization state carries a tag nothing dispatches on."""

    def __init__(self, tag):
        super().__init__(f"Unhandled tag: {tag!r}")
        self.tag = tag


class DiagramInconsistencyError(OTTraceError):
    """Two operations linked in a conflict diagram are not one transformation apart."""


class UnknownUnitError(OTTraceError, KeyError):
    """No operation unit with that key exists in the rendered view."""


class LogPositionConflictError(OTTraceError):
    """Concurrent appends kept taking the next position of a trace's log."""

    def __init__(self, trace_id):
        super().__init__(f"Could not append to trace {trace_id}: position taken concurrently")
        self.trace_id = trace_id
