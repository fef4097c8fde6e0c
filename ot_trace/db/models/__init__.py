from ot_trace.db.models.base import Base
from ot_trace.db.models.trace import Trace
from ot_trace.db.models.client_log_item import ClientLogItemRecord

__all__ = ["Base", "Trace", "ClientLogItemRecord"]
