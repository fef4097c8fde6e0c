from sqlalchemy import JSON, TIMESTAMP, Column, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import relationship
from ot_trace.db.models.base import Base


class ClientLogItemRecord(Base):
    __tablename__ = "client_log_items"
    __table_args__ = (UniqueConstraint("trace_id", "position"),)

    id = Column(Integer, primary_key=True, index=True)
    trace_id = Column(String, ForeignKey("traces.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)  # 1-based, chronological
    entry = Column(JSON, nullable=False)
    new_state = Column(JSON, nullable=False)  # Synchronization state after the entry
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    trace = relationship("Trace", back_populates="items")
