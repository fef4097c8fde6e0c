import uuid
from sqlalchemy import JSON, TIMESTAMP, Column, String, func
from sqlalchemy.orm import relationship
from ot_trace.db.models.base import Base


class Trace(Base):
    __tablename__ = "traces"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, index=True, default="Untitled Trace")
    initial_state = Column(JSON, nullable=False)  # Synchronization state before the first entry
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    items = relationship(
        "ClientLogItemRecord",
        back_populates="trace",
        order_by="ClientLogItemRecord.position",
    )
