from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func

from ..core.database import Base

class EngineStateRecord(Base):
    __tablename__ = "engine_state"

    # Single row table
    id = Column(Integer, primary_key=True, default=1)

    next_slot_id = Column(Integer, nullable=False, default=0)
    next_consultation_id = Column(Integer, nullable=False, default=0)
    shared_counter = Column(Boolean, nullable=False, default=False)
    admin = Column(String(255), nullable=False)
    version = Column(Integer, nullable=False, default=0)

    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<EngineStateRecord(version={self.version}, admin='{self.admin}')>"
