from sqlalchemy import Column, Integer, BigInteger, String, Boolean

from ..core.database import Base

class SlotRecord(Base):
    __tablename__ = "slots"

    # Slot ids are scoped per provider
    provider = Column(String(255), primary_key=True)
    slot_id = Column(Integer, primary_key=True)

    # Absolute timestamps in seconds
    start_time = Column(BigInteger, nullable=False)
    end_time = Column(BigInteger, nullable=False)
    is_booked = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<SlotRecord(provider='{self.provider}', slot_id={self.slot_id}, booked={self.is_booked})>"
