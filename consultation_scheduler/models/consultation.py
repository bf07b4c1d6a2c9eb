from sqlalchemy import Column, Integer, BigInteger, String, Enum as SQLEnum

from ..core.config import settings
from ..core.database import Base
from ..schemas.scheduling import ConsultationStatus

class ConsultationRecord(Base):
    __tablename__ = "consultations"

    consultation_id = Column(Integer, primary_key=True)
    slot_id = Column(Integer, nullable=False)

    # Participants
    provider = Column(String(255), nullable=False, index=True)
    patient = Column(String(255), nullable=False, index=True)

    # Copied from the slot at booking time
    timestamp = Column(BigInteger, nullable=False)
    duration = Column(BigInteger, nullable=False)

    status = Column(SQLEnum(ConsultationStatus), default=ConsultationStatus.SCHEDULED, nullable=False)
    notes = Column(String(settings.MAX_NOTES_LENGTH), nullable=False, default="")

    def __repr__(self):
        return f"<ConsultationRecord(id={self.consultation_id}, provider='{self.provider}', status='{self.status}')>"
