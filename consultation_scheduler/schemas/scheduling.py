from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List
import enum

from ..core.config import settings

class ConsultationStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

# Domain records held by the engine
class Slot(BaseModel):
    """A block of time a provider offers, bookable at most once."""
    model_config = ConfigDict(from_attributes=True)

    provider: str
    slot_id: int
    start_time: int
    end_time: int
    is_booked: bool = False

class Consultation(BaseModel):
    """A booked appointment derived from exactly one slot."""
    model_config = ConfigDict(from_attributes=True)

    consultation_id: int
    slot_id: int
    provider: str
    patient: str
    timestamp: int
    duration: int
    status: ConsultationStatus = ConsultationStatus.SCHEDULED
    notes: str = ""

class EngineState(BaseModel):
    """Everything needed to restore an engine: both maps, the counters and the admin."""
    slots: List[Slot] = Field(default_factory=list)
    consultations: List[Consultation] = Field(default_factory=list)
    next_slot_id: int = 0
    next_consultation_id: int = 0
    shared_counter: bool = False
    admin: str
    version: int = 0

# Request bodies
class CreateSlotRequest(BaseModel):
    start_time: int
    end_time: int

class BookConsultationRequest(BaseModel):
    provider: str = Field(min_length=1)
    slot_id: int
    notes: str = ""

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, value: str) -> str:
        if len(value) > settings.MAX_NOTES_LENGTH:
            raise ValueError(f"Notes must be {settings.MAX_NOTES_LENGTH} characters or fewer")
        return value

class TransferAdminRequest(BaseModel):
    new_admin: str = Field(min_length=1)

    @field_validator("new_admin")
    @classmethod
    def validate_new_admin(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("New admin identity must not be blank")
        return value

# Response bodies
class SlotCreatedResponse(BaseModel):
    slot_id: int
    provider: str

class ConsultationBookedResponse(BaseModel):
    consultation_id: int
    status: ConsultationStatus = ConsultationStatus.SCHEDULED

class AdminResponse(BaseModel):
    admin: str
