from fastapi import APIRouter, Depends, status

from ...api.deps import get_current_caller, get_engine
from ...core.exceptions import NotFoundError
from ...schemas.scheduling import (
    BookConsultationRequest, Consultation, ConsultationBookedResponse
)
from ...services.scheduling_service import SchedulingEngine

router = APIRouter(prefix="/consultations", tags=["Consultations"])

@router.post("", response_model=ConsultationBookedResponse, status_code=status.HTTP_201_CREATED)
def book_consultation(
    booking: BookConsultationRequest,
    caller: str = Depends(get_current_caller),
    engine: SchedulingEngine = Depends(get_engine),
):
    """Book a provider's slot; the caller becomes the patient."""
    consultation_id = engine.book_consultation(
        caller, booking.provider, booking.slot_id, booking.notes
    )

    return ConsultationBookedResponse(consultation_id=consultation_id)

@router.get("/{consultation_id}", response_model=Consultation)
def get_consultation(
    consultation_id: int,
    engine: SchedulingEngine = Depends(get_engine),
):
    consultation = engine.get_consultation(consultation_id)
    if consultation is None:
        raise NotFoundError("Consultation not found")
    return consultation

@router.post("/{consultation_id}/complete", response_model=Consultation)
def complete_consultation(
    consultation_id: int,
    caller: str = Depends(get_current_caller),
    engine: SchedulingEngine = Depends(get_engine),
):
    """Mark a consultation completed (provider only)."""
    return engine.complete_consultation(caller, consultation_id)

@router.post("/{consultation_id}/cancel", response_model=Consultation)
def cancel_consultation(
    consultation_id: int,
    caller: str = Depends(get_current_caller),
    engine: SchedulingEngine = Depends(get_engine),
):
    """Cancel a consultation (provider or patient). The slot is not released."""
    return engine.cancel_consultation(caller, consultation_id)
