from fastapi import APIRouter, Depends, status

from ...api.deps import get_current_caller, get_engine
from ...core.exceptions import NotFoundError
from ...schemas.scheduling import CreateSlotRequest, Slot, SlotCreatedResponse
from ...services.scheduling_service import SchedulingEngine

router = APIRouter(prefix="/slots", tags=["Availability"])

@router.post("", response_model=SlotCreatedResponse, status_code=status.HTTP_201_CREATED)
def add_availability_slot(
    slot_data: CreateSlotRequest,
    caller: str = Depends(get_current_caller),
    engine: SchedulingEngine = Depends(get_engine),
):
    """Offer a new slot owned by the calling provider."""
    slot_id = engine.add_availability_slot(caller, slot_data.start_time, slot_data.end_time)

    return SlotCreatedResponse(slot_id=slot_id, provider=caller)

@router.get("/{provider}/{slot_id}", response_model=Slot)
def get_provider_availability(
    provider: str,
    slot_id: int,
    engine: SchedulingEngine = Depends(get_engine),
):
    """Look up one of a provider's slots."""
    slot = engine.get_provider_availability(provider, slot_id)
    if slot is None:
        raise NotFoundError("Slot not found")
    return slot
