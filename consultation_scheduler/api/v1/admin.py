from fastapi import APIRouter, Depends

from ...api.deps import get_current_caller, get_engine
from ...schemas.scheduling import AdminResponse, TransferAdminRequest
from ...services.scheduling_service import SchedulingEngine

router = APIRouter(prefix="/admin", tags=["Admin"])

@router.get("", response_model=AdminResponse)
def get_admin(engine: SchedulingEngine = Depends(get_engine)):
    """Get the current admin identity."""
    return AdminResponse(admin=engine.admin)

@router.post("/transfer", response_model=AdminResponse)
def transfer_admin(
    transfer: TransferAdminRequest,
    caller: str = Depends(get_current_caller),
    engine: SchedulingEngine = Depends(get_engine),
):
    """Hand the admin role to another identity (admin only)."""
    engine.transfer_admin(caller, transfer.new_admin)

    return AdminResponse(admin=transfer.new_admin)
