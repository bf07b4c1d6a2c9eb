from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from typing import Optional
import logging

from ..core.config import settings
from ..core.security import security, verify_token, AuthenticationError
from ..services.scheduling_service import SchedulingEngine
from ..services.state_store import StateStore

logger = logging.getLogger(__name__)

# Process-wide engine, set up by init_engine()
_engine: Optional[SchedulingEngine] = None

def init_engine(state_store: Optional[StateStore] = None) -> SchedulingEngine:
    """Create the process-wide engine, restoring the stored snapshot when there is one."""
    global _engine

    state = state_store.load() if state_store else None
    # Every mutation is saved under the engine lock and undone if the save fails
    commit_hook = state_store.save if state_store else None

    if state is not None:
        _engine = SchedulingEngine.from_state(
            state,
            strict_transitions=settings.STRICT_STATUS_TRANSITIONS,
            max_notes_length=settings.MAX_NOTES_LENGTH,
            commit_hook=commit_hook,
        )
        logger.info(f"Restored scheduling engine at version {state.version}")
    else:
        _engine = SchedulingEngine(
            admin=settings.ADMIN_IDENTITY,
            shared_counter=settings.SHARED_ID_COUNTER,
            strict_transitions=settings.STRICT_STATUS_TRANSITIONS,
            max_notes_length=settings.MAX_NOTES_LENGTH,
            commit_hook=commit_hook,
        )
        logger.info(f"Started new scheduling engine with admin {settings.ADMIN_IDENTITY}")

    return _engine

def get_engine() -> SchedulingEngine:
    """Get the scheduling engine, creating an in-memory one on first use."""
    if _engine is None:
        return init_engine()
    return _engine

async def get_current_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """Extract the caller identity from the bearer token."""
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    token_payload = verify_token(credentials.credentials)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")

    # Check if token is access token
    if token_payload.token_type != "access":
        raise AuthenticationError("Invalid token type")

    if not token_payload.sub:
        raise AuthenticationError("Invalid token payload")

    return token_payload.sub
