from sqlalchemy.orm import Session, sessionmaker
from typing import Optional
import logging
import threading

from ..core.database import SessionLocal
from ..models.consultation import ConsultationRecord
from ..models.engine_state import EngineStateRecord
from ..models.slot import SlotRecord
from ..schemas.scheduling import Consultation, EngineState, Slot

logger = logging.getLogger(__name__)

STATE_ROW_ID = 1

class StateStore:
    """Persists engine snapshots: slots, consultations, counters and admin in one transaction."""

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory
        self._lock = threading.Lock()

    def load(self) -> Optional[EngineState]:
        """Return the stored snapshot, or None if nothing has been saved yet."""
        db: Session = self.session_factory()
        try:
            state_row = db.get(EngineStateRecord, STATE_ROW_ID)
            if state_row is None:
                return None

            slots = [Slot.model_validate(row) for row in db.query(SlotRecord).all()]
            consultations = [
                Consultation.model_validate(row)
                for row in db.query(ConsultationRecord).order_by(ConsultationRecord.consultation_id).all()
            ]

            logger.info(
                f"Loaded engine state version {state_row.version}: "
                f"{len(slots)} slots, {len(consultations)} consultations"
            )
            return EngineState(
                slots=slots,
                consultations=consultations,
                next_slot_id=state_row.next_slot_id,
                next_consultation_id=state_row.next_consultation_id,
                shared_counter=state_row.shared_counter,
                admin=state_row.admin,
                version=state_row.version,
            )
        finally:
            db.close()

    def save(self, state: EngineState) -> bool:
        """Write a snapshot. Returns False when a newer or equal version is already stored."""
        with self._lock:
            db: Session = self.session_factory()
            try:
                state_row = db.get(EngineStateRecord, STATE_ROW_ID)
                if state_row is not None and state_row.version >= state.version:
                    logger.debug(
                        f"Skipping stale snapshot {state.version} (stored {state_row.version})"
                    )
                    return False

                if state_row is None:
                    state_row = EngineStateRecord(id=STATE_ROW_ID)
                    db.add(state_row)

                state_row.next_slot_id = state.next_slot_id
                state_row.next_consultation_id = state.next_consultation_id
                state_row.shared_counter = state.shared_counter
                state_row.admin = state.admin
                state_row.version = state.version

                # Records are never deleted by the engine, so merging is enough
                for slot in state.slots:
                    db.merge(SlotRecord(**slot.model_dump()))
                for consultation in state.consultations:
                    db.merge(ConsultationRecord(**consultation.model_dump()))

                db.commit()
                logger.debug(f"Saved engine state version {state.version}")
                return True
            except Exception:
                db.rollback()
                logger.exception(f"Failed to save engine state version {state.version}")
                raise
            finally:
                db.close()
