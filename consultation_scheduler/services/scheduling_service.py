"""
Scheduling engine.

Owns every slot and consultation, the identifier counters and the admin
identity. Each operation receives the caller identity explicitly and runs
under a single lock, so operations are atomic with respect to each other
and reads never see a half-applied mutation.
"""
from contextlib import contextmanager
from typing import Callable, Dict, Optional, Tuple
import logging
import threading

from ..core.exceptions import (
    AlreadyBookedError, ForbiddenError, InvalidRangeError,
    InvalidTransitionError, NotFoundError
)
from ..schemas.scheduling import Consultation, ConsultationStatus, EngineState, Slot

logger = logging.getLogger(__name__)

DEFAULT_MAX_NOTES_LENGTH = 500

# Status transitions accepted when strict transitions are enabled
ALLOWED_TRANSITIONS = {
    ConsultationStatus.SCHEDULED: {ConsultationStatus.COMPLETED, ConsultationStatus.CANCELLED},
    ConsultationStatus.COMPLETED: set(),
    ConsultationStatus.CANCELLED: set(),
}

class IdAllocator:
    """Hands out slot and consultation ids.

    With ``shared=True`` both entity types draw from one counter, so a slot
    and a consultation never get the same number. Otherwise each type has
    its own counter starting at zero.
    """

    def __init__(self, shared: bool = False, next_slot_id: int = 0, next_consultation_id: int = 0):
        self.shared = shared
        if shared:
            # A single counter must never hand out a value either type has already used
            next_slot_id = next_consultation_id = max(next_slot_id, next_consultation_id)
        self._next_slot_id = next_slot_id
        self._next_consultation_id = next_consultation_id

    @property
    def next_slot_id(self) -> int:
        return self._next_slot_id

    @property
    def next_consultation_id(self) -> int:
        return self._next_consultation_id

    def allocate_slot_id(self) -> int:
        value = self._next_slot_id
        self._advance(slot=True)
        return value

    def allocate_consultation_id(self) -> int:
        value = self._next_consultation_id
        self._advance(slot=False)
        return value

    def _advance(self, slot: bool):
        if self.shared:
            self._next_slot_id += 1
            self._next_consultation_id = self._next_slot_id
        elif slot:
            self._next_slot_id += 1
        else:
            self._next_consultation_id += 1

class SchedulingEngine:
    def __init__(
        self,
        admin: str,
        shared_counter: bool = False,
        strict_transitions: bool = False,
        max_notes_length: int = DEFAULT_MAX_NOTES_LENGTH,
        commit_hook: Optional[Callable[[EngineState], object]] = None,
    ):
        self._admin = admin
        self._slots: Dict[Tuple[str, int], Slot] = {}
        self._consultations: Dict[int, Consultation] = {}
        self._ids = IdAllocator(shared=shared_counter)
        self._version = 0
        self._lock = threading.RLock()
        self.strict_transitions = strict_transitions
        self.max_notes_length = max_notes_length
        # Called with the new state at the end of every mutation, still under the lock.
        # If it raises, the mutation is undone.
        self.commit_hook = commit_hook

    @classmethod
    def from_state(
        cls,
        state: EngineState,
        strict_transitions: bool = False,
        max_notes_length: int = DEFAULT_MAX_NOTES_LENGTH,
        commit_hook: Optional[Callable[[EngineState], object]] = None,
    ) -> "SchedulingEngine":
        """Rebuild an engine from a snapshot; all four parts are restored together."""
        engine = cls(
            admin=state.admin,
            shared_counter=state.shared_counter,
            strict_transitions=strict_transitions,
            max_notes_length=max_notes_length,
            commit_hook=commit_hook,
        )
        engine._restore(state)
        return engine

    @property
    def admin(self) -> str:
        with self._lock:
            return self._admin

    @property
    def version(self) -> int:
        """Number of successful mutations applied so far."""
        with self._lock:
            return self._version

    def is_admin(self, identity: str) -> bool:
        with self._lock:
            return identity == self._admin

    def require_admin(self, caller: str):
        """Raise ForbiddenError unless caller is the current admin."""
        if not self.is_admin(caller):
            logger.warning(f"Rejected admin-only operation from {caller}")
            raise ForbiddenError("Admin access required")

    def add_availability_slot(self, caller: str, start_time: int, end_time: int) -> int:
        """Register a new unbooked slot owned by the caller and return its id."""
        with self._mutation():
            if end_time <= start_time:
                logger.warning(
                    f"Rejected slot from {caller}: end {end_time} is not after start {start_time}"
                )
                raise InvalidRangeError()

            slot_id = self._ids.allocate_slot_id()
            self._slots[(caller, slot_id)] = Slot(
                provider=caller,
                slot_id=slot_id,
                start_time=start_time,
                end_time=end_time,
            )

        logger.info(f"Provider {caller} added slot {slot_id} [{start_time}, {end_time})")
        return slot_id

    def book_consultation(self, caller: str, provider: str, slot_id: int, notes: str = "") -> int:
        """Book the provider's slot for the caller and return the new consultation id."""
        if len(notes) > self.max_notes_length:
            raise ValueError(f"Notes must be {self.max_notes_length} characters or fewer")

        with self._mutation():
            slot = self._slots.get((provider, slot_id))
            if slot is None:
                logger.warning(f"{caller} tried to book missing slot {slot_id} of {provider}")
                raise NotFoundError("Slot not found")

            if slot.is_booked:
                logger.warning(f"{caller} tried to book slot {slot_id} of {provider}, already booked")
                raise AlreadyBookedError()

            consultation_id = self._ids.allocate_consultation_id()
            self._consultations[consultation_id] = Consultation(
                consultation_id=consultation_id,
                slot_id=slot_id,
                provider=provider,
                patient=caller,
                timestamp=slot.start_time,
                duration=slot.end_time - slot.start_time,
                status=ConsultationStatus.SCHEDULED,
                notes=notes,
            )
            slot.is_booked = True

        logger.info(
            f"Patient {caller} booked slot {slot_id} of {provider} as consultation {consultation_id}"
        )
        return consultation_id

    def complete_consultation(self, caller: str, consultation_id: int) -> Consultation:
        """Mark a consultation completed and return the updated record. Only its provider may do this."""
        with self._mutation():
            consultation = self._get_existing(consultation_id)

            if caller != consultation.provider:
                logger.warning(f"{caller} is not the provider of consultation {consultation_id}")
                raise ForbiddenError("Only the provider can complete this consultation")

            self._transition(consultation, ConsultationStatus.COMPLETED)
            updated = consultation.model_copy()

        logger.info(f"Provider {caller} completed consultation {consultation_id}")
        return updated

    def cancel_consultation(self, caller: str, consultation_id: int) -> Consultation:
        """Cancel a consultation and return the updated record. Its provider or its patient may do this.

        The slot it was booked from stays booked.
        """
        with self._mutation():
            consultation = self._get_existing(consultation_id)

            if caller not in (consultation.provider, consultation.patient):
                logger.warning(f"{caller} is not a participant of consultation {consultation_id}")
                raise ForbiddenError("Only the provider or patient can cancel this consultation")

            self._transition(consultation, ConsultationStatus.CANCELLED)
            updated = consultation.model_copy()

        logger.info(f"{caller} cancelled consultation {consultation_id}")
        return updated

    def get_consultation(self, consultation_id: int) -> Optional[Consultation]:
        with self._lock:
            consultation = self._consultations.get(consultation_id)
            return consultation.model_copy() if consultation else None

    def get_provider_availability(self, provider: str, slot_id: int) -> Optional[Slot]:
        with self._lock:
            slot = self._slots.get((provider, slot_id))
            return slot.model_copy() if slot else None

    def transfer_admin(self, caller: str, new_admin: str):
        """Hand the admin role to new_admin. Only the current admin may do this."""
        with self._mutation():
            self.require_admin(caller)
            self._admin = new_admin

        logger.info(f"Admin role transferred from {caller} to {new_admin}")

    def snapshot(self) -> EngineState:
        """Return a consistent copy of the full engine state."""
        with self._lock:
            return EngineState(
                slots=[slot.model_copy() for slot in self._slots.values()],
                consultations=[c.model_copy() for c in self._consultations.values()],
                next_slot_id=self._ids.next_slot_id,
                next_consultation_id=self._ids.next_consultation_id,
                shared_counter=self._ids.shared,
                admin=self._admin,
                version=self._version,
            )

    @contextmanager
    def _mutation(self):
        """Hold the lock for one mutation, then bump the version and run the commit hook.

        Checks raise before anything changes. If the commit hook raises, the
        state captured on entry is put back before the error propagates.
        """
        with self._lock:
            previous = self.snapshot() if self.commit_hook is not None else None
            yield
            self._version += 1

            if self.commit_hook is None:
                return
            try:
                self.commit_hook(self.snapshot())
            except Exception:
                self._restore(previous)
                logger.exception(f"Commit of engine version {previous.version + 1} failed, rolled back")
                raise

    def _restore(self, state: EngineState):
        self._slots = {
            (slot.provider, slot.slot_id): slot.model_copy() for slot in state.slots
        }
        self._consultations = {
            consultation.consultation_id: consultation.model_copy()
            for consultation in state.consultations
        }
        self._ids = IdAllocator(
            shared=state.shared_counter,
            next_slot_id=state.next_slot_id,
            next_consultation_id=state.next_consultation_id,
        )
        self._admin = state.admin
        self._version = state.version

    def _get_existing(self, consultation_id: int) -> Consultation:
        consultation = self._consultations.get(consultation_id)
        if consultation is None:
            logger.warning(f"Consultation {consultation_id} not found")
            raise NotFoundError("Consultation not found")
        return consultation

    def _transition(self, consultation: Consultation, target: ConsultationStatus):
        if self.strict_transitions and target not in ALLOWED_TRANSITIONS[consultation.status]:
            logger.warning(
                f"Rejected transition of consultation {consultation.consultation_id} "
                f"from {consultation.status.value} to {target.value}"
            )
            raise InvalidTransitionError(
                f"Cannot move a {consultation.status.value} consultation to {target.value}"
            )

        consultation.status = target
