"""
Blindvote Phase Service
Election phase state machine and the central-authority check
"""

import logging
from typing import List, Optional

from blindvote.errors import InternalError, InvalidPhase, InvalidPhaseChange, SenderNotCA
from blindvote.models import ElectionPhase, ElectionState, PhaseEvent
from blindvote.services.store import ElectionStore
from blindvote.utils.security import Origin

logger = logging.getLogger(__name__)


PHASE_ORDER: List[ElectionPhase] = [
    ElectionPhase.NONE,
    ElectionPhase.INITIALIZATION,
    ElectionPhase.REGISTRATION,
    ElectionPhase.BIASED_SIGNER,
    ElectionPhase.VOTING,
    ElectionPhase.COUNTING,
    ElectionPhase.COMPLETED,
]


def next_phase(phase: ElectionPhase) -> ElectionPhase:
    """Phase that follows `phase`; Completed is terminal"""
    index = PHASE_ORDER.index(phase)
    return PHASE_ORDER[min(index + 1, len(PHASE_ORDER) - 1)]


def ensure_central_authority(store: ElectionStore, origin: Origin) -> ElectionState:
    """
    Check that the caller is the configured CA

    Raises:
        InternalError: no election state or no CA recorded
        SenderNotCA: caller is someone else
    """
    state = store.get_state()
    if state is None or not state.central_authority:
        logger.error("Central authority is not configured")
        raise InternalError("central authority is not configured")
    if not origin.is_identity(state.central_authority):
        logger.warning(f"Rejected CA-only call from {origin.identity}")
        raise SenderNotCA()
    return state


def ensure_phase(store: ElectionStore, expected: ElectionPhase) -> None:
    """Raise InvalidPhase unless the election is currently in `expected`"""
    current = store.get_phase()
    if current != expected:
        raise InvalidPhase(
            f"expected phase {expected.value}, election is in "
            f"{current.value if current else 'no phase'}"
        )


class PhaseService:
    """Advances the election phase"""

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def change_phase(self, origin: Origin, block_number: int, store: ElectionStore) -> PhaseEvent:
        """
        Move the election to the next phase

        Leaving BiasedSigner requires every registered voter to hold one
        blinded signature per candidate.

        Args:
            origin: Authenticated caller, must be the CA
            block_number: Current block height, recorded on the event
            store: Entity store bound to the call's transaction

        Returns:
            The appended phase event
        """
        state = ensure_central_authority(store, origin)
        current = state.phase

        if current == ElectionPhase.BIASED_SIGNER:
            self._check_signature_coverage(store, state.candidate_count)

        state.phase = next_phase(current)
        event = store.append_phase_event(state.phase, block_number)

        self.logger.info(
            f"Phase changed: {current.value} -> {state.phase.value} at block {block_number}"
        )
        return event

    def _check_signature_coverage(self, store: ElectionStore, candidate_count: Optional[int]) -> None:
        counts = store.signature_counts_by_voter()
        voter_count = store.get_voter_count()

        # Ascending scan so the reported voter is deterministic
        for voter_id in range(1, voter_count + 1):
            signed = counts.get(voter_id, 0)
            if signed != candidate_count:
                self.logger.warning(
                    f"Cannot leave biased_signer: voter {voter_id} has "
                    f"{signed}/{candidate_count} blind signatures"
                )
                raise InvalidPhaseChange(
                    f"voter {voter_id} has {signed} of {candidate_count} blind signatures"
                )


# Global phase service instance
_phase_service: Optional[PhaseService] = None


def get_phase_service() -> PhaseService:
    """Get global phase service instance"""
    global _phase_service
    if _phase_service is None:
        _phase_service = PhaseService()
    return _phase_service
