"""
Blindvote Registration Service
CA voter registration and candidate self-service updates
"""

import logging
from typing import Optional

from blindvote.config import settings
from blindvote.errors import BadSender, InvalidCandidateInfo
from blindvote.models import Candidate, ElectionPhase, Voter
from blindvote.services.phase_service import ensure_central_authority, ensure_phase
from blindvote.services.store import ElectionStore
from blindvote.utils.security import Origin

logger = logging.getLogger(__name__)


class RegistrationService:
    """Service for registering voters and maintaining candidate info"""

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def add_voter(
        self,
        origin: Origin,
        blinded_pubkey: bytes,
        signed_blinded_pubkey: bytes,
        personal_data_hash: bytes,
        is_eligible: bool,
        store: ElectionStore,
    ) -> Voter:
        """
        Register a voter under the next sequential id

        Only the CA may register voters, and only during Registration.
        Duplicate blinded keys are not detected.

        Returns:
            The stored voter
        """
        ensure_central_authority(store, origin)
        ensure_phase(store, ElectionPhase.REGISTRATION)

        voter_id = store.get_voter_count() + 1
        voter = store.insert_voter(Voter(
            id=voter_id,
            blinded_pubkey=bytes(blinded_pubkey),
            is_eligible=bool(is_eligible),
            signed_blinded_pubkey=bytes(signed_blinded_pubkey),
            personal_data_hash=bytes(personal_data_hash),
        ))
        store.set_voter_count(voter_id)

        self.logger.info(f"Registered voter {voter_id} (eligible={voter.is_eligible})")
        return voter

    def update_candidate_info(
        self,
        origin: Origin,
        candidate_id: str,
        name: str,
        public_key: bytes,
        store: ElectionStore,
    ) -> Candidate:
        """
        Overwrite a candidate's name and RSA public key (any phase)

        An identity missing from genesis may create its own row, but it is
        never a genesis candidate and so never counts toward signing
        coverage or ballots.
        """
        if not origin.is_identity(candidate_id):
            self.logger.warning(f"{origin.identity} tried to update candidate {candidate_id}")
            raise BadSender()
        if len(name) > settings.MAX_CANDIDATE_NAME_LENGTH:
            raise InvalidCandidateInfo(
                f"name exceeds {settings.MAX_CANDIDATE_NAME_LENGTH} characters"
            )

        candidate = store.upsert_candidate(candidate_id, name, bytes(public_key))
        self.logger.info(f"Candidate {candidate_id} updated info")
        return candidate


# Global registration service instance
_registration_service: Optional[RegistrationService] = None


def get_registration_service() -> RegistrationService:
    """Get global registration service instance"""
    global _registration_service
    if _registration_service is None:
        _registration_service = RegistrationService()
    return _registration_service
