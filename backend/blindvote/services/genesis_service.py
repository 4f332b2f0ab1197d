"""
Blindvote Genesis Service
Builds the initial election state on first deployment
"""

import logging
from typing import Optional

from blindvote.config import settings
from blindvote.errors import GenesisAlreadyBuilt
from blindvote.models import ElectionPhase, ElectionState
from blindvote.schemas import GenesisConfig
from blindvote.services.store import ElectionStore

logger = logging.getLogger(__name__)


class GenesisService:
    """Service for the one-time genesis build"""

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def build(self, config: GenesisConfig, store: ElectionStore) -> ElectionState:
        """
        Write the genesis state

        Sets the phase to Initialization, records the CA and candidate
        count, stores the ballot public key with an empty private half,
        seeds candidates with the placeholder name, and starts the voter
        count at zero. Config validation (empty key, too few or repeated
        candidates) happens when the GenesisConfig is constructed.

        Raises:
            GenesisAlreadyBuilt: election state already exists
        """
        if store.get_state() is not None:
            raise GenesisAlreadyBuilt()

        state = store.put_state(ElectionState(
            phase=ElectionPhase.INITIALIZATION,
            central_authority=config.central_authority,
            candidate_count=len(config.candidates),
        ))
        store.put_ballot_key(config.ballot_public_key)
        store.set_voter_count(0)

        for candidate in config.candidates:
            store.upsert_candidate(
                candidate.id, settings.CANDIDATE_PLACEHOLDER_NAME, candidate.public_key, is_genesis=True
            )

        self.logger.info(
            f"Genesis built: ca={config.central_authority}, "
            f"candidates={len(config.candidates)}"
        )
        return state


# Global genesis service instance
_genesis_service: Optional[GenesisService] = None


def get_genesis_service() -> GenesisService:
    """Get global genesis service instance"""
    global _genesis_service
    if _genesis_service is None:
        _genesis_service = GenesisService()
    return _genesis_service
