"""
Blindvote Key Service
Publishes the private half of the ballot key once counting starts
"""

import logging
from typing import Optional

from blindvote.errors import InternalError
from blindvote.models import BallotKeyPair, ElectionPhase
from blindvote.services.phase_service import ensure_central_authority, ensure_phase
from blindvote.services.store import ElectionStore
from blindvote.utils.security import Origin

logger = logging.getLogger(__name__)


class KeyService:
    """Service for the ballot key reveal"""

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def reveal_ballot_key(self, origin: Origin, private_key: bytes, store: ElectionStore) -> BallotKeyPair:
        """
        Store the ballot private key as supplied by the CA

        The key is not checked against the stored public key.
        """
        ensure_central_authority(store, origin)
        ensure_phase(store, ElectionPhase.COUNTING)

        key_pair = store.get_ballot_key()
        if key_pair is None:
            self.logger.error("Ballot key pair missing during reveal")
            raise InternalError("ballot key pair is missing")

        key_pair.private_key = bytes(private_key)
        store.db.flush()

        self.logger.info("Ballot private key revealed")
        return key_pair


# Global key service instance
_key_service: Optional[KeyService] = None


def get_key_service() -> KeyService:
    """Get global key service instance"""
    global _key_service
    if _key_service is None:
        _key_service = KeyService()
    return _key_service
