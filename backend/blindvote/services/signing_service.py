"""
Blindvote Signing Service
Records candidate blind signatures over voters' blinded public keys
"""

import logging
from typing import Optional

from blindvote.config import settings
from blindvote.errors import (
    BadSender, RSAInvalidSignature, RSAStorageNotFound, SignatureTooLong, VoterDoesNotExist,
)
from blindvote.models import BlindedSignature
from blindvote.services.crypto_service import CryptoService, get_crypto_service
from blindvote.services.store import ElectionStore
from blindvote.utils.security import Origin

logger = logging.getLogger(__name__)


class SigningService:
    """Service for the BiasedSigner step"""

    def __init__(self, crypto_service: Optional[CryptoService] = None):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.crypto_service = crypto_service or get_crypto_service()

    def biased_signing(
        self,
        origin: Origin,
        candidate_id: str,
        voter_id: int,
        blinded_signature: bytes,
        store: ElectionStore,
    ) -> BlindedSignature:
        """
        Store a candidate's blind signature for a voter

        The signature must verify, without a message randomizer, over the
        voter's blinded public key under the candidate's stored RSA key.
        Signing the same voter again overwrites the previous signature.

        Args:
            origin: Authenticated caller, must be the candidate
            candidate_id: Signing candidate
            voter_id: Voter being vouched for
            blinded_signature: Signature bytes
            store: Entity store bound to the call's transaction

        Returns:
            The stored BlindedSignature row
        """
        if not origin.is_identity(candidate_id):
            self.logger.warning(f"{origin.identity} tried to sign as candidate {candidate_id}")
            raise BadSender()

        voter = store.get_voter(voter_id)
        if voter is None:
            raise VoterDoesNotExist(f"voter {voter_id} does not exist")

        candidate = store.get_candidate(candidate_id)
        if candidate is None:
            raise RSAStorageNotFound(f"no public key stored for candidate {candidate_id}")
        public_key = self.crypto_service.load_public_key(candidate.public_key)

        if len(blinded_signature) > settings.MAX_SIGNATURE_LENGTH:
            raise SignatureTooLong(
                f"signature is {len(blinded_signature)} bytes, "
                f"limit is {settings.MAX_SIGNATURE_LENGTH}"
            )

        result = self.crypto_service.verify_blind_signature(
            blinded_signature, None, voter.blinded_pubkey, public_key
        )
        if not result.is_valid:
            self.logger.warning(
                f"Blind signature from candidate {candidate_id} for voter {voter_id} rejected: {result.error}"
            )
            raise RSAInvalidSignature(f"blind signature does not verify: {result.error}")

        record = store.upsert_blinded_signature(voter_id, candidate_id, bytes(blinded_signature))
        self.logger.info(f"Candidate {candidate_id} signed voter {voter_id}")
        return record


# Global signing service instance
_signing_service: Optional[SigningService] = None


def get_signing_service() -> SigningService:
    """Get global signing service instance"""
    global _signing_service
    if _signing_service is None:
        _signing_service = SigningService()
    return _signing_service
