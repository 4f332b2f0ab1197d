"""
Blindvote Ballot Service
Handles ballot submission, verification, and re-voting
"""

import logging
from typing import Optional, Sequence

from blindvote.errors import (
    BallotDoesNotExist, InvalidBlindSignatures, InvalidPublicKey, MissingCandidateCount,
)
from blindvote.models import Ballot
from blindvote.schemas import CandidateSignature
from blindvote.services.crypto_service import CryptoService, get_crypto_service
from blindvote.services.store import ElectionStore
from blindvote.utils.security import Origin, encode_identity

logger = logging.getLogger(__name__)


class BallotService:
    """Service for casting ballots"""

    def __init__(self, crypto_service: Optional[CryptoService] = None):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.crypto_service = crypto_service or get_crypto_service()

    def vote(
        self,
        origin: Origin,
        commitment: bytes,
        signature_set: Sequence[CandidateSignature],
        store: ElectionStore,
        signature: bytes = b"",
    ) -> Ballot:
        """
        Cast or replace the caller's ballot

        Ballot pipeline:
        1. Exactly one signature per genesis candidate, no candidate twice
        2. Every signature verifies over the caller's identity
        3. Store commitment, bumping the nonce on re-votes

        The caller must already have checked that the election is in Voting.

        Nothing is written unless every signature verifies. The blind
        signatures themselves are not stored.

        Args:
            origin: Authenticated caller; its identity is the signed message
            commitment: Sealed ballot
            signature_set: (candidate, blind signature) pairs
            store: Entity store bound to the call's transaction
            signature: Opaque voter signature stored next to the commitment

        Returns:
            The stored ballot
        """
        message = encode_identity(origin.identity)
        self._verify_signature_set(message, signature_set, store)

        ballot = store.get_ballot(origin.identity)
        if ballot is None:
            ballot = Ballot(
                voter=origin.identity,
                commitment=bytes(commitment),
                signature=bytes(signature),
                nonce=1,
            )
        else:
            ballot.commitment = bytes(commitment)
            ballot.signature = bytes(signature)
            ballot.nonce += 1
        store.put_ballot(ballot)

        self.logger.info(f"Ballot accepted (nonce={ballot.nonce})")
        return ballot

    def change_vote(
        self,
        origin: Origin,
        commitment: bytes,
        signature_set: Sequence[CandidateSignature],
        store: ElectionStore,
        signature: bytes = b"",
    ) -> Ballot:
        """Replace an existing ballot; fails if the caller has not voted yet"""
        if store.get_ballot(origin.identity) is None:
            raise BallotDoesNotExist()
        return self.vote(origin, commitment, signature_set, store, signature=signature)

    def _verify_signature_set(
        self,
        message: bytes,
        signature_set: Sequence[CandidateSignature],
        store: ElectionStore,
    ) -> None:
        candidate_count = store.get_candidate_count()
        if candidate_count is None:
            raise MissingCandidateCount()

        if len(signature_set) != candidate_count:
            self.logger.warning(
                f"Ballot rejected: {len(signature_set)} signatures for {candidate_count} candidates"
            )
            raise InvalidBlindSignatures(
                f"expected {candidate_count} signatures, got {len(signature_set)}"
            )

        # Descending order; equal neighbours mean a candidate appears twice
        ordered = sorted(signature_set, key=lambda entry: entry.candidate_id, reverse=True)
        for previous, current in zip(ordered, ordered[1:]):
            if not previous.candidate_id > current.candidate_id:
                self.logger.warning(f"Ballot rejected: duplicate candidate {current.candidate_id}")
                raise InvalidBlindSignatures(f"candidate {current.candidate_id} appears more than once")

        for entry in ordered:
            candidate = store.get_candidate(entry.candidate_id)
            if candidate is None or not candidate.is_genesis:
                self.logger.warning(f"Ballot rejected: {entry.candidate_id} is not a genesis candidate")
                raise InvalidBlindSignatures(f"unknown candidate {entry.candidate_id}")
            try:
                public_key = self.crypto_service.load_public_key(candidate.public_key)
            except InvalidPublicKey as e:
                raise InvalidBlindSignatures(
                    f"candidate {entry.candidate_id} has no usable public key"
                ) from e

            result = self.crypto_service.verify_blind_signature(
                entry.blind_signature.signature,
                entry.blind_signature.message_randomizer,
                message,
                public_key,
            )
            if not result.is_valid:
                self.logger.warning(f"Ballot rejected: bad signature from candidate {entry.candidate_id}")
                raise InvalidBlindSignatures(
                    f"signature from candidate {entry.candidate_id} does not verify: {result.error}"
                )


# Global ballot service instance
_ballot_service: Optional[BallotService] = None


def get_ballot_service() -> BallotService:
    """Get global ballot service instance"""
    global _ballot_service
    if _ballot_service is None:
        _ballot_service = BallotService()
    return _ballot_service
