"""
Blindvote Election Service
Public call surface of the election; one transaction per call
"""

import logging
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError
from sqlalchemy.orm import sessionmaker

from blindvote.database import build_engine, build_session_factory, init_db, session_scope
from blindvote.errors import ElectionError, InvalidBlindSignatures
from blindvote.models import ElectionPhase
from blindvote.schemas import (
    BallotKeyResponse, BallotResponse, BlindedSignatureResponse, CandidateResponse,
    CandidateSignature, ElectionStateResponse, GenesisConfig, Phase,
    PhaseChangedEvent, VoterResponse,
)
from blindvote.services.ballot_service import BallotService, get_ballot_service
from blindvote.services.crypto_service import CryptoService
from blindvote.services.genesis_service import get_genesis_service
from blindvote.services.key_service import get_key_service
from blindvote.services.phase_service import ensure_phase, get_phase_service
from blindvote.services.registration_service import get_registration_service
from blindvote.services.signing_service import SigningService, get_signing_service
from blindvote.services.store import ElectionStore
from blindvote.utils.security import Origin

logger = logging.getLogger(__name__)

SignatureEntry = Union[CandidateSignature, tuple, Mapping[str, Any]]


class ElectionService:
    """
    Entry point the host calls with an authenticated Origin

    Every mutating call runs inside session_scope(): it commits when the
    handler returns and rolls back when it raises, so a rejected call
    leaves the store untouched.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        block_number: Callable[[], int],
        crypto_service: Optional[CryptoService] = None,
    ):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.session_factory = session_factory
        self.block_number = block_number

        self.genesis_service = get_genesis_service()
        self.phase_service = get_phase_service()
        self.registration_service = get_registration_service()
        self.key_service = get_key_service()
        if crypto_service is None:
            self.signing_service = get_signing_service()
            self.ballot_service = get_ballot_service()
        else:
            self.signing_service = SigningService(crypto_service)
            self.ballot_service = BallotService(crypto_service)

    @classmethod
    def from_url(cls, database_url: str, block_number: Callable[[], int], **kwargs) -> "ElectionService":
        """Build a service over a fresh engine, creating tables if needed"""
        engine = build_engine(database_url)
        init_db(engine)
        return cls(build_session_factory(engine), block_number, **kwargs)

    def _call(self, name: str, handler: Callable[[ElectionStore], Any]) -> Any:
        try:
            with session_scope(self.session_factory) as db:
                return handler(ElectionStore(db))
        except ElectionError as e:
            self.logger.info(f"{name} rejected: {e.error_code}: {e.message}")
            raise

    # ------------------------------------------------------------------
    # Genesis
    # ------------------------------------------------------------------

    def build_genesis(self, config: Union[GenesisConfig, Mapping[str, Any]]) -> ElectionStateResponse:
        """
        Bootstrap the election

        Raises pydantic.ValidationError for fatal configuration problems
        and GenesisAlreadyBuilt when run twice.
        """
        if not isinstance(config, GenesisConfig):
            config = GenesisConfig.model_validate(config)
        return self._call(
            "build_genesis",
            lambda store: ElectionStateResponse.model_validate(self.genesis_service.build(config, store)),
        )

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    def change_phase(self, origin: Origin) -> PhaseChangedEvent:
        block = self.block_number()
        return self._call(
            "change_phase",
            lambda store: PhaseChangedEvent.model_validate(
                self.phase_service.change_phase(origin, block, store)
            ),
        )

    def add_voter(
        self,
        origin: Origin,
        blinded_pubkey: bytes,
        signed_blinded_pubkey: bytes,
        personal_data_hash: bytes,
        is_eligible: bool,
    ) -> VoterResponse:
        return self._call(
            "add_voter",
            lambda store: VoterResponse.model_validate(self.registration_service.add_voter(
                origin, blinded_pubkey, signed_blinded_pubkey, personal_data_hash, is_eligible, store
            )),
        )

    def update_candidate_info(
        self, origin: Origin, candidate_id: str, name: str, public_key: bytes
    ) -> CandidateResponse:
        return self._call(
            "update_candidate_info",
            lambda store: CandidateResponse.model_validate(self.registration_service.update_candidate_info(
                origin, candidate_id, name, public_key, store
            )),
        )

    def biased_signing(
        self, origin: Origin, candidate_id: str, voter_id: int, blinded_signature: bytes
    ) -> BlindedSignatureResponse:
        return self._call(
            "biased_signing",
            lambda store: BlindedSignatureResponse.model_validate(self.signing_service.biased_signing(
                origin, candidate_id, voter_id, blinded_signature, store
            )),
        )

    def vote(
        self,
        origin: Origin,
        commitment: bytes,
        signature_set: Iterable[SignatureEntry],
        signature: bytes = b"",
    ) -> BallotResponse:
        def handler(store: ElectionStore) -> BallotResponse:
            ensure_phase(store, ElectionPhase.VOTING)
            entries = _coerce_signature_set(signature_set)
            return BallotResponse.model_validate(self.ballot_service.vote(
                origin, commitment, entries, store, signature=signature
            ))

        return self._call("vote", handler)

    def change_vote(
        self,
        origin: Origin,
        commitment: bytes,
        signature_set: Iterable[SignatureEntry],
        signature: bytes = b"",
    ) -> BallotResponse:
        def handler(store: ElectionStore) -> BallotResponse:
            ensure_phase(store, ElectionPhase.VOTING)
            entries = _coerce_signature_set(signature_set)
            return BallotResponse.model_validate(self.ballot_service.change_vote(
                origin, commitment, entries, store, signature=signature
            ))

        return self._call("change_vote", handler)

    def reveal_ballot_key(self, origin: Origin, private_key: bytes) -> BallotKeyResponse:
        return self._call(
            "reveal_ballot_key",
            lambda store: BallotKeyResponse.model_validate(
                self.key_service.reveal_ballot_key(origin, private_key, store)
            ),
        )

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def _read(self, handler: Callable[[ElectionStore], Any]) -> Any:
        with session_scope(self.session_factory) as db:
            return handler(ElectionStore(db))

    def state(self) -> Optional[ElectionStateResponse]:
        return self._read(lambda store: _dump(ElectionStateResponse, store.get_state()))

    def phase(self) -> Optional[Phase]:
        return self._read(lambda store: store.get_phase())

    def central_authority(self) -> Optional[str]:
        return self._read(lambda store: store.get_central_authority())

    def candidate_count(self) -> Optional[int]:
        return self._read(lambda store: store.get_candidate_count())

    def voter_count(self) -> int:
        return self._read(lambda store: store.get_voter_count())

    def get_voter(self, voter_id: int) -> Optional[VoterResponse]:
        return self._read(lambda store: _dump(VoterResponse, store.get_voter(voter_id)))

    def get_candidate(self, candidate_id: str) -> Optional[CandidateResponse]:
        return self._read(lambda store: _dump(CandidateResponse, store.get_candidate(candidate_id)))

    def list_candidates(self) -> List[CandidateResponse]:
        return self._read(
            lambda store: [CandidateResponse.model_validate(c) for c in store.list_candidates()]
        )

    def get_ballot(self, voter: str) -> Optional[BallotResponse]:
        return self._read(lambda store: _dump(BallotResponse, store.get_ballot(voter)))

    def get_ballot_key(self) -> Optional[BallotKeyResponse]:
        return self._read(lambda store: _dump(BallotKeyResponse, store.get_ballot_key()))

    def blinded_signatures_for(self, voter_id: int) -> List[BlindedSignatureResponse]:
        return self._read(lambda store: [
            BlindedSignatureResponse.model_validate(s) for s in store.signatures_for_voter(voter_id)
        ])

    def phase_events(self) -> List[PhaseChangedEvent]:
        return self._read(
            lambda store: [PhaseChangedEvent.model_validate(e) for e in store.list_phase_events()]
        )


def _dump(schema, record):
    return schema.model_validate(record) if record is not None else None


def _coerce_signature_set(signature_set: Iterable[SignatureEntry]) -> List[CandidateSignature]:
    """Accept CandidateSignature objects, (candidate_id, blind_signature) pairs or mappings"""
    entries = []
    try:
        for entry in signature_set:
            if isinstance(entry, CandidateSignature):
                entries.append(entry)
            elif isinstance(entry, tuple):
                candidate_id, blind_signature = entry
                entries.append(CandidateSignature(candidate_id=candidate_id, blind_signature=blind_signature))
            else:
                entries.append(CandidateSignature.model_validate(entry))
    except (ValidationError, ValueError, TypeError) as e:
        raise InvalidBlindSignatures(f"malformed signature set: {e}") from e
    return entries
