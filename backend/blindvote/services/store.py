"""
Election entity store
Typed accessors over one SQLAlchemy session
"""

from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from blindvote.models import (
    SINGLETON_ID, Ballot, BallotKeyPair, BlindedSignature, Candidate,
    ElectionPhase, ElectionState, PhaseEvent, Voter, VoterCount,
)


class ElectionStore:
    """
    Read/write access to every election entity

    The store never commits. The caller owns the transaction, which keeps
    each election call all-or-nothing.
    """

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Election state
    # ------------------------------------------------------------------

    def get_state(self) -> Optional[ElectionState]:
        return self.db.get(ElectionState, SINGLETON_ID)

    def put_state(self, state: ElectionState) -> ElectionState:
        state.id = SINGLETON_ID
        self.db.add(state)
        self.db.flush()
        return state

    def get_phase(self) -> Optional[ElectionPhase]:
        state = self.get_state()
        return state.phase if state else None

    def get_central_authority(self) -> Optional[str]:
        state = self.get_state()
        return state.central_authority if state else None

    def get_candidate_count(self) -> Optional[int]:
        state = self.get_state()
        return state.candidate_count if state else None

    # ------------------------------------------------------------------
    # Ballot key
    # ------------------------------------------------------------------

    def get_ballot_key(self) -> Optional[BallotKeyPair]:
        return self.db.get(BallotKeyPair, SINGLETON_ID)

    def put_ballot_key(self, public_key: bytes, private_key: bytes = b"") -> BallotKeyPair:
        key_pair = self.get_ballot_key()
        if key_pair is None:
            key_pair = BallotKeyPair(id=SINGLETON_ID, public_key=public_key, private_key=private_key)
            self.db.add(key_pair)
        else:
            key_pair.public_key = public_key
            key_pair.private_key = private_key
        self.db.flush()
        return key_pair

    # ------------------------------------------------------------------
    # Candidates
    # ------------------------------------------------------------------

    def get_candidate(self, candidate_id: str) -> Optional[Candidate]:
        return self.db.get(Candidate, candidate_id)

    def upsert_candidate(
        self, candidate_id: str, name: str, public_key: bytes, is_genesis: bool = False
    ) -> Candidate:
        """Create or overwrite a candidate; genesis membership is fixed at creation"""
        candidate = self.get_candidate(candidate_id)
        if candidate is None:
            candidate = Candidate(id=candidate_id, name=name, public_key=public_key, is_genesis=is_genesis)
            self.db.add(candidate)
        else:
            candidate.name = name
            candidate.public_key = public_key
        self.db.flush()
        return candidate

    def list_candidates(self) -> List[Candidate]:
        return list(self.db.scalars(select(Candidate).order_by(Candidate.id)))

    # ------------------------------------------------------------------
    # Voters
    # ------------------------------------------------------------------

    def get_voter(self, voter_id: int) -> Optional[Voter]:
        return self.db.get(Voter, voter_id)

    def get_voter_count(self) -> int:
        record = self.db.get(VoterCount, SINGLETON_ID)
        return record.count if record else 0

    def set_voter_count(self, count: int) -> None:
        record = self.db.get(VoterCount, SINGLETON_ID)
        if record is None:
            self.db.add(VoterCount(id=SINGLETON_ID, count=count))
        else:
            record.count = count
        self.db.flush()

    def insert_voter(self, voter: Voter) -> Voter:
        self.db.add(voter)
        self.db.flush()
        return voter

    # ------------------------------------------------------------------
    # Blinded signatures
    # ------------------------------------------------------------------

    def get_blinded_signature(self, voter_id: int, candidate_id: str) -> Optional[BlindedSignature]:
        return self.db.get(BlindedSignature, (voter_id, candidate_id))

    def upsert_blinded_signature(self, voter_id: int, candidate_id: str, signature: bytes) -> BlindedSignature:
        record = self.get_blinded_signature(voter_id, candidate_id)
        if record is None:
            record = BlindedSignature(voter_id=voter_id, candidate_id=candidate_id, signature=signature)
            self.db.add(record)
        else:
            record.signature = signature
        self.db.flush()
        return record

    def signatures_for_voter(self, voter_id: int) -> List[BlindedSignature]:
        return list(self.db.scalars(
            select(BlindedSignature)
            .where(BlindedSignature.voter_id == voter_id)
            .order_by(BlindedSignature.candidate_id)
        ))

    def signature_counts_by_voter(self) -> Dict[int, int]:
        """Genesis-candidate signatures per voter id (voters without any are absent)"""
        rows = self.db.execute(
            select(BlindedSignature.voter_id, func.count())
            .join(Candidate, Candidate.id == BlindedSignature.candidate_id)
            .where(Candidate.is_genesis.is_(True))
            .group_by(BlindedSignature.voter_id)
        )
        return {voter_id: count for voter_id, count in rows}

    # ------------------------------------------------------------------
    # Ballots
    # ------------------------------------------------------------------

    def get_ballot(self, voter: str) -> Optional[Ballot]:
        return self.db.get(Ballot, voter)

    def put_ballot(self, ballot: Ballot) -> Ballot:
        self.db.add(ballot)
        self.db.flush()
        return ballot

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def append_phase_event(self, phase: ElectionPhase, when: int) -> PhaseEvent:
        event = PhaseEvent(phase=phase, when=when)
        self.db.add(event)
        self.db.flush()
        return event

    def list_phase_events(self) -> List[PhaseEvent]:
        return list(self.db.scalars(select(PhaseEvent).order_by(PhaseEvent.id)))
