"""
Blindvote Database Models
Election state, participants, blind signatures, ballots and the phase event log
"""

from sqlalchemy import (
    Column, Integer, String, Boolean, LargeBinary, BigInteger,
    ForeignKey, Index, Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
import enum

from blindvote.database import Base


# Singleton tables hold exactly one row with this primary key
SINGLETON_ID = 1


# ============================================================================
# Enumerations
# ============================================================================

class ElectionPhase(str, enum.Enum):
    """Election phases in their fixed order"""
    NONE = "none"
    INITIALIZATION = "initialization"
    REGISTRATION = "registration"
    BIASED_SIGNER = "biased_signer"
    VOTING = "voting"
    COUNTING = "counting"
    COMPLETED = "completed"


# ============================================================================
# Table 1: Election state (singleton)
# ============================================================================

class ElectionState(Base):
    """
    Current phase, central authority and number of genesis candidates

    Written once by the genesis build and then mutated in place by
    phase changes.
    """
    __tablename__ = "election_state"

    id = Column(Integer, primary_key=True, default=SINGLETON_ID)
    phase = Column(SQLEnum(ElectionPhase), nullable=False, default=ElectionPhase.NONE)
    central_authority = Column(String(128), nullable=True)
    candidate_count = Column(BigInteger, nullable=True)

    def __repr__(self):
        return f"<ElectionState(phase='{self.phase}', ca='{self.central_authority}', candidates={self.candidate_count})>"


# ============================================================================
# Table 2: Ballot key pair (singleton)
# ============================================================================

class BallotKeyPair(Base):
    """
    Key used to seal ballots

    The private half stays empty until the CA reveals it in Counting.
    """
    __tablename__ = "ballot_key"

    id = Column(Integer, primary_key=True, default=SINGLETON_ID)
    public_key = Column(LargeBinary, nullable=False)
    private_key = Column(LargeBinary, nullable=False, default=b"")

    def __repr__(self):
        return f"<BallotKeyPair(public={len(self.public_key or b'')}B, revealed={bool(self.private_key)})>"


# ============================================================================
# Table 3: Candidates
# ============================================================================

class Candidate(Base):
    """
    Candidate identity with display name and RSA public key (DER)

    Only genesis candidates take part in signing coverage and ballots.
    """
    __tablename__ = "candidates"

    id = Column(String(128), primary_key=True)
    name = Column(String(256), nullable=False)
    public_key = Column(LargeBinary, nullable=False, default=b"")
    is_genesis = Column(Boolean, nullable=False, default=False)

    blinded_signatures = relationship("BlindedSignature", back_populates="candidate")

    def __repr__(self):
        return f"<Candidate(id='{self.id}', name='{self.name}')>"


# ============================================================================
# Table 4: Voters
# ============================================================================

class Voter(Base):
    """
    Registered voter

    Ids are assigned sequentially from 1 by the registration handler;
    the CA only ever sees the blinded public key.
    """
    __tablename__ = "voters"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    blinded_pubkey = Column(LargeBinary, nullable=False)
    is_eligible = Column(Boolean, nullable=False, default=False)
    signed_blinded_pubkey = Column(LargeBinary, nullable=False)
    personal_data_hash = Column(LargeBinary, nullable=False)

    blinded_signatures = relationship("BlindedSignature", back_populates="voter")

    def __repr__(self):
        return f"<Voter(id={self.id}, eligible={self.is_eligible})>"


class VoterCount(Base):
    """Number of registered voters, source of the next voter id"""
    __tablename__ = "voter_count"

    id = Column(Integer, primary_key=True, default=SINGLETON_ID)
    count = Column(BigInteger, nullable=False, default=0)


# ============================================================================
# Table 5: Blinded signatures
# ============================================================================

class BlindedSignature(Base):
    """
    A candidate's blind signature over a voter's blinded public key

    Presence of a row means the candidate vouched for that voter.
    """
    __tablename__ = "blinded_signatures"

    voter_id = Column(ForeignKey("voters.id"), primary_key=True)
    candidate_id = Column(ForeignKey("candidates.id"), primary_key=True)
    signature = Column(LargeBinary, nullable=False)

    voter = relationship("Voter", back_populates="blinded_signatures")
    candidate = relationship("Candidate", back_populates="blinded_signatures")

    __table_args__ = (
        Index("idx_blinded_signature_voter", "voter_id"),
    )

    def __repr__(self):
        return f"<BlindedSignature(voter_id={self.voter_id}, candidate_id='{self.candidate_id}')>"


# ============================================================================
# Table 6: Ballots
# ============================================================================

class Ballot(Base):
    """
    Sealed ballot keyed by the submitting identity

    nonce starts at 1 and grows by one with every accepted re-vote.
    """
    __tablename__ = "ballots"

    voter = Column(String(128), primary_key=True)
    commitment = Column(LargeBinary, nullable=False)
    signature = Column(LargeBinary, nullable=False, default=b"")
    nonce = Column(BigInteger, nullable=False, default=1)

    def __repr__(self):
        return f"<Ballot(voter='{self.voter}', nonce={self.nonce})>"


# ============================================================================
# Table 7: Phase events (append-only)
# ============================================================================

class PhaseEvent(Base):
    """Phase changes with the block number they happened at"""
    __tablename__ = "phase_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    phase = Column(SQLEnum(ElectionPhase), nullable=False)
    when = Column(BigInteger, nullable=False)

    __table_args__ = (
        Index("idx_phase_event_when", "when"),
    )

    def __repr__(self):
        return f"<PhaseEvent(phase='{self.phase}', when={self.when})>"
