"""
Pydantic schemas for election calls and read accessors
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime

from blindvote.config import settings
from blindvote.models import ElectionPhase

# Re-exported so callers do not need the ORM module for the enum
Phase = ElectionPhase


# Base schemas
class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Genesis schemas
class GenesisCandidate(BaseModel):
    id: str = Field(..., min_length=1, max_length=128)
    public_key: bytes = b""


class GenesisConfig(BaseModel):
    """
    First-deployment configuration

    Candidates may be given as bare identities or as
    {"id": ..., "public_key": ...} mappings.
    """
    central_authority: str = Field(..., min_length=1, max_length=128)
    candidates: List[GenesisCandidate]
    ballot_public_key: bytes

    @field_validator("candidates", mode="before")
    @classmethod
    def coerce_candidates(cls, value):
        if not isinstance(value, (list, tuple)):
            return value
        return [{"id": c} if isinstance(c, str) else c for c in value]

    @field_validator("candidates")
    @classmethod
    def check_candidates(cls, value: List[GenesisCandidate]) -> List[GenesisCandidate]:
        if len(value) < settings.MIN_CANDIDATES:
            raise ValueError(f"at least {settings.MIN_CANDIDATES} candidates are required")
        ids = [c.id for c in value]
        if len(set(ids)) != len(ids):
            raise ValueError("candidate ids must be unique")
        return value

    @field_validator("ballot_public_key")
    @classmethod
    def check_ballot_key(cls, value: bytes) -> bytes:
        if not value:
            raise ValueError("ballot public key must not be empty")
        return value


# Ballot signature schemas
class BlindSignature(BaseModel):
    """An unblinded candidate signature plus the randomizer it was made with"""
    signature: bytes = Field(..., min_length=1)
    message_randomizer: bytes

    @field_validator("message_randomizer")
    @classmethod
    def check_randomizer(cls, value: bytes) -> bytes:
        if len(value) != settings.MESSAGE_RANDOMIZER_LENGTH:
            raise ValueError(
                f"message randomizer must be {settings.MESSAGE_RANDOMIZER_LENGTH} bytes"
            )
        return value


class CandidateSignature(BaseModel):
    candidate_id: str = Field(..., min_length=1)
    blind_signature: BlindSignature


# Read models
class ElectionStateResponse(BaseSchema):
    phase: Phase
    central_authority: Optional[str]
    candidate_count: Optional[int]


class CandidateResponse(BaseSchema):
    id: str
    name: str
    public_key: bytes
    is_genesis: bool


class VoterResponse(BaseSchema):
    id: int
    blinded_pubkey: bytes
    is_eligible: bool
    signed_blinded_pubkey: bytes
    personal_data_hash: bytes


class BlindedSignatureResponse(BaseSchema):
    voter_id: int
    candidate_id: str
    signature: bytes


class BallotResponse(BaseSchema):
    voter: str
    commitment: bytes
    signature: bytes
    nonce: int


class BallotKeyResponse(BaseSchema):
    public_key: bytes
    private_key: bytes

    @property
    def revealed(self) -> bool:
        return bool(self.private_key)


class PhaseChangedEvent(BaseSchema):
    phase: Phase
    when: int


# Error schemas
class ErrorResponse(BaseModel):
    detail: str
    error_code: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)
