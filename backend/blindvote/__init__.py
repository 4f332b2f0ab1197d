"""
Blindvote - anonymous elections with RSA blind signatures
"""

from blindvote.schemas import GenesisConfig, Phase, BlindSignature, CandidateSignature
from blindvote.services.election_service import ElectionService
from blindvote.utils.security import Origin

__version__ = "1.0.0"

__all__ = [
    "BlindSignature",
    "CandidateSignature",
    "ElectionService",
    "GenesisConfig",
    "Origin",
    "Phase",
]
