"""
Shared fixtures: in-memory database, block clock, candidate RSA keys
"""

import os

import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from blindvote.database import build_session_factory, drop_all_tables, init_db
from blindvote.models import ElectionPhase
from blindvote.schemas import BlindSignature, CandidateSignature
from blindvote.services.election_service import ElectionService
from blindvote.utils.security import Origin, encode_identity

CA = "ca-alice"
CANDIDATE_IDS = ["candidate-1", "candidate-2", "candidate-3"]
BALLOT_PUBLIC_KEY = bytes([1, 2, 3])


class BlockClock:
    """Stand-in for the host's block height"""

    def __init__(self, number: int = 1):
        self.number = number

    def __call__(self) -> int:
        return self.number


def der_public_key(private_key: rsa.RSAPrivateKey) -> bytes:
    return private_key.public_key().public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def pss_sign(private_key: rsa.RSAPrivateKey, message: bytes, randomizer: bytes = b"") -> bytes:
    """Finalized blind signature: PSS-SHA384 over randomizer || message"""
    return private_key.sign(
        randomizer + message,
        padding.PSS(mgf=padding.MGF1(hashes.SHA384()), salt_length=48),
        hashes.SHA384(),
    )


@pytest.fixture(scope="session")
def candidate_keys():
    """One RSA key per candidate, plus a spare key nobody registered"""
    keys = {
        candidate_id: rsa.generate_private_key(public_exponent=65537, key_size=2048)
        for candidate_id in CANDIDATE_IDS
    }
    keys["outsider"] = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return keys


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    drop_all_tables(engine)
    engine.dispose()


@pytest.fixture
def clock():
    return BlockClock()


@pytest.fixture
def service(engine, clock):
    return ElectionService(build_session_factory(engine), clock)


@pytest.fixture
def ca():
    return Origin(CA)


@pytest.fixture
def genesis(service):
    """Genesis with three candidates that have not published keys yet"""
    return service.build_genesis({
        "central_authority": CA,
        "candidates": CANDIDATE_IDS,
        "ballot_public_key": BALLOT_PUBLIC_KEY,
    })


@pytest.fixture
def election(service, genesis, candidate_keys):
    """Genesis plus every candidate's published RSA key"""
    for index, candidate_id in enumerate(CANDIDATE_IDS, start=1):
        service.update_candidate_info(
            Origin(candidate_id),
            candidate_id,
            f"Candidate {index}",
            der_public_key(candidate_keys[candidate_id]),
        )
    return service


@pytest.fixture
def outsider(service, candidate_keys):
    """Identity that publishes a key after genesis without being listed"""
    origin = Origin("outsider")
    service.update_candidate_info(origin, "outsider", "Outsider", der_public_key(candidate_keys["outsider"]))
    return origin


@pytest.fixture
def advance_to(service, ca):
    """Call change_phase until the election reaches `phase`"""
    def advance(phase: ElectionPhase):
        while service.phase() != phase:
            service.change_phase(ca)
    return advance


@pytest.fixture
def register_voter(service, ca):
    def register(blinded_pubkey: bytes = None, is_eligible: bool = True):
        blinded_pubkey = blinded_pubkey or os.urandom(32)
        return service.add_voter(ca, blinded_pubkey, b"signed:" + blinded_pubkey, b"pdh", is_eligible)
    return register


@pytest.fixture
def sign_voter(service, candidate_keys):
    """Have the given candidates blind-sign a voter's blinded key"""
    def sign(voter_id: int, candidate_ids=CANDIDATE_IDS):
        voter = service.get_voter(voter_id)
        for candidate_id in candidate_ids:
            signature = pss_sign(candidate_keys[candidate_id], voter.blinded_pubkey)
            service.biased_signing(Origin(candidate_id), candidate_id, voter_id, signature)
    return sign


@pytest.fixture
def ballot_signatures(candidate_keys):
    """Full signature set over a voter identity, one entry per candidate"""
    def build(identity: str, candidate_ids=CANDIDATE_IDS):
        entries = []
        for candidate_id in candidate_ids:
            randomizer = os.urandom(32)
            entries.append(CandidateSignature(
                candidate_id=candidate_id,
                blind_signature=BlindSignature(
                    signature=pss_sign(candidate_keys[candidate_id], encode_identity(identity), randomizer),
                    message_randomizer=randomizer,
                ),
            ))
        return entries
    return build
