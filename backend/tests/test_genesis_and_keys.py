"""
Tests for the genesis build and the ballot key reveal
"""

import pytest
from pydantic import ValidationError

from blindvote.errors import GenesisAlreadyBuilt, InternalError, InvalidPhase, SenderNotCA
from blindvote.models import ElectionPhase
from blindvote.schemas import GenesisConfig
from blindvote.utils.security import Origin

from conftest import BALLOT_PUBLIC_KEY, CA, CANDIDATE_IDS, der_public_key


class TestGenesis:
    """Genesis bootstrap"""

    def test_builds_initial_state(self, service, genesis):
        assert genesis.phase == ElectionPhase.INITIALIZATION
        assert genesis.central_authority == CA
        assert genesis.candidate_count == len(CANDIDATE_IDS)
        assert service.voter_count() == 0

        key = service.get_ballot_key()
        assert key.public_key == BALLOT_PUBLIC_KEY
        assert key.private_key == b""
        assert not key.revealed

    def test_second_build_is_rejected(self, service, genesis):
        with pytest.raises(GenesisAlreadyBuilt):
            service.build_genesis({
                "central_authority": "someone-else",
                "candidates": ["x", "y"],
                "ballot_public_key": b"k",
            })
        assert service.central_authority() == CA

    def test_empty_ballot_key_is_fatal(self):
        with pytest.raises(ValidationError):
            GenesisConfig(central_authority=CA, candidates=CANDIDATE_IDS, ballot_public_key=b"")

    def test_single_candidate_is_fatal(self):
        with pytest.raises(ValidationError):
            GenesisConfig(central_authority=CA, candidates=["only"], ballot_public_key=b"k")

    def test_duplicate_candidates_are_fatal(self):
        with pytest.raises(ValidationError):
            GenesisConfig(central_authority=CA, candidates=["a", "a"], ballot_public_key=b"k")

    def test_candidates_may_carry_initial_keys(self, service, candidate_keys):
        key = der_public_key(candidate_keys[CANDIDATE_IDS[0]])
        service.build_genesis({
            "central_authority": CA,
            "candidates": [{"id": CANDIDATE_IDS[0], "public_key": key}, CANDIDATE_IDS[1]],
            "ballot_public_key": b"k",
        })

        assert service.get_candidate(CANDIDATE_IDS[0]).public_key == key
        assert service.get_candidate(CANDIDATE_IDS[1]).public_key == b""
        assert service.get_candidate(CANDIDATE_IDS[1]).name == "candidate"

    def test_reads_before_genesis(self, service):
        assert service.state() is None
        assert service.phase() is None
        assert service.central_authority() is None
        assert service.get_ballot_key() is None


class TestRevealBallotKey:
    """Key reveal in Counting"""

    def test_before_counting_is_rejected(self, service, genesis, ca, advance_to):
        advance_to(ElectionPhase.VOTING)
        with pytest.raises(InvalidPhase):
            service.reveal_ballot_key(ca, b"secret")
        assert service.get_ballot_key().private_key == b""

    def test_in_counting_stores_exact_bytes(self, service, genesis, ca, advance_to):
        advance_to(ElectionPhase.COUNTING)
        private_key = bytes(range(64))

        key = service.reveal_ballot_key(ca, private_key)

        assert key.private_key == private_key
        assert service.get_ballot_key().private_key == private_key
        assert service.get_ballot_key().public_key == BALLOT_PUBLIC_KEY

    def test_non_ca_is_rejected(self, service, genesis, advance_to):
        advance_to(ElectionPhase.COUNTING)
        with pytest.raises(SenderNotCA):
            service.reveal_ballot_key(Origin("mallory"), b"secret")

    def test_missing_key_pair_is_internal_error(self, service, genesis, ca, advance_to, engine):
        advance_to(ElectionPhase.COUNTING)
        with engine.begin() as conn:
            conn.exec_driver_sql("DELETE FROM ballot_key")

        with pytest.raises(InternalError):
            service.reveal_ballot_key(ca, b"secret")

    def test_after_counting_is_rejected(self, service, genesis, ca, advance_to):
        advance_to(ElectionPhase.COMPLETED)
        with pytest.raises(InvalidPhase):
            service.reveal_ballot_key(ca, b"secret")
