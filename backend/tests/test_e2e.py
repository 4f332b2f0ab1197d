"""
Blindvote End-to-End Tests
Full election: genesis -> registration -> blind signing -> voting -> counting
"""

import pytest

from blindvote.errors import InvalidPhaseChange
from blindvote.models import ElectionPhase
from blindvote.utils.security import Origin

from conftest import CANDIDATE_IDS


class TestElectionFlow:

    def test_complete_election(self, election, ca, clock, sign_voter, ballot_signatures):
        service = election

        # Initialization -> Registration
        clock.number = 1
        assert service.change_phase(ca).phase == ElectionPhase.REGISTRATION

        voter = service.add_voter(ca, b"blinded-pubkey", b"signed-blinded-pubkey", b"pdh", True)
        assert voter.id == 1

        # Registration -> BiasedSigner
        clock.number = 2
        assert service.change_phase(ca).phase == ElectionPhase.BIASED_SIGNER

        sign_voter(voter.id)
        assert len(service.blinded_signatures_for(voter.id)) == 3

        # BiasedSigner -> Voting
        clock.number = 3
        assert service.change_phase(ca).phase == ElectionPhase.VOTING

        anonymous = Origin("fresh-unlinkable-account")
        service.vote(anonymous, b"sealed-choice-a", ballot_signatures(anonymous.identity))
        service.vote(anonymous, b"sealed-choice-b", ballot_signatures(anonymous.identity))

        # Voting -> Counting
        clock.number = 4
        assert service.change_phase(ca).phase == ElectionPhase.COUNTING
        service.reveal_ballot_key(ca, b"ballot-private-key")

        # Counting -> Completed
        clock.number = 5
        assert service.change_phase(ca).phase == ElectionPhase.COMPLETED

        ballot = service.get_ballot(anonymous.identity)
        assert ballot.commitment == b"sealed-choice-b"
        assert ballot.nonce == 2
        assert service.get_ballot_key().private_key == b"ballot-private-key"
        assert [(e.phase, e.when) for e in service.phase_events()] == [
            (ElectionPhase.REGISTRATION, 1),
            (ElectionPhase.BIASED_SIGNER, 2),
            (ElectionPhase.VOTING, 3),
            (ElectionPhase.COUNTING, 4),
            (ElectionPhase.COMPLETED, 5),
        ]

    def test_partially_signed_voter_blocks_voting(self, election, ca, sign_voter):
        service = election
        service.change_phase(ca)
        voter = service.add_voter(ca, b"bp", b"sbp", b"pdh", True)
        service.change_phase(ca)

        sign_voter(voter.id, CANDIDATE_IDS[:2])

        with pytest.raises(InvalidPhaseChange):
            service.change_phase(ca)
        assert service.phase() == ElectionPhase.BIASED_SIGNER

        # the missing candidate catches up and the guard passes
        sign_voter(voter.id, CANDIDATE_IDS[2:])
        service.change_phase(ca)
        assert service.phase() == ElectionPhase.VOTING
