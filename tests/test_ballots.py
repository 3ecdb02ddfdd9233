"""
Ballot ledger and proposal repository tests

Coverage:
  - casting, revoting and the errors that refuse a ballot
  - ballot weights always summing to the tally total
  - rationale updates and vote listing
  - proposal id allocation, copies on load / save, ranged queries
  - transaction rollback
"""

import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from daogov.governance.ballots import Ballot, BallotLedger, VoteInfo
from daogov.governance.errors import (
    AlreadyCastError,
    AlreadyVotedError,
    ExpiredError,
    NoSuchProposalError,
    NoSuchVoteError,
    NotRegisteredError,
)
from daogov.governance.expiration import AtHeight, BlockInfo
from daogov.governance.proposals import SingleChoiceProposal
from daogov.governance.state import ProposalRepository
from daogov.governance.threshold import AbsolutePercentage, Majority
from daogov.governance.votes import Vote, Votes

BLOCK = BlockInfo(height=12345, time=1_571_797_419)

ALICE = "alice"
BOB = "bob"
CAROL = "carol"


def make_proposal(proposal_id=1, allow_revoting=False, expires_at=BLOCK.height + 10):
    return SingleChoiceProposal(
        id=proposal_id,
        title=f"Proposal {proposal_id}",
        description="Info",
        proposer=ALICE,
        start_height=BLOCK.height,
        expiration=AtHeight(expires_at),
        threshold=AbsolutePercentage(Majority()),
        total_power=20,
        allow_revoting=allow_revoting,
    )


# ══════════════════════════════════════════════════════════════════════
#  BALLOT LEDGER
# ══════════════════════════════════════════════════════════════════════

class TestBallotLedger:

    def test_cast_updates_tally(self):
        ledger = BallotLedger()
        prop = make_proposal()
        assert ledger.cast(prop, ALICE, 10, Vote.YES, "because", BLOCK) is None
        assert prop.votes == Votes(yes=10)
        assert ledger.get(1, ALICE) == Ballot(power=10, vote=Vote.YES, rationale="because")

    def test_zero_weight_not_registered(self):
        ledger = BallotLedger()
        prop = make_proposal()
        with pytest.raises(NotRegisteredError):
            ledger.cast(prop, ALICE, 0, Vote.YES, None, BLOCK)
        assert len(ledger) == 0

    def test_expired_refused(self):
        ledger = BallotLedger()
        prop = make_proposal(expires_at=BLOCK.height)
        with pytest.raises(ExpiredError) as exc:
            ledger.cast(prop, ALICE, 10, Vote.YES, None, BLOCK)
        assert exc.value.proposal_id == 1

    def test_expiry_checked_before_power(self):
        ledger = BallotLedger()
        prop = make_proposal(expires_at=BLOCK.height)
        with pytest.raises(ExpiredError):
            ledger.cast(prop, ALICE, 0, Vote.YES, None, BLOCK)

    def test_second_vote_without_revoting(self):
        ledger = BallotLedger()
        prop = make_proposal()
        ledger.cast(prop, ALICE, 10, Vote.YES, None, BLOCK)
        with pytest.raises(AlreadyVotedError):
            ledger.cast(prop, ALICE, 10, Vote.NO, None, BLOCK)
        assert prop.votes == Votes(yes=10)

    def test_revote_moves_weight(self):
        ledger = BallotLedger()
        prop = make_proposal(allow_revoting=True)
        ledger.cast(prop, ALICE, 10, Vote.YES, "first", BLOCK)
        previous = ledger.cast(prop, ALICE, 10, Vote.NO, None, BLOCK)
        assert previous.vote == Vote.YES
        assert prop.votes == Votes(no=10)
        assert ledger.get(1, ALICE).rationale is None

    def test_revote_same_vote_refused(self):
        ledger = BallotLedger()
        prop = make_proposal(allow_revoting=True)
        ledger.cast(prop, ALICE, 10, Vote.YES, None, BLOCK)
        with pytest.raises(AlreadyCastError):
            ledger.cast(prop, ALICE, 10, Vote.YES, None, BLOCK)

    def test_weights_sum_to_tally(self):
        ledger = BallotLedger()
        prop = make_proposal(allow_revoting=True)
        ledger.cast(prop, ALICE, 10, Vote.YES, None, BLOCK)
        ledger.cast(prop, BOB, 5, Vote.ABSTAIN, None, BLOCK)
        ledger.cast(prop, CAROL, 3, Vote.NO, None, BLOCK)
        ledger.cast(prop, BOB, 5, Vote.NO, None, BLOCK)
        assert ledger.total_weight(1) == prop.votes.total() == 18

    def test_update_rationale(self):
        ledger = BallotLedger()
        prop = make_proposal()
        ledger.cast(prop, ALICE, 10, Vote.YES, None, BLOCK)
        ballot = ledger.update_rationale(1, ALICE, "changed my mind on wording")
        assert ballot.rationale == "changed my mind on wording"
        assert ledger.get(1, ALICE).vote == Vote.YES

    def test_update_rationale_without_vote(self):
        ledger = BallotLedger()
        with pytest.raises(NoSuchVoteError) as exc:
            ledger.update_rationale(1, BOB, "hello")
        assert exc.value.voter == BOB

    def test_list_votes_ordered_and_paged(self):
        ledger = BallotLedger()
        prop = make_proposal()
        other = make_proposal(proposal_id=2)
        for voter in (CAROL, ALICE, BOB):
            ledger.cast(prop, voter, 1, Vote.YES, None, BLOCK)
        ledger.cast(other, ALICE, 1, Vote.NO, None, BLOCK)

        assert [v.voter for v in ledger.list_votes(1)] == [ALICE, BOB, CAROL]
        assert [v.voter for v in ledger.list_votes(1, start_after=ALICE)] == [BOB, CAROL]
        assert [v.voter for v in ledger.list_votes(1, limit=1)] == [ALICE]
        assert [v.voter for v in ledger.list_votes(2)] == [ALICE]

    def test_vote_info_to_dict(self):
        info = VoteInfo(ALICE, Ballot(power=10, vote=Vote.ABSTAIN, rationale=None))
        assert info.to_dict() == {
            "voter": ALICE,
            "power": "10",
            "vote": "abstain",
            "rationale": None,
        }


# ══════════════════════════════════════════════════════════════════════
#  REPOSITORY
# ══════════════════════════════════════════════════════════════════════

class TestProposalRepository:

    def test_proposal_ids_advance(self):
        repo = ProposalRepository()
        assert repo.next_proposal_id() == 1
        assert repo.advance_proposal_id() == 1
        assert repo.next_proposal_id() == 2
        assert repo.advance_proposal_id() == 2
        assert repo.proposal_count == 2

    def test_load_missing_raises(self):
        with pytest.raises(NoSuchProposalError, match=r"No such proposal \(7\)"):
            ProposalRepository().load(7)

    def test_may_load(self):
        repo = ProposalRepository()
        assert repo.may_load(1) is None
        repo.save(1, make_proposal())
        assert repo.may_load(1).id == 1

    def test_load_returns_copy(self):
        repo = ProposalRepository()
        repo.save(1, make_proposal())
        loaded = repo.load(1)
        loaded.votes.add_vote(Vote.YES, 5)
        assert repo.load(1).votes == Votes()

    def test_save_stores_copy(self):
        repo = ProposalRepository()
        prop = make_proposal()
        repo.save(1, prop)
        prop.title = "edited after save"
        assert repo.load(1).title == "Proposal 1"

    def test_range(self):
        repo = ProposalRepository()
        for i in range(1, 6):
            repo.save(i, make_proposal(proposal_id=i))
        assert [i for i, _ in repo.range()] == [1, 2, 3, 4, 5]
        assert [i for i, _ in repo.range(start_after=2, limit=2)] == [3, 4]
        assert [i for i, _ in repo.range(descending=True, limit=2)] == [5, 4]
        assert [i for i, _ in repo.range(start_before=4, descending=True)] == [3, 2, 1]
        assert len(repo) == 5
        assert 3 in repo and 6 not in repo

    def test_transaction_commits(self):
        repo = ProposalRepository()
        with repo.transaction():
            pid = repo.advance_proposal_id()
            repo.save(pid, make_proposal(pid))
        assert pid in repo
        assert repo.proposal_count == 1

    def test_transaction_rolls_back(self):
        repo = ProposalRepository()
        repo.save(1, make_proposal())
        repo.advance_proposal_id()

        with pytest.raises(RuntimeError):
            with repo.transaction():
                pid = repo.advance_proposal_id()
                repo.save(pid, make_proposal(pid))
                prop = repo.load(1)
                repo.ballots.cast(prop, ALICE, 10, Vote.YES, None, BLOCK)
                repo.save(1, prop)
                raise RuntimeError("boom")

        assert 2 not in repo
        assert repo.proposal_count == 1
        assert repo.load(1).votes == Votes()
        assert repo.ballots.get(1, ALICE) is None

    def test_transaction_restores_rationale(self):
        repo = ProposalRepository()
        prop = make_proposal()
        repo.ballots.cast(prop, ALICE, 10, Vote.YES, "original", BLOCK)
        repo.save(1, prop)

        with pytest.raises(ValueError):
            with repo.transaction():
                repo.ballots.update_rationale(1, ALICE, "edited")
                raise ValueError("abort")

        assert repo.ballots.get(1, ALICE).rationale == "original"
