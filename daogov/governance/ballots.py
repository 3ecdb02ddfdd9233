"""
Ballot Ledger

One ballot per (proposal, voter). Casting a ballot updates the proposal's
tally in the same step so that the sum of ballot weights always equals the
tally total.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple, Union

from .errors import (
    AlreadyCastError,
    AlreadyVotedError,
    ExpiredError,
    NoSuchVoteError,
    NotRegisteredError,
)
from .expiration import BlockInfo
from .votes import MultipleChoiceVote, Vote

BallotVote = Union[Vote, MultipleChoiceVote]


@dataclass
class Ballot:
    """A voter's recorded, weighted vote."""
    power: int
    vote: BallotVote
    rationale: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if isinstance(self.vote, MultipleChoiceVote):
            vote = {"optionId": self.vote.option_id}
        else:
            vote = str(self.vote)
        return {
            "power": str(self.power),
            "vote": vote,
            "rationale": self.rationale,
        }


@dataclass(frozen=True)
class VoteInfo:
    """Query view of a ballot."""
    voter: str
    ballot: Ballot

    def to_dict(self) -> Dict[str, Any]:
        data = self.ballot.to_dict()
        data["voter"] = self.voter
        return data


class BallotLedger:
    """Ballots keyed by ``(proposal_id, voter)``."""

    def __init__(self):
        self._ballots: Dict[Tuple[int, str], Ballot] = {}

    def cast(
        self,
        proposal,
        voter: str,
        weight: int,
        vote: BallotVote,
        rationale: Optional[str],
        block: BlockInfo,
    ) -> Optional[Ballot]:
        """
        Record *voter*'s ballot and apply it to ``proposal.votes``.

        Voting stays open until the hard expiration, even once the outcome
        is decided, so that the final tally stays accurate.

        Returns the replaced ballot on a revote, else None.
        """
        if proposal.expiration.is_expired(block):
            raise ExpiredError(proposal.id)
        if weight == 0:
            raise NotRegisteredError(f"{voter} has no voting power on proposal #{proposal.id}")

        key = (proposal.id, voter)
        previous = self._ballots.get(key)
        if previous is not None:
            if not proposal.allow_revoting:
                raise AlreadyVotedError(f"{voter} already voted on proposal #{proposal.id}")
            if previous.vote == vote:
                raise AlreadyCastError(f"{voter} already cast {vote} on proposal #{proposal.id}")
            proposal.votes.remove_vote(previous.vote, previous.power)

        proposal.votes.add_vote(vote, weight)
        # A revote replaces the rationale too.
        self._ballots[key] = Ballot(power=weight, vote=vote, rationale=rationale)
        return previous

    def update_rationale(self, proposal_id: int, voter: str, rationale: Optional[str]) -> Ballot:
        ballot = self._ballots.get((proposal_id, voter))
        if ballot is None:
            raise NoSuchVoteError(proposal_id, voter)
        ballot.rationale = rationale
        return ballot

    def get(self, proposal_id: int, voter: str) -> Optional[Ballot]:
        return self._ballots.get((proposal_id, voter))

    def list_votes(
        self,
        proposal_id: int,
        start_after: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[VoteInfo]:
        """Ballots on *proposal_id* in ascending voter order."""
        voters = sorted(
            voter for pid, voter in self._ballots
            if pid == proposal_id and (start_after is None or voter > start_after)
        )
        if limit is not None:
            voters = voters[:limit]
        return [VoteInfo(voter, self._ballots[(proposal_id, voter)]) for voter in voters]

    def total_weight(self, proposal_id: int) -> int:
        return sum(b.power for (pid, _), b in self._ballots.items() if pid == proposal_id)

    def snapshot(self) -> Dict[Tuple[int, str], Ballot]:
        return {key: replace(ballot) for key, ballot in self._ballots.items()}

    def restore(self, snapshot: Dict[Tuple[int, str], Ballot]) -> None:
        self._ballots = snapshot

    def __len__(self) -> int:
        return len(self._ballots)
