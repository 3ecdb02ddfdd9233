"""
Multiple Choice Proposals

A multiple choice proposal passes when quorum is met and a single option
other than "None of the above" holds strictly the most weight. Before
expiration it resolves early only once the leader is unbeatable: the
runner-up could not catch it even if every uncast vote went to the
runner-up.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..exceptions import GovernanceError
from .arithmetic import checked_add, checked_sub, percentage_met
from .choices import CheckedMultipleChoiceOption, VotingStrategy
from .expiration import BlockInfo, Expiration, expiration_from_dict
from .proposals import StatusResolverMixin
from .status import Open, Status, status_from_dict
from .veto import VetoConfig
from .votes import MultipleChoiceVotes


class TallyError(GovernanceError):
    """The tally is inconsistent with the proposal's choices."""


@dataclass(frozen=True)
class SingleWinner:
    option: CheckedMultipleChoiceOption


@dataclass(frozen=True)
class Tie:
    pass


VoteResult = Union[SingleWinner, Tie]


def calculate_vote_result(
    votes: MultipleChoiceVotes,
    choices: List[CheckedMultipleChoiceOption],
) -> VoteResult:
    """Find the option with the highest vote weight, noting a tie."""
    if not votes.vote_weights:
        raise TallyError("No vote weights found")
    max_weight = max(votes.vote_weights)
    top = [idx for idx, w in enumerate(votes.vote_weights) if w == max_weight]
    if len(top) > 1:
        return Tie()
    return SingleWinner(choices[top[0]])


def is_choice_unbeatable(
    winner: CheckedMultipleChoiceOption,
    votes: MultipleChoiceVotes,
    total_power: int,
) -> bool:
    """
    Can the runner-up still overtake *winner* with the remaining power?

    A "None of the above" leader only needs to hold a tie, because a tie
    already fails the proposal.
    """
    winner_power = votes.vote_weights[winner.index]
    lower = [w for w in votes.vote_weights if w < winner_power]
    if not lower:
        raise TallyError("No second highest vote weight")
    second = max(lower)
    remaining = checked_sub(total_power, votes.total())
    reachable = checked_add(second, remaining)
    if winner.is_none:
        return winner_power >= reachable
    return winner_power > reachable


@dataclass
class MultipleChoiceProposal(StatusResolverMixin):
    """
    Multiple choice proposal.

    ``choices`` and ``votes.vote_weights`` are index aligned; the last
    choice is always "None of the above".
    """
    id: int
    title: str
    description: str
    proposer: str
    start_height: int
    expiration: Expiration
    choices: List[CheckedMultipleChoiceOption]
    voting_strategy: VotingStrategy
    total_power: int
    status: Status = field(default_factory=Open)
    votes: Optional[MultipleChoiceVotes] = None
    allow_revoting: bool = False
    min_voting_period: Optional[Expiration] = None
    veto: Optional[VetoConfig] = None

    def __post_init__(self):
        if self.votes is None:
            self.votes = MultipleChoiceVotes.zero(len(self.choices))
        if len(self.votes.vote_weights) != len(self.choices):
            raise TallyError(
                f"Tally has {len(self.votes.vote_weights)} weights "
                f"for {len(self.choices)} choices"
            )

    # ── Resolution ────────────────────────────────────────────────────

    def quorum_met(self) -> bool:
        return percentage_met(
            self.votes.total(), self.total_power, self.voting_strategy.get_quorum()
        )

    def calculate_vote_result(self) -> VoteResult:
        return calculate_vote_result(self.votes, self.choices)

    def is_choice_unbeatable(self, winner: CheckedMultipleChoiceOption) -> bool:
        return is_choice_unbeatable(winner, self.votes, self.total_power)

    def is_passed(self, block: BlockInfo) -> bool:
        """
        True iff quorum is met, one option other than "None of the above"
        leads without a tie, and that lead is final.
        """
        if self.allow_revoting and not self.is_expired(block):
            return False
        if not self.min_voting_period_elapsed(block):
            return False
        if not self.quorum_met():
            return False

        result = self.calculate_vote_result()
        if isinstance(result, Tie) or result.option.is_none:
            return False
        if self.is_expired(block):
            return True
        return self.is_choice_unbeatable(result.option)

    def is_rejected(self, block: BlockInfo) -> bool:
        if self.allow_revoting and not self.is_expired(block):
            return False

        expired = self.is_expired(block)
        result = self.calculate_vote_result()
        if isinstance(result, Tie):
            # A tie rejects once no voting power is left to break it.
            return expired or self.total_power == self.votes.total()

        quorum_met = self.quorum_met()
        if expired:
            if not quorum_met:
                return True
            return result.option.is_none
        if result.option.is_none:
            return self.is_choice_unbeatable(result.option)
        return False

    def winning_choice(self) -> Optional[CheckedMultipleChoiceOption]:
        result = self.calculate_vote_result()
        if isinstance(result, SingleWinner):
            return result.option
        return None

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        choices = []
        for choice in self.choices:
            data = choice.to_dict()
            data["voteCount"] = str(self.votes.vote_weights[choice.index])
            choices.append(data)
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "proposer": self.proposer,
            "startHeight": self.start_height,
            "minVotingPeriod": (
                self.min_voting_period.to_dict() if self.min_voting_period else None
            ),
            "expiration": self.expiration.to_dict(),
            "choices": choices,
            "votingStrategy": self.voting_strategy.to_dict(),
            "totalPower": str(self.total_power),
            "status": self.status.to_dict(),
            "votes": self.votes.to_dict(),
            "allowRevoting": self.allow_revoting,
            "veto": self.veto.to_dict() if self.veto else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MultipleChoiceProposal":
        min_period = data.get("minVotingPeriod")
        veto = data.get("veto")
        return cls(
            id=int(data["id"]),
            title=data["title"],
            description=data["description"],
            proposer=data["proposer"],
            start_height=int(data["startHeight"]),
            min_voting_period=expiration_from_dict(min_period) if min_period else None,
            expiration=expiration_from_dict(data["expiration"]),
            choices=[CheckedMultipleChoiceOption.from_dict(c) for c in data["choices"]],
            voting_strategy=VotingStrategy.from_dict(data["votingStrategy"]),
            total_power=int(data["totalPower"]),
            status=status_from_dict(data["status"]),
            votes=MultipleChoiceVotes.from_dict(data["votes"]),
            allow_revoting=bool(data.get("allowRevoting", False)),
            veto=VetoConfig.from_dict(veto) if veto else None,
        )

    def __repr__(self) -> str:
        return (
            f"<MultipleChoiceProposal #{self.id} '{self.title}' "
            f"choices={len(self.choices)} status={self.status}>"
        )
