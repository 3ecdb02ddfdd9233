"""
Vote Tallies

Running vote-weight accumulators:
  - Votes:               single choice yes / no / abstain tally
  - MultipleChoiceVotes: one weight per option, index-aligned with the
                         proposal's choices ("None of the above" last)

Every mutation is overflow-checked; removing more weight than an option
holds raises rather than wrapping.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List

from .arithmetic import check_uint, checked_add, checked_sub, checked_sum


# ══════════════════════════════════════════════════════════════════════
#  SINGLE CHOICE
# ══════════════════════════════════════════════════════════════════════

class Vote(IntEnum):
    """A single choice position."""
    YES = 0
    NO = 1
    ABSTAIN = 2

    def __str__(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value) -> "Vote":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls[value.strip().upper()]
        return cls(value)


@dataclass
class Votes:
    """Single choice tally."""
    yes: int = 0
    no: int = 0
    abstain: int = 0

    def __post_init__(self):
        check_uint(self.yes, "yes")
        check_uint(self.no, "no")
        check_uint(self.abstain, "abstain")

    @classmethod
    def zero(cls) -> "Votes":
        return cls()

    def add_vote(self, vote: Vote, power: int) -> None:
        if vote == Vote.YES:
            self.yes = checked_add(self.yes, power)
        elif vote == Vote.NO:
            self.no = checked_add(self.no, power)
        else:
            self.abstain = checked_add(self.abstain, power)

    def remove_vote(self, vote: Vote, power: int) -> None:
        if vote == Vote.YES:
            self.yes = checked_sub(self.yes, power)
        elif vote == Vote.NO:
            self.no = checked_sub(self.no, power)
        else:
            self.abstain = checked_sub(self.abstain, power)

    def total(self) -> int:
        return checked_sum((self.yes, self.no, self.abstain))

    def to_dict(self) -> Dict[str, Any]:
        return {"yes": str(self.yes), "no": str(self.no), "abstain": str(self.abstain)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Votes":
        return cls(
            yes=int(data.get("yes", 0)),
            no=int(data.get("no", 0)),
            abstain=int(data.get("abstain", 0)),
        )


# ══════════════════════════════════════════════════════════════════════
#  MULTIPLE CHOICE
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class MultipleChoiceVote:
    """Which option the voter selected."""
    option_id: int

    def __str__(self) -> str:
        return str(self.option_id)


@dataclass
class MultipleChoiceVotes:
    """Vote weight for each option; the index is the option id."""
    vote_weights: List[int] = field(default_factory=list)

    def __post_init__(self):
        for w in self.vote_weights:
            check_uint(w, "vote weight")

    @classmethod
    def zero(cls, num_choices: int) -> "MultipleChoiceVotes":
        return cls(vote_weights=[0] * num_choices)

    def total(self) -> int:
        """Sum of all vote weights."""
        return checked_sum(self.vote_weights)

    def add_vote(self, vote: MultipleChoiceVote, weight: int) -> None:
        idx = vote.option_id
        self.vote_weights[idx] = checked_add(self.vote_weights[idx], weight)

    def remove_vote(self, vote: MultipleChoiceVote, weight: int) -> None:
        idx = vote.option_id
        self.vote_weights[idx] = checked_sub(self.vote_weights[idx], weight)

    def to_dict(self) -> Dict[str, Any]:
        return {"voteWeights": [str(w) for w in self.vote_weights]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MultipleChoiceVotes":
        return cls(vote_weights=[int(w) for w in data.get("voteWeights", [])])
