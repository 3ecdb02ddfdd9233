"""
Multiple choice options and voting strategy.

Every multiple choice proposal carries a final "None of the above" option.
It has no payload, still counts toward quorum, and lets voters reject a
proposal whose options are all bad.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from ..constants import MAX_NUM_CHOICES, MIN_NUM_CHOICES, NONE_OPTION_DESCRIPTION
from ..exceptions import GovernanceError
from .threshold import (
    PercentageThreshold,
    percentage_from_dict,
    validate_quorum,
)


class InvalidChoicesError(GovernanceError):
    """Wrong number of choices."""


class OptionType(Enum):
    NONE = "none"
    STANDARD = "standard"


@dataclass
class MultipleChoiceOption:
    """Unchecked option as submitted by a proposer."""
    title: str
    description: str
    msgs: List[Any] = field(default_factory=list)


@dataclass
class CheckedMultipleChoiceOption:
    """
    A verified option. ``index`` is its position in both the proposal's
    choices and the tally's vote_weights.
    """
    index: int
    option_type: OptionType
    title: str
    description: str
    msgs: List[Any] = field(default_factory=list)
    vote_count: int = 0

    @property
    def is_none(self) -> bool:
        return self.option_type == OptionType.NONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "optionType": self.option_type.value,
            "title": self.title,
            "description": self.description,
            "msgs": list(self.msgs),
            "voteCount": str(self.vote_count),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CheckedMultipleChoiceOption":
        return cls(
            index=int(data["index"]),
            option_type=OptionType(data["optionType"]),
            title=data["title"],
            description=data["description"],
            msgs=list(data.get("msgs", [])),
            vote_count=int(data.get("voteCount", 0)),
        )


def into_checked(options: List[MultipleChoiceOption]) -> List[CheckedMultipleChoiceOption]:
    """Validate *options* and append the "None of the above" option."""
    if len(options) < MIN_NUM_CHOICES or len(options) > MAX_NUM_CHOICES:
        raise InvalidChoicesError(
            f"Wrong number of choices: {len(options)} "
            f"(expected {MIN_NUM_CHOICES}..{MAX_NUM_CHOICES})"
        )

    checked = [
        CheckedMultipleChoiceOption(
            index=idx,
            option_type=OptionType.STANDARD,
            title=choice.title,
            description=choice.description,
            msgs=list(choice.msgs),
        )
        for idx, choice in enumerate(options)
    ]
    checked.append(
        CheckedMultipleChoiceOption(
            index=len(checked),
            option_type=OptionType.NONE,
            title=NONE_OPTION_DESCRIPTION,
            description=NONE_OPTION_DESCRIPTION,
        )
    )
    return checked


# ══════════════════════════════════════════════════════════════════════
#  VOTING STRATEGY
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SingleChoice:
    """Each voter picks exactly one option; ``quorum`` must participate."""
    quorum: PercentageThreshold

    def validate(self) -> None:
        validate_quorum(self.quorum)

    def get_quorum(self) -> PercentageThreshold:
        return self.quorum

    def to_dict(self) -> Dict[str, Any]:
        return {"singleChoice": {"quorum": self.quorum.to_dict()}}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SingleChoice":
        return cls(quorum=percentage_from_dict(data["singleChoice"]["quorum"]))


VotingStrategy = SingleChoice
