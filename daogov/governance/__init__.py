"""
daogov Governance Core

Provides:
  - Threshold policies and vote arithmetic    (threshold.py, arithmetic.py)
  - Expirations, statuses and tallies         (expiration.py, status.py, votes.py)
  - Single / multiple choice proposals        (proposals.py, multiple_choice.py)
  - Ballots, veto, hooks and the repository   (ballots.py, veto.py, hooks.py, state.py)
  - Proposal modules (host entry points)      (module.py)
"""

from .arithmetic import VoteOverflowError, percentage_failed, percentage_met
from .ballots import Ballot, BallotLedger, VoteInfo
from .choices import (
    CheckedMultipleChoiceOption,
    InvalidChoicesError,
    MultipleChoiceOption,
    OptionType,
    SingleChoice,
)
from .errors import (
    AlreadyCastError,
    AlreadyVotedError,
    ExpiredError,
    InvalidProposalError,
    InvalidVoteError,
    NoSuchProposalError,
    NoSuchVoteError,
    NotExpiredError,
    NotPassedError,
    NotRegisteredError,
    ProposalLifecycleError,
    ProposalTooLargeError,
    UnauthorizedError,
    WrongCloseStatusError,
    WrongExecuteStatusError,
)
from .expiration import (
    AtHeight,
    AtTime,
    BlockInfo,
    DurationUnitsConflictError,
    Height,
    InvalidMinVotingPeriodError,
    Never,
    Time,
)
from .hooks import (
    HookAlreadyRegisteredError,
    HookError,
    HookNotRegisteredError,
    HookRegistry,
    NewProposal,
    NewVote,
    ProposalStatusChanged,
)
from .module import (
    MultipleChoiceProposalModule,
    ProposalConfig,
    ProposalModuleBase,
    SingleChoiceProposalModule,
)
from .multiple_choice import MultipleChoiceProposal, SingleWinner, Tie
from .proposals import SingleChoiceProposal
from .state import ProposalRepository
from .status import (
    Closed,
    Executed,
    ExecutionFailed,
    Open,
    Passed,
    Rejected,
    Vetoed,
    VetoTimelock,
)
from .threshold import (
    AbsoluteCount,
    AbsolutePercentage,
    Majority,
    Percent,
    ThresholdError,
    ThresholdQuorum,
    UnreachableThresholdError,
    ZeroThresholdError,
)
from .veto import (
    NoEarlyExecuteError,
    NoVetoBeforePassedError,
    NoVetoConfigurationError,
    TimelockedError,
    TimelockExpiredError,
    InvalidProposalStatusError,
    VetoConfig,
    VetoError,
)
from .votes import MultipleChoiceVote, MultipleChoiceVotes, Vote, Votes

__all__ = [
    # Arithmetic / thresholds
    "VoteOverflowError",
    "percentage_failed",
    "percentage_met",
    "AbsoluteCount",
    "AbsolutePercentage",
    "Majority",
    "Percent",
    "ThresholdError",
    "ThresholdQuorum",
    "UnreachableThresholdError",
    "ZeroThresholdError",
    # Time
    "AtHeight",
    "AtTime",
    "BlockInfo",
    "DurationUnitsConflictError",
    "Height",
    "InvalidMinVotingPeriodError",
    "Never",
    "Time",
    # Status
    "Closed",
    "Executed",
    "ExecutionFailed",
    "Open",
    "Passed",
    "Rejected",
    "Vetoed",
    "VetoTimelock",
    # Votes and ballots
    "Ballot",
    "BallotLedger",
    "MultipleChoiceVote",
    "MultipleChoiceVotes",
    "Vote",
    "VoteInfo",
    "Votes",
    # Proposals
    "CheckedMultipleChoiceOption",
    "InvalidChoicesError",
    "MultipleChoiceOption",
    "MultipleChoiceProposal",
    "OptionType",
    "SingleChoice",
    "SingleChoiceProposal",
    "SingleWinner",
    "Tie",
    # Veto
    "InvalidProposalStatusError",
    "NoEarlyExecuteError",
    "NoVetoBeforePassedError",
    "NoVetoConfigurationError",
    "TimelockedError",
    "TimelockExpiredError",
    "VetoConfig",
    "VetoError",
    # Hooks
    "HookAlreadyRegisteredError",
    "HookError",
    "HookNotRegisteredError",
    "HookRegistry",
    "NewProposal",
    "NewVote",
    "ProposalStatusChanged",
    # Host
    "MultipleChoiceProposalModule",
    "ProposalConfig",
    "ProposalModuleBase",
    "ProposalRepository",
    "SingleChoiceProposalModule",
    # Errors
    "AlreadyCastError",
    "AlreadyVotedError",
    "ExpiredError",
    "InvalidProposalError",
    "InvalidVoteError",
    "NoSuchProposalError",
    "NoSuchVoteError",
    "NotExpiredError",
    "NotPassedError",
    "NotRegisteredError",
    "ProposalLifecycleError",
    "ProposalTooLargeError",
    "UnauthorizedError",
    "WrongCloseStatusError",
    "WrongExecuteStatusError",
]
