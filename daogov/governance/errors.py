"""
Action errors raised by the proposal modules.

Each one rejects a single action with no state effect. None is retried.
"""

from ..exceptions import GovernanceError


class UnauthorizedError(GovernanceError):
    """Caller lacks the role required for the action."""


class InvalidProposalError(GovernanceError):
    """Proposal data is invalid."""


class NoSuchProposalError(GovernanceError):
    """No proposal exists with the given id."""

    def __init__(self, proposal_id: int):
        self.proposal_id = proposal_id
        super().__init__(f"No such proposal ({proposal_id})")


class NoSuchVoteError(GovernanceError):
    """The voter has not voted on the proposal."""

    def __init__(self, proposal_id: int, voter: str):
        self.proposal_id = proposal_id
        self.voter = voter
        super().__init__(f"No vote exists for proposal ({proposal_id}) and voter ({voter})")


class ProposalTooLargeError(GovernanceError):
    """Encoded proposal exceeds MAX_PROPOSAL_SIZE."""

    def __init__(self, size: int, max_size: int):
        self.size = size
        self.max_size = max_size
        super().__init__(f"Proposal is ({size}) bytes, must be <= ({max_size}) bytes")


# ── Voting ────────────────────────────────────────────────────────────

class VotingError(GovernanceError):
    """Base voting error."""


class NotRegisteredError(VotingError):
    """Voter had no voting power when the proposal was created."""


class AlreadyVotedError(VotingError):
    """Voter already cast a vote and revoting is disabled."""


class AlreadyCastError(VotingError):
    """Revote repeats the ballot already cast."""


class ExpiredError(VotingError):
    """Voting period for the proposal has ended."""

    def __init__(self, proposal_id: int):
        self.proposal_id = proposal_id
        super().__init__(f"Proposal ({proposal_id}) is expired")


class InvalidVoteError(VotingError):
    """Vote selects an option that does not exist."""


# ── Lifecycle ─────────────────────────────────────────────────────────

class ProposalLifecycleError(GovernanceError):
    """Raised on illegal state transitions."""


class NotPassedError(ProposalLifecycleError):
    """Execute attempted on a proposal that is not passed."""


# The execute-from-wrong-status error goes by both names.
WrongExecuteStatusError = NotPassedError


class WrongCloseStatusError(ProposalLifecycleError):
    """Only rejected proposals may be closed."""


class NotExpiredError(WrongCloseStatusError):
    """Close attempted while the proposal is still open."""
