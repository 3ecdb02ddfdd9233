"""
Single Choice Proposals

Defines the yes / no / abstain proposal record and the early-resolution
rules that decide, at any block, whether its outcome is already certain.

A proposal may pass or be rejected before its voting window closes as soon
as no remaining sequence of votes could change the result. Stored status is
only refreshed on vote, execute, close and veto, so readers must use
``current_status`` rather than the stored field.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..logger import get_logger
from .arithmetic import checked_sub, percentage_failed, percentage_met
from .errors import ProposalLifecycleError
from .expiration import BlockInfo, Expiration, expiration_from_dict
from .status import (
    Open,
    Passed,
    Rejected,
    Status,
    VetoTimelock,
    can_transition,
    is_terminal,
    status_from_dict,
)
from .threshold import (
    AbsoluteCount,
    AbsolutePercentage,
    Threshold,
    ThresholdQuorum,
    threshold_from_dict,
)
from .veto import VetoConfig
from .votes import Votes

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  SHARED STATUS RESOLUTION
# ══════════════════════════════════════════════════════════════════════

class StatusResolverMixin:
    """
    Status computation shared by single and multiple choice proposals.

    Requires ``status``, ``expiration``, ``veto``, ``id`` and ``title``
    attributes plus ``is_passed(block)`` / ``is_rejected(block)``.
    """

    def current_status(self, block: BlockInfo) -> Status:
        """Recompute the status at *block* without mutating the proposal."""
        status = self.status
        if isinstance(status, Open):
            if self.is_passed(block):
                if self.veto is None:
                    return Passed()
                # Timelock runs from the proposal's expiration, not from
                # the moment it passed.
                expiration = self.expiration.plus(self.veto.timelock_duration)
                if expiration.is_expired(block):
                    return Passed()
                return VetoTimelock(expiration)
            if self.expiration.is_expired(block) or self.is_rejected(block):
                return Rejected()
            return status
        if isinstance(status, VetoTimelock):
            if status.expiration.is_expired(block):
                return Passed()
            return status
        return status

    def update_status(self, block: BlockInfo) -> Status:
        """Set the stored status to the current status. Returns the new status."""
        new_status = self.current_status(block)
        if new_status != self.status:
            self.transition_to(new_status, f"status recomputed at height {block.height}")
        return new_status

    def transition_to(self, new_status: Status, reason: str = "") -> None:
        """
        Advance the proposal to *new_status*.

        Raises ProposalLifecycleError on invalid transitions.
        """
        if is_terminal(self.status) and new_status != self.status:
            raise ProposalLifecycleError(
                f"Proposal #{self.id} is already {self.status}"
            )
        if not can_transition(self.status, new_status):
            raise ProposalLifecycleError(
                f"Cannot transition from {self.status} → {new_status}"
            )
        old = self.status
        self.status = new_status
        logger.info(f"Proposal #{self.id} ({self.title}): {old} → {new_status} | {reason}")

    def with_current_status(self, block: BlockInfo):
        """
        Copy of this proposal with its status recomputed at *block*.

        Used by queries so that they never return a stale status and never
        write one back.
        """
        return dataclasses.replace(self, status=self.current_status(block))

    def is_expired(self, block: BlockInfo) -> bool:
        return self.expiration.is_expired(block)

    def min_voting_period_elapsed(self, block: BlockInfo) -> bool:
        return self.min_voting_period is None or self.min_voting_period.is_expired(block)


# ══════════════════════════════════════════════════════════════════════
#  SINGLE CHOICE PROPOSAL
# ══════════════════════════════════════════════════════════════════════

@dataclass
class SingleChoiceProposal(StatusResolverMixin):
    """
    Yes / no / abstain proposal.

    Fields:
        id:                 Sequential identifier
        title:              Short title
        description:        Main body of the proposal text
        proposer:           Address that created the proposal
        start_height:       Height at creation; voting power is read here
        expiration:         Hard close for additional votes
        threshold:          Pass / fail policy
        total_power:        Total voting power at creation, never updated
        msgs:               Payload handed to the executor on success
        status:             Cached status (see current_status)
        votes:              Running tally
        allow_revoting:     Voters may change their vote; no early result
        min_voting_period:  Earliest point the proposal may pass
        veto:               Optional veto timelock configuration
    """
    id: int
    title: str
    description: str
    proposer: str
    start_height: int
    expiration: Expiration
    threshold: Threshold
    total_power: int
    msgs: List[Any] = field(default_factory=list)
    status: Status = field(default_factory=Open)
    votes: Votes = field(default_factory=Votes)
    allow_revoting: bool = False
    min_voting_period: Optional[Expiration] = None
    veto: Optional[VetoConfig] = None

    # ── Resolution ────────────────────────────────────────────────────

    def is_passed(self, block: BlockInfo) -> bool:
        """
        True iff this proposal is sure to pass, even before expiration, if
        no future sequence of possible votes can cause it to fail.
        """
        # With revoting nothing is known until the proposal expires.
        if self.allow_revoting and not self.is_expired(block):
            return False
        # A min voting period gives members time to react if a single
        # actor accumulates enough power to pass proposals alone.
        if not self.min_voting_period_elapsed(block):
            return False

        threshold = self.threshold
        if isinstance(threshold, AbsolutePercentage):
            options = checked_sub(self.total_power, self.votes.abstain)
            return percentage_met(self.votes.yes, options, threshold.percentage)

        if isinstance(threshold, ThresholdQuorum):
            if not percentage_met(self.votes.total(), self.total_power, threshold.quorum):
                return False
            if self.is_expired(block):
                # No more votes are coming: compare against votes cast.
                options = checked_sub(self.votes.total(), self.votes.abstain)
            else:
                # Assume every outstanding vote could be a no.
                options = checked_sub(self.total_power, self.votes.abstain)
            return percentage_met(self.votes.yes, options, threshold.threshold)

        if isinstance(threshold, AbsoluteCount):
            return self.votes.yes >= threshold.threshold

        raise TypeError(f"Unknown threshold: {threshold!r}")

    def is_rejected(self, block: BlockInfo) -> bool:
        """As is_passed, for proposals that can no longer pass."""
        if self.allow_revoting and not self.is_expired(block):
            return False

        threshold = self.threshold
        if isinstance(threshold, AbsolutePercentage):
            options = checked_sub(self.total_power, self.votes.abstain)
            return percentage_failed(self.votes.no, options, threshold.percentage)

        if isinstance(threshold, ThresholdQuorum):
            quorum_met = percentage_met(self.votes.total(), self.total_power, threshold.quorum)
            expired = self.is_expired(block)
            if quorum_met and expired:
                options = checked_sub(self.votes.total(), self.votes.abstain)
                return percentage_failed(self.votes.no, options, threshold.threshold)
            if not expired:
                options = checked_sub(self.total_power, self.votes.abstain)
                return percentage_failed(self.votes.no, options, threshold.threshold)
            # Quorum not met and voting has closed.
            return True

        if isinstance(threshold, AbsoluteCount):
            # Rejected if every outstanding vote voting yes still falls short.
            outstanding = checked_sub(self.total_power, self.votes.total())
            return self.votes.yes + outstanding < threshold.threshold

        raise TypeError(f"Unknown threshold: {threshold!r}")

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
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
            "threshold": self.threshold.to_dict(),
            "totalPower": str(self.total_power),
            "msgs": list(self.msgs),
            "status": self.status.to_dict(),
            "votes": self.votes.to_dict(),
            "allowRevoting": self.allow_revoting,
            "veto": self.veto.to_dict() if self.veto else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SingleChoiceProposal":
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
            threshold=threshold_from_dict(data["threshold"]),
            total_power=int(data["totalPower"]),
            msgs=list(data.get("msgs", [])),
            status=status_from_dict(data["status"]),
            votes=Votes.from_dict(data.get("votes", {})),
            allow_revoting=bool(data.get("allowRevoting", False)),
            veto=VetoConfig.from_dict(veto) if veto else None,
        )

    def __repr__(self) -> str:
        return f"<SingleChoiceProposal #{self.id} '{self.title}' status={self.status}>"
