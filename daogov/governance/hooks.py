"""
Proposal and Vote Hooks

Subscribers registered under an address receive a notification after each
committed action:
  - NewProposal           when a proposal is created
  - ProposalStatusChanged when a proposal's stored status changes
  - NewVote               when a ballot is cast

Hooks run synchronously after the state is saved. A subscriber that raises
is removed from its registry and the action still succeeds.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Protocol, Union

from ..exceptions import GovernanceError
from ..logger import get_logger

logger = get_logger(__name__)


class HookError(GovernanceError):
    """Base hook error."""


class HookAlreadyRegisteredError(HookError):
    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Given address already registered as a hook: {address}")


class HookNotRegisteredError(HookError):
    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Given address not registered as a hook: {address}")


# ══════════════════════════════════════════════════════════════════════
#  NOTIFICATIONS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class NewProposal:
    proposal_id: int
    proposer: str

    def to_dict(self) -> Dict[str, Any]:
        return {"newProposal": {"id": self.proposal_id, "proposer": self.proposer}}


@dataclass(frozen=True)
class ProposalStatusChanged:
    proposal_id: int
    old_status: str
    new_status: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proposalStatusChanged": {
                "id": self.proposal_id,
                "oldStatus": self.old_status,
                "newStatus": self.new_status,
            }
        }


@dataclass(frozen=True)
class NewVote:
    proposal_id: int
    voter: str
    vote: str

    def to_dict(self) -> Dict[str, Any]:
        return {"newVote": {"proposalId": self.proposal_id, "voter": self.voter, "vote": self.vote}}


Notification = Union[NewProposal, ProposalStatusChanged, NewVote]


class HookSubscriber(Protocol):
    def __call__(self, notification: Notification) -> Any: ...


# ══════════════════════════════════════════════════════════════════════
#  REGISTRY
# ══════════════════════════════════════════════════════════════════════

class HookRegistry:
    """
    Subscribers keyed by address, called in registration order.
    """

    def __init__(self, name: str = "hooks") -> None:
        self.name = name
        self._hooks: Dict[str, HookSubscriber] = {}

    def add_hook(self, address: str, subscriber: HookSubscriber) -> None:
        if address in self._hooks:
            raise HookAlreadyRegisteredError(address)
        self._hooks[address] = subscriber
        logger.info(f"Hook registered on {self.name}: {address}")

    def remove_hook(self, address: str) -> None:
        if address not in self._hooks:
            raise HookNotRegisteredError(address)
        del self._hooks[address]
        logger.info(f"Hook removed from {self.name}: {address}")

    def hooks(self) -> List[str]:
        return list(self._hooks)

    @property
    def hook_count(self) -> int:
        return len(self._hooks)

    def __contains__(self, address: str) -> bool:
        return address in self._hooks

    def notify(self, notification: Notification) -> List[str]:
        """
        Deliver *notification* to every subscriber.

        Returns the addresses removed because their subscriber raised.
        """
        failed = []
        for address, subscriber in list(self._hooks.items()):
            try:
                subscriber(notification)
            except Exception as e:
                logger.warning(f"Hook {address} on {self.name} failed and was removed: {e}")
                failed.append(address)
        for address in failed:
            del self._hooks[address]
        return failed


# ── Notification builders ─────────────────────────────────────────────

def new_proposal_hooks(registry: HookRegistry, proposal_id: int, proposer: str) -> List[str]:
    return registry.notify(NewProposal(proposal_id, proposer))


def proposal_status_changed_hooks(
    registry: HookRegistry,
    proposal_id: int,
    old_status: str,
    new_status: str,
) -> List[str]:
    """Notify of a status change. No-op when the status did not change."""
    if old_status == new_status:
        return []
    return registry.notify(ProposalStatusChanged(proposal_id, old_status, new_status))


def new_vote_hooks(registry: HookRegistry, proposal_id: int, voter: str, vote: str) -> List[str]:
    return registry.notify(NewVote(proposal_id, voter, vote))
