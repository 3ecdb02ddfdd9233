"""
Proposal Status

Lifecycle states of a proposal and the graph of legal transitions between
them. The status stored on a proposal is a cache of the last recomputation;
readers must call ``current_status`` rather than trust it.

    Open ──► Passed ──► Executed | ExecutionFailed
      │  └─► VetoTimelock ──► Passed | Vetoed
      │  └─► Vetoed            (veto before passed)
      └────► Rejected ──► Closed
"""

from dataclasses import dataclass
from typing import Any, Dict, Set, Type, Union

from .expiration import Expiration, expiration_from_dict


@dataclass(frozen=True)
class Open:
    """Voting is in progress and the outcome is not yet certain."""
    name = "open"

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.name}

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Rejected:
    """The proposal can no longer pass."""
    name = "rejected"

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.name}

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Passed:
    """The proposal passed and may be executed."""
    name = "passed"

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.name}

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Executed:
    name = "executed"

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.name}

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Closed:
    """A rejected proposal that has been closed."""
    name = "closed"

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.name}

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ExecutionFailed:
    """Execution was attempted and the payload failed."""
    name = "execution_failed"

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.name}

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Vetoed:
    name = "vetoed"

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.name}

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class VetoTimelock:
    """Passed, but the vetoer may still block it until ``expiration``."""
    expiration: Expiration
    name = "veto_timelock"

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.name, "expiration": self.expiration.to_dict()}

    def __str__(self) -> str:
        return self.name


Status = Union[Open, Rejected, Passed, Executed, Closed, ExecutionFailed, Vetoed, VetoTimelock]

_SIMPLE_STATUSES: Dict[str, Status] = {
    s.name: s for s in (
        Open(), Rejected(), Passed(), Executed(), Closed(), ExecutionFailed(), Vetoed()
    )
}

# Valid forward transitions
_VALID_TRANSITIONS: Dict[Type, Set[Type]] = {
    Open:            {Passed, Rejected, VetoTimelock, Vetoed},
    VetoTimelock:    {Passed, Vetoed, Executed, ExecutionFailed},
    Passed:          {Executed, ExecutionFailed},
    Rejected:        {Closed},
    # Terminal states: no further transitions
    Executed:        set(),
    ExecutionFailed: set(),
    Closed:          set(),
    Vetoed:          set(),
}

TERMINAL_STATUSES = frozenset(t for t, nxt in _VALID_TRANSITIONS.items() if not nxt)


def can_transition(old: Status, new: Status) -> bool:
    """True if moving from *old* to *new* is allowed (or is no change)."""
    if old == new:
        return True
    return type(new) in _VALID_TRANSITIONS.get(type(old), set())


def is_terminal(status: Status) -> bool:
    return type(status) in TERMINAL_STATUSES


def status_from_dict(data: Dict[str, Any]) -> Status:
    name = data["status"]
    if name == VetoTimelock.name:
        return VetoTimelock(expiration_from_dict(data["expiration"]))
    try:
        return _SIMPLE_STATUSES[name]
    except KeyError:
        raise ValueError(f"Unknown proposal status: {name!r}") from None
