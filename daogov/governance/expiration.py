"""
Block-relative time

Expirations are never driven by a running clock. Every check compares a
stored height or timestamp against the ``BlockInfo`` of the action being
processed, so a proposal's deadlines are evaluated lazily.
"""

from dataclasses import dataclass
from typing import Any, Dict, Union

from ..exceptions import GovernanceError


class DurationUnitsConflictError(GovernanceError):
    """Heights and times were mixed in a single calculation."""


class InvalidMinVotingPeriodError(GovernanceError):
    """Min voting period must be less than or equal to the max voting period."""


@dataclass(frozen=True)
class BlockInfo:
    """The current block: height and time in seconds."""
    height: int
    time: int

    def to_dict(self) -> Dict[str, Any]:
        return {"height": self.height, "time": self.time}


# ══════════════════════════════════════════════════════════════════════
#  DURATION
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Height:
    """A span of blocks."""
    blocks: int

    def after(self, block: BlockInfo) -> "AtHeight":
        return AtHeight(block.height + self.blocks)

    def to_dict(self) -> Dict[str, Any]:
        return {"height": self.blocks}


@dataclass(frozen=True)
class Time:
    """A span of seconds."""
    seconds: int

    def after(self, block: BlockInfo) -> "AtTime":
        return AtTime(block.time + self.seconds)

    def to_dict(self) -> Dict[str, Any]:
        return {"time": self.seconds}


Duration = Union[Height, Time]


def duration_from_dict(data: Dict[str, Any]) -> Duration:
    if "height" in data:
        return Height(int(data["height"]))
    if "time" in data:
        return Time(int(data["time"]))
    raise GovernanceError(f"Unknown duration: {data!r}")


def same_units(a: Duration, b: Duration) -> bool:
    return type(a) is type(b)


def validate_voting_period(min_period, max_period: Duration):
    """
    Check that *min_period* (optional) uses the same units as *max_period*
    and is not longer than it. Returns the pair unchanged.
    """
    if min_period is not None:
        if not same_units(min_period, max_period):
            raise DurationUnitsConflictError(
                "Min and max voting periods must use the same units"
            )
        if _duration_value(min_period) > _duration_value(max_period):
            raise InvalidMinVotingPeriodError(
                "Min voting period must be less than or equal to max voting period"
            )
    return min_period, max_period


def _duration_value(d: Duration) -> int:
    return d.blocks if isinstance(d, Height) else d.seconds


# ══════════════════════════════════════════════════════════════════════
#  EXPIRATION
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AtHeight:
    """Expires once the chain reaches ``height``."""
    height: int

    def is_expired(self, block: BlockInfo) -> bool:
        return block.height >= self.height

    def plus(self, duration: Duration) -> "Expiration":
        if not isinstance(duration, Height):
            raise DurationUnitsConflictError("Cannot add a time duration to a height expiration")
        return AtHeight(self.height + duration.blocks)

    def to_dict(self) -> Dict[str, Any]:
        return {"atHeight": self.height}

    def __str__(self) -> str:
        return f"expiration height: {self.height}"


@dataclass(frozen=True)
class AtTime:
    """Expires once block time reaches ``time`` (seconds)."""
    time: int

    def is_expired(self, block: BlockInfo) -> bool:
        return block.time >= self.time

    def plus(self, duration: Duration) -> "Expiration":
        if not isinstance(duration, Time):
            raise DurationUnitsConflictError("Cannot add a height duration to a time expiration")
        return AtTime(self.time + duration.seconds)

    def to_dict(self) -> Dict[str, Any]:
        return {"atTime": self.time}

    def __str__(self) -> str:
        return f"expiration time: {self.time}"


@dataclass(frozen=True)
class Never:
    """Never expires."""

    def is_expired(self, block: BlockInfo) -> bool:
        return False

    def plus(self, duration: Duration) -> "Expiration":
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {"never": {}}

    def __str__(self) -> str:
        return "expiration: never"


Expiration = Union[AtHeight, AtTime, Never]


def expiration_from_dict(data: Dict[str, Any]) -> Expiration:
    if "atHeight" in data:
        return AtHeight(int(data["atHeight"]))
    if "atTime" in data:
        return AtTime(int(data["atTime"]))
    if "never" in data:
        return Never()
    raise GovernanceError(f"Unknown expiration: {data!r}")
