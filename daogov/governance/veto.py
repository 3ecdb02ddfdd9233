"""
Veto Configuration

When a proposal with a veto configuration passes, it enters a timelock
(``VetoTimelock``) lasting ``timelock_duration`` past the proposal's
expiration. During the timelock the designated vetoer may block it.

Flags:
  - veto_before_passed: the vetoer may also veto while voting is open
  - early_execute:      the vetoer may execute during the timelock
"""

from dataclasses import dataclass
from typing import Any, Dict

from ..exceptions import GovernanceError
from .errors import UnauthorizedError
from .expiration import (
    Duration,
    DurationUnitsConflictError,
    duration_from_dict,
    same_units,
)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class VetoError(GovernanceError):
    """Base veto error."""


class NoVetoConfigurationError(VetoError):
    """Proposal is not vetoable."""


class TimelockExpiredError(VetoError):
    """The veto timelock has already elapsed."""


class TimelockedError(VetoError):
    """Proposal is timelocked and cannot be executed yet."""


class InvalidProposalStatusError(VetoError):
    """Proposal is not in a status that can be vetoed."""


class NoVetoBeforePassedError(VetoError):
    """Vetoing before a proposal passes is disabled."""


class NoEarlyExecuteError(VetoError):
    """Early execution by the vetoer is disabled."""


# ══════════════════════════════════════════════════════════════════════
#  CONFIG
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class VetoConfig:
    timelock_duration: Duration
    vetoer: str
    early_execute: bool = False
    veto_before_passed: bool = False

    def validate(self, max_voting_period: Duration) -> None:
        if not self.vetoer:
            raise GovernanceError("Vetoer address is required")
        if not same_units(self.timelock_duration, max_voting_period):
            raise DurationUnitsConflictError(
                "Veto timelock duration must use the same units as the max voting period"
            )

    def check_is_vetoer(self, sender: str) -> None:
        if sender != self.vetoer:
            raise UnauthorizedError(f"{sender} is not the vetoer")

    def check_early_execute_enabled(self) -> None:
        if not self.early_execute:
            raise NoEarlyExecuteError("Early execution during the veto timelock is disabled")

    def check_veto_before_passed_enabled(self) -> None:
        if not self.veto_before_passed:
            raise NoVetoBeforePassedError("Veto before a proposal passes is disabled")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timelockDuration": self.timelock_duration.to_dict(),
            "vetoer": self.vetoer,
            "earlyExecute": self.early_execute,
            "vetoBeforePassed": self.veto_before_passed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VetoConfig":
        return cls(
            timelock_duration=duration_from_dict(data["timelockDuration"]),
            vetoer=data["vetoer"],
            early_execute=bool(data.get("earlyExecute", False)),
            veto_before_passed=bool(data.get("vetoBeforePassed", False)),
        )
