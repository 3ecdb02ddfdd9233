"""
Threshold Policies

The ways a proposal may reach its passing / failing threshold.

A percentage is either ``Majority`` (strictly more than half) or an explicit
``Percent``. With 10 voters and a 60% threshold, 6 yes votes are expected to
pass, so an explicit percentage passes on ``yes >= total * p``. A 50% percent
threshold therefore passes a 5-5 split; ``Majority`` exists for the
``yes > total / 2`` rule that users usually mean.

Policies:
  - AbsoluteCount:      a fixed number of yes votes passes
  - AbsolutePercentage: a percentage of all eligible power must vote yes
  - ThresholdQuorum:    a quorum must participate, then a percentage of the
                        non-abstaining participants must vote yes
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Union

from ..constants import PERCENT_DECIMAL_PLACES, PERCENT_ONE
from ..exceptions import GovernanceError


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class ThresholdError(GovernanceError):
    """Base threshold validation error."""


class ZeroThresholdError(ThresholdError):
    """Required threshold cannot be zero."""


class UnreachableThresholdError(ThresholdError):
    """Not possible to reach required (passing) threshold."""


class InvalidPercentageError(ThresholdError, ValueError):
    """A percentage cannot be represented at the fixed-point precision."""


def percent_atomics(percent: Decimal) -> int:
    """
    Integer representation of *percent* at PERCENT_DECIMAL_PLACES precision.

    Raises InvalidPercentageError if the value is negative, not finite, or
    carries more precision than can be represented exactly.
    """
    try:
        percent = Decimal(percent)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise InvalidPercentageError(f"Invalid percentage: {percent!r}") from e
    if not percent.is_finite() or percent < 0:
        raise InvalidPercentageError(f"Invalid percentage: {percent}")
    scaled = percent.scaleb(PERCENT_DECIMAL_PLACES)
    if scaled != scaled.to_integral_value():
        raise InvalidPercentageError(
            f"Percentage {percent} has more than {PERCENT_DECIMAL_PLACES} decimal places"
        )
    return int(scaled)


# ══════════════════════════════════════════════════════════════════════
#  PERCENTAGE THRESHOLD
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Majority:
    """More than half of the counted power must vote yes."""

    def to_dict(self) -> Dict[str, Any]:
        return {"majority": {}}


@dataclass(frozen=True)
class Percent:
    """At least ``percent`` of the counted power must vote yes."""
    percent: Decimal

    def __post_init__(self):
        # Normalise ints / strings so equality and hashing are by value
        object.__setattr__(self, "percent", Decimal(self.percent))
        percent_atomics(self.percent)

    @classmethod
    def of(cls, numerator: int, denominator: int = 100) -> "Percent":
        """
        Build a Percent from a ratio, truncated to the fixed-point precision.

        ``Percent.of(60)`` is 60%; ``Percent.of(7, 13)`` is 7/13 rounded down
        to 18 decimal places.
        """
        if denominator == 0:
            raise InvalidPercentageError("Percentage denominator cannot be zero")
        atomics = numerator * 10 ** PERCENT_DECIMAL_PLACES // denominator
        return cls(Decimal(atomics).scaleb(-PERCENT_DECIMAL_PLACES))

    def to_dict(self) -> Dict[str, Any]:
        return {"percent": str(self.percent)}


PercentageThreshold = Union[Majority, Percent]


def percentage_from_dict(data: Dict[str, Any]) -> PercentageThreshold:
    if "majority" in data:
        return Majority()
    if "percent" in data:
        return Percent(Decimal(str(data["percent"])))
    raise InvalidPercentageError(f"Unknown percentage threshold: {data!r}")


def validate_percentage(percent: PercentageThreshold) -> None:
    """Asserts that 0.0 < percent <= 1.0 for pass thresholds."""
    if isinstance(percent, Percent):
        if percent.percent == 0:
            raise ZeroThresholdError("Required threshold cannot be zero")
        if percent.percent > PERCENT_ONE:
            raise UnreachableThresholdError(
                f"Threshold {percent.percent} is above 100% and can never be reached"
            )


def validate_quorum(quorum: PercentageThreshold) -> None:
    """Asserts that quorum <= 1. Quorums may be zero, to enable plurality-style voting."""
    if isinstance(quorum, Percent) and quorum.percent > PERCENT_ONE:
        raise UnreachableThresholdError(
            f"Quorum {quorum.percent} is above 100% and can never be reached"
        )


# ══════════════════════════════════════════════════════════════════════
#  THRESHOLD POLICY
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AbsoluteCount:
    """An absolute number of yes votes needed to pass. Multisig style."""
    threshold: int

    def validate(self) -> None:
        if self.threshold <= 0:
            raise ZeroThresholdError("Required threshold cannot be zero")

    def to_dict(self) -> Dict[str, Any]:
        return {"absoluteCount": {"threshold": str(self.threshold)}}


@dataclass(frozen=True)
class AbsolutePercentage:
    """A percentage of the total eligible weight that must cast yes votes."""
    percentage: PercentageThreshold

    def validate(self) -> None:
        validate_percentage(self.percentage)

    def to_dict(self) -> Dict[str, Any]:
        return {"absolutePercentage": {"percentage": self.percentage.to_dict()}}


@dataclass(frozen=True)
class ThresholdQuorum:
    """
    A ``quorum`` of the total weight must participate before the vote counts
    at all; once it does, ``threshold`` of the non-abstaining votes must be yes.
    """
    threshold: PercentageThreshold
    quorum: PercentageThreshold

    def validate(self) -> None:
        validate_percentage(self.threshold)
        validate_quorum(self.quorum)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "thresholdQuorum": {
                "threshold": self.threshold.to_dict(),
                "quorum": self.quorum.to_dict(),
            }
        }


Threshold = Union[AbsoluteCount, AbsolutePercentage, ThresholdQuorum]


def threshold_from_dict(data: Dict[str, Any]) -> Threshold:
    if "absoluteCount" in data:
        return AbsoluteCount(int(data["absoluteCount"]["threshold"]))
    if "absolutePercentage" in data:
        return AbsolutePercentage(
            percentage_from_dict(data["absolutePercentage"]["percentage"])
        )
    if "thresholdQuorum" in data:
        body = data["thresholdQuorum"]
        return ThresholdQuorum(
            threshold=percentage_from_dict(body["threshold"]),
            quorum=percentage_from_dict(body["quorum"]),
        )
    raise ThresholdError(f"Unknown threshold policy: {data!r}")
