"""
Vote Arithmetic

Exact, overflow-checked integer arithmetic for vote tallies:
  - checked_add / checked_sub over unsigned 128-bit quantities
  - compare_vote_count: cross-multiplied percentage comparison
  - percentage_met / percentage_failed: the pass and fail predicates
    every threshold policy is built on

No floating point is used anywhere. A percentage ``p`` with up to
PERCENT_DECIMAL_PLACES fractional digits is represented by its integer
"atomics" ``p * 10**18``; comparisons cross-multiply instead of divide.
"""

from decimal import Decimal
from enum import Enum
from typing import Iterable

from ..constants import PERCENT_DECIMAL_PLACES, PERCENT_ONE, UINT128_MAX
from ..exceptions import GovernanceError
from .threshold import Majority, Percent, PercentageThreshold, percent_atomics

_PERCENT_SCALE = 10 ** PERCENT_DECIMAL_PLACES


class VoteOverflowError(GovernanceError, OverflowError):
    """An add or subtract left the unsigned 128-bit range."""


# ══════════════════════════════════════════════════════════════════════
#  CHECKED UNSIGNED ARITHMETIC
# ══════════════════════════════════════════════════════════════════════

def check_uint(value: int, what: str = "value") -> int:
    """Return *value* unchanged if it is an int in ``[0, UINT128_MAX]``."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{what} must be an int, got {type(value).__name__}")
    if value < 0 or value > UINT128_MAX:
        raise VoteOverflowError(f"{what} {value} is outside the uint128 range")
    return value


def checked_add(a: int, b: int) -> int:
    result = check_uint(a, "left operand") + check_uint(b, "right operand")
    if result > UINT128_MAX:
        raise VoteOverflowError(f"Overflow: {a} + {b}")
    return result


def checked_sub(a: int, b: int) -> int:
    result = check_uint(a, "left operand") - check_uint(b, "right operand")
    if result < 0:
        raise VoteOverflowError(f"Underflow: {a} - {b}")
    return result


def checked_sum(values: Iterable[int]) -> int:
    total = 0
    for v in values:
        total = checked_add(total, v)
    return total


# ══════════════════════════════════════════════════════════════════════
#  PERCENTAGE COMPARISONS
# ══════════════════════════════════════════════════════════════════════

class VoteCmp(Enum):
    GREATER = ">"
    GEQ = ">="


def compare_vote_count(votes: int, cmp: VoteCmp, total_power: int, percent: Decimal) -> bool:
    """
    Compare ``votes / total_power`` against *percent* exactly.

    Evaluated as ``votes * 10**18 (cmp) total_power * atomics(percent)``.
    Python integers are unbounded, so the products cannot wrap.
    """
    lhs = check_uint(votes, "votes") * _PERCENT_SCALE
    rhs = check_uint(total_power, "total_power") * percent_atomics(percent)
    if cmp is VoteCmp.GREATER:
        return lhs > rhs
    return lhs >= rhs


def is_hundred_percent(threshold: PercentageThreshold) -> bool:
    return isinstance(threshold, Percent) and threshold.percent == PERCENT_ONE


def percentage_met(count: int, total: int, threshold: PercentageThreshold) -> bool:
    """
    Does *count* out of *total* meet the pass *threshold*?

    Majority requires a strict ``2 * count > total``; an explicit percentage
    requires ``count / total >= p``. With nothing to vote on (``total == 0``)
    the threshold is never met.
    """
    check_uint(count, "count")
    if check_uint(total, "total") == 0:
        return False
    if isinstance(threshold, Majority):
        return 2 * count > total
    if isinstance(threshold, Percent):
        return compare_vote_count(count, VoteCmp.GEQ, total, threshold.percent)
    raise TypeError(f"Unknown percentage threshold: {threshold!r}")


def percentage_failed(count: int, total: int, threshold: PercentageThreshold) -> bool:
    """
    Does *count* dissenting votes out of *total* make the pass *threshold*
    unreachable?

    This is not ``not percentage_met`` on the complementary fraction: a 100%
    pass threshold inverted gives a 0% fail threshold, which zero dissenting
    votes would already meet. At exactly 100% a proposal fails as soon as a
    single dissenting vote exists. With nothing to vote on (``total == 0``)
    the proposal fails.
    """
    check_uint(count, "count")
    if check_uint(total, "total") == 0:
        return True
    if is_hundred_percent(threshold):
        return count >= 1
    if isinstance(threshold, Majority):
        return 2 * count >= total
    if isinstance(threshold, Percent):
        return compare_vote_count(
            count, VoteCmp.GREATER, total, PERCENT_ONE - threshold.percent
        )
    raise TypeError(f"Unknown percentage threshold: {threshold!r}")
