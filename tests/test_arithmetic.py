"""
Vote arithmetic and threshold policy tests

Coverage:
  - checked uint128 add / subtract
  - exact percentage comparisons (no float rounding)
  - percentage_met / percentage_failed, including the 100% fail rule
  - threshold validation and dict round trips
"""

import os
import sys
from decimal import Decimal

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from daogov.constants import UINT128_MAX
from daogov.governance.arithmetic import (
    VoteCmp,
    VoteOverflowError,
    check_uint,
    checked_add,
    checked_sub,
    checked_sum,
    compare_vote_count,
    is_hundred_percent,
    percentage_failed,
    percentage_met,
)
from daogov.governance.threshold import (
    AbsoluteCount,
    AbsolutePercentage,
    InvalidPercentageError,
    Majority,
    Percent,
    ThresholdQuorum,
    UnreachableThresholdError,
    ZeroThresholdError,
    percent_atomics,
    percentage_from_dict,
    threshold_from_dict,
)


# ══════════════════════════════════════════════════════════════════════
#  CHECKED ARITHMETIC
# ══════════════════════════════════════════════════════════════════════

class TestCheckedArithmetic:
    """uint128 bounds."""

    def test_add(self):
        assert checked_add(2, 3) == 5

    def test_add_overflow_raises(self):
        with pytest.raises(VoteOverflowError, match="Overflow"):
            checked_add(UINT128_MAX, 1)

    def test_add_at_max(self):
        assert checked_add(UINT128_MAX - 1, 1) == UINT128_MAX

    def test_sub_underflow_raises(self):
        with pytest.raises(VoteOverflowError, match="Underflow"):
            checked_sub(3, 4)

    def test_sub(self):
        assert checked_sub(10, 4) == 6

    def test_negative_operand_raises(self):
        with pytest.raises(VoteOverflowError):
            check_uint(-1)

    def test_non_int_raises(self):
        with pytest.raises(TypeError):
            check_uint(Decimal("1"))

    def test_bool_is_not_a_uint(self):
        with pytest.raises(TypeError):
            check_uint(True)

    def test_sum(self):
        assert checked_sum([1, 2, 3]) == 6
        assert checked_sum([]) == 0

    def test_sum_overflow_raises(self):
        with pytest.raises(VoteOverflowError):
            checked_sum([UINT128_MAX, 1])

    def test_overflow_is_an_overflow_error(self):
        assert issubclass(VoteOverflowError, OverflowError)


# ══════════════════════════════════════════════════════════════════════
#  PERCENTAGES
# ══════════════════════════════════════════════════════════════════════

class TestPercent:
    """Fixed-point percentage values."""

    def test_atomics(self):
        assert percent_atomics(Decimal("0.5")) == 5 * 10 ** 17
        assert percent_atomics(Decimal(1)) == 10 ** 18

    def test_too_precise_raises(self):
        with pytest.raises(InvalidPercentageError):
            percent_atomics(Decimal("0.1234567890123456789"))

    def test_negative_raises(self):
        with pytest.raises(InvalidPercentageError):
            Percent(Decimal("-0.1"))

    def test_of_percent(self):
        assert Percent.of(60) == Percent(Decimal("0.6"))

    def test_of_ratio_truncates(self):
        p = Percent.of(7, 13)
        assert percent_atomics(p.percent) == 538461538461538461

    def test_of_zero_denominator_raises(self):
        with pytest.raises(InvalidPercentageError):
            Percent.of(1, 0)

    def test_equal_by_value(self):
        assert Percent(Decimal("0.50")) == Percent(Decimal("0.5"))

    def test_dict_round_trip(self):
        for p in (Majority(), Percent.of(7, 13), Percent(Decimal("0.2"))):
            assert percentage_from_dict(p.to_dict()) == p

    def test_is_hundred_percent(self):
        assert is_hundred_percent(Percent(Decimal(1)))
        assert not is_hundred_percent(Percent.of(99))
        assert not is_hundred_percent(Majority())


class TestCompareVoteCount:

    def test_geq_exact(self):
        assert compare_vote_count(5, VoteCmp.GEQ, 10, Decimal("0.5"))
        assert not compare_vote_count(5, VoteCmp.GREATER, 10, Decimal("0.5"))

    def test_large_values_do_not_lose_precision(self):
        total = UINT128_MAX
        half = total // 2
        assert not compare_vote_count(half, VoteCmp.GEQ, total, Decimal("0.5"))
        assert compare_vote_count(half + 1, VoteCmp.GEQ, total, Decimal("0.5"))


class TestPercentageMet:

    def test_zero_total_never_met(self):
        assert not percentage_met(0, 0, Majority())
        assert not percentage_met(0, 0, Percent(Decimal(0)))

    def test_majority_is_strict(self):
        assert not percentage_met(5, 10, Majority())
        assert percentage_met(6, 10, Majority())
        assert percentage_met(7, 13, Majority())
        assert not percentage_met(7, 14, Majority())

    def test_percent_is_inclusive(self):
        assert percentage_met(5, 10, Percent.of(50))
        assert not percentage_met(4, 10, Percent.of(50))

    def test_tricky_ratio(self):
        assert percentage_met(7, 13, Percent.of(7, 13))
        assert percentage_met(6, 13, Percent.of(6, 13))

    def test_zero_quorum_met_by_anything(self):
        assert percentage_met(0, 10, Percent(Decimal(0)))


class TestPercentageFailed:

    def test_zero_total_fails(self):
        assert percentage_failed(0, 0, Majority())
        assert percentage_failed(0, 0, Percent.of(50))

    def test_majority(self):
        # Half saying no is enough to block a strict majority.
        assert percentage_failed(5, 10, Majority())
        assert not percentage_failed(4, 10, Majority())
        assert percentage_failed(7, 13, Majority())
        assert not percentage_failed(7, 15, Majority())

    def test_percent(self):
        # 60% needed: more than 40% no makes it unreachable.
        assert not percentage_failed(4, 10, Percent.of(60))
        assert percentage_failed(5, 10, Percent.of(60))

    def test_hundred_percent_fails_on_first_no(self):
        p = Percent(Decimal(1))
        assert not percentage_failed(0, 10, p)
        assert percentage_failed(1, 10, p)
        assert percentage_failed(1, UINT128_MAX, p)

    def test_rounding_does_not_reject_reachable_threshold(self):
        # 6/13 truncated: 6 yes of 13 passes, so 7 no must not reject.
        assert not percentage_failed(7, 13, Percent.of(6, 13))

    def test_met_and_failed_never_overlap(self):
        thresholds = [Majority(), Percent(Decimal(1))] + [Percent.of(n) for n in (1, 33, 50, 51, 99)]
        for threshold in thresholds:
            for total in range(0, 12):
                for yes in range(0, total + 1):
                    for no in range(0, total - yes + 1):
                        assert not (
                            percentage_met(yes, total, threshold)
                            and percentage_failed(no, total, threshold)
                        ), (threshold, total, yes, no)


# ══════════════════════════════════════════════════════════════════════
#  THRESHOLD POLICIES
# ══════════════════════════════════════════════════════════════════════

class TestThresholdValidation:

    def test_absolute_count_zero_raises(self):
        with pytest.raises(ZeroThresholdError):
            AbsoluteCount(0).validate()

    def test_absolute_count_valid(self):
        AbsoluteCount(1).validate()

    def test_zero_percentage_raises(self):
        with pytest.raises(ZeroThresholdError):
            AbsolutePercentage(Percent(Decimal(0))).validate()

    def test_over_hundred_percent_raises(self):
        with pytest.raises(UnreachableThresholdError):
            AbsolutePercentage(Percent(Decimal("1.01"))).validate()

    def test_hundred_percent_is_valid(self):
        AbsolutePercentage(Percent(Decimal(1))).validate()

    def test_zero_quorum_is_valid(self):
        ThresholdQuorum(threshold=Majority(), quorum=Percent(Decimal(0))).validate()

    def test_quorum_over_hundred_raises(self):
        with pytest.raises(UnreachableThresholdError):
            ThresholdQuorum(threshold=Majority(), quorum=Percent(Decimal(2))).validate()

    def test_quorum_threshold_zero_raises(self):
        with pytest.raises(ZeroThresholdError):
            ThresholdQuorum(threshold=Percent(Decimal(0)), quorum=Majority()).validate()

    def test_dict_round_trip(self):
        for threshold in (
            AbsoluteCount(10),
            AbsolutePercentage(Majority()),
            ThresholdQuorum(threshold=Percent.of(60), quorum=Percent.of(20)),
        ):
            assert threshold_from_dict(threshold.to_dict()) == threshold
