"""Tests for the schedule generator."""

from datetime import date
from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lendflow.engine.schedule import (
    ScheduleRequest,
    add_months,
    generate_schedule,
    monthly_rate,
    parse_frequency,
    period_length_months,
    round2,
    set_entry_status,
    to_decimal,
)
from lendflow.exceptions import InvalidInputError
from lendflow.models import Frequency, PayoutFrequency, RateType, RepaymentType, ScheduleStatus

START = date(2025, 1, 15)


def _request(**overrides) -> ScheduleRequest:
    values = dict(
        principal=500000,
        rate=12,
        tenure=12,
        frequency=Frequency.MONTHLY,
        start_date=START,
        rate_type=RateType.YEARLY,
        repayment_type=RepaymentType.INTEREST_ONLY,
    )
    values.update(overrides)
    return ScheduleRequest(**values)


class TestHelpers:
    """Tests for rounding, conversion and calendar helpers."""

    def test_round2_half_up(self) -> None:
        assert round2(Decimal("2.345")) == Decimal("2.35")
        assert round2(Decimal("2.344")) == Decimal("2.34")
        assert round2(Decimal("-2.345")) == Decimal("-2.35")

    def test_to_decimal_from_float_avoids_binary_noise(self) -> None:
        assert to_decimal(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("value", ["abc", None, True, float("nan"), float("inf")])
    def test_to_decimal_rejects(self, value) -> None:
        with pytest.raises(InvalidInputError):
            to_decimal(value)

    def test_monthly_rate(self) -> None:
        assert monthly_rate(Decimal("12"), RateType.YEARLY) == Decimal("0.01")
        assert monthly_rate(Decimal("1.5"), RateType.MONTHLY) == Decimal("0.015")

    @pytest.mark.parametrize(
        "code,expected",
        [
            ("Monthly", 1),
            ("quarterly", 3),
            ("Half-Yearly", 6),
            ("half_yearly", 6),
            ("YEARLY", 12),
            (PayoutFrequency.ON_MATURITY, 18),
            ("on_maturity", 18),
        ],
    )
    def test_period_length(self, code, expected: int) -> None:
        assert period_length_months(code, 18) == expected

    def test_parse_frequency_unknown(self) -> None:
        with pytest.raises(InvalidInputError):
            parse_frequency("Weekly")

    def test_add_months_clamps_month_end(self) -> None:
        assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2025, 1, 31), 3) == date(2025, 4, 30)


class TestGenerateSchedule:
    """Tests for generate_schedule."""

    def test_monthly_interest_only(self) -> None:
        schedule = generate_schedule(_request())

        assert schedule.monthly_interest == Decimal("5000.00")
        assert len(schedule.entries) == 12
        assert all(e.interest_component == Decimal("5000.00") for e in schedule.entries)
        assert [e.principal_component for e in schedule.entries[:-1]] == [Decimal("0")] * 11
        assert schedule.entries[-1].principal_component == Decimal("500000")
        assert schedule.entries[-1].is_terminal_entry
        assert not any(e.is_terminal_entry for e in schedule.entries[:-1])
        assert schedule.total_interest == Decimal("60000.00")
        assert schedule.principal == Decimal("500000")
        assert schedule.total_repayable == Decimal("560000.00")

    def test_quarterly(self) -> None:
        schedule = generate_schedule(_request(frequency=Frequency.QUARTERLY))

        assert len(schedule.entries) == 4
        assert all(e.interest_component == Decimal("15000.00") for e in schedule.entries)
        assert schedule.entries[-1].principal_component == Decimal("500000")
        assert schedule.entries[-1].total_due == Decimal("515000.00")
        assert schedule.total_interest == Decimal("60000.00")

    def test_due_dates_and_sequence(self) -> None:
        schedule = generate_schedule(_request(frequency=Frequency.QUARTERLY))

        assert [e.sequence_number for e in schedule.entries] == [1, 2, 3, 4]
        assert [e.due_date for e in schedule.entries] == [
            date(2025, 4, 15),
            date(2025, 7, 15),
            date(2025, 10, 15),
            date(2026, 1, 15),
        ]
        assert schedule.end_date == date(2026, 1, 15)

    def test_all_entries_start_upcoming(self) -> None:
        schedule = generate_schedule(_request())

        assert {e.status for e in schedule.entries} == {ScheduleStatus.UPCOMING}

    def test_on_maturity_single_entry(self) -> None:
        schedule = generate_schedule(_request(frequency=PayoutFrequency.ON_MATURITY, tenure=18))

        assert len(schedule.entries) == 1
        entry = schedule.entries[0]
        assert entry.interest_component == Decimal("90000.00")
        assert entry.principal_component == Decimal("500000")
        assert entry.due_date == date(2026, 7, 15)

    def test_partial_final_period_accrues_full_period(self) -> None:
        # 10 months quarterly rounds up to four full quarters
        schedule = generate_schedule(_request(tenure=10, frequency=Frequency.QUARTERLY))

        assert len(schedule.entries) == 4
        assert [e.interest_component for e in schedule.entries] == [Decimal("15000.00")] * 4
        assert [e.due_date for e in schedule.entries] == [
            date(2025, 4, 15),
            date(2025, 7, 15),
            date(2025, 10, 15),
            date(2026, 1, 15),
        ]
        assert schedule.entries[-1].principal_component == Decimal("500000")
        assert schedule.total_interest == Decimal("60000.00")
        assert schedule.principal == Decimal("500000")
        assert schedule.end_date == date(2025, 11, 15)

    def test_monthly_rate_type(self) -> None:
        schedule = generate_schedule(_request(rate=Decimal("1.5"), rate_type="monthly"))

        assert schedule.monthly_interest == Decimal("7500.00")

    def test_rounding_per_period(self) -> None:
        # 100001 * 0.01 = 1000.01 per month
        schedule = generate_schedule(_request(principal=100001, frequency=Frequency.QUARTERLY))

        assert schedule.monthly_interest == Decimal("1000.01")
        assert schedule.entries[0].interest_component == Decimal("3000.03")
        assert schedule.total_interest == Decimal("12000.12")

    def test_bullet_matches_interest_only(self) -> None:
        bullet = generate_schedule(_request(repayment_type=RepaymentType.BULLET))
        interest_only = generate_schedule(_request())

        assert bullet == interest_only

    def test_zero_rate(self) -> None:
        schedule = generate_schedule(_request(rate=0))

        assert schedule.total_interest == Decimal("0.00")
        assert schedule.total_repayable == Decimal("500000.00")

    @pytest.mark.parametrize(
        "overrides",
        [
            {"principal": 0},
            {"principal": -100},
            {"rate": -1},
            {"tenure": 0},
            {"tenure": 1.5},
            {"tenure": True},
            {"frequency": "Weekly"},
            {"rate_type": "daily"},
            {"repayment_type": RepaymentType.EMI},
            {"repayment_type": "Amortizing"},
            {"principal": "lots"},
        ],
    )
    def test_invalid_input(self, overrides: dict) -> None:
        with pytest.raises(InvalidInputError):
            generate_schedule(_request(**overrides))

    def test_deterministic(self) -> None:
        assert generate_schedule(_request()) == generate_schedule(_request())


class TestScheduleProperties:
    """Property tests over arbitrary valid inputs."""

    @given(
        principal=st.decimals(min_value=1, max_value=10**9, places=2),
        rate=st.decimals(min_value=0, max_value=60, places=2),
        tenure=st.integers(min_value=1, max_value=120),
        frequency=st.sampled_from([*Frequency, PayoutFrequency.ON_MATURITY]),
        rate_type=st.sampled_from(list(RateType)),
    )
    def test_sums_reconcile(self, principal, rate, tenure, frequency, rate_type) -> None:
        schedule = generate_schedule(
            _request(principal=principal, rate=rate, tenure=tenure, frequency=frequency, rate_type=rate_type)
        )

        assert sum(e.interest_component for e in schedule.entries) == schedule.total_interest
        assert sum(e.total_due for e in schedule.entries) == schedule.total_interest + principal
        assert sum(e.principal_component for e in schedule.entries) == principal
        assert sum(1 for e in schedule.entries if e.is_terminal_entry) == 1
        assert len(schedule.entries) == -(-tenure // schedule.period_months)
        assert schedule.entries[-1].due_date == add_months(START, len(schedule.entries) * schedule.period_months)

    @given(
        principal=st.decimals(min_value=1, max_value=10**7, places=2),
        tenure=st.integers(min_value=1, max_value=60),
        frequency=st.sampled_from(list(Frequency)),
    )
    def test_deterministic(self, principal, tenure, frequency) -> None:
        request = _request(principal=principal, tenure=tenure, frequency=frequency)

        assert generate_schedule(request) == generate_schedule(request)


class TestSetEntryStatus:
    """Tests for set_entry_status."""

    def test_updates_only_target_entry(self) -> None:
        entries = generate_schedule(_request(frequency=Frequency.QUARTERLY)).entries

        updated = set_entry_status(entries, 2, ScheduleStatus.PAID)

        assert updated[1].status == ScheduleStatus.PAID
        assert [e.status for e in updated if e.sequence_number != 2] == [ScheduleStatus.UPCOMING] * 3
        assert entries[1].status == ScheduleStatus.UPCOMING
        assert updated[1].interest_component == entries[1].interest_component

    def test_accepts_status_code(self) -> None:
        entries = generate_schedule(_request()).entries

        assert set_entry_status(entries, 1, "Overdue")[0].status == ScheduleStatus.OVERDUE

    def test_unknown_sequence(self) -> None:
        entries = generate_schedule(_request()).entries

        with pytest.raises(InvalidInputError):
            set_entry_status(entries, 99, ScheduleStatus.PAID)

    def test_unknown_status(self) -> None:
        entries = generate_schedule(_request()).entries

        with pytest.raises(InvalidInputError):
            set_entry_status(entries, 1, "Waived")
