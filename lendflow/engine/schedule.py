"""Repayment and payout schedule generation.

Turns an instrument's principal, rate, tenure and frequency into an
ordered, deterministic tuple of ``ScheduleEntry`` records. Interest is
paid every period and the principal is repaid in full with the last
entry; no amortizing paydown is modelled.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any

from dateutil.relativedelta import relativedelta

from lendflow.exceptions import InvalidInputError
from lendflow.models.enums import (
    Frequency,
    PayoutFrequency,
    RateType,
    RepaymentType,
    ScheduleStatus,
)
from lendflow.models.instrument import ScheduleEntry

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
MONTHS_PER_YEAR = Decimal("12")

SCHEDULABLE_REPAYMENT_TYPES = frozenset({RepaymentType.INTEREST_ONLY, RepaymentType.BULLET})

# Period length in months per frequency code; on_maturity spans the full tenure.
PERIOD_MONTHS: dict[str, int | None] = {
    "monthly": 1,
    "quarterly": 3,
    "half-yearly": 6,
    "yearly": 12,
    "on-maturity": None,
}


def round2(value: Decimal) -> Decimal:
    """Round a currency amount to cents, half-up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Any, field_name: str = "value") -> Decimal:
    """Convert ``int``, ``float``, ``str`` or ``Decimal`` input to ``Decimal``.

    Floats go through ``str()`` so that ``0.1`` stays ``Decimal("0.1")``.

    Raises
    ------
    InvalidInputError
        If the value is not numeric or not finite.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidInputError(f"{field_name} must be a number, got {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation as exc:
            raise InvalidInputError(f"{field_name} must be a number, got {value!r}") from exc
    if not result.is_finite():
        raise InvalidInputError(f"{field_name} must be finite, got {value!r}")
    return result


def _code(value: Any) -> str:
    raw = value.value if isinstance(value, Enum) else value
    if not isinstance(raw, str):
        raise InvalidInputError(f"Unknown code {value!r}")
    return raw.strip().lower().replace("_", "-")


def parse_rate_type(value: Any) -> RateType:
    """Resolve a rate type code (``monthly`` | ``yearly``), case-insensitive."""
    code = _code(value)
    for rate_type in RateType:
        if rate_type.value == code:
            return rate_type
    raise InvalidInputError(f"Unknown rate type {value!r}")


def parse_repayment_type(value: Any) -> RepaymentType:
    """Resolve a repayment style, rejecting styles the generator cannot schedule."""
    code = _code(value)
    for repayment_type in RepaymentType:
        if repayment_type.value.lower() == code:
            if repayment_type not in SCHEDULABLE_REPAYMENT_TYPES:
                raise InvalidInputError(
                    f"Repayment type {repayment_type.value} cannot be scheduled; "
                    "use Interest-Only or Bullet"
                )
            return repayment_type
    raise InvalidInputError(f"Unknown repayment type {value!r}")


def parse_frequency(value: Any) -> Frequency | PayoutFrequency:
    """Resolve a repayment or payout frequency code, case-insensitive.

    ``Monthly`` / ``monthly`` resolve to the repayment enum; ``on_maturity``
    only exists as a payout frequency.
    """
    if isinstance(value, (Frequency, PayoutFrequency)):
        return value
    code = _code(value)
    for frequency in Frequency:
        if frequency.value.lower() == code:
            return frequency
    for payout in PayoutFrequency:
        if _code(payout) == code:
            return payout
    raise InvalidInputError(f"Unknown frequency {value!r}")


def period_length_months(frequency: Any, tenure: int) -> int:
    """Months between due dates for ``frequency`` over a ``tenure``-month term."""
    months = PERIOD_MONTHS[_code(parse_frequency(frequency))]
    return tenure if months is None else months


def monthly_rate(rate: Decimal, rate_type: RateType) -> Decimal:
    """Normalize a percentage rate to a monthly decimal rate."""
    if rate_type == RateType.YEARLY:
        return rate / MONTHS_PER_YEAR / HUNDRED
    return rate / HUNDRED


def add_months(start: date, months: int) -> date:
    """Add calendar months, clamping to the last day of shorter months."""
    return start + relativedelta(months=months)


@dataclass(frozen=True)
class ScheduleRequest:
    """Inputs for one schedule."""

    principal: Any
    rate: Any  # percent
    tenure: int  # months
    frequency: Any  # Frequency, PayoutFrequency or code string
    start_date: date
    rate_type: Any = RateType.YEARLY
    repayment_type: Any = RepaymentType.INTEREST_ONLY


@dataclass(frozen=True)
class Schedule:
    """Generated schedule with its derived totals."""

    entries: tuple[ScheduleEntry, ...]
    monthly_interest: Decimal
    total_interest: Decimal
    total_repayable: Decimal
    period_months: int
    end_date: date

    @property
    def total_payout(self) -> Decimal:
        """Investor-side name for ``total_repayable``."""
        return self.total_repayable

    @property
    def principal(self) -> Decimal:
        """Principal repaid on the terminal entry."""
        return self.total_repayable - self.total_interest


def generate_schedule(request: ScheduleRequest) -> Schedule:
    """Generate the cash-flow schedule for an instrument.

    Parameters
    ----------
    request : ScheduleRequest
        Principal, rate, tenure, frequency, start date and styles.

    Returns
    -------
    Schedule
        Entries ordered by sequence number plus totals. The sum of
        ``interest_component`` is the authoritative ``total_interest``.

    Raises
    ------
    InvalidInputError
        If principal is not positive, rate is negative, tenure is not a
        positive whole number of months, or a code is unknown.
    """
    principal = to_decimal(request.principal, "principal")
    if principal <= 0:
        raise InvalidInputError(f"principal must be positive, got {principal}")

    rate = to_decimal(request.rate, "rate")
    if rate < 0:
        raise InvalidInputError(f"rate must not be negative, got {rate}")

    tenure = request.tenure
    if isinstance(tenure, bool) or not isinstance(tenure, int) or tenure < 1:
        raise InvalidInputError(f"tenure must be a whole number of months >= 1, got {tenure!r}")

    if not isinstance(request.start_date, date):
        raise InvalidInputError(f"start_date must be a date, got {request.start_date!r}")

    rate_type = parse_rate_type(request.rate_type)
    parse_repayment_type(request.repayment_type)
    period = period_length_months(request.frequency, tenure)

    monthly_interest = round2(principal * monthly_rate(rate, rate_type))
    periods = -(-tenure // period)  # ceil

    entries = []
    for i in range(1, periods + 1):
        is_terminal = i == periods
        # Every period, the last included, accrues a full period of interest.
        due_date = add_months(request.start_date, i * period)
        interest = round2(monthly_interest * period)
        principal_component = principal if is_terminal else Decimal("0")
        entry = ScheduleEntry(
            sequence_number=i,
            due_date=due_date,
            interest_component=interest,
            principal_component=principal_component,
            total_due=interest + principal_component,
            is_terminal_entry=is_terminal,
        )
        logger.debug(
            "Schedule entry %d due %s: interest=%s principal=%s",
            i,
            due_date.isoformat(),
            interest,
            principal_component,
        )
        entries.append(entry)

    total_interest = sum((e.interest_component for e in entries), Decimal("0"))

    return Schedule(
        entries=tuple(entries),
        monthly_interest=monthly_interest,
        total_interest=total_interest,
        total_repayable=total_interest + principal,
        period_months=period,
        end_date=add_months(request.start_date, tenure),
    )


def set_entry_status(
    entries: tuple[ScheduleEntry, ...],
    sequence_number: int,
    status: ScheduleStatus | str,
) -> tuple[ScheduleEntry, ...]:
    """Return a copy of ``entries`` with one entry's status changed.

    Raises
    ------
    InvalidInputError
        If the status is unknown or no entry has ``sequence_number``.
    """
    try:
        new_status = ScheduleStatus(status)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown schedule status {status!r}") from exc

    if not any(e.sequence_number == sequence_number for e in entries):
        raise InvalidInputError(f"No schedule entry with sequence number {sequence_number}")

    return tuple(
        replace(e, status=new_status) if e.sequence_number == sequence_number else e
        for e in entries
    )
