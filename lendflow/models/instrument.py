"""Loan and investment instruments with their cash-flow schedules."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from lendflow.models.enums import (
    Frequency,
    InvestmentStatus,
    LoanStatus,
    PayoutFrequency,
    RateType,
    RepaymentType,
    ScheduleStatus,
)


@dataclass(frozen=True)
class ScheduleEntry:
    """One due-date line of a repayment or payout schedule.

    Only ``status`` may change after generation; use
    ``lendflow.engine.schedule.set_entry_status`` to get an updated copy.
    """

    sequence_number: int  # 1, 2, 3, ...
    due_date: date
    interest_component: Decimal
    principal_component: Decimal
    total_due: Decimal
    is_terminal_entry: bool
    status: ScheduleStatus = ScheduleStatus.UPCOMING


@dataclass
class InvestorAllocation:
    """Share of a loan funded by one investment. Stored, never computed."""

    investment_id: str
    amount: Decimal


@dataclass
class BorrowerLoan:
    """Loan created when a borrower inquiry is approved."""

    loan_id: str  # empty until the store assigns one
    inquiry_id: str
    borrower_name: str
    approved_amount: Decimal
    interest_rate: Decimal  # percent
    rate_type: RateType
    tenure: int  # months
    repayment_type: RepaymentType
    repayment_frequency: Frequency
    start_date: date
    end_date: date
    monthly_interest: Decimal
    total_interest: Decimal
    total_repayable: Decimal
    repayment_schedule: tuple[ScheduleEntry, ...]
    status: LoanStatus = LoanStatus.ACTIVE
    investor_mapping: list[InvestorAllocation] = field(default_factory=list)
    created_at: datetime | None = None


@dataclass
class InvestorInvestment:
    """Investment created when an investor inquiry reaches agreement."""

    investment_id: str  # empty until the store assigns one
    inquiry_id: str
    investor_name: str
    invested_amount: Decimal
    interest_rate: Decimal  # percent
    rate_type: RateType
    tenure: int  # months
    payout_frequency: PayoutFrequency
    start_date: date
    maturity_date: date
    monthly_interest: Decimal
    total_interest: Decimal
    total_payout: Decimal
    payout_schedule: tuple[ScheduleEntry, ...]
    status: InvestmentStatus = InvestmentStatus.ACTIVE
    linked_borrowers: list[str] = field(default_factory=list)  # loan ids
    created_at: datetime | None = None
