"""Upcoming dues, upcoming payouts and ledger summaries."""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable

from lendflow.models.enums import (
    CollectionStatus,
    InvestmentStatus,
    LoanStatus,
    PaymentStatus,
    ScheduleStatus,
)
from lendflow.models.instrument import BorrowerLoan, InvestorInvestment, ScheduleEntry
from lendflow.models.ledger import BorrowerCollection, InvestorPayment

ZERO = Decimal("0")


@dataclass(frozen=True)
class UpcomingDue:
    """An unpaid schedule entry due within the look-ahead window."""

    instrument_id: str
    counterparty: str
    sequence_number: int
    due_date: date
    interest_component: Decimal
    principal_component: Decimal
    total_due: Decimal
    status: ScheduleStatus
    is_terminal_entry: bool
    is_overdue: bool
    days_overdue: int


def _due_entries(
    instrument_id: str,
    counterparty: str,
    entries: Iterable[ScheduleEntry],
    as_of: date,
    horizon: date,
) -> list[UpcomingDue]:
    dues = []
    for entry in entries:
        if entry.status == ScheduleStatus.PAID or entry.due_date > horizon:
            continue
        overdue_days = (as_of - entry.due_date).days
        dues.append(
            UpcomingDue(
                instrument_id=instrument_id,
                counterparty=counterparty,
                sequence_number=entry.sequence_number,
                due_date=entry.due_date,
                interest_component=entry.interest_component,
                principal_component=entry.principal_component,
                total_due=entry.total_due,
                status=entry.status,
                is_terminal_entry=entry.is_terminal_entry,
                is_overdue=overdue_days > 0,
                days_overdue=max(overdue_days, 0),
            )
        )
    return dues


def upcoming_dues(
    loans: Iterable[BorrowerLoan],
    as_of: date,
    window_days: int = 30,
) -> list[UpcomingDue]:
    """Unpaid repayment entries of Active loans due on or before ``as_of + window_days``.

    Overdue entries are included and flagged. Results are ordered by due
    date, then loan id.
    """
    horizon = as_of + timedelta(days=window_days)
    dues: list[UpcomingDue] = []
    for loan in loans:
        if loan.status != LoanStatus.ACTIVE:
            continue
        dues.extend(_due_entries(loan.loan_id, loan.borrower_name, loan.repayment_schedule, as_of, horizon))
    return sorted(dues, key=lambda d: (d.due_date, d.instrument_id, d.sequence_number))


def upcoming_payouts(
    investments: Iterable[InvestorInvestment],
    as_of: date,
    window_days: int = 30,
) -> list[UpcomingDue]:
    """Unpaid payout entries of Active investments, same rules as ``upcoming_dues``."""
    horizon = as_of + timedelta(days=window_days)
    dues: list[UpcomingDue] = []
    for inv in investments:
        if inv.status != InvestmentStatus.ACTIVE:
            continue
        dues.extend(_due_entries(inv.investment_id, inv.investor_name, inv.payout_schedule, as_of, horizon))
    return sorted(dues, key=lambda d: (d.due_date, d.instrument_id, d.sequence_number))


@dataclass(frozen=True)
class CollectionSummary:
    total_collected: Decimal
    total_pending: Decimal
    overdue_count: int
    total_penalties: Decimal


@dataclass(frozen=True)
class PayoutSummary:
    total_paid: Decimal
    total_pending_interest: Decimal
    overdue_count: int


def summarize_collections(collections: Iterable[BorrowerCollection]) -> CollectionSummary:
    """Headline totals for the borrower collections ledger.

    Collected counts Received records; pending counts the outstanding
    amount of Pending and Overdue records; overdue counts Overdue and
    Defaulted records.
    """
    collections = list(collections)
    return CollectionSummary(
        total_collected=sum(
            (c.amount for c in collections if c.status == CollectionStatus.RECEIVED), ZERO
        ),
        total_pending=sum(
            (
                c.pending_amount
                for c in collections
                if c.status in (CollectionStatus.PENDING, CollectionStatus.OVERDUE)
            ),
            ZERO,
        ),
        overdue_count=sum(
            1 for c in collections if c.status in (CollectionStatus.OVERDUE, CollectionStatus.DEFAULTED)
        ),
        total_penalties=sum((c.penalty for c in collections), ZERO),
    )


def summarize_payouts(payments: Iterable[InvestorPayment]) -> PayoutSummary:
    """Headline totals for the investor payments ledger."""
    payments = list(payments)
    return PayoutSummary(
        total_paid=sum((p.amount for p in payments if p.status == PaymentStatus.PAID), ZERO),
        total_pending_interest=sum(
            (
                p.pending_interest
                for p in payments
                if p.status in (PaymentStatus.PENDING, PaymentStatus.OVERDUE)
            ),
            ZERO,
        ),
        overdue_count=sum(1 for p in payments if p.status == PaymentStatus.OVERDUE),
    )
