"""Profit and spread aggregation over loans and investments.

Everything here is recomputed from the records passed in; nothing is
cached between calls.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from dateutil.relativedelta import relativedelta

from lendflow.engine.schedule import round2
from lendflow.exceptions import InvalidInputError
from lendflow.models.enums import CollectionStatus, InvestmentStatus, LoanStatus, PaymentStatus
from lendflow.models.instrument import BorrowerLoan, InvestorInvestment
from lendflow.models.ledger import BorrowerCollection, InvestorPayment

ZERO = Decimal("0")

REALIZED_COLLECTION_STATUSES = frozenset({CollectionStatus.RECEIVED, CollectionStatus.PARTIAL})
REALIZED_PAYMENT_STATUSES = frozenset({PaymentStatus.PAID, PaymentStatus.PARTIAL})


@dataclass(frozen=True)
class MonthlyProfit:
    """Realized interest in and out for one calendar month."""

    month: str  # YYYY-MM
    interest_collected: Decimal
    interest_paid: Decimal
    net_profit: Decimal


@dataclass(frozen=True)
class ProfitSnapshot:
    """Point-in-time profit and spread KPIs."""

    total_invested_funds: Decimal
    total_deployed_funds: Decimal
    total_interest_receivable: Decimal
    total_interest_payable: Decimal
    net_spread_profit: Decimal
    interest_collected_from_borrowers: Decimal
    interest_paid_to_investors: Decimal
    realized_profit: Decimal
    avg_borrower_rate: Decimal
    avg_investor_rate: Decimal
    avg_spread: Decimal
    active_loans: int
    active_investments: int
    defaulted_loans: int
    monthly_profit: tuple[MonthlyProfit, ...]


def _mean(values: list[Decimal]) -> Decimal:
    if not values:
        return Decimal("0.00")
    return round2(sum(values, ZERO) / len(values))


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def trailing_months(as_of: date, count: int) -> list[str]:
    """Month keys for the ``count`` months ending with ``as_of``'s month, oldest first."""
    first = as_of.replace(day=1)
    return [month_key(first - relativedelta(months=offset)) for offset in range(count - 1, -1, -1)]


def realized_interest_collected(collections: Iterable[BorrowerCollection]) -> Decimal:
    return sum(
        (c.interest_amount for c in collections if c.status in REALIZED_COLLECTION_STATUSES),
        ZERO,
    )


def realized_interest_paid(payments: Iterable[InvestorPayment]) -> Decimal:
    return sum(
        (p.interest_amount for p in payments if p.status in REALIZED_PAYMENT_STATUSES),
        ZERO,
    )


def monthly_profit_series(
    collections: Iterable[BorrowerCollection],
    payments: Iterable[InvestorPayment],
    as_of: date,
    window_months: int = 6,
) -> tuple[MonthlyProfit, ...]:
    """Bucket realized interest by calendar month over a trailing window.

    Parameters
    ----------
    collections : Iterable[BorrowerCollection]
        Borrower collections; only Received and Partial count.
    payments : Iterable[InvestorPayment]
        Investor payments; only Paid and Partial count.
    as_of : date
        Last day of the window; its month is the newest bucket.
    window_months : int
        Number of months in the series.

    Returns
    -------
    tuple[MonthlyProfit, ...]
        One bucket per month, oldest first, empty months included.
    """
    if window_months < 1:
        raise InvalidInputError(f"window_months must be at least 1, got {window_months}")

    months = trailing_months(as_of, window_months)
    collected = {m: ZERO for m in months}
    paid = {m: ZERO for m in months}

    for c in collections:
        key = month_key(c.collection_date)
        if key in collected and c.status in REALIZED_COLLECTION_STATUSES:
            collected[key] += c.interest_amount

    for p in payments:
        key = month_key(p.payment_date)
        if key in paid and p.status in REALIZED_PAYMENT_STATUSES:
            paid[key] += p.interest_amount

    return tuple(
        MonthlyProfit(
            month=m,
            interest_collected=collected[m],
            interest_paid=paid[m],
            net_profit=collected[m] - paid[m],
        )
        for m in months
    )


def compute_profit_snapshot(
    loans: Iterable[BorrowerLoan],
    investments: Iterable[InvestorInvestment],
    collections: Iterable[BorrowerCollection] = (),
    payments: Iterable[InvestorPayment] = (),
    as_of: date | None = None,
    window_months: int = 6,
) -> ProfitSnapshot:
    """Roll up loans, investments and ledger records into a ``ProfitSnapshot``.

    Fund totals cover instruments in any status; receivable and payable
    interest and the average rates cover Active instruments only. Average
    rates are plain means of ``interest_rate``, not weighted by amount.
    """
    loans = list(loans)
    investments = list(investments)
    collections = list(collections)
    payments = list(payments)
    as_of = as_of or date.today()

    active_loans = [loan for loan in loans if loan.status == LoanStatus.ACTIVE]
    active_investments = [inv for inv in investments if inv.status == InvestmentStatus.ACTIVE]

    receivable = sum((loan.total_interest for loan in active_loans), ZERO)
    payable = sum((inv.total_interest for inv in active_investments), ZERO)
    collected = realized_interest_collected(collections)
    paid = realized_interest_paid(payments)

    avg_borrower_rate = _mean([loan.interest_rate for loan in active_loans])
    avg_investor_rate = _mean([inv.interest_rate for inv in active_investments])

    return ProfitSnapshot(
        total_invested_funds=sum((inv.invested_amount for inv in investments), ZERO),
        total_deployed_funds=sum((loan.approved_amount for loan in loans), ZERO),
        total_interest_receivable=receivable,
        total_interest_payable=payable,
        net_spread_profit=receivable - payable,
        interest_collected_from_borrowers=collected,
        interest_paid_to_investors=paid,
        realized_profit=collected - paid,
        avg_borrower_rate=avg_borrower_rate,
        avg_investor_rate=avg_investor_rate,
        avg_spread=avg_borrower_rate - avg_investor_rate,
        active_loans=len(active_loans),
        active_investments=len(active_investments),
        defaulted_loans=sum(1 for loan in loans if loan.status == LoanStatus.DEFAULTED),
        monthly_profit=monthly_profit_series(collections, payments, as_of, window_months),
    )
