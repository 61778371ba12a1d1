"""Tests for profit aggregation."""

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

import pytest

from lendflow.config import EngineConfig
from lendflow.engine.pipeline import (
    AcceptanceTerms,
    ApprovalTerms,
    build_borrower_loan,
    build_investor_investment,
)
from lendflow.engine.profit import (
    compute_profit_snapshot,
    monthly_profit_series,
    month_key,
    trailing_months,
)
from lendflow.exceptions import InvalidInputError
from lendflow.models import (
    BorrowerCollection,
    BorrowerLoan,
    CollectionStatus,
    Inquiry,
    InquiryType,
    InvestmentStatus,
    InvestorInvestment,
    InvestorPayment,
    LoanStatus,
    PaymentStatus,
)

START = date(2025, 1, 15)


def _loan(loan_id: str, amount: int, rate: int, status: LoanStatus = LoanStatus.ACTIVE) -> BorrowerLoan:
    inquiry = Inquiry(loan_id, InquiryType.BORROWER, "Borrower", "9000000000", "APPROVED", datetime(2025, 1, 1))
    loan = build_borrower_loan(
        inquiry,
        ApprovalTerms(amount=amount, rate=rate, tenure=12, frequency="Monthly"),
        EngineConfig(),
        START,
    )
    return replace(loan, loan_id=loan_id, status=status)


def _investment(
    investment_id: str,
    amount: int,
    rate: int,
    status: InvestmentStatus = InvestmentStatus.ACTIVE,
) -> InvestorInvestment:
    inquiry = Inquiry(
        investment_id, InquiryType.INVESTOR, "Investor", "9000000001", "AGREEMENT_DONE", datetime(2025, 1, 1)
    )
    investment = build_investor_investment(
        inquiry,
        AcceptanceTerms(amount=amount, rate=rate, tenure=12, payout_frequency="monthly"),
        EngineConfig(),
        START,
    )
    return replace(investment, investment_id=investment_id, status=status)


def _collection(day: date, interest: str, status: CollectionStatus = CollectionStatus.RECEIVED) -> BorrowerCollection:
    return BorrowerCollection(
        collection_id="",
        loan_id="LN-0001",
        collection_date=day,
        amount=Decimal(interest),
        interest_amount=Decimal(interest),
        principal_amount=Decimal("0"),
        status=status,
    )


def _payment(day: date, interest: str, status: PaymentStatus = PaymentStatus.PAID) -> InvestorPayment:
    return InvestorPayment(
        payment_id="",
        investment_id="INV-0001",
        payment_date=day,
        amount=Decimal(interest),
        interest_amount=Decimal(interest),
        principal_amount=Decimal("0"),
        status=status,
    )


class TestMonths:
    """Tests for month helpers."""

    def test_month_key(self) -> None:
        assert month_key(date(2025, 3, 9)) == "2025-03"

    def test_trailing_months_crosses_year(self) -> None:
        assert trailing_months(date(2025, 2, 28), 4) == ["2024-11", "2024-12", "2025-01", "2025-02"]


class TestProfitSnapshot:
    """Tests for compute_profit_snapshot."""

    def test_average_rates_and_spread(self) -> None:
        loans = [_loan("LN-0001", 500000, 15), _loan("LN-0002", 300000, 13)]
        investments = [_investment("INV-0001", 600000, 8), _investment("INV-0002", 200000, 6)]

        snapshot = compute_profit_snapshot(loans, investments, as_of=date(2025, 6, 30))

        assert snapshot.avg_borrower_rate == Decimal("14")
        assert snapshot.avg_investor_rate == Decimal("7")
        assert snapshot.avg_spread == Decimal("7")

    def test_fund_and_interest_totals(self) -> None:
        loans = [
            _loan("LN-0001", 500000, 12),
            _loan("LN-0002", 100000, 24, LoanStatus.DEFAULTED),
        ]
        investments = [_investment("INV-0001", 600000, 6)]

        snapshot = compute_profit_snapshot(loans, investments, as_of=date(2025, 6, 30))

        assert snapshot.total_deployed_funds == Decimal("600000")
        assert snapshot.total_invested_funds == Decimal("600000")
        assert snapshot.total_interest_receivable == Decimal("60000.00")
        assert snapshot.total_interest_payable == Decimal("36000.00")
        assert snapshot.net_spread_profit == Decimal("24000.00")
        assert snapshot.avg_borrower_rate == Decimal("12")
        assert snapshot.active_loans == 1
        assert snapshot.active_investments == 1
        assert snapshot.defaulted_loans == 1

    def test_realized_profit(self) -> None:
        collections = [
            _collection(date(2025, 2, 15), "5000.00"),
            _collection(date(2025, 3, 15), "2500.00", CollectionStatus.PARTIAL),
            _collection(date(2025, 4, 15), "5000.00", CollectionStatus.PENDING),
        ]
        payments = [
            _payment(date(2025, 2, 15), "3000.00"),
            _payment(date(2025, 3, 15), "3000.00", PaymentStatus.OVERDUE),
        ]

        snapshot = compute_profit_snapshot([], [], collections, payments, as_of=date(2025, 4, 30))

        assert snapshot.interest_collected_from_borrowers == Decimal("7500.00")
        assert snapshot.interest_paid_to_investors == Decimal("3000.00")
        assert snapshot.realized_profit == Decimal("4500.00")

    def test_empty_book(self) -> None:
        snapshot = compute_profit_snapshot([], [], as_of=date(2025, 1, 31))

        assert snapshot.avg_borrower_rate == Decimal("0")
        assert snapshot.avg_spread == Decimal("0")
        assert snapshot.net_spread_profit == Decimal("0")
        assert len(snapshot.monthly_profit) == 6

    def test_unweighted_mean_rounds(self) -> None:
        loans = [_loan("LN-0001", 1000, 10), _loan("LN-0002", 1000, 11), _loan("LN-0003", 1000, 11)]

        snapshot = compute_profit_snapshot(loans, [], as_of=date(2025, 1, 31))

        assert snapshot.avg_borrower_rate == Decimal("10.67")


class TestMonthlySeries:
    """Tests for monthly_profit_series."""

    def test_buckets_by_month(self) -> None:
        collections = [
            _collection(date(2025, 1, 15), "5000.00"),
            _collection(date(2025, 3, 15), "5000.00"),
            _collection(date(2025, 3, 20), "1000.00"),
            _collection(date(2024, 6, 15), "9999.00"),  # before the window
        ]
        payments = [_payment(date(2025, 3, 10), "2000.00")]

        series = monthly_profit_series(collections, payments, as_of=date(2025, 3, 31), window_months=3)

        assert [m.month for m in series] == ["2025-01", "2025-02", "2025-03"]
        assert series[0].net_profit == Decimal("5000.00")
        assert series[1].net_profit == Decimal("0")
        assert series[2].interest_collected == Decimal("6000.00")
        assert series[2].interest_paid == Decimal("2000.00")
        assert series[2].net_profit == Decimal("4000.00")

    def test_window_must_be_positive(self) -> None:
        with pytest.raises(InvalidInputError):
            monthly_profit_series([], [], as_of=date(2025, 3, 31), window_months=0)
