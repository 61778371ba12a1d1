"""Behavioral patterns for simulated repayments and payouts."""

import random
from datetime import date, timedelta
from decimal import Decimal

from lendflow.engine.schedule import round2
from lendflow.models import (
    BorrowerCollection,
    BorrowerLoan,
    CollectionStatus,
    InvestorInvestment,
    InvestorPayment,
    PaymentMode,
    PaymentStatus,
)

ZERO = Decimal("0")

# Daily penalty on an overdue amount, as a fraction
PENALTY_PER_DAY = Decimal("0.0005")


class RepaymentBehavior:
    """Simulate how a borrower pays the entries of a repayment schedule."""

    def __init__(self, seed: int | None = None) -> None:
        self.rng = random.Random(seed)

    def collections_for(
        self,
        loan: BorrowerLoan,
        on_time_rate: float = 0.85,
        late_rate: float = 0.10,
        default_rate: float = 0.05,
        reference_date: date | None = None,
    ) -> list[BorrowerCollection]:
        """Collections for every schedule entry due on or before ``reference_date``.

        Parameters
        ----------
        loan : BorrowerLoan
            Saved loan (its ``loan_id`` is referenced).
        on_time_rate : float
            Weight of borrowers who pay within a few days.
        late_rate : float
            Weight of borrowers who pay late, sometimes partially.
        default_rate : float
            Weight of borrowers who stop paying after a few entries.
        reference_date : date | None
            Simulation date (default today).

        Returns
        -------
        list[BorrowerCollection]
            One record per due entry, without ids.
        """
        if reference_date is None:
            reference_date = date.today()

        behavior = self.rng.choices(
            ["good", "late", "defaulter"],
            weights=[on_time_rate, late_rate, default_rate],
            k=1,
        )[0]
        stop_after = self.rng.randint(1, 4)

        result = []
        for entry in loan.repayment_schedule:
            if entry.due_date > reference_date:
                break
            overdue_days = (reference_date - entry.due_date).days

            if behavior == "good":
                paid_on = entry.due_date + timedelta(days=self.rng.randint(0, 3))
                result.append(self._received(loan, entry, min(paid_on, reference_date)))
            elif behavior == "late":
                days_late = self.rng.randint(5, 40)
                paid_on = entry.due_date + timedelta(days=days_late)
                if paid_on > reference_date:
                    result.append(self._unpaid(loan, entry, reference_date, overdue_days))
                elif self.rng.random() < 0.25:
                    result.append(self._partial(loan, entry, paid_on, days_late))
                else:
                    result.append(self._received(loan, entry, paid_on, days_late))
            else:
                if entry.sequence_number <= stop_after:
                    result.append(self._received(loan, entry, entry.due_date))
                else:
                    collection = self._unpaid(loan, entry, reference_date, overdue_days)
                    if overdue_days >= 90:
                        collection.status = CollectionStatus.DEFAULTED
                    result.append(collection)
        return result

    def _received(self, loan, entry, paid_on: date, days_late: int = 0) -> BorrowerCollection:
        penalty = round2(entry.total_due * PENALTY_PER_DAY * days_late) if days_late > 7 else ZERO
        return BorrowerCollection(
            collection_id="",
            loan_id=loan.loan_id,
            collection_date=paid_on,
            amount=entry.total_due + penalty,
            interest_amount=entry.interest_component,
            principal_amount=entry.principal_component,
            status=CollectionStatus.RECEIVED,
            payment_mode=self.rng.choice(list(PaymentMode)),
            penalty=penalty,
            overdue_days=days_late,
            schedule_sequence=entry.sequence_number,
        )

    def _partial(self, loan, entry, paid_on: date, days_late: int) -> BorrowerCollection:
        interest = round2(entry.interest_component * Decimal("0.5"))
        return BorrowerCollection(
            collection_id="",
            loan_id=loan.loan_id,
            collection_date=paid_on,
            amount=interest,
            interest_amount=interest,
            principal_amount=ZERO,
            status=CollectionStatus.PARTIAL,
            pending_amount=entry.total_due - interest,
            payment_mode=self.rng.choice(list(PaymentMode)),
            overdue_days=days_late,
            schedule_sequence=entry.sequence_number,
        )

    def _unpaid(self, loan, entry, as_of: date, overdue_days: int) -> BorrowerCollection:
        return BorrowerCollection(
            collection_id="",
            loan_id=loan.loan_id,
            collection_date=as_of,
            amount=ZERO,
            interest_amount=ZERO,
            principal_amount=ZERO,
            status=CollectionStatus.OVERDUE if overdue_days > 0 else CollectionStatus.PENDING,
            pending_amount=entry.total_due,
            penalty=round2(entry.total_due * PENALTY_PER_DAY * overdue_days),
            overdue_days=overdue_days,
            schedule_sequence=entry.sequence_number,
        )


class PayoutBehavior:
    """Simulate the platform paying investors; mostly on time."""

    def __init__(self, seed: int | None = None) -> None:
        self.rng = random.Random(seed)

    def payments_for(
        self,
        investment: InvestorInvestment,
        on_time_rate: float = 0.95,
        reference_date: date | None = None,
    ) -> list[InvestorPayment]:
        """Payments for every payout entry due on or before ``reference_date``."""
        if reference_date is None:
            reference_date = date.today()

        result = []
        for entry in investment.payout_schedule:
            if entry.due_date > reference_date:
                break
            if self.rng.random() < on_time_rate:
                result.append(
                    InvestorPayment(
                        payment_id="",
                        investment_id=investment.investment_id,
                        payment_date=entry.due_date,
                        amount=entry.total_due,
                        interest_amount=entry.interest_component,
                        principal_amount=entry.principal_component,
                        status=PaymentStatus.PAID,
                        payment_mode=self.rng.choice([PaymentMode.NEFT, PaymentMode.RTGS, PaymentMode.BANK_TRANSFER]),
                        schedule_sequence=entry.sequence_number,
                    )
                )
            else:
                overdue = (reference_date - entry.due_date).days > 0
                result.append(
                    InvestorPayment(
                        payment_id="",
                        investment_id=investment.investment_id,
                        payment_date=reference_date,
                        amount=ZERO,
                        interest_amount=ZERO,
                        principal_amount=ZERO,
                        status=PaymentStatus.OVERDUE if overdue else PaymentStatus.PENDING,
                        pending_interest=entry.interest_component,
                        schedule_sequence=entry.sequence_number,
                    )
                )
        return result
