"""Lending book scenario: synthetic leads driven through the real engine."""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any

from lendflow.config import LendFlowConfig
from lendflow.engine.pipeline import AcceptanceTerms, ApprovalTerms
from lendflow.generators import InquiryGenerator, PayoutBehavior, RepaymentBehavior
from lendflow.models import (
    BorrowerStage,
    CollectionStatus,
    InquiryType,
    InvestmentStatus,
    InvestorStage,
    LoanStatus,
    LoanTerms,
    ProposalStatus,
    ScheduleStatus,
)
from lendflow.service import LifecycleService
from lendflow.store import InMemoryLendingStore

logger = logging.getLogger(__name__)

BORROWER_WALK = [
    BorrowerStage.CONTACTED,
    BorrowerStage.MEETING,
    BorrowerStage.DOCS_PENDING,
    BorrowerStage.VERIFIED,
]
INVESTOR_WALK = [
    InvestorStage.CONTACTED,
    InvestorStage.MEETING,
    InvestorStage.RATE_DISCUSSED,
]


class LendingBookScenario:
    """Generate a lending book by running leads through the lifecycle service.

    This scenario creates:
    - Borrower leads spread across the pipeline, some negotiated to an
      approved loan and a few disbursed
    - Investor leads spread across the pipeline, some reaching an agreement
    - Collections and investor payouts for every schedule entry already due
    """

    def __init__(
        self,
        num_borrowers: int = 50,
        num_investors: int = 20,
        conversion_rate: float = 0.5,
        acceptance_rate: float = 0.7,
        seed: int | None = None,
        reference_date: date | None = None,
        *,
        config: LendFlowConfig | None = None,
        publisher: Any = None,
    ) -> None:
        """Initialize lending book scenario.

        Parameters
        ----------
        num_borrowers : int
            Number of borrower inquiries.
        num_investors : int
            Number of investor inquiries.
        conversion_rate : float
            Share of leads that reach the negotiation or agreement step.
        acceptance_rate : float
            Share of proposals the borrower accepts.
        seed : int | None
            Random seed for reproducibility.
        reference_date : date | None
            Simulated "today" for dues and ledger records.
        config : LendFlowConfig | None
            Engine configuration; defaults apply when omitted.
        publisher : Any
            Optional sink receiving domain events.
        """
        self.num_borrowers = num_borrowers
        self.num_investors = num_investors
        self.conversion_rate = conversion_rate
        self.acceptance_rate = acceptance_rate
        self.seed = seed
        self.reference_date = reference_date or date.today()
        self.config = config or LendFlowConfig()

        self.rng = random.Random(seed)
        self.store = InMemoryLendingStore()
        # Simulated wall clock; each lead replays its own timeline from created_at
        self._now = datetime.combine(self.reference_date, datetime.min.time())
        self.service = LifecycleService(
            self.store,
            config=self.config.engine,
            publisher=publisher,
            topic_prefix=self.config.kafka.topic_prefix,
            clock=self._clock,
        )
        self._inquiry_gen = InquiryGenerator(seed=seed)
        self._repayments = RepaymentBehavior(seed=seed)
        self._payouts = PayoutBehavior(seed=seed)

    def generate(self) -> InMemoryLendingStore:
        """Generate all data for the lending book.

        Returns
        -------
        InMemoryLendingStore
            Store containing inquiries, proposals, instruments and ledger.
        """
        logger.info(
            "Starting lending book scenario: %d borrowers, %d investors",
            self.num_borrowers,
            self.num_investors,
        )

        for _ in range(self.num_investors):
            self._run_investor()
        for _ in range(self.num_borrowers):
            self._run_borrower()

        self._update_statuses()
        self._now = datetime.combine(self.reference_date, datetime.min.time())

        logger.info("Generated lending book: %s", self.store.summary())
        return self.store

    def _clock(self) -> datetime:
        return self._now

    def _advance(self) -> None:
        """Move the simulated clock forward by a few hours to two days."""
        self._now += timedelta(hours=self.rng.randint(2, 48))

    def _created_at(self) -> datetime:
        days_ago = self.rng.randint(30, 400)
        created_at = datetime.combine(self.reference_date - timedelta(days=days_ago), datetime.min.time())
        self._now = created_at
        return created_at

    def _walk(self, inquiry_id: str, stages: list) -> bool:
        """Advance through ``stages``; True when the lead went all the way."""
        converting = self.rng.random() < self.conversion_rate
        stop = len(stages) if converting else self.rng.randint(0, len(stages) - 1)
        for target in stages[:stop]:
            self._advance()
            self.service.request_transition(inquiry_id, target.value)
        return converting

    def _run_borrower(self) -> None:
        created_at = self._created_at()
        inquiry = self.store.add_inquiry(self._inquiry_gen.generate_borrower(created_at))
        if not self._walk(inquiry.inquiry_id, BORROWER_WALK):
            return

        self._advance()
        outcome = self.service.request_transition(inquiry.inquiry_id, BorrowerStage.PROPOSED.value)
        original = outcome.original_terms

        self._advance()
        proposal = self.service.send_proposal(
            inquiry.inquiry_id,
            replace(original, rate=original.rate + Decimal("0.5")),
            notes="Initial offer",
        )
        if self.rng.random() < 0.4:
            self._advance()
            proposal = self.service.counter_proposal(
                inquiry.inquiry_id,
                proposal.proposal_id,
                replace(proposal.proposed_terms, rate=original.rate),
                notes="Borrower asked for the requested rate",
            )

        if self.rng.random() >= self.acceptance_rate:
            self._advance()
            if self.rng.random() < 0.5:
                self.service.reject_proposal(inquiry.inquiry_id, proposal.proposal_id)
            else:
                self.service.expire_proposal(inquiry.inquiry_id, proposal.proposal_id)
            return

        self._advance()
        proposal = self.service.accept_proposal(inquiry.inquiry_id, proposal.proposal_id)
        terms: LoanTerms = proposal.proposed_terms
        self._advance()
        start_date = (self._now + timedelta(days=self.rng.randint(1, 7))).date()
        outcome = self.service.request_transition(
            inquiry.inquiry_id,
            BorrowerStage.APPROVED.value,
            approval_terms=ApprovalTerms(
                amount=terms.amount,
                rate=terms.rate,
                tenure=terms.tenure,
                frequency=terms.frequency,
                start_date=start_date,
            ),
        )
        loan = outcome.command.loan

        if self.rng.random() < 0.8:
            self._advance()
            self.service.request_transition(inquiry.inquiry_id, BorrowerStage.DISBURSED.value)

        for collection in self._repayments.collections_for(loan, reference_date=self.reference_date):
            self.service.record_collection(collection)

    def _run_investor(self) -> None:
        created_at = self._created_at()
        inquiry = self.store.add_inquiry(self._inquiry_gen.generate_investor(created_at))
        if not self._walk(inquiry.inquiry_id, INVESTOR_WALK):
            return

        self._advance()
        outcome = self.service.request_transition(inquiry.inquiry_id, InvestorStage.AGREEMENT_DONE.value)
        suggested = outcome.suggested

        self._advance()
        outcome = self.service.request_transition(
            inquiry.inquiry_id,
            InvestorStage.AGREEMENT_DONE.value,
            acceptance_terms=AcceptanceTerms(
                rate=suggested["rate"],
                tenure=suggested["tenure"],
                payout_frequency=suggested["payout_frequency"],
                amount=suggested["amount"],
                start_date=(self._now + timedelta(days=self.rng.randint(1, 10))).date(),
            ),
        )
        investment = outcome.command.investment
        self._advance()
        self.service.request_transition(inquiry.inquiry_id, InvestorStage.FUND_RECEIVED.value)

        for payment in self._payouts.payments_for(investment, reference_date=self.reference_date):
            self.service.record_payment(payment)

    def _update_statuses(self) -> None:
        """Close, mature or default instruments based on their ledger."""
        collections, _ = self.store.query_payments_and_collections()
        defaulted = {c.loan_id for c in collections if c.status == CollectionStatus.DEFAULTED}

        for loan in self.store.query_loans():
            if loan.loan_id in defaulted:
                self.store.set_loan_status(loan.loan_id, LoanStatus.DEFAULTED)
            elif all(e.status == ScheduleStatus.PAID for e in loan.repayment_schedule):
                self.store.set_loan_status(loan.loan_id, LoanStatus.CLOSED)

        for inv in self.store.query_investments():
            if inv.maturity_date <= self.reference_date and all(
                e.status == ScheduleStatus.PAID for e in inv.payout_schedule
            ):
                self.store.set_investment_status(inv.investment_id, InvestmentStatus.MATURED)

    def export(self, sinks: list[Any]) -> None:
        """Export generated records to sinks.

        Parameters
        ----------
        sinks : list[Any]
            Sink instances (ConsoleSink, JsonFileSink, KafkaSink).
        """
        collections, payments = self.store.query_payments_and_collections()
        for sink in sinks:
            sink.write_batch("inquiries", self.store.list_inquiries())
            sink.write_batch("proposals", list(self.store.proposals.values()))
            sink.write_batch("loans", self.store.query_loans())
            sink.write_batch("investments", self.store.query_investments())
            sink.write_batch("collections", collections)
            sink.write_batch("payments", payments)

        logger.info("Exported lending book to %d sinks", len(sinks))

    def get_book_summary(self) -> dict[str, Any]:
        """Get summary statistics for the lending book.

        Returns
        -------
        dict[str, Any]
            Record counts, pipeline headline counts and profit KPIs.
        """
        snapshot = self.service.get_profit_snapshot(as_of=self.reference_date)
        borrowers = self.service.get_pipeline_view(InquiryType.BORROWER)
        investors = self.service.get_pipeline_view(InquiryType.INVESTOR)
        accepted = sum(
            1 for p in self.store.proposals.values() if p.status == ProposalStatus.ACCEPTED
        )

        return {
            **self.store.summary(),
            "accepted_proposals": accepted,
            "active_borrower_leads": borrowers.active,
            "active_investor_leads": investors.active,
            "total_deployed_funds": snapshot.total_deployed_funds,
            "total_invested_funds": snapshot.total_invested_funds,
            "net_spread_profit": snapshot.net_spread_profit,
            "realized_profit": snapshot.realized_profit,
            "avg_spread": snapshot.avg_spread,
            "defaulted_loans": snapshot.defaulted_loans,
        }
