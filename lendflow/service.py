"""Command and query surface over the lifecycle engine.

``LifecycleService`` is the only entry point that mutates records: it
loads a fresh snapshot from the repository, runs the engine, and commits
the result (stage write plus any instrument creation) as one unit.
Callers are expected to serialize requests per inquiry.
"""

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, Protocol

from lendflow.config import EngineConfig
from lendflow.engine.dues import (
    CollectionSummary,
    PayoutSummary,
    UpcomingDue,
    summarize_collections,
    summarize_payouts,
    upcoming_dues,
    upcoming_payouts,
)
from lendflow.engine.negotiation import ProposalNegotiation
from lendflow.engine.pipeline import (
    AcceptanceTerms,
    ApprovalTerms,
    CreateInvestmentCommand,
    CreateLoanCommand,
    PipelineView,
    StagePipeline,
    TransitionContext,
    TransitionOutcome,
)
from lendflow.engine.profit import ProfitSnapshot, compute_profit_snapshot
from lendflow.exceptions import InvalidEntityStateError, StaleStateError
from lendflow.models import (
    BorrowerCollection,
    BorrowerLoan,
    CollectionStatus,
    Event,
    Inquiry,
    InquiryType,
    InvestorInvestment,
    InvestorPayment,
    LoanTerms,
    PaymentStatus,
    Proposal,
    ScheduleStatus,
)
from lendflow.sinks.serialization import to_dict

logger = logging.getLogger(__name__)

EVENT_SOURCE = "lendflow"

_SCHEDULE_STATUS_BY_COLLECTION = {
    CollectionStatus.RECEIVED: ScheduleStatus.PAID,
    CollectionStatus.PARTIAL: ScheduleStatus.PARTIAL,
    CollectionStatus.OVERDUE: ScheduleStatus.OVERDUE,
    CollectionStatus.DEFAULTED: ScheduleStatus.OVERDUE,
}

_SCHEDULE_STATUS_BY_PAYMENT = {
    PaymentStatus.PAID: ScheduleStatus.PAID,
    PaymentStatus.PARTIAL: ScheduleStatus.PARTIAL,
    PaymentStatus.OVERDUE: ScheduleStatus.OVERDUE,
}


class LendingRepository(Protocol):
    """Persistence collaborator the service reads from and commits to."""

    def load_inquiry(self, inquiry_id: str) -> Inquiry: ...

    def save_inquiry(self, inquiry: Inquiry) -> Inquiry: ...

    def list_inquiries(self, inquiry_type: InquiryType | None = None) -> list[Inquiry]: ...

    def new_proposal_id(self) -> str: ...

    def list_proposals(self, inquiry_id: str) -> list[Proposal]: ...

    def load_open_proposal(self, inquiry_id: str) -> Proposal | None: ...

    def save_proposal(self, proposal: Proposal) -> None: ...

    def create_loan(self, loan: BorrowerLoan) -> str: ...

    def create_investment(self, investment: InvestorInvestment) -> str: ...

    def query_loans(self) -> list[BorrowerLoan]: ...

    def query_investments(self) -> list[InvestorInvestment]: ...

    def query_active_loans(self) -> list[BorrowerLoan]: ...

    def query_active_investments(self) -> list[InvestorInvestment]: ...

    def query_payments_and_collections(
        self, start: date | None = None, end: date | None = None
    ) -> tuple[list[BorrowerCollection], list[InvestorPayment]]: ...

    def add_collection(self, collection: BorrowerCollection) -> BorrowerCollection: ...

    def add_payment(self, payment: InvestorPayment) -> InvestorPayment: ...

    def update_schedule_status(
        self, instrument_id: str, sequence_number: int, status: ScheduleStatus
    ) -> None: ...

    def commit_transition(
        self,
        inquiry: Inquiry,
        command: CreateLoanCommand | CreateInvestmentCommand | None = None,
        stamp: Callable[[Inquiry, str], Inquiry] | None = None,
    ) -> str | None: ...


class EventPublisher(Protocol):
    """Anything with a sink-style ``send``."""

    def send(self, topic: str, record: Any, key: str | None = None) -> None: ...


class LifecycleService:
    """Mutating commands and read-only queries for the lending lifecycle.

    Parameters
    ----------
    repository : LendingRepository
        Persistence collaborator.
    config : EngineConfig | None
        Engine defaults and windows.
    publisher : EventPublisher | None
        Receives an ``Event`` after each committed mutation.
    topic_prefix : str
        Prefix for event topics, e.g. ``dev.lendflow`` gives
        ``dev.lendflow.proposal``.
    clock : Callable[[], datetime] | None
        Source of timestamps (default ``datetime.now``).
    """

    def __init__(
        self,
        repository: LendingRepository,
        config: EngineConfig | None = None,
        publisher: EventPublisher | None = None,
        topic_prefix: str = "dev.lendflow",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.repository = repository
        self.config = config or EngineConfig()
        self.publisher = publisher
        self.topic_prefix = topic_prefix
        self._clock = clock or datetime.now
        self.pipeline = StagePipeline(self.config, clock=self._clock)

    # Commands
    def request_transition(
        self,
        inquiry_id: str,
        target_stage: str,
        *,
        expected_stage: str | None = None,
        expected_version: int | None = None,
        approval_terms: ApprovalTerms | None = None,
        acceptance_terms: AcceptanceTerms | None = None,
        note: str = "",
    ) -> TransitionOutcome:
        """Move an inquiry to ``target_stage`` and commit the result.

        Returns the engine outcome with ``inquiry`` replaced by the saved
        snapshot. ``NO_OP``, ``NEEDS_INPUT`` and ``NEGOTIATION_STARTED``
        outcomes write nothing.
        """
        inquiry = self.repository.load_inquiry(inquiry_id)
        if expected_version is not None and expected_version != inquiry.version:
            raise StaleStateError(
                f"Inquiry {inquiry_id} is at version {inquiry.version}, caller expected {expected_version}"
            )

        proposals = []
        if inquiry.inquiry_type == InquiryType.BORROWER:
            proposals = self.repository.list_proposals(inquiry_id)

        context = TransitionContext(
            expected_stage=expected_stage,
            proposals=proposals,
            approval_terms=approval_terms,
            acceptance_terms=acceptance_terms,
            note=note,
        )
        outcome = self.pipeline.request_transition(inquiry, target_stage, context)
        if not outcome.changed:
            return outcome

        instrument_id = self.repository.commit_transition(
            outcome.inquiry, outcome.command, stamp=self.pipeline.stamp_instrument
        )
        outcome.inquiry = self.repository.load_inquiry(inquiry_id)

        self._publish(
            "inquiry",
            "inquiry.stage_changed",
            inquiry_id,
            {
                "inquiry_id": inquiry_id,
                "old_stage": outcome.activity.old_stage,
                "new_stage": outcome.activity.new_stage,
                "changed_at": outcome.activity.changed_at,
            },
        )

        if isinstance(outcome.command, CreateLoanCommand):
            outcome.command = CreateLoanCommand(replace(outcome.command.loan, loan_id=instrument_id))
            self._publish("loan", "loan.created", instrument_id, outcome.command.loan)
        elif isinstance(outcome.command, CreateInvestmentCommand):
            outcome.command = CreateInvestmentCommand(
                replace(outcome.command.investment, investment_id=instrument_id)
            )
            self._publish("investment", "investment.created", instrument_id, outcome.command.investment)

        return outcome

    def send_proposal(
        self,
        inquiry_id: str,
        proposed_terms: LoanTerms,
        notes: str = "",
        original_terms: LoanTerms | None = None,
    ) -> Proposal:
        """Send a new proposal; original terms default to the inquiry's requested terms."""
        inquiry = self.repository.load_inquiry(inquiry_id)
        if inquiry.inquiry_type != InquiryType.BORROWER:
            raise InvalidEntityStateError(f"Inquiry {inquiry_id} is not a borrower inquiry")

        if original_terms is None:
            details = inquiry.borrower_details
            if details is None:
                original_terms = proposed_terms
            else:
                original_terms = LoanTerms(
                    amount=details.loan_amount,
                    rate=details.proposed_interest,
                    tenure=details.tenure,
                    frequency=details.frequency,
                )

        negotiation = self._negotiation(inquiry_id)
        proposal = negotiation.send(original_terms, proposed_terms, notes)
        return self._save_proposal(proposal, "proposal.sent")

    def accept_proposal(self, inquiry_id: str, proposal_id: str, notes: str = "") -> Proposal:
        proposal = self._negotiation(inquiry_id).accept(proposal_id, notes)
        return self._save_proposal(proposal, "proposal.accepted")

    def reject_proposal(self, inquiry_id: str, proposal_id: str, notes: str = "") -> Proposal:
        proposal = self._negotiation(inquiry_id).reject(proposal_id, notes)
        return self._save_proposal(proposal, "proposal.rejected")

    def counter_proposal(
        self, inquiry_id: str, proposal_id: str, new_terms: LoanTerms, notes: str = ""
    ) -> Proposal:
        proposal = self._negotiation(inquiry_id).counter(proposal_id, new_terms, notes)
        return self._save_proposal(proposal, "proposal.countered")

    def expire_proposal(self, inquiry_id: str, proposal_id: str, notes: str = "") -> Proposal:
        proposal = self._negotiation(inquiry_id).expire(proposal_id, notes)
        return self._save_proposal(proposal, "proposal.expired")

    def record_collection(self, collection: BorrowerCollection) -> BorrowerCollection:
        """Add a collection and mark the schedule entry it settles."""
        stored = self.repository.add_collection(collection)
        status = _SCHEDULE_STATUS_BY_COLLECTION.get(stored.status)
        if stored.schedule_sequence is not None and status is not None:
            self.repository.update_schedule_status(stored.loan_id, stored.schedule_sequence, status)
        return stored

    def record_payment(self, payment: InvestorPayment) -> InvestorPayment:
        """Add an investor payment and mark the schedule entry it settles."""
        stored = self.repository.add_payment(payment)
        status = _SCHEDULE_STATUS_BY_PAYMENT.get(stored.status)
        if stored.schedule_sequence is not None and status is not None:
            self.repository.update_schedule_status(stored.investment_id, stored.schedule_sequence, status)
        return stored

    # Queries
    def get_pipeline_view(self, inquiry_type: InquiryType | str) -> PipelineView:
        kind = InquiryType(inquiry_type)
        return self.pipeline.view(kind, self.repository.list_inquiries(kind))

    def has_accepted_proposal(self, inquiry_id: str) -> bool:
        return self._negotiation(inquiry_id).has_accepted_proposal()

    def get_profit_snapshot(self, as_of: date | None = None) -> ProfitSnapshot:
        """Recompute profit KPIs from the repository's current records."""
        as_of = as_of or self._clock().date()
        collections, payments = self.repository.query_payments_and_collections(end=as_of)
        return compute_profit_snapshot(
            self.repository.query_loans(),
            self.repository.query_investments(),
            collections,
            payments,
            as_of=as_of,
            window_months=self.config.profit_window_months,
        )

    def get_upcoming_dues(self, as_of: date | None = None) -> list[UpcomingDue]:
        return upcoming_dues(
            self.repository.query_active_loans(),
            as_of or self._clock().date(),
            self.config.upcoming_window_days,
        )

    def get_upcoming_payouts(self, as_of: date | None = None) -> list[UpcomingDue]:
        return upcoming_payouts(
            self.repository.query_active_investments(),
            as_of or self._clock().date(),
            self.config.upcoming_window_days,
        )

    def get_collection_summary(self) -> CollectionSummary:
        collections, _ = self.repository.query_payments_and_collections()
        return summarize_collections(collections)

    def get_payout_summary(self) -> PayoutSummary:
        _, payments = self.repository.query_payments_and_collections()
        return summarize_payouts(payments)

    def _negotiation(self, inquiry_id: str) -> ProposalNegotiation:
        return ProposalNegotiation(
            inquiry_id,
            self.repository.list_proposals(inquiry_id),
            clock=self._clock,
            id_factory=self.repository.new_proposal_id,
        )

    def _save_proposal(self, proposal: Proposal, event_type: str) -> Proposal:
        self.repository.save_proposal(proposal)
        self._publish("proposal", event_type, proposal.proposal_id, proposal, key=proposal.inquiry_id)
        return proposal

    def _publish(
        self,
        entity: str,
        event_type: str,
        subject: str,
        payload: Any,
        key: str | None = None,
    ) -> None:
        if self.publisher is None:
            return
        event = Event(
            event_id=uuid.uuid4().hex,
            event_type=event_type,
            event_time=self._clock(),
            source=EVENT_SOURCE,
            subject=subject,
            data=to_dict(payload),
        )
        self.publisher.send(f"{self.topic_prefix}.{entity}", event, key=key or subject)
