"""Tests for domain models."""

from datetime import date, datetime
from decimal import Decimal
from dataclasses import FrozenInstanceError

import pytest

from lendflow.models import (
    BORROWER_STAGES,
    INVESTOR_STAGES,
    STAGE_LABELS,
    BorrowerCollection,
    BorrowerDetails,
    CollectionStatus,
    Event,
    Frequency,
    Inquiry,
    InquiryType,
    InvestorDetails,
    LoanTerms,
    PaymentMode,
    Priority,
    Proposal,
    ProposalStatus,
    ScheduleEntry,
    ScheduleStatus,
    Source,
)


class TestEvent:
    """Tests for Event model."""

    def test_event_creation(self) -> None:
        now = datetime.now()
        event = Event(
            event_id="evt-001",
            event_type="inquiry.stage_changed",
            event_time=now,
            source="lendflow",
            subject="INQ-0001",
            data={"inquiry_id": "INQ-0001"},
        )

        assert event.event_type == "inquiry.stage_changed"
        assert event.subject == "INQ-0001"
        assert event.metadata == {}  # default empty dict


class TestStages:
    """Tests for stage orderings and labels."""

    def test_borrower_order(self) -> None:
        assert BORROWER_STAGES == (
            "NEW",
            "CONTACTED",
            "MEETING",
            "DOCS_PENDING",
            "VERIFIED",
            "PROPOSED",
            "APPROVED",
            "DISBURSED",
        )

    def test_investor_order(self) -> None:
        assert INVESTOR_STAGES == (
            "NEW",
            "CONTACTED",
            "MEETING",
            "RATE_DISCUSSED",
            "AGREEMENT_DONE",
            "FUND_RECEIVED",
        )

    def test_every_stage_has_label(self) -> None:
        for stage in set(BORROWER_STAGES) | set(INVESTOR_STAGES):
            assert stage in STAGE_LABELS

    def test_str_enum_compares_to_code(self) -> None:
        assert Frequency.HALF_YEARLY == "Half-Yearly"
        assert ProposalStatus("Counter") is ProposalStatus.COUNTER


class TestInquiry:
    """Tests for Inquiry model."""

    def test_defaults(self) -> None:
        inquiry = Inquiry(
            inquiry_id="INQ-0009",
            inquiry_type=InquiryType.BORROWER,
            name="Test",
            mobile="9000000000",
            stage="NEW",
            created_at=datetime(2025, 1, 1),
        )

        assert inquiry.source == Source.OTHER
        assert inquiry.priority == Priority.WARM
        assert inquiry.activity_logs == []
        assert inquiry.instrument_id is None
        assert inquiry.version == 0
        assert inquiry.requested_amount == Decimal("0")

    def test_borrower_requested_amount(self, borrower_inquiry: Inquiry) -> None:
        assert borrower_inquiry.requested_amount == Decimal("500000")

    def test_investor_requested_amount(self, investor_inquiry: Inquiry) -> None:
        assert investor_inquiry.requested_amount == Decimal("1000000")

    def test_details_defaults(self) -> None:
        assert BorrowerDetails(Decimal("1"), 6, Decimal("10")).frequency == Frequency.MONTHLY
        assert InvestorDetails(Decimal("1"), 6, Decimal("10")).frequency == "monthly"


class TestProposal:
    """Tests for Proposal and LoanTerms."""

    def _proposal(self, status: ProposalStatus) -> Proposal:
        terms = LoanTerms(Decimal("100000"), Decimal("12"), 12)
        return Proposal(
            proposal_id="PRP-0001",
            inquiry_id="INQ-0001",
            original_terms=terms,
            proposed_terms=terms,
            status=status,
            sent_at=datetime(2025, 1, 1),
        )

    @pytest.mark.parametrize(
        "status,is_open",
        [
            (ProposalStatus.SENT, True),
            (ProposalStatus.COUNTER, True),
            (ProposalStatus.ACCEPTED, False),
            (ProposalStatus.REJECTED, False),
            (ProposalStatus.EXPIRED, False),
        ],
    )
    def test_is_open(self, status: ProposalStatus, is_open: bool) -> None:
        assert self._proposal(status).is_open is is_open

    def test_terms_are_frozen(self) -> None:
        terms = LoanTerms(Decimal("100000"), Decimal("12"), 12)

        with pytest.raises(FrozenInstanceError):
            terms.rate = Decimal("10")  # type: ignore[misc]


class TestScheduleEntry:
    """Tests for ScheduleEntry."""

    def test_defaults_to_upcoming(self) -> None:
        entry = ScheduleEntry(
            sequence_number=1,
            due_date=date(2025, 2, 15),
            interest_component=Decimal("5000.00"),
            principal_component=Decimal("0"),
            total_due=Decimal("5000.00"),
            is_terminal_entry=False,
        )

        assert entry.status == ScheduleStatus.UPCOMING

        with pytest.raises(FrozenInstanceError):
            entry.status = ScheduleStatus.PAID  # type: ignore[misc]


class TestLedger:
    """Tests for ledger records."""

    def test_collection_defaults(self) -> None:
        collection = BorrowerCollection(
            collection_id="COL-0001",
            loan_id="LN-0001",
            collection_date=date(2025, 2, 15),
            amount=Decimal("5000.00"),
            interest_amount=Decimal("5000.00"),
            principal_amount=Decimal("0"),
            status=CollectionStatus.RECEIVED,
        )

        assert collection.pending_amount == Decimal("0")
        assert collection.penalty == Decimal("0")
        assert collection.payment_mode == PaymentMode.BANK_TRANSFER
        assert collection.schedule_sequence is None
