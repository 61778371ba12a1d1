"""Inquiry models for the lending lifecycle."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from lendflow.models.enums import Frequency, InquiryType, PayoutFrequency, Priority, Source


@dataclass
class ActivityLog:
    """Append-only record of one stage change."""

    action: str  # "stage_change"
    old_stage: str
    new_stage: str
    changed_at: datetime
    note: str = ""


@dataclass
class BorrowerDetails:
    """Loan terms requested by a borrower lead."""

    loan_amount: Decimal
    tenure: int  # months
    proposed_interest: Decimal  # percent
    frequency: Frequency = Frequency.MONTHLY


@dataclass
class InvestorDetails:
    """Investment terms offered by an investor lead."""

    investment_amount: Decimal
    tenure: int  # months
    expected_interest: Decimal  # percent
    frequency: PayoutFrequency = PayoutFrequency.MONTHLY


@dataclass
class Inquiry:
    """Borrower or investor lead moving through a stage pipeline."""

    inquiry_id: str
    inquiry_type: InquiryType
    name: str
    mobile: str
    stage: str  # stage code, see BORROWER_STAGES / INVESTOR_STAGES
    created_at: datetime
    email: str = ""
    city: str = ""
    source: Source = Source.OTHER
    priority: Priority = Priority.WARM
    assigned_to: str = ""
    reference_agent: str = ""
    next_follow_up: date | None = None
    last_activity_at: datetime | None = None
    notes: str = ""
    borrower_details: BorrowerDetails | None = None
    investor_details: InvestorDetails | None = None
    activity_logs: list[ActivityLog] = field(default_factory=list)
    # Owned by the document subsystem; opaque here
    profile_score: int | None = None
    combined_report_markdown: str | None = None
    instrument_id: str | None = None  # loan or investment created from this inquiry
    version: int = 0  # optimistic concurrency stamp

    @property
    def requested_amount(self) -> Decimal:
        """Loan amount for borrowers, investment amount for investors."""
        if self.inquiry_type == InquiryType.BORROWER and self.borrower_details:
            return self.borrower_details.loan_amount
        if self.inquiry_type == InquiryType.INVESTOR and self.investor_details:
            return self.investor_details.investment_amount
        return Decimal("0")
