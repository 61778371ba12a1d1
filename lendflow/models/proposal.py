"""Proposal models for borrower negotiation."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from lendflow.models.enums import OPEN_PROPOSAL_STATUSES, Frequency, ProposalStatus


@dataclass(frozen=True)
class LoanTerms:
    """Amount, rate, tenure and frequency of an offer."""

    amount: Decimal
    rate: Decimal  # percent
    tenure: int  # months
    frequency: Frequency = Frequency.MONTHLY


@dataclass
class ProposalHistoryEntry:
    """One state-changing action on a proposal with the terms at that time."""

    action: ProposalStatus
    terms: LoanTerms
    timestamp: datetime
    notes: str = ""


@dataclass
class Proposal:
    """One negotiation round for a borrower inquiry."""

    proposal_id: str
    inquiry_id: str
    original_terms: LoanTerms  # snapshot of the inquiry at send time
    proposed_terms: LoanTerms
    status: ProposalStatus
    sent_at: datetime
    history: list[ProposalHistoryEntry] = field(default_factory=list)
    notes: str = ""
    responded_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_PROPOSAL_STATUSES
