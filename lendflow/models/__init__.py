"""Domain models for the lending lifecycle."""

from lendflow.models.base import Event
from lendflow.models.enums import (
    BORROWER_STAGES,
    INVESTOR_STAGES,
    STAGE_LABELS,
    BorrowerStage,
    CollectionStatus,
    Frequency,
    InquiryType,
    InvestmentStatus,
    InvestorStage,
    LoanStatus,
    PaymentMode,
    PaymentStatus,
    PayoutFrequency,
    Priority,
    ProposalStatus,
    RateType,
    RepaymentType,
    ScheduleStatus,
    Source,
)
from lendflow.models.inquiry import ActivityLog, BorrowerDetails, Inquiry, InvestorDetails
from lendflow.models.instrument import (
    BorrowerLoan,
    InvestorAllocation,
    InvestorInvestment,
    ScheduleEntry,
)
from lendflow.models.ledger import BorrowerCollection, InvestorPayment
from lendflow.models.proposal import LoanTerms, Proposal, ProposalHistoryEntry

__all__ = [
    "ActivityLog",
    "BORROWER_STAGES",
    "BorrowerCollection",
    "BorrowerDetails",
    "BorrowerLoan",
    "BorrowerStage",
    "CollectionStatus",
    "Event",
    "Frequency",
    "INVESTOR_STAGES",
    "Inquiry",
    "InquiryType",
    "InvestmentStatus",
    "InvestorAllocation",
    "InvestorDetails",
    "InvestorInvestment",
    "InvestorPayment",
    "InvestorStage",
    "LoanStatus",
    "LoanTerms",
    "PaymentMode",
    "PaymentStatus",
    "PayoutFrequency",
    "Priority",
    "Proposal",
    "ProposalHistoryEntry",
    "ProposalStatus",
    "RateType",
    "RepaymentType",
    "STAGE_LABELS",
    "ScheduleEntry",
    "ScheduleStatus",
    "Source",
]
