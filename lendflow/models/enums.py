"""Enumeration types for lending lifecycle entities."""

from enum import Enum


class InquiryType(str, Enum):
    BORROWER = "Borrower"
    INVESTOR = "Investor"


class Priority(str, Enum):
    HOT = "Hot"
    WARM = "Warm"
    COLD = "Cold"


class Source(str, Enum):
    REFERRAL = "Referral"
    WEBSITE = "Website"
    AGENT = "Agent"
    WALK_IN = "Walk-in"
    SOCIAL_MEDIA = "Social Media"
    OTHER = "Other"


class BorrowerStage(str, Enum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    MEETING = "MEETING"
    DOCS_PENDING = "DOCS_PENDING"
    VERIFIED = "VERIFIED"
    PROPOSED = "PROPOSED"
    APPROVED = "APPROVED"
    DISBURSED = "DISBURSED"


class InvestorStage(str, Enum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    MEETING = "MEETING"
    RATE_DISCUSSED = "RATE_DISCUSSED"
    AGREEMENT_DONE = "AGREEMENT_DONE"
    FUND_RECEIVED = "FUND_RECEIVED"


# Pipeline order per inquiry type
BORROWER_STAGES: tuple[str, ...] = tuple(s.value for s in BorrowerStage)
INVESTOR_STAGES: tuple[str, ...] = tuple(s.value for s in InvestorStage)

STAGE_LABELS: dict[str, str] = {
    "NEW": "New",
    "CONTACTED": "Contacted",
    "MEETING": "Meeting",
    "DOCS_PENDING": "Docs Pending",
    "VERIFIED": "Verified",
    "PROPOSED": "Proposed",
    "APPROVED": "Approved",
    "DISBURSED": "Disbursed",
    "RATE_DISCUSSED": "Rate Discussed",
    "AGREEMENT_DONE": "Agreement Done",
    "FUND_RECEIVED": "Fund Received",
}


class ProposalStatus(str, Enum):
    SENT = "Sent"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    COUNTER = "Counter"
    EXPIRED = "Expired"


OPEN_PROPOSAL_STATUSES = frozenset({ProposalStatus.SENT, ProposalStatus.COUNTER})


class RateType(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class RepaymentType(str, Enum):
    INTEREST_ONLY = "Interest-Only"
    BULLET = "Bullet"
    EMI = "EMI"  # recorded on legacy loans, not schedulable


class Frequency(str, Enum):
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    HALF_YEARLY = "Half-Yearly"
    YEARLY = "Yearly"


class PayoutFrequency(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ON_MATURITY = "on_maturity"


class LoanStatus(str, Enum):
    ACTIVE = "Active"
    CLOSED = "Closed"
    DEFAULTED = "Defaulted"
    RESTRUCTURED = "Restructured"


class InvestmentStatus(str, Enum):
    ACTIVE = "Active"
    MATURED = "Matured"
    CLOSED = "Closed"
    WITHDRAWN = "Withdrawn"


class ScheduleStatus(str, Enum):
    UPCOMING = "Upcoming"
    PAID = "Paid"
    OVERDUE = "Overdue"
    PARTIAL = "Partial"


class CollectionStatus(str, Enum):
    RECEIVED = "Received"
    PENDING = "Pending"
    OVERDUE = "Overdue"
    PARTIAL = "Partial"
    DEFAULTED = "Defaulted"


class PaymentStatus(str, Enum):
    PAID = "Paid"
    PENDING = "Pending"
    OVERDUE = "Overdue"
    PARTIAL = "Partial"


class PaymentMode(str, Enum):
    BANK_TRANSFER = "Bank Transfer"
    CHEQUE = "Cheque"
    CASH = "Cash"
    UPI = "UPI"
    NEFT = "NEFT"
    RTGS = "RTGS"
    OTHER = "Other"
