"""Collection and payout records kept by the payments ledger."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from lendflow.models.enums import CollectionStatus, PaymentMode, PaymentStatus


@dataclass
class BorrowerCollection:
    """Interest or principal collected from a borrower."""

    collection_id: str
    loan_id: str
    collection_date: date
    amount: Decimal  # actually paid
    interest_amount: Decimal
    principal_amount: Decimal
    status: CollectionStatus
    pending_amount: Decimal = Decimal("0")
    payment_mode: PaymentMode = PaymentMode.BANK_TRANSFER
    penalty: Decimal = Decimal("0")
    overdue_days: int = 0
    schedule_sequence: int | None = None
    created_at: datetime | None = None


@dataclass
class InvestorPayment:
    """Interest or principal paid out to an investor."""

    payment_id: str
    investment_id: str
    payment_date: date
    amount: Decimal  # actually paid
    interest_amount: Decimal
    principal_amount: Decimal
    status: PaymentStatus
    pending_interest: Decimal = Decimal("0")
    payment_mode: PaymentMode = PaymentMode.BANK_TRANSFER
    schedule_sequence: int | None = None
    created_at: datetime | None = None
