"""In-memory lending store with referential integrity and versioned inquiries."""

import logging
from copy import deepcopy
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Callable

from lendflow.engine.pipeline import CreateInvestmentCommand, CreateLoanCommand
from lendflow.engine.schedule import set_entry_status
from lendflow.exceptions import (
    EntityNotFoundError,
    InvalidEntityStateError,
    ReferentialIntegrityError,
    StaleStateError,
)
from lendflow.models import (
    BorrowerCollection,
    BorrowerLoan,
    Inquiry,
    InquiryType,
    InvestmentStatus,
    InvestorInvestment,
    InvestorPayment,
    LoanStatus,
    Proposal,
    ScheduleStatus,
)

logger = logging.getLogger(__name__)

ID_PREFIXES = {
    "inquiry": "INQ",
    "proposal": "PRP",
    "loan": "LN",
    "investment": "INV",
    "collection": "COL",
    "payment": "PAY",
}


@dataclass
class InMemoryLendingStore:
    """Reference persistence collaborator for the lifecycle service.

    Records go in and come out as deep copies, so callers never share
    state with the store. Every saved inquiry carries a ``version`` that
    must match the stored one; a mismatch raises ``StaleStateError``.
    """

    inquiries: dict[str, Inquiry] = field(default_factory=dict)
    proposals: dict[str, Proposal] = field(default_factory=dict)
    loans: dict[str, BorrowerLoan] = field(default_factory=dict)
    investments: dict[str, InvestorInvestment] = field(default_factory=dict)
    collections: list[BorrowerCollection] = field(default_factory=list)
    payments: list[InvestorPayment] = field(default_factory=list)

    # Relationship indexes
    _inquiry_proposals: dict[str, list[str]] = field(default_factory=dict)
    _counters: dict[str, int] = field(default_factory=lambda: {k: 0 for k in ID_PREFIXES})

    def _next_id(self, kind: str) -> str:
        self._counters[kind] += 1
        return f"{ID_PREFIXES[kind]}-{self._counters[kind]:04d}"

    def _peek_id(self, kind: str) -> str:
        return f"{ID_PREFIXES[kind]}-{self._counters[kind] + 1:04d}"

    # Inquiries
    def add_inquiry(self, inquiry: Inquiry) -> Inquiry:
        """Add a new inquiry, assigning an id when it has none."""
        stored = deepcopy(inquiry)
        if not stored.inquiry_id:
            stored.inquiry_id = self._next_id("inquiry")
        if stored.inquiry_id in self.inquiries:
            raise InvalidEntityStateError(f"Inquiry {stored.inquiry_id} already exists")
        stored.version = 0
        self.inquiries[stored.inquiry_id] = stored
        self._inquiry_proposals[stored.inquiry_id] = []
        return deepcopy(stored)

    def load_inquiry(self, inquiry_id: str) -> Inquiry:
        """Get a snapshot of an inquiry."""
        if inquiry_id not in self.inquiries:
            raise EntityNotFoundError(f"Inquiry {inquiry_id} not found")
        return deepcopy(self.inquiries[inquiry_id])

    def save_inquiry(self, inquiry: Inquiry) -> Inquiry:
        """Save an inquiry snapshot, bumping its version."""
        self._check_version(inquiry)
        stored = deepcopy(inquiry)
        stored.version += 1
        self.inquiries[stored.inquiry_id] = stored
        return deepcopy(stored)

    def list_inquiries(self, inquiry_type: InquiryType | None = None) -> list[Inquiry]:
        """Get all inquiries, optionally of one type."""
        return [
            deepcopy(i)
            for i in self.inquiries.values()
            if inquiry_type is None or i.inquiry_type == inquiry_type
        ]

    def _check_version(self, inquiry: Inquiry) -> None:
        current = self.inquiries.get(inquiry.inquiry_id)
        if current is None:
            raise EntityNotFoundError(f"Inquiry {inquiry.inquiry_id} not found")
        if current.version != inquiry.version:
            raise StaleStateError(
                f"Inquiry {inquiry.inquiry_id} is at version {current.version}, "
                f"snapshot has {inquiry.version}"
            )

    # Proposals
    def new_proposal_id(self) -> str:
        return self._next_id("proposal")

    def save_proposal(self, proposal: Proposal) -> None:
        """Insert or replace a proposal."""
        if proposal.inquiry_id not in self.inquiries:
            raise ReferentialIntegrityError(f"Inquiry {proposal.inquiry_id} not found")
        if proposal.proposal_id not in self.proposals:
            self._inquiry_proposals[proposal.inquiry_id].append(proposal.proposal_id)
        self.proposals[proposal.proposal_id] = deepcopy(proposal)

    def list_proposals(self, inquiry_id: str) -> list[Proposal]:
        """Get all proposals for an inquiry, oldest first."""
        ids = self._inquiry_proposals.get(inquiry_id, [])
        return [deepcopy(self.proposals[pid]) for pid in ids]

    def load_open_proposal(self, inquiry_id: str) -> Proposal | None:
        for proposal in self.list_proposals(inquiry_id):
            if proposal.is_open:
                return proposal
        return None

    # Instruments
    def create_loan(self, loan: BorrowerLoan) -> str:
        """Store a new loan and return its id."""
        if loan.inquiry_id not in self.inquiries:
            raise ReferentialIntegrityError(f"Inquiry {loan.inquiry_id} not found")
        loan_id = self._next_id("loan")
        self.loans[loan_id] = replace(deepcopy(loan), loan_id=loan_id)
        return loan_id

    def create_investment(self, investment: InvestorInvestment) -> str:
        """Store a new investment and return its id."""
        if investment.inquiry_id not in self.inquiries:
            raise ReferentialIntegrityError(f"Inquiry {investment.inquiry_id} not found")
        investment_id = self._next_id("investment")
        self.investments[investment_id] = replace(deepcopy(investment), investment_id=investment_id)
        return investment_id

    def load_loan(self, loan_id: str) -> BorrowerLoan:
        if loan_id not in self.loans:
            raise EntityNotFoundError(f"Loan {loan_id} not found")
        return deepcopy(self.loans[loan_id])

    def load_investment(self, investment_id: str) -> InvestorInvestment:
        if investment_id not in self.investments:
            raise EntityNotFoundError(f"Investment {investment_id} not found")
        return deepcopy(self.investments[investment_id])

    def query_loans(self) -> list[BorrowerLoan]:
        return [deepcopy(loan) for loan in self.loans.values()]

    def query_investments(self) -> list[InvestorInvestment]:
        return [deepcopy(inv) for inv in self.investments.values()]

    def query_active_loans(self) -> list[BorrowerLoan]:
        return [deepcopy(loan) for loan in self.loans.values() if loan.status == LoanStatus.ACTIVE]

    def query_active_investments(self) -> list[InvestorInvestment]:
        return [
            deepcopy(inv) for inv in self.investments.values() if inv.status == InvestmentStatus.ACTIVE
        ]

    def set_loan_status(self, loan_id: str, status: LoanStatus) -> None:
        loan = self.load_loan(loan_id)
        self.loans[loan_id] = replace(loan, status=LoanStatus(status))

    def set_investment_status(self, investment_id: str, status: InvestmentStatus) -> None:
        inv = self.load_investment(investment_id)
        self.investments[investment_id] = replace(inv, status=InvestmentStatus(status))

    def update_schedule_status(
        self,
        instrument_id: str,
        sequence_number: int,
        status: ScheduleStatus,
    ) -> None:
        """Record a payment status against one schedule entry of a loan or investment."""
        if instrument_id in self.loans:
            loan = self.loans[instrument_id]
            schedule = set_entry_status(loan.repayment_schedule, sequence_number, status)
            self.loans[instrument_id] = replace(loan, repayment_schedule=schedule)
        elif instrument_id in self.investments:
            inv = self.investments[instrument_id]
            schedule = set_entry_status(inv.payout_schedule, sequence_number, status)
            self.investments[instrument_id] = replace(inv, payout_schedule=schedule)
        else:
            raise EntityNotFoundError(f"Instrument {instrument_id} not found")

    def commit_transition(
        self,
        inquiry: Inquiry,
        command: CreateLoanCommand | CreateInvestmentCommand | None = None,
        stamp: Callable[[Inquiry, str], Inquiry] | None = None,
    ) -> str | None:
        """Create the instrument (if any), link it to the inquiry and save the inquiry.

        Everything is validated before anything is written, so a failure
        leaves the store untouched.

        Parameters
        ----------
        inquiry : Inquiry
            New snapshot, still carrying the version it was loaded at.
        command : CreateLoanCommand | CreateInvestmentCommand | None
            Instrument to create alongside the stage write.
        stamp : Callable[[Inquiry, str], Inquiry] | None
            Links the inquiry to the new instrument id; plain assignment
            when omitted.

        Returns
        -------
        str | None
            Id of the created instrument.
        """
        self._check_version(inquiry)
        if command is None:
            self.save_inquiry(inquiry)
            return None

        if command.inquiry_id != inquiry.inquiry_id:
            raise ReferentialIntegrityError(
                f"Command for inquiry {command.inquiry_id} cannot commit with {inquiry.inquiry_id}"
            )
        if self.inquiries[inquiry.inquiry_id].instrument_id is not None:
            raise InvalidEntityStateError(
                f"Inquiry {inquiry.inquiry_id} already has an instrument"
            )

        kind = "loan" if isinstance(command, CreateLoanCommand) else "investment"
        instrument_id = self._peek_id(kind)
        if stamp is None:
            stamped = replace(deepcopy(inquiry), instrument_id=instrument_id)
        else:
            stamped = stamp(inquiry, instrument_id)

        if isinstance(command, CreateLoanCommand):
            created = self.create_loan(command.loan)
        else:
            created = self.create_investment(command.investment)
        self.save_inquiry(stamped)
        logger.info(
            "Created %s %s for inquiry %s",
            kind,
            created,
            inquiry.inquiry_id,
            extra={"inquiry_id": inquiry.inquiry_id, "instrument_id": created},
        )
        return created

    # Ledger
    def add_collection(self, collection: BorrowerCollection) -> BorrowerCollection:
        """Record a borrower collection, assigning an id when it has none."""
        if collection.loan_id not in self.loans:
            raise ReferentialIntegrityError(f"Loan {collection.loan_id} not found")
        stored = deepcopy(collection)
        if not stored.collection_id:
            stored.collection_id = self._next_id("collection")
        self.collections.append(stored)
        return deepcopy(stored)

    def add_payment(self, payment: InvestorPayment) -> InvestorPayment:
        """Record an investor payment, assigning an id when it has none."""
        if payment.investment_id not in self.investments:
            raise ReferentialIntegrityError(f"Investment {payment.investment_id} not found")
        stored = deepcopy(payment)
        if not stored.payment_id:
            stored.payment_id = self._next_id("payment")
        self.payments.append(stored)
        return deepcopy(stored)

    def query_payments_and_collections(
        self,
        start: date | None = None,
        end: date | None = None,
    ) -> tuple[list[BorrowerCollection], list[InvestorPayment]]:
        """Collections and payments dated within ``[start, end]`` (open bounds when omitted)."""

        def in_range(day: date) -> bool:
            return (start is None or day >= start) and (end is None or day <= end)

        return (
            [deepcopy(c) for c in self.collections if in_range(c.collection_date)],
            [deepcopy(p) for p in self.payments if in_range(p.payment_date)],
        )

    def summary(self) -> dict[str, int]:
        """Return summary counts of all entities."""
        return {
            "inquiries": len(self.inquiries),
            "proposals": len(self.proposals),
            "loans": len(self.loans),
            "investments": len(self.investments),
            "collections": len(self.collections),
            "payments": len(self.payments),
        }
