"""Proposal negotiation for a single borrower inquiry."""

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterable

from lendflow.engine.schedule import parse_frequency, to_decimal
from lendflow.exceptions import (
    AcceptedProposalExistsError,
    EntityNotFoundError,
    InvalidInputError,
    OpenProposalExistsError,
    ProposalNotOpenError,
)
from lendflow.models.enums import Frequency, ProposalStatus
from lendflow.models.proposal import LoanTerms, Proposal, ProposalHistoryEntry

logger = logging.getLogger(__name__)


def coerce_terms(terms: LoanTerms) -> LoanTerms:
    """Normalize amount and rate to ``Decimal`` and the frequency to its enum.

    Values are taken as provided; no plausibility bounds are applied.
    """
    frequency = parse_frequency(terms.frequency)
    if not isinstance(frequency, Frequency):
        raise InvalidInputError(f"Proposal frequency must be a repayment frequency, got {terms.frequency!r}")
    if isinstance(terms.tenure, bool) or not isinstance(terms.tenure, int):
        raise InvalidInputError(f"tenure must be a whole number of months, got {terms.tenure!r}")
    return replace(
        terms,
        amount=to_decimal(terms.amount, "amount"),
        rate=to_decimal(terms.rate, "rate"),
        frequency=frequency,
    )


class ProposalNegotiation:
    """Ordered proposals for one borrower inquiry.

    At most one proposal is open (``Sent`` or ``Counter``) at any time and
    at most one is ever ``Accepted``. Operations mutate the proposals held
    by this object and return the affected proposal so the caller can
    persist it.

    Parameters
    ----------
    inquiry_id : str
        Borrower inquiry the proposals belong to.
    proposals : Iterable[Proposal]
        Existing proposals, oldest first.
    clock : Callable[[], datetime] | None
        Source of timestamps (default ``datetime.now``).
    id_factory : Callable[[], str] | None
        Source of proposal ids (default random hex).
    """

    def __init__(
        self,
        inquiry_id: str,
        proposals: Iterable[Proposal] = (),
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.inquiry_id = inquiry_id
        self._proposals = list(proposals)
        self._clock = clock or datetime.now
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)

        foreign = [p.proposal_id for p in self._proposals if p.inquiry_id != inquiry_id]
        if foreign:
            raise InvalidInputError(f"Proposals {foreign} do not belong to inquiry {inquiry_id}")

    @property
    def proposals(self) -> list[Proposal]:
        return list(self._proposals)

    def open_proposal(self) -> Proposal | None:
        """The proposal currently in ``Sent`` or ``Counter``, if any."""
        for proposal in self._proposals:
            if proposal.is_open:
                return proposal
        return None

    def accepted_proposal(self) -> Proposal | None:
        """The accepted proposal, if any."""
        accepted = [p for p in self._proposals if p.status == ProposalStatus.ACCEPTED]
        return accepted[0] if len(accepted) == 1 else None

    def has_accepted_proposal(self) -> bool:
        """True iff exactly one proposal for the inquiry is ``Accepted``."""
        accepted = sum(1 for p in self._proposals if p.status == ProposalStatus.ACCEPTED)
        if accepted > 1:
            logger.error(
                "Inquiry %s has %d accepted proposals",
                self.inquiry_id,
                accepted,
                extra={"inquiry_id": self.inquiry_id},
            )
        return accepted == 1

    def get(self, proposal_id: str) -> Proposal:
        for proposal in self._proposals:
            if proposal.proposal_id == proposal_id:
                return proposal
        raise EntityNotFoundError(f"Proposal {proposal_id} not found for inquiry {self.inquiry_id}")

    def send(self, original_terms: LoanTerms, proposed_terms: LoanTerms, notes: str = "") -> Proposal:
        """Start a new negotiation round.

        Parameters
        ----------
        original_terms : LoanTerms
            Snapshot of the terms on the inquiry at send time.
        proposed_terms : LoanTerms
            Terms offered to the borrower.
        notes : str
            Free-text notes.

        Returns
        -------
        Proposal
            The new proposal in status ``Sent``.

        Raises
        ------
        OpenProposalExistsError
            If a ``Sent`` or ``Counter`` proposal is still open.
        AcceptedProposalExistsError
            If a proposal was already accepted for this inquiry.
        """
        open_proposal = self.open_proposal()
        if open_proposal is not None:
            raise OpenProposalExistsError(
                f"Proposal {open_proposal.proposal_id} is still open for inquiry {self.inquiry_id}"
            )
        if any(p.status == ProposalStatus.ACCEPTED for p in self._proposals):
            raise AcceptedProposalExistsError(
                f"Inquiry {self.inquiry_id} already has an accepted proposal"
            )

        original = coerce_terms(original_terms)
        proposed = coerce_terms(proposed_terms)
        now = self._clock()
        proposal = Proposal(
            proposal_id=self._id_factory(),
            inquiry_id=self.inquiry_id,
            original_terms=original,
            proposed_terms=proposed,
            status=ProposalStatus.SENT,
            sent_at=now,
            history=[ProposalHistoryEntry(ProposalStatus.SENT, proposed, now, notes)],
            notes=notes,
        )
        self._proposals.append(proposal)
        logger.info(
            "Proposal %s sent for inquiry %s",
            proposal.proposal_id,
            self.inquiry_id,
            extra={"inquiry_id": self.inquiry_id, "proposal_id": proposal.proposal_id},
        )
        return proposal

    def accept(self, proposal_id: str, notes: str = "") -> Proposal:
        """Accept an open proposal; raises ``ProposalNotOpenError`` otherwise."""
        proposal = self._respond(proposal_id, ProposalStatus.ACCEPTED, None, notes)
        proposal.responded_at = proposal.history[-1].timestamp
        return proposal

    def reject(self, proposal_id: str, notes: str = "") -> Proposal:
        """Reject an open proposal; raises ``ProposalNotOpenError`` otherwise."""
        proposal = self._respond(proposal_id, ProposalStatus.REJECTED, None, notes)
        proposal.responded_at = proposal.history[-1].timestamp
        return proposal

    def counter(self, proposal_id: str, new_terms: LoanTerms, notes: str = "") -> Proposal:
        """Replace the terms of an open proposal, keeping it open."""
        return self._respond(proposal_id, ProposalStatus.COUNTER, coerce_terms(new_terms), notes)

    def expire(self, proposal_id: str, notes: str = "") -> Proposal:
        """Close an open proposal that was never answered."""
        return self._respond(proposal_id, ProposalStatus.EXPIRED, None, notes)

    def _respond(
        self,
        proposal_id: str,
        status: ProposalStatus,
        terms: LoanTerms | None,
        notes: str,
    ) -> Proposal:
        proposal = self.get(proposal_id)
        if not proposal.is_open:
            raise ProposalNotOpenError(
                f"Proposal {proposal_id} is {proposal.status.value}, expected Sent or Counter"
            )

        if terms is not None:
            proposal.proposed_terms = terms
        proposal.status = status
        proposal.history.append(
            ProposalHistoryEntry(status, proposal.proposed_terms, self._clock(), notes)
        )
        logger.info(
            "Proposal %s %s for inquiry %s",
            proposal_id,
            status.value.lower(),
            self.inquiry_id,
            extra={"inquiry_id": self.inquiry_id, "proposal_id": proposal_id},
        )
        return proposal
