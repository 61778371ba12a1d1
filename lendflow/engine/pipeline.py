"""Stage state machines for borrower and investor inquiries.

The pipeline never mutates the inquiry it is given. Each request works
on a deep copy and returns the new snapshot in a ``TransitionOutcome``.
Instrument creation is returned as a command for the persistence layer
to execute together with the stage write.
"""

import logging
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Iterable

from lendflow.config import EngineConfig
from lendflow.engine.negotiation import ProposalNegotiation
from lendflow.engine.schedule import (
    ScheduleRequest,
    generate_schedule,
    parse_frequency,
    parse_rate_type,
    parse_repayment_type,
    to_decimal,
)
from lendflow.exceptions import (
    InvalidEntityStateError,
    InvalidInputError,
    InvalidTransitionError,
    MissingApprovalTermsError,
    ProposalNotAcceptedError,
    StaleStateError,
)
from lendflow.models.enums import (
    BORROWER_STAGES,
    INVESTOR_STAGES,
    STAGE_LABELS,
    BorrowerStage,
    Frequency,
    InquiryType,
    InvestorStage,
    PayoutFrequency,
)
from lendflow.models.inquiry import ActivityLog, Inquiry
from lendflow.models.instrument import BorrowerLoan, InvestorInvestment
from lendflow.models.proposal import LoanTerms, Proposal

logger = logging.getLogger(__name__)

STAGE_CHANGE = "stage_change"

# Stages counted as closed business in the pipeline view
TERMINAL_STAGES: dict[InquiryType, tuple[str, str]] = {
    InquiryType.BORROWER: (BorrowerStage.APPROVED.value, BorrowerStage.DISBURSED.value),
    InquiryType.INVESTOR: (InvestorStage.AGREEMENT_DONE.value, InvestorStage.FUND_RECEIVED.value),
}

GUARDED_STAGES: dict[InquiryType, frozenset[str]] = {
    InquiryType.BORROWER: frozenset({BorrowerStage.PROPOSED.value, BorrowerStage.APPROVED.value}),
    InquiryType.INVESTOR: frozenset({InvestorStage.AGREEMENT_DONE.value}),
}

# Investor frequencies longer than a quarter pay out at maturity
_PAYOUT_BY_FREQUENCY = {
    Frequency.MONTHLY: PayoutFrequency.MONTHLY,
    Frequency.QUARTERLY: PayoutFrequency.QUARTERLY,
    Frequency.HALF_YEARLY: PayoutFrequency.ON_MATURITY,
    Frequency.YEARLY: PayoutFrequency.ON_MATURITY,
}


def stages_for(inquiry_type: InquiryType | str) -> tuple[str, ...]:
    """Ordered stage codes for an inquiry type."""
    try:
        kind = InquiryType(inquiry_type)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown inquiry type {inquiry_type!r}") from exc
    return BORROWER_STAGES if kind == InquiryType.BORROWER else INVESTOR_STAGES


def stage_label(stage: str) -> str:
    """Human-readable label for a stage code."""
    return STAGE_LABELS.get(stage, stage.replace("_", " ").title())


def to_payout_frequency(value: Any) -> PayoutFrequency:
    """Map an investor's stated frequency onto a payout frequency."""
    frequency = parse_frequency(value)
    if isinstance(frequency, PayoutFrequency):
        return frequency
    return _PAYOUT_BY_FREQUENCY[frequency]


class OutcomeKind(str, Enum):
    STAGE_CHANGED = "stage_changed"
    NO_OP = "no_op"
    NEEDS_INPUT = "needs_input"
    NEGOTIATION_STARTED = "negotiation_started"


@dataclass(frozen=True)
class ApprovalTerms:
    """Loan terms confirmed when a borrower is approved.

    ``amount``, ``rate``, ``tenure`` and ``frequency`` are required; the
    rest fall back to engine defaults.
    """

    amount: Any = None
    rate: Any = None
    tenure: int | None = None
    frequency: Any = None
    rate_type: Any = None
    repayment_type: Any = None
    start_date: date | None = None

    REQUIRED = ("amount", "rate", "tenure", "frequency")

    @classmethod
    def from_proposal(cls, proposal: Proposal) -> "ApprovalTerms":
        terms = proposal.proposed_terms
        return cls(amount=terms.amount, rate=terms.rate, tenure=terms.tenure, frequency=terms.frequency)


@dataclass(frozen=True)
class AcceptanceTerms:
    """Investment terms confirmed when an investor agreement is done.

    ``rate``, ``tenure`` and ``payout_frequency`` are required; ``amount``
    defaults to the inquiry's investment amount.
    """

    rate: Any = None
    tenure: int | None = None
    payout_frequency: Any = None
    amount: Any = None
    rate_type: Any = None
    start_date: date | None = None

    REQUIRED = ("rate", "tenure", "payout_frequency")


def _missing(terms: ApprovalTerms | AcceptanceTerms) -> tuple[str, ...]:
    return tuple(name for name in terms.REQUIRED if getattr(terms, name) is None)


@dataclass
class TransitionContext:
    """Everything a transition request may carry besides the target stage.

    Parameters
    ----------
    expected_stage : str | None
        Stage the caller believes the inquiry is in; a mismatch raises
        ``StaleStateError``.
    proposals : list[Proposal]
        The inquiry's proposals, consulted by the borrower approval guard.
    approval_terms : ApprovalTerms | None
        Loan terms for borrower approval. Omitted means "use the accepted
        proposal's terms".
    acceptance_terms : AcceptanceTerms | None
        Investment terms for investor agreement. Omitted means the caller
        is asked for them.
    note : str
        Free text stored on the activity log entry.
    """

    expected_stage: str | None = None
    proposals: list[Proposal] = field(default_factory=list)
    approval_terms: ApprovalTerms | None = None
    acceptance_terms: AcceptanceTerms | None = None
    note: str = ""


@dataclass
class CreateLoanCommand:
    """Request for the persistence layer to create a borrower loan."""

    loan: BorrowerLoan

    @property
    def inquiry_id(self) -> str:
        return self.loan.inquiry_id


@dataclass
class CreateInvestmentCommand:
    """Request for the persistence layer to create an investor investment."""

    investment: InvestorInvestment

    @property
    def inquiry_id(self) -> str:
        return self.investment.inquiry_id


CreateInstrumentCommand = CreateLoanCommand | CreateInvestmentCommand


@dataclass
class TransitionOutcome:
    """Result of a successful ``request_transition`` call."""

    kind: OutcomeKind
    inquiry: Inquiry  # snapshot after the transition
    activity: ActivityLog | None = None
    command: CreateInstrumentCommand | None = None
    required_fields: tuple[str, ...] = ()
    suggested: dict[str, Any] = field(default_factory=dict)
    open_proposal: Proposal | None = None
    original_terms: LoanTerms | None = None

    @property
    def changed(self) -> bool:
        return self.kind == OutcomeKind.STAGE_CHANGED


@dataclass
class StageColumn:
    """One stage of a pipeline view."""

    stage: str
    label: str
    inquiries: list[Inquiry] = field(default_factory=list)
    total_amount: Decimal = Decimal("0")

    @property
    def count(self) -> int:
        return len(self.inquiries)


@dataclass
class PipelineView:
    """Inquiries of one type grouped by stage, in pipeline order."""

    inquiry_type: InquiryType
    columns: list[StageColumn]
    total: int
    active: int
    terminal_counts: dict[str, int]

    def as_mapping(self) -> dict[str, list[Inquiry]]:
        """Stage code to inquiries, every stage present."""
        return {column.stage: column.inquiries for column in self.columns}

    def column(self, stage: str) -> StageColumn:
        for column in self.columns:
            if column.stage == stage:
                return column
        raise InvalidInputError(f"Stage {stage} is not part of the {self.inquiry_type.value} pipeline")


def build_pipeline_view(inquiry_type: InquiryType | str, inquiries: Iterable[Inquiry]) -> PipelineView:
    """Group inquiries of ``inquiry_type`` by stage.

    Inquiries of the other type are ignored; inquiries in an unknown
    stage are left out with a warning.
    """
    kind = InquiryType(inquiry_type)
    columns = [StageColumn(stage=s, label=stage_label(s)) for s in stages_for(kind)]
    by_stage = {column.stage: column for column in columns}

    total = 0
    for inquiry in inquiries:
        if inquiry.inquiry_type != kind:
            continue
        column = by_stage.get(inquiry.stage)
        if column is None:
            logger.warning(
                "Inquiry %s is in unknown stage %r",
                inquiry.inquiry_id,
                inquiry.stage,
                extra={"inquiry_id": inquiry.inquiry_id},
            )
            continue
        column.inquiries.append(inquiry)
        column.total_amount += inquiry.requested_amount
        total += 1

    terminal_counts = {stage: by_stage[stage].count for stage in TERMINAL_STAGES[kind]}
    return PipelineView(
        inquiry_type=kind,
        columns=columns,
        total=total,
        active=total - sum(terminal_counts.values()),
        terminal_counts=terminal_counts,
    )


def build_borrower_loan(
    inquiry: Inquiry,
    terms: ApprovalTerms,
    config: EngineConfig,
    today: date,
    created_at: datetime | None = None,
) -> BorrowerLoan:
    """Build an unsaved loan and its repayment schedule from approval terms."""
    amount = to_decimal(terms.amount, "amount")
    rate = to_decimal(terms.rate, "rate")
    rate_type = parse_rate_type(terms.rate_type or config.default_rate_type)
    repayment_type = parse_repayment_type(terms.repayment_type or config.default_repayment_type)
    frequency = parse_frequency(terms.frequency)
    if not isinstance(frequency, Frequency):
        raise InvalidInputError(
            "Loan repayment frequency must be Monthly, Quarterly, Half-Yearly or Yearly, "
            f"got {terms.frequency!r}"
        )
    start_date = terms.start_date or today

    schedule = generate_schedule(
        ScheduleRequest(
            principal=amount,
            rate=rate,
            tenure=terms.tenure,
            frequency=frequency,
            start_date=start_date,
            rate_type=rate_type,
            repayment_type=repayment_type,
        )
    )

    return BorrowerLoan(
        loan_id="",
        inquiry_id=inquiry.inquiry_id,
        borrower_name=inquiry.name,
        approved_amount=amount,
        interest_rate=rate,
        rate_type=rate_type,
        tenure=terms.tenure,
        repayment_type=repayment_type,
        repayment_frequency=frequency,
        start_date=start_date,
        end_date=schedule.end_date,
        monthly_interest=schedule.monthly_interest,
        total_interest=schedule.total_interest,
        total_repayable=schedule.total_repayable,
        repayment_schedule=schedule.entries,
        created_at=created_at,
    )


def build_investor_investment(
    inquiry: Inquiry,
    terms: AcceptanceTerms,
    config: EngineConfig,
    today: date,
    created_at: datetime | None = None,
) -> InvestorInvestment:
    """Build an unsaved investment and its payout schedule from acceptance terms."""
    amount_value = terms.amount
    if amount_value is None and inquiry.investor_details is not None:
        amount_value = inquiry.investor_details.investment_amount
    if amount_value is None:
        raise MissingApprovalTermsError(
            f"Investment amount is required for inquiry {inquiry.inquiry_id}", ("amount",)
        )

    amount = to_decimal(amount_value, "amount")
    rate = to_decimal(terms.rate, "rate")
    rate_type = parse_rate_type(terms.rate_type or config.default_rate_type)
    payout_frequency = to_payout_frequency(terms.payout_frequency)
    start_date = terms.start_date or today

    schedule = generate_schedule(
        ScheduleRequest(
            principal=amount,
            rate=rate,
            tenure=terms.tenure,
            frequency=payout_frequency,
            start_date=start_date,
            rate_type=rate_type,
        )
    )

    return InvestorInvestment(
        investment_id="",
        inquiry_id=inquiry.inquiry_id,
        investor_name=inquiry.name,
        invested_amount=amount,
        interest_rate=rate,
        rate_type=rate_type,
        tenure=terms.tenure,
        payout_frequency=payout_frequency,
        start_date=start_date,
        maturity_date=schedule.end_date,
        monthly_interest=schedule.monthly_interest,
        total_interest=schedule.total_interest,
        total_payout=schedule.total_payout,
        payout_schedule=schedule.entries,
        created_at=created_at,
    )


class StagePipeline:
    """Authoritative stage state machine for both inquiry types.

    Parameters
    ----------
    config : EngineConfig | None
        Defaults for approval terms and ordering rules.
    clock : Callable[[], datetime] | None
        Source of timestamps (default ``datetime.now``).
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self._clock = clock or datetime.now

    def request_transition(
        self,
        inquiry: Inquiry,
        target_stage: str,
        context: TransitionContext | None = None,
    ) -> TransitionOutcome:
        """Move ``inquiry`` to ``target_stage``.

        Parameters
        ----------
        inquiry : Inquiry
            Current snapshot; never mutated.
        target_stage : str
            Stage code from the inquiry type's pipeline.
        context : TransitionContext | None
            Expected stage, proposals and confirmation terms.

        Returns
        -------
        TransitionOutcome
            ``STAGE_CHANGED`` with the new snapshot (and a creation command
            for guarded terminal stages), ``NO_OP``, ``NEEDS_INPUT`` or
            ``NEGOTIATION_STARTED``.

        Raises
        ------
        InvalidTransitionError
            Unknown stage code, or a skip forward under strict ordering.
        StaleStateError
            ``context.expected_stage`` differs from the inquiry's stage.
        ProposalNotAcceptedError
            Borrower approval without an accepted proposal.
        MissingApprovalTermsError
            Confirmation terms supplied but incomplete.
        """
        context = context or TransitionContext()
        target = target_stage.value if isinstance(target_stage, Enum) else target_stage
        stages = stages_for(inquiry.inquiry_type)
        extra = {"inquiry_id": inquiry.inquiry_id, "old_stage": inquiry.stage, "new_stage": target}

        if target not in stages:
            logger.warning(
                "Rejected transition of %s to unknown stage %r",
                inquiry.inquiry_id,
                target,
                extra={**extra, "error_code": InvalidTransitionError.code},
            )
            raise InvalidTransitionError(
                f"{target!r} is not a {inquiry.inquiry_type.value} stage; expected one of {', '.join(stages)}"
            )

        if context.expected_stage is not None and context.expected_stage != inquiry.stage:
            logger.warning(
                "Stale snapshot for %s: expected %s, found %s",
                inquiry.inquiry_id,
                context.expected_stage,
                inquiry.stage,
                extra={**extra, "error_code": StaleStateError.code},
            )
            raise StaleStateError(
                f"Inquiry {inquiry.inquiry_id} is in {inquiry.stage}, not {context.expected_stage}"
            )

        if target == inquiry.stage:
            return TransitionOutcome(kind=OutcomeKind.NO_OP, inquiry=deepcopy(inquiry))

        self._check_order(inquiry, target, stages)

        if inquiry.inquiry_type == InquiryType.BORROWER:
            if target == BorrowerStage.PROPOSED.value:
                return self._start_negotiation(inquiry, context)
            if target == BorrowerStage.APPROVED.value and inquiry.instrument_id is None:
                return self._approve_borrower(inquiry, context)
        elif target == InvestorStage.AGREEMENT_DONE.value and inquiry.instrument_id is None:
            return self._accept_investor(inquiry, context)

        return self._write_stage(inquiry, target, context.note)

    def stamp_instrument(self, inquiry: Inquiry, instrument_id: str) -> Inquiry:
        """Return a copy of ``inquiry`` linked to its created loan or investment."""
        if inquiry.instrument_id is not None and inquiry.instrument_id != instrument_id:
            raise InvalidEntityStateError(
                f"Inquiry {inquiry.inquiry_id} already has instrument {inquiry.instrument_id}"
            )
        stamped = deepcopy(inquiry)
        stamped.instrument_id = instrument_id
        logger.info(
            "Inquiry %s linked to %s",
            inquiry.inquiry_id,
            instrument_id,
            extra={"inquiry_id": inquiry.inquiry_id, "instrument_id": instrument_id},
        )
        return stamped

    def view(self, inquiry_type: InquiryType | str, inquiries: Iterable[Inquiry]) -> PipelineView:
        return build_pipeline_view(inquiry_type, inquiries)

    def _check_order(self, inquiry: Inquiry, target: str, stages: tuple[str, ...]) -> None:
        if not self.config.strict_stage_order or inquiry.stage not in stages:
            return
        if target in GUARDED_STAGES[inquiry.inquiry_type]:
            return
        if stages.index(target) > stages.index(inquiry.stage) + 1:
            logger.warning(
                "Rejected skip of %s from %s to %s",
                inquiry.inquiry_id,
                inquiry.stage,
                target,
                extra={"inquiry_id": inquiry.inquiry_id, "error_code": InvalidTransitionError.code},
            )
            raise InvalidTransitionError(
                f"Cannot skip from {inquiry.stage} to {target} while strict stage order is on"
            )

    def _start_negotiation(self, inquiry: Inquiry, context: TransitionContext) -> TransitionOutcome:
        negotiation = ProposalNegotiation(inquiry.inquiry_id, context.proposals, clock=self._clock)
        original = None
        details = inquiry.borrower_details
        if details is not None:
            original = LoanTerms(
                amount=details.loan_amount,
                rate=details.proposed_interest,
                tenure=details.tenure,
                frequency=details.frequency,
            )
        return TransitionOutcome(
            kind=OutcomeKind.NEGOTIATION_STARTED,
            inquiry=deepcopy(inquiry),
            open_proposal=negotiation.open_proposal(),
            original_terms=original,
        )

    def _approve_borrower(self, inquiry: Inquiry, context: TransitionContext) -> TransitionOutcome:
        negotiation = ProposalNegotiation(inquiry.inquiry_id, context.proposals, clock=self._clock)
        if not negotiation.has_accepted_proposal():
            logger.warning(
                "Rejected approval of %s: no accepted proposal",
                inquiry.inquiry_id,
                extra={"inquiry_id": inquiry.inquiry_id, "error_code": ProposalNotAcceptedError.code},
            )
            raise ProposalNotAcceptedError(
                f"Inquiry {inquiry.inquiry_id} has no accepted proposal"
            )

        terms = context.approval_terms
        if terms is None:
            terms = ApprovalTerms.from_proposal(negotiation.accepted_proposal())
        missing = _missing(terms)
        if missing:
            raise MissingApprovalTermsError(
                f"Approval of {inquiry.inquiry_id} is missing {', '.join(missing)}", missing
            )

        now = self._clock()
        loan = build_borrower_loan(inquiry, terms, self.config, now.date(), created_at=now)
        outcome = self._write_stage(inquiry, BorrowerStage.APPROVED.value, context.note)
        outcome.command = CreateLoanCommand(loan)
        return outcome

    def _accept_investor(self, inquiry: Inquiry, context: TransitionContext) -> TransitionOutcome:
        terms = context.acceptance_terms
        if terms is None:
            return TransitionOutcome(
                kind=OutcomeKind.NEEDS_INPUT,
                inquiry=deepcopy(inquiry),
                required_fields=AcceptanceTerms.REQUIRED,
                suggested=self._suggest_acceptance(inquiry),
            )

        missing = _missing(terms)
        if missing:
            raise MissingApprovalTermsError(
                f"Agreement for {inquiry.inquiry_id} is missing {', '.join(missing)}", missing
            )

        now = self._clock()
        investment = build_investor_investment(inquiry, terms, self.config, now.date(), created_at=now)
        outcome = self._write_stage(inquiry, InvestorStage.AGREEMENT_DONE.value, context.note)
        outcome.command = CreateInvestmentCommand(investment)
        return outcome

    def _suggest_acceptance(self, inquiry: Inquiry) -> dict[str, Any]:
        suggested: dict[str, Any] = {
            "rate_type": self.config.default_rate_type,
            "payout_frequency": self.config.default_payout_frequency,
            "start_date": self._clock().date(),
        }
        details = inquiry.investor_details
        if details is not None:
            suggested.update(
                amount=details.investment_amount,
                rate=details.expected_interest,
                tenure=details.tenure,
                payout_frequency=to_payout_frequency(details.frequency),
            )
        return suggested

    def _write_stage(self, inquiry: Inquiry, target: str, note: str) -> TransitionOutcome:
        now = self._clock()
        updated = deepcopy(inquiry)
        activity = ActivityLog(
            action=STAGE_CHANGE,
            old_stage=inquiry.stage,
            new_stage=target,
            changed_at=now,
            note=note,
        )
        updated.activity_logs.append(activity)
        updated.stage = target
        updated.last_activity_at = now
        logger.info(
            "Inquiry %s moved %s -> %s",
            inquiry.inquiry_id,
            inquiry.stage,
            target,
            extra={"inquiry_id": inquiry.inquiry_id, "old_stage": inquiry.stage, "new_stage": target},
        )
        return TransitionOutcome(kind=OutcomeKind.STAGE_CHANGED, inquiry=updated, activity=activity)
