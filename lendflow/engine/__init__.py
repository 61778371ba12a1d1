"""Lifecycle engine: stage pipeline, negotiation, schedules and profit."""

from lendflow.engine.negotiation import ProposalNegotiation
from lendflow.engine.pipeline import (
    AcceptanceTerms,
    ApprovalTerms,
    CreateInvestmentCommand,
    CreateLoanCommand,
    OutcomeKind,
    PipelineView,
    StagePipeline,
    TransitionContext,
    TransitionOutcome,
)
from lendflow.engine.profit import MonthlyProfit, ProfitSnapshot, compute_profit_snapshot
from lendflow.engine.schedule import Schedule, ScheduleRequest, generate_schedule, set_entry_status

__all__ = [
    "AcceptanceTerms",
    "ApprovalTerms",
    "CreateInvestmentCommand",
    "CreateLoanCommand",
    "MonthlyProfit",
    "OutcomeKind",
    "PipelineView",
    "ProfitSnapshot",
    "ProposalNegotiation",
    "Schedule",
    "ScheduleRequest",
    "StagePipeline",
    "TransitionContext",
    "TransitionOutcome",
    "compute_profit_snapshot",
    "generate_schedule",
    "set_entry_status",
]
