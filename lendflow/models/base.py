"""Base models shared across the lending domain."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Event:
    """Domain event envelope published after a committed mutation."""

    event_id: str
    event_type: str  # entity.action (e.g., proposal.accepted)
    event_time: datetime
    source: str  # Component that emitted it
    subject: str  # Entity ID affected
    data: dict
    metadata: dict = field(default_factory=dict)
