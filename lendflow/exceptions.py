"""Custom exception hierarchy for lendflow.

Every exception carries a stable ``code`` so that a transport layer
(HTTP route, RPC handler) can map failures without parsing messages.
"""


class LendFlowError(Exception):
    """Base exception for all lendflow errors."""

    code = "LendFlowError"


class EntityNotFoundError(LendFlowError):
    """Raised when a referenced entity does not exist."""

    code = "NotFound"


class ReferentialIntegrityError(EntityNotFoundError):
    """Raised when a foreign key reference is violated."""


class InvalidEntityStateError(LendFlowError):
    """Raised when an entity is in an invalid state for the operation."""

    code = "InvalidState"


class InvalidInputError(LendFlowError):
    """Raised when numeric or coded input cannot produce a valid result."""

    code = "InvalidInput"


class TransitionError(LendFlowError):
    """Base class for stage transition failures."""


class InvalidTransitionError(TransitionError):
    """Raised when the target stage is not defined for the inquiry type."""

    code = "InvalidTransition"


class ProposalNotAcceptedError(TransitionError):
    """Raised when a borrower is moved to APPROVED without an accepted proposal."""

    code = "ProposalNotAccepted"


class MissingApprovalTermsError(TransitionError):
    """Raised when supplied approval or acceptance terms are incomplete."""

    code = "MissingApprovalTerms"

    def __init__(self, message: str, missing: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.missing = missing


class StaleStateError(TransitionError):
    """Raised when a snapshot no longer matches what the caller believed."""

    code = "StaleState"


class NegotiationError(LendFlowError):
    """Base class for proposal negotiation failures."""


class OpenProposalExistsError(NegotiationError):
    """Raised when sending a proposal while another one is still open."""

    code = "OpenProposalExists"


class ProposalNotOpenError(NegotiationError):
    """Raised when responding to a proposal that is not Sent or Counter."""

    code = "NotOpen"


class AcceptedProposalExistsError(NegotiationError):
    """Raised when sending a proposal after one was already accepted."""

    code = "AcceptedProposalExists"


class ConfigurationError(LendFlowError):
    """Raised when configuration is invalid or missing."""

    code = "Configuration"


class SinkError(LendFlowError):
    """Raised when a sink operation fails."""

    code = "Sink"
