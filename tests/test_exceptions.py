"""Tests for custom exception hierarchy."""

import pytest

from lendflow.exceptions import (
    AcceptedProposalExistsError,
    ConfigurationError,
    EntityNotFoundError,
    InvalidEntityStateError,
    InvalidInputError,
    InvalidTransitionError,
    LendFlowError,
    MissingApprovalTermsError,
    NegotiationError,
    OpenProposalExistsError,
    ProposalNotAcceptedError,
    ProposalNotOpenError,
    ReferentialIntegrityError,
    SinkError,
    StaleStateError,
    TransitionError,
)


class TestExceptionHierarchy:
    """Test exception inheritance chain."""

    def test_lendflow_error_is_exception(self) -> None:
        assert isinstance(LendFlowError("test"), Exception)

    def test_referential_integrity_is_entity_not_found(self) -> None:
        err = ReferentialIntegrityError("test")
        assert isinstance(err, EntityNotFoundError)
        assert isinstance(err, LendFlowError)

    @pytest.mark.parametrize(
        "exc_type",
        [InvalidTransitionError, ProposalNotAcceptedError, MissingApprovalTermsError, StaleStateError],
    )
    def test_transition_errors(self, exc_type: type) -> None:
        assert issubclass(exc_type, TransitionError)

    @pytest.mark.parametrize(
        "exc_type",
        [OpenProposalExistsError, ProposalNotOpenError, AcceptedProposalExistsError],
    )
    def test_negotiation_errors(self, exc_type: type) -> None:
        assert issubclass(exc_type, NegotiationError)

    @pytest.mark.parametrize(
        "exc_type",
        [InvalidEntityStateError, InvalidInputError, ConfigurationError, SinkError],
    )
    def test_other_errors_are_lendflow_errors(self, exc_type: type) -> None:
        assert issubclass(exc_type, LendFlowError)

    def test_exception_message(self) -> None:
        err = ReferentialIntegrityError("Inquiry INQ-0001 not found")
        assert str(err) == "Inquiry INQ-0001 not found"


class TestErrorCodes:
    """Stable codes for transport mapping."""

    @pytest.mark.parametrize(
        "exc_type,code",
        [
            (InvalidTransitionError, "InvalidTransition"),
            (ProposalNotAcceptedError, "ProposalNotAccepted"),
            (MissingApprovalTermsError, "MissingApprovalTerms"),
            (StaleStateError, "StaleState"),
            (OpenProposalExistsError, "OpenProposalExists"),
            (ProposalNotOpenError, "NotOpen"),
            (InvalidInputError, "InvalidInput"),
            (EntityNotFoundError, "NotFound"),
        ],
    )
    def test_code(self, exc_type: type, code: str) -> None:
        assert exc_type.code == code

    def test_missing_terms_carries_fields(self) -> None:
        err = MissingApprovalTermsError("missing rate", ("rate",))
        assert err.missing == ("rate",)
        assert MissingApprovalTermsError("missing").missing == ()
