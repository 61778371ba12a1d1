"""Pytest configuration and fixtures."""

from datetime import date, datetime
from decimal import Decimal
from typing import Callable

import pytest

from lendflow.config import EngineConfig
from lendflow.engine.pipeline import StagePipeline
from lendflow.models import (
    BorrowerDetails,
    Frequency,
    Inquiry,
    InquiryType,
    InvestorDetails,
    PayoutFrequency,
)
from lendflow.service import LifecycleService
from lendflow.store import InMemoryLendingStore

NOW = datetime(2025, 1, 15, 10, 30)


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Frozen clock at 2025-01-15 10:30."""
    return lambda: NOW


@pytest.fixture
def today() -> date:
    return NOW.date()


@pytest.fixture
def borrower_inquiry() -> Inquiry:
    """Verified borrower asking for 5 lakh at 12% over a year."""
    return Inquiry(
        inquiry_id="INQ-0001",
        inquiry_type=InquiryType.BORROWER,
        name="Asha Verma",
        mobile="9876543210",
        stage="VERIFIED",
        created_at=datetime(2024, 12, 1, 9, 0),
        borrower_details=BorrowerDetails(
            loan_amount=Decimal("500000"),
            tenure=12,
            proposed_interest=Decimal("12"),
            frequency=Frequency.MONTHLY,
        ),
    )


@pytest.fixture
def investor_inquiry() -> Inquiry:
    """Investor offering 10 lakh at 8% for a year, paid quarterly."""
    return Inquiry(
        inquiry_id="INQ-0002",
        inquiry_type=InquiryType.INVESTOR,
        name="Rohan Iyer",
        mobile="9123456780",
        stage="RATE_DISCUSSED",
        created_at=datetime(2024, 12, 2, 9, 0),
        investor_details=InvestorDetails(
            investment_amount=Decimal("1000000"),
            tenure=12,
            expected_interest=Decimal("8"),
            frequency=PayoutFrequency.QUARTERLY,
        ),
    )


@pytest.fixture
def pipeline(clock: Callable[[], datetime]) -> StagePipeline:
    return StagePipeline(EngineConfig(), clock=clock)


@pytest.fixture
def store() -> InMemoryLendingStore:
    return InMemoryLendingStore()


@pytest.fixture
def service(store: InMemoryLendingStore, clock: Callable[[], datetime]) -> LifecycleService:
    return LifecycleService(store, clock=clock)
