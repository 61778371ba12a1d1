"""Generators for borrower and investor inquiries."""

from datetime import datetime, timedelta
from decimal import Decimal

from lendflow.generators.base import BaseGenerator
from lendflow.models import (
    BorrowerDetails,
    BorrowerStage,
    Frequency,
    Inquiry,
    InquiryType,
    InvestorDetails,
    InvestorStage,
    PayoutFrequency,
    Priority,
    Source,
)


class InquiryGenerator(BaseGenerator):
    """Generate synthetic borrower and investor leads."""

    # Requested loan amounts in lakh (1 lakh = 100,000)
    LOAN_AMOUNT_LAKH = (2, 50)
    INVESTMENT_AMOUNT_LAKH = (5, 100)

    # Percent per year
    BORROWER_RATE_RANGE = (12.0, 24.0)
    INVESTOR_RATE_RANGE = (6.0, 12.0)

    TENURES = [6, 12, 18, 24, 36]

    PRIORITY_WEIGHTS = {Priority.HOT: 0.2, Priority.WARM: 0.5, Priority.COLD: 0.3}

    AGENTS = ["Anita", "Rahul", "Vikram", "Meera"]

    def generate_borrower(self, created_at: datetime | None = None) -> Inquiry:
        """Generate a borrower inquiry in stage NEW.

        Parameters
        ----------
        created_at : datetime | None
            Creation time; a random time in the last 180 days when omitted.

        Returns
        -------
        Inquiry
            Borrower inquiry without an id (the store assigns one).
        """
        details = BorrowerDetails(
            loan_amount=Decimal(self.rng.randint(*self.LOAN_AMOUNT_LAKH) * 100000),
            tenure=self.rng.choice(self.TENURES),
            proposed_interest=self._rate(self.BORROWER_RATE_RANGE),
            frequency=self.rng.choice([Frequency.MONTHLY, Frequency.MONTHLY, Frequency.QUARTERLY]),
        )
        return self._inquiry(InquiryType.BORROWER, BorrowerStage.NEW.value, created_at, borrower=details)

    def generate_investor(self, created_at: datetime | None = None) -> Inquiry:
        """Generate an investor inquiry in stage NEW."""
        details = InvestorDetails(
            investment_amount=Decimal(self.rng.randint(*self.INVESTMENT_AMOUNT_LAKH) * 100000),
            tenure=self.rng.choice(self.TENURES),
            expected_interest=self._rate(self.INVESTOR_RATE_RANGE),
            frequency=self.rng.choice(list(PayoutFrequency)),
        )
        return self._inquiry(InquiryType.INVESTOR, InvestorStage.NEW.value, created_at, investor=details)

    def _rate(self, bounds: tuple[float, float]) -> Decimal:
        # Half-percent steps, as rates are quoted in practice
        steps = int((bounds[1] - bounds[0]) * 2)
        return Decimal(str(bounds[0] + self.rng.randint(0, steps) * 0.5))

    def _inquiry(
        self,
        inquiry_type: InquiryType,
        stage: str,
        created_at: datetime | None,
        borrower: BorrowerDetails | None = None,
        investor: InvestorDetails | None = None,
    ) -> Inquiry:
        if created_at is None:
            created_at = datetime.now() - timedelta(days=self.rng.randint(0, 180))

        priority = self.rng.choices(
            list(self.PRIORITY_WEIGHTS), weights=list(self.PRIORITY_WEIGHTS.values()), k=1
        )[0]

        return Inquiry(
            inquiry_id="",
            inquiry_type=inquiry_type,
            name=self.fake.name(),
            mobile=self.fake.numerify("9#########"),
            email=self.fake.email(),
            city=self.fake.city(),
            source=self.rng.choice(list(Source)),
            priority=priority,
            stage=stage,
            created_at=created_at,
            assigned_to=self.rng.choice(self.AGENTS),
            next_follow_up=(created_at + timedelta(days=self.rng.randint(1, 14))).date(),
            borrower_details=borrower,
            investor_details=investor,
        )
