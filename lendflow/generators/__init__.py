"""Synthetic data generators for the lending book."""

from lendflow.generators.base import BaseGenerator
from lendflow.generators.inquiry import InquiryGenerator
from lendflow.generators.patterns import PayoutBehavior, RepaymentBehavior

__all__ = ["BaseGenerator", "InquiryGenerator", "PayoutBehavior", "RepaymentBehavior"]
