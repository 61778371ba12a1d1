"""Scenarios that drive synthetic leads through the lifecycle engine."""

from lendflow.scenarios.lending_book import LendingBookScenario

__all__ = ["LendingBookScenario"]
