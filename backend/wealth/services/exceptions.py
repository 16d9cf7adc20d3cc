"""Engine-level exceptions.

Most of these are absorbed where they are raised and turned into a
documented fallback; they exist so the fallback paths are explicit and
testable.
"""


class ValuationError(Exception):
    """Base exception for valuation and analytics failures."""


class StaleRateError(ValuationError):
    """The currency rate feed could not be reached or returned garbage."""


class InconsistentAggregateError(ValuationError):
    """Cached portfolio totals disagree with the sum of its positions."""

    def __init__(self, portfolio_id: str, cached_value, actual_value):
        self.portfolio_id = portfolio_id
        self.cached_value = cached_value
        self.actual_value = actual_value
        super().__init__(
            f"Portfolio {portfolio_id} cached total {cached_value} != positions total {actual_value}"
        )


class PartialBatchFailure(ValuationError):
    """One or more portfolios failed during a snapshot batch."""

    def __init__(self, failures: dict[str, str]):
        self.failures = failures
        super().__init__(f"{len(failures)} portfolio snapshot(s) failed: {sorted(failures)}")
