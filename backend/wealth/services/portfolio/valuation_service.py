"""Portfolio valuation - single source of truth for totals.

Portfolio totals are never edited directly: they are recomputed from the
positions after every mutation and re-checked when read.
"""

import logging
import math
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from sqlalchemy.orm import Session

from wealth.models import GlobalAsset, Portfolio, Position
from wealth.services.exceptions import InconsistentAggregateError
from wealth.services.portfolio.valuation_types import (
    AllocationSlice,
    PortfolioTotals,
    WealthTotals,
)
from wealth.services.repositories import PortfolioRepository, PositionRepository

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
PERCENT_PRECISION = Decimal("0.0001")
ZERO = Decimal("0")

# Cached totals within a cent of the recomputed ones are considered equal
CONSISTENCY_TOLERANCE = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Coerce a numeric value to Decimal.

    Raises:
        ValueError: If the value is missing or not a finite number
    """
    if value is None:
        raise ValueError("missing value")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"not a finite number: {value}")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValueError(f"not a number: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return result


def percent(numerator: Decimal, denominator: Decimal) -> Decimal:
    """numerator / denominator * 100, or 0 when the denominator is 0."""
    if denominator == 0:
        return ZERO
    return (numerator / denominator * 100).quantize(PERCENT_PRECISION, rounding=ROUND_HALF_UP)


def derive_position_values(position: Position, recompute_invested: bool = False) -> Position:
    """Fill a position's derived columns from quantity and prices.

    - current_value = quantity * current_price, when both are known
    - total_invested = quantity * purchase_price, when not given (or asked to)
    - gain_percent = (current_value - total_invested) / total_invested * 100

    Args:
        position: Position to update in place
        recompute_invested: Overwrite total_invested even if already set

    Returns:
        The same position
    """
    quantity = position.quantity
    if quantity is not None and position.current_price is not None:
        position.current_value = (
            to_decimal(quantity) * to_decimal(position.current_price)
        ).quantize(CENT, rounding=ROUND_HALF_UP)

    invested_missing = position.total_invested is None or to_decimal(position.total_invested) == 0
    if (recompute_invested or invested_missing) and (
        quantity is not None and position.purchase_price is not None
    ):
        position.total_invested = (
            to_decimal(quantity) * to_decimal(position.purchase_price)
        ).quantize(CENT, rounding=ROUND_HALF_UP)

    current_value = to_decimal(position.current_value if position.current_value is not None else 0)
    invested = to_decimal(position.total_invested if position.total_invested is not None else 0)
    position.current_value = current_value
    position.total_invested = invested
    position.gain_percent = percent(current_value - invested, invested)
    return position


class ValuationAggregator:
    """Pure aggregation of positions and global assets.

    Stateless and safe to call concurrently. Positions whose values cannot be
    coerced to numbers are reported in `skipped` and left out of the totals;
    one bad row never aborts an aggregation.

    Usage:
        totals = ValuationAggregator.aggregate(portfolio.positions)
        wealth = ValuationAggregator.combined_wealth(positions, global_assets)
    """

    @staticmethod
    def aggregate(positions: Iterable) -> PortfolioTotals:
        """Sum positions into portfolio totals.

        Args:
            positions: Objects with current_value and total_invested

        Returns:
            PortfolioTotals (gain_percent is 0 when nothing is invested)
        """
        total_value = ZERO
        total_invested = ZERO
        count = 0
        skipped: list[str] = []

        for position in positions:
            try:
                value = to_decimal(position.current_value)
                invested = to_decimal(position.total_invested)
            except ValueError as e:
                label = _label(position)
                logger.warning(f"Skipping malformed position {label}: {e}")
                skipped.append(label)
                continue
            total_value += value
            total_invested += invested
            count += 1

        total_gain = total_value - total_invested
        return PortfolioTotals(
            total_value=total_value,
            total_invested=total_invested,
            total_gain=total_gain,
            gain_percent=percent(total_gain, total_invested),
            position_count=count,
            skipped=skipped,
        )

    @classmethod
    def combined_wealth(
        cls, positions: Iterable, global_assets: Iterable[GlobalAsset]
    ) -> WealthTotals:
        """Investment totals plus the reporting value of global assets.

        The investments figure and the total wealth figure are kept apart so
        callers can switch between an "investments only" and a "total wealth"
        view.
        """
        investments = cls.aggregate(positions)
        skipped = list(investments.skipped)

        global_value = ZERO
        global_count = 0
        for asset in global_assets:
            try:
                global_value += to_decimal(asset.value_reporting)
            except ValueError as e:
                label = _label(asset)
                logger.warning(f"Skipping malformed global asset {label}: {e}")
                skipped.append(label)
                continue
            global_count += 1

        return WealthTotals(
            investments_value=investments.total_value,
            investments_invested=investments.total_invested,
            investments_gain=investments.total_gain,
            investments_gain_percent=investments.gain_percent,
            global_value=global_value,
            total_wealth=investments.total_value + global_value,
            position_count=investments.position_count,
            global_asset_count=global_count,
            skipped=skipped,
        )

    @staticmethod
    def allocation(positions: Iterable[Position]) -> list[AllocationSlice]:
        """Current value grouped by instrument type, largest first."""
        values: dict[str, Decimal] = {}
        counts: dict[str, int] = {}
        for position in positions:
            try:
                value = to_decimal(position.current_value)
            except ValueError:
                continue
            key = position.instrument_type or "Outros"
            values[key] = values.get(key, ZERO) + value
            counts[key] = counts.get(key, 0) + 1

        total = sum(values.values(), ZERO)
        slices = [
            AllocationSlice(
                instrument_type=key,
                value=value,
                weight=percent(value, total),
                position_count=counts[key],
            )
            for key, value in values.items()
        ]
        slices.sort(key=lambda s: s.value, reverse=True)
        return slices


class PortfolioValuationService:
    """Keeps a portfolio's cached totals equal to the sum of its positions.

    Callers own the transaction: recompute_portfolio_totals() only flushes,
    so a position write and the re-aggregation commit (or roll back) together.
    """

    def __init__(self, db: Session) -> None:
        self._db = db
        self._portfolios = PortfolioRepository(db)
        self._positions = PositionRepository(db)

    def compute_totals(self, portfolio_id: str) -> PortfolioTotals:
        """Aggregate a portfolio's current positions without writing."""
        self._db.flush()
        return ValuationAggregator.aggregate(self._positions.find_by_portfolio(portfolio_id))

    def recompute_portfolio_totals(self, portfolio: Portfolio) -> PortfolioTotals:
        """Recompute and store a portfolio's cached totals.

        Args:
            portfolio: Portfolio to update in place

        Returns:
            The freshly computed totals
        """
        totals = self.compute_totals(portfolio.id)
        portfolio.total_value = totals.total_value
        portfolio.total_invested = totals.total_invested
        portfolio.total_gain = totals.total_gain
        portfolio.gain_percent = totals.gain_percent
        self._db.flush()
        logger.debug(
            f"Re-aggregated portfolio {portfolio.id}: value={totals.total_value}, "
            f"invested={totals.total_invested}, positions={totals.position_count}"
        )
        return totals

    def verify_totals(self, portfolio: Portfolio) -> PortfolioTotals:
        """Check cached totals against the positions.

        Raises:
            InconsistentAggregateError: If the cached totals have drifted
        """
        totals = self.compute_totals(portfolio.id)
        cached_value = Decimal(str(portfolio.total_value or 0))
        cached_invested = Decimal(str(portfolio.total_invested or 0))
        if (
            abs(cached_value - totals.total_value) > CONSISTENCY_TOLERANCE
            or abs(cached_invested - totals.total_invested) > CONSISTENCY_TOLERANCE
        ):
            raise InconsistentAggregateError(portfolio.id, cached_value, totals.total_value)
        return totals

    def get_portfolio_totals(self, portfolio_id: str) -> PortfolioTotals:
        """Current totals of a portfolio, repairing drifted cached totals.

        Raises:
            NotFoundError: If the portfolio does not exist
        """
        portfolio = self._portfolios.get_by_id(portfolio_id)
        try:
            return self.verify_totals(portfolio)
        except InconsistentAggregateError as e:
            logger.warning(f"{e}; re-aggregating")
            totals = self.recompute_portfolio_totals(portfolio)
            self._db.commit()
            return totals


def _label(item) -> str:
    identifier = getattr(item, "id", None)
    name = getattr(item, "name", None)
    if identifier is not None and name:
        return f"{identifier} ({name})"
    return str(identifier if identifier is not None else name)
