"""Per-asset contribution to the portfolio return."""

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal

from wealth.constants import Impact, VolatilitySource
from wealth.services.analytics.analytics_types import AssetContribution
from wealth.services.analytics.labels import contains_word, normalize_label
from wealth.services.portfolio.valuation_service import percent, to_decimal

logger = logging.getLogger(__name__)

IMPACT_DEAD_BAND = Decimal("0.5")

# Annualized volatility (%) assumed per asset class when nothing is measured
ESTIMATED_VOLATILITY = {
    "fixed_income": Decimal("1"),
    "equities": Decimal("25"),
    "real_estate": Decimal("15"),
    "crypto": Decimal("50"),
    "other": Decimal("5"),
}

_CLASS_KEYWORDS = (
    ("crypto", ("cripto", "criptoativos", "crypto", "bitcoin")),
    ("real_estate", ("fii", "fiis", "reit", "reits", "fundo imobiliario")),
    ("equities", ("acao", "acoes", "stock", "stocks", "etf", "etfs", "bdr", "bdrs")),
    (
        "fixed_income",
        (
            "renda fixa",
            "tesouro",
            "cdb",
            "lci",
            "lca",
            "lc",
            "rdb",
            "cri",
            "cra",
            "debentures",
            "poupanca",
            "conta corrente",
        ),
    ),
)


def asset_class(instrument_type: str | None) -> str:
    """Coarse asset class of an instrument type label."""
    label = normalize_label(instrument_type)
    for name, keywords in _CLASS_KEYWORDS:
        if any(contains_word(label, keyword) for keyword in keywords):
            return name
    return "other"


def classify_impact(contribution: Decimal) -> str:
    if contribution > IMPACT_DEAD_BAND:
        return Impact.POSITIVE
    if contribution < -IMPACT_DEAD_BAND:
        return Impact.NEGATIVE
    return Impact.NEUTRAL


class SensitivityAnalyzer:
    """Decomposes the portfolio return into per-asset contributions.

    contribution = (value - invested) / portfolio_invested * 100, i.e. the
    asset's share of the portfolio-level return, not the asset's own return.
    Results are sorted by |contribution|, largest movers first.

    Volatility is taken from measured figures when given (keyed by ticker or
    name) and otherwise estimated from the instrument type, with
    volatility_source telling the two apart.
    """

    def analyze(
        self,
        positions: Iterable,
        portfolio_value,
        portfolio_invested,
        volatility: Mapping[str, Decimal] | None = None,
    ) -> list[AssetContribution]:
        """Contribution of each position.

        Args:
            positions: Position-like objects
            portfolio_value: Total current value of the portfolio
            portfolio_invested: Total invested in the portfolio
            volatility: Measured annualized volatility (%) by ticker or name

        Returns:
            Contributions sorted by absolute contribution, descending. Empty
            when there are no positions or the portfolio value is 0.
        """
        positions = list(positions)
        total_value = to_decimal(portfolio_value or 0)
        total_invested = to_decimal(portfolio_invested or 0)
        if not positions or total_value == 0:
            return []

        measured = volatility or {}
        contributions = []
        for position in positions:
            try:
                value = to_decimal(position.current_value)
                invested = to_decimal(position.total_invested)
            except ValueError as e:
                logger.warning(f"Skipping position {getattr(position, 'id', None)}: {e}")
                continue

            contribution = percent(value - invested, total_invested)
            vol, source = self._volatility(position, measured)
            contributions.append(
                AssetContribution(
                    position_id=getattr(position, "id", None),
                    name=position.name,
                    ticker=getattr(position, "ticker", None),
                    instrument_type=getattr(position, "instrument_type", None),
                    value=value,
                    invested=invested,
                    weight=percent(value, total_value),
                    contribution=contribution,
                    impact=classify_impact(contribution),
                    volatility=vol,
                    volatility_source=source,
                )
            )

        contributions.sort(key=lambda c: abs(c.contribution), reverse=True)
        return contributions

    @staticmethod
    def _volatility(position, measured: Mapping[str, Decimal]) -> tuple[Decimal, str]:
        for key in (getattr(position, "ticker", None), position.name):
            if key and key in measured:
                return Decimal(str(measured[key])), VolatilitySource.MEASURED
        estimate = ESTIMATED_VOLATILITY[asset_class(getattr(position, "instrument_type", None))]
        return estimate, VolatilitySource.ESTIMATED

    @staticmethod
    def summarize(contributions: Iterable[AssetContribution]) -> dict:
        """Positive and negative contribution totals."""
        positive = Decimal("0")
        negative = Decimal("0")
        count = 0
        for item in contributions:
            count += 1
            if item.contribution > 0:
                positive += item.contribution
            else:
                negative += item.contribution
        return {
            "positive_total": positive,
            "negative_total": negative,
            "net_total": positive + negative,
            "asset_count": count,
        }
