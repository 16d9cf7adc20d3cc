"""Deposit insurance (FGC) coverage by issuer."""

import logging
import re
from collections.abc import Iterable
from decimal import Decimal

from wealth.config import settings
from wealth.constants import UNCLASSIFIED_ISSUER
from wealth.services.analytics.analytics_types import CoverageReport, IssuerCoverage
from wealth.services.analytics.labels import contains_word, normalize_label
from wealth.services.portfolio.valuation_service import percent, to_decimal

logger = logging.getLogger(__name__)

# Normalized instrument type labels eligible for deposit insurance
COVERED_LABELS = (
    "renda fixa pre",
    "renda fixa pos",
    "poupanca",
    "conta corrente",
    "debentures",
    "cdb",
    "lci",
    "lca",
    "lc",
    "rdb",
)

_BANK_PATTERN = re.compile(r"\bBANCO\s+((?:D[AEO]S?\s+)?[A-Z0-9&]+)")
_ISSUER_SEPARATORS = (" - ", " – ", " — ")


def is_covered(instrument_type: str | None) -> bool:
    """Whether an instrument type is eligible for deposit insurance."""
    label = normalize_label(instrument_type)
    return any(contains_word(label, covered) for covered in COVERED_LABELS)


def extract_issuer(name: str | None) -> str:
    """Best-effort issuer from a free-text asset name.

    "CDB Banco Inter 120% CDI" -> "BANCO INTER"
    "LCA - Banco do Brasil" -> "BANCO DO BRASIL"
    "CDB Pós - XP Investimentos" -> "XP INVESTIMENTOS"
    Anything else falls into the unclassified bucket.
    """
    if not name:
        return UNCLASSIFIED_ISSUER

    upper = name.upper()
    match = _BANK_PATTERN.search(upper)
    if match:
        return f"BANCO {match.group(1)}"

    for separator in _ISSUER_SEPARATORS:
        if separator in name:
            issuer = name.split(separator, 1)[1].strip()
            if issuer:
                return issuer.upper()

    return UNCLASSIFIED_ISSUER


class CoverageCalculator:
    """Computes insured exposure with a double cap.

    Each issuer is covered up to the per-issuer limit; the sum over issuers is
    then capped by the total limit.

    Usage:
        report = CoverageCalculator().coverage(positions, total_wealth=wealth.total_wealth)
    """

    def coverage(
        self,
        positions: Iterable,
        insurance_limit=None,
        total_wealth=None,
        total_limit=None,
    ) -> CoverageReport:
        """Coverage of covered instruments among positions.

        Args:
            positions: Position-like objects (name, instrument_type, current_value)
            insurance_limit: Per-issuer limit (default from settings)
            total_wealth: Denominator for percent (default: sum of all positions)
            total_limit: Cap on the total covered amount (default from settings)

        Returns:
            CoverageReport with issuers sorted by exposure, largest first
        """
        limit = to_decimal(
            settings.insurance_limit_per_issuer if insurance_limit is None else insurance_limit
        )
        cap = to_decimal(settings.insurance_total_limit if total_limit is None else total_limit)

        totals: dict[str, Decimal] = {}
        counts: dict[str, int] = {}
        all_value = Decimal("0")
        for position in positions:
            try:
                value = to_decimal(position.current_value)
            except ValueError as e:
                logger.warning(f"Skipping position {getattr(position, 'id', None)}: {e}")
                continue
            all_value += value
            if not is_covered(position.instrument_type):
                continue
            issuer = extract_issuer(position.name)
            totals[issuer] = totals.get(issuer, Decimal("0")) + value
            counts[issuer] = counts.get(issuer, 0) + 1

        by_issuer = []
        for issuer, total in totals.items():
            covered = min(total, limit)
            by_issuer.append(
                IssuerCoverage(
                    issuer=issuer,
                    total=total,
                    covered=covered,
                    uncovered=total - covered,
                    position_count=counts[issuer],
                )
            )
        by_issuer.sort(key=lambda item: item.total, reverse=True)

        eligible = sum(totals.values(), Decimal("0"))
        covered_total = min(sum((item.covered for item in by_issuer), Decimal("0")), cap)
        wealth = all_value if total_wealth is None else to_decimal(total_wealth)

        return CoverageReport(
            covered_value=covered_total,
            uncovered_value=eligible - covered_total,
            eligible_value=eligible,
            percent=percent(covered_total, wealth),
            remaining_limit=max(cap - covered_total, Decimal("0")),
            insurance_limit=limit,
            total_limit=cap,
            by_issuer=by_issuer,
        )
