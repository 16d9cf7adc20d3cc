"""Application constants to avoid magic strings."""


class MovementType:
    """Ledger movement types."""

    PURCHASE = "compra"
    CONTRIBUTION = "aplicacao"
    REDEMPTION = "resgate"
    TRANSFER_OUT = "transferencia_saida"
    TRANSFER_IN = "transferencia_entrada"
    DIVIDEND = "dividendo"
    JCP = "jcp"
    INCOME = "rendimento"
    BONUS = "bonificacao"
    SPLIT = "desdobramento"
    REVERSE_SPLIT = "grupamento"
    AMORTIZATION = "amortizacao"

    CASH_EVENTS = (DIVIDEND, JCP, INCOME)
    CORPORATE_EVENTS = (BONUS, SPLIT, REVERSE_SPLIT, AMORTIZATION)


class GlobalAssetCategory:
    """Categories for manually declared global assets."""

    REAL_ESTATE = "imoveis"
    VEHICLES = "veiculos"
    BUSINESS = "empresas"
    JEWELRY = "joias"
    ART = "arte"
    CRYPTO = "cripto"
    SAVINGS = "poupanca"
    OTHER = "outros"

    ALL = (REAL_ESTATE, VEHICLES, BUSINESS, JEWELRY, ART, CRYPTO, SAVINGS, OTHER)


class Impact:
    """Contribution impact classes."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class VolatilitySource:
    """Where a volatility figure came from."""

    MEASURED = "measured"
    ESTIMATED = "estimated"


class RateSource:
    """Where a currency rate came from."""

    LIVE = "live"
    FALLBACK = "fallback"


class Period:
    """Analysis period filters."""

    THREE_MONTHS = "3M"
    SIX_MONTHS = "6M"
    TWELVE_MONTHS = "12M"
    YEAR_TO_DATE = "YTD"
    ALL = "ALL"

    MONTHS = {THREE_MONTHS: 3, SIX_MONTHS: 6, TWELVE_MONTHS: 12}
    CHOICES = (THREE_MONTHS, SIX_MONTHS, TWELVE_MONTHS, YEAR_TO_DATE, ALL)


UNCLASSIFIED_ISSUER = "Other"
