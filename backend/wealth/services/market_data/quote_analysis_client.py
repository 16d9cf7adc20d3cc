"""Quote analysis client built on Yahoo Finance.

Provides measured volatility and recent price changes per ticker. This feed
is optional: every method returns None (or omits the ticker) on failure so
that sensitivity analysis can fall back to estimates.
"""

import logging
import math
from dataclasses import dataclass
from decimal import Decimal

import pandas as pd
import yfinance as yf

from wealth.config import settings

logger = logging.getLogger(__name__)

TRADING_DAYS_PER_YEAR = 252


@dataclass
class QuoteAnalysis:
    """Measured statistics for one ticker."""

    ticker: str
    volatility: Decimal  # annualized, in percent
    change_1d_pct: Decimal | None
    change_1m_pct: Decimal | None


class QuoteAnalysisClient:
    """Wrapper around yfinance for volatility and price-change figures.

    Usage:
        client = QuoteAnalysisClient()
        analysis = client.get_analysis("PETR4")
        vols = client.get_volatilities(["PETR4", "HGLG11"])
    """

    def __init__(self, symbol_suffix: str | None = None) -> None:
        self.symbol_suffix = settings.quote_symbol_suffix if symbol_suffix is None else symbol_suffix

    def to_symbol(self, ticker: str) -> str:
        """Map a local ticker to its Yahoo Finance symbol (PETR4 -> PETR4.SA)."""
        ticker = ticker.strip().upper()
        if "." in ticker or "-" in ticker or not self.symbol_suffix:
            return ticker
        return f"{ticker}{self.symbol_suffix}"

    def get_analysis(self, ticker: str) -> QuoteAnalysis | None:
        """Compute annualized volatility and recent changes for a ticker.

        Volatility is the standard deviation of daily close-to-close returns
        over the last year, annualized with sqrt(252), in percent.
        """
        symbol = self.to_symbol(ticker)
        try:
            history = yf.Ticker(symbol).history(period="1y")
        except Exception as e:
            logger.warning(f"Error fetching history for {symbol}: {e}")
            return None

        if history is None or history.empty or "Close" not in history.columns:
            logger.warning(f"No historical data for {symbol}")
            return None

        closes: pd.Series = pd.to_numeric(history["Close"], errors="coerce").dropna()
        returns = closes.pct_change().dropna()
        if len(returns) < 2:
            logger.warning(f"Not enough history for {symbol} to measure volatility")
            return None

        daily_std = returns.std()
        if pd.isna(daily_std):
            return None
        volatility = Decimal(str(round(float(daily_std) * math.sqrt(TRADING_DAYS_PER_YEAR) * 100, 4)))

        return QuoteAnalysis(
            ticker=ticker,
            volatility=volatility,
            change_1d_pct=self._change_pct(closes, 1),
            change_1m_pct=self._change_pct(closes, 21),
        )

    @staticmethod
    def _change_pct(closes: pd.Series, lookback: int) -> Decimal | None:
        if len(closes) <= lookback:
            return None
        previous = float(closes.iloc[-1 - lookback])
        if previous == 0:
            return None
        change = (float(closes.iloc[-1]) - previous) / previous * 100
        return Decimal(str(round(change, 4)))

    def get_volatilities(self, tickers: list[str]) -> dict[str, Decimal]:
        """Measured volatility per ticker; tickers without data are omitted."""
        volatilities: dict[str, Decimal] = {}
        for ticker in dict.fromkeys(t for t in tickers if t):
            analysis = self.get_analysis(ticker)
            if analysis is not None:
                volatilities[ticker] = analysis.volatility
        return volatilities
