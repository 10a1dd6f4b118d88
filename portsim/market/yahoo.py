"""Yahoo Finance price-history adapter.

Fetches monthly adjusted closes via the yfinance library and converts
them into the monthly return series the simulation consumes.

Note:
    yfinance uses an unofficial Yahoo Finance API. Rate limiting
    and respectful request patterns are required.

    yfinance is an optional dependency (install with ``pip install
    portsim[market]``). Functions raise ``ImportError`` at call
    time if the library is not installed.

"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from portsim.analysis.returns import monthly_returns
from portsim.config import DEFAULT_HISTORY_START
from portsim.errors import DataFetchError

logger = logging.getLogger(__name__)


def _require_yfinance() -> tuple[Any, Any]:
    """Lazy-import yfinance and pandas.

    Returns:
        Tuple of (yfinance module, pandas module).

    Raises:
        ImportError: If yfinance is not installed.

    """
    try:
        import pandas as pd
        import yfinance as yf
    except ImportError as exc:
        msg = (
            "yfinance is required for Yahoo Finance data. "
            "Install with: pip install portsim[market]"
        )
        raise ImportError(msg) from exc
    return yf, pd


def _validate_dates(start_date: str, end_date: str) -> tuple[str, str]:
    """Validate and normalize date strings.

    Raises:
        ValueError: If dates are invalid or start > end.

    """
    try:
        start = datetime.strptime(start_date, "%Y-%m-%d")
        end = datetime.strptime(end_date, "%Y-%m-%d")
    except ValueError as exc:
        msg = f"Invalid date format. Expected YYYY-MM-DD: {exc}"
        raise ValueError(msg) from exc

    if start > end:
        msg = f"start_date ({start_date}) must be <= end_date ({end_date})"
        raise ValueError(msg)

    return start_date, end_date


def fetch_monthly_prices(
    symbol: str,
    start_date: str,
    end_date: str,
) -> list[dict[str, Any]]:
    """Fetch monthly adjusted closing prices for a symbol.

    Args:
        symbol: Ticker symbol (e.g., "VTI", "BND").
        start_date: Start date in ISO format (YYYY-MM-DD).
        end_date: End date in ISO format (YYYY-MM-DD).

    Returns:
        List of dicts with keys: date, close. Close is the adjusted close
        when Yahoo provides one. Empty list if no data is available.

    Raises:
        ValueError: If dates are invalid or symbol is empty.
        ImportError: If yfinance is not installed.

    """
    if not symbol or not symbol.strip():
        msg = "symbol must be a non-empty string"
        raise ValueError(msg)

    yf, pd = _require_yfinance()
    start_date, end_date = _validate_dates(start_date, end_date)

    ticker = yf.Ticker(symbol.strip().upper())
    df = ticker.history(
        start=start_date, end=end_date, interval="1mo", auto_adjust=False
    )

    if df.empty:
        logger.warning(
            "No price data for %s (%s to %s)",
            symbol,
            start_date,
            end_date,
        )
        return []

    close_col = "Adj Close" if "Adj Close" in df.columns else "Close"
    records: list[dict[str, Any]] = []
    for date_idx, row in df.iterrows():
        close = row[close_col]
        if pd.isna(close):
            continue
        records.append(
            {
                "date": pd.Timestamp(date_idx).strftime("%Y-%m-%d"),
                "close": round(float(close), 4),
            }
        )

    return records


class YahooPriceFetcher:
    """Monthly return source backed by Yahoo Finance.

    Args:
        start_date: First date of history. Defaults to 2000-01-01.
        end_date: Last date of history. Defaults to today.

    """

    def __init__(self, start_date: str | None = None, end_date: str | None = None) -> None:
        self.start_date = start_date or DEFAULT_HISTORY_START
        self.end_date = end_date

    def get_monthly_returns(self, ticker: str) -> list[float]:
        """Fetch prices for a ticker and convert them to monthly returns.

        Raises:
            DataFetchError: If the download fails.
            ValueError: If the ticker or dates are invalid.

        """
        end_date = self.end_date or date.today().isoformat()
        try:
            prices = fetch_monthly_prices(ticker, self.start_date, end_date)
        except (ValueError, ImportError):
            raise
        except Exception as exc:  # noqa: BLE001
            msg = f"yahoo: price history for {ticker} failed: {exc}"
            raise DataFetchError(msg) from exc
        returns = monthly_returns(prices)
        logger.debug("Fetched %d monthly returns for %s", len(returns), ticker)
        return returns


def fetch_monthly_returns(
    symbol: str,
    start_date: str = DEFAULT_HISTORY_START,
    end_date: str | None = None,
) -> list[float]:
    """Fetch monthly returns for a symbol over a date range."""
    return YahooPriceFetcher(start_date, end_date).get_monthly_returns(symbol)
