"""Symbol → venue trade-pair identifier (``BASE_QUOTE``) and chart link."""

from __future__ import annotations

import re

DEFAULT_CHART_BASE_URL = "https://www.binance.com/vi/trade"
DEFAULT_QUOTE = "USDT"

_SEPARATOR_RE = re.compile(r"[/_-]")


def to_trade_pair(symbol: str, *, quote: str = DEFAULT_QUOTE) -> str:
    """Normalise *symbol* to the ``BASE_QUOTE`` form used by trade pages.

    ``BTCUSDT`` → ``BTC_USDT``; ``BTC/USDT`` and ``BTC-USDT`` → ``BTC_USDT``.
    Symbols that already use ``_`` pass through unchanged.
    """
    symbol = symbol.strip()
    if not _SEPARATOR_RE.search(symbol):
        if symbol.endswith(quote) and len(symbol) > len(quote):
            return f"{symbol[:-len(quote)]}_{quote}"
        return symbol
    return symbol.replace("/", "_").replace("-", "_")


def chart_url(symbol: str, base_url: str = DEFAULT_CHART_BASE_URL) -> str:
    """Spot trade-page URL for *symbol*; the bare base URL if *symbol* is empty."""
    base_url = base_url.rstrip("/")
    pair = to_trade_pair(symbol or "")
    if not pair:
        return base_url
    return f"{base_url}/{pair}?type=spot"
