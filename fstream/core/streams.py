"""
Stream name builders for the combined-stream endpoint.

Combined endpoints take stream names joined with "/", e.g.
``btcusdt@aggTrade/btcusdt@kline_1m``. The joined path is appended to the
connection's base URL.
"""

from typing import Iterable

# Binance interval formats
VALID_INTERVALS = {
    "1m", "3m", "5m", "15m", "30m",
    "1h", "2h", "4h", "6h", "8h", "12h",
    "1d", "3d", "1w", "1M",
}

VALID_DEPTH_LEVELS = {5, 10, 20}


def agg_trade_stream(symbol: str) -> str:
    return f"{symbol.lower()}@aggTrade"


def kline_stream(symbol: str, interval: str) -> str:
    if interval not in VALID_INTERVALS:
        raise ValueError(f"Invalid kline interval: {interval}")
    return f"{symbol.lower()}@kline_{interval}"


def depth_stream(symbol: str, levels: int = 0, update_speed_ms: int = 0) -> str:
    """
    Depth stream name.

    Args:
        levels: 5, 10 or 20 for partial book depth; 0 for the diff stream
        update_speed_ms: 100 or 500 to pick the update speed; 0 for default
    """
    if levels and levels not in VALID_DEPTH_LEVELS:
        raise ValueError(f"Invalid depth levels: {levels}")
    name = f"{symbol.lower()}@depth{levels or ''}"
    if update_speed_ms:
        name = f"{name}@{update_speed_ms}ms"
    return name


def book_ticker_stream(symbol: str) -> str:
    return f"{symbol.lower()}@bookTicker"


def mark_price_stream(symbol: str, every_second: bool = False) -> str:
    name = f"{symbol.lower()}@markPrice"
    return f"{name}@1s" if every_second else name


def all_ticker_stream() -> str:
    return "!ticker@arr"


def combined_stream_path(streams: Iterable[str]) -> str:
    """Join stream names into a combined-stream path suffix."""
    names = [s.strip() for s in streams if s and s.strip()]
    if not names:
        raise ValueError("streams list cannot be empty")
    return "/".join(names)
