"""
Data models package
"""

from .event import EventKind, StreamEvent
from .frame import FrameKind, RawFrame
from .records import (
    AccountUpdateEvent,
    BookTickerEvent,
    DayTickerEvent,
    DepthOrderBookEvent,
    FuturesAccountUpdateEvent,
    FuturesFunding,
    KlineEvent,
    OrderBook,
    OrderTradeEvent,
    OrderTradeUpdateEvent,
    TradesEvent,
)

__all__ = [
    "EventKind",
    "StreamEvent",
    "FrameKind",
    "RawFrame",
    "AccountUpdateEvent",
    "OrderTradeEvent",
    "TradesEvent",
    "OrderBook",
    "DepthOrderBookEvent",
    "DayTickerEvent",
    "KlineEvent",
    "BookTickerEvent",
    "FuturesAccountUpdateEvent",
    "OrderTradeUpdateEvent",
    "FuturesFunding",
]
