"""
Stream event model (tagged union over the decoded record types)
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

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


class EventKind(Enum):
    """Known event shapes carried by the stream."""

    ACCOUNT_UPDATE = "account_update"
    ORDER_TRADE = "order_trade"
    TRADE = "trade"
    ORDER_BOOK = "order_book"
    DEPTH_ORDER_BOOK = "depth_order_book"
    DAY_TICKER = "day_ticker"
    KLINE = "kline"
    BOOK_TICKER = "book_ticker"
    FUTURES_ACCOUNT_UPDATE = "futures_account_update"
    ORDER_TRADE_UPDATE = "order_trade_update"
    FUTURES_FUNDING = "futures_funding"


EventData = Union[
    AccountUpdateEvent,
    OrderTradeEvent,
    TradesEvent,
    OrderBook,
    DepthOrderBookEvent,
    List[DayTickerEvent],
    KlineEvent,
    BookTickerEvent,
    FuturesAccountUpdateEvent,
    OrderTradeUpdateEvent,
    FuturesFunding,
]


@dataclass(frozen=True)
class StreamEvent:
    """
    One decoded event delivered to the consumer.

    Attributes:
        kind: Variant tag
        data: Decoded record for the variant (a list of DayTickerEvent
              for DAY_TICKER, a single record otherwise)
        stream: Stream name from the combined-stream envelope, if any
    """

    kind: EventKind
    data: EventData
    stream: Optional[str] = None
