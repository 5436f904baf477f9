"""
Typed records for Binance stream payloads.

Each record maps the exchange's single-letter wire keys to readable attribute
names through pydantic field aliases. Records are built from the parsed
payload with ``Model.model_validate(payload)``; numeric strings sent by the
exchange (prices, quantities) are coerced to floats.

Only the keys that identify an event are required. Everything else the
exchange may or may not send depending on market (spot vs futures) and
protocol version is optional.
"""

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

# [price, quantity]
PriceLevel = Tuple[float, float]


class StreamRecord(BaseModel):
    """Base class for all decoded stream records."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)


# ---------------------------------------------------------------------------
# Spot user data stream
# ---------------------------------------------------------------------------


class Balance(StreamRecord):
    asset: str = Field(alias="a")
    free: float = Field(alias="f")
    locked: float = Field(alias="l")


class AccountUpdateEvent(StreamRecord):
    """Account snapshot (``outboundAccountInfo``)."""

    event_type: str = Field(alias="e")
    event_time: int = Field(alias="E")
    maker_commission: Optional[float] = Field(None, alias="m")
    taker_commission: Optional[float] = Field(None, alias="t")
    buyer_commission: Optional[float] = Field(None, alias="b")
    seller_commission: Optional[float] = Field(None, alias="s")
    can_trade: Optional[bool] = Field(None, alias="T")
    can_withdraw: Optional[bool] = Field(None, alias="W")
    can_deposit: Optional[bool] = Field(None, alias="D")
    last_update_time: Optional[int] = Field(None, alias="u")
    balances: List[Balance] = Field(alias="B")


class OrderTradeEvent(StreamRecord):
    """Order or trade execution (``executionReport``)."""

    event_type: str = Field(alias="e")
    event_time: Optional[int] = Field(None, alias="E")
    symbol: str = Field(alias="s")
    new_client_order_id: Optional[str] = Field(None, alias="c")
    side: str = Field(alias="S")
    order_type: str = Field(alias="o")
    time_in_force: Optional[str] = Field(None, alias="f")
    qty: Optional[float] = Field(None, alias="q")
    price: Optional[float] = Field(None, alias="p")
    stop_price: Optional[float] = Field(None, alias="P")
    execution_type: str = Field(alias="x")
    order_status: str = Field(alias="X")
    order_reject_reason: Optional[str] = Field(None, alias="r")
    order_id: int = Field(alias="i")
    qty_last_filled_trade: Optional[float] = Field(None, alias="l")
    accumulated_qty_filled_trades: Optional[float] = Field(None, alias="z")
    price_last_filled_trade: Optional[float] = Field(None, alias="L")
    commission: Optional[float] = Field(None, alias="n")
    commission_asset: Optional[str] = Field(None, alias="N")
    trade_order_time: Optional[int] = Field(None, alias="T")
    trade_id: Optional[int] = Field(None, alias="t")
    is_buyer_maker: Optional[bool] = Field(None, alias="m")


# ---------------------------------------------------------------------------
# Market data
# ---------------------------------------------------------------------------


class TradesEvent(StreamRecord):
    """Aggregated trade (``aggTrade``)."""

    event_type: str = Field(alias="e")
    event_time: Optional[int] = Field(None, alias="E")
    symbol: str = Field(alias="s")
    aggregated_trade_id: Optional[int] = Field(None, alias="a")
    price: float = Field(alias="p")
    qty: Optional[float] = Field(None, alias="q")
    first_break_trade_id: Optional[int] = Field(None, alias="f")
    last_break_trade_id: Optional[int] = Field(None, alias="l")
    trade_order_time: Optional[int] = Field(None, alias="T")
    is_buyer_maker: Optional[bool] = Field(None, alias="m")


class OrderBook(StreamRecord):
    """Partial order book snapshot (payload carrying ``lastUpdateId``)."""

    last_update_id: int = Field(alias="lastUpdateId")
    event_time: Optional[int] = Field(None, alias="E")
    transaction_time: Optional[int] = Field(None, alias="T")
    bids: List[PriceLevel]
    asks: List[PriceLevel]


class DepthOrderBookEvent(StreamRecord):
    """Incremental depth update (``depthUpdate``)."""

    event_type: str = Field(alias="e")
    event_time: Optional[int] = Field(None, alias="E")
    transaction_time: Optional[int] = Field(None, alias="T")
    symbol: str = Field(alias="s")
    first_update_id: int = Field(alias="U")
    final_update_id: int = Field(alias="u")
    previous_final_update_id: Optional[int] = Field(None, alias="pu")
    bids: List[PriceLevel] = Field(alias="b")
    asks: List[PriceLevel] = Field(alias="a")


class DayTickerEvent(StreamRecord):
    """Rolling 24 hour ticker (``24hrTicker``)."""

    event_type: str = Field(alias="e")
    event_time: Optional[int] = Field(None, alias="E")
    symbol: str = Field(alias="s")
    price_change: Optional[float] = Field(None, alias="p")
    price_change_percent: Optional[float] = Field(None, alias="P")
    average_price: Optional[float] = Field(None, alias="w")
    prev_close: Optional[float] = Field(None, alias="x")
    current_close: Optional[float] = Field(None, alias="c")
    current_close_qty: Optional[float] = Field(None, alias="Q")
    best_bid: Optional[float] = Field(None, alias="b")
    best_bid_qty: Optional[float] = Field(None, alias="B")
    best_ask: Optional[float] = Field(None, alias="a")
    best_ask_qty: Optional[float] = Field(None, alias="A")
    open: Optional[float] = Field(None, alias="o")
    high: Optional[float] = Field(None, alias="h")
    low: Optional[float] = Field(None, alias="l")
    volume: Optional[float] = Field(None, alias="v")
    quote_volume: Optional[float] = Field(None, alias="q")
    open_time: Optional[int] = Field(None, alias="O")
    close_time: Optional[int] = Field(None, alias="C")
    first_trade_id: Optional[int] = Field(None, alias="F")
    last_trade_id: Optional[int] = Field(None, alias="L")
    num_trades: Optional[int] = Field(None, alias="n")


class Kline(StreamRecord):
    start_time: int = Field(alias="t")
    end_time: int = Field(alias="T")
    symbol: Optional[str] = Field(None, alias="s")
    interval: str = Field(alias="i")
    first_trade_id: Optional[int] = Field(None, alias="f")
    last_trade_id: Optional[int] = Field(None, alias="L")
    open: float = Field(alias="o")
    close: float = Field(alias="c")
    high: float = Field(alias="h")
    low: float = Field(alias="l")
    volume: float = Field(alias="v")
    number_of_trades: Optional[int] = Field(None, alias="n")
    is_final_bar: bool = Field(alias="x")
    quote_volume: Optional[float] = Field(None, alias="q")
    active_buy_volume: Optional[float] = Field(None, alias="V")
    active_volume_buy_quote: Optional[float] = Field(None, alias="Q")


class KlineEvent(StreamRecord):
    """Candlestick update (``kline``)."""

    event_type: str = Field(alias="e")
    event_time: Optional[int] = Field(None, alias="E")
    symbol: str = Field(alias="s")
    kline: Kline = Field(alias="k")


class BookTickerEvent(StreamRecord):
    """Best bid/offer update (``bookTicker``)."""

    event_type: Optional[str] = Field(None, alias="e")
    event_time: Optional[int] = Field(None, alias="E")
    transaction_time: Optional[int] = Field(None, alias="T")
    update_id: int = Field(alias="u")
    symbol: str = Field(alias="s")
    best_bid: float = Field(alias="b")
    best_bid_qty: float = Field(alias="B")
    best_ask: float = Field(alias="a")
    best_ask_qty: float = Field(alias="A")


# ---------------------------------------------------------------------------
# Futures user data stream
# ---------------------------------------------------------------------------


class FuturesBalance(StreamRecord):
    asset: str = Field(alias="a")
    wallet_balance: float = Field(alias="wb")
    cross_wallet_balance: Optional[float] = Field(None, alias="cw")
    balance_change: Optional[float] = Field(None, alias="bc")


class FuturesPosition(StreamRecord):
    symbol: str = Field(alias="s")
    position_amount: float = Field(alias="pa")
    entry_price: float = Field(alias="ep")
    break_even_price: Optional[float] = Field(None, alias="bep")
    accumulated_realized: Optional[float] = Field(None, alias="cr")
    unrealized_pnl: Optional[float] = Field(None, alias="up")
    margin_type: Optional[str] = Field(None, alias="mt")
    isolated_wallet: Optional[float] = Field(None, alias="iw")
    position_side: Optional[str] = Field(None, alias="ps")


class FuturesAccountData(StreamRecord):
    reason: str = Field(alias="m")
    balances: List[FuturesBalance] = Field(default_factory=list, alias="B")
    positions: List[FuturesPosition] = Field(default_factory=list, alias="P")


class FuturesAccountUpdateEvent(StreamRecord):
    """Futures balance and position update (``ACCOUNT_UPDATE``)."""

    event_type: str = Field(alias="e")
    event_time: Optional[int] = Field(None, alias="E")
    transaction_time: Optional[int] = Field(None, alias="T")
    data: FuturesAccountData = Field(alias="a")


class FuturesOrder(StreamRecord):
    symbol: str = Field(alias="s")
    client_order_id: str = Field(alias="c")
    side: str = Field(alias="S")
    order_type: str = Field(alias="o")
    time_in_force: Optional[str] = Field(None, alias="f")
    original_qty: Optional[float] = Field(None, alias="q")
    original_price: Optional[float] = Field(None, alias="p")
    average_price: Optional[float] = Field(None, alias="ap")
    stop_price: Optional[float] = Field(None, alias="sp")
    execution_type: str = Field(alias="x")
    order_status: str = Field(alias="X")
    order_id: int = Field(alias="i")
    last_filled_qty: Optional[float] = Field(None, alias="l")
    accumulated_filled_qty: Optional[float] = Field(None, alias="z")
    last_filled_price: Optional[float] = Field(None, alias="L")
    commission_asset: Optional[str] = Field(None, alias="N")
    commission: Optional[float] = Field(None, alias="n")
    trade_time: Optional[int] = Field(None, alias="T")
    trade_id: Optional[int] = Field(None, alias="t")
    bids_notional: Optional[float] = Field(None, alias="b")
    ask_notional: Optional[float] = Field(None, alias="a")
    is_maker: Optional[bool] = Field(None, alias="m")
    is_reduce_only: Optional[bool] = Field(None, alias="R")
    working_type: Optional[str] = Field(None, alias="wt")
    original_order_type: Optional[str] = Field(None, alias="ot")
    position_side: Optional[str] = Field(None, alias="ps")
    close_position: Optional[bool] = Field(None, alias="cp")
    realized_profit: Optional[float] = Field(None, alias="rp")


class OrderTradeUpdateEvent(StreamRecord):
    """Futures order or trade update (``ORDER_TRADE_UPDATE``)."""

    event_type: str = Field(alias="e")
    event_time: Optional[int] = Field(None, alias="E")
    transaction_time: Optional[int] = Field(None, alias="T")
    order: FuturesOrder = Field(alias="o")


class FuturesFunding(StreamRecord):
    """Mark price and funding rate (``markPriceUpdate``)."""

    event_type: Optional[str] = Field(None, alias="e")
    event_time: Optional[int] = Field(None, alias="E")
    symbol: str = Field(alias="s")
    mark_price: Optional[float] = Field(None, alias="p")
    index_price: Optional[float] = Field(None, alias="i")
    estimated_settle_price: Optional[float] = Field(None, alias="P")
    funding_rate: Optional[float] = Field(None, alias="r")
    next_funding_time: Optional[int] = Field(None, alias="T")
