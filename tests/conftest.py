"""
Shared fixtures: sample Binance stream payloads and a scripted connection.
"""

import json
from typing import List, Optional

import pytest

from fstream.core.exceptions import NotConnectedError
from fstream.models.frame import FrameKind, RawFrame


def envelope(stream: str, data) -> str:
    """Wrap a payload in a combined-stream envelope."""
    return json.dumps({"stream": stream, "data": data})


class ScriptedConnection:
    """
    Stand-in for ConnectionManager that replays a list of frames.

    Reading past the end of the script fails the test instead of blocking.
    """

    def __init__(self, frames: Optional[List[RawFrame]] = None, connected: bool = True):
        self.frames = list(frames or [])
        self.reads = 0
        self.connected = connected
        self.connect_calls: List[str] = []
        self.disconnect_calls = 0

    @property
    def is_connected(self) -> bool:
        return self.connected

    def connect(self, endpoint: str) -> None:
        self.connect_calls.append(endpoint)
        self.connected = True

    def disconnect(self) -> None:
        if not self.connected:
            raise NotConnectedError("not connected")
        self.disconnect_calls += 1
        self.connected = False

    def abort(self) -> None:
        self.connected = False

    def read_frame(self) -> RawFrame:
        if not self.frames:
            pytest.fail("read_frame() called after the scripted frames ran out")
        self.reads += 1
        frame = self.frames.pop(0)
        if isinstance(frame, Exception):
            self.connected = False
            raise frame
        if frame.kind is FrameKind.CLOSE:
            self.connected = False
        return frame


@pytest.fixture
def make_connection():
    """Factory for ScriptedConnection: make_connection([frame, ...])."""
    return ScriptedConnection


@pytest.fixture
def make_envelope():
    """Factory for combined-stream envelopes: make_envelope(stream, data)."""
    return envelope


@pytest.fixture
def agg_trade_data():
    return {
        "e": "aggTrade",
        "E": 1700000000123,
        "s": "BTCUSDT",
        "a": 26129,
        "p": "50000.00",
        "q": "0.015",
        "f": 100,
        "l": 105,
        "T": 1700000000100,
        "m": True,
    }


@pytest.fixture
def book_ticker_data():
    return {
        "e": "bookTicker",
        "u": 400900217,
        "E": 1568014460893,
        "T": 1568014460891,
        "s": "BNBUSDT",
        "b": "25.35190000",
        "B": "31.21000000",
        "a": "25.36520000",
        "A": "40.66000000",
    }


@pytest.fixture
def mark_price_data():
    return {
        "e": "markPriceUpdate",
        "E": 1562305380000,
        "s": "BTCUSDT",
        "p": "11794.15000000",
        "i": "11784.62659091",
        "P": "11784.25641265",
        "r": "0.00038167",
        "T": 1562306400000,
    }


@pytest.fixture
def kline_data():
    return {
        "e": "kline",
        "E": 1638747660000,
        "s": "BTCUSDT",
        "k": {
            "t": 1638747600000,
            "T": 1638747659999,
            "s": "BTCUSDT",
            "i": "1m",
            "f": 100,
            "L": 200,
            "o": "57000.00",
            "c": "57050.00",
            "h": "57100.00",
            "l": "56900.00",
            "v": "10.5",
            "n": 100,
            "x": True,
            "q": "598500.00",
            "V": "5.0",
            "Q": "285000.00",
            "B": "0",
        },
    }


@pytest.fixture
def depth_update_data():
    return {
        "e": "depthUpdate",
        "E": 123456789,
        "T": 123456788,
        "s": "BTCUSDT",
        "U": 157,
        "u": 160,
        "pu": 149,
        "b": [["0.0024", "10"]],
        "a": [["0.0026", "100"]],
    }


@pytest.fixture
def partial_book_data():
    return {
        "lastUpdateId": 160,
        "bids": [["0.0024", "10"], ["0.0023", "5"]],
        "asks": [["0.0026", "100"]],
    }


@pytest.fixture
def day_ticker_data():
    return [
        {
            "e": "24hrTicker",
            "E": 123456789,
            "s": "BTCUSDT",
            "p": "0.0015",
            "P": "250.00",
            "w": "0.0018",
            "c": "0.0025",
            "Q": "10",
            "o": "0.0010",
            "h": "0.0025",
            "l": "0.0010",
            "v": "10000",
            "q": "18",
            "O": 0,
            "C": 86400000,
            "F": 0,
            "L": 18150,
            "n": 18151,
        },
        {
            "e": "24hrTicker",
            "E": 123456789,
            "s": "ETHUSDT",
            "c": "2000.50",
        },
    ]


@pytest.fixture
def account_info_data():
    return {
        "e": "outboundAccountInfo",
        "E": 1499405658849,
        "m": 0,
        "t": 0,
        "b": 0,
        "s": 0,
        "T": True,
        "W": True,
        "D": True,
        "u": 1499405658848,
        "B": [
            {"a": "LTC", "f": "17366.18538083", "l": "0.00000000"},
            {"a": "BTC", "f": "10537.85314051", "l": "2.19464093"},
        ],
    }


@pytest.fixture
def execution_report_data():
    return {
        "e": "executionReport",
        "E": 1499405658658,
        "s": "ETHBTC",
        "c": "mUvoqJxFIILMdfAW5iGSOW",
        "S": "BUY",
        "o": "LIMIT",
        "f": "GTC",
        "q": "1.00000000",
        "p": "0.10264410",
        "P": "0.00000000",
        "x": "NEW",
        "X": "NEW",
        "r": "NONE",
        "i": 4293153,
        "l": "0.00000000",
        "z": "0.00000000",
        "L": "0.00000000",
        "n": "0",
        "N": None,
        "T": 1499405658657,
        "t": -1,
        "m": False,
    }


@pytest.fixture
def futures_account_update_data():
    return {
        "e": "ACCOUNT_UPDATE",
        "E": 1564745798939,
        "T": 1564745798938,
        "a": {
            "m": "ORDER",
            "B": [{"a": "USDT", "wb": "122624.12345678", "cw": "100.12345678", "bc": "50.12345678"}],
            "P": [
                {
                    "s": "BTCUSDT",
                    "pa": "0",
                    "ep": "0.00000",
                    "bep": "0",
                    "cr": "200",
                    "up": "0",
                    "mt": "isolated",
                    "iw": "0.00000000",
                    "ps": "BOTH",
                }
            ],
        },
    }


@pytest.fixture
def order_trade_update_data():
    return {
        "e": "ORDER_TRADE_UPDATE",
        "E": 1568879465651,
        "T": 1568879465650,
        "o": {
            "s": "BTCUSDT",
            "c": "TEST",
            "S": "SELL",
            "o": "TRAILING_STOP_MARKET",
            "f": "GTC",
            "q": "0.001",
            "p": "0",
            "ap": "0",
            "sp": "7103.04",
            "x": "NEW",
            "X": "NEW",
            "i": 8886774,
            "l": "0",
            "z": "0",
            "L": "0",
            "T": 1568879465650,
            "t": 0,
            "b": "0",
            "a": "9.91",
            "m": False,
            "R": False,
            "wt": "CONTRACT_PRICE",
            "ot": "TRAILING_STOP_MARKET",
            "ps": "LONG",
            "cp": False,
            "rp": "0",
        },
    }
