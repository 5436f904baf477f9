"""
fstream - Binance USDT-M Futures combined-stream client
Main package initialization
"""

__version__ = "0.1.0"

from fstream.core.classifier import EventClassifier
from fstream.core.connection import ConnectionManager
from fstream.core.dispatcher import WebSockets
from fstream.core.run_flag import RunFlag
from fstream.models.event import EventKind, StreamEvent

__all__ = [
    "ConnectionManager",
    "EventClassifier",
    "EventKind",
    "RunFlag",
    "StreamEvent",
    "WebSockets",
]
