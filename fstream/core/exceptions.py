"""
Custom exceptions for the stream client
"""

from typing import Optional


class StreamError(Exception):
    """Base exception for stream client errors"""


class ConfigurationError(StreamError):
    """Configuration related errors"""


class ConnectionStateError(StreamError):
    """Errors tied to the websocket connection lifecycle"""


class HandshakeError(ConnectionStateError):
    """Websocket handshake failed while connecting"""


class NotConnectedError(ConnectionStateError):
    """Operation requires a live socket but none is held"""


class TransportError(ConnectionStateError):
    """I/O failure while reading from the socket"""


class PeerClosedError(ConnectionStateError):
    """Peer sent a close frame"""

    def __init__(self, code: Optional[int] = None, reason: str = "") -> None:
        self.code = code
        self.reason = reason
        super().__init__(f"Disconnected by peer (code={code}, reason={reason!r})")


class DecodeError(StreamError):
    """Payload could not be parsed or did not match its variant schema"""

    def __init__(self, message: str, kind: Optional[str] = None) -> None:
        self.kind = kind
        super().__init__(message)


class ListenKeyError(StreamError):
    """Listen key REST call failed"""
