"""
Websocket connection manager for the combined-stream endpoint.

Owns exactly one socket at a time and exposes a blocking frame read. The
manager never reconnects: any read failure or peer close leaves it
disconnected and the caller decides what to do next.
"""

import logging
import struct
from typing import Optional

import websocket

from fstream.core.exceptions import HandshakeError, NotConnectedError, TransportError
from fstream.models.frame import FrameKind, RawFrame

_OPCODE_KINDS = {
    websocket.ABNF.OPCODE_TEXT: FrameKind.TEXT,
    websocket.ABNF.OPCODE_BINARY: FrameKind.BINARY,
    websocket.ABNF.OPCODE_PING: FrameKind.PING,
    websocket.ABNF.OPCODE_PONG: FrameKind.PONG,
    websocket.ABNF.OPCODE_CLOSE: FrameKind.CLOSE,
}


def parse_close_payload(data: bytes):
    """Split a close frame body into (status code, reason)."""
    if not data or len(data) < 2:
        return None, ""
    code = struct.unpack("!H", data[:2])[0]
    reason = data[2:].decode("utf-8", errors="replace")
    return code, reason


class ConnectionManager:
    """
    Connection lifecycle for one websocket.

    Lifecycle:
        Disconnected -> connect() -> Connected
        Connected -> disconnect() / read error / peer close -> Disconnected

    Example:
        >>> manager = ConnectionManager()
        >>> manager.connect("btcusdt@aggTrade/btcusdt@markPrice")
        >>> frame = manager.read_frame()
        >>> manager.disconnect()

    Attributes:
        MAINNET_WS_URL: Binance USDT-M Futures combined stream endpoint
        TESTNET_WS_URL: Binance USDT-M Futures testnet combined stream endpoint
    """

    MAINNET_WS_URL = "wss://fstream.binance.com/stream?streams="
    TESTNET_WS_URL = "wss://stream.binancefuture.com/stream?streams="

    def __init__(self, base_url: Optional[str] = None) -> None:
        """
        Args:
            base_url: Base streaming URL the endpoint suffix is appended to.
                      Defaults to the mainnet combined stream URL.
        """
        self.base_url = base_url or self.MAINNET_WS_URL
        self.url: Optional[str] = None
        self._socket: Optional[websocket.WebSocket] = None
        self.logger = logging.getLogger(__name__)

    @property
    def is_connected(self) -> bool:
        return self._socket is not None

    def connect(self, endpoint: str) -> None:
        """
        Open the websocket at ``base_url + endpoint``.

        Raises:
            HandshakeError: If the URL is invalid or the handshake fails.
                The manager stays disconnected.
        """
        if self._socket is not None:
            self.logger.warning("Already connected, closing previous socket first")
            self.disconnect()

        self.url = f"{self.base_url}{endpoint}"
        self.logger.info(f"Connecting to {self.url}")

        try:
            self._socket = websocket.create_connection(
                self.url, enable_multithread=True
            )
        except (websocket.WebSocketException, OSError, ValueError) as e:
            self._socket = None
            self.logger.error(f"Error during handshake with {self.url}: {e}", exc_info=True)
            raise HandshakeError(f"Error during handshake: {e}") from e

        self.logger.info("Websocket connected")

    def disconnect(self) -> None:
        """
        Send a close frame and release the socket.

        Raises:
            NotConnectedError: If no socket is held
        """
        if self._socket is None:
            raise NotConnectedError("Not able to close the connection: not connected")

        socket, self._socket = self._socket, None
        try:
            socket.close()
        except (websocket.WebSocketException, OSError) as e:
            self.logger.warning(f"Error while closing websocket: {e}")
        self.logger.info("Websocket disconnected")

    def abort(self) -> None:
        """
        Shut the socket down from another thread.

        A read blocked in read_frame() fails with TransportError. Used by
        watchdogs; has no effect when disconnected.
        """
        socket = self._socket
        if socket is not None:
            self.logger.warning("Aborting websocket connection")
            socket.abort()

    def read_frame(self) -> RawFrame:
        """
        Block until the next frame arrives, control frames included.

        Pings are answered by the websocket library before being returned.
        A close frame leaves the manager disconnected.

        Raises:
            NotConnectedError: If no socket is held
            TransportError: On any I/O failure (the manager is disconnected)
        """
        if self._socket is None:
            raise NotConnectedError("Cannot read: not connected")

        try:
            opcode, frame = self._socket.recv_data_frame(control_frame=True)
        except (websocket.WebSocketException, OSError) as e:
            self._drop_socket()
            raise TransportError(f"Websocket read failed: {e}") from e

        kind = _OPCODE_KINDS.get(opcode)
        data = frame.data if frame is not None else b""

        if kind is FrameKind.CLOSE:
            code, reason = parse_close_payload(data)
            self._drop_socket()
            return RawFrame.close(code, reason)

        if kind is FrameKind.TEXT:
            text = data.decode("utf-8") if isinstance(data, bytes) else data
            return RawFrame.text(text)

        if kind is None:
            self._drop_socket()
            raise TransportError(f"Unexpected websocket opcode: {opcode}")

        return RawFrame(kind=kind, payload=data)

    def _drop_socket(self) -> None:
        socket, self._socket = self._socket, None
        if socket is not None:
            try:
                socket.shutdown()
            except (websocket.WebSocketException, OSError) as e:
                self.logger.debug(f"Socket shutdown after failure raised: {e}")
