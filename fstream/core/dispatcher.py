"""
Event dispatch loop for the combined stream.

This module provides the WebSockets class, which reads frames from a
ConnectionManager one at a time, classifies text frames with an
EventClassifier and hands each decoded event to the registered consumer
before reading the next frame.
"""

import logging
import threading
from enum import Enum
from typing import Optional, Union

from fstream.core.classifier import EventClassifier
from fstream.core.connection import ConnectionManager
from fstream.core.consumer import ConsumerLike, as_consumer
from fstream.core.exceptions import NotConnectedError, PeerClosedError
from fstream.core.run_flag import RunFlag
from fstream.models.frame import FrameKind, RawFrame

Flag = Union[RunFlag, threading.Event]


class DispatchState(Enum):
    """Dispatch loop lifecycle states"""
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class WebSockets:
    """
    Single-threaded reader, classifier and dispatcher for one connection.

    Responsibilities:
        - Connection lifecycle (delegated to ConnectionManager)
        - Cooperative read loop gated by a caller-owned run flag
        - Strict in-order, one-at-a-time delivery to the consumer
        - Synchronous propagation of every terminal condition from run()

    Terminal conditions (run() raises):
        - PeerClosedError: peer sent a close frame
        - TransportError: socket read failed
        - DecodeError: frame is not JSON or a classified payload is malformed
        - any exception raised by the consumer, unchanged

    Example:
        >>> flag = RunFlag()
        >>> ws = WebSockets(lambda event: print(event.kind))
        >>> ws.connect("btcusdt@aggTrade")
        >>> ws.run(flag)  # until flag.stop() or a terminal error

    Attributes:
        events_dispatched: Number of events delivered to the consumer
        frames_read: Number of frames read (control frames included)
    """

    def __init__(
        self,
        consumer: ConsumerLike,
        connection: Optional[ConnectionManager] = None,
        classifier: Optional[EventClassifier] = None,
    ) -> None:
        """
        Args:
            consumer: StreamConsumer or one-argument callable receiving events
            connection: Connection manager (default: mainnet ConnectionManager)
            classifier: Event classifier (default: EventClassifier())
        """
        self.consumer = as_consumer(consumer)
        self.connection = connection or ConnectionManager()
        self.classifier = classifier or EventClassifier()

        self.state = DispatchState.IDLE
        self.events_dispatched = 0
        self.frames_read = 0

        self.logger = logging.getLogger(__name__)

    @property
    def is_connected(self) -> bool:
        return self.connection.is_connected

    def connect(self, endpoint: str) -> None:
        """Connect to the combined stream at ``endpoint`` (see ConnectionManager)."""
        self.connection.connect(endpoint)

    def disconnect(self) -> None:
        """Close the connection (see ConnectionManager)."""
        self.connection.disconnect()

    def run(self, flag: Flag) -> None:
        """
        Read and dispatch frames while ``flag`` is set.

        The flag is checked between frames only; a blocked read is not
        interrupted. Returns normally once the flag is observed cleared.

        Args:
            flag: RunFlag or threading.Event owned by the caller

        Raises:
            NotConnectedError: If connect() has not succeeded
            PeerClosedError, TransportError, DecodeError, or the consumer's
            own exception: see class docstring
        """
        if not self.connection.is_connected:
            raise NotConnectedError("Cannot run event loop: not connected")

        self.state = DispatchState.RUNNING
        self.logger.info("Event loop started")

        try:
            while _is_running(flag):
                frame = self.connection.read_frame()
                self.frames_read += 1
                self._handle_frame(frame)
        finally:
            self.state = DispatchState.STOPPED

        self.logger.info(
            f"Event loop stopped by run flag after {self.events_dispatched} events"
        )

    def _handle_frame(self, frame: RawFrame) -> None:
        if frame.is_text:
            event = self.classifier.classify(frame.payload)
            if event is not None:
                self.consumer.on_event(event)
                self.events_dispatched += 1
            return

        if frame.kind is FrameKind.CLOSE:
            self.logger.warning(
                f"Peer closed the stream (code={frame.close_code}, "
                f"reason={frame.close_reason!r})"
            )
            raise PeerClosedError(frame.close_code, frame.close_reason)

        # PING / PONG / BINARY carry no events
        self.logger.debug(f"Ignoring {frame.kind.value} frame")


def _is_running(flag: Flag) -> bool:
    if isinstance(flag, RunFlag):
        return flag.is_running
    return flag.is_set()
