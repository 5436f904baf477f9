"""
Command line entry point for the stream client.

This module implements the StreamRunner class that wires configuration,
logging, the optional user data stream and the dispatch loop together, and
logs every decoded event as a JSON line.

Usage:
    python -m fstream.main --streams btcusdt@aggTrade,btcusdt@markPrice
    python -m fstream.main --user-stream
"""

import argparse
import logging
import sys
from typing import List, Optional

from fstream.core.binance_service import BinanceServiceClient
from fstream.core.classifier import EventClassifier
from fstream.core.connection import ConnectionManager
from fstream.core.dispatcher import WebSockets
from fstream.core.exceptions import (
    ConfigurationError,
    ListenKeyError,
    StreamError,
    TransportError,
)
from fstream.core.run_flag import RunFlag, install_signal_handlers
from fstream.core.streams import combined_stream_path
from fstream.core.user_stream import ListenKeyKeeper, UserStream
from fstream.models.event import StreamEvent
from fstream.utils.config import ConfigManager
from fstream.utils.logger import StreamLogger, log_execution_time


def event_to_dict(event: StreamEvent) -> dict:
    """JSON-ready representation of an event's record(s)."""
    if isinstance(event.data, list):
        data = [record.model_dump(mode="json") for record in event.data]
    else:
        data = event.data.model_dump(mode="json")
    return {"stream": event.stream, "data": data}


class LoggingConsumer:
    """Consumer that writes every event to the events log."""

    def __init__(self) -> None:
        self.count = 0

    def on_event(self, event: StreamEvent) -> None:
        self.count += 1
        StreamLogger.log_event(event.kind.value, event_to_dict(event))


class StreamRunner:
    """
    Orchestrates one streaming session.

    Lifecycle:
        1. __init__() - Minimal constructor setup
        2. initialize() - Load config and set up logging
        3. run() - Connect, dispatch until stopped, clean up

    Attributes:
        config_manager: Configuration management system
        websockets: Dispatch loop (created in run())
        flag: Run flag cleared by SIGINT/SIGTERM
    """

    def __init__(
        self,
        config_dir: str = "configs",
        streams: Optional[List[str]] = None,
        user_stream: bool = False,
    ) -> None:
        self.config_dir = config_dir
        self.streams_override = streams
        self.use_user_stream = user_stream

        self.config_manager: Optional[ConfigManager] = None
        self.websockets: Optional[WebSockets] = None
        self.user_stream: Optional[UserStream] = None
        self.keeper: Optional[ListenKeyKeeper] = None
        self.listen_key: Optional[str] = None
        self.consumer = LoggingConsumer()
        self.flag = RunFlag()
        self.logger = logging.getLogger(__name__)

    def initialize(self) -> None:
        """
        Raises:
            ConfigurationError: If configuration is missing or invalid
        """
        self.config_manager = ConfigManager(self.config_dir, streams=self.streams_override)
        StreamLogger(self.config_manager.logging_config.__dict__)

        stream_config = self.config_manager.stream_config

        self.logger.info("=" * 50)
        self.logger.info("Stream client starting...")
        self.logger.info(f"Environment: {'TESTNET' if stream_config.is_testnet else 'MAINNET'}")
        self.logger.info(f"Streams: {', '.join(stream_config.streams)}")
        self.logger.info(f"User data stream: {self.use_user_stream}")
        self.logger.info("=" * 50)

    def build_endpoint(self) -> str:
        streams = list(self.config_manager.stream_config.streams)
        if self.use_user_stream:
            streams.append(self._start_user_stream())
        return combined_stream_path(streams)

    def _start_user_stream(self) -> str:
        api_config = self.config_manager.api_config
        service = BinanceServiceClient(
            api_config.api_key, api_config.api_secret, is_testnet=api_config.is_testnet
        )
        self.user_stream = UserStream(service)
        self.listen_key = self.user_stream.start()

        self.keeper = ListenKeyKeeper(self.user_stream, self.listen_key)
        self.keeper.start()
        return self.listen_key

    def run(self) -> int:
        """
        Run the session until the flag is cleared or a terminal error occurs.

        Returns:
            Process exit code (0 on clean stop, 1 on terminal error)
        """
        stream_config = self.config_manager.stream_config
        self.websockets = WebSockets(
            self.consumer,
            connection=ConnectionManager(stream_config.base_url),
            classifier=EventClassifier(use_stream_suffix=stream_config.use_stream_suffix),
        )
        install_signal_handlers(self.flag, on_repeat=self.websockets.connection.abort)

        try:
            endpoint = self.build_endpoint()
            with log_execution_time("websocket handshake"):
                self.websockets.connect(endpoint)
            self.websockets.run(self.flag)
            return 0
        except TransportError as e:
            if not self.flag.is_running:
                self.logger.info("Connection aborted during shutdown")
                return 0
            self.logger.error(f"Stream terminated: {e}", exc_info=True)
            return 1
        except StreamError as e:
            self.logger.error(f"Stream terminated: {e}", exc_info=True)
            return 1
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        """Close the socket, stop the keep-alive and close the listen key."""
        if self.websockets is not None and self.websockets.is_connected:
            self.websockets.disconnect()

        if self.keeper is not None:
            self.keeper.stop()
            self.keeper = None

        if self.user_stream is not None and self.listen_key is not None:
            try:
                self.user_stream.close(self.listen_key)
            except ListenKeyError as e:
                self.logger.warning(f"Failed to close listen key: {e}")
            self.listen_key = None

        self.logger.info(f"Shutdown complete ({self.consumer.count} events logged)")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Binance USDT-M Futures combined stream client")
    parser.add_argument("--config-dir", default="configs", help="Directory holding the INI files")
    parser.add_argument(
        "--streams",
        help="Comma separated stream names (overrides the configured streams)",
    )
    parser.add_argument(
        "--user-stream",
        action="store_true",
        help="Also subscribe to the user data stream (needs API credentials)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """
    Application entry point.

    Exits with status 1 on configuration errors or terminal stream errors.
    """
    args = parse_args(argv)
    streams = args.streams.split(",") if args.streams else None
    runner = StreamRunner(args.config_dir, streams=streams, user_stream=args.user_stream)

    try:
        runner.initialize()
    except ConfigurationError as e:
        logging.error(f"Configuration error: {e}")
        sys.exit(1)

    sys.exit(runner.run())


if __name__ == '__main__':
    main()
