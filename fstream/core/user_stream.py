"""
Listen key management for the Binance Futures User Data Stream.

A listen key is created, kept alive and closed over signed REST calls.
Once created, the key itself is the stream name to subscribe to on the
combined-stream endpoint.

Listen Key Lifecycle:
- Valid for 60 minutes after creation
- Must be renewed (keep-alive) at least once per 60 minutes
- ListenKeyKeeper renews every 30 minutes for a safety margin
"""

import logging
import threading
from typing import Any, Callable, Dict, Optional

from binance.error import ClientError, ServerError

from fstream.core.binance_service import BinanceServiceClient
from fstream.core.exceptions import ListenKeyError

# Binance error code: "This listenKey does not exist."
LISTEN_KEY_NOT_FOUND = -1125


class UserStream:
    """
    Listen key CRUD over the Binance Futures REST API.

    Binance API Endpoints:
    - POST /fapi/v1/listenKey - Create listen key
    - PUT /fapi/v1/listenKey - Keep alive (renew)
    - DELETE /fapi/v1/listenKey - Delete listen key

    Example:
        >>> user_stream = UserStream(BinanceServiceClient(api_key, api_secret))
        >>> listen_key = user_stream.start()
        >>> ws.connect(listen_key)
        >>> ...
        >>> user_stream.close(listen_key)
    """

    def __init__(self, binance_service: BinanceServiceClient) -> None:
        self.binance_service = binance_service
        self.logger = logging.getLogger(__name__)

    def start(self) -> str:
        """
        Create a new listen key.

        Raises:
            ListenKeyError: If the request fails or no key is returned
        """
        self.logger.info("Creating Binance User Data Stream listen key...")
        response = self._call("create", self.binance_service.new_listen_key)

        listen_key = response.get("listenKey") if isinstance(response, dict) else None
        if not listen_key:
            raise ListenKeyError("Failed to extract listenKey from API response")

        self.logger.info(f"Listen key created: {listen_key[:8]}...")
        return listen_key

    def keep_alive(self, listen_key: str) -> Dict[str, Any]:
        """Extend the key's validity by 60 minutes."""
        self.logger.debug(f"Renewing listen key {listen_key[:8]}...")
        return self._call("renew", self.binance_service.renew_listen_key, listen_key)

    def close(self, listen_key: str) -> Dict[str, Any]:
        """Invalidate the key; the user data stream is closed by the exchange."""
        self.logger.info(f"Closing listen key {listen_key[:8]}...")
        return self._call("close", self.binance_service.close_listen_key, listen_key)

    def _call(self, action: str, method: Callable[..., Any], *args: Any) -> Any:
        try:
            return method(*args)
        except ClientError as e:
            raise ListenKeyError(
                f"Failed to {action} listen key: {e.error_message} (code: {e.error_code})"
            ) from e
        except ServerError as e:
            raise ListenKeyError(f"Failed to {action} listen key: server error {e}") from e


class ListenKeyKeeper:
    """
    Background keep-alive for one listen key.

    Runs a daemon thread that renews the key every ``interval`` seconds
    until stop() is called. Renewal failures are logged and the thread
    keeps going; an expired key surfaces on the stream itself.
    """

    # Binance requires keep-alive at least once per 60 minutes
    KEEP_ALIVE_INTERVAL_SECONDS = 1800

    def __init__(
        self,
        user_stream: UserStream,
        listen_key: str,
        interval: float = KEEP_ALIVE_INTERVAL_SECONDS,
    ) -> None:
        self.user_stream = user_stream
        self.listen_key = listen_key
        self.interval = interval
        self.renewals = 0

        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.logger = logging.getLogger(__name__)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            self.logger.warning("ListenKeyKeeper already running, ignoring start request")
            return

        self._stopped.clear()
        self._thread = threading.Thread(
            target=self._keep_alive_loop, name="listen-key-keeper", daemon=True
        )
        self._thread.start()
        self.logger.info(f"ListenKeyKeeper started (interval: {self.interval}s)")

    def stop(self, timeout: float = 5.0) -> None:
        if self._thread is None:
            return

        self._stopped.set()
        self._thread.join(timeout=timeout)
        self._thread = None
        self.logger.info("ListenKeyKeeper stopped")

    def _keep_alive_loop(self) -> None:
        while not self._stopped.wait(self.interval):
            try:
                self.user_stream.keep_alive(self.listen_key)
                self.renewals += 1
            except ListenKeyError as e:
                if isinstance(e.__cause__, ClientError) and e.__cause__.error_code == LISTEN_KEY_NOT_FOUND:
                    self.logger.error("Listen key expired (error -1125); stream will close")
                else:
                    self.logger.error(f"Keep-alive ping failed: {e}", exc_info=True)
