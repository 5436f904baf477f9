"""
Binance Futures REST client service with rate limit tracking.

Only the listen key endpoints are needed by the stream client; they are
defined explicitly on BinanceServiceClient and go through the same
weight tracking and response unwrapping as every other call.
"""

import logging
from typing import Any, Callable, Dict, Optional

from binance.um_futures import UMFutures


class RequestWeightTracker:
    """
    Tracks API request weight to warn before rate limit violations.

    Binance reports the weight used in the current minute in the
    ``X-MBX-USED-WEIGHT-1M`` header when the client is created with
    show_limit_usage=True.
    """

    def __init__(self, weight_limit: int = 2400):
        self.current_weight = 0
        self.weight_limit = weight_limit
        self.logger = logging.getLogger(__name__)

    def update_from_headers(self, headers: Optional[Dict] = None) -> None:
        if not headers:
            return

        weight_str = headers.get("X-MBX-USED-WEIGHT-1M")
        if not weight_str:
            return

        try:
            self.current_weight = int(weight_str)
        except ValueError:
            self.logger.error(f"Invalid weight value in header: {weight_str}")
            return

        # Warn at 80% of the limit
        if self.current_weight > self.weight_limit * 0.8:
            self.logger.warning(
                f"Approaching Binance rate limit: {self.current_weight}/{self.weight_limit} "
                f"({self.current_weight / self.weight_limit * 100:.1f}%)"
            )

    def check_limit(self) -> bool:
        """True while usage stays under 90% of the limit."""
        return self.current_weight < self.weight_limit * 0.9


class BinanceServiceClient:
    """
    Thin wrapper around UMFutures for the listen key endpoints.

    Features:
    - Single UMFutures client instance
    - Request weight tracking on every call
    - Automatic response unwrapping when show_limit_usage=True
    """

    MAINNET_BASE_URL = "https://fapi.binance.com"
    TESTNET_BASE_URL = "https://testnet.binancefuture.com"

    def __init__(self, api_key: str, api_secret: Optional[str] = None, is_testnet: bool = False) -> None:
        """
        Args:
            api_key: Binance API key (listen key endpoints only need the key)
            api_secret: Binance API secret
            is_testnet: Whether to use testnet (default: False)
        """
        self.is_testnet = is_testnet
        self.base_url = self.TESTNET_BASE_URL if is_testnet else self.MAINNET_BASE_URL

        self.client = UMFutures(
            key=api_key,
            secret=api_secret,
            base_url=self.base_url,
            show_limit_usage=True,
        )

        self.weight_tracker = RequestWeightTracker()
        self.logger = logging.getLogger(__name__)

    def _request(self, endpoint: str, method: Callable[..., Any], **kwargs: Any) -> Any:
        if not self.weight_tracker.check_limit():
            self.logger.warning(
                f"Request weight at {self.weight_tracker.current_weight}/"
                f"{self.weight_tracker.weight_limit}, calling {endpoint} anyway"
            )
        return self._handle_response(method(**kwargs))

    def _handle_response(self, response: Any) -> Any:
        if isinstance(response, dict) and "limit_usage" in response:
            self.weight_tracker.update_from_headers(response["limit_usage"])
        elif isinstance(response, dict) and "headers" in response:
            self.weight_tracker.update_from_headers(response["headers"])

        if isinstance(response, dict) and "data" in response:
            return response["data"]

        return response

    def new_listen_key(self) -> Dict[str, Any]:
        """
        POST /fapi/v1/listenKey

        Returns:
            Dict containing {"listenKey": "..."}
        """
        return self._request("POST /fapi/v1/listenKey", self.client.new_listen_key)

    def renew_listen_key(self, listen_key: str) -> Dict[str, Any]:
        """PUT /fapi/v1/listenKey (keep-alive)"""
        return self._request("PUT /fapi/v1/listenKey", self.client.renew_listen_key, listenKey=listen_key)

    def close_listen_key(self, listen_key: str) -> Dict[str, Any]:
        """DELETE /fapi/v1/listenKey"""
        return self._request("DELETE /fapi/v1/listenKey", self.client.close_listen_key, listenKey=listen_key)
