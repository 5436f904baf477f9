"""
Configuration management with INI files and environment overrides
"""

import os
from configparser import ConfigParser
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from fstream.core.connection import ConnectionManager
from fstream.core.exceptions import ConfigurationError


@dataclass
class APIConfig:
    """Binance API configuration (needed for listen keys only)"""
    api_key: str
    api_secret: str
    is_testnet: bool = False

    def __post_init__(self):
        # Security: Never log API keys
        if not self.api_key or not self.api_secret:
            raise ConfigurationError("API key and secret are required")


@dataclass
class StreamConfig:
    """Combined stream configuration"""
    streams: List[str] = field(default_factory=list)
    is_testnet: bool = False
    ws_url: Optional[str] = None
    use_stream_suffix: bool = False

    def __post_init__(self):
        self.streams = [s.strip() for s in self.streams if s.strip()]
        if not self.streams:
            raise ConfigurationError("At least one stream name is required")

        if self.ws_url and not self.ws_url.startswith(("ws://", "wss://")):
            raise ConfigurationError(
                f"Invalid ws_url: {self.ws_url}. Must start with ws:// or wss://"
            )

    @property
    def base_url(self) -> str:
        """Custom URL if configured, else the testnet/mainnet default"""
        if self.ws_url:
            return self.ws_url
        if self.is_testnet:
            return ConnectionManager.TESTNET_WS_URL
        return ConnectionManager.MAINNET_WS_URL


@dataclass
class LoggingConfig:
    """Logging system configuration"""
    log_level: str = "INFO"
    log_dir: str = "logs"

    def __post_init__(self):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level.upper() not in valid_levels:
            raise ConfigurationError(
                f"Invalid log level: {self.log_level}. "
                f"Must be one of {valid_levels}"
            )


def _env_bool(value: str) -> bool:
    return value.strip().lower() == "true"


class ConfigManager:
    """
    Manages system configuration from INI files with environment overrides

    Files (under ``config_dir``):
        stream_config.ini: [stream] and [logging] sections
        api_keys.ini: [binance.testnet], [binance.mainnet] (optional)

    Priority: explicit streams argument > ENV > INI file > defaults
    """

    def __init__(self, config_dir: str = "configs", streams: Optional[List[str]] = None):
        self.config_dir = Path(config_dir)
        self._streams_override = streams
        self._stream_config = None
        self._logging_config = None
        self._api_config = None
        self._api_config_loaded = False

        self._load_configs()

    def _load_configs(self):
        """Load stream and logging configuration (API keys load lazily)"""
        self._stream_config = self._load_stream_config()
        self._logging_config = self._load_logging_config()

    def _read_ini(self, name: str) -> Optional[ConfigParser]:
        config_file = self.config_dir / name
        if not config_file.exists():
            return None
        config = ConfigParser()
        config.read(config_file)
        return config

    def _load_stream_config(self) -> StreamConfig:
        """
        Load stream configuration

        Streams come from the constructor argument, FSTREAM_STREAMS
        (comma separated) or the [stream] section's ``streams`` key.
        """
        config = self._read_ini("stream_config.ini")
        section = config["stream"] if config is not None and "stream" in config else None

        streams_env = os.getenv("FSTREAM_STREAMS")
        if self._streams_override:
            streams = list(self._streams_override)
        elif streams_env:
            streams = streams_env.split(",")
        elif section is not None:
            streams = section.get("streams", "").split(",")
        else:
            raise ConfigurationError(
                f"Stream configuration not found. Either:\n"
                f"1. Set the FSTREAM_STREAMS environment variable, or\n"
                f"2. Create {self.config_dir / 'stream_config.ini'} from stream_config.ini.example"
            )

        is_testnet = section.getboolean("use_testnet", False) if section is not None else False
        testnet_env = os.getenv("BINANCE_USE_TESTNET")
        if testnet_env is not None:
            is_testnet = _env_bool(testnet_env)

        return StreamConfig(
            streams=streams,
            is_testnet=is_testnet,
            ws_url=section.get("ws_url", None) if section is not None else None,
            use_stream_suffix=(
                section.getboolean("use_stream_suffix", False) if section is not None else False
            ),
        )

    def _load_logging_config(self) -> LoggingConfig:
        """Load logging configuration from stream_config.ini"""
        config = self._read_ini("stream_config.ini")

        if config is None or "logging" not in config:
            return LoggingConfig()  # Use defaults

        logging_section = config["logging"]

        return LoggingConfig(
            log_level=logging_section.get("log_level", "INFO"),
            log_dir=logging_section.get("log_dir", "logs"),
        )

    def _load_api_config(self) -> APIConfig:
        """
        Load API configuration with environment variable overrides
        Selects testnet or mainnet credentials based on the stream's environment

        Priority: ENV > INI file (environment-specific)
        """
        is_testnet = self._stream_config.is_testnet

        api_key_env = os.getenv("BINANCE_API_KEY")
        api_secret_env = os.getenv("BINANCE_API_SECRET")

        if api_key_env and api_secret_env:
            return APIConfig(
                api_key=api_key_env,
                api_secret=api_secret_env,
                is_testnet=is_testnet,
            )

        config = self._read_ini("api_keys.ini")
        if config is None:
            raise ConfigurationError(
                f"API configuration not found. Either:\n"
                f"1. Set BINANCE_API_KEY, BINANCE_API_SECRET environment variables, or\n"
                f"2. Create {self.config_dir / 'api_keys.ini'} from api_keys.ini.example"
            )

        env_section = "binance.testnet" if is_testnet else "binance.mainnet"
        if env_section not in config:
            raise ConfigurationError(
                f"Invalid api_keys.ini: [{env_section}] section not found"
            )

        api_key = config[env_section].get("api_key")
        api_secret = config[env_section].get("api_secret")

        # Reject placeholder values copied from the example file
        if not api_key or api_key.startswith("your_"):
            raise ConfigurationError(
                f"Invalid API key in [{env_section}]. Please set your actual credentials."
            )
        if not api_secret or api_secret.startswith("your_"):
            raise ConfigurationError(
                f"Invalid API secret in [{env_section}]. Please set your actual credentials."
            )

        return APIConfig(api_key=api_key, api_secret=api_secret, is_testnet=is_testnet)

    @property
    def is_testnet(self) -> bool:
        """Check if running in testnet mode"""
        return self._stream_config.is_testnet

    @property
    def stream_config(self) -> StreamConfig:
        """Get stream configuration"""
        return self._stream_config

    @property
    def logging_config(self) -> LoggingConfig:
        """Get logging configuration"""
        return self._logging_config

    @property
    def api_config(self) -> APIConfig:
        """
        Get API configuration (loaded on first access)

        Raises:
            ConfigurationError: If no credentials are configured
        """
        if not self._api_config_loaded:
            self._api_config = self._load_api_config()
            self._api_config_loaded = True
        return self._api_config
