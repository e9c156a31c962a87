"""Configuration dataclasses for the i3bar stream and the status generator."""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from .errors import ConfigurationError

ENV_PREFIX = "I3BARJSON_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass
class StreamConfig:
    """Output stream settings."""
    flush: bool = True            # Flush the sink after every element
    pretty_header: bool = False   # Indent the header object
    queue_size: int = 0           # Pending status lines (0 = unbounded)
    ensure_ascii: bool = False    # Escape non-ASCII block text


@dataclass
class LoggingConfig:
    """Logging settings. Never log to stdout: it carries the protocol."""
    level: str = "INFO"
    file: Optional[str] = "/tmp/i3barjson.log"  # None or "" logs to stderr
    format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass
class Config:
    """Complete status generator configuration.

    Loaded from defaults, then I3BARJSON_* environment variables, then
    command line flags.
    """

    stream: StreamConfig = None
    logging: LoggingConfig = None
    interval: float = 1.0         # Seconds between status lines
    blocks: List[str] = field(default_factory=lambda: ["datetime"])
    click_events: bool = False

    def __post_init__(self):
        """Initialize default sections if not provided."""
        if self.stream is None:
            self.stream = StreamConfig()
        if self.logging is None:
            self.logging = LoggingConfig()

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ConfigurationError: If any value is out of range
        """
        if self.interval <= 0:
            raise ConfigurationError(
                f"interval must be positive, got {self.interval}",
                context={"field": "interval"}
            )
        if self.stream.queue_size < 0:
            raise ConfigurationError(
                f"queue_size must be >= 0, got {self.stream.queue_size}",
                context={"field": "queue_size"}
            )
        if not isinstance(logging.getLevelName(self.logging.level.upper()), int):
            raise ConfigurationError(
                f"Unknown log level: {self.logging.level}",
                suggestion="Use DEBUG, INFO, WARNING, ERROR or CRITICAL",
                context={"field": "log_level"}
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Build a configuration from I3BARJSON_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Raises:
            ConfigurationError: If a variable cannot be parsed
        """
        env = os.environ if environ is None else environ
        config = cls()

        def get(name: str) -> Optional[str]:
            return env.get(ENV_PREFIX + name)

        value = get("INTERVAL")
        if value is not None:
            config.interval = _parse_float("INTERVAL", value)
        value = get("BLOCKS")
        if value is not None:
            config.blocks = parse_block_list(value)
        value = get("CLICK_EVENTS")
        if value is not None:
            config.click_events = _parse_bool("CLICK_EVENTS", value)
        value = get("QUEUE_SIZE")
        if value is not None:
            config.stream.queue_size = _parse_int("QUEUE_SIZE", value)
        value = get("PRETTY_HEADER")
        if value is not None:
            config.stream.pretty_header = _parse_bool("PRETTY_HEADER", value)
        value = get("FLUSH")
        if value is not None:
            config.stream.flush = _parse_bool("FLUSH", value)
        value = get("LOG_LEVEL")
        if value is not None:
            config.logging.level = value.upper()
        value = get("LOG_FILE")
        if value is not None:
            config.logging.file = value or None

        config.validate()
        return config


def parse_block_list(value: str) -> List[str]:
    """Split a comma-separated block list, dropping blanks."""
    return [name.strip() for name in value.split(",") if name.strip()]


def _invalid(name: str, value: str, expected: str) -> ConfigurationError:
    return ConfigurationError(
        f"{ENV_PREFIX}{name}={value!r} is not {expected}",
        context={"field": name.lower(), "value": value}
    )


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise _invalid(name, value, "a boolean")


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise _invalid(name, value, "an integer") from None


def _parse_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise _invalid(name, value, "a number") from None
