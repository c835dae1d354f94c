"""
Client configuration
"""

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal, Mapping, Optional, TextIO

from .encoding import parse_labels
from .exceptions import ConfigurationError
from .levels import LogLevel, parse_level

# Capacity of the intake queue between producers and the dispatcher
LOG_ENTRIES_CHAN_SIZE = 5000

DEFAULT_PUSH_URL = "http://localhost:3100/loki/api/v1/push"
DEFAULT_LABELS = '{job="python"}'

LineFormat = Literal["json", "compact", "logfmt"]
_LINE_FORMATS = ("json", "compact", "logfmt")

WireFormat = Literal["protobuf", "json"]
_WIRE_FORMATS = ("protobuf", "json")


@dataclass(frozen=True)
class ClientConfig:
    """Immutable configuration captured by the client at construction"""

    push_url: str = DEFAULT_PUSH_URL
    labels: str = DEFAULT_LABELS
    send_level: LogLevel = LogLevel.INFO
    print_level: LogLevel = LogLevel.ERROR
    batch_wait: float = 5.0  # seconds
    batch_entries_number: int = 10000

    # Intake
    queue_size: int = LOG_ENTRIES_CHAN_SIZE
    line_format: LineFormat = "json"
    print_stream: Optional[TextIO] = None  # None means sys.stdout at print time

    # HTTP
    timeout: float = 10.0
    wire_format: WireFormat = "protobuf"
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        """Normalize and validate configuration values"""
        object.__setattr__(self, "send_level", parse_level(self.send_level))
        object.__setattr__(self, "print_level", parse_level(self.print_level))
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

        if not self.push_url:
            raise ConfigurationError("push_url must not be empty")
        if not parse_labels(self.labels):
            raise ConfigurationError("labels must contain at least one label")
        if self.batch_wait <= 0:
            raise ConfigurationError("batch_wait must be positive")
        if isinstance(self.batch_entries_number, bool) or self.batch_entries_number <= 0:
            raise ConfigurationError("batch_entries_number must be positive")
        if self.queue_size <= 0:
            raise ConfigurationError("queue_size must be positive")
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive")
        if self.line_format not in _LINE_FORMATS:
            raise ConfigurationError(
                f"line_format must be one of {', '.join(_LINE_FORMATS)}"
            )
        if self.wire_format not in _WIRE_FORMATS:
            raise ConfigurationError(
                f"wire_format must be one of {', '.join(_WIRE_FORMATS)}"
            )

    @property
    def label_set(self) -> Mapping[str, str]:
        """Labels parsed into a mapping"""
        return parse_labels(self.labels)

    @classmethod
    def _parse_number_env(cls, key: str, default: str, cast: Any) -> Any:
        """Parse a numeric environment variable"""
        raw = os.getenv(key, default)
        try:
            return cast(raw)
        except ValueError:
            raise ConfigurationError(f"{key} must be a number, got {raw!r}") from None

    @classmethod
    def _create_headers_from_env(cls) -> Mapping[str, str]:
        """Build extra request headers from environment variables"""
        headers = {}
        tenant_id = os.getenv("LOKI_TENANT_ID")
        if tenant_id:
            headers["X-Scope-OrgID"] = tenant_id
        return headers

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Create configuration from environment variables"""
        return cls(
            push_url=os.getenv("LOKI_PUSH_URL", DEFAULT_PUSH_URL),
            labels=os.getenv("LOKI_LABELS", DEFAULT_LABELS),
            send_level=os.getenv("LOKI_SEND_LEVEL", "info"),
            print_level=os.getenv("LOKI_PRINT_LEVEL", "error"),
            batch_wait=cls._parse_number_env("LOKI_BATCH_WAIT", "5.0", float),
            batch_entries_number=cls._parse_number_env("LOKI_BATCH_ENTRIES", "10000", int),
            queue_size=cls._parse_number_env(
                "LOKI_QUEUE_SIZE", str(LOG_ENTRIES_CHAN_SIZE), int
            ),
            timeout=cls._parse_number_env("LOKI_TIMEOUT", "10.0", float),
            headers=cls._create_headers_from_env(),
            line_format=os.getenv("LOKI_LINE_FORMAT", "json").lower(),
            wire_format=os.getenv("LOKI_WIRE_FORMAT", "protobuf").lower(),
        )


_default_config: Optional[ClientConfig] = None


def get_default_config() -> ClientConfig:
    """Get the default configuration instance"""
    global _default_config
    if _default_config is None:
        _default_config = ClientConfig.from_env()
    return _default_config


def set_default_config(config: Optional[ClientConfig]) -> None:
    """Set the default configuration instance"""
    global _default_config
    _default_config = config
