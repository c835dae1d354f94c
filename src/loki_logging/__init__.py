"""
Loki Logging

An asyncio client that batches structured log records and ships them to a
Grafana Loki push endpoint.
"""

__version__ = "0.1.0"

from .client import LokiClient, create_client
from .config import (
    LOG_ENTRIES_CHAN_SIZE,
    ClientConfig,
    get_default_config,
    set_default_config,
)
from .dispatcher import BatchAccumulator, Dispatcher, DispatcherState
from .encoding import (
    EncodedPayload,
    JSONPushEncoder,
    ProtobufPushEncoder,
    PushEncoder,
    get_encoder,
    parse_labels,
)
from .exceptions import (
    ConfigurationError,
    LokiLoggingError,
    ProtocolError,
    RenderError,
    SerializationError,
    TransportError,
)
from .formatter import JSONLineRenderer, LineRenderer, LogfmtLineRenderer, get_renderer
from .handler import LokiHandler
from .levels import LevelDecision, LogLevel, decide, parse_level
from .logger import get_logger
from .models import Batch, LogRecord
from .transmitter import Transmitter
from .transport import AiohttpTransport, Transport, TransportResponse

__all__ = [
    # Client
    "LokiClient",
    "create_client",
    "LokiHandler",
    # Configuration
    "ClientConfig",
    "LOG_ENTRIES_CHAN_SIZE",
    "get_default_config",
    "set_default_config",
    # Levels
    "LogLevel",
    "LevelDecision",
    "decide",
    "parse_level",
    # Records
    "LogRecord",
    "Batch",
    # Pipeline
    "BatchAccumulator",
    "Dispatcher",
    "DispatcherState",
    "Transmitter",
    "PushEncoder",
    "ProtobufPushEncoder",
    "JSONPushEncoder",
    "get_encoder",
    "EncodedPayload",
    "parse_labels",
    "Transport",
    "TransportResponse",
    "AiohttpTransport",
    "LineRenderer",
    "JSONLineRenderer",
    "LogfmtLineRenderer",
    "get_renderer",
    # Errors
    "LokiLoggingError",
    "ConfigurationError",
    "RenderError",
    "SerializationError",
    "TransportError",
    "ProtocolError",
    # Diagnostics
    "get_logger",
]
