"""
Wire encoding of batches into push request bodies
"""

import gzip
import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

import snappy
from google.protobuf.message import EncodeError

from . import logproto
from .exceptions import ConfigurationError, SerializationError
from .models import Batch

_LABEL_PAIR = re.compile(
    r'\s*([a-zA-Z_][a-zA-Z0-9_]*)\s*=\s*"((?:[^"\\]|\\.)*)"\s*(,|$)'
)
_ESCAPE = re.compile(r"\\(.)")


def _unescape(value: str) -> str:
    return _ESCAPE.sub(lambda m: "\n" if m.group(1) == "n" else m.group(1), value)


@lru_cache(maxsize=64)
def _parse_label_pairs(selector: str) -> Tuple[Tuple[str, str], ...]:
    text = selector.strip()
    if not (text.startswith("{") and text.endswith("}")):
        raise ConfigurationError(f"labels must be wrapped in braces: {selector!r}")
    body = text[1:-1].strip()

    pairs = []
    pos = 0
    while pos < len(body):
        match = _LABEL_PAIR.match(body, pos)
        if match is None or match.end() == pos:
            raise ConfigurationError(f"malformed labels at offset {pos}: {selector!r}")
        pairs.append((match.group(1), _unescape(match.group(2))))
        pos = match.end()
        if match.group(3) == "," and pos >= len(body):
            raise ConfigurationError(f"trailing comma in labels: {selector!r}")
    return tuple(pairs)


def parse_labels(selector: str) -> Dict[str, str]:
    """Parse a label selector such as ``{job="api",env="prod"}`` into a dict"""
    if not isinstance(selector, str):
        raise ConfigurationError(f"labels must be a string, got {type(selector).__name__}")
    return dict(_parse_label_pairs(selector))


@dataclass(frozen=True)
class EncodedPayload:
    """Serialized request body and the headers describing it"""

    body: bytes
    content_type: str
    content_encoding: Optional[str] = None

    def headers(self) -> Dict[str, str]:
        headers = {"Content-Type": self.content_type}
        if self.content_encoding:
            headers["Content-Encoding"] = self.content_encoding
        return headers


class PushEncoder(ABC):
    """Turns a batch into a push request body"""

    @abstractmethod
    def encode(self, batch: Batch) -> EncodedPayload:
        """Encode a batch, raising SerializationError on failure"""


class JSONPushEncoder(PushEncoder):
    """Loki v1 JSON push body holding a single stream, gzip-compressed"""

    content_type = "application/json"

    def __init__(self, compress: bool = True, compresslevel: int = 6):
        self.compress = compress
        self.compresslevel = compresslevel

    def build_request(self, batch: Batch) -> Dict[str, Any]:
        """Build the push request document for a batch"""
        return {
            "streams": [
                {
                    "stream": parse_labels(batch.labels),
                    "values": [
                        [str(record.timestamp_ns), record.line] for record in batch
                    ],
                }
            ]
        }

    def encode(self, batch: Batch) -> EncodedPayload:
        try:
            document = self.build_request(batch)
            body = json.dumps(document, separators=(",", ":")).encode("utf-8")
        except (ConfigurationError, TypeError, ValueError) as e:
            raise SerializationError(f"unable to marshal: {e}") from e

        if not self.compress:
            return EncodedPayload(body=body, content_type=self.content_type)
        return EncodedPayload(
            body=gzip.compress(body, compresslevel=self.compresslevel),
            content_type=self.content_type,
            content_encoding="gzip",
        )


class ProtobufPushEncoder(PushEncoder):
    """Loki protobuf push request holding a single stream, snappy-compressed.

    This is the body Loki's own agents send: a ``PushRequest`` with the
    label selector passed through as a string and one entry per record,
    timestamped with the record's seconds and nanoseconds.
    """

    content_type = "application/x-protobuf"

    def build_request(self, batch: Batch):
        """Build the ``PushRequest`` message for a batch"""
        parse_labels(batch.labels)
        request = logproto.PushRequest()
        stream = request.streams.add(labels=batch.labels)
        for record in batch:
            entry = stream.entries.add(line=record.line)
            entry.timestamp.seconds = record.seconds
            entry.timestamp.nanos = record.nanos
        return request

    def encode(self, batch: Batch) -> EncodedPayload:
        try:
            body = self.build_request(batch).SerializeToString()
        except (ConfigurationError, EncodeError, TypeError, ValueError) as e:
            raise SerializationError(f"unable to marshal: {e}") from e
        return EncodedPayload(body=snappy.compress(body), content_type=self.content_type)


_ENCODERS: Dict[str, Any] = {
    "protobuf": ProtobufPushEncoder,
    "json": JSONPushEncoder,
}


def get_encoder(wire_format: str) -> PushEncoder:
    """Create the encoder for a configured wire format"""
    try:
        factory = _ENCODERS[wire_format]
    except KeyError:
        raise ValueError(f"Unknown wire format: {wire_format}") from None
    return factory()
