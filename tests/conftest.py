"""
Shared fixtures for the Loki client tests
"""

import gzip
import io
import json
from typing import List

import pytest
import snappy

from loki_logging import ClientConfig, LogLevel
from loki_logging.encoding import EncodedPayload
from loki_logging.logproto import PushRequest
from loki_logging.transport import Transport, TransportResponse


def decode_payload(payload: EncodedPayload) -> dict:
    """Decode a protobuf or JSON push body into the JSON document shape"""
    if payload.content_type == "application/x-protobuf":
        request = PushRequest.FromString(snappy.decompress(payload.body))
        return {
            "streams": [
                {
                    "labels": stream.labels,
                    "values": [
                        [
                            str(entry.timestamp.seconds * 1_000_000_000 + entry.timestamp.nanos),
                            entry.line,
                        ]
                        for entry in stream.entries
                    ],
                }
                for stream in request.streams
            ]
        }

    body = payload.body
    if payload.content_encoding == "gzip":
        body = gzip.decompress(body)
    return json.loads(body)


class RecordingTransport(Transport):
    """Transport double that records every push and answers 204 by default"""

    def __init__(self):
        self.requests = []
        self.statuses: List[int] = []
        self.errors: List[Exception] = []
        self.gate = None
        self.closed = False

    async def post(self, url, payload):
        self.requests.append((url, payload))
        if self.gate is not None:
            await self.gate.wait()
        if self.errors:
            raise self.errors.pop(0)
        status = self.statuses.pop(0) if self.statuses else 204
        return TransportResponse(status=status, body="" if status == 204 else "entry out of order")

    async def close(self):
        self.closed = True

    @property
    def values(self) -> List[list]:
        """Raw [timestamp, line] pairs of every pushed stream, one list per request"""
        return [decode_payload(payload)["streams"][0]["values"] for _, payload in self.requests]

    @property
    def batches(self) -> List[List[dict]]:
        """Fields of every pushed record, one list per request"""
        result = []
        for _, payload in self.requests:
            document = decode_payload(payload)
            result.append([json.loads(value[1]) for value in document["streams"][0]["values"]])
        return result


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def make_config():
    """Factory for client configs tuned for tests"""

    def factory(**overrides) -> ClientConfig:
        values = {
            "push_url": "http://loki.test/loki/api/v1/push",
            "labels": '{job="test",env="ci"}',
            "send_level": LogLevel.DEBUG,
            "print_level": LogLevel.DISABLE,
            "batch_wait": 60.0,
            "batch_entries_number": 100,
            "print_stream": io.StringIO(),
        }
        values.update(overrides)
        return ClientConfig(**values)

    return factory
