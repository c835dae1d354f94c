"""
Tests for push body encoding
"""

import gzip
import json

import pytest
import snappy

from loki_logging import (
    Batch,
    ConfigurationError,
    JSONPushEncoder,
    LogLevel,
    LogRecord,
    ProtobufPushEncoder,
    PushEncoder,
    SerializationError,
    get_encoder,
    parse_labels,
)
from loki_logging.logproto import PushRequest


def _records():
    return [
        LogRecord.create("first", LogLevel.INFO, now_ns=1_700_000_000_123_456_789),
        LogRecord.create("second", LogLevel.ERROR, now_ns=1_700_000_001_000_000_001),
    ]


class TestParseLabels:
    """Test label selector parsing"""

    def test_single_label(self):
        assert parse_labels('{job="api"}') == {"job": "api"}

    def test_multiple_labels_with_spaces(self):
        assert parse_labels(' { job = "api" , env="prod" } ') == {"job": "api", "env": "prod"}

    def test_escaped_values(self):
        assert parse_labels(r'{path="C:\\logs", quote="say \"hi\""}') == {
            "path": "C:\\logs",
            "quote": 'say "hi"',
        }

    def test_empty_selector(self):
        assert parse_labels("{}") == {}

    @pytest.mark.parametrize(
        "selector",
        ['job="api"', '{job=api}', '{job="api" env="prod"}', '{job="api",}', '{1job="x"}', ""],
    )
    def test_malformed(self, selector):
        with pytest.raises(ConfigurationError):
            parse_labels(selector)

    def test_not_a_string(self):
        with pytest.raises(ConfigurationError):
            parse_labels({"job": "api"})


class TestLogRecord:
    """Test timestamp splitting"""

    def test_seconds_and_nanos(self):
        record = LogRecord.create("line", LogLevel.INFO, now_ns=1_700_000_000_123_456_789)
        assert record.seconds == 1_700_000_000
        assert record.nanos == 123_456_789
        assert record.timestamp_ns == 1_700_000_000_123_456_789

    def test_uses_wall_clock(self):
        record = LogRecord.create("line", LogLevel.INFO)
        assert record.seconds > 1_600_000_000
        assert 0 <= record.nanos < 1_000_000_000


class TestJSONPushEncoder:
    """Test the Loki JSON push body"""

    def test_is_a_push_encoder(self):
        assert isinstance(JSONPushEncoder(), PushEncoder)

    def test_gzip_body(self):
        batch = Batch(labels='{job="api",env="prod"}', records=_records())
        payload = JSONPushEncoder().encode(batch)

        assert payload.content_type == "application/json"
        assert payload.content_encoding == "gzip"
        assert payload.headers() == {
            "Content-Type": "application/json",
            "Content-Encoding": "gzip",
        }

        document = json.loads(gzip.decompress(payload.body))
        assert document == {
            "streams": [
                {
                    "stream": {"job": "api", "env": "prod"},
                    "values": [
                        ["1700000000123456789", "first"],
                        ["1700000001000000001", "second"],
                    ],
                }
            ]
        }

    def test_uncompressed_body(self):
        batch = Batch(labels='{job="api"}', records=_records())
        payload = JSONPushEncoder(compress=False).encode(batch)
        assert payload.content_encoding is None
        assert payload.headers() == {"Content-Type": "application/json"}
        assert len(json.loads(payload.body)["streams"]) == 1

    def test_malformed_labels_raise_serialization_error(self):
        batch = Batch(labels="not-a-selector", records=_records())
        with pytest.raises(SerializationError):
            JSONPushEncoder().encode(batch)


class TestProtobufPushEncoder:
    """Test the Loki protobuf push body"""

    def _decode(self, payload):
        return PushRequest.FromString(snappy.decompress(payload.body))

    def test_is_a_push_encoder(self):
        assert isinstance(ProtobufPushEncoder(), PushEncoder)

    def test_snappy_protobuf_body(self):
        batch = Batch(labels='{job="api",env="prod"}', records=_records())
        payload = ProtobufPushEncoder().encode(batch)

        assert payload.content_type == "application/x-protobuf"
        assert payload.content_encoding is None
        assert payload.headers() == {"Content-Type": "application/x-protobuf"}

        request = self._decode(payload)
        assert len(request.streams) == 1
        stream = request.streams[0]
        assert stream.labels == '{job="api",env="prod"}'
        assert [entry.line for entry in stream.entries] == ["first", "second"]
        assert [
            (entry.timestamp.seconds, entry.timestamp.nanos) for entry in stream.entries
        ] == [(1_700_000_000, 123_456_789), (1_700_000_001, 1)]

    def test_body_matches_built_request(self):
        encoder = ProtobufPushEncoder()
        batch = Batch(labels='{job="api"}', records=_records())
        expected = encoder.build_request(batch).SerializeToString()
        assert snappy.decompress(encoder.encode(batch).body) == expected

    def test_unicode_lines(self):
        record = LogRecord.create('{"msg": "héllo ✓"}', LogLevel.INFO, now_ns=5)
        payload = ProtobufPushEncoder().encode(Batch(labels='{job="api"}', records=[record]))
        entry = self._decode(payload).streams[0].entries[0]
        assert entry.line == '{"msg": "héllo ✓"}'
        assert (entry.timestamp.seconds, entry.timestamp.nanos) == (0, 5)

    def test_malformed_labels_raise_serialization_error(self):
        batch = Batch(labels="not-a-selector", records=_records())
        with pytest.raises(SerializationError):
            ProtobufPushEncoder().encode(batch)


class TestGetEncoder:
    """Test encoder lookup by wire format"""

    def test_known_formats(self):
        assert isinstance(get_encoder("protobuf"), ProtobufPushEncoder)
        assert isinstance(get_encoder("json"), JSONPushEncoder)

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            get_encoder("xml")
