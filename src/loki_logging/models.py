"""
Log records and batches
"""

import time
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from .levels import LogLevel

NANOS_PER_SECOND = 1_000_000_000


@dataclass(frozen=True)
class LogRecord:
    """A rendered log line with its capture time and severity"""

    seconds: int
    nanos: int
    line: str
    level: LogLevel

    @classmethod
    def create(
        cls, line: str, level: LogLevel, now_ns: Optional[int] = None
    ) -> "LogRecord":
        """Stamp a line with the current wall clock time"""
        if now_ns is None:
            now_ns = time.time_ns()
        seconds, nanos = divmod(now_ns, NANOS_PER_SECOND)
        return cls(seconds=seconds, nanos=nanos, line=line, level=level)

    @property
    def timestamp_ns(self) -> int:
        return self.seconds * NANOS_PER_SECOND + self.nanos


@dataclass
class Batch:
    """Records flushed together under one static label set"""

    labels: str
    records: List[LogRecord] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[LogRecord]:
        return iter(self.records)
