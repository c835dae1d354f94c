"""
Transmits batches to the push endpoint
"""

from typing import Any, Dict, Optional, Sequence

from .encoding import ProtobufPushEncoder, PushEncoder
from .exceptions import ProtocolError, SerializationError, TransportError
from .logger import get_logger
from .models import Batch, LogRecord
from .transport import Transport

# Only "204 No Content" means the batch was accepted
SUCCESS_STATUS = 204


class Transmitter:
    """Encodes a batch and posts it, dropping it on any failure.

    Delivery is at-most-once: a batch is either accepted as a whole or
    dropped as a whole, and nothing is retried.
    """

    def __init__(
        self,
        push_url: str,
        labels: str,
        transport: Transport,
        encoder: Optional[PushEncoder] = None,
    ):
        self.push_url = push_url
        self.labels = labels
        self.transport = transport
        self.encoder = encoder or ProtobufPushEncoder()
        self.logger = get_logger("transmitter")
        self._stats = {
            "batches_sent": 0,
            "entries_sent": 0,
            "batches_dropped": 0,
            "entries_dropped": 0,
        }

    async def _push(self, batch: Batch) -> None:
        """Encode and post a batch, raising on any failure"""
        payload = self.encoder.encode(batch)
        response = await self.transport.post(self.push_url, payload)
        if response.status != SUCCESS_STATUS:
            raise ProtocolError(response.status, response.body)

    def _record_drop(self, count: int) -> None:
        self._stats["batches_dropped"] += 1
        self._stats["entries_dropped"] += count

    async def send(self, records: Sequence[LogRecord]) -> bool:
        """Send records as one batch; returns True only if the endpoint accepted it"""
        if not records:
            return False

        batch = Batch(labels=self.labels, records=list(records))
        try:
            await self._push(batch)
        except (SerializationError, TransportError) as e:
            self.logger.error("Dropping batch of %d entries: %s", len(batch), e)
            self._record_drop(len(batch))
            return False
        except ProtocolError as e:
            self.logger.error(
                "Dropping batch of %d entries: Unexpected HTTP status code: %d, message: %s",
                len(batch),
                e.status,
                e.body,
            )
            self._record_drop(len(batch))
            return False

        self._stats["batches_sent"] += 1
        self._stats["entries_sent"] += len(batch)
        return True

    def get_stats(self) -> Dict[str, Any]:
        """Get transmission statistics"""
        return dict(self._stats)
