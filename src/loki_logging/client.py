"""
Public client: intake API and lifecycle
"""

import asyncio
from typing import Any, Dict, MutableMapping, Optional, Union

from .config import ClientConfig, get_default_config
from .dispatcher import Dispatcher, DispatcherState
from .encoding import PushEncoder, get_encoder
from .exceptions import RenderError
from .formatter import LineRenderer, get_renderer
from .levels import LogLevel, decide, parse_level
from .logger import get_logger
from .models import LogRecord
from .transmitter import Transmitter
from .transport import AiohttpTransport, Transport


class LokiClient:
    """Buffers log records and ships them to a Loki push endpoint in batches.

    Records at or above ``send_level`` are queued for the background
    dispatcher, which flushes them when a batch is full or ``batch_wait``
    has elapsed. Records at or above ``print_level`` are printed locally by
    the dispatcher. Delivery failures never reach intake callers: they are
    logged through the ``loki_logging`` diagnostics logger and the record
    or batch is dropped.

    Usage::

        async with LokiClient(ClientConfig(labels='{job="api"}')) as client:
            await client.info({"msg": "request served", "status": 200})
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[Transport] = None,
        encoder: Optional[PushEncoder] = None,
        renderer: Optional[LineRenderer] = None,
    ):
        self.config = config or get_default_config()
        self._owns_transport = transport is None
        self.transport = transport or AiohttpTransport(
            timeout=self.config.timeout, headers=self.config.headers
        )
        self.renderer = renderer or get_renderer(self.config.line_format)
        self.logger = get_logger("client")

        self.queue: asyncio.Queue = asyncio.Queue(maxsize=self.config.queue_size)
        self.transmitter = Transmitter(
            self.config.push_url,
            self.config.labels,
            self.transport,
            encoder or get_encoder(self.config.wire_format),
        )
        self.dispatcher = Dispatcher(self.config, self.queue, self.transmitter)

        self._shutdown_requested = False
        self._closed = False
        self._stats = {"enqueued": 0, "skipped": 0, "render_errors": 0}

    async def start(self) -> None:
        """Start the background dispatcher"""
        if self._shutdown_requested:
            return
        self.dispatcher.start()

    async def debug(self, data: MutableMapping[str, Any]) -> bool:
        return await self.log(LogLevel.DEBUG, data)

    async def info(self, data: MutableMapping[str, Any]) -> bool:
        return await self.log(LogLevel.INFO, data)

    async def warn(self, data: MutableMapping[str, Any]) -> bool:
        return await self.log(LogLevel.WARN, data)

    warning = warn

    async def error(self, data: MutableMapping[str, Any]) -> bool:
        return await self.log(LogLevel.ERROR, data)

    def _build_record(
        self, level: LogLevel, data: MutableMapping[str, Any]
    ) -> Optional[LogRecord]:
        """Stamp the level, render the line and capture the timestamp"""
        data["level"] = level.text
        try:
            line = self.renderer.render(data)
        except RenderError as e:
            self._stats["render_errors"] += 1
            self.logger.error("Dropping %s record: %s", level.text, e)
            return None
        except Exception:
            self._stats["render_errors"] += 1
            self.logger.exception("Renderer failed, dropping %s record", level.text)
            return None
        return LogRecord.create(line, level)

    async def log(
        self, level: Union[LogLevel, str, int], data: MutableMapping[str, Any]
    ) -> bool:
        """Queue a record for the dispatcher.

        Returns True if the record was queued, False if it was filtered out
        by both thresholds, could not be rendered, or the client is shut
        down. Suspends while the intake queue is full.
        """
        level = parse_level(level)
        if level >= LogLevel.DISABLE or not decide(level, self.config).any:
            self._stats["skipped"] += 1
            return False

        if self._shutdown_requested:
            self.logger.debug("Client is shut down, discarding %s record", level.text)
            return False

        record = self._build_record(level, data)
        if record is None:
            return False

        if not self.dispatcher.started:
            await self.start()

        await self.queue.put(record)
        self._stats["enqueued"] += 1
        return True

    async def join(self) -> None:
        """Wait until every queued record has been handled by the dispatcher"""
        await self.queue.join()

    async def shutdown(self) -> None:
        """Stop the dispatcher after a final flush of pending records.

        Only the first call signals the dispatcher; every call waits for
        the same exit. Records still in the intake queue are not consumed.
        """
        self._shutdown_requested = True
        self.dispatcher.request_shutdown()
        await self.dispatcher.wait_stopped()

        if not self._closed:
            self._closed = True
            if self._owns_transport:
                await self.transport.close()

    @property
    def state(self) -> DispatcherState:
        return self.dispatcher.state

    def get_stats(self) -> Dict[str, Any]:
        """Get client statistics"""
        return {
            **self._stats,
            **self.dispatcher.get_stats(),
            **self.transmitter.get_stats(),
            "queue_size": self.queue.qsize(),
        }

    async def __aenter__(self) -> "LokiClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.shutdown()


async def create_client(
    config: Optional[ClientConfig] = None,
    transport: Optional[Transport] = None,
    encoder: Optional[PushEncoder] = None,
    renderer: Optional[LineRenderer] = None,
) -> LokiClient:
    """Create a client and start its dispatcher"""
    client = LokiClient(config, transport, encoder, renderer)
    await client.start()
    return client
