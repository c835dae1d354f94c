"""
Standard library logging handler backed by a LokiClient
"""

import asyncio
import logging
import threading
from typing import Any, Dict, Optional, Set

from .client import LokiClient, create_client
from .config import ClientConfig, get_default_config
from .encoding import PushEncoder
from .formatter import LineRenderer
from .levels import from_python_level
from .logger import is_internal_logger
from .transport import Transport

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}


class LokiHandler(logging.Handler):
    """Forward standard library log records to a Loki client.

    The client runs on a private event loop in a background thread. ``emit``
    blocks the logging thread until the record is queued, so a full intake
    queue throttles the application the same way it throttles coroutines.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        level: int = logging.NOTSET,
        transport: Optional[Transport] = None,
        encoder: Optional[PushEncoder] = None,
        renderer: Optional[LineRenderer] = None,
        shutdown_timeout: float = 30.0,
    ):
        super().__init__(level)
        self.config = config or get_default_config()
        self.shutdown_timeout = shutdown_timeout
        self._closed = False
        self._exc_formatter = logging.Formatter()
        self._pending_tasks: Set[asyncio.Task] = set()

        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop, daemon=True, name="loki-handler"
        )
        self._thread.start()

        self.client: LokiClient = asyncio.run_coroutine_threadsafe(
            create_client(self.config, transport, encoder, renderer), self._loop
        ).result()

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_forever()
        finally:
            self._loop.close()

    def _record_to_fields(self, record: logging.LogRecord) -> Dict[str, Any]:
        """Convert a LogRecord into the field mapping sent to Loki"""
        data: Dict[str, Any] = {
            "msg": record.getMessage(),
            "logger": record.name,
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                data[key] = value
        if record.exc_info:
            data["exception"] = self._exc_formatter.formatException(record.exc_info)
        return data

    def emit(self, record: logging.LogRecord) -> None:
        """Queue a log record on the client"""
        if self._closed or is_internal_logger(record.name):
            return

        try:
            data = self._record_to_fields(record)
            coro = self.client.log(from_python_level(record.levelno), data)

            if threading.current_thread() is self._thread:
                # Logged from the client's own loop: waiting here would deadlock
                task = self._loop.create_task(coro)
                self._pending_tasks.add(task)
                task.add_done_callback(self._pending_tasks.discard)
                return

            asyncio.run_coroutine_threadsafe(coro, self._loop).result()
        except Exception:
            self.handleError(record)

    def flush(self) -> None:
        """Wait until the dispatcher has taken every queued record"""
        if self._closed or threading.current_thread() is self._thread:
            return
        asyncio.run_coroutine_threadsafe(self.client.join(), self._loop).result()

    async def _drain_and_shutdown(self) -> None:
        await self.client.join()
        await self.client.shutdown()

    def close(self) -> None:
        """Hand every queued record to the dispatcher, shut down, stop the loop"""
        if not self._closed:
            self._closed = True
            try:
                asyncio.run_coroutine_threadsafe(
                    self._drain_and_shutdown(), self._loop
                ).result(timeout=self.shutdown_timeout)
            finally:
                self._loop.call_soon_threadsafe(self._loop.stop)
                self._thread.join(timeout=self.shutdown_timeout)

        super().close()
