"""
Background dispatch loop: batching, flush timing and final drain
"""

import asyncio
import sys
from enum import Enum
from typing import Any, Dict, List, Optional

from .levels import decide
from .logger import get_logger
from .models import LogRecord
from .transmitter import Transmitter


class DispatcherState(str, Enum):
    """Lifecycle of the dispatch loop"""

    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class BatchAccumulator:
    """Pending records in arrival order, owned by the dispatcher"""

    def __init__(self):
        self.records: List[LogRecord] = []

    def append(self, record: LogRecord) -> int:
        """Add a record and return the pending count"""
        self.records.append(record)
        return len(self.records)

    def take(self) -> List[LogRecord]:
        """Return the pending records and reset to empty"""
        records = self.records
        self.records = []
        return records

    def __len__(self) -> int:
        return len(self.records)


class Dispatcher:
    """Single consumer of the intake queue.

    Each loop iteration waits for exactly one of three events: the shutdown
    signal, the next queued record, or the flush timer. A batch is flushed
    when it reaches ``batch_entries_number`` records (which also restarts the
    ``batch_wait`` window) or when the timer fires with records pending.
    Transmission is awaited inline, so at most one batch is in flight.
    """

    def __init__(self, config: Any, queue: asyncio.Queue, transmitter: Transmitter):
        self.config = config
        self.queue = queue
        self.transmitter = transmitter
        self.accumulator = BatchAccumulator()
        self.state = DispatcherState.IDLE
        self.logger = get_logger("dispatcher")

        self._quit = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._stats = {
            "printed": 0,
            "size_flushes": 0,
            "timer_flushes": 0,
            "final_flushes": 0,
        }

    def start(self) -> asyncio.Task:
        """Start the loop as a task on the running event loop"""
        if self._task is None:
            self.state = DispatcherState.RUNNING
            self._task = asyncio.create_task(self.run(), name="loki-dispatcher")
        return self._task

    @property
    def started(self) -> bool:
        return self._task is not None

    def request_shutdown(self) -> None:
        """Signal the loop to stop; safe to call more than once"""
        self._quit.set()

    async def wait_stopped(self) -> None:
        """Wait until the loop has exited, including its final flush"""
        if self._task is not None:
            await asyncio.shield(self._task)

    def _arm_timer(self) -> asyncio.Task:
        return asyncio.create_task(asyncio.sleep(self.config.batch_wait))

    def _print(self, record: LogRecord) -> None:
        stream = self.config.print_stream or sys.stdout
        try:
            stream.write(record.line + "\n")
            if hasattr(stream, "flush"):
                stream.flush()
            self._stats["printed"] += 1
        except Exception as e:
            self.logger.error("Unable to print log line: %s", e)

    async def _flush(self) -> None:
        """Transmit the pending records; failures never escape the loop"""
        records = self.accumulator.take()
        if not records:
            return
        try:
            await self.transmitter.send(records)
        except Exception:
            self.logger.exception("Unexpected error while sending %d entries", len(records))

    def _accept(self, record: LogRecord) -> int:
        """Print and/or accumulate a record; returns the pending count"""
        decision = decide(record.level, self.config)
        if decision.print:
            self._print(record)
        if decision.send:
            self.accumulator.append(record)
        return len(self.accumulator)

    async def _handle_record(self, record: LogRecord) -> bool:
        """Accept a record; returns True if it completed a batch and was flushed"""
        if self._accept(record) >= self.config.batch_entries_number:
            await self._flush()
            self._stats["size_flushes"] += 1
            return True
        return False

    async def run(self) -> None:
        """The dispatch loop"""
        self.state = DispatcherState.RUNNING
        quit_waiter = asyncio.create_task(self._quit.wait())
        timer = self._arm_timer()
        getter: Optional[asyncio.Task] = None

        try:
            while True:
                if getter is None:
                    getter = asyncio.create_task(self.queue.get())

                done, _ = await asyncio.wait(
                    {quit_waiter, getter, timer}, return_when=asyncio.FIRST_COMPLETED
                )

                if quit_waiter in done:
                    break

                if getter in done:
                    record = getter.result()
                    getter = None
                    try:
                        if await self._handle_record(record):
                            timer.cancel()
                            timer = self._arm_timer()
                    finally:
                        self.queue.task_done()
                    continue

                if len(self.accumulator):
                    await self._flush()
                    self._stats["timer_flushes"] += 1
                timer = self._arm_timer()
        finally:
            self.state = DispatcherState.DRAINING
            timer.cancel()
            quit_waiter.cancel()
            if getter is not None:
                if getter.done() and not getter.cancelled():
                    # Already taken off the queue: treat it like any other record
                    self._accept(getter.result())
                    self.queue.task_done()
                else:
                    getter.cancel()

            if len(self.accumulator):
                await self._flush()
                self._stats["final_flushes"] += 1
            self.state = DispatcherState.STOPPED

    def get_stats(self) -> Dict[str, Any]:
        """Get dispatcher statistics"""
        return {
            **self._stats,
            "state": self.state.value,
            "pending": len(self.accumulator),
        }
