"""Memory consumption for con-consumer."""

from __future__ import annotations
import logging
import os
import threading
import time
from con_consumer._constants import (
    CHUNK_SIZE,
    KEEPALIVE_INTERVAL,
    PAGE_SIZE,
    PROGRESS_EVERY,
)
from con_consumer._models import WorkerHandle
from con_consumer._signals import CancellationSignal

lgr = logging.getLogger("con-consumer")

# bytes.translate table adding 1 (mod 256) to every byte
_INCREMENT = bytes((i + 1) % 256 for i in range(256))


class MemoryHolder:
    """Allocates `megabytes` chunks of random bytes and keeps them resident.

    Allocation happens in the thread calling :meth:`start`.  Once it
    completes, a background thread touches every page of every chunk once
    per `keepalive_interval` so the memory cannot be reclaimed or swapped
    out, until the cancellation signal fires.

    Running out of memory is not handled: MemoryError propagates.
    """

    def __init__(
        self,
        megabytes: int,
        cancel: CancellationSignal,
        chunk_size: int = CHUNK_SIZE,
        page_size: int = PAGE_SIZE,
        keepalive_interval: float = KEEPALIVE_INTERVAL,
        name: str = "memory",
    ) -> None:
        self.megabytes = megabytes
        self.cancel = cancel
        self.chunk_size = chunk_size
        self.page_size = page_size
        self.keepalive_interval = keepalive_interval
        self.name = name
        self.blocks: list[bytearray] = []
        self.aborted = False
        self.passes = 0
        self.thread: threading.Thread | None = None

    @property
    def allocated_bytes(self) -> int:
        return len(self.blocks) * self.chunk_size

    def start(self) -> WorkerHandle:
        if self.megabytes <= 0:
            return WorkerHandle()
        if not self.allocate():
            return WorkerHandle()
        self.thread = threading.Thread(
            target=self.keep_alive, name=f"{self.name}-keepalive", daemon=True
        )
        self.thread.start()
        return WorkerHandle([self.thread])

    def allocate(self) -> bool:
        """Fill :attr:`blocks`. Returns False if cancelled midway."""
        self.blocks = []
        for i in range(self.megabytes):
            if self.cancel.is_cancelled:
                lgr.info(
                    "Cancelled while allocating %s after %d of %d chunks",
                    self.name,
                    i,
                    self.megabytes,
                )
                self.aborted = True
                self.blocks = []
                return False
            if i % PROGRESS_EVERY == 0:
                lgr.info(
                    "Allocating %s... %.0f%%", self.name, 100.0 * i / self.megabytes
                )
            self.blocks.append(self._new_block())
            # let the other consumers get going
            time.sleep(0)
        lgr.info("Successfully allocated %s (%d MB).", self.name, self.megabytes)
        return True

    def _new_block(self) -> bytearray:
        return bytearray(os.urandom(self.chunk_size))

    def touch_pages(self) -> None:
        """Increment one byte in each page of every block."""
        step = self.page_size
        for block in self.blocks:
            block[::step] = block[::step].translate(_INCREMENT)

    def keep_alive(self) -> None:
        while not self.cancel.is_cancelled:
            self.touch_pages()
            self.passes += 1
            # sleep between passes so the holder does not turn into a CPU consumer
            if self.cancel.wait(self.keepalive_interval):
                break
        lgr.debug("%s keep-alive stopped after %d passes", self.name, self.passes)


class DelayedMemoryHolder:
    """Allocates memory through a :class:`MemoryHolder` after a delay.

    The delay blocks the calling thread and is cut short by cancellation, in
    which case nothing is allocated.  The delay is observed even for a zero
    megabyte target.
    """

    def __init__(self, holder: MemoryHolder, delay_seconds: float) -> None:
        self.holder = holder
        self.cancel = holder.cancel
        self.delay_seconds = delay_seconds
        self.skipped = False

    @property
    def allocated_bytes(self) -> int:
        return self.holder.allocated_bytes

    def start(self) -> WorkerHandle:
        lgr.info(
            "Waiting %s seconds before allocating additional memory.",
            format(self.delay_seconds, ","),
        )
        if self.cancel.wait(self.delay_seconds):
            lgr.info("Cancelled before allocating %s", self.holder.name)
            self.skipped = True
            return WorkerHandle()
        return self.holder.start()
