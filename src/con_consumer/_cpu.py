"""CPU consumption for con-consumer."""

from __future__ import annotations
import hashlib
import logging
import os
import threading
from con_consumer._constants import CPU_BUFFER_SIZE
from con_consumer._models import WorkerHandle
from con_consumer._signals import CancellationSignal

lgr = logging.getLogger("con-consumer")


class CpuBurner:
    """Burns one CPU core worth of CPU time until cancelled.

    hashlib releases the GIL while digesting large buffers, so several
    burners keep several cores busy at once.
    """

    def __init__(
        self,
        cancel: CancellationSignal,
        buffer_size: int = CPU_BUFFER_SIZE,
        name: str = "cpu-burner",
    ) -> None:
        self.cancel = cancel
        self.buffer_size = buffer_size
        self.name = name
        self.iterations = 0
        self.thread: threading.Thread | None = None

    def start(self) -> WorkerHandle:
        self.thread = threading.Thread(target=self.burn, name=self.name, daemon=True)
        self.thread.start()
        return WorkerHandle([self.thread])

    @property
    def is_running(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def burn(self) -> None:
        lgr.info("Consuming 1 CPU core worth of CPU time.")
        # Big enough to thrash CPU caches, generated once so the loop only
        # pays for hashing.
        buffer = os.urandom(self.buffer_size)
        while not self.cancel.is_cancelled:
            hashlib.sha512(buffer).digest()
            self.iterations += 1
        lgr.debug("%s stopped after %d iterations", self.name, self.iterations)


def start_cpu_burners(
    count: int, cancel: CancellationSignal, buffer_size: int = CPU_BUFFER_SIZE
) -> tuple[list[CpuBurner], WorkerHandle]:
    burners = [
        CpuBurner(cancel, buffer_size=buffer_size, name=f"cpu-burner-{i}")
        for i in range(count)
    ]
    handle = WorkerHandle.merge(b.start() for b in burners)
    return burners, handle
