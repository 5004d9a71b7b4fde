from __future__ import annotations
from importlib.metadata import version
import logging
import math
import os
import signal
import time
from typing import Any, Optional
from con_consumer._constants import (
    CHUNK_SIZE,
    CPU_BUFFER_SIZE,
    DEFAULT_METRICS_ADDRESS,
    KEEPALIVE_INTERVAL,
)
from con_consumer._cpu import CpuBurner, start_cpu_burners
from con_consumer._formatter import SummaryFormatter
from con_consumer._memory import DelayedMemoryHolder, MemoryHolder
from con_consumer._metrics import (
    register_consumer,
    start_metrics_server,
    unregister_consumer,
)
from con_consumer._models import ResourceTargets, WorkerHandle
from con_consumer._signals import CancellationSignal, SigIntHandler

__version__ = version("con-consumer")

lgr = logging.getLogger("con-consumer")

EXECUTION_SUMMARY_FORMAT = (
    "Summary:\n"
    "CPU Cores Consumed: {cpu_cores!N}\n"
    "Memory Allocated: {memory_bytes!S}\n"
    "Extra Memory Allocated: {extra_memory_bytes!S}\n"
    "Wall Clock Time: {wall_clock_time:.3f} sec\n"
    "Cancelled: {cancelled!X}\n"
)


class Consumer:
    """Starts the CPU and memory consumers for `targets` and waits for them."""

    def __init__(
        self,
        targets: ResourceTargets,
        cancel: CancellationSignal,
        chunk_size: int = CHUNK_SIZE,
        cpu_buffer_size: int = CPU_BUFFER_SIZE,
        keepalive_interval: float = KEEPALIVE_INTERVAL,
    ) -> None:
        self.targets = targets
        self.cancel = cancel
        self.cpu_buffer_size = cpu_buffer_size
        self.cpu_burners: list[CpuBurner] = []
        self.memory = MemoryHolder(
            targets.memory_megabytes,
            cancel,
            chunk_size=chunk_size,
            keepalive_interval=keepalive_interval,
        )
        self.extra_memory = DelayedMemoryHolder(
            MemoryHolder(
                targets.extra_memory_megabytes,
                cancel,
                chunk_size=chunk_size,
                keepalive_interval=keepalive_interval,
                name="extra memory",
            ),
            targets.extra_memory_delay_seconds,
        )
        self.start_time: float | None = None
        self.end_time: float | None = None

    @property
    def wall_clock_time(self) -> float:
        if self.start_time is None:
            return math.nan
        if self.end_time is None:
            return time.time() - self.start_time
        return self.end_time - self.start_time

    def run(self) -> None:
        self.start_time = time.time()
        self.cpu_burners, cpu_handle = start_cpu_burners(
            self.targets.cpu_cores or 0, self.cancel, self.cpu_buffer_size
        )
        memory_handle = self.memory.start()
        if self.targets.extra_memory_gigabytes is None:
            extra_memory_handle = WorkerHandle()
        else:
            # Blocks for the configured delay before allocating anything.
            extra_memory_handle = self.extra_memory.start()

        for handle in (cpu_handle, memory_handle, extra_memory_handle):
            handle.join()
        self.end_time = time.time()

    @property
    def summary_data(self) -> dict[str, Any]:
        return {
            "cpu_cores": self.targets.cpu_cores,
            "memory_bytes": (
                None
                if self.targets.memory_gigabytes is None
                else self.memory.allocated_bytes
            ),
            "extra_memory_bytes": (
                None
                if self.targets.extra_memory_gigabytes is None
                else self.extra_memory.allocated_bytes
            ),
            "wall_clock_time": self.wall_clock_time,
            "cancelled": self.cancel.is_cancelled,
        }

    def format_summary(self, summary_format: str, colors: bool = False) -> str:
        return SummaryFormatter(enable_colors=colors).format(
            summary_format, **self.summary_data
        )


def run(
    targets: ResourceTargets, cancel: CancellationSignal, **kwargs: Any
) -> Consumer:
    """Consume the resources described by `targets` until `cancel` fires."""
    consumer = Consumer(targets, cancel, **kwargs)
    consumer.run()
    return consumer


def execute(
    targets: ResourceTargets,
    metrics_port: Optional[int],
    metrics_address: str = DEFAULT_METRICS_ADDRESS,
    summary_format: str = EXECUTION_SUMMARY_FORMAT,
    colors: bool = False,
    cancel: Optional[CancellationSignal] = None,
) -> int:
    """Consume resources as requested by `targets`, publishing metrics.

    Runs until interrupted (SIGINT or SIGTERM) and returns the exit code.
    """
    if cancel is None:
        cancel = CancellationSignal()
    consumer = Consumer(targets, cancel)

    handler = SigIntHandler(cancel)
    previous_handlers = {
        signum: signal.signal(signum, handler)
        for signum in (signal.SIGINT, signal.SIGTERM)
    }
    lgr.info(
        "con-consumer %s is consuming resources (pid %d)", __version__, os.getpid()
    )
    collector = None
    try:
        if metrics_port is not None:
            # We never stop it, it goes away with the process.
            start_metrics_server(metrics_port, metrics_address)
            collector = register_consumer(consumer)
        consumer.run()
    finally:
        for signum, previous in previous_handlers.items():
            if previous is not None:
                signal.signal(signum, previous)
        if collector is not None:
            unregister_consumer(collector)

    lgr.info("All done.")
    lgr.info(consumer.format_summary(summary_format, colors))
    return 0


__all__ = [
    "Consumer",
    "EXECUTION_SUMMARY_FORMAT",
    "ResourceTargets",
    "CancellationSignal",
    "WorkerHandle",
    "execute",
    "run",
]
