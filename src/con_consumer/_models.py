"""Data models for con-consumer."""

from __future__ import annotations
from collections.abc import Iterable
from dataclasses import dataclass
import threading
import time
from typing import Optional
from con_consumer._constants import (
    DEFAULT_EXTRA_MEMORY_DELAY_SECONDS,
    MEGABYTES_PER_GIGABYTE,
)


def _megabytes(gigabytes: Optional[int]) -> int:
    return 0 if gigabytes is None else gigabytes * MEGABYTES_PER_GIGABYTE


@dataclass(frozen=True)
class ResourceTargets:
    cpu_cores: Optional[int] = None
    memory_gigabytes: Optional[int] = None
    extra_memory_gigabytes: Optional[int] = None
    extra_memory_delay_seconds: int = DEFAULT_EXTRA_MEMORY_DELAY_SECONDS

    @property
    def has_resource_target(self) -> bool:
        return self.cpu_cores is not None or self.memory_gigabytes is not None

    @property
    def memory_megabytes(self) -> int:
        return _megabytes(self.memory_gigabytes)

    @property
    def extra_memory_megabytes(self) -> int:
        return _megabytes(self.extra_memory_gigabytes)


class WorkerHandle:
    """Joinable reference to zero or more running worker threads.

    A handle without threads is the no-op handle: joining it returns at once.
    """

    def __init__(self, threads: Iterable[threading.Thread] = ()) -> None:
        self.threads: list[threading.Thread] = list(threads)

    @classmethod
    def merge(cls, handles: Iterable[WorkerHandle]) -> WorkerHandle:
        return cls(t for h in handles for t in h.threads)

    @property
    def is_noop(self) -> bool:
        return not self.threads

    @property
    def is_alive(self) -> bool:
        return any(t.is_alive() for t in self.threads)

    def join(self, timeout: Optional[float] = None) -> None:
        """Block until every thread terminated, or `timeout` seconds passed."""
        deadline = None if timeout is None else time.monotonic() + timeout
        for thread in self.threads:
            if deadline is None:
                thread.join()
            else:
                thread.join(max(0.0, deadline - time.monotonic()))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(threads={len(self.threads)})"
