from __future__ import annotations
import threading
import time
from typing import Any, Callable
from con_consumer._models import ResourceTargets
from con_consumer._signals import CancellationSignal
from con_consumer.consumer_main import Consumer

# Small sizes so consuming "a gigabyte" stays cheap in tests: 1024 chunks of
# 1 KiB each.
TEST_CHUNK_SIZE = 1024
TEST_CPU_BUFFER_SIZE = 64 * 1024
TEST_KEEPALIVE_INTERVAL = 0.05


def make_consumer(
    targets: ResourceTargets, cancel: CancellationSignal, **kwargs: Any
) -> Consumer:
    """Helper to create a Consumer with test-friendly defaults."""
    defaults = {
        "chunk_size": TEST_CHUNK_SIZE,
        "cpu_buffer_size": TEST_CPU_BUFFER_SIZE,
        "keepalive_interval": TEST_KEEPALIVE_INTERVAL,
    }
    defaults.update(kwargs)
    return Consumer(targets, cancel, **defaults)


def run_in_thread(consumer: Consumer) -> threading.Thread:
    thread = threading.Thread(target=consumer.run, daemon=True)
    thread.start()
    return thread


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def cancel_after(cancel: CancellationSignal, delay: float) -> threading.Timer:
    timer = threading.Timer(delay, cancel.cancel)
    timer.daemon = True
    timer.start()
    return timer
