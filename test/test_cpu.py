from __future__ import annotations
import time
from unittest import mock
import pytest
from utils import TEST_CPU_BUFFER_SIZE, wait_until
from con_consumer._cpu import CpuBurner, start_cpu_burners
from con_consumer._signals import CancellationSignal


def test_burner_spins_until_cancelled(cancel: CancellationSignal) -> None:
    burner = CpuBurner(cancel, buffer_size=TEST_CPU_BUFFER_SIZE)
    handle = burner.start()
    assert wait_until(lambda: burner.iterations > 2)
    assert burner.is_running
    cancel.cancel()
    handle.join(timeout=1)
    assert not handle.is_alive
    assert not burner.is_running


def test_burner_generates_buffer_once(cancel: CancellationSignal) -> None:
    burner = CpuBurner(cancel, buffer_size=TEST_CPU_BUFFER_SIZE)
    with mock.patch(
        "con_consumer._cpu.os.urandom", return_value=b"x" * TEST_CPU_BUFFER_SIZE
    ) as mock_urandom:
        handle = burner.start()
        assert wait_until(lambda: burner.iterations > 5)
        cancel.cancel()
        handle.join(timeout=1)
    mock_urandom.assert_called_once_with(TEST_CPU_BUFFER_SIZE)


def test_burner_cancelled_before_start_does_no_work() -> None:
    cancel = CancellationSignal()
    cancel.cancel()
    burner = CpuBurner(cancel, buffer_size=TEST_CPU_BUFFER_SIZE)
    burner.start().join(timeout=1)
    assert burner.iterations == 0


@pytest.mark.parametrize("count", [0, 1, 3])
def test_start_cpu_burners_count(count: int, cancel: CancellationSignal) -> None:
    burners, handle = start_cpu_burners(count, cancel, TEST_CPU_BUFFER_SIZE)
    assert len(burners) == count
    assert len(handle.threads) == count
    assert len({b.name for b in burners}) == count
    assert wait_until(lambda: all(b.iterations > 0 for b in burners))
    t0 = time.monotonic()
    cancel.cancel()
    handle.join(timeout=2)
    assert time.monotonic() - t0 < 1
    assert not any(b.is_running for b in burners)
