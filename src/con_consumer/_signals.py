"""Cancellation and signal handlers for con-consumer."""

from __future__ import annotations
import logging
import os
import signal
import threading
import time
from types import FrameType
from typing import Optional
from con_consumer._constants import CANCEL_POLL_INTERVAL

lgr = logging.getLogger("con-consumer")


class CancellationSignal:
    """
    Process-wide cooperative cancellation flag shared by every worker.

    It starts out not cancelled and can only ever transition once to
    cancelled.  Workers poll :attr:`is_cancelled` between units of work and
    use :meth:`wait` for sleeps which must end as soon as cancellation is
    requested.

    The flag itself is a plain attribute.  :meth:`cancel` additionally sets an
    event to wake waiters at once, while :meth:`request` only sets the flag
    and may therefore be called from a signal handler, which must not take
    the locks the interrupted main thread could be holding.  Waiters notice
    a bare :meth:`request` within ``CANCEL_POLL_INTERVAL`` seconds.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._lock = threading.Lock()
        self._event = threading.Event()

    def cancel(self) -> bool:
        """Request cancellation and wake every waiter.

        Returns
        -------
        bool
            True for exactly one caller: the one that transitioned the
            signal.  False if it was already cancelled.
        """
        with self._lock:
            if self._cancelled:
                return False
            self._cancelled = True
        self._event.set()
        return True

    def request(self) -> None:
        """Request cancellation without taking any lock."""
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Sleep `timeout` seconds (forever if None), ending early on cancellation.

        Never returns before `timeout` has elapsed unless cancelled.  Returns
        True if the signal is cancelled.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while not self._cancelled:
            if deadline is None:
                step = CANCEL_POLL_INTERVAL
            else:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                step = min(remaining, CANCEL_POLL_INTERVAL)
            self._event.wait(step)
        return True

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(cancelled={self.is_cancelled})"


class SigIntHandler:
    """
    Handler of SIGINT (and SIGTERM) signals received by con-consumer.
    """

    def __init__(self, cancel: CancellationSignal) -> None:
        """
        Parameters
        ----------
        cancel : CancellationSignal
            The signal observed by all resource consumers
        """
        self.cancel: CancellationSignal = cancel
        self.sigcount: int = 0

    def __call__(self, sig: int, _frame: Optional[FrameType]) -> None:
        self.sigcount += 1
        name = signal.Signals(sig).name
        if self.sigcount == 1:
            lgr.info("Received %s, stopping resource consumers", name)
            self.cancel.request()
        elif self.sigcount == 2:
            lgr.warning(
                "Received second %s, still waiting for consumers to stop", name
            )
            self.cancel.request()
        else:
            lgr.critical("Received %s again, exiting without cleanup", name)
            os._exit(1)
