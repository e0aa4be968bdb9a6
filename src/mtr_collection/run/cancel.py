"""
Cooperative cancellation.

Signal handlers only mark a CancellationToken; the orchestrator checks the
token between invocations, so a running invocation always finishes and
leaves a complete log and archive.
"""

import signal
import sys
import threading
from contextlib import contextmanager
from typing import Optional


class CancellationToken:
    """Sticky cancellation flag."""

    def __init__(self):
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled"):
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@contextmanager
def interrupt_handler(token: CancellationToken, signals=(signal.SIGINT, signal.SIGTERM)):
    """
    Route interrupt signals to a token for the duration of the block.

    Previous handlers are restored on exit. Signal handlers can only be
    installed from the main thread; elsewhere this is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    def _handler(signum, frame):
        name = signal.Signals(signum).name
        if token.cancelled:
            print(f"\n[{name}] Already stopping, waiting for the current invocation to finish",
                  file=sys.stderr, flush=True)
        else:
            print(f"\n[{name}] Stopping after the current invocation",
                  file=sys.stderr, flush=True)
        token.cancel(name)

    previous = {}
    for signum in signals:
        previous[signum] = signal.signal(signum, _handler)
    try:
        yield token
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
