"""
Cross-thread run flag for the dispatch loop.
"""

import logging
import signal
import threading
from typing import Callable, Iterable, Optional


class RunFlag:
    """
    Caller-owned cancellation signal.

    The dispatch loop only reads the flag (once per frame); the owner, a
    signal handler or a supervising thread clears it to request a graceful
    stop. Backed by threading.Event, so reads and writes are safe across
    threads.

    Example:
        >>> flag = RunFlag()
        >>> flag.is_running
        True
        >>> flag.stop()
        >>> flag.is_running
        False
    """

    def __init__(self, running: bool = True) -> None:
        self._event = threading.Event()
        if running:
            self._event.set()

    @property
    def is_running(self) -> bool:
        return self._event.is_set()

    def start(self) -> None:
        self._event.set()

    def stop(self) -> None:
        self._event.clear()

    def __bool__(self) -> bool:
        return self.is_running


def install_signal_handlers(
    flag: RunFlag,
    on_repeat: Optional[Callable[[], None]] = None,
    signals: Iterable[int] = (signal.SIGINT, signal.SIGTERM),
) -> None:
    """
    Clear ``flag`` when one of ``signals`` is received.

    Must be called from the main thread. The loop stops after the frame it
    is currently waiting for arrives. A signal received while the flag is
    already cleared calls ``on_repeat`` instead (e.g. to abort a blocked
    read).
    """
    logger = logging.getLogger(__name__)

    def signal_handler(sig, frame):
        if flag.is_running:
            logger.info(f"Received signal {sig}, stopping after the current frame")
            flag.stop()
        elif on_repeat is not None:
            logger.warning(f"Received signal {sig} again, forcing shutdown")
            on_repeat()

    for sig in signals:
        signal.signal(sig, signal_handler)
