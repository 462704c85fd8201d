from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple, Union

from ev_dashboard.settings import SEARCH_DEBOUNCE_SECONDS


logger = logging.getLogger(__name__)


class Debouncer:
    """Run ``callback`` once the caller has been quiet for ``delay`` seconds.

    Each ``trigger`` cancels the pending call and schedules a new one, so only
    the most recent trigger ever executes. Inside a running event loop the call
    is scheduled on that loop; otherwise a timer thread runs it.
    """

    def __init__(
        self,
        callback: Callable[..., Any],
        delay: float = SEARCH_DEBOUNCE_SECONDS,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        self.callback = callback
        self.delay = delay
        self._loop = loop
        self._lock = threading.Lock()
        self._handle: Optional[Union[asyncio.TimerHandle, threading.Timer]] = None
        self._pending: Optional[Tuple[Tuple[Any, ...], Dict[str, Any]]] = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def _schedule(self, generation: int) -> Union[asyncio.TimerHandle, threading.Timer]:
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
        if loop is not None:
            return loop.call_later(self.delay, self._fire, generation)
        timer = threading.Timer(self.delay, self._fire, args=(generation,))
        timer.daemon = True
        timer.start()
        return timer

    def trigger(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
            self._generation += 1
            self._pending = (args, kwargs)
            self._handle = self._schedule(self._generation)

    def cancel(self) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
            self._handle = None
            self._pending = None

    def flush(self) -> None:
        """Run the pending call now instead of waiting out the delay."""
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
                self._handle = None
            generation = self._generation
        self._fire(generation)

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A timer that lost a race with a newer trigger must not fire.
            if generation != self._generation:
                return
            pending, self._pending, self._handle = self._pending, None, None
        if pending is None:
            return
        args, kwargs = pending
        logger.debug("Debounced call fired after %.3fs", self.delay)
        self.callback(*args, **kwargs)
