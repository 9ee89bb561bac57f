"""Start/stop lifecycle with background workers bound to a stop event."""

from __future__ import annotations

import threading
from typing import Callable


class Stoppable:
    """Base for components that run worker threads until stopped.

    Workers launched with :meth:`go` receive a :class:`threading.Event`
    that is set when the component stops; stopping waits for them all.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._threads_lock = threading.Lock()
        self._ctx: threading.Event | None = None
        self._threads: list[threading.Thread] = []

    @property
    def running(self) -> bool:
        """True between a successful start and the next stop."""
        return self._ctx is not None

    @property
    def stop_event(self) -> threading.Event | None:
        """The event set on stop, or None while not running."""
        return self._ctx

    def start(self) -> None:
        """Start with no extra start procedure."""
        self.start_func(lambda: None)

    def stop(self) -> None:
        """Stop and wait for all workers."""
        self.stop_func(lambda: None)

    def start_func(self, start_procedure: Callable[[], None]) -> None:
        """Start and run ``start_procedure``; stop again if it raises.

        Does nothing when already running.
        """
        with self._lock:
            if self._ctx is not None:
                return
            self._ctx = threading.Event()
            try:
                start_procedure()
            except BaseException:
                self._do_stop(lambda: None)
                raise

    def stop_func(self, callable: Callable[[], None]) -> None:
        """Signal stop, run ``callable``, then wait for all workers.

        Does nothing when not running.
        """
        with self._lock:
            self._do_stop(callable)

    def go(self, target: Callable[[threading.Event], None]) -> None:
        """Run ``target(stop_event)`` in a worker thread while running."""
        with self._threads_lock:
            ctx = self._ctx
            if ctx is None:
                return
            thread = threading.Thread(target=target, args=(ctx,), daemon=True)
            self._threads.append(thread)
            thread.start()

    def _do_stop(self, callable: Callable[[], None]) -> None:
        ctx = self._ctx
        if ctx is None:
            return
        ctx.set()
        callable()
        current = threading.current_thread()
        while True:
            with self._threads_lock:
                if not self._threads:
                    self._ctx = None
                    return
                thread = self._threads.pop()
            if thread is not current:
                thread.join()