from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol

Callback = Callable[[], None]


class Clock(Protocol):
    def after(self, delay_ms: float, callback: Callback) -> object:
        ...

    def every_second(self, callback: Callback) -> object:
        ...

    def cancel(self, token: object) -> None:
        """Cancelling twice, or cancelling a timer that already fired, is a no-op."""
        ...


# ----- virtual time -----

@dataclass
class ManualTimer:
    seq: int
    due_ms: float
    callback: Callback = field(repr=False)
    interval_ms: Optional[float] = None
    cancelled: bool = False


class ManualClock:
    """
    Clock driven by advance(ms). Timers fire synchronously, in due-time order
    (ties by scheduling order), on the calling thread.
    """

    def __init__(self) -> None:
        self.now_ms: float = 0.0
        self._timers: List[ManualTimer] = []
        self._seq = itertools.count()

    def after(self, delay_ms: float, callback: Callback) -> ManualTimer:
        timer = ManualTimer(seq=next(self._seq), due_ms=self.now_ms + max(0.0, delay_ms), callback=callback)
        self._timers.append(timer)
        return timer

    def every_second(self, callback: Callback) -> ManualTimer:
        timer = ManualTimer(seq=next(self._seq), due_ms=self.now_ms + 1000.0, callback=callback, interval_ms=1000.0)
        self._timers.append(timer)
        return timer

    def cancel(self, token: object) -> None:
        if not isinstance(token, ManualTimer) or token.cancelled:
            return
        token.cancelled = True
        if token in self._timers:
            self._timers.remove(token)

    def pending(self) -> int:
        return len(self._timers)

    def advance(self, ms: float) -> None:
        target = self.now_ms + ms
        while True:
            due = [t for t in self._timers if t.due_ms <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due_ms, t.seq))
            self.now_ms = timer.due_ms
            if timer.interval_ms is None:
                self._timers.remove(timer)
                timer.cancelled = True
            else:
                timer.due_ms += timer.interval_ms
            timer.callback()
        self.now_ms = target


# ----- real time -----

class _Ticker(threading.Thread):
    def __init__(self, callback: Callback):
        super().__init__(daemon=True)
        self._callback = callback
        self._stopped = threading.Event()

    def run(self) -> None:
        while not self._stopped.wait(1.0):
            self._callback()

    def cancel(self) -> None:
        self._stopped.set()


class ThreadingClock:
    """
    Wall-clock timers on daemon threads. Callbacks run on those threads, so
    whatever they touch must be guarded by its own lock.
    """

    def after(self, delay_ms: float, callback: Callback) -> threading.Timer:
        timer = threading.Timer(max(0.0, delay_ms) / 1000.0, callback)
        timer.daemon = True
        timer.start()
        return timer

    def every_second(self, callback: Callback) -> _Ticker:
        ticker = _Ticker(callback)
        ticker.start()
        return ticker

    def cancel(self, token: object) -> None:
        # Timer.cancel and _Ticker.cancel are both idempotent
        if isinstance(token, (threading.Timer, _Ticker)):
            token.cancel()
