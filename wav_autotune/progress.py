"""Progress sinks. The pipeline pushes fractions in [0, 1]; frame processing never waits on a sink."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from tqdm import tqdm

LOG = logging.getLogger(__name__)

ProgressSink = Callable[[float], None]


class ProgressGate:
    """Wraps a sink: clamps to [0, 1], drops regressions, contains sink errors.

    Calls return at once; a daemon thread hands the sink only the most recent
    fraction, so a slow sink sees fewer updates instead of slowing the run.
    `close()` delivers the last pending value and stops the thread.
    """

    def __init__(self, sink: Optional[ProgressSink]):
        self.sink = sink
        self.last = 0.0
        self._lock = threading.Lock()
        self._wake = threading.Event()
        self._pending: float | None = None
        self._closed = False
        self._thread: threading.Thread | None = None
        if sink is not None:
            self._thread = threading.Thread(target=self._deliver, name="progress-sink", daemon=True)
            self._thread.start()

    def __call__(self, fraction: float) -> None:
        fraction = min(max(float(fraction), 0.0), 1.0)
        with self._lock:
            if self._closed or fraction < self.last:
                return
            self.last = fraction
            if self._thread is None:
                return
            self._pending = fraction
        self._wake.set()

    def _deliver(self) -> None:
        sink_failed = False
        while True:
            self._wake.wait()
            with self._lock:
                self._wake.clear()
                fraction, self._pending = self._pending, None
                closed = self._closed
            if fraction is not None and not sink_failed:
                try:
                    self.sink(fraction)
                except Exception:
                    sink_failed = True
                    LOG.exception("Progress sink failed; further progress updates are dropped")
            if closed:
                return

    def close(self, timeout: float | None = None) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._wake.set()
        if self._thread is not None:
            self._thread.join(timeout)

    def __enter__(self) -> "ProgressGate":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class LatestProgress:
    """Holds the most recent fraction for a polling front end (e.g. a UI thread)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0.0
        self.finished = threading.Event()

    def __call__(self, fraction: float) -> None:
        with self._lock:
            self._value = fraction

    @property
    def value(self) -> float:
        with self._lock:
            return self._value

    def mark_finished(self) -> None:
        self.finished.set()


class TqdmProgress:
    """Terminal progress bar fed with fractions."""

    def __init__(self, desc: str = "Autotune", total: int = 100, disable: bool = False):
        self.total = total
        self.bar = tqdm(total=total, desc=desc, unit="%", disable=disable, leave=False)

    def __call__(self, fraction: float) -> None:
        target = int(round(fraction * self.total))
        if target > self.bar.n:
            self.bar.update(target - self.bar.n)

    def close(self) -> None:
        self.bar.close()

    def __enter__(self) -> "TqdmProgress":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
