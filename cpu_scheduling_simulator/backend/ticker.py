"""
Clock abstractions that drive a SimulationEngine.

The engine only knows the ``Ticker`` interface, so it can be stepped by a
Qt timer, a blocking terminal loop, or by hand in tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional
import time


TickCallback = Callable[[], None]


class Ticker(ABC):
    """Abstract base class for periodic tick sources."""

    @abstractmethod
    def start(self, interval_ms: int, callback: TickCallback) -> None:
        """Begin invoking ``callback`` every ``interval_ms`` milliseconds."""
        pass

    @abstractmethod
    def stop(self) -> None:
        pass

    @property
    @abstractmethod
    def active(self) -> bool:
        pass


class ManualTicker(Ticker):
    """Ticker that only fires when told to. Used by tests and headless runs."""

    def __init__(self) -> None:
        self.interval_ms: Optional[int] = None
        self._callback: Optional[TickCallback] = None

    def start(self, interval_ms: int, callback: TickCallback) -> None:
        self.interval_ms = interval_ms
        self._callback = callback

    def stop(self) -> None:
        self._callback = None

    @property
    def active(self) -> bool:
        return self._callback is not None

    def fire(self, times: int = 1) -> int:
        """Invoke the callback up to ``times`` times; returns how many ticks fired."""
        fired = 0
        for _ in range(times):
            if self._callback is None:
                break
            self._callback()
            fired += 1
        return fired


class BlockingTicker(Ticker):
    """Runs the callback in a loop on the calling thread until stopped.

    ``start`` returns only once the callback (or something it calls) has
    stopped the ticker, or after ``max_ticks`` ticks.
    """

    def __init__(self, sleep: Callable[[float], None] = time.sleep, max_ticks: Optional[int] = None) -> None:
        self._sleep = sleep
        self._active = False
        self.max_ticks = max_ticks

    def start(self, interval_ms: int, callback: TickCallback) -> None:
        self._active = True
        ticks = 0
        while self._active:
            self._sleep(interval_ms / 1000.0)
            callback()
            ticks += 1
            if self.max_ticks is not None and ticks >= self.max_ticks:
                self._active = False

    def stop(self) -> None:
        self._active = False

    @property
    def active(self) -> bool:
        return self._active
