"""
File: stopwatch.py

Description: Minimal monotonic timing helper used by the optimizers to
enforce their computation-time budget and to report elapsed times.
"""
import time


class Stopwatch:
    """
    Wall-clock timer based on ``time.perf_counter``.

    Any object exposing the same ``tick`` / ``tock`` pair can be passed to an
    optimizer in place of this class (e.g. a fake clock in tests).

    Example
    -------
    >>> start = Stopwatch.tick()
    >>> elapsed = Stopwatch.tock(start)
    """

    @staticmethod
    def tick() -> float:
        """Return a start token."""
        return time.perf_counter()

    @staticmethod
    def tock(start: float) -> float:
        """Return the number of seconds elapsed since *start*."""
        return time.perf_counter() - start
