# coding: utf-8
"""TTL memoization and request coalescing for monthly P&L summaries.

AggregationCache sits in front of a DailyPLAggregator, keyed by
(portfolio_id, year, month).  Cached summaries expire lazily on read once
their TTL lapses; expired entries are also swept whenever a new entry is
stored.

Concurrent callers asking for the same uncached key share one computation: the
first caller computes while the others wait on a Future for its result.
Callers asking for different keys never wait on each other; the lock only
guards the bookkeeping, never a computation.

Callers that just wrote new transactions call invalidate() to drop the
affected keys.  A computation already in flight for an invalidated key still
answers its waiters, but its result isn't cached.
"""

__all__ = ["AggregationCache"]


# stdlib imports
from concurrent.futures import Future
import datetime as _datetime
import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Set, Tuple


# local imports
from costbasis.config import CONFIG
from costbasis.daily import DailyPLRecord, MonthlyPLSummary, combine
from costbasis import utils


Key = Tuple[object, int, int]


class AggregationCache:
    """Caching front end for DailyPLAggregator.

    Args:
        aggregator: object with a monthly(portfolio_id, year, month) method,
                    normally a daily.DailyPLAggregator.
        ttl: seconds a summary stays fresh.  By default, the configured
             [cache] ttl_seconds.
        clock: monotonic time source in seconds; injectable for tests.
    """

    def __init__(
        self,
        aggregator,
        *,
        ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.aggregator = aggregator
        self.ttl = CONFIG.cache_ttl if ttl is None else float(ttl)
        self.clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[Key, Tuple[float, MonthlyPLSummary]] = {}
        self._inflight: Dict[Key, Future] = {}
        self._stale: Set[Key] = set()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def monthly(self, portfolio_id, year: int, month: int) -> MonthlyPLSummary:
        """Cached DailyPLAggregator.monthly().

        Raises:
            Whatever the aggregator raises; failures are never cached.
        """
        key = (portfolio_id, year, month)
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                expires, summary = entry
                if self.clock() < expires:
                    return summary
                del self._entries[key]

            future = self._inflight.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._inflight[key] = future

        if not leader:
            return future.result()

        try:
            summary = self.aggregator.monthly(portfolio_id, year, month)
        except BaseException as err:
            with self._lock:
                del self._inflight[key]
                self._stale.discard(key)
            future.set_exception(err)
            raise

        with self._lock:
            del self._inflight[key]
            if key in self._stale:
                self._stale.discard(key)
                logging.debug("Not caching invalidated P&L summary %s", key)
            else:
                now = self.clock()
                self._sweep(now)
                self._entries[key] = (now + self.ttl, summary)
        future.set_result(summary)
        return summary

    def day(self, portfolio_id, date: _datetime.date) -> DailyPLRecord:
        return self.monthly(portfolio_id, date.year, date.month).day(date)

    def trend(
        self, portfolio_id, start: Tuple[int, int], end: Tuple[int, int]
    ) -> List[MonthlyPLSummary]:
        return [
            self.monthly(portfolio_id, year, month)
            for year, month in utils.iter_months(start, end)
        ]

    def combined(self, portfolio_ids, year: int, month: int) -> MonthlyPLSummary:
        return combine(
            [self.monthly(pid, year, month) for pid in portfolio_ids],
            threshold=getattr(self.aggregator, "threshold", None),
            year=year,
            month=month,
        )

    def invalidate(
        self,
        portfolio_id=None,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> int:
        """Drop cached summaries.

        With no args, flush everything; otherwise drop the keys matching every
        arg given, e.g. invalidate(pid) for a whole portfolio or
        invalidate(pid, 2024, 3) for one month.

        Returns:
            Number of cached entries dropped.
        """

        def matches(key: Key) -> bool:
            pid, y, m = key
            return (
                (portfolio_id is None or pid == portfolio_id)
                and (year is None or y == year)
                and (month is None or m == month)
            )

        with self._lock:
            dropped = [key for key in self._entries if matches(key)]
            for key in dropped:
                del self._entries[key]
            self._stale.update(key for key in self._inflight if matches(key))
        return len(dropped)

    def clear(self) -> int:
        return self.invalidate()

    def _sweep(self, now: float) -> None:
        """Remove expired entries.  Caller must hold the lock."""
        expired = [key for key, (expires, _) in self._entries.items() if expires <= now]
        for key in expired:
            del self._entries[key]
