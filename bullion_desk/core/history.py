"""
Bullion Desk - Price History Store
Append-only, time-windowed ledger of price samples per instrument.
"""
import bisect
import threading
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from bullion_desk.core.config import HISTORY_WINDOW_DAYS, HistorySample


class HistoryStore:
    """Rolling window of HistorySample per instrument, oldest first.

    Samples are inserted in timestamp order (a clock stepping backwards lands
    mid-sequence), so pruning only ever drops a prefix. Every supported instrument is
    initialised empty; an unknown instrument raises KeyError.
    """

    def __init__(self, instruments: Iterable[str], window: timedelta = timedelta(days=HISTORY_WINDOW_DAYS)):
        self.window = window
        self._samples: Dict[str, List[HistorySample]] = {name: [] for name in instruments}
        self._lock = threading.Lock()

    def append(self, instrument: str, price: float, now: datetime) -> HistorySample:
        sample = HistorySample(price=price, timestamp=now)
        cutoff = now - self.window
        with self._lock:
            samples = self._samples[instrument]
            bisect.insort(samples, sample, key=lambda s: s.timestamp)
            keep_from = 0
            while keep_from < len(samples) and samples[keep_from].timestamp < cutoff:
                keep_from += 1
            if keep_from:
                self._samples[instrument] = samples[keep_from:]
        return sample

    def samples(self, instrument: str) -> List[HistorySample]:
        return list(self._samples[instrument])

    def recent(self, instrument: str, n: int) -> List[HistorySample]:
        """Most recent `n` samples, still oldest first."""
        if n <= 0:
            return []
        return list(self._samples[instrument][-n:])

    def oldest(self, instrument: str) -> Optional[HistorySample]:
        samples = self._samples[instrument]
        return samples[0] if samples else None

    def newest(self, instrument: str) -> Optional[HistorySample]:
        samples = self._samples[instrument]
        return samples[-1] if samples else None

    def count(self, instrument: str) -> int:
        return len(self._samples[instrument])

    @property
    def instruments(self) -> List[str]:
        return list(self._samples)
