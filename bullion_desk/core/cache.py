"""
Bullion Desk - Cache Manager
In-memory caches with TTL awareness, owned by an injectable MarketState.
"""
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from bullion_desk.core.config import (
    INSTRUMENTS, RANDOM_SEED, CryptoQuote, NewsItem, PriceQuote,
)
from bullion_desk.core.history import HistoryStore

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# Caches are replaced wholesale by their refresh routine, never mutated in place.
@dataclass(frozen=True)
class PriceCache:
    gold: Optional[PriceQuote] = None
    silver: Optional[PriceQuote] = None
    last_update: Optional[datetime] = None

    def quote(self, instrument: str) -> Optional[PriceQuote]:
        return getattr(self, instrument)


@dataclass(frozen=True)
class NewsCache:
    items: Dict[str, List[NewsItem]] = field(default_factory=dict)
    last_update: Optional[datetime] = None

    def for_instrument(self, instrument: str, limit: int) -> List[NewsItem]:
        return list(self.items.get(instrument, [])[:limit])


@dataclass(frozen=True)
class CryptoCache:
    top: List[CryptoQuote] = field(default_factory=list)   # descending market cap
    prices: Dict[str, CryptoQuote] = field(default_factory=dict)  # coin id -> quote
    last_update: Optional[datetime] = None


class MarketState:
    """Process-wide market data, passed explicitly to services and routes."""

    def __init__(self, clock: Clock = utc_now, rng: Optional[random.Random] = None,
                 history: Optional[HistoryStore] = None):
        self.clock = clock
        self.rng = rng if rng is not None else random.Random(RANDOM_SEED)
        self.history = history if history is not None else HistoryStore(INSTRUMENTS)
        self.prices = PriceCache()
        self.news = NewsCache()
        self.crypto = CryptoCache()

    def now(self) -> datetime:
        return self.clock()


def is_stale(last_update: Optional[datetime], now: datetime, ttl_seconds: float) -> bool:
    """A never-populated cache is infinitely stale."""
    if last_update is None:
        return True
    return (now - last_update).total_seconds() > ttl_seconds


def build_api_meta(last_update: Optional[datetime], now: datetime, ttl_seconds: float,
                   sources: list = None) -> dict:
    """Build standardized _meta dict from cache state for API responses."""
    age_s = round((now - last_update).total_seconds()) if last_update else -1
    return {
        "sources": sources or [],
        "fetched_at_utc": last_update.strftime("%Y-%m-%dT%H:%M:%SZ") if last_update else None,
        "age_seconds": age_s,
        "is_stale": is_stale(last_update, now, ttl_seconds),
    }
