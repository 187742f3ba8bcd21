"""
Bullion Desk - Advice Service
Deterministic BUY/HOLD/SELL heuristic over the current quote and the history window.
"""
from typing import List, Optional

from bullion_desk.core.cache import PriceCache
from bullion_desk.core.config import Advice
from bullion_desk.core.history import HistoryStore

INSUFFICIENT_DATA = "Insufficient data for analysis"
SAFE_HAVEN_REMARK = "Global uncertainty: Precious metals as safe haven"

MOMENTUM_THRESHOLD = 2.0      # 24h change, percent
WEEKLY_THRESHOLD = 5.0        # history window change, percent
RATIO_UNDERVALUED = 85.0      # Au/Ag
RATIO_EXPENSIVE = 70.0
MAX_CONFIDENCE = 80
HOLD_CONFIDENCE = 60


def _signed(value: float) -> str:
    return f"{'+' if value > 0 else ''}{value:.2f}"


def _score_momentum(change_pct: Optional[float], reasons: List[str]) -> int:
    if change_pct is None:
        return 0
    if change_pct < -MOMENTUM_THRESHOLD:
        reasons.append(f"24h: -{abs(change_pct):.2f}% (potential buy opportunity)")
        return 2
    if change_pct > MOMENTUM_THRESHOLD:
        reasons.append(f"24h: +{change_pct:.2f}% (consider taking profits)")
        return -1
    reasons.append(f"24h: {_signed(change_pct)}% (stable)")
    return 0


def _score_weekly(oldest: float, newest: float, reasons: List[str]) -> int:
    weekly_change = (newest - oldest) / oldest * 100
    if weekly_change < -WEEKLY_THRESHOLD:
        reasons.append(f"Week trend: -{abs(weekly_change):.2f}% (accumulation zone)")
        return 2
    if weekly_change > WEEKLY_THRESHOLD:
        reasons.append(f"Week trend: +{weekly_change:.2f}% (extended rally)")
        return -1
    reasons.append(f"Week trend: {_signed(weekly_change)}% (consolidating)")
    return 0


def _score_gold_silver_ratio(gold_price: float, silver_price: float, reasons: List[str]) -> int:
    ratio = gold_price / silver_price
    if ratio > RATIO_UNDERVALUED:
        reasons.append(f"Au/Ag ratio: {ratio:.1f} (silver undervalued historically)")
        return 1
    if ratio < RATIO_EXPENSIVE:
        reasons.append(f"Au/Ag ratio: {ratio:.1f} (silver relatively expensive)")
        return -1
    reasons.append(f"Au/Ag ratio: {ratio:.1f} (normal range)")
    return 0


def score_to_advice(score: int, reasons: List[str]) -> Advice:
    """Map an integer score onto a recommendation; monotonic in score."""
    if score >= 2:
        return Advice(recommendation="BUY", confidence=min(MAX_CONFIDENCE, 50 + score * 10), reasons=reasons)
    if score <= -2:
        return Advice(recommendation="SELL", confidence=min(MAX_CONFIDENCE, 50 + abs(score) * 10), reasons=reasons)
    return Advice(recommendation="HOLD", confidence=HOLD_CONFIDENCE, reasons=reasons)


def calculate_advice(instrument: str, prices: PriceCache, history: HistoryStore) -> Advice:
    """Score recent price movement for `instrument`. Pure: reads caches, mutates nothing."""
    quote = prices.quote(instrument)
    if quote is None or history.count(instrument) < 2:
        return Advice(recommendation="HOLD", confidence=50, reasons=[INSUFFICIENT_DATA])

    reasons: List[str] = []
    score = _score_momentum(quote.change_percent_24h, reasons)
    oldest = history.oldest(instrument).price
    if oldest > 0:
        score += _score_weekly(oldest, history.newest(instrument).price, reasons)

    if instrument == "silver" and quote.price > 0 and prices.gold is not None and prices.gold.price:
        score += _score_gold_silver_ratio(prices.gold.price, quote.price, reasons)

    reasons.append(SAFE_HAVEN_REMARK)
    return score_to_advice(score, reasons)
