"""Unit tests for the BUY/HOLD/SELL scoring engine."""
from datetime import timedelta

import pytest

from bullion_desk.core.cache import PriceCache
from bullion_desk.core.config import PriceQuote
from bullion_desk.core.history import HistoryStore
from bullion_desk.services.advice_service import (
    INSUFFICIENT_DATA, SAFE_HAVEN_REMARK, calculate_advice, score_to_advice,
)

from conftest import T0


def quote(price, change_pct=0.0):
    return PriceQuote(price=price, price_per_gram=price / 31.1035, change_24h=0.0, change_percent_24h=change_pct)


def history_with(instrument, *prices):
    store = HistoryStore(["gold", "silver"])
    for i, p in enumerate(prices):
        store.append(instrument, p, T0 + timedelta(hours=i))
    return store


# ── Degenerate inputs ────────────────────────────────────────────────────


class TestInsufficientData:

    def test_no_quote(self):
        advice = calculate_advice("gold", PriceCache(), history_with("gold", 100.0, 101.0))
        assert advice.recommendation == "HOLD"
        assert advice.confidence == 50
        assert advice.reasons == [INSUFFICIENT_DATA]

    @pytest.mark.parametrize("samples", [(), (2500.0,)])
    def test_fewer_than_two_samples(self, samples):
        prices = PriceCache(gold=quote(2500.0, -10.0))
        advice = calculate_advice("gold", prices, history_with("gold", *samples))
        assert (advice.recommendation, advice.confidence, advice.reasons) == ("HOLD", 50, [INSUFFICIENT_DATA])


# ── Scenarios ────────────────────────────────────────────────────────────


class TestScenarios:

    def test_gold_dip_in_downtrend_is_buy(self):
        prices = PriceCache(gold=quote(94.0, -3.0))
        advice = calculate_advice("gold", prices, history_with("gold", 100.0, 94.0))
        assert advice.recommendation == "BUY"
        assert advice.confidence == 80
        assert advice.reasons == [
            "24h: -3.00% (potential buy opportunity)",
            "Week trend: -6.00% (accumulation zone)",
            SAFE_HAVEN_REMARK,
        ]

    def test_silver_rally_with_high_ratio_is_hold(self):
        prices = PriceCache(gold=quote(2862.0), silver=quote(31.8, 3.0))
        advice = calculate_advice("silver", prices, history_with("silver", 30.0, 31.8))
        assert advice.recommendation == "HOLD"
        assert advice.confidence == 60
        assert advice.reasons == [
            "24h: +3.00% (consider taking profits)",
            "Week trend: +6.00% (extended rally)",
            "Au/Ag ratio: 90.0 (silver undervalued historically)",
            SAFE_HAVEN_REMARK,
        ]

    def test_flat_gold_is_hold(self):
        prices = PriceCache(gold=quote(2500.0, 0.0))
        advice = calculate_advice("gold", prices, history_with("gold", 2500.0, 2500.0))
        assert advice.recommendation == "HOLD"
        assert advice.confidence == 60
        assert advice.reasons == [
            "24h: 0.00% (stable)",
            "Week trend: 0.00% (consolidating)",
            SAFE_HAVEN_REMARK,
        ]


# ── Individual rules ─────────────────────────────────────────────────────


class TestRules:

    def test_small_positive_moves_are_signed(self):
        prices = PriceCache(gold=quote(2510.0, 1.5))
        advice = calculate_advice("gold", prices, history_with("gold", 2500.0, 2510.0))
        assert advice.reasons[0] == "24h: +1.50% (stable)"
        assert advice.reasons[1] == "Week trend: +0.40% (consolidating)"

    def test_small_negative_moves_keep_sign(self):
        prices = PriceCache(gold=quote(2490.0, -1.25))
        advice = calculate_advice("gold", prices, history_with("gold", 2500.0, 2490.0))
        assert advice.reasons[0] == "24h: -1.25% (stable)"
        assert advice.reasons[1] == "Week trend: -0.40% (consolidating)"

    def test_missing_24h_change_skips_momentum_line(self):
        prices = PriceCache(gold=PriceQuote(price=2500.0, price_per_gram=80.0))
        advice = calculate_advice("gold", prices, history_with("gold", 2500.0, 2500.0))
        assert advice.reasons == ["Week trend: 0.00% (consolidating)", SAFE_HAVEN_REMARK]

    def test_weekly_trend_uses_oldest_and_newest_only(self):
        prices = PriceCache(gold=quote(2500.0, 0.0))
        advice = calculate_advice("gold", prices, history_with("gold", 2000.0, 3000.0, 2000.0))
        assert advice.reasons[1] == "Week trend: 0.00% (consolidating)"

    def test_gold_never_uses_ratio(self):
        prices = PriceCache(gold=quote(3000.0, 0.0), silver=quote(20.0, 0.0))
        advice = calculate_advice("gold", prices, history_with("gold", 3000.0, 3000.0))
        assert not any(r.startswith("Au/Ag") for r in advice.reasons)

    def test_silver_without_gold_skips_ratio(self):
        prices = PriceCache(silver=quote(30.0, 0.0))
        advice = calculate_advice("silver", prices, history_with("silver", 30.0, 30.0))
        assert not any(r.startswith("Au/Ag") for r in advice.reasons)

    def test_zero_oldest_sample_skips_weekly_trend(self):
        prices = PriceCache(gold=quote(2500.0, 0.0))
        advice = calculate_advice("gold", prices, history_with("gold", 0.0, 2500.0))
        assert advice.recommendation == "HOLD"
        assert not any(r.startswith("Week trend") for r in advice.reasons)
        assert advice.reasons[-1] == SAFE_HAVEN_REMARK

    def test_zero_silver_price_skips_ratio(self):
        prices = PriceCache(gold=quote(2500.0, 0.0), silver=quote(0.0, 0.0))
        advice = calculate_advice("silver", prices, history_with("silver", 30.0, 30.0))
        assert not any(r.startswith("Au/Ag") for r in advice.reasons)

    @pytest.mark.parametrize("gold_price, expected", [
        (2700.0, "Au/Ag ratio: 90.0 (silver undervalued historically)"),
        (2400.0, "Au/Ag ratio: 80.0 (normal range)"),
        (1800.0, "Au/Ag ratio: 60.0 (silver relatively expensive)"),
    ])
    def test_ratio_bands(self, gold_price, expected):
        prices = PriceCache(gold=quote(gold_price), silver=quote(30.0, 0.0))
        advice = calculate_advice("silver", prices, history_with("silver", 30.0, 30.0))
        assert advice.reasons[2] == expected

    def test_silver_sell_signal(self):
        # rally (-1) + extended week (-1) + expensive ratio (-1) = -3
        prices = PriceCache(gold=quote(1890.0), silver=quote(31.5, 4.0))
        advice = calculate_advice("silver", prices, history_with("silver", 29.0, 31.5))
        assert advice.recommendation == "SELL"
        assert advice.confidence == 80

    def test_is_idempotent(self):
        prices = PriceCache(gold=quote(2800.0), silver=quote(31.0, -2.5))
        store = history_with("silver", 34.0, 31.0)
        first = calculate_advice("silver", prices, store)
        second = calculate_advice("silver", prices, store)
        assert first == second
        assert store.count("silver") == 2


class TestScoreMapping:

    @pytest.mark.parametrize("score, recommendation, confidence", [
        (5, "BUY", 80), (3, "BUY", 80), (2, "BUY", 70),
        (1, "HOLD", 60), (0, "HOLD", 60), (-1, "HOLD", 60),
        (-2, "SELL", 70), (-3, "SELL", 80),
    ])
    def test_mapping(self, score, recommendation, confidence):
        advice = score_to_advice(score, [])
        assert (advice.recommendation, advice.confidence) == (recommendation, confidence)

    def test_monotonic(self):
        rank = {"SELL": 0, "HOLD": 1, "BUY": 2}
        ranks = [rank[score_to_advice(s, []).recommendation] for s in range(-6, 7)]
        assert ranks == sorted(ranks)
