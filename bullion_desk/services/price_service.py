"""
Bullion Desk - Precious Metals Price Service
goldapi.io (primary) → frankfurter FX + synthetic USD spot (free tier) → static quotes.
"""
import random
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Optional

from bullion_desk.core import config
from bullion_desk.core.cache import MarketState, PriceCache
from bullion_desk.core.config import (
    DEFAULT_USD_EUR_RATE, FX_RATE_URL, GOLDAPI_SYMBOLS, GOLDAPI_URL, INSTRUMENTS,
    STATIC_QUOTES, SYNTHETIC_USD_PRICES, TROY_OUNCE_GRAMS, PriceQuote,
)
from bullion_desk.core.http_client import resilient_get
from bullion_desk.core.logger import logger

Quotes = Dict[str, PriceQuote]


def per_gram(price_per_ounce: float) -> float:
    return price_per_ounce / TROY_OUNCE_GRAMS


def _fetch_goldapi_quote(instrument: str, api_key: str) -> Optional[PriceQuote]:
    url = GOLDAPI_URL.format(symbol=GOLDAPI_SYMBOLS[instrument])
    resp = resilient_get(url, headers={"x-access-token": api_key})
    if resp.status_code != 200:
        logger.warning(f"[GoldAPI] {instrument} returned HTTP {resp.status_code}")
        return None
    data = resp.json()
    price = float(data["price"])
    if price <= 0:
        logger.warning(f"[GoldAPI] {instrument} returned non-positive price {price}")
        return None
    return PriceQuote(
        price=price,
        price_per_gram=per_gram(price),
        change_24h=data.get("ch"),
        change_percent_24h=data.get("chp"),
    )


def fetch_goldapi_prices(api_key: Optional[str] = None) -> Optional[Quotes]:
    """Primary tier: gold and silver in parallel. None if unconfigured or either call fails."""
    api_key = config.GOLD_API_KEY if api_key is None else api_key
    if not api_key:
        return None
    try:
        with ThreadPoolExecutor(max_workers=len(INSTRUMENTS)) as pool:
            futures = {name: pool.submit(_fetch_goldapi_quote, name, api_key) for name in INSTRUMENTS}
            quotes = {name: future.result() for name, future in futures.items()}
    except Exception as e:
        logger.error(f"[GoldAPI] Error: {e}")
        return None
    if any(quote is None for quote in quotes.values()):
        return None
    return quotes


def fetch_usd_eur_rate() -> float:
    """USD→EUR from frankfurter; any failure or malformed payload yields the default rate."""
    try:
        resp = resilient_get(FX_RATE_URL)
        resp.raise_for_status()
        rate = resp.json().get("rates", {}).get("EUR")
        if isinstance(rate, (int, float)) and rate > 0:
            return float(rate)
        logger.warning(f"[FX] Malformed USD/EUR payload, using default {DEFAULT_USD_EUR_RATE}")
    except Exception as e:
        logger.warning(f"[FX] USD/EUR fetch failed ({e}), using default {DEFAULT_USD_EUR_RATE}")
    return DEFAULT_USD_EUR_RATE


def static_prices() -> Quotes:
    return {name: PriceQuote(**STATIC_QUOTES[name]) for name in INSTRUMENTS}


def synthesize_quotes(rng: random.Random, eur_rate: float) -> Quotes:
    """Approximate spot around fixed USD levels with bounded jitter, converted to EUR."""
    quotes = {}
    for name in INSTRUMENTS:
        params = SYNTHETIC_USD_PRICES[name]
        usd = params["base"] + rng.uniform(-params["jitter"], params["jitter"])
        change_usd = rng.uniform(-params["change"], params["change"])
        eur = usd * eur_rate
        quotes[name] = PriceQuote(
            price=eur,
            price_per_gram=per_gram(eur),
            change_24h=change_usd * eur_rate,
            change_percent_24h=change_usd / usd * 100,
        )
    return quotes


def fetch_free_prices(rng: random.Random) -> Quotes:
    """Free tier. Never fails: degrades to static quotes if synthesis itself breaks."""
    try:
        return synthesize_quotes(rng, fetch_usd_eur_rate())
    except Exception as e:
        logger.error(f"[Prices] Free tier error: {e}, serving static quotes")
        return static_prices()


def refresh_prices(state: MarketState) -> PriceCache:
    """Run the fallback chain, append history for both metals and replace the price cache."""
    prices = fetch_goldapi_prices()
    if prices is None:
        logger.info("[Prices] Falling back to free tier...")
        prices = fetch_free_prices(state.rng)

    now = state.now()
    for name in INSTRUMENTS:
        state.history.append(name, prices[name].price, now)
    state.prices = PriceCache(gold=prices["gold"], silver=prices["silver"], last_update=now)
    logger.info(
        f"[Prices] Updated: Gold €{state.prices.gold.price:.2f}, Silver €{state.prices.silver.price:.2f}"
    )
    return state.prices
