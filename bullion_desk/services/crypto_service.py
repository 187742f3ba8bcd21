"""
Bullion Desk - Crypto Market Service
Top coins by market cap and single-coin lookups via CoinGecko (EUR).
"""
from typing import List, Optional, Tuple

from bullion_desk.core.cache import CryptoCache, MarketState
from bullion_desk.core.config import (
    CG_HEADERS, COINGECKO_MARKETS_URL, COINGECKO_SIMPLE_PRICE_URL, CRYPTO_TOP_N, CryptoQuote,
)
from bullion_desk.core.http_client import resilient_get
from bullion_desk.core.logger import logger


def _to_crypto_quote(c: dict) -> CryptoQuote:
    return CryptoQuote(
        id=c["id"],
        symbol=(c.get("symbol") or "???").upper(),
        name=c.get("name", ""),
        price=c.get("current_price", 0) or 0,
        change_24h=c.get("price_change_24h"),
        change_percent_24h=c.get("price_change_percentage_24h"),
        market_cap=c.get("market_cap"),
        image=c.get("image"),
    )


def fetch_top_coins(limit: int = CRYPTO_TOP_N) -> Optional[List[CryptoQuote]]:
    """Top `limit` coins, descending market cap. None on any HTTP or parse failure."""
    try:
        resp = resilient_get(COINGECKO_MARKETS_URL.format(limit=limit), headers=CG_HEADERS)
        if resp.status_code != 200:
            logger.warning(f"[Crypto] Markets returned HTTP {resp.status_code}")
            return None
        coins = [_to_crypto_quote(c) for c in resp.json()[:limit]]
    except Exception as e:
        logger.error(f"[Crypto] Markets error: {e}")
        return None
    coins.sort(key=lambda q: q.market_cap or 0, reverse=True)
    return coins


def fetch_coin_price(coin_id: str) -> Tuple[Optional[float], Optional[float]]:
    """Price and 24h percent change for any coin id, or (None, None)."""
    try:
        resp = resilient_get(COINGECKO_SIMPLE_PRICE_URL.format(coin_id=coin_id), timeout=5, headers=CG_HEADERS)
        resp.raise_for_status()
        data = resp.json()
        if coin_id in data and data[coin_id].get("eur") is not None:
            return data[coin_id]["eur"], data[coin_id].get("eur_24h_change")
    except Exception as e:
        logger.warning(f"[CoinGecko] Failed to fetch {coin_id}: {e}")
    return None, None


def refresh_crypto(state: MarketState) -> CryptoCache:
    """Replace the crypto cache; a failed fetch keeps the previous one."""
    coins = fetch_top_coins()
    if coins is None:
        logger.warning("[Crypto] Refresh failed, keeping previous cache")
        return state.crypto
    state.crypto = CryptoCache(
        top=coins,
        prices={q.id: q for q in coins},
        last_update=state.now(),
    )
    logger.info(f"[Crypto] Refreshed: {len(coins)} coins")
    return state.crypto
