"""
Bullion Desk - Data API Routes
Dashboard, crypto lookups, manual refresh and health.
"""
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from bullion_desk.core.cache import MarketState, build_api_meta, is_stale
from bullion_desk.core.config import (
    CRYPTO_CACHE_TTL, HISTORY_RESPONSE_POINTS, INSTRUMENTS, NEWS_CACHE_TTL,
    NEWS_RESPONSE_ITEMS, PRICE_CACHE_TTL,
)
from bullion_desk.core.http_client import get_api_health
from bullion_desk.services.advice_service import calculate_advice
from bullion_desk.services.crypto_service import fetch_coin_price, refresh_crypto
from bullion_desk.services.news_service import refresh_news
from bullion_desk.services.price_service import refresh_prices

router = APIRouter()


def _state(request: Request) -> MarketState:
    return request.app.state.market


def _iso(value) -> Optional[str]:
    return value.strftime("%Y-%m-%dT%H:%M:%SZ") if value else None


def _quote_json(quote):
    return quote.to_json() if quote is not None else None


def refresh_if_stale(state: MarketState) -> list:
    """Synchronously refresh every stale cache before answering. Returns what was refreshed."""
    now = state.now()
    refreshed = []
    if is_stale(state.prices.last_update, now, PRICE_CACHE_TTL):
        refresh_prices(state)
        refreshed.append("prices")
    if is_stale(state.news.last_update, now, NEWS_CACHE_TTL):
        refresh_news(state)
        refreshed.append("news")
    if is_stale(state.crypto.last_update, now, CRYPTO_CACHE_TTL):
        refresh_crypto(state)
        refreshed.append("crypto")
    return refreshed


@router.get("/health")
async def health_check(request: Request):
    return {"status": "ok", "timestamp": _iso(_state(request).now())}


@router.get("/api/dashboard")
def get_dashboard(request: Request):
    state = _state(request)
    refresh_if_stale(state)

    prices, news, crypto = state.prices, state.news, state.crypto
    now = state.now()
    return {
        "prices": {
            "gold": _quote_json(prices.gold),
            "silver": _quote_json(prices.silver),
            "lastUpdate": _iso(prices.last_update),
        },
        "news": {
            **{name: [item.to_json() for item in news.for_instrument(name, NEWS_RESPONSE_ITEMS)]
               for name in INSTRUMENTS},
            "lastUpdate": _iso(news.last_update),
        },
        "advice": {
            name: calculate_advice(name, prices, state.history).to_json() for name in INSTRUMENTS
        },
        "history": {
            name: [s.to_json() for s in state.history.recent(name, HISTORY_RESPONSE_POINTS)]
            for name in INSTRUMENTS
        },
        "crypto": {
            "top10": [q.to_json() for q in crypto.top],
            "prices": {coin_id: q.to_json() for coin_id, q in crypto.prices.items()},
            "lastUpdate": _iso(crypto.last_update),
        },
        "_meta": {
            "prices": build_api_meta(prices.last_update, now, PRICE_CACHE_TTL, ["goldapi.io", "frankfurter.app"]),
            "news": build_api_meta(news.last_update, now, NEWS_CACHE_TTL, ["newsapi.org"]),
            "crypto": build_api_meta(crypto.last_update, now, CRYPTO_CACHE_TTL, ["api.coingecko.com"]),
            "upstreams": get_api_health(),
        },
    }


@router.get("/api/crypto/prices")
async def get_crypto_prices(request: Request, ids: str = ""):
    """Cached quotes only; unknown ids are omitted."""
    cached = _state(request).crypto.prices
    wanted = [i.strip() for i in ids.split(",") if i.strip()]
    if not wanted:
        selected = cached
    else:
        selected = {coin_id: cached[coin_id] for coin_id in wanted if coin_id in cached}
    return {"prices": {coin_id: q.to_json() for coin_id, q in selected.items()}}


@router.get("/api/crypto/{coin_id}")
def get_crypto_coin(request: Request, coin_id: str):
    cached = _state(request).crypto.prices.get(coin_id)
    if cached is not None:
        return cached.to_json()
    price, change = fetch_coin_price(coin_id)
    if price is None:
        return JSONResponse(status_code=404, content={"error": "Not found"})
    return {"id": coin_id, "price": price, "changePercent24h": change}


@router.post("/api/refresh")
def force_refresh(request: Request):
    state = _state(request)
    refresh_prices(state)
    refresh_news(state)
    return {"ok": True}
