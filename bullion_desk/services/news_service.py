"""
Bullion Desk - News Service
NewsAPI headlines per metal with headline sentiment; placeholder headlines per metal on failure.
"""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Dict, List, Optional

from bullion_desk.core import config
from bullion_desk.core.cache import MarketState, NewsCache
from bullion_desk.core.config import (
    INSTRUMENTS, NEWS_API_URL, NEWS_QUERIES, NEWS_RESPONSE_ITEMS, PLACEHOLDER_NEWS, NewsItem,
)
from bullion_desk.core.http_client import resilient_get
from bullion_desk.core.logger import logger


def classify_headline_sentiment(title):
    """Phrase-aware headline sentiment for precious metals."""
    t = (title or "").lower()
    bull_phrases = ['record high', 'all-time high', 'rate cut', 'central bank buying',
                    'safe-haven demand', 'etf inflows', 'supply deficit']
    bear_phrases = ['rate hike', 'etf outflows', 'strong dollar', 'profit-taking',
                    'risk appetite returns']
    for p in bull_phrases:
        if p in t:
            return "BULLISH"
    for p in bear_phrases:
        if p in t:
            return "BEARISH"
    bull_words = ['surge', 'soar', 'rally', 'bullish', 'breakout', 'highs', 'record',
                  'jump', 'gain', 'climb', 'rise', 'boost', 'demand', 'buying', 'inflow']
    bear_words = ['crash', 'plunge', 'bearish', 'slump', 'sell', 'fall', 'drop',
                  'decline', 'slide', 'tumble', 'outflow', 'weak', 'pressure']
    bull_score = sum(1 for w in bull_words if w in t)
    bear_score = sum(1 for w in bear_words if w in t)
    if bull_score > bear_score:
        return "BULLISH"
    elif bear_score > bull_score:
        return "BEARISH"
    return "NEUTRAL"


def _to_news_item(article: dict) -> NewsItem:
    title = article.get("title") or "No title"
    return NewsItem(
        title=title,
        description=article.get("description"),
        url=article.get("url"),
        source=(article.get("source") or {}).get("name"),
        published_at=article.get("publishedAt") or "",
        sentiment=classify_headline_sentiment(title),
    )


def fetch_instrument_news(instrument: str, api_key: str) -> List[NewsItem]:
    """Newest-first articles for one metal; empty list on any failure."""
    params = {
        "q": NEWS_QUERIES[instrument],
        "language": "en",
        "sortBy": "publishedAt",
        "pageSize": NEWS_RESPONSE_ITEMS,
        "apiKey": api_key,
    }
    try:
        resp = resilient_get(NEWS_API_URL, params=params)
        if resp.status_code != 200:
            logger.warning(f"[News] {instrument} query returned HTTP {resp.status_code}")
            return []
        articles = resp.json().get("articles") or []
        return [_to_news_item(a) for a in articles[:NEWS_RESPONSE_ITEMS]]
    except Exception as e:
        logger.error(f"[News] Error fetching {instrument} headlines: {e}")
        return []


def placeholder_news(instrument: str, now: datetime) -> List[NewsItem]:
    published_at = now.strftime("%Y-%m-%dT%H:%M:%SZ")
    return [
        NewsItem(
            title=item["title"],
            source=item["source"],
            published_at=published_at,
            sentiment=classify_headline_sentiment(item["title"]),
        )
        for item in PLACEHOLDER_NEWS[instrument]
    ]


def refresh_news(state: MarketState, api_key: Optional[str] = None) -> NewsCache:
    """Replace the news cache. Each metal falls back to placeholders independently."""
    api_key = config.NEWS_API_KEY if api_key is None else api_key
    fetched: Dict[str, List[NewsItem]] = {name: [] for name in INSTRUMENTS}
    if api_key:
        with ThreadPoolExecutor(max_workers=len(INSTRUMENTS)) as pool:
            futures = {name: pool.submit(fetch_instrument_news, name, api_key) for name in INSTRUMENTS}
            fetched = {name: future.result() for name, future in futures.items()}

    now = state.now()
    items = {}
    for name in INSTRUMENTS:
        if fetched[name]:
            items[name] = fetched[name]
        else:
            items[name] = placeholder_news(name, now)
            logger.info(f"[News] Using placeholder headlines for {name}")

    state.news = NewsCache(items=items, last_update=now)
    logger.info("[News] Refreshed: " + ", ".join(f"{n}={len(items[n])}" for n in INSTRUMENTS))
    return state.news
