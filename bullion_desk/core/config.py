"""
Bullion Desk - Configuration & Constants
All environment variables, API keys, Pydantic models, and static data.
"""
import os
import pathlib
from datetime import datetime
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

# ── Project Root ──
PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent.parent
STATIC_DIR = PROJECT_ROOT / "static"

# ── Environment ──
load_dotenv()

# ── Server ──
PORT = int(os.getenv("PORT", "3002"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ── CORS ──
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "http://localhost:3002,http://127.0.0.1:3002").split(",")

# ── Upstream credentials (all optional: absence selects the fallback tier) ──
GOLD_API_KEY = os.getenv("GOLD_API_KEY", "")   # goldapi.io
NEWS_API_KEY = os.getenv("NEWS_API_KEY", "")   # newsapi.org

# ── CoinGecko API Key (free demo key → higher rate limit) ──
CG_DEMO_API_KEY = os.getenv("CG_DEMO_API_KEY", "")
CG_HEADERS = {"Accept": "application/json"}
if CG_DEMO_API_KEY:
    CG_HEADERS["x-cg-demo-api-key"] = CG_DEMO_API_KEY

# ── Cache TTL (staleness threshold checked on read) ──
PRICE_CACHE_TTL = int(os.getenv("PRICE_CACHE_TTL", "300"))  # 5 minutes
NEWS_CACHE_TTL = int(os.getenv("NEWS_CACHE_TTL", "300"))
CRYPTO_CACHE_TTL = int(os.getenv("CRYPTO_CACHE_TTL", "300"))

# ── Background refresh cadence ──
PRICE_REFRESH_INTERVAL = int(os.getenv("PRICE_REFRESH_INTERVAL", "300"))
CRYPTO_REFRESH_INTERVAL = int(os.getenv("CRYPTO_REFRESH_INTERVAL", "120"))
NEWS_REFRESH_INTERVAL = int(os.getenv("NEWS_REFRESH_INTERVAL", "1800"))
SCHEDULER_TICK = float(os.getenv("SCHEDULER_TICK", "10"))

# ── Upstream HTTP ──
HTTP_TIMEOUT = int(os.getenv("HTTP_TIMEOUT", "10"))

# ── History / response shaping ──
HISTORY_WINDOW_DAYS = int(os.getenv("HISTORY_WINDOW_DAYS", "7"))
HISTORY_RESPONSE_POINTS = 24
NEWS_RESPONSE_ITEMS = 5
CRYPTO_TOP_N = 10

# ── Synthetic price tier (seed for reproducible output) ──
_seed = os.getenv("RANDOM_SEED", "")
RANDOM_SEED: Optional[int] = int(_seed) if _seed.strip() else None

# ── Instruments ──
INSTRUMENTS = ("gold", "silver")
CURRENCY = "EUR"
TROY_OUNCE_GRAMS = 31.1035

GOLDAPI_URL = "https://www.goldapi.io/api/{symbol}/EUR"
GOLDAPI_SYMBOLS = {"gold": "XAU", "silver": "XAG"}

FX_RATE_URL = "https://api.frankfurter.app/latest?from=USD&to=EUR"
DEFAULT_USD_EUR_RATE = 0.92

# Approximate USD spot levels for the free tier. `jitter` and `change` are the
# half-widths of the uniform noise applied around the base and as the 24h move.
SYNTHETIC_USD_PRICES = {
    "gold": {"base": 2650.0, "jitter": 10.0, "change": 15.0},
    "silver": {"base": 31.0, "jitter": 0.25, "change": 0.25},
}

# Last-resort EUR quotes when even the synthetic tier blows up
STATIC_QUOTES = {
    "gold": {"price": 2450.0, "price_per_gram": 78.77, "change_24h": 5.0, "change_percent_24h": 0.2},
    "silver": {"price": 28.5, "price_per_gram": 0.92, "change_24h": 0.1, "change_percent_24h": 0.35},
}

# ── News ──
NEWS_API_URL = "https://newsapi.org/v2/everything"
NEWS_QUERIES = {
    "gold": "gold price market",
    "silver": "silver price market",
}
PLACEHOLDER_NEWS = {
    "gold": [
        {"title": "Gold prices steady amid economic uncertainty", "source": "Reuters"},
        {"title": "Central banks continue gold buying spree", "source": "Bloomberg"},
        {"title": "Gold ETF inflows hit multi-month high", "source": "FT"},
    ],
    "silver": [
        {"title": "Silver demand rises on industrial applications", "source": "Reuters"},
        {"title": "Silver prices track gold higher", "source": "Bloomberg"},
        {"title": "Solar panel demand boosts silver outlook", "source": "FT"},
    ],
}

# ── Crypto (CoinGecko) ──
COINGECKO_MARKETS_URL = (
    "https://api.coingecko.com/api/v3/coins/markets"
    "?vs_currency=eur&order=market_cap_desc&per_page={limit}&page=1&sparkline=false"
)
COINGECKO_SIMPLE_PRICE_URL = (
    "https://api.coingecko.com/api/v3/simple/price"
    "?ids={coin_id}&vs_currencies=eur&include_24hr_change=true"
)


# ───────────────────────────────────────
# Pydantic Models
# ───────────────────────────────────────
def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


class _WireModel(BaseModel):
    """Immutable model serialized with camelCase keys (change_percent_24h -> changePercent24h)."""
    model_config = ConfigDict(frozen=True, alias_generator=_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class PriceQuote(_WireModel):
    price: float
    price_per_gram: float
    change_24h: Optional[float] = None
    change_percent_24h: Optional[float] = None
    currency: Literal["EUR"] = "EUR"


class HistorySample(_WireModel):
    price: float
    timestamp: datetime


class NewsItem(_WireModel):
    title: str
    description: Optional[str] = None
    url: Optional[str] = None
    source: Optional[str] = None
    published_at: str
    sentiment: Literal["BULLISH", "BEARISH", "NEUTRAL"] = "NEUTRAL"


class CryptoQuote(_WireModel):
    id: str
    symbol: str
    name: str
    price: float
    change_24h: Optional[float] = None
    change_percent_24h: Optional[float] = None
    market_cap: Optional[float] = None
    image: Optional[str] = None


class Advice(_WireModel):
    recommendation: Literal["BUY", "HOLD", "SELL"]
    confidence: int = Field(ge=0, le=100)
    reasons: List[str] = []
