"""
Bullion Desk - Upstream HTTP Client
Single-attempt GET with per-domain failure tracking. No retries, no backoff.
"""
from collections import defaultdict
from urllib.parse import urlparse

import requests

from bullion_desk.core.config import HTTP_TIMEOUT
from bullion_desk.core.logger import logger

# ── Per-domain state ──
_api_fail_count: dict = defaultdict(int)  # domain -> consecutive fail count


def resilient_get(url: str, timeout: int = HTTP_TIMEOUT, **kwargs) -> requests.Response:
    """HTTP GET that records upstream health. Request exceptions propagate to the caller."""
    domain = urlparse(url).netloc
    try:
        resp = requests.get(url, timeout=timeout, **kwargs)
    except requests.exceptions.RequestException:
        _api_fail_count[domain] += 1
        raise

    if resp.status_code == 429:
        _api_fail_count[domain] += 1
        logger.warning(f"[HTTP] 429 from {domain} (fail #{_api_fail_count[domain]})")
    elif resp.status_code >= 400:
        _api_fail_count[domain] += 1
        logger.warning(f"[HTTP] {resp.status_code} from {domain}")
    elif _api_fail_count.get(domain, 0) > 0:
        _api_fail_count[domain] = 0
        logger.info(f"[HTTP] {domain} recovered")
    return resp


def get_api_health() -> dict:
    """Return upstream health status for monitoring."""
    return {
        domain: {"status": "ok" if fails == 0 else "failing", "fails": fails}
        for domain, fails in _api_fail_count.items()
    }


def reset_api_health() -> None:
    _api_fail_count.clear()
