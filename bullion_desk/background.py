"""
Bullion Desk - Background Tasks
Initial cache fill and the periodic refresh loop (prices, crypto, news).
"""
import threading
import time
from typing import Callable, Dict, Optional

from bullion_desk.core.cache import MarketState
from bullion_desk.core.config import (
    CRYPTO_REFRESH_INTERVAL, NEWS_REFRESH_INTERVAL, PRICE_REFRESH_INTERVAL, SCHEDULER_TICK,
)
from bullion_desk.core.logger import logger
from bullion_desk.services.crypto_service import refresh_crypto
from bullion_desk.services.news_service import refresh_news
from bullion_desk.services.price_service import refresh_prices

# job name -> (interval seconds, refresh routine)
JOBS: Dict[str, tuple] = {
    "prices": (PRICE_REFRESH_INTERVAL, refresh_prices),
    "crypto": (CRYPTO_REFRESH_INTERVAL, refresh_crypto),
    "news": (NEWS_REFRESH_INTERVAL, refresh_news),
}


def _run_job(name: str, job: Callable[[MarketState], object], state: MarketState) -> bool:
    try:
        job(state)
        return True
    except Exception as e:
        logger.error(f"[Scheduler] {name} refresh error: {e}", exc_info=True)
        return False


def run_initial_refresh(state: MarketState, monotonic: Callable[[], float] = time.monotonic) -> Dict[str, float]:
    """Fill every cache once before serving. Returns last-run marks for the loop."""
    last_runs = {}
    for name, (_, job) in JOBS.items():
        _run_job(name, job, state)
        last_runs[name] = monotonic()
    logger.info("[Startup] Initial data loaded")
    return last_runs


def run_due_jobs(state: MarketState, last_runs: Dict[str, float], now: float, jobs: Optional[Dict[str, tuple]] = None) -> list:
    """One scheduler tick: run every job whose interval has elapsed. Returns names run."""
    ran = []
    for name, (interval, job) in (jobs or JOBS).items():
        if now - last_runs.get(name, float("-inf")) >= interval:
            _run_job(name, job, state)
            last_runs[name] = now
            ran.append(name)
    return ran


def refresh_loop(state: MarketState, stop_event: threading.Event, last_runs: Dict[str, float],
                 tick: float = SCHEDULER_TICK, jobs: Optional[Dict[str, tuple]] = None):
    """Background refresh loop over `jobs` (default: all); returns once stop_event is set."""
    names = ", ".join(jobs or JOBS)
    logger.info(f"[Scheduler] Refresh thread started: {names}")
    while not stop_event.wait(tick):
        run_due_jobs(state, last_runs, time.monotonic(), jobs)
    logger.info(f"[Scheduler] Refresh thread stopped: {names}")


def startup_background_tasks(state: MarketState, last_runs: Dict[str, float],
                             tick: float = SCHEDULER_TICK) -> threading.Event:
    """Start one refresh thread per job for `state`. Set the returned event to stop them all."""
    stop_event = threading.Event()
    for name, job in JOBS.items():
        bg_thread = threading.Thread(
            target=refresh_loop, args=(state, stop_event, last_runs, tick, {name: job}),
            daemon=True, name=f"bullion-refresh-{name}",
        )
        bg_thread.start()
    return stop_event
