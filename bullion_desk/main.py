"""
Bullion Desk - FastAPI Application Entry Point
Creates app, adds middleware, includes routers, mounts the static dashboard.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from bullion_desk.background import run_initial_refresh, startup_background_tasks
from bullion_desk.core.cache import MarketState
from bullion_desk.core.config import ALLOWED_ORIGINS, STATIC_DIR
from bullion_desk.core.logger import logger
from bullion_desk.routes.data_routes import router as data_router


def create_app(state: Optional[MarketState] = None, start_scheduler: bool = True) -> FastAPI:
    """Build the app around `state`. Without the scheduler, caches fill lazily on first read."""
    market = state if state is not None else MarketState()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup / shutdown lifecycle hook."""
        stop_event = None
        if start_scheduler:
            last_runs = run_initial_refresh(market)
            stop_event = startup_background_tasks(market, last_runs)
        yield
        if stop_event is not None:
            stop_event.set()

    app = FastAPI(title="Bullion Desk API", lifespan=lifespan)
    app.state.market = market

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    app.include_router(data_router)

    # ── Global Exception Handler ──
    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc):
        if request.url.path.startswith("/api/"):
            return JSONResponse(status_code=404, content={"error": "Not found"})
        return RedirectResponse("/")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"[Unhandled] {request.method} {request.url.path}: {type(exc).__name__}: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    # Static dashboard (after API routes)
    app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")
    return app


app = create_app()
