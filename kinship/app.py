"""kinship-engine: relationship inference service for family trees."""

from __future__ import annotations

import logging
import os
import time
from collections import deque
from contextlib import asynccontextmanager
from threading import Lock

import psutil
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kinship.db import close_pool, get_pool, get_stats, init_pool
from kinship.inference.config import config as inference_config

logger = logging.getLogger("kinship")

PORT = int(os.environ.get("KIN_PORT", "9820"))


class RateCounter:
    """Requests per second over a sliding window."""

    def __init__(self, window: float = 60.0) -> None:
        self._window = window
        self._lock = Lock()
        self._hits: deque[float] = deque()

    def record(self) -> None:
        with self._lock:
            self._hits.append(time.monotonic())

    def rate(self) -> float:
        cutoff = time.monotonic() - self._window
        with self._lock:
            while self._hits and self._hits[0] < cutoff:
                self._hits.popleft()
            return len(self._hits) / self._window if self._window else 0.0


request_counter = RateCounter()
_started_at: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _started_at
    _started_at = time.time()
    await init_pool()
    logger.info("kinship-engine up on port %d, inference %s", PORT, inference_config.to_dict())
    yield
    await close_pool()
    logger.info("kinship-engine stopped")


app = FastAPI(
    title="kinship-engine",
    version="0.1.0",
    description="Infers named relationships (cousins, in-laws, step-siblings) from family tree edges",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.middleware("http")
async def count_requests(request: Request, call_next):
    request_counter.record()
    return await call_next(request)


from kinship.inference.routes import router as inference_router  # noqa: E402

app.include_router(inference_router)


# ---------------------------------------------------------------------------
# Health and metrics
# ---------------------------------------------------------------------------

def _metric(key: str, label: str, value, unit: str = "", warn_above: float | None = None) -> dict:
    row = {"key": key, "label": label, "value": value, "unit": unit}
    if warn_above is not None:
        row["warn_above"] = warn_above
    return row


# stats key -> (label, unit)
_TREE_METRICS = {
    "total_trees": ("Family trees", "trees"),
    "total_members": ("Members", "members"),
    "total_parent_child": ("Parent-child links", "links"),
    "total_marriages": ("Marriages", "links"),
}


@app.get("/health")
async def health():
    try:
        db_ok = await get_pool().fetchval("SELECT 1")
    except RuntimeError:
        return {"status": "ok", "database": "pool_not_initialized"}
    except Exception as exc:
        logger.warning("Health check query failed: %s", exc)
        return {"status": "degraded", "database": f"error: {exc}"}
    return {"status": "ok", "database": "connected" if db_ok == 1 else "unexpected"}


@app.get("/metrics")
async def metrics():
    """Process load, tree sizes and the active inference settings."""
    process = psutil.Process(os.getpid())
    rows = [
        _metric("uptime", "Uptime", round(time.time() - _started_at) if _started_at else 0, "seconds"),
        _metric("rps", "Requests / sec", round(request_counter.rate(), 2), "req/s", 200),
        _metric("memory_rss", "Memory (RSS)", round(process.memory_info().rss / 1_048_576, 1), "MB", 512),
        _metric("cpu_percent", "CPU usage", process.cpu_percent(interval=0), "%", 90),
    ]
    try:
        stats = await get_stats()
        conns = await get_pool().fetchval(
            "SELECT COUNT(*) FROM pg_stat_activity WHERE datname = current_database()"
        )
    except Exception as exc:
        logger.exception("Error fetching metrics")
        return JSONResponse(status_code=500, content={"metrics": [], "error": f"Database error: {exc}"})

    rows.extend(_metric(key, label, stats[key], unit) for key, (label, unit) in _TREE_METRICS.items())
    rows.append(_metric("db_connections", "DB connections", conns or 0, "conns", 50))
    rows.extend(
        _metric(f"inference_{key}", key.replace("_", " "), value)
        for key, value in inference_config.to_dict().items()
    )
    return {"metrics": rows}


def run() -> None:
    logging.basicConfig(
        level=os.environ.get("KIN_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("kinship.app:app", host="127.0.0.1", port=PORT, reload=False)


if __name__ == "__main__":
    run()
