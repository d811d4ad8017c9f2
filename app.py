"""FastAPI service for the wellbeing check-in tracker.

Stores check-ins and daily ratings in JSON-lines files and serves the
analytics built over them.  The combined dashboard payload is cached per
viewer locale/zone (short TTL, dropped on every write).

Deployment: uvicorn app:app --host 127.0.0.1 --port 8787
"""

from __future__ import annotations

import os
import threading
import time
from datetime import tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt

from analytics import (
    build_check_in_insights,
    build_dashboard_payload,
    build_last_week_series,
    build_word_cloud,
)
from checkin_dates import CLOUD_WINDOWS, resolve_now, word_cloud_window_range
from checkin_store import CheckInStore, InvalidRangeError, RatingStore
from checkin_validation import InvalidRecordError

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
DATA_DIR = Path(os.environ.get("CHECKIN_DATA_DIR", Path(__file__).parent / "data"))
CHECK_INS_PATH = DATA_DIR / "checkins.jsonl"
RATINGS_PATH = DATA_DIR / "ratings.jsonl"
DEFAULT_LOCALE = os.environ.get("CHECKIN_DEFAULT_LOCALE", "en")
CACHE_TTL_SECONDS = float(os.environ.get("CHECKIN_CACHE_TTL", "60"))

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(title="Wellbeing Check-in Tracker")

check_in_store = CheckInStore(CHECK_INS_PATH)
rating_store = RatingStore(RATINGS_PATH)


class RatingPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    timestamp: str
    rating: StrictInt | StrictFloat


class IntensityPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    energy: StrictInt | StrictFloat | None = None
    stress: StrictInt | StrictFloat | None = None
    anxiety: StrictInt | StrictFloat | None = None
    joy: StrictInt | StrictFloat | None = None


class CheckInPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    timestamp: str
    words: list[str] = Field(default_factory=list)
    suggested_words_used: list[str] = Field(default_factory=list)
    intensity: IntensityPayload = Field(default_factory=IntensityPayload)
    context_tags: list[str] = Field(default_factory=list)


@app.exception_handler(RequestValidationError)
async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": "invalid_request"})


# ---------------------------------------------------------------------------
# Thread-safe cache
# ---------------------------------------------------------------------------
_cache_lock = threading.Lock()
_cache: dict[str, dict[str, Any]] = {}


def _invalidate_cache() -> None:
    with _cache_lock:
        _cache.clear()


def _resolve_tz(tz_name: str | None) -> tzinfo | None:
    """Map a ?tz= query value to a zone; None keeps the server's local zone."""
    if not tz_name:
        return None
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise HTTPException(status_code=400, detail="invalid_timezone")


def _all_records(store) -> list[dict]:
    from_iso, to_iso = word_cloud_window_range("all-time", resolve_now())
    return store.list(from_iso, to_iso)


def _get_cached_payload(
    locale: str,
    tz_name: str | None,
    force_refresh: bool = False,
) -> dict[str, Any]:
    """Return the cached dashboard payload, rebuilding if stale or forced."""
    key = f"{locale}|{tz_name or ''}"
    now = time.monotonic()
    with _cache_lock:
        entry = _cache.get(key)
        if (
            not force_refresh
            and entry is not None
            and (now - entry["built_at"]) < CACHE_TTL_SECONDS
        ):
            return entry["data"]

    tz = _resolve_tz(tz_name)
    data = build_dashboard_payload(
        _all_records(check_in_store), _all_records(rating_store), locale, tz=tz
    )

    with _cache_lock:
        _cache[key] = {"data": data, "built_at": time.monotonic()}

    return data


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.get("/health")
@app.get("/healthz")
@app.get("/api/health")
def healthz():
    return {"status": "ok"}


def _append(store, record: dict) -> dict[str, str]:
    try:
        store.append(record)
    except InvalidRecordError as exc:
        raise HTTPException(status_code=400, detail=exc.reason)
    _invalidate_cache()
    return {"status": "created"}


def _list(store, from_iso: str, to_iso: str) -> dict[str, list[dict]]:
    try:
        return {"items": store.list(from_iso, to_iso)}
    except InvalidRangeError:
        raise HTTPException(status_code=400, detail="invalid_range")


@app.post("/api/ratings", status_code=201)
def create_rating(payload: RatingPayload):
    """Append one daily rating (whole number 1-10)."""
    return _append(rating_store, payload.model_dump())


@app.get("/api/ratings")
def list_ratings(from_: str = Query("", alias="from"), to: str = Query("")):
    return _list(rating_store, from_, to)


@app.post("/api/checkins", status_code=201)
def create_check_in(payload: CheckInPayload):
    """Append one check-in; intensity values must be whole numbers 0-10."""
    return _append(check_in_store, payload.model_dump())


@app.get("/api/checkins")
def list_check_ins(from_: str = Query("", alias="from"), to: str = Query("")):
    return _list(check_in_store, from_, to)


@app.get("/api/insights")
def insights(locale: str = DEFAULT_LOCALE, tz: str | None = None):
    return build_check_in_insights(_all_records(check_in_store), locale, tz=_resolve_tz(tz))


@app.get("/api/word-cloud")
def word_cloud(
    window: str = "week",
    locale: str = DEFAULT_LOCALE,
    tz: str | None = None,
    limit: int | None = Query(None, ge=1),
):
    """Word cloud for one of the today/week/month/all-time windows."""
    if window not in CLOUD_WINDOWS:
        raise HTTPException(status_code=400, detail="invalid_window")
    from_iso, to_iso = word_cloud_window_range(window, resolve_now(), _resolve_tz(tz))
    return {
        "window": window,
        "items": build_word_cloud(check_in_store.list(from_iso, to_iso), locale, limit),
    }


@app.get("/api/week")
def week(locale: str = DEFAULT_LOCALE, tz: str | None = None):
    """Trailing 7-day average rating series; days without data are null."""
    return {"points": build_last_week_series(_all_records(rating_store), locale, tz=_resolve_tz(tz))}


@app.get("/api/data")
def api_data(locale: str = DEFAULT_LOCALE, tz: str | None = None):
    """Return the full dashboard JSON payload."""
    return _get_cached_payload(locale, tz)


@app.get("/api/refresh")
def api_refresh(locale: str = DEFAULT_LOCALE, tz: str | None = None):
    """Force a cache rebuild and return fresh data."""
    data = _get_cached_payload(locale, tz, force_refresh=True)
    return {
        "status": "refreshed",
        "generated_at": data["generated_at"],
    }
