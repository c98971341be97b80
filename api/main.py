from __future__ import annotations

import logging
import math

import numpy as np
import pandas as pd
from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.schemas import DashboardRequest, FiltersModel, RevenueRangeRequest
from bi_core.charts import calculate_chart_data, pie_chart, to_vega_spec
from bi_core.dashboard import compute_dashboard
from bi_core.data import Snapshot, account_names, clear_snapshot_cache, load_snapshot
from bi_core.engine import apply_filters, build_masks
from bi_core.fields import ENTITIES, REVENUE_FIELD
from bi_core.filters import Filters, normalize_filters
from bi_core.logging_utils import configure_logging
from bi_core.matchers import MatcherCache
from bi_core.options import compute_available_options
from bi_core.revenue import (
    bounds_from_result,
    bounds_to_dict,
    edit_max,
    edit_min,
    edit_range,
    load_saved_range,
    reset_range,
    state_from_dict,
    sync_range,
)
from bi_core.settings import get_settings

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(title="GCC Intelligence Dashboard API", version="0.1.0")
app.state.matcher_cache = MatcherCache(maxsize=settings.matcher_cache_size)
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_snapshot() -> Snapshot:
    return load_snapshot(settings.data_dir)


def get_matcher_cache() -> MatcherCache:
    return app.state.matcher_cache


def _filters_from_model(model: FiltersModel) -> Filters:
    return normalize_filters(model.model_dump())


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


@app.get("/meta/status")
def meta_status(snapshot: Snapshot = Depends(get_snapshot), cache: MatcherCache = Depends(get_matcher_cache)):
    try:
        return _json(
            {
                "data_dir": str(settings.data_dir),
                "counts": snapshot.counts(),
                "orphan_centers": len(snapshot.relations.orphan_center_keys()),
                "matcher_cache": cache.stats(),
            }
        )
    except Exception as exc:
        logger.exception("meta_status failed")
        return _error(exc)


@app.get("/meta/accounts")
def meta_accounts(
    q: str = Query(default=""),
    limit: int = Query(default=50, ge=1, le=500),
    snapshot: Snapshot = Depends(get_snapshot),
):
    try:
        return _json({"values": account_names(snapshot, q, limit)})
    except Exception as exc:
        logger.exception("meta_accounts failed")
        return _error(exc)


@app.post("/meta/clear-cache")
def meta_clear_cache(cache: MatcherCache = Depends(get_matcher_cache)):
    clear_snapshot_cache()
    cache.clear()
    logger.info("snapshot and matcher caches cleared")
    return _json({"success": True, "message": "Cache cleared successfully"})


@app.post("/dashboard")
def dashboard(
    body: DashboardRequest,
    snapshot: Snapshot = Depends(get_snapshot),
    cache: MatcherCache = Depends(get_matcher_cache),
):
    try:
        filters = _filters_from_model(body.filters)
        state = state_from_dict(body.revenue_state.model_dump()) if body.revenue_state else None
        return _json(
            compute_dashboard(filters, snapshot, cache=cache, range_state=state, include_records=body.include_records)
        )
    except Exception as exc:
        logger.exception("dashboard failed")
        return _error(exc)


@app.post("/options")
def options(
    filters: FiltersModel,
    snapshot: Snapshot = Depends(get_snapshot),
    cache: MatcherCache = Depends(get_matcher_cache),
):
    try:
        f = _filters_from_model(filters)
        facets = compute_available_options(snapshot, f, cache=cache)
        return _json({name: facet.to_dict() for name, facet in facets.items()})
    except Exception as exc:
        logger.exception("options failed")
        return _error(exc)


@app.post("/revenue-range")
def revenue_range(
    body: RevenueRangeRequest,
    snapshot: Snapshot = Depends(get_snapshot),
    cache: MatcherCache = Depends(get_matcher_cache),
):
    try:
        f = _filters_from_model(body.filters)
        masks = build_masks(snapshot, f, cache)
        bounds = bounds_from_result(apply_filters(snapshot, masks, skip=REVENUE_FIELD))
        state = state_from_dict(body.state.model_dump())
        if body.action == "edit_min":
            state = edit_min(state, body.value, bounds)
        elif body.action == "edit_max":
            state = edit_max(state, body.value, bounds)
        elif body.action == "edit_range":
            state = edit_range(state, body.values or (), bounds)
        elif body.action == "reset":
            state = reset_range(bounds)
        elif body.action == "load_saved":
            state = load_saved_range(bounds)
        state = sync_range(state, bounds)
        return _json({"bounds": bounds_to_dict(bounds), "state": state.to_dict()})
    except Exception as exc:
        logger.exception("revenue_range failed")
        return _error(exc)


@app.post("/charts/{entity}")
def chart(
    entity: str,
    filters: FiltersModel,
    field: str = Query(...),
    top_n: int = Query(default=10, ge=1, le=50),
    snapshot: Snapshot = Depends(get_snapshot),
    cache: MatcherCache = Depends(get_matcher_cache),
):
    if entity not in ENTITIES:
        raise HTTPException(status_code=404, detail=f"Unknown entity: {entity}")
    if field not in snapshot.frame(entity).columns:
        raise HTTPException(status_code=404, detail=f"Unknown field for {entity}: {field}")
    try:
        result = apply_filters(snapshot, _filters_from_model(filters), cache=cache)
        data = calculate_chart_data(result.frame(entity), field, top_n=top_n)
        return _json({"entity": entity, "field": field, "data": data, "spec": to_vega_spec(pie_chart(data, field))})
    except Exception as exc:
        logger.exception("chart failed")
        return _error(exc)
