"""API routes for the ranked asset view, settings and scanner status."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool

from src.api.dependencies import (
    get_event_store,
    get_metrics_calculator,
    get_refresh_scheduler,
    get_scanner_state,
)
from src.api.error_handlers import handle_service_error
from src.models.api_schemas import (
    AlertSummary,
    AssetListResponse,
    AssetRow,
    MuteRequest,
    MuteResponse,
    RefreshResponse,
    SortResponse,
    SortUpdateRequest,
    StatusResponse,
    ThresholdsResponse,
    ThresholdsUpdateRequest,
)
from src.models.market_data import Asset, Horizon, SortSelection, ThresholdConfig
from src.services.ranking_engine import sort_assets
from src.services.refresh_scheduler import RefreshScheduler
from src.services.scanner_state import ScannerState
from src.services.threshold_evaluator import classify_asset
from src.utils.config import SORT_KEYS, SORT_ORDERS
from src.utils.event_store import ALERT_NOTIFICATION, EventStore
from src.utils.formatting import format_change, format_market_cap, format_price
from src.utils.metrics import MetricsCalculator

router = APIRouter()


def _asset_row(asset: Asset, thresholds: ThresholdConfig) -> AssetRow:
    """Convert an Asset into its API row with classification and display strings."""
    classes = classify_asset(asset, thresholds)
    display = {
        "price": format_price(asset.price),
        "market_cap": format_market_cap(asset.market_cap),
        "volume": format_market_cap(asset.volume),
    }
    display.update({h.value: format_change(asset.change(h)) for h in Horizon})

    return AssetRow(
        id=asset.id,
        symbol=asset.symbol,
        name=asset.name,
        rank=asset.rank,
        price=asset.price,
        market_cap=asset.market_cap,
        volume=asset.volume,
        change_pct={h.value: asset.change(h) for h in Horizon},
        classification={h.value: c.value for h, c in classes.items()},
        flagged=any(c.flagged for c in classes.values()),
        display=display,
    )


@router.get("/assets", response_model=AssetListResponse)
async def get_assets(
    sort: Optional[str] = Query(None, description="Sort key override for this request"),
    order: Optional[str] = Query(None, description="'asc' or 'desc'"),
    flagged_only: bool = Query(False, description="Only return rows with a flagged horizon"),
    state: ScannerState = Depends(get_scanner_state),
):
    """
    Get the current snapshot in the active sort order.

    The stored sort selection is used unless `sort`/`order` override it for
    this request only.
    """
    view = state.view()
    selection = SortSelection(key=sort or view.sort.key, order=order or view.sort.order)
    if selection.key not in SORT_KEYS:
        raise handle_service_error(
            ValueError(f"Unknown sort key: {selection.key}"), "sort"
        ).to_http_exception()
    if selection.order not in SORT_ORDERS:
        raise handle_service_error(
            ValueError(f"Unknown sort order: {selection.order}"), "sort"
        ).to_http_exception()

    assets = view.snapshot.assets if view.snapshot else ()
    rows = [_asset_row(asset, view.thresholds) for asset in sort_assets(assets, selection)]
    if flagged_only:
        rows = [row for row in rows if row.flagged]

    return AssetListResponse(
        assets=rows,
        total=len(rows),
        captured_at=view.snapshot.captured_at if view.snapshot else None,
        sort_key=selection.key,
        sort_order=selection.order,
    )


@router.get("/status", response_model=StatusResponse)
async def get_status(
    state: ScannerState = Depends(get_scanner_state),
    scheduler: RefreshScheduler = Depends(get_refresh_scheduler),
):
    """Get loading/error state, last update time and the aggregate alert."""
    view = state.view()
    evaluation = view.evaluation

    return StatusResponse(
        loading=view.loading,
        error=view.error,
        last_update=view.last_update,
        asset_count=len(view.snapshot) if view.snapshot else 0,
        alert=AlertSummary(
            triggered=evaluation.triggered if evaluation else False,
            crossings=len(evaluation.crossings) if evaluation else 0,
            evaluated_at=evaluation.evaluated_at if evaluation else None,
        ),
        muted=view.muted,
        is_running=scheduler.is_running,
        next_refresh=scheduler.next_run_time(),
    )


@router.get("/thresholds", response_model=ThresholdsResponse)
async def get_thresholds(state: ScannerState = Depends(get_scanner_state)):
    """Get the per-horizon thresholds."""
    return ThresholdsResponse(
        thresholds=state.view().thresholds.as_dict(),
        min=state.settings.threshold_min,
        max=state.settings.threshold_max,
    )


@router.put("/thresholds", response_model=ThresholdsResponse)
async def update_thresholds(
    request: ThresholdsUpdateRequest,
    state: ScannerState = Depends(get_scanner_state),
):
    """
    Partially update thresholds.

    All values must be within the allowed range; otherwise nothing is applied.
    """
    try:
        thresholds = state.update_thresholds(request.thresholds)
    except ValueError as e:
        raise handle_service_error(e, "thresholds").to_http_exception()

    return ThresholdsResponse(
        thresholds=thresholds.as_dict(),
        min=state.settings.threshold_min,
        max=state.settings.threshold_max,
    )


@router.get("/sort", response_model=SortResponse)
async def get_sort(state: ScannerState = Depends(get_scanner_state)):
    """Get the active sort selection."""
    selection = state.view().sort
    return SortResponse(key=selection.key, order=selection.order)


@router.put("/sort", response_model=SortResponse)
async def set_sort(request: SortUpdateRequest, state: ScannerState = Depends(get_scanner_state)):
    """Set the sort key and order explicitly."""
    selection = state.set_sort(request.key, request.order)
    return SortResponse(key=selection.key, order=selection.order)


@router.post("/sort/{key}", response_model=SortResponse)
async def select_sort(key: str, state: ScannerState = Depends(get_scanner_state)):
    """Column-click toggle: the same key flips the order, a new key sorts descending."""
    try:
        selection = state.select_sort(key)
    except ValueError as e:
        raise handle_service_error(e, "sort").to_http_exception()
    return SortResponse(key=selection.key, order=selection.order)


@router.get("/mute", response_model=MuteResponse)
async def get_mute(state: ScannerState = Depends(get_scanner_state)):
    return MuteResponse(muted=state.view().muted)


@router.put("/mute", response_model=MuteResponse)
async def set_mute(request: MuteRequest, state: ScannerState = Depends(get_scanner_state)):
    """Mute or unmute alert notifications; classification is unaffected."""
    return MuteResponse(muted=state.set_muted(request.muted))


@router.post("/refresh", response_model=RefreshResponse)
async def refresh(
    state: ScannerState = Depends(get_scanner_state),
    scheduler: RefreshScheduler = Depends(get_refresh_scheduler),
):
    """Run one refresh cycle now."""
    success = await run_in_threadpool(scheduler.run_cycle)
    view = state.view()
    return RefreshResponse(
        success=success,
        error=view.error,
        last_update=view.last_update,
        asset_count=len(view.snapshot) if view.snapshot else 0,
    )


@router.get("/notifications")
async def get_notifications(
    limit: int = Query(20, ge=1, le=200),
    event_store: EventStore = Depends(get_event_store),
):
    """Get the most recent alert notifications, newest first."""
    events = event_store.get_events_by_type(ALERT_NOTIFICATION, limit=limit)
    notifications = [event.to_dict() for event in reversed(events)]
    return {"notifications": notifications, "count": len(notifications)}


@router.get("/debug/metrics")
async def get_metrics(calculator: MetricsCalculator = Depends(get_metrics_calculator)):
    """Get aggregated refresh cycle metrics."""
    return calculator.calculate().to_dict()


@router.get("/debug/events")
async def get_events(
    limit: int = Query(100, ge=1, le=1000),
    event_type: Optional[str] = Query(None),
    trace_id: Optional[str] = Query(None),
    event_store: EventStore = Depends(get_event_store),
):
    """Get recent events, optionally filtered by type or cycle trace."""
    if trace_id:
        events = event_store.get_events_by_trace(trace_id)[-limit:]
    elif event_type:
        events = event_store.get_events_by_type(event_type, limit=limit)
    else:
        events = event_store.get_recent_events(limit=limit)
    return {"events": [event.to_dict() for event in events], "count": len(events)}
