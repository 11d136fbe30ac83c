"""API routes for compiled widgets.

The setting endpoint is what the client fetches before rendering a
screen: layout plus fields, with cloud props already pointing at their
component endpoints. Widget management endpoints live under /v1.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request

from src import config
from src.widgets.errors import LoadError
from src.widgets.registry import WidgetRegistry
from src.widgets.schemas import WidgetKind

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"/api/{config.API_NAMESPACE}", tags=["widgets"])
admin_router = APIRouter(prefix="/widgets", tags=["widgets"])


def get_registry(request: Request, kind: WidgetKind) -> WidgetRegistry:
    """Registry for a widget kind, or 404 when that kind is not served."""
    registries: dict[WidgetKind, WidgetRegistry] = request.app.state.registries
    registry = registries.get(kind)
    if registry is None:
        raise HTTPException(
            status_code=404,
            detail=f"No {kind.value} widgets are served. Available: {[k.value for k in registries]}",
        )
    return registry


# ── Client endpoints ─────────────────────────────────────


@router.get("/{kind}/{widget_id}/setting")
async def widget_setting(request: Request, kind: WidgetKind, widget_id: str):
    """Client setting of a widget. Unknown IDs are a 400 client error."""
    registry = get_registry(request, kind)
    return registry.must_get(widget_id).xgen()


# ── Management endpoints ─────────────────────────────────


@admin_router.get("")
async def list_widgets(
    request: Request,
    kind: Optional[WidgetKind] = Query(None, description="Filter by widget kind"),
):
    """List published widget IDs per kind."""
    registries: dict[WidgetKind, WidgetRegistry] = request.app.state.registries
    return {
        k.value: registry.list_ids()
        for k, registry in registries.items()
        if kind is None or k == kind
    }


@admin_router.get("/{kind}/{widget_id}")
async def get_widget(request: Request, kind: WidgetKind, widget_id: str):
    """Full compiled descriptor of a widget."""
    registry = get_registry(request, kind)
    descriptor = registry.find(widget_id)
    if descriptor is None:
        raise HTTPException(
            status_code=404,
            detail=f"Widget '{widget_id}' not found. Available: {registry.list_ids()}",
        )
    return descriptor.model_dump(by_alias=True, exclude_none=True)


@admin_router.post("/reload")
async def reload_widgets(request: Request):
    """Reload every registry from disk.

    Files that fail keep their previously published version; the
    response lists them per kind.
    """
    registries: dict[WidgetKind, WidgetRegistry] = request.app.state.registries
    report = {}
    for kind, registry in registries.items():
        if registry.root is None or not registry.root.exists():
            continue
        failures: dict[str, str] = {}
        try:
            registry.reload()
        except LoadError as e:
            failures = {wid: err.message for wid, err in e.result.failures}
        report[kind.value] = {"count": registry.count(), "failures": failures}
        logger.info(f"Reloaded {kind.value} widgets: {registry.count()} published, {len(failures)} failed")
    return report
