"""Analysis API — layers, selections, comparison areas and their metrics.

All state lives in the AppState stored on app.state.analysis; handlers
are thin wrappers that translate pipeline errors to HTTP status codes:

    TooManyAreasError            -> 409
    unknown area / layer id      -> 404
    invalid geometry or upload   -> 422
"""

from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from loguru import logger
from pydantic import BaseModel, Field

from areascope.areas.state import AppState
from areascope.errors import AreaNotFoundError, DegenerateGeometryError, TooManyAreasError
from areascope.geometry.kernel import validate_geometry
from areascope.geometry.model import Geometry
from areascope.layers.parsers.geojson import parse_geojson

router = APIRouter(prefix="/api/analysis", tags=["analysis"])


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class LayerFeaturesRequest(BaseModel):
    """Raw GeoJSON FeatureCollection for one layer."""
    geojson: dict


class CustomLayerRequest(BaseModel):
    """Uploaded custom layer content."""
    name: str = Field(min_length=1)
    content: str
    source_type: Literal["geojson", "csv"]
    file_name: str = ""


class ActiveLayersRequest(BaseModel):
    layer_ids: list[str]


class SelectionRequest(BaseModel):
    """A GeoJSON Polygon or MultiPolygon geometry."""
    geometry: dict


class CreateAreaRequest(BaseModel):
    name: str = ""
    geometry: dict


class UpdateAreaRequest(BaseModel):
    """Rename an area and/or replace its polygon."""
    name: Optional[str] = None
    geometry: Optional[dict] = None


class PinSelectionRequest(BaseModel):
    name: str = ""


class MoveAreaRequest(BaseModel):
    direction: Literal["up", "down"]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _get_state(request: Request) -> AppState:
    """Retrieve the AppState from app state."""
    state = getattr(request.app.state, "analysis", None)
    if state is None:
        raise HTTPException(503, "Analysis state not available")
    return state


def _parse_polygon(raw: dict) -> Geometry:
    """Parse and validate a selection polygon, raising 422 when unusable."""
    try:
        geometry = Geometry.from_geojson(raw)
        validate_geometry(geometry)
    except (ValueError, DegenerateGeometryError) as e:
        raise HTTPException(422, f"Invalid geometry: {e}")
    if geometry.family != "polygon":
        raise HTTPException(422, f"Selection must be a Polygon or MultiPolygon, got {geometry.type}")
    return geometry


def _require_area(state: AppState, area_id: str):
    try:
        return state.get_area(area_id)
    except AreaNotFoundError as e:
        raise HTTPException(404, str(e))


# ---------------------------------------------------------------------------
# Layers
# ---------------------------------------------------------------------------

@router.get("/layers")
async def list_layers(request: Request):
    """Manifest and custom layers, with active flags and loaded counts."""
    state = _get_state(request)
    active = set(state.active_layer_ids)
    return {
        "layers": [
            {
                **layer.to_dict(),
                "active": layer.layer_id in active,
                "feature_count": len(state.raw_features(layer.layer_id)),
            }
            for layer in state.layer_configs()
        ],
        "active": list(state.active_layer_ids),
    }


@router.post("/layers/{layer_id}/features")
async def load_layer_features(layer_id: str, body: LayerFeaturesRequest, request: Request):
    """Load raw features for a layer; every area is recomputed."""
    state = _get_state(request)
    if state.get_layer(layer_id) is None:
        raise HTTPException(404, f"Unknown layer: {layer_id}")
    features = parse_geojson(body.geojson)
    state.set_layer_features(layer_id, features)
    return {"layer_id": layer_id, "feature_count": len(features)}


@router.post("/layers/custom")
async def upload_custom_layer(body: CustomLayerRequest, request: Request):
    """Import GeoJSON or CSV content as a new active custom layer."""
    state = _get_state(request)
    try:
        layer = state.import_custom_layer(
            body.name, body.content, body.source_type, file_name=body.file_name
        )
    except ValueError as e:
        logger.warning(f"Custom layer upload '{body.name}' rejected: {e}")
        raise HTTPException(422, str(e))
    return {**layer.to_dict(), "feature_count": len(state.raw_features(layer.layer_id))}


@router.delete("/layers/custom/{layer_id}")
async def delete_custom_layer(layer_id: str, request: Request):
    state = _get_state(request)
    try:
        state.remove_custom_layer(layer_id)
    except KeyError:
        raise HTTPException(404, f"Unknown custom layer: {layer_id}")
    return {"status": "deleted", "layer_id": layer_id}


@router.put("/layers/active")
async def set_active_layers(body: ActiveLayersRequest, request: Request):
    """Replace the active layer set."""
    state = _get_state(request)
    unknown = [i for i in body.layer_ids if state.get_layer(i) is None]
    if unknown:
        raise HTTPException(422, f"Unknown layers: {', '.join(unknown)}")
    state.set_active_layers(body.layer_ids)
    return {"active": list(state.active_layer_ids)}


# ---------------------------------------------------------------------------
# Working selection
# ---------------------------------------------------------------------------

@router.put("/selection")
async def set_selection(body: SelectionRequest, request: Request):
    """Set the working selection and return its per-layer data."""
    state = _get_state(request)
    selection = state.set_selection(_parse_polygon(body.geometry))
    return {
        "selection": selection.to_dict(),
        "layers": {k: v.to_dict() for k, v in state.selection_data.items()},
    }


@router.delete("/selection")
async def clear_selection(request: Request):
    _get_state(request).set_selection(None)
    return {"status": "cleared"}


@router.post("/selection/pin")
async def pin_selection(body: PinSelectionRequest, request: Request):
    """Save the working selection as a comparison area."""
    state = _get_state(request)
    try:
        area_id = state.pin_selection(body.name)
    except TooManyAreasError as e:
        raise HTTPException(409, str(e))
    except ValueError as e:
        raise HTTPException(422, str(e))
    return state.get_area(area_id).to_dict()


# ---------------------------------------------------------------------------
# Areas
# ---------------------------------------------------------------------------

@router.get("/areas")
async def list_areas(
    request: Request,
    sort: Literal["manual", "name", "size"] = Query("manual"),
):
    state = _get_state(request)
    return {
        "areas": [a.to_dict() for a in state.manager.sort_by(sort)],
        "max_areas": state.manager.max_areas,
    }


@router.post("/areas")
async def create_area(body: CreateAreaRequest, request: Request):
    """Create a comparison area from a polygon."""
    state = _get_state(request)
    geometry = _parse_polygon(body.geometry)
    try:
        area_id = state.add_area(body.name, geometry)
    except TooManyAreasError as e:
        raise HTTPException(409, str(e))
    return state.get_area(area_id).to_dict()


@router.patch("/areas/{area_id}")
async def update_area(area_id: str, body: UpdateAreaRequest, request: Request):
    """Rename an area and/or replace its polygon."""
    state = _get_state(request)
    _require_area(state, area_id)
    geometry = _parse_polygon(body.geometry) if body.geometry is not None else None
    if body.name is not None:
        state.rename_area(area_id, body.name)
    if geometry is not None:
        state.update_area_polygon(area_id, geometry)
    return state.get_area(area_id).to_dict()


@router.delete("/areas/{area_id}")
async def delete_area(area_id: str, request: Request):
    state = _get_state(request)
    try:
        state.remove_area(area_id)
    except AreaNotFoundError as e:
        raise HTTPException(404, str(e))
    return {"status": "deleted", "area_id": area_id}


@router.post("/areas/{area_id}/move")
async def move_area(area_id: str, body: MoveAreaRequest, request: Request):
    """Move an area up or down in the manual order."""
    state = _get_state(request)
    try:
        ordered = state.move_area(area_id, body.direction)
    except AreaNotFoundError as e:
        raise HTTPException(404, str(e))
    return {"order": [a.area_id for a in ordered]}


@router.get("/areas/{area_id}/stats")
async def area_stats(area_id: str, request: Request):
    """Per-layer data and statistics for one area."""
    area = _require_area(_get_state(request), area_id)
    return area.to_dict(include_layers=True)


@router.get("/areas/{area_id}/metrics")
async def area_metrics(area_id: str, request: Request):
    """Derived metrics (POI diversity, land-use mix, connectivity...)."""
    state = _get_state(request)
    _require_area(state, area_id)
    return state.derived_metrics(area_id).to_dict()


@router.get("/areas/{area_id}/clipped/{layer_id}")
async def clipped_layer(area_id: str, layer_id: str, request: Request):
    """An area's clipped layer as a GeoJSON FeatureCollection."""
    state = _get_state(request)
    _require_area(state, area_id)
    try:
        return state.clipped_geojson(area_id, layer_id)
    except KeyError as e:
        raise HTTPException(404, str(e).strip("'\""))


# ---------------------------------------------------------------------------
# Comparison and quality
# ---------------------------------------------------------------------------

@router.get("/comparison")
async def comparison(
    request: Request,
    sort: Literal["manual", "name", "size"] = Query("manual"),
):
    """Layer x area comparison matrix with per-statistic leaders."""
    return _get_state(request).comparison_matrix(sort).to_dict()


@router.get("/compare")
async def compare_areas(request: Request, a: str, b: str):
    """POI totals, density and diversity of area a relative to area b."""
    state = _get_state(request)
    try:
        rows = state.compare_areas(a, b)
    except AreaNotFoundError as e:
        raise HTTPException(404, str(e))
    return {"area_a": a, "area_b": b, "metrics": [row.to_dict() for row in rows]}


@router.get("/insights")
async def insights(request: Request):
    """Auto-generated observations for one area or a pair of areas."""
    return {"insights": [i.to_dict() for i in _get_state(request).insights()]}


@router.get("/quality")
async def quality(request: Request, area_id: Optional[str] = None):
    """Data quality for one area, or averaged over all areas (null when none)."""
    state = _get_state(request)
    if area_id is not None:
        _require_area(state, area_id)
    result = state.quality(area_id)
    return result.to_dict() if result is not None else None
