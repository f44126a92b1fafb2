"""Feature clipper — restrict a feature collection to a selection polygon.

Per geometry family:
    point   -> kept iff inside the selection (boundary inclusive)
    line    -> kept whole iff any vertex is inside or the line crosses the
               selection boundary; lines are never split at the boundary,
               so total length counts the full line
    polygon -> replaced by its true intersection with the selection
               (shapely boolean intersection in the lon/lat plane);
               features fully inside are kept unchanged, features with an
               empty intersection are dropped

Output order matches input order. Clipping an already-clipped collection
against the same selection returns the same collection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from loguru import logger
from shapely.errors import GEOSException
from shapely.geometry import MultiPolygon, Polygon, mapping, shape
from shapely.prepared import prep

from areascope.errors import DegenerateGeometryError, EmptySelectionError
from areascope.geometry.kernel import point_in_polygon, polygon_area, validate_geometry
from areascope.geometry.model import Geometry
from areascope.layers.layer import Feature, FeatureCollection


@dataclass(frozen=True)
class ClipResult:
    """Clipped features plus the number of degenerate features dropped."""

    features: FeatureCollection
    dropped_count: int = 0


def _to_lists(coords):
    """Convert shapely's nested coordinate tuples to GeoJSON-style lists."""
    if isinstance(coords, (list, tuple)) and coords and isinstance(coords[0], (int, float)):
        return [float(c) for c in coords[:2]]
    return [_to_lists(c) for c in coords]


def _polygonal_part(geom) -> Optional[Geometry]:
    """Extract the areal part of a shapely intersection result."""
    if geom.is_empty:
        return None
    if isinstance(geom, (Polygon, MultiPolygon)):
        polys = [geom] if isinstance(geom, Polygon) else list(geom.geoms)
    else:
        # GeometryCollection from touching edges or vertices
        polys = []
        for part in getattr(geom, "geoms", []):
            if isinstance(part, Polygon):
                polys.append(part)
            elif isinstance(part, MultiPolygon):
                polys.extend(part.geoms)
    polys = [p for p in polys if not p.is_empty and p.area > 0]
    if not polys:
        return None
    if len(polys) == 1:
        out = mapping(polys[0])
    else:
        out = mapping(MultiPolygon(polys))
    return Geometry(type=out["type"], coordinates=_to_lists(out["coordinates"]))


class _Selection:
    """A validated selection polygon with its shapely counterpart."""

    def __init__(self, geometry: Geometry) -> None:
        if geometry.type not in ("Polygon", "MultiPolygon"):
            raise EmptySelectionError(f"Selection must be a polygon, got {geometry.type}")
        try:
            validate_geometry(geometry)
        except DegenerateGeometryError as e:
            raise EmptySelectionError(f"Degenerate selection polygon: {e}") from e
        if polygon_area(geometry) <= 0:
            raise EmptySelectionError("Selection polygon has zero area")
        self.geometry = geometry
        shp = shape(geometry.to_geojson())
        if not shp.is_valid:
            shp = shp.buffer(0)
        self.shape = shp
        self.prepared = prep(shp)

    def contains_point(self, position) -> bool:
        return point_in_polygon(position, self.geometry)


def _clip_point(feature: Feature, selection: _Selection) -> Optional[Feature]:
    geom = feature.geometry
    if geom.type == "Point":
        return feature if selection.contains_point(geom.coordinates) else None
    # MultiPoint: kept whole if any member is inside
    if any(selection.contains_point(pos) for pos in geom.coordinates):
        return feature
    return None


def _clip_line(feature: Feature, selection: _Selection) -> Optional[Feature]:
    geom = feature.geometry
    lines = [geom.coordinates] if geom.type == "LineString" else geom.coordinates
    for line in lines:
        if any(selection.contains_point(pos) for pos in line):
            return feature
    # No vertex inside; the line may still cross the selection
    if selection.prepared.intersects(shape(geom.to_geojson())):
        return feature
    return None


def _clip_polygon(feature: Feature, selection: _Selection) -> Optional[Feature]:
    shp = shape(feature.geometry.to_geojson())
    if not shp.is_valid:
        shp = shp.buffer(0)
    if selection.prepared.covers(shp):
        return feature
    if not selection.prepared.intersects(shp):
        return None
    clipped = _polygonal_part(shp.intersection(selection.shape))
    if clipped is None:
        return None
    return feature.with_geometry(clipped)


_CLIPPERS = {
    "point": _clip_point,
    "line": _clip_line,
    "polygon": _clip_polygon,
}


def clip(
    features: FeatureCollection,
    selection: Geometry,
    geometry_type: str | None = None,
) -> ClipResult:
    """Clip a feature collection to a selection polygon.

    Args:
        features: The collection to clip.
        selection: Selection Polygon or MultiPolygon.
        geometry_type: Optional layer geometry family. Features of a
            different family are dropped as degenerate. When omitted each
            feature is clipped according to its own geometry.

    Returns:
        ClipResult with the clipped collection (input order preserved) and
        the number of features excluded as degenerate.

    Raises:
        EmptySelectionError: If the selection is not a measurable polygon.
    """
    sel = _Selection(selection)
    kept: list[Feature] = []
    dropped = 0

    for feature in features:
        geom = feature.geometry
        try:
            validate_geometry(geom)
            family = geom.family
            if geometry_type is not None and family != geometry_type:
                raise DegenerateGeometryError(
                    f"{geom.type} feature in a {geometry_type} layer"
                )
            clipped = _CLIPPERS[family](feature, sel)
        except DegenerateGeometryError as e:
            dropped += 1
            logger.debug(f"Dropped feature {feature.feature_id}: {e}")
            continue
        except GEOSException as e:
            dropped += 1
            logger.warning(f"Failed to clip feature {feature.feature_id}: {e}")
            continue
        if clipped is not None:
            kept.append(clipped)

    if dropped:
        logger.warning(f"Clip excluded {dropped} degenerate feature(s)")
    return ClipResult(features=FeatureCollection.of(kept), dropped_count=dropped)


def clip_features(
    features: FeatureCollection,
    selection: Geometry,
    geometry_type: str | None = None,
) -> FeatureCollection:
    """Clip and return only the collection (see clip)."""
    return clip(features, selection, geometry_type).features
