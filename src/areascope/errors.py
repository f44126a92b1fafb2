"""Exception hierarchy for the clipping and metrics pipeline.

Geometry-level errors are recovered inside the pipeline (the offending
feature is dropped and counted). Capacity and caller-contract errors are
surfaced to the caller.
"""

from __future__ import annotations


class AreaScopeError(Exception):
    """Base class for all pipeline errors."""


class DegenerateGeometryError(AreaScopeError):
    """Raised when a geometry cannot be measured or clipped.

    Covers polygons with fewer than 3 distinct ring points, zero-length
    lines, NaN/infinite coordinates and unsupported geometry types.
    """


class EmptySelectionError(AreaScopeError):
    """Raised when a selection polygon has no measurable area."""


class TooManyAreasError(AreaScopeError):
    """Raised when adding a comparison area beyond the configured maximum."""

    def __init__(self, limit: int) -> None:
        super().__init__(
            f"Cannot add more than {limit} comparison areas; remove one first"
        )
        self.limit = limit


class AreaNotFoundError(AreaScopeError, KeyError):
    """Raised when an operation references an unknown area id."""

    def __init__(self, area_id: str) -> None:
        super().__init__(f"Area not found: {area_id}")
        self.area_id = area_id

    def __str__(self) -> str:
        return f"Area not found: {self.area_id}"
