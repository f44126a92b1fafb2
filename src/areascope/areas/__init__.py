"""Comparison areas — models, the area manager and the comparison matrix.

AppState lives in areascope.areas.state and is imported from there; it
pulls in the analysis modules, which themselves depend on these models.
"""

from areascope.areas.manager import (
    SORT_STRATEGIES,
    ComparisonAreaManager,
    ComparisonMatrix,
    MatrixCell,
    MatrixGroup,
    MatrixRow,
)
from areascope.areas.models import (
    AREA_COLORS,
    DEFAULT_MAX_AREAS,
    ComparisonArea,
    SelectionPolygon,
)

__all__ = [
    "AREA_COLORS",
    "DEFAULT_MAX_AREAS",
    "SORT_STRATEGIES",
    "ComparisonArea",
    "ComparisonAreaManager",
    "ComparisonMatrix",
    "MatrixCell",
    "MatrixGroup",
    "MatrixRow",
    "SelectionPolygon",
]
