"""Parse CSV with latitude/longitude columns into point features.

Uses stdlib csv. Coordinate columns are detected from common header names
(lat, latitude, y, lon, lng, longitude, x, ...) unless given explicitly.
All other columns become feature properties. Coordinates are stored as
[lon, lat] (GeoJSON convention).
"""

from __future__ import annotations

import csv
import io
import math
import re
from dataclasses import dataclass
from typing import Optional

from areascope.geometry.model import Geometry
from areascope.layers.layer import Feature, FeatureCollection

LAT_PATTERNS = (
    re.compile(r"^lat$", re.I),
    re.compile(r"^latitude$", re.I),
    re.compile(r"^lat_", re.I),
    re.compile(r"_lat$", re.I),
    re.compile(r"^y$", re.I),
    re.compile(r"^lat\d*$", re.I),
)

LON_PATTERNS = (
    re.compile(r"^lon$", re.I),
    re.compile(r"^lng$", re.I),
    re.compile(r"^longitude$", re.I),
    re.compile(r"^long$", re.I),
    re.compile(r"^lon_", re.I),
    re.compile(r"_lon$", re.I),
    re.compile(r"^x$", re.I),
    re.compile(r"^lng\d*$", re.I),
    re.compile(r"^lon\d*$", re.I),
)


@dataclass(frozen=True)
class CsvParseResult:
    """Parsed point features plus row bookkeeping."""

    features: FeatureCollection
    row_count: int
    error_count: int


def detect_coordinate_columns(headers: list[str]) -> tuple[Optional[str], Optional[str]]:
    """Return (lat_column, lon_column) detected from headers, None if absent."""
    lat_col: Optional[str] = None
    lon_col: Optional[str] = None
    for header in headers:
        name = header.strip()
        if lat_col is None and any(p.search(name) for p in LAT_PATTERNS):
            lat_col = header
        elif lon_col is None and any(p.search(name) for p in LON_PATTERNS):
            lon_col = header
        if lat_col and lon_col:
            break
    return lat_col, lon_col


def detect_delimiter(sample: str) -> str:
    """Pick the most frequent of , ; tab | in the first line."""
    first_line = sample.splitlines()[0] if sample else ""
    candidates = [",", ";", "\t", "|"]
    return max(candidates, key=first_line.count)


def parse_csv(
    csv_string: str,
    lat_column: Optional[str] = None,
    lon_column: Optional[str] = None,
    delimiter: Optional[str] = None,
) -> CsvParseResult:
    """Parse CSV content into point features.

    Args:
        csv_string: Raw CSV content with a header row.
        lat_column: Latitude column name; detected when omitted.
        lon_column: Longitude column name; detected when omitted.
        delimiter: Field delimiter; detected when omitted.

    Returns:
        CsvParseResult. Rows with missing, non-numeric or out-of-range
        coordinates are counted in error_count and skipped.

    Raises:
        ValueError: If coordinate columns can't be found.
    """
    delimiter = delimiter or detect_delimiter(csv_string)
    reader = csv.DictReader(io.StringIO(csv_string), delimiter=delimiter)
    headers = list(reader.fieldnames or [])
    if not headers:
        raise ValueError("CSV has no header row")

    detected_lat, detected_lon = detect_coordinate_columns(headers)
    lat_col = lat_column or detected_lat
    lon_col = lon_column or detected_lon
    if not lat_col or not lon_col or lat_col not in headers or lon_col not in headers:
        raise ValueError("Could not find latitude/longitude columns")

    features: list[Feature] = []
    rows = 0
    errors = 0
    for idx, row in enumerate(reader):
        rows += 1
        try:
            lat = float(row[lat_col])
            lon = float(row[lon_col])
        except (ValueError, TypeError, KeyError):
            errors += 1
            continue
        if not (math.isfinite(lat) and math.isfinite(lon)) or abs(lat) > 90 or abs(lon) > 180:
            errors += 1
            continue

        properties = {
            key: value for key, value in row.items()
            if key not in (lat_col, lon_col) and key is not None
        }
        features.append(
            Feature(
                geometry=Geometry(type="Point", coordinates=[lon, lat]),
                properties=properties,
                feature_id=f"csv-{idx}",
            )
        )

    return CsvParseResult(
        features=FeatureCollection.of(features),
        row_count=rows,
        error_count=errors,
    )
