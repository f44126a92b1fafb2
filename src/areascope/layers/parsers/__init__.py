"""Importers for user-uploaded layer data (GeoJSON, CSV)."""

from areascope.layers.parsers.csv_import import CsvParseResult, parse_csv
from areascope.layers.parsers.geojson import parse_geojson

__all__ = ["CsvParseResult", "parse_csv", "parse_geojson"]
