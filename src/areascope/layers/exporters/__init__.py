"""Exporters for clipped layer data."""

from areascope.layers.exporters.geojson import export_geojson

__all__ = ["export_geojson"]
