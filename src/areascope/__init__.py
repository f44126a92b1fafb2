"""AreaScope — clip map layers to selection polygons and compare areas."""

__version__ = "0.1.0"
