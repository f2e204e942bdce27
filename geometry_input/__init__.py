"""
Geometry Input Processing Package

Validates stored GeoJSON polygons for export: parses the exterior ring,
repairs self-intersections, and computes geodesic area and bounding box.

Modules:
    normalize: Ring cleaning, repair, area and bounding box

Usage:
    from geometry_input import normalize_polygon

    normalized = normalize_polygon(record.geometry)
    normalized.area_text  # '1.00000000000'
"""

from geometry_input.normalize import (
    BoundingBox,
    NormalizedPolygon,
    normalize_polygon,
)

__all__ = [
    'BoundingBox',
    'NormalizedPolygon',
    'normalize_polygon',
]
