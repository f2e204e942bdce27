"""
Geometry Normalization Module

Validates and repairs a stored GeoJSON polygon, then derives the values the
export pipeline needs: the exterior ring, its geodesic area and its bounding box.

Area is computed on the WGS84 ellipsoid with pyproj's geodesic polygon area,
the same method for every caller, and reported in hectares with 11 fractional
digits to match the stored AREA convention.
"""

import json
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List, Sequence, Tuple

from pyproj import Geod
from shapely import make_valid
from shapely.geometry import Polygon

from core.exceptions import GeometryError
from utils.logger import get_logger

logger = get_logger(__name__)

WGS84_GEOD = Geod(ellps='WGS84')

AREA_DECIMALS = 11
SQ_METERS_PER_HECTARE = 10000.0

Coordinate = Tuple[float, float]


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box over ring vertices, in decimal degrees."""

    min_lon: float
    max_lon: float
    min_lat: float
    max_lat: float

    @property
    def lon_range(self) -> float:
        return self.max_lon - self.min_lon

    @property
    def lat_range(self) -> float:
        return self.max_lat - self.min_lat

    @property
    def center(self) -> Coordinate:
        return ((self.min_lon + self.max_lon) / 2, (self.min_lat + self.max_lat) / 2)

    def padded(self, fraction: float) -> 'BoundingBox':
        """Expand each axis symmetrically by ``fraction`` of its range."""
        lon_pad = self.lon_range * fraction
        lat_pad = self.lat_range * fraction
        return BoundingBox(
            min_lon=self.min_lon - lon_pad,
            max_lon=self.max_lon + lon_pad,
            min_lat=self.min_lat - lat_pad,
            max_lat=self.max_lat + lat_pad,
        )


@dataclass(frozen=True)
class NormalizedPolygon:
    """
    Output of the normalizer.

    ``ring`` holds the distinct exterior vertices in input order, without the
    closing repeat; ``closed_ring`` adds it back for writers that need it.
    """

    ring: Tuple[Coordinate, ...]
    area_m2: float
    bbox: BoundingBox

    @property
    def closed_ring(self) -> Tuple[Coordinate, ...]:
        return self.ring + (self.ring[0],)

    @property
    def area_hectares(self) -> float:
        return self.area_m2 / SQ_METERS_PER_HECTARE

    @property
    def area_text(self) -> str:
        """Hectares with 11 fractional digits, e.g. ``"1.00012345678"``."""
        return format_hectares(self.area_m2)

    def to_shapely(self) -> Polygon:
        return Polygon(self.closed_ring)


def format_hectares(area_m2: float) -> str:
    """Format square meters as a hectare string with 11 fractional digits."""
    return f"{area_m2 / SQ_METERS_PER_HECTARE:.{AREA_DECIMALS}f}"


def geodesic_area_m2(ring: Sequence[Coordinate]) -> float:
    """
    Unsigned geodesic area of a ring on the WGS84 ellipsoid.

    The ring may be open or closed and wound either way; the sign pyproj
    reports for winding order is dropped.
    """
    lons = [lon for lon, _ in ring]
    lats = [lat for _, lat in ring]
    area, _ = WGS84_GEOD.polygon_area_perimeter(lons, lats)
    return abs(area)


def _load_geometry(polygon: Any) -> dict:
    """Accept a GeoJSON dict, a JSON string, or a Feature wrapping a Polygon."""
    if isinstance(polygon, (str, bytes)):
        try:
            polygon = json.loads(polygon)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise GeometryError(
                GeometryError.EMPTY_RING, f"Geometry is not valid JSON: {e}"
            ) from e

    if not isinstance(polygon, dict):
        raise GeometryError(
            GeometryError.EMPTY_RING,
            f"Geometry must be a GeoJSON object, got {type(polygon).__name__}"
        )

    if polygon.get('type') == 'Feature':
        polygon = polygon.get('geometry') or {}

    if polygon.get('type') != 'Polygon':
        raise GeometryError(
            GeometryError.EMPTY_RING,
            f"Only Polygon geometry is supported, got {polygon.get('type')!r}"
        )
    return polygon


def _exterior_coordinates(geometry: dict) -> List[Coordinate]:
    rings = geometry.get('coordinates')
    if not isinstance(rings, list) or not rings or not isinstance(rings[0], list):
        raise GeometryError(GeometryError.EMPTY_RING, "Polygon has no exterior ring")

    if len(rings) > 1:
        logger.debug(f"  - Ignoring {len(rings) - 1} interior ring(s)")

    coords = []
    for position in rings[0]:
        try:
            lon, lat = float(position[0]), float(position[1])
        except (TypeError, ValueError, IndexError) as e:
            raise GeometryError(
                GeometryError.EMPTY_RING, f"Invalid coordinate {position!r}: {e}"
            ) from e
        if not (math.isfinite(lon) and math.isfinite(lat)):
            raise GeometryError(
                GeometryError.EMPTY_RING, f"Non-finite coordinate {position!r}"
            )
        coords.append((lon, lat))
    return coords


def clean_ring(coords: Sequence[Coordinate]) -> List[Coordinate]:
    """
    Drop consecutive duplicate vertices and the closing repeat.

    Returns the open ring; callers check the vertex count.
    """
    ring: List[Coordinate] = []
    for coord in coords:
        if not ring or coord != ring[-1]:
            ring.append(coord)
    while len(ring) > 1 and ring[0] == ring[-1]:
        ring.pop()
    return ring


def _repair_ring(ring: List[Coordinate]) -> List[Coordinate]:
    """
    Repair a self-intersecting ring with make_valid().

    When the repair splits the ring, the largest resulting polygon is kept.
    """
    polygon = Polygon(ring)
    if polygon.is_valid:
        return ring

    logger.warning("Invalid polygon ring detected (self-intersection)")
    repaired = make_valid(polygon)

    candidates = [
        geom for geom in getattr(repaired, 'geoms', [repaired])
        if geom.geom_type == 'Polygon' and not geom.is_empty
    ]
    for geom in getattr(repaired, 'geoms', []):
        if geom.geom_type == 'MultiPolygon':
            candidates.extend(geom.geoms)

    if not candidates:
        raise GeometryError(
            GeometryError.DEGENERATE_AREA, "Polygon ring has no area after repair"
        )
    if len(candidates) > 1:
        logger.warning(f"  - Repair produced {len(candidates)} parts, keeping the largest")

    largest = max(candidates, key=lambda geom: geom.area)
    logger.info("  ✓ Ring repaired using make_valid()")
    return clean_ring(list(largest.exterior.coords))


def _is_zero_hectares(area_m2: float) -> bool:
    return Decimal(format_hectares(area_m2)) == 0


def normalize_polygon(polygon: Any) -> NormalizedPolygon:
    """
    Validate a GeoJSON polygon and derive ring, area and bounding box.

    Args:
        polygon: GeoJSON Polygon as dict or JSON text. Only the exterior
            ring is used; holes are ignored.

    Returns:
        NormalizedPolygon with the open exterior ring, geodesic area in
        square meters and the tight (unpadded) bounding box

    Raises:
        GeometryError(EmptyRing): Malformed JSON, wrong geometry type, or
            fewer than 3 distinct vertices
        GeometryError(DegenerateArea): Area rounds to 0 hectares at 11
            fractional digits

    Example:
        >>> result = normalize_polygon({'type': 'Polygon', 'coordinates': [ring]})
        >>> result.area_text
        '1.00000000000'
    """
    geometry = _load_geometry(polygon)
    ring = clean_ring(_exterior_coordinates(geometry))

    if len(set(ring)) < 3:
        raise GeometryError(
            GeometryError.EMPTY_RING,
            f"Polygon ring needs at least 3 distinct vertices, got {len(set(ring))}"
        )

    ring = _repair_ring(ring)
    area_m2 = geodesic_area_m2(ring)
    if _is_zero_hectares(area_m2):
        raise GeometryError(
            GeometryError.DEGENERATE_AREA, "Polygon area rounds to 0 hectares"
        )

    lons = [lon for lon, _ in ring]
    lats = [lat for _, lat in ring]
    bbox = BoundingBox(min(lons), max(lons), min(lats), max(lats))

    logger.debug(f"  - Normalized ring: {len(ring)} vertices, area {format_hectares(area_m2)} ha")
    logger.debug(
        f"  - Bounding box: ({bbox.min_lon:.6f}, {bbox.min_lat:.6f}) to "
        f"({bbox.max_lon:.6f}, {bbox.max_lat:.6f})"
    )

    return NormalizedPolygon(ring=tuple(ring), area_m2=area_m2, bbox=bbox)
