"""
Projection mapping for the map panel.

Maps a geodetic bounding box onto a rectangular page panel with a single
uniform scale, so the polygon keeps its shape, sits centered, and stays
clear of the panel edges by the padding fraction.

Page coordinates grow downward while latitude grows northward, so the Y
axis is flipped.
"""

from dataclasses import dataclass
from typing import Tuple

from core.exceptions import ProjectionError
from geometry_input.normalize import BoundingBox
from utils.logger import get_logger

logger = get_logger(__name__)

# Ranges below this (in degrees) cannot be scaled onto a panel
MIN_RANGE_DEGREES = 1e-12


@dataclass(frozen=True)
class PanelTransform:
    """
    Degrees-to-page transform for one panel.

    ``origin_x``/``origin_y`` is the top-left page position of the padded
    bbox; ``content_height`` is the padded latitude range in page units.
    """

    scale: float
    origin_x: float
    origin_y: float
    min_lon: float
    min_lat: float
    content_height: float

    def project(self, lon: float, lat: float) -> Tuple[float, float]:
        """Page position of a (lon, lat) vertex."""
        px = self.origin_x + (lon - self.min_lon) * self.scale
        py = self.origin_y + self.content_height - (lat - self.min_lat) * self.scale
        return px, py

    def unproject(self, px: float, py: float) -> Tuple[float, float]:
        """(lon, lat) under a page position; inverse of project()."""
        lon = self.min_lon + (px - self.origin_x) / self.scale
        lat = self.min_lat + (self.origin_y + self.content_height - py) / self.scale
        return lon, lat


def map_to_panel(bbox: BoundingBox,
                 panel_width: float,
                 panel_height: float,
                 padding_fraction: float = 0.15,
                 panel_x: float = 0.0,
                 panel_y: float = 0.0) -> PanelTransform:
    """
    Fit a bounding box into a panel with aspect-preserving scale.

    The bbox is first expanded by ``padding_fraction`` of each axis range.
    The limiting axis sets the scale; the other axis is centered in the
    leftover space.

    Args:
        bbox: Tight bounding box of the ring
        panel_width: Panel width in page units
        panel_height: Panel height in page units
        padding_fraction: Symmetric expansion per axis (0.15 = 15%)
        panel_x: Page x of the panel's left edge
        panel_y: Page y of the panel's top edge

    Returns:
        PanelTransform for projecting vertices

    Raises:
        ProjectionError(ZeroRange): If a padded axis range is zero or the
            panel has no area
    """
    padded = bbox.padded(padding_fraction)
    lon_range = padded.lon_range
    lat_range = padded.lat_range

    if lon_range <= MIN_RANGE_DEGREES or lat_range <= MIN_RANGE_DEGREES:
        raise ProjectionError(
            ProjectionError.ZERO_RANGE,
            f"Bounding box has zero extent (lon range {lon_range}, lat range {lat_range})"
        )
    if panel_width <= 0 or panel_height <= 0:
        raise ProjectionError(
            ProjectionError.ZERO_RANGE,
            f"Panel has no area ({panel_width} x {panel_height})"
        )

    scale = min(panel_width / lon_range, panel_height / lat_range)
    content_width = lon_range * scale
    content_height = lat_range * scale

    transform = PanelTransform(
        scale=scale,
        origin_x=panel_x + (panel_width - content_width) / 2,
        origin_y=panel_y + (panel_height - content_height) / 2,
        min_lon=padded.min_lon,
        min_lat=padded.min_lat,
        content_height=content_height,
    )

    logger.debug(f"  - Panel scale: {scale:.3f} pt/deg, origin ({transform.origin_x:.2f}, "
                 f"{transform.origin_y:.2f})")
    return transform
