"""
Shapefile package generator for the Tapak Proyek exporter.

This module writes polygon records as an ESRI Shapefile with the fixed
AMDALNET attribute schema and returns it as a deflate-compressed ZIP held in
memory. The shapefile set (.shp, .shx, .dbf, .prj, .cpg) sits inside a named
folder in the archive, by default ``Tapak_proyek/``.

The DBF field widths come from utils.attribute_table.interchange_schema(),
written through geopandas' fiona engine because it honours an explicit schema.
"""

import io
import tempfile
import zipfile
from pathlib import Path
from typing import Dict, Optional, Sequence

import geopandas as gpd
from shapely.geometry import Polygon

from config.config_loader import DEFAULT_INTERCHANGE_SETTINGS
from core.exceptions import PackagingError, RenderError
from core.models import PolygonRecord
from geometry_input.normalize import normalize_polygon
from utils.attribute_table import interchange_schema, typed_attributes
from utils.logger import get_logger

logger = get_logger(__name__)

SHAPEFILE_EXTENSIONS = ('.shp', '.shx', '.dbf', '.prj', '.cpg')

# Fixed member timestamp so identical shapefiles give identical archives
ZIP_ENTRY_DATE = (1980, 1, 1, 0, 0, 0)


def build_feature_frame(records: Sequence[PolygonRecord]) -> gpd.GeoDataFrame:
    """
    Build a GeoDataFrame with one polygon feature per record.

    Each geometry is normalized first (ring repair, degenerate checks), and
    attributes come from the shared attribute table so field order and
    types match the PDF.

    Raises:
        GeometryError: If any record's geometry fails normalization
    """
    rows = []
    for record in records:
        normalized = normalize_polygon(record.geometry)
        row = dict(typed_attributes(record))
        row['geometry'] = Polygon(normalized.closed_ring)
        rows.append(row)

    return gpd.GeoDataFrame(rows, geometry='geometry', crs='EPSG:4326')


def zip_directory(source_dir: Path, folder_name: str) -> bytes:
    """
    Deflate every file of source_dir into an in-memory ZIP under folder_name/.

    Members are added in sorted order with a fixed timestamp.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as zf:
        for path in sorted(source_dir.iterdir()):
            if path.suffix.lower() not in SHAPEFILE_EXTENSIONS:
                continue
            info = zipfile.ZipInfo(f"{folder_name}/{path.name}", date_time=ZIP_ENTRY_DATE)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o644 << 16
            zf.writestr(info, path.read_bytes())
            logger.debug(f"  - Added {folder_name}/{path.name}")
    return buffer.getvalue()


def pack_interchange(records: Sequence[PolygonRecord],
                     settings: Optional[Dict] = None) -> bytes:
    """
    Serialize polygon records into a zipped shapefile package.

    All features share one polygon layer. Field types are fixed: OBJECTID_1
    and TAHUN integer, AREA floating point (parsed from the stored decimal
    string), everything else text.

    Args:
        records: One or more polygon records, written in the given order
        settings: Interchange settings (folder_name, layer_name, encoding);
            defaults to DEFAULT_INTERCHANGE_SETTINGS

    Returns:
        ZIP archive bytes

    Raises:
        PackagingError(EmptyInput): If records is empty
        GeometryError: If a record's geometry fails normalization
        RenderError(Internal): If writing the shapefile or archive fails
    """
    if not records:
        raise PackagingError(
            PackagingError.EMPTY_INPUT, "No polygons to export"
        )

    settings = {**DEFAULT_INTERCHANGE_SETTINGS, **(settings or {})}
    folder_name = settings['folder_name']
    layer_name = settings['layer_name']

    logger.info(f"Packaging {len(records)} polygon(s) into {folder_name}/{layer_name}.shp...")

    features = build_feature_frame(records)

    try:
        with tempfile.TemporaryDirectory() as tmpdir:
            shp_path = Path(tmpdir) / f"{layer_name}.shp"
            features.to_file(
                shp_path,
                driver='ESRI Shapefile',
                engine='fiona',
                schema=interchange_schema(),
                encoding=settings['encoding'],
            )
            content = zip_directory(Path(tmpdir), folder_name)
    except Exception as e:
        logger.error(f"Failed to build shapefile package: {e}", exc_info=True)
        raise RenderError(
            RenderError.INTERNAL, f"Shapefile package could not be written: {e}"
        ) from e

    logger.info(f"  ✓ Shapefile package built ({len(content):,} bytes)")
    return content
