"""
Export orchestration for the Tapak Proyek exporter.

Entry points used by the surrounding application:
    export_map: One polygon + its project -> PDF map sheet artifact
    export_interchange: A project's polygons -> zipped shapefile artifact
    ExportService: Same operations keyed by id, resolving records through
        the persistence collaborator's lookups

Both export operations are synchronous and side-effect free apart from
logging: they read immutable snapshots and return fresh bytes, never writing
to persistence or caching artifacts.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional, Sequence

from config.config_loader import load_interchange_settings
from core.exceptions import NotFoundError, PackagingError
from core.models import (
    PDF_MIME_TYPE,
    ZIP_MIME_TYPE,
    Author,
    ExportArtifact,
    PolygonLookup,
    PolygonRecord,
    Project,
    ProjectLookup,
)
from geometry_input.normalize import NormalizedPolygon, normalize_polygon
from utils.logger import get_logger
from utils.pdf_generator import MapSheetData, generate_map_pdf
from utils.shapefile_packager import pack_interchange

logger = get_logger(__name__)

MAP_FILENAME_SUFFIX = 'Peta_Tapak_Proyek.pdf'
INTERCHANGE_FILENAME_SUFFIX = 'Tapak_proyek.zip'

# Stored areas may differ from the recomputed value by rounding in the last digits
AREA_MISMATCH_TOLERANCE_HA = Decimal('0.0001')


def safe_filename_stem(project_name: str) -> str:
    """Replace path separators in a project name so it is usable as a filename."""
    stem = project_name.replace('/', '_').replace('\\', '_').strip()
    return stem or 'Proyek'


def map_filename(project_name: str) -> str:
    return f"{safe_filename_stem(project_name)}_{MAP_FILENAME_SUFFIX}"


def interchange_filename(project_name: str) -> str:
    return f"{safe_filename_stem(project_name)}_{INTERCHANGE_FILENAME_SUFFIX}"


def _check_stored_area(record: PolygonRecord, normalized: NormalizedPolygon) -> None:
    """Warn when the stored AREA disagrees with the geometry."""
    try:
        stored = record.area_decimal
    except InvalidOperation:
        logger.warning(f"  ⚠ Polygon {record.object_id}: stored area {record.area!r} is not numeric")
        return

    computed = Decimal(normalized.area_text)
    if abs(stored - computed) > AREA_MISMATCH_TOLERANCE_HA:
        logger.warning(
            f"  ⚠ Polygon {record.object_id}: stored area {record.area} ha differs from "
            f"geometry area {normalized.area_text} ha"
        )


def export_map(polygon: Optional[PolygonRecord],
               project: Optional[Project],
               author: Optional[Author] = None,
               rendered_at: Optional[datetime] = None,
               config: Optional[Dict] = None) -> ExportArtifact:
    """
    Render the map sheet PDF for one polygon.

    Args:
        polygon: Resolved polygon record, or None when the lookup found nothing
        project: Resolved parent project, or None when the lookup found nothing
        author: Optional creator printed in the footer
        rendered_at: Render timestamp; defaults to now (UTC). Passing a fixed
            value makes the output byte-for-byte reproducible
        config: Configuration dictionary (optional, will load if not provided)

    Returns:
        ExportArtifact with the PDF bytes, ``{project}_Peta_Tapak_Proyek.pdf``
        and ``application/pdf``

    Raises:
        NotFoundError(Project | Polygon): If a lookup returned nothing
        GeometryError, CoordinateError, ProjectionError, RenderError: From
            the pipeline stages; no artifact is produced
    """
    if project is None:
        raise NotFoundError(NotFoundError.PROJECT, "Project not found")
    if polygon is None:
        raise NotFoundError(NotFoundError.POLYGON, "Polygon not found")

    logger.info("=" * 80)
    logger.info(f"Exporting map sheet: {project.name} (OBJECTID {polygon.object_id})")
    logger.info("=" * 80)

    normalized = normalize_polygon(polygon.geometry)
    logger.info(f"  - Ring: {len(normalized.ring)} vertices, {normalized.area_text} ha")
    _check_stored_area(polygon, normalized)

    data = MapSheetData(
        record=polygon,
        polygon=normalized,
        project_name=project.name,
        coordinate_system=project.coordinate_system,
        rendered_at=rendered_at or datetime.now(timezone.utc),
        author=author or Author(),
    )
    content = generate_map_pdf(data, config)

    artifact = ExportArtifact(content, map_filename(project.name), PDF_MIME_TYPE)
    logger.info(f"✓ {artifact.filename} ({artifact.size:,} bytes)")
    return artifact


def export_interchange(polygons: Sequence[PolygonRecord],
                       project: Optional[Project],
                       config: Optional[Dict] = None) -> ExportArtifact:
    """
    Package a project's polygons as a zipped shapefile.

    Polygons are written ordered by object id.

    Raises:
        NotFoundError(Project): If project is None
        PackagingError(EmptyInput): If there are no polygons
        GeometryError, RenderError: From normalization or shapefile writing
    """
    if project is None:
        raise NotFoundError(NotFoundError.PROJECT, "Project not found")
    if not polygons:
        raise PackagingError(
            PackagingError.EMPTY_INPUT, f"Project {project.name!r} has no polygons to export"
        )

    logger.info("=" * 80)
    logger.info(f"Exporting shapefile package: {project.name} ({len(polygons)} polygon(s))")
    logger.info("=" * 80)

    ordered = sorted(polygons, key=lambda record: record.object_id)
    content = pack_interchange(ordered, load_interchange_settings(config))

    artifact = ExportArtifact(content, interchange_filename(project.name), ZIP_MIME_TYPE)
    logger.info(f"✓ {artifact.filename} ({artifact.size:,} bytes)")
    return artifact


class ExportService:
    """
    Id-based export entry points over the persistence lookups.

    Args:
        projects: Resolves projects by id
        polygons: Resolves a project's polygons by project id
        config: Configuration dictionary (optional, will load if not provided)
    """

    def __init__(self, projects: ProjectLookup, polygons: PolygonLookup,
                 config: Optional[Dict] = None):
        self.projects = projects
        self.polygons = polygons
        self.config = config

    def _resolve_polygon(self, project_id: int, object_id: int) -> Optional[PolygonRecord]:
        for record in self.polygons.get_project_polygons(project_id):
            if record.object_id == object_id:
                return record
        return None

    def export_map(self, project_id: int, object_id: int,
                   author: Optional[Author] = None,
                   rendered_at: Optional[datetime] = None) -> ExportArtifact:
        """Export the map sheet of polygon ``object_id`` in project ``project_id``."""
        project = self.projects.get_project(project_id)
        polygon = self._resolve_polygon(project_id, object_id) if project else None
        return export_map(polygon, project, author, rendered_at, self.config)

    def export_interchange(self, project_id: int) -> ExportArtifact:
        """Export every polygon of project ``project_id`` as one shapefile package."""
        project = self.projects.get_project(project_id)
        polygons = self.polygons.get_project_polygons(project_id) if project else []
        return export_interchange(polygons, project, self.config)
