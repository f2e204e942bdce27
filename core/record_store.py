"""
JSON-backed project and polygon lookups.

Stands in for the application's persistence layer when the exporter runs on
its own (CLI, tests). The file holds camelCase payloads as the persistence
layer stores them:

    {
        "projects": [{"id": 1, "name": "...", "coordinateSystem": "EPSG:4326"}],
        "polygons": [{"projectId": 1, "objectId": 1, "pemrakarsa": "...",
                      "kegiatan": "...", "tahun": 2024, "provinsi": "...",
                      "keterangan": "...", "area": "1.00000000000",
                      "geometry": {"type": "Polygon", "coordinates": [...]}}]
    }
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from core.models import PolygonRecord, Project
from utils.logger import get_logger

logger = get_logger(__name__)


class JsonRecordStore:
    """Read-only ProjectLookup and PolygonLookup over an in-memory payload."""

    def __init__(self, payload: Dict[str, Any]):
        self._projects: Dict[int, Project] = {}
        for item in payload.get('projects', []):
            project = Project.from_dict(item)
            self._projects[project.id] = project

        self._polygons: Dict[int, List[PolygonRecord]] = {}
        for item in payload.get('polygons', []):
            record = PolygonRecord.from_dict(item)
            if record.project_id is None:
                raise ValueError(f"Polygon {record.object_id} has no projectId")
            self._polygons.setdefault(int(record.project_id), []).append(record)

        logger.debug(f"  - Record store: {len(self._projects)} project(s), "
                     f"{sum(len(v) for v in self._polygons.values())} polygon(s)")

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'JsonRecordStore':
        """
        Load a store from a JSON file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            json.JSONDecodeError: If the file contains invalid JSON
            ValueError: If a project or polygon payload is malformed
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Record file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            return cls(json.load(f))

    def get_project(self, project_id: int) -> Optional[Project]:
        return self._projects.get(int(project_id))

    def get_project_polygons(self, project_id: int) -> List[PolygonRecord]:
        records = self._polygons.get(int(project_id), [])
        return sorted(records, key=lambda record: record.object_id)
