"""
Data model for the Tapak Proyek export pipeline.

The persistence layer owns projects and polygon records; the pipeline only
reads immutable snapshots of them and returns transient export artifacts.

Classes:
    Project: Parent project of one or more polygon records
    PolygonRecord: One project-site polygon with its AMDALNET attributes
    Author: Optional creator details printed on the map sheet
    ExportArtifact: Binary export result plus filename and MIME type

Protocols (external collaborators, not implemented by the pipeline):
    ProjectLookup, PolygonLookup, AttributeExtractor
"""

import copy
import json
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Protocol

DEFAULT_LAYER = 'Tapak Proyek'

PDF_MIME_TYPE = 'application/pdf'
ZIP_MIME_TYPE = 'application/zip'

# Persistence payloads use camelCase keys
_OPTIONAL_TEXT_FIELDS = {
    'nib': 'nib',
    'kbli': 'kbli',
    'kabupatenKota': 'kabupaten_kota',
    'kecamatan': 'kecamatan',
    'desaKelurahan': 'desa_kelurahan',
    'alamat': 'alamat',
}


@dataclass(frozen=True)
class Project:
    """A project grouping polygon records."""

    id: int
    name: str
    coordinate_system: str = 'EPSG:4326'
    description: str = ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Project':
        """Build a Project from a persistence payload (camelCase or snake_case keys)."""
        try:
            return cls(
                id=int(data['id']),
                name=str(data['name']),
                coordinate_system=str(
                    data.get('coordinateSystem', data.get('coordinate_system', 'EPSG:4326'))
                ),
                description=str(data.get('description') or ''),
            )
        except KeyError as e:
            raise ValueError(f"Project payload missing required key: {e}") from e


@dataclass(frozen=True)
class PolygonRecord:
    """
    A single project-site polygon with the attributes required by AMDALNET.

    ``area`` is the hectare value as a decimal string with 11 fractional
    digits; ``geometry`` is a GeoJSON Polygon (dict or JSON text) whose first
    ring is the exterior, with [longitude, latitude] pairs.
    """

    object_id: int
    pemrakarsa: str
    kegiatan: str
    tahun: int
    provinsi: str
    keterangan: str
    area: str
    geometry: Any
    layer: str = DEFAULT_LAYER
    id: Optional[int] = None
    project_id: Optional[int] = None
    nib: str = ''
    kbli: str = ''
    kabupaten_kota: str = ''
    kecamatan: str = ''
    desa_kelurahan: str = ''
    alamat: str = ''

    @property
    def area_decimal(self) -> Decimal:
        """Stored hectare value parsed without float rounding."""
        return Decimal(self.area)

    def location_parts(self) -> List[str]:
        """Street address then administrative units, smallest first, skipping blanks."""
        parts = []
        if self.alamat:
            parts.append(self.alamat)
        if self.desa_kelurahan:
            parts.append(f"Desa/Kel. {self.desa_kelurahan}")
        if self.kecamatan:
            parts.append(f"Kec. {self.kecamatan}")
        if self.kabupaten_kota:
            parts.append(self.kabupaten_kota)
        if self.provinsi:
            parts.append(self.provinsi)
        return parts

    def identity_parts(self) -> List[str]:
        """Business licence identifiers (NIB, KBLI) that are filled in."""
        parts = []
        if self.nib:
            parts.append(f"NIB {self.nib}")
        if self.kbli:
            parts.append(f"KBLI {self.kbli}")
        return parts

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PolygonRecord':
        """
        Build a PolygonRecord from a persistence payload.

        Accepts the persistence layer's camelCase keys (``objectId``,
        ``projectId``, ``kabupatenKota``...) as well as snake_case.
        The geometry is deep-copied so later changes to the payload do not
        leak into the snapshot.

        Raises:
            ValueError: If a required key is missing, or tahun/area are not numeric
        """
        try:
            object_id = data['objectId'] if 'objectId' in data else data['object_id']
            area = str(data['area']).strip()
            Decimal(area)
            geometry = data['geometry']
            fields = {
                'object_id': int(object_id),
                'pemrakarsa': str(data['pemrakarsa']),
                'kegiatan': str(data['kegiatan']),
                'tahun': int(data['tahun']),
                'provinsi': str(data['provinsi']),
                'keterangan': str(data['keterangan']),
                'area': area,
                'geometry': copy.deepcopy(geometry),
                'layer': str(data.get('layer') or DEFAULT_LAYER),
                'id': data.get('id'),
                'project_id': data.get('projectId', data.get('project_id')),
            }
        except KeyError as e:
            raise ValueError(f"Polygon payload missing required key: {e}") from e
        except (InvalidOperation, TypeError) as e:
            raise ValueError(f"Polygon payload has a non-numeric value: {e}") from e

        for source_key, attr in _OPTIONAL_TEXT_FIELDS.items():
            value = data.get(source_key, data.get(attr))
            if value:
                fields[attr] = str(value)

        return cls(**fields)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise back to the persistence layer's camelCase payload."""
        geometry = self.geometry
        if isinstance(geometry, str):
            geometry = json.loads(geometry)
        payload = {
            'id': self.id,
            'projectId': self.project_id,
            'objectId': self.object_id,
            'pemrakarsa': self.pemrakarsa,
            'kegiatan': self.kegiatan,
            'tahun': self.tahun,
            'provinsi': self.provinsi,
            'keterangan': self.keterangan,
            'layer': self.layer,
            'area': self.area,
            'geometry': geometry,
        }
        for source_key, attr in _OPTIONAL_TEXT_FIELDS.items():
            value = getattr(self, attr)
            if value:
                payload[source_key] = value
        return payload


@dataclass(frozen=True)
class Author:
    """Creator details for the map sheet footer."""

    name: str = ''
    email: str = ''


@dataclass(frozen=True)
class ExportArtifact:
    """Binary export result. Created per call and never mutated."""

    content: bytes = field(repr=False)
    filename: str
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.content)


class ProjectLookup(Protocol):
    """Resolve a project by id; returns None when absent."""

    def get_project(self, project_id: int) -> Optional[Project]:
        ...


class PolygonLookup(Protocol):
    """Resolve the polygons of a project ordered by object id; empty when absent."""

    def get_project_polygons(self, project_id: int) -> List[PolygonRecord]:
        ...


class AttributeExtractor(Protocol):
    """
    Upstream capability producing a partial polygon payload from an uploaded
    document (shapefile/KML/GeoJSON import or permit PDF extraction).

    The export pipeline never calls this; it only consumes the PolygonRecord
    that the surrounding application builds from the extracted values.
    """

    def extract_attributes(self, document: bytes) -> Dict[str, Any]:
        ...
