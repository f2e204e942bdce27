"""Shared pytest fixtures for the Tapak Proyek exporter test suite."""

import copy
from datetime import datetime, timezone

import pytest

from config.config_loader import (
    DEFAULT_INTERCHANGE_SETTINGS,
    DEFAULT_LAYOUT_SETTINGS,
    DEFAULT_SHEET_SETTINGS,
)
from core.models import Author, PolygonRecord, Project

# ---------------------------------------------------------------------------
# Geometry fixtures
# ---------------------------------------------------------------------------

# 100 m x 100 m square near Jakarta (degrees per 100 m at latitude -6.2)
JAKARTA_LON = 106.8
JAKARTA_LAT = -6.2
DLON_100M = 0.00090357
DLAT_100M = 0.00090426


def polygon_geometry(ring):
    """Wrap a list of [lon, lat] pairs as a GeoJSON Polygon."""
    return {'type': 'Polygon', 'coordinates': [[list(p) for p in ring]]}


@pytest.fixture()
def jakarta_square():
    """Closed 1 ha square ring near Jakarta, counter-clockwise."""
    lon, lat = JAKARTA_LON, JAKARTA_LAT
    return [
        [lon, lat],
        [lon + DLON_100M, lat],
        [lon + DLON_100M, lat + DLAT_100M],
        [lon, lat + DLAT_100M],
        [lon, lat],
    ]


@pytest.fixture()
def jakarta_geometry(jakarta_square):
    return polygon_geometry(jakarta_square)


@pytest.fixture()
def triangle_geometry():
    """Three-vertex polygon with an explicit closing point."""
    return polygon_geometry([
        [110.40, -7.80],
        [110.42, -7.80],
        [110.41, -7.78],
        [110.40, -7.80],
    ])


# ---------------------------------------------------------------------------
# Record fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_record(jakarta_geometry):
    """Factory for PolygonRecord with sensible AMDALNET attributes."""

    def _make(**overrides) -> PolygonRecord:
        fields = {
            'object_id': 1,
            'pemrakarsa': 'PT Sumber Daya Nusantara',
            'kegiatan': 'Pembangunan Gudang Logistik',
            'tahun': 2024,
            'provinsi': 'DKI Jakarta',
            'keterangan': 'Tapak utama',
            'area': '1.00000000000',
            'geometry': copy.deepcopy(jakarta_geometry),
            'project_id': 7,
        }
        fields.update(overrides)
        return PolygonRecord(**fields)

    return _make


@pytest.fixture()
def record(make_record) -> PolygonRecord:
    return make_record()


@pytest.fixture()
def project() -> Project:
    return Project(id=7, name='Gudang Logistik Cakung', coordinate_system='EPSG:4326')


@pytest.fixture()
def author() -> Author:
    return Author(name='Siti Rahayu', email='siti@example.co.id')


@pytest.fixture()
def rendered_at() -> datetime:
    return datetime(2024, 5, 1, 1, 30, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def export_config():
    """Configuration dictionary equal to the built-in defaults."""
    return {
        'layout': copy.deepcopy(DEFAULT_LAYOUT_SETTINGS),
        'sheet': copy.deepcopy(DEFAULT_SHEET_SETTINGS),
        'interchange': copy.deepcopy(DEFAULT_INTERCHANGE_SETTINGS),
    }


@pytest.fixture()
def store_payload(jakarta_geometry, triangle_geometry):
    """Persistence payload with one project holding two polygons, stored out of order."""
    return {
        'projects': [
            {'id': 7, 'name': 'Gudang Logistik Cakung', 'coordinateSystem': 'EPSG:4326'},
        ],
        'polygons': [
            {
                'id': 12, 'projectId': 7, 'objectId': 2,
                'pemrakarsa': 'PT Sumber Daya Nusantara', 'kegiatan': 'Area Parkir',
                'tahun': 2024, 'provinsi': 'DI Yogyakarta', 'keterangan': 'Tapak kedua',
                'area': '244.00000000000', 'geometry': triangle_geometry,
            },
            {
                'id': 11, 'projectId': 7, 'objectId': 1,
                'pemrakarsa': 'PT Sumber Daya Nusantara', 'kegiatan': 'Pembangunan Gudang',
                'tahun': 2024, 'provinsi': 'DKI Jakarta', 'keterangan': 'Tapak utama',
                'area': '1.00000000000', 'geometry': jakarta_geometry,
                'kecamatan': 'Cakung', 'kabupatenKota': 'Jakarta Timur',
            },
        ],
    }
