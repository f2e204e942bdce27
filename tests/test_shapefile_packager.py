"""Tests for the zipped shapefile package."""

import io
import zipfile

import geopandas as gpd
import pytest

from core.exceptions import GeometryError, PackagingError, RenderError
from utils.attribute_table import FIELD_NAMES
from utils.shapefile_packager import ZIP_ENTRY_DATE, pack_interchange

from conftest import polygon_geometry


def _unpack(content: bytes, tmp_path) -> gpd.GeoDataFrame:
    with zipfile.ZipFile(io.BytesIO(content)) as zf:
        zf.extractall(tmp_path)
    return gpd.read_file(tmp_path / 'Tapak_proyek' / 'Tapak_proyek.shp')


def _vertex_set(geom):
    return sorted(set(geom.exterior.coords))


class TestPackInterchange:
    """Packaging polygon records into Tapak_proyek/."""

    def test_empty_input_rejected(self) -> None:
        with pytest.raises(PackagingError) as exc_info:
            pack_interchange([])
        assert exc_info.value.reason == PackagingError.EMPTY_INPUT

    def test_triangle_produces_one_feature(self, make_record, triangle_geometry, tmp_path) -> None:
        content = pack_interchange([make_record(geometry=triangle_geometry)])
        features = _unpack(content, tmp_path)

        assert len(features) == 1
        assert features.iloc[0]['OBJECTID_1'] == 1
        assert features.geometry.iloc[0].geom_type == 'Polygon'

    def test_archive_layout(self, record) -> None:
        content = pack_interchange([record])
        with zipfile.ZipFile(io.BytesIO(content)) as zf:
            infos = zf.infolist()

        names = [info.filename for info in infos]
        assert names == sorted(names)
        assert all(name.startswith('Tapak_proyek/') for name in names)
        for ext in ('.shp', '.shx', '.dbf', '.prj'):
            assert f'Tapak_proyek/Tapak_proyek{ext}' in names
        assert all(info.compress_type == zipfile.ZIP_DEFLATED for info in infos)
        assert all(info.date_time == ZIP_ENTRY_DATE for info in infos)

    def test_field_order_and_types(self, record, tmp_path) -> None:
        features = _unpack(pack_interchange([record]), tmp_path)
        assert [c for c in features.columns if c != 'geometry'] == list(FIELD_NAMES)

        row = features.iloc[0]
        assert int(row['TAHUN']) == 2024
        assert isinstance(row['AREA'], float)
        assert row['AREA'] == pytest.approx(1.0)
        assert row['PEMRAKARSA'] == 'PT Sumber Daya Nusantara'

    def test_ring_round_trip(self, record, jakarta_square, tmp_path) -> None:
        features = _unpack(pack_interchange([record]), tmp_path)
        written = _vertex_set(features.geometry.iloc[0])
        expected = sorted(set(tuple(p) for p in jakarta_square))

        assert len(written) == len(expected)
        for (lon, lat), (exp_lon, exp_lat) in zip(written, expected):
            assert lon == pytest.approx(exp_lon, abs=1e-9)
            assert lat == pytest.approx(exp_lat, abs=1e-9)

    def test_records_keep_given_order(self, make_record, triangle_geometry, tmp_path) -> None:
        records = [
            make_record(object_id=1),
            make_record(object_id=2, geometry=triangle_geometry),
        ]
        features = _unpack(pack_interchange(records), tmp_path)
        assert list(features['OBJECTID_1']) == [1, 2]

    def test_wgs84_crs(self, record, tmp_path) -> None:
        features = _unpack(pack_interchange([record]), tmp_path)
        assert features.crs.to_epsg() == 4326

    def test_custom_folder_and_layer(self, record) -> None:
        content = pack_interchange([record], {'folder_name': 'Export', 'layer_name': 'Tapak'})
        with zipfile.ZipFile(io.BytesIO(content)) as zf:
            assert 'Export/Tapak.shp' in zf.namelist()

    def test_unicode_text_survives(self, make_record, tmp_path) -> None:
        features = _unpack(pack_interchange([make_record(keterangan='Lahan milik négara')]), tmp_path)
        assert features.iloc[0]['KETERANGAN'] == 'Lahan milik négara'


class TestPackInterchangeErrors:
    """Failures never produce a partial archive."""

    def test_invalid_geometry_propagates(self, make_record) -> None:
        bad = make_record(geometry=polygon_geometry([[0, 0], [1, 1], [0, 0]]))
        with pytest.raises(GeometryError):
            pack_interchange([bad])

    def test_writer_failure_becomes_render_error(self, record, monkeypatch) -> None:
        def broken_to_file(self, *args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(gpd.GeoDataFrame, 'to_file', broken_to_file)
        with pytest.raises(RenderError) as exc_info:
            pack_interchange([record])
        assert exc_info.value.reason == RenderError.INTERNAL
        assert isinstance(exc_info.value.__cause__, OSError)
