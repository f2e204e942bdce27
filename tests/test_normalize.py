"""Tests for geometry normalization: ring cleaning, repair, area and bbox."""

import json

import pytest

from core.exceptions import GeometryError
from geometry_input import normalize_polygon
from geometry_input.normalize import clean_ring, format_hectares, geodesic_area_m2

from conftest import polygon_geometry


class TestRingCleaning:
    """clean_ring() drops duplicates and the closing repeat."""

    def test_closing_point_removed(self) -> None:
        ring = clean_ring([(0, 0), (1, 0), (1, 1), (0, 0)])
        assert ring == [(0, 0), (1, 0), (1, 1)]

    def test_consecutive_duplicates_removed(self) -> None:
        ring = clean_ring([(0, 0), (1, 0), (1, 0), (1, 1), (1, 1), (0, 0)])
        assert ring == [(0, 0), (1, 0), (1, 1)]

    def test_unclosed_ring_kept_open(self) -> None:
        assert clean_ring([(0, 0), (1, 0), (1, 1)]) == [(0, 0), (1, 0), (1, 1)]


class TestArea:
    """Geodesic area in hectares."""

    def test_jakarta_100m_square_is_one_hectare(self, jakarta_geometry) -> None:
        result = normalize_polygon(jakarta_geometry)
        assert result.area_hectares == pytest.approx(1.0, abs=0.005)

    def test_area_text_has_11_fractional_digits(self, jakarta_geometry) -> None:
        text = normalize_polygon(jakarta_geometry).area_text
        whole, fraction = text.split('.')
        assert whole in ('0', '1')
        assert len(fraction) == 11

    def test_invariant_under_ring_rotation(self, jakarta_square) -> None:
        open_ring = jakarta_square[:-1]
        rotated = open_ring[2:] + open_ring[:2]
        base = normalize_polygon(polygon_geometry(jakarta_square))
        other = normalize_polygon(polygon_geometry(rotated + [rotated[0]]))
        assert other.area_m2 == pytest.approx(base.area_m2, rel=1e-9)

    def test_invariant_under_winding_reversal(self, jakarta_square) -> None:
        base = normalize_polygon(polygon_geometry(jakarta_square))
        reversed_ring = normalize_polygon(polygon_geometry(list(reversed(jakarta_square))))
        assert reversed_ring.area_m2 == pytest.approx(base.area_m2, rel=1e-9)
        assert reversed_ring.area_m2 > 0

    def test_unit_degree_square_is_not_degenerate(self) -> None:
        result = normalize_polygon(polygon_geometry([[0, 0], [0, 1], [1, 1], [1, 0], [0, 0]]))
        assert result.area_text != '0.00000000000'
        assert result.area_hectares > 1_000_000

    def test_geodesic_area_ignores_closing_point(self, jakarta_square) -> None:
        closed = [tuple(p) for p in jakarta_square]
        assert geodesic_area_m2(closed) == pytest.approx(geodesic_area_m2(closed[:-1]))

    def test_format_hectares(self) -> None:
        assert format_hectares(10000.0) == '1.00000000000'
        assert format_hectares(12345.678) == '1.23456780000'


class TestBoundingBox:
    """Tight bounding box over the ring."""

    def test_bbox_matches_ring_extent(self, jakarta_square) -> None:
        bbox = normalize_polygon(polygon_geometry(jakarta_square)).bbox
        lons = [p[0] for p in jakarta_square]
        lats = [p[1] for p in jakarta_square]
        assert bbox.min_lon == min(lons)
        assert bbox.max_lon == max(lons)
        assert bbox.min_lat == min(lats)
        assert bbox.max_lat == max(lats)

    def test_padded_expands_each_axis(self) -> None:
        bbox = normalize_polygon(polygon_geometry([[0, 0], [2, 0], [2, 1], [0, 1]])).bbox
        padded = bbox.padded(0.1)
        assert padded.min_lon == pytest.approx(-0.2)
        assert padded.max_lon == pytest.approx(2.2)
        assert padded.min_lat == pytest.approx(-0.1)
        assert padded.max_lat == pytest.approx(1.1)


class TestInputForms:
    """Accepted geometry encodings."""

    def test_json_text(self, jakarta_geometry) -> None:
        result = normalize_polygon(json.dumps(jakarta_geometry))
        assert len(result.ring) == 4

    def test_feature_wrapper(self, jakarta_geometry) -> None:
        feature = {'type': 'Feature', 'properties': {}, 'geometry': jakarta_geometry}
        assert len(normalize_polygon(feature).ring) == 4

    def test_holes_are_ignored(self, jakarta_square) -> None:
        hole = [[106.8002, -6.1998], [106.8004, -6.1998], [106.8004, -6.1996], [106.8002, -6.1998]]
        geometry = {'type': 'Polygon', 'coordinates': [jakarta_square, hole]}
        with_hole = normalize_polygon(geometry)
        without = normalize_polygon(polygon_geometry(jakarta_square))
        assert with_hole.area_m2 == pytest.approx(without.area_m2)

    def test_ring_keeps_input_order(self, jakarta_square) -> None:
        result = normalize_polygon(polygon_geometry(jakarta_square))
        assert result.ring == tuple(tuple(p) for p in jakarta_square[:-1])
        assert result.closed_ring[0] == result.closed_ring[-1]


class TestRejections:
    """Geometry failures map to GeometryError reasons."""

    def test_malformed_json_is_empty_ring(self) -> None:
        with pytest.raises(GeometryError) as exc_info:
            normalize_polygon('{"type": "Polygon", "coordinates": [[')
        assert exc_info.value.reason == GeometryError.EMPTY_RING

    def test_wrong_geometry_type_is_empty_ring(self) -> None:
        with pytest.raises(GeometryError) as exc_info:
            normalize_polygon({'type': 'Point', 'coordinates': [106.8, -6.2]})
        assert exc_info.value.reason == GeometryError.EMPTY_RING

    def test_missing_coordinates_is_empty_ring(self) -> None:
        with pytest.raises(GeometryError) as exc_info:
            normalize_polygon({'type': 'Polygon', 'coordinates': []})
        assert exc_info.value.reason == GeometryError.EMPTY_RING

    def test_two_distinct_vertices_is_empty_ring(self) -> None:
        with pytest.raises(GeometryError) as exc_info:
            normalize_polygon(polygon_geometry([[0, 0], [1, 1], [1, 1], [0, 0]]))
        assert exc_info.value.reason == GeometryError.EMPTY_RING

    def test_non_finite_coordinate_is_empty_ring(self) -> None:
        with pytest.raises(GeometryError) as exc_info:
            normalize_polygon(polygon_geometry([[0, 0], [float('nan'), 1], [1, 1], [0, 0]]))
        assert exc_info.value.reason == GeometryError.EMPTY_RING

    def test_ring_along_equator_is_degenerate(self) -> None:
        with pytest.raises(GeometryError) as exc_info:
            normalize_polygon(polygon_geometry([[0, 0], [1, 0], [2, 0], [0, 0]]))
        assert exc_info.value.reason == GeometryError.DEGENERATE_AREA
        assert exc_info.value.stage == 'normalize'


class TestRepair:
    """Self-intersecting rings are repaired, keeping the largest part."""

    def test_bowtie_keeps_larger_lobe(self) -> None:
        result = normalize_polygon(polygon_geometry([[0, 0], [2, 2], [2, 0], [0, 1], [0, 0]]))
        assert result.to_shapely().is_valid
        assert len(result.ring) == 3
        assert (2.0, 2.0) in result.ring
        assert (2.0, 0.0) in result.ring
        assert (0.0, 0.0) not in result.ring

    def test_symmetric_bowtie_is_repaired_not_rejected(self) -> None:
        # Equal lobes cancel out in the signed area of the raw ring
        result = normalize_polygon(polygon_geometry([
            [106.0, -7.0], [106.01, -6.99], [106.01, -7.0], [106.0, -6.99], [106.0, -7.0],
        ]))
        assert result.to_shapely().is_valid
        assert len(result.ring) == 3
        assert result.area_hectares > 0
        assert any(
            lon == pytest.approx(106.005) and lat == pytest.approx(-6.995)
            for lon, lat in result.ring
        )
