"""
Attribute table rendering for AMDALNET polygon records.

The field order, names and types below are the external contract shared by
the map sheet's attribute table and the shapefile package's DBF schema. Both
outputs are built from render_rows(), so they cannot drift apart.

Functions:
    render_rows: Ordered (field name, display value) pairs for a record
    typed_attributes: Field values coerced to their schema types
    interchange_schema: Fiona schema with fixed field widths
"""

import re
from collections import OrderedDict
from decimal import Decimal
from typing import Dict, List, Tuple, Union

from core.models import PolygonRecord

AREA_DECIMALS = 11

# (field name, record attribute, fiona field type with width)
ATTRIBUTE_FIELDS = (
    ('OBJECTID_1', 'object_id', 'int:9'),
    ('PEMRAKARSA', 'pemrakarsa', 'str:100'),
    ('KEGIATAN', 'kegiatan', 'str:254'),
    ('TAHUN', 'tahun', 'int:4'),
    ('PROVINSI', 'provinsi', 'str:50'),
    ('KETERANGAN', 'keterangan', 'str:254'),
    ('LAYER', 'layer', 'str:50'),
    ('AREA', 'area', 'float:19.11'),
)

FIELD_NAMES = tuple(name for name, _, _ in ATTRIBUTE_FIELDS)

_LINE_BREAKS = re.compile(r'[\r\n\t]+')

AttributeValue = Union[int, float, str]


def _field_kind(field_type: str) -> str:
    return field_type.split(':', 1)[0]


def _display_value(value, field_type: str) -> str:
    kind = _field_kind(field_type)
    if kind == 'int':
        return str(int(value))
    if kind == 'float':
        quantum = Decimal(1).scaleb(-AREA_DECIMALS)
        return format(Decimal(str(value)).quantize(quantum), 'f')
    # Line breaks would break cell wrapping; everything else passes through
    return _LINE_BREAKS.sub(' ', str(value)).strip()


def render_rows(record: PolygonRecord) -> List[Tuple[str, str]]:
    """
    Render a record as ordered (field name, display value) pairs.

    AREA keeps 11 fractional digits, integers print plainly, and text is
    passed through unescaped with line breaks folded into spaces.

    Args:
        record: Polygon record to render

    Returns:
        List of 8 pairs in OBJECTID_1, PEMRAKARSA, KEGIATAN, TAHUN, PROVINSI,
        KETERANGAN, LAYER, AREA order
    """
    return [
        (name, _display_value(getattr(record, attr), field_type))
        for name, attr, field_type in ATTRIBUTE_FIELDS
    ]


def typed_attributes(record: PolygonRecord) -> 'OrderedDict[str, AttributeValue]':
    """
    Attribute values coerced to their interchange types.

    The stored AREA decimal string becomes a float here; OBJECTID_1 and
    TAHUN become ints and everything else stays text.
    """
    field_types = {name: field_type for name, _, field_type in ATTRIBUTE_FIELDS}
    values: 'OrderedDict[str, AttributeValue]' = OrderedDict()
    for name, display in render_rows(record):
        kind = _field_kind(field_types[name])
        if kind == 'int':
            values[name] = int(display)
        elif kind == 'float':
            values[name] = float(display)
        else:
            values[name] = display
    return values


def interchange_schema() -> Dict:
    """Fiona schema for the polygon layer, fields in contract order."""
    return {
        'geometry': 'Polygon',
        'properties': OrderedDict(
            (name, field_type) for name, _, field_type in ATTRIBUTE_FIELDS
        ),
    }
