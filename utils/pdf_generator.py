"""
Map sheet PDF generator for the Tapak Proyek exporter.

This module composes the single-page A3 landscape "Peta Tapak Proyek" sheet:
    - Map panel (left): bordered grid with DMS tick labels, the site polygon,
      vertex markers, scale bar and north arrow
    - Information panel (right), banded top to bottom:
        title block, technical parameters, keterangan/legend with vertex
        and attribute tables, inset placeholder, source/creator footer

Every band is drawn by a function taking the PDF builder, its Region and the
sheet data; bands never read each other's content. Uses fpdf2 for pure Python
PDF generation. Given the same inputs and render timestamp the output is
byte-for-byte identical.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from fpdf import FPDF
from pyproj import Geod

from config.config_loader import (
    FONTS_DIR,
    PAGE_HEIGHT,
    PAGE_WIDTH,
    load_layout_settings,
    load_sheet_settings,
)
from core.exceptions import ExportError, RenderError
from core.models import Author, PolygonRecord
from geometry_input.normalize import NormalizedPolygon
from utils.attribute_table import render_rows
from utils.coordinates import LATITUDE, LONGITUDE, format_coordinate
from utils.logger import get_logger
from utils.projection import PanelTransform, map_to_panel

logger = get_logger(__name__)

WGS84_GEOD = Geod(ellps='WGS84')

INDONESIAN_MONTHS = (
    'Januari', 'Februari', 'Maret', 'April', 'Mei', 'Juni',
    'Juli', 'Agustus', 'September', 'Oktober', 'November', 'Desember',
)

# Scale bar lengths (meters) tried when the default does not fit
NICE_SCALE_LENGTHS_M = (10, 20, 50, 100, 200, 500, 1000, 2000, 5000, 10000, 20000, 50000)

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)
GRID_GRAY = (204, 204, 204)
HEADER_GRAY = (224, 224, 224)
BOX_GRAY = (245, 245, 245)
MUTED_TEXT = (102, 102, 102)
FAINT_TEXT = (153, 153, 153)
RIVER_BLUE = (70, 130, 180)
ROAD_RED = (178, 34, 34)


@dataclass(frozen=True)
class Region:
    """Rectangular page area in points, origin at the top-left."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def inset(self, margin: float) -> 'Region':
        return Region(self.x + margin, self.y + margin,
                      self.width - 2 * margin, self.height - 2 * margin)


@dataclass(frozen=True)
class PageLayout:
    """All page regions, in drawing order."""

    map_panel: Region
    info_panel: Region
    title: Region
    technical: Region
    legend: Region
    inset: Region
    footer: Region

    def bands(self) -> List[Region]:
        return [self.title, self.technical, self.legend, self.inset, self.footer]


@dataclass(frozen=True)
class MapSheetData:
    """Everything printed on one map sheet."""

    record: PolygonRecord
    polygon: NormalizedPolygon
    project_name: str
    coordinate_system: str
    rendered_at: datetime
    author: Author = field(default_factory=Author)


def compute_layout(layout: Dict) -> PageLayout:
    """
    Split the page into the map panel and the five information bands.

    Band heights are floor(panel height * fraction); the footer takes the
    remainder so the bands tile the panel exactly.
    """
    margin = layout['page_margin']
    panel_height = PAGE_HEIGHT - 2 * margin

    map_width = PAGE_WIDTH * layout['map_panel_width_fraction'] - margin
    map_panel = Region(margin, margin, map_width, panel_height)

    info_x = map_panel.right + margin
    info_panel = Region(info_x, margin, PAGE_WIDTH - info_x - margin, panel_height)

    heights = [
        int(panel_height * layout['title_band_fraction']),
        int(panel_height * layout['technical_band_fraction']),
        int(panel_height * layout['legend_band_fraction']),
        int(panel_height * layout['inset_band_fraction']),
    ]
    heights.append(panel_height - sum(heights))

    bands = []
    y = info_panel.y
    for height in heights:
        bands.append(Region(info_panel.x, y, info_panel.width, height))
        y += height

    return PageLayout(map_panel, info_panel, *bands)


class MapSheetPDF(FPDF):
    """Single-page A3 landscape sheet measured in points."""

    def __init__(self, sheet: Dict, project_name: str, rendered_at: datetime):
        super().__init__(orientation="portrait", unit="pt", format=(PAGE_WIDTH, PAGE_HEIGHT))
        self.set_margins(left=0, top=0, right=0)
        self.set_auto_page_break(False)

        self.set_title(f"{sheet['document_title']} - {project_name}")
        self.set_author(sheet['document_author'])
        self.set_subject(sheet['document_subject'])
        self.set_creator(sheet['document_author'])
        self.set_creation_date(rendered_at)

        self.font_family_name = self._load_unicode_fonts()

    def _load_unicode_fonts(self) -> str:
        """Use DejaVu Sans when its TTF files are present, else core Helvetica."""
        font_files = {
            '': 'DejaVuSans.ttf',
            'B': 'DejaVuSans-Bold.ttf',
        }
        if not all((FONTS_DIR / filename).exists() for filename in font_files.values()):
            logger.debug("DejaVu fonts not found, using core Helvetica (Latin-1 text only)")
            return 'helvetica'

        for style, filename in font_files.items():
            self.add_font(family='DejaVuSans', style=style, fname=str(FONTS_DIR / filename))
            logger.debug(f"Loaded font: DejaVuSans {style or 'Regular'} from {filename}")
        return 'DejaVuSans'

    @property
    def has_unicode_font(self) -> bool:
        return self.font_family_name != 'helvetica'

    def use_font(self, size: float, style: str = '') -> None:
        self.set_font(self.font_family_name, style=style, size=size)

    def safe_text(self, text: str) -> str:
        """Replace characters the core fonts cannot encode."""
        if self.has_unicode_font:
            return text
        return text.encode('latin-1', 'replace').decode('latin-1')

    def text_at(self, x: float, y: float, width: float, height: float,
                text: str, align: str = 'L') -> None:
        self.set_xy(x, y)
        self.cell(width, height, self.safe_text(text), align=align)


def wrap_text(pdf: MapSheetPDF, text: str, width: float, max_lines: int) -> List[str]:
    """
    Word-wrap text to the current font, keeping at most max_lines lines.

    The last kept line is shortened with "..." when text is cut.
    """
    words = pdf.safe_text(text).split()
    lines: List[str] = []
    current = ''
    for word in words:
        candidate = f"{current} {word}".strip()
        if current and pdf.get_string_width(candidate) > width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)

    if len(lines) > max_lines:
        lines = lines[:max_lines]
        lines[-1] = truncate_text(pdf, f"{lines[-1]} ...", width, force_ellipsis=True)
    return [truncate_text(pdf, line, width) for line in lines]


def truncate_text(pdf: MapSheetPDF, text: str, width: float,
                  force_ellipsis: bool = False) -> str:
    """Truncate text to fit within width at the current font."""
    text = pdf.safe_text(text)
    if pdf.get_string_width(text) <= width and not force_ellipsis:
        return text
    if force_ellipsis and text.endswith(' ...'):
        text = text[:-4]
    while text and pdf.get_string_width(f"{text}...") > width:
        text = text[:-1]
    return f"{text.rstrip()}..."


def _stroke_region(pdf: MapSheetPDF, region: Region, line_width: float = 2) -> None:
    pdf.set_draw_color(*BLACK)
    pdf.set_line_width(line_width)
    pdf.rect(region.x, region.y, region.width, region.height, style='D')


# ---------------------------------------------------------------------------
# Map panel
# ---------------------------------------------------------------------------


def format_distance(meters: float) -> str:
    """Scale bar label, e.g. ``500 m`` or ``2.5 km``."""
    if meters >= 1000:
        return f"{meters / 1000:g} km"
    return f"{meters:g} m"


def choose_scale_bar_length(points_per_meter: float,
                            default_m: float,
                            max_width: float,
                            min_width: float = 40.0) -> float:
    """
    Pick the scale bar ground length.

    Keeps default_m when its drawn width falls within [min_width, max_width];
    otherwise the longest nice length that fits within max_width.
    """
    if min_width <= default_m * points_per_meter <= max_width:
        return default_m

    fitting = [length for length in NICE_SCALE_LENGTHS_M
               if length * points_per_meter <= max_width]
    if not fitting:
        return NICE_SCALE_LENGTHS_M[0]
    return fitting[-1]


def points_per_meter(transform: PanelTransform, center: Tuple[float, float]) -> float:
    """Page points per ground meter along the parallel through center."""
    lon, lat = center
    _, _, meters_per_degree = WGS84_GEOD.inv(lon - 0.5, lat, lon + 0.5, lat)
    return transform.scale / meters_per_degree


def draw_grid(pdf: MapSheetPDF, inner: Region, steps: int) -> None:
    """Evenly spaced grid lines inside the inner map border."""
    pdf.set_draw_color(*GRID_GRAY)
    pdf.set_line_width(0.5)
    for i in range(1, steps):
        grid_x = inner.x + inner.width * i / steps
        grid_y = inner.y + inner.height * i / steps
        pdf.line(grid_x, inner.y, grid_x, inner.bottom)
        pdf.line(inner.x, grid_y, inner.right, grid_y)


def draw_tick_labels(pdf: MapSheetPDF, region: Region, inner: Region,
                     transform: PanelTransform, steps: int) -> None:
    """
    DMS labels on all four edges of the inner border.

    Longitudes run along the top and bottom, latitudes (rotated) along the
    left and right. Each label is the inverse projection of its tick
    position, so it describes the drawn map exactly.
    """
    pdf.use_font(7)
    pdf.set_text_color(*BLACK)
    pdf.set_draw_color(*BLACK)
    pdf.set_line_width(0.75)
    gap = (inner.y - region.y) / 2

    for i in range(steps + 1):
        tick_x = inner.x + inner.width * i / steps
        lon, _ = transform.unproject(tick_x, inner.y)
        label = format_coordinate(lon, LONGITUDE)

        pdf.line(tick_x, inner.y - 4, tick_x, inner.y)
        pdf.line(tick_x, inner.bottom, tick_x, inner.bottom + 4)
        pdf.text_at(tick_x - 45, region.y + gap - 9, 90, 10, label, align='C')
        pdf.text_at(tick_x - 45, inner.bottom + gap - 1, 90, 10, label, align='C')

    for i in range(steps + 1):
        tick_y = inner.y + inner.height * i / steps
        _, lat = transform.unproject(inner.x, tick_y)
        label = format_coordinate(lat, LATITUDE)

        pdf.line(inner.x - 4, tick_y, inner.x, tick_y)
        pdf.line(inner.right, tick_y, inner.right + 4, tick_y)
        for label_x in (region.x + gap, inner.right + gap):
            with pdf.rotation(90, x=label_x, y=tick_y):
                pdf.text_at(label_x - 45, tick_y - 5, 90, 10, label, align='C')


def draw_site_polygon(pdf: MapSheetPDF, transform: PanelTransform,
                      ring: Sequence[Tuple[float, float]], layout: Dict) -> None:
    """Semi-opaque filled polygon with a solid outline and vertex markers."""
    points = [transform.project(lon, lat) for lon, lat in ring]

    pdf.set_fill_color(*layout['polygon_fill_color'])
    with pdf.local_context(fill_opacity=layout['polygon_fill_opacity']):
        pdf.polygon(points, style='F')

    pdf.set_draw_color(*BLACK)
    pdf.set_line_width(2)
    pdf.polygon(points, style='D')

    pdf.set_fill_color(*BLACK)
    pdf.use_font(7, style='B')
    pdf.set_text_color(*BLACK)
    for index, (px, py) in enumerate(points[:layout['vertex_table_limit']], start=1):
        pdf.rect(px - 2.5, py - 2.5, 5, 5, style='F')
        pdf.text_at(px + 4, py - 12, 20, 10, str(index))


def draw_scale_bar(pdf: MapSheetPDF, x: float, y: float,
                   length_m: float, pts_per_m: float) -> None:
    """Two-segment alternating scale bar with 0 / half / total labels."""
    bar_width = length_m * pts_per_m
    bar_height = 8
    half = bar_width / 2

    pdf.set_line_width(1)
    pdf.set_draw_color(*BLACK)
    pdf.set_fill_color(*BLACK)
    pdf.rect(x, y, half, bar_height, style='DF')
    pdf.set_fill_color(*WHITE)
    pdf.rect(x + half, y, half, bar_height, style='DF')

    pdf.use_font(7)
    pdf.set_text_color(*BLACK)
    label_y = y + bar_height + 2
    pdf.text_at(x - 20, label_y, 40, 9, '0', align='C')
    pdf.text_at(x + half - 20, label_y, 40, 9, format_distance(length_m / 2), align='C')
    pdf.text_at(x + bar_width - 20, label_y, 40, 9, format_distance(length_m), align='C')


def draw_north_arrow(pdf: MapSheetPDF, x: float, y: float, size: float = 30) -> None:
    """Filled triangle pointing up with an N label beneath."""
    pdf.set_fill_color(*BLACK)
    pdf.set_draw_color(*BLACK)
    pdf.set_line_width(1)
    pdf.polygon([(x, y), (x - 10, y + size), (x + 10, y + size)], style='DF')

    pdf.use_font(12, style='B')
    pdf.set_text_color(*BLACK)
    pdf.text_at(x - 10, y + size + 3, 20, 14, 'N', align='C')


def draw_map_panel(pdf: MapSheetPDF, region: Region, data: MapSheetData,
                   layout: Dict) -> PanelTransform:
    """
    Draw the map panel: borders, grid, ticks, polygon, scale bar, north arrow.

    Returns:
        PanelTransform used for the polygon
    """
    _stroke_region(pdf, region, line_width=3)

    inner = region.inset(layout['grid_margin'])
    _stroke_region(pdf, inner, line_width=2)

    transform = map_to_panel(
        data.polygon.bbox,
        inner.width,
        inner.height,
        padding_fraction=layout['padding_fraction'],
        panel_x=inner.x,
        panel_y=inner.y,
    )

    draw_grid(pdf, inner, layout['grid_steps'])
    draw_site_polygon(pdf, transform, data.polygon.ring, layout)
    draw_tick_labels(pdf, region, inner, transform, layout['tick_label_steps'])

    # Redraw the inner border over grid and polygon edges
    _stroke_region(pdf, inner, line_width=2)

    pts_per_m = points_per_meter(transform, data.polygon.bbox.center)
    length_m = choose_scale_bar_length(
        pts_per_m, layout['scale_bar_length_m'], max_width=inner.width * 0.35
    )
    logger.debug(f"  - Scale bar: {format_distance(length_m)} ({length_m * pts_per_m:.1f} pt)")
    draw_scale_bar(pdf, inner.x + 20, inner.bottom - 40, length_m, pts_per_m)

    draw_north_arrow(pdf, inner.right - 40, inner.y + 20)
    return transform


# ---------------------------------------------------------------------------
# Information panel bands
# ---------------------------------------------------------------------------


def draw_title_band(pdf: MapSheetPDF, region: Region, data: MapSheetData,
                    sheet: Dict) -> None:
    """
    Sheet title, pemrakarsa and kegiatan, then the site location and the
    NIB/KBLI line when the record carries them. Word-wrapped and centered;
    lines that do not fit the band are dropped from the bottom.
    """
    _stroke_region(pdf, region)
    text_width = region.width - 20
    y = region.y + 8

    pdf.set_text_color(*BLACK)
    pdf.use_font(14, style='B')
    pdf.text_at(region.x + 10, y, text_width, 16, sheet['sheet_title'], align='C')
    y += 20

    blocks = [
        (data.record.pemrakarsa.upper(), 11, 'B', 13, 2),
        (data.record.kegiatan.upper(), 9, '', 11, 2),
    ]
    location = ', '.join(data.record.location_parts())
    if location:
        blocks.append((location, 7, '', 9, 1))
    identity = ' | '.join(data.record.identity_parts())
    if identity:
        blocks.append((identity, 7, '', 9, 1))

    for text, size, style, line_height, max_lines in blocks:
        pdf.use_font(size, style=style)
        for line in wrap_text(pdf, text, text_width, max_lines):
            if y + line_height > region.bottom - 2:
                return
            pdf.text_at(region.x + 10, y, text_width, line_height, line, align='C')
            y += line_height


def draw_technical_band(pdf: MapSheetPDF, region: Region, data: MapSheetData,
                        sheet: Dict) -> None:
    """Label : value rows describing the map's conventions."""
    _stroke_region(pdf, region)
    rows = [tuple(row) for row in sheet['technical_parameters']]
    rows.append((sheet['coordinate_system_label'], data.coordinate_system))

    label_width = 85
    value_width = region.width - label_width - 25
    row_height = min(16, (region.height - 16) / len(rows))
    y = region.y + 8

    pdf.use_font(9)
    pdf.set_text_color(*BLACK)
    for label, value in rows:
        pdf.text_at(region.x + 15, y, label_width, row_height, label)
        pdf.text_at(region.x + 15 + label_width, y, value_width, row_height,
                    truncate_text(pdf, f": {value}", value_width))
        y += row_height


def _draw_legend_symbol(pdf: MapSheetPDF, kind: str, x: float, y: float) -> None:
    """Legend glyph in a 12 x 8 box at (x, y)."""
    pdf.set_draw_color(*BLACK)
    pdf.set_fill_color(*BLACK)
    mid_y = y + 4
    if kind == 'point':
        pdf.rect(x + 4, mid_y - 2, 4, 4, style='F')
    elif kind == 'dashed':
        pdf.set_line_width(0.75)
        pdf.set_dash_pattern(dash=2, gap=1.5)
        pdf.line(x, mid_y, x + 12, mid_y)
        pdf.set_dash_pattern()
    elif kind == 'river':
        pdf.set_draw_color(*RIVER_BLUE)
        pdf.set_line_width(1.25)
        pdf.line(x, mid_y, x + 12, mid_y)
    else:
        pdf.set_draw_color(*ROAD_RED)
        pdf.set_line_width(1.25)
        pdf.line(x, mid_y, x + 12, mid_y)


def _draw_table_row(pdf: MapSheetPDF, x: float, y: float, widths: Sequence[float],
                    height: float, cells: Sequence[str], aligns: Sequence[str],
                    fill: Optional[Tuple[int, int, int]] = None) -> None:
    pdf.set_draw_color(*BLACK)
    pdf.set_line_width(0.3)
    cell_x = x
    for width, text, align in zip(widths, cells, aligns):
        if fill is not None:
            pdf.set_fill_color(*fill)
            pdf.rect(cell_x, y, width, height, style='DF')
        else:
            pdf.rect(cell_x, y, width, height, style='D')
        pdf.text_at(cell_x + 2, y, width - 4, height, truncate_text(pdf, text, width - 6),
                    align=align)
        cell_x += width


def vertex_table_rows(vertex_count: int, limit: int, room: int) -> Tuple[int, int, bool]:
    """
    Split the vertex table into shown rows and an overflow count.

    Returns (shown, hidden, show_overflow). When vertices are left out and
    the table fills every free row, the last row goes to the overflow note.
    With no free row at all nothing is drawn, not even the note.
    """
    room = max(0, room)
    shown = max(0, min(limit, vertex_count, room))
    hidden = vertex_count - shown
    if hidden and shown == room and room >= 1:
        shown -= 1
        hidden += 1
    return shown, hidden, bool(hidden) and room >= 1


def draw_legend_band(pdf: MapSheetPDF, region: Region, data: MapSheetData,
                     sheet: Dict, layout: Dict) -> None:
    """
    Keterangan legend, vertex coordinate table and attribute table.

    The vertex table lists the leading vertices up to the configured limit
    (fewer if the band runs out of room) and notes how many were left out.
    """
    _stroke_region(pdf, region)
    x = region.x + 10
    table_width = region.width - 20
    y = region.y + 8

    pdf.set_text_color(*BLACK)
    pdf.use_font(10, style='B')
    pdf.text_at(x, y, table_width, 14, sheet['legend_title'])
    y += 16

    pdf.use_font(8)
    for kind, label in sheet['legend_items']:
        _draw_legend_symbol(pdf, kind, x + 5, y + 1)
        pdf.text_at(x + 22, y, table_width - 22, 10, label)
        y += 12

    pdf.set_fill_color(*layout['polygon_fill_color'])
    pdf.set_draw_color(*BLACK)
    pdf.set_line_width(1)
    pdf.rect(x + 5, y + 1, 12, 8, style='DF')
    pdf.text_at(x + 22, y, table_width - 22, 10, sheet['polygon_legend_label'])
    y += 16

    # Attribute table is sized first so the vertex table yields room to it
    attribute_rows = render_rows(data.record)
    row_height = 10
    attribute_block = 14 + row_height * len(attribute_rows)

    pdf.use_font(8, style='B')
    pdf.text_at(x, y, table_width, 12, sheet['vertex_table_title'], align='C')
    y += 13

    widths = (table_width * 0.15, table_width * 0.425, table_width * 0.425)
    pdf.use_font(7, style='B')
    _draw_table_row(pdf, x, y, widths, 12, ('No.', 'X', 'Y'), ('C', 'C', 'C'),
                    fill=HEADER_GRAY)
    y += 12

    ring = data.polygon.ring
    room = int((region.bottom - 6 - attribute_block - y) // row_height)
    limit, hidden, show_overflow = vertex_table_rows(
        len(ring), layout['vertex_table_limit'], room
    )

    pdf.use_font(6)
    for index, (lon, lat) in enumerate(ring[:limit], start=1):
        _draw_table_row(
            pdf, x, y, widths, row_height,
            (str(index), format_coordinate(lon, LONGITUDE), format_coordinate(lat, LATITUDE)),
            ('C', 'C', 'C'),
        )
        y += row_height
    if show_overflow:
        pdf.text_at(x, y, table_width, row_height, f"+{hidden} titik lainnya", align='C')
        y += row_height

    y += 4
    pdf.use_font(8, style='B')
    pdf.text_at(x, y, table_width, 12, sheet['attribute_table_title'], align='C')
    y += 14

    pdf.use_font(6)
    attribute_widths = (table_width * 0.3, table_width * 0.7)
    for name, value in attribute_rows:
        _draw_table_row(pdf, x, y, attribute_widths, row_height, (name, value), ('L', 'L'))
        y += row_height


def draw_inset_band(pdf: MapSheetPDF, region: Region, sheet: Dict) -> None:
    """Placeholder for the orientation inset map."""
    _stroke_region(pdf, region)
    pdf.use_font(8)
    pdf.set_text_color(*MUTED_TEXT)
    pdf.text_at(region.x, region.y + region.height / 2 - 5, region.width, 10,
                sheet['inset_label'], align='C')
    pdf.set_text_color(*BLACK)


def format_render_timestamp(rendered_at: datetime, sheet: Dict) -> str:
    """
    Localized timestamp, e.g. ``18 Oktober 2026 14.30 WIB``.

    Naive datetimes are taken as UTC.
    """
    if rendered_at.tzinfo is None:
        rendered_at = rendered_at.replace(tzinfo=timezone.utc)
    local_tz = timezone(timedelta(hours=sheet['utc_offset_hours']), sheet['timezone_name'])
    local = rendered_at.astimezone(local_tz)
    month = INDONESIAN_MONTHS[local.month - 1]
    return f"{local.day:02d} {month} {local.year} {local.hour:02d}.{local.minute:02d} {sheet['timezone_name']}"


def draw_footer_band(pdf: MapSheetPDF, region: Region, data: MapSheetData,
                     sheet: Dict) -> None:
    """Map source, creator box with timestamp, and provenance line."""
    _stroke_region(pdf, region)
    x = region.x + 10
    width = region.width - 20
    y = region.y + 8

    pdf.set_text_color(*BLACK)
    pdf.use_font(7, style='B')
    pdf.text_at(x, y, width, 10, sheet['source_title'])
    y += 11
    pdf.use_font(7)
    pdf.text_at(x, y, width, 9, truncate_text(pdf, f"Tapak Proyek {data.project_name}", width))
    y += 13

    box_height = 50
    pdf.set_fill_color(*BOX_GRAY)
    pdf.set_draw_color(*BLACK)
    pdf.set_line_width(0.5)
    pdf.rect(x, y, width, box_height, style='DF')

    pdf.use_font(7, style='B')
    pdf.text_at(x + 5, y + 3, width - 10, 10, sheet['creator_label'])
    pdf.use_font(7)
    name = data.author.name or sheet['default_author_name']
    pdf.text_at(x + 5, y + 14, width - 10, 9, truncate_text(pdf, name, width - 10))
    if data.author.email:
        pdf.text_at(x + 5, y + 24, width - 10, 9, truncate_text(pdf, data.author.email, width - 10))
    pdf.use_font(6)
    timestamp = format_render_timestamp(data.rendered_at, sheet)
    pdf.text_at(x + 5, y + 36, width - 10, 9, f"{sheet['date_label']}: {timestamp}")
    y += box_height + 6

    if y + 9 <= region.bottom:
        pdf.use_font(6)
        pdf.set_text_color(*FAINT_TEXT)
        pdf.text_at(x, y, width, 9, sheet['provenance'], align='C')
        pdf.set_text_color(*BLACK)


# ---------------------------------------------------------------------------
# Sheet assembly
# ---------------------------------------------------------------------------


def build_map_sheet(data: MapSheetData, config: Optional[Dict] = None) -> MapSheetPDF:
    """
    Compose the full map sheet on a fresh PDF builder.

    Args:
        data: Sheet content
        config: Configuration dictionary (optional, will load if not provided)

    Returns:
        MapSheetPDF with one page drawn, ready for output()
    """
    layout = load_layout_settings(config)
    sheet = load_sheet_settings(config)
    rendered_at = data.rendered_at
    if rendered_at.tzinfo is None:
        rendered_at = rendered_at.replace(tzinfo=timezone.utc)

    page = compute_layout(layout)

    pdf = MapSheetPDF(sheet, data.project_name, rendered_at)
    pdf.add_page()

    draw_map_panel(pdf, page.map_panel, data, layout)
    draw_title_band(pdf, page.title, data, sheet)
    draw_technical_band(pdf, page.technical, data, sheet)
    draw_legend_band(pdf, page.legend, data, sheet, layout)
    draw_inset_band(pdf, page.inset, sheet)
    draw_footer_band(pdf, page.footer, data, sheet)

    return pdf


def generate_map_pdf(data: MapSheetData, config: Optional[Dict] = None) -> bytes:
    """
    Render the map sheet and return the finished PDF bytes.

    Raises:
        ProjectionError: If the polygon cannot be placed on the map panel
        RenderError(Internal): On any unexpected failure while building or
            serializing the page; no partial document is returned
    """
    logger.info("Generating map sheet PDF...")

    try:
        pdf = build_map_sheet(data, config)
        content = bytes(pdf.output())
    except ExportError:
        raise
    except Exception as e:
        logger.error(f"Failed to generate map sheet PDF: {e}", exc_info=True)
        raise RenderError(RenderError.INTERNAL, f"Map sheet could not be rendered: {e}") from e

    logger.info(f"✓ Map sheet rendered ({len(content):,} bytes)")
    return content
