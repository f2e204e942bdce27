"""
Configuration loading for the Tapak Proyek exporter.

This module handles loading of the export configuration JSON file and merges
each section over the named defaults below, so older or partial config files
keep working.

Constants:
    PROJECT_ROOT: Root directory of the project
    CONFIG_DIR: Configuration files directory
    OUTPUT_DIR: Output files directory
    FONTS_DIR: Optional TrueType fonts directory (DejaVu Sans)
    PAGE_WIDTH, PAGE_HEIGHT: Map sheet size in points (A3 landscape)

Functions:
    load_config: Load and validate export configuration from JSON
    load_layout_settings: Page layout fractions and map panel settings
    load_sheet_settings: Display strings printed on the map sheet
    load_interchange_settings: Shapefile package naming
"""

import json
from pathlib import Path
from typing import Dict, Optional

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_DIR = PROJECT_ROOT / 'config'
OUTPUT_DIR = PROJECT_ROOT / 'outputs'
FONTS_DIR = PROJECT_ROOT / 'fonts'

CONFIG_FILENAME = 'export_config.json'

# Page size in points (A3 landscape at 72 dpi)
PAGE_WIDTH = 1191
PAGE_HEIGHT = 842

# Page proportions
PAGE_MARGIN = 20
MAP_PANEL_WIDTH_FRACTION = 0.69
TITLE_BAND_FRACTION = 0.12
TECHNICAL_BAND_FRACTION = 0.13
LEGEND_BAND_FRACTION = 0.35
INSET_BAND_FRACTION = 0.25

# Map panel
GRID_MARGIN = 40
GRID_STEPS = 10
TICK_LABEL_STEPS = 4
MAP_PADDING_FRACTION = 0.15
SCALE_BAR_LENGTH_M = 1000
VERTEX_TABLE_LIMIT = 4

DEFAULT_LAYOUT_SETTINGS = {
    'page_margin': PAGE_MARGIN,
    'map_panel_width_fraction': MAP_PANEL_WIDTH_FRACTION,
    'title_band_fraction': TITLE_BAND_FRACTION,
    'technical_band_fraction': TECHNICAL_BAND_FRACTION,
    'legend_band_fraction': LEGEND_BAND_FRACTION,
    'inset_band_fraction': INSET_BAND_FRACTION,
    'grid_margin': GRID_MARGIN,
    'grid_steps': GRID_STEPS,
    'tick_label_steps': TICK_LABEL_STEPS,
    'padding_fraction': MAP_PADDING_FRACTION,
    'scale_bar_length_m': SCALE_BAR_LENGTH_M,
    'vertex_table_limit': VERTEX_TABLE_LIMIT,
    'polygon_fill_color': [255, 215, 0],
    'polygon_fill_opacity': 0.55,
}

DEFAULT_SHEET_SETTINGS = {
    'sheet_title': 'PETA LOKASI KEGIATAN',
    'document_title': 'Peta Tapak Proyek',
    'document_author': 'AMDALNET Shapefile Converter',
    'document_subject': 'Peta Tapak Proyek AMDALNET',
    'technical_parameters': [
        ['Skala', '1:10.000 (A3)'],
        ['Proyeksi', 'Transverse Mercator'],
        ['Sistem Grid', 'Geografi'],
        ['Datum Horizontal', 'WGS84 - Zona 49 S'],
    ],
    'coordinate_system_label': 'Sistem Koordinat',
    'legend_title': 'KETERANGAN',
    'legend_items': [
        ['point', 'Titik ikat Tapak/Lokasi Kegiatan'],
        ['dashed', 'Batas Kelurahan/Desa'],
        ['river', 'Sungai'],
        ['road', 'Jalan'],
    ],
    'polygon_legend_label': 'Tapak/Lokasi Kegiatan',
    'vertex_table_title': 'Titik ikat Tapak/Lokasi Kegiatan',
    'attribute_table_title': 'Atribut Tapak Proyek',
    'inset_label': 'Peta Inset Indonesia',
    'source_title': 'SUMBER PETA:',
    'creator_label': 'Dibuat oleh:',
    'default_author_name': 'User',
    'date_label': 'Tanggal',
    'provenance': 'Created by - AMDALNET Shapefile Converter',
    'utc_offset_hours': 7,
    'timezone_name': 'WIB',
}

DEFAULT_INTERCHANGE_SETTINGS = {
    'folder_name': 'Tapak_proyek',
    'layer_name': 'Tapak_proyek',
    'encoding': 'utf-8',
}


def load_config(config_path: Optional[Path] = None) -> Dict:
    """
    Load export configuration from JSON file.

    Reads export_config.json and validates basic structure.

    Parameters:
    -----------
    config_path : Optional[Path]
        Alternate configuration file. Defaults to CONFIG_DIR/export_config.json

    Returns:
    --------
    Dict
        Configuration dictionary with 'layout' and 'sheet' keys

    Raises:
    -------
    FileNotFoundError
        If configuration file doesn't exist
    json.JSONDecodeError
        If configuration file contains invalid JSON
    KeyError
        If required configuration keys are missing
    """
    if config_path is None:
        config_path = CONFIG_DIR / CONFIG_FILENAME

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        config = json.load(f)

    # Validate required keys
    if 'layout' not in config:
        raise KeyError("Configuration missing required 'layout' key")
    if 'sheet' not in config:
        raise KeyError("Configuration missing required 'sheet' key")

    return config


def _merge_section(defaults: Dict, config: Optional[Dict], section: str) -> Dict:
    if config is None:
        config = load_config()
    return {**defaults, **config.get(section, {})}


def load_layout_settings(config: Optional[Dict] = None) -> Dict:
    """
    Load page layout settings from configuration.

    Args:
        config: Configuration dictionary (optional, will load if not provided)

    Returns:
        Dictionary with layout settings, config values overriding
        DEFAULT_LAYOUT_SETTINGS

    Raises:
        ValueError: If the information-panel band fractions leave no room
            for the footer band
    """
    settings = _merge_section(DEFAULT_LAYOUT_SETTINGS, config, 'layout')

    band_total = (
        settings['title_band_fraction']
        + settings['technical_band_fraction']
        + settings['legend_band_fraction']
        + settings['inset_band_fraction']
    )
    if band_total >= 1.0:
        raise ValueError(
            f"Information panel band fractions sum to {band_total:.2f}; "
            "the footer band needs the remainder"
        )
    if not 0.0 < settings['map_panel_width_fraction'] < 1.0:
        raise ValueError("map_panel_width_fraction must be between 0 and 1")

    return settings


def load_sheet_settings(config: Optional[Dict] = None) -> Dict:
    """Load the display strings printed on the map sheet."""
    return _merge_section(DEFAULT_SHEET_SETTINGS, config, 'sheet')


def load_interchange_settings(config: Optional[Dict] = None) -> Dict:
    """Load shapefile package folder/layer naming."""
    return _merge_section(DEFAULT_INTERCHANGE_SETTINGS, config, 'interchange')
