"""
Utility modules for the Tapak Proyek exporter.

This package contains the rendering and packaging helpers used by the export
workflow.

Modules:
    logger: Logging configuration and setup
    coordinates: Decimal degrees to DMS strings
    projection: Bounding box to map panel transform
    attribute_table: Shared AMDALNET attribute field contract
    pdf_generator: A3 map sheet composition with fpdf2
    shapefile_packager: Zipped shapefile package
"""

__version__ = '1.0.0'
