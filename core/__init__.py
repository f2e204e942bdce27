"""
Core modules for the Tapak Proyek exporter.

This package contains the data model, error taxonomy and export workflow for
the AMDALNET project-site map sheet and shapefile package.

Modules:
    models: Project, PolygonRecord, Author, ExportArtifact and lookup protocols
    exceptions: ExportError hierarchy with structured error payloads
    export_orchestrator: export_map / export_interchange entry points
    record_store: JSON-backed project and polygon lookups
    output_generator: Save artifacts and metadata to an output directory
"""

__version__ = '1.0.0'
