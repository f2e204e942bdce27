#!/usr/bin/env python
"""
Tapak Proyek Exporter
=====================
Produces the AMDALNET "Peta Tapak Proyek" map sheet (A3 PDF) for each site
polygon of a project, plus one zipped shapefile package with the project's
polygons, from a JSON request file.

The request file carries the records alongside what to export:

    {
        "projects": [...],
        "polygons": [...],
        "export": {
            "projectId": 1,
            "objectIds": [1, 2],                       (optional, default all)
            "author": {"name": "...", "email": "..."}, (optional)
            "renderedAt": "2024-05-01T08:00:00+07:00"  (optional, default now)
        }
    }

Usage:
    python tapak_exporter.py request.json [--output-name NAME]
"""

import argparse
import json
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# Import logging first
from utils.logger import setup_logging, get_logger

from config.config_loader import load_config
from core.exceptions import ExportError, NotFoundError
from core.export_orchestrator import ExportService
from core.models import Author
from core.output_generator import save_artifacts
from core.record_store import JsonRecordStore


def _parse_rendered_at(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    rendered_at = datetime.fromisoformat(value)
    if rendered_at.tzinfo is None:
        rendered_at = rendered_at.replace(tzinfo=timezone.utc)
    return rendered_at


def main(input_file: str, output_name: Optional[str] = None,
         output_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Main execution workflow for the Tapak Proyek exporter.

    Workflow Steps:
    1. Setup logging to console and file
    2. Load configuration and the request file
    3. Render a map sheet PDF for each requested polygon
    4. Build the shapefile package for the project
    5. Save artifacts and metadata

    Parameters:
    -----------
    input_file : str
        Path to the JSON request file
    output_name : Optional[str]
        Custom name for output directory (defaults to timestamped name)
    output_dir : Optional[Path]
        Parent directory for outputs (defaults to OUTPUT_DIR)

    Returns:
    --------
    Optional[Path]
        Path to output directory if successful, None if failed
    """
    workflow_start_time = time.time()

    log_file = setup_logging()
    logger = get_logger(__name__)

    logger.info("=" * 80)
    logger.info("TAPAK PROYEK EXPORTER - AMDALNET Map Sheet & Shapefile")
    logger.info("=" * 80)
    logger.info(f"Log file: {log_file}")
    logger.info("")

    try:
        config = load_config()

        with open(input_file, 'r', encoding='utf-8') as f:
            request = json.load(f)

        store = JsonRecordStore(request)
        export_request = request.get('export', {})
        project_id = int(export_request['projectId'])
        author_payload = export_request.get('author') or {}
        author = Author(
            name=author_payload.get('name', ''),
            email=author_payload.get('email', ''),
        )
        rendered_at = _parse_rendered_at(export_request.get('renderedAt'))

        project = store.get_project(project_id)
        if project is None:
            raise NotFoundError(NotFoundError.PROJECT, f"Project {project_id} not found")

        object_ids = export_request.get('objectIds')
        if object_ids is None:
            object_ids = [record.object_id for record in store.get_project_polygons(project_id)]
        logger.info(f"Project: {project.name} ({len(object_ids)} polygon(s) requested)")
        logger.info("")

        service = ExportService(store, store, config)
        artifacts = [
            service.export_map(project_id, int(object_id), author, rendered_at)
            for object_id in object_ids
        ]
        artifacts.append(service.export_interchange(project_id))

        total_execution_time = time.time() - workflow_start_time
        output_path = save_artifacts(
            artifacts,
            output_name=output_name,
            output_dir=output_dir,
            metadata={
                'project': {'id': project.id, 'name': project.name},
                'object_ids': [int(object_id) for object_id in object_ids],
                'rendered_at': rendered_at.isoformat(),
                'execution_time_seconds': round(total_execution_time, 2),
            },
        )

        logger.info("")
        logger.info("✓ WORKFLOW COMPLETE")
        logger.info(f"✓ Total execution time: {total_execution_time:.2f} seconds")
        logger.info(f"✓ Output directory: {output_path}")
        logger.info(f"✓ Log file: {log_file}")
        logger.info("")

        return output_path

    except ExportError as e:
        logger.error("")
        logger.error("=" * 80)
        logger.error(f"✗ EXPORT FAILED [{e.code}] at stage '{e.stage}'")
        logger.error("=" * 80)
        logger.error(f"Error: {e.message}")
        logger.error(f"See log file for details: {log_file}")
        return None

    except Exception as e:
        elapsed_time = time.time() - workflow_start_time

        logger.error("")
        logger.error("=" * 80)
        logger.error("✗ WORKFLOW FAILED")
        logger.error("=" * 80)
        logger.error(f"Error: {str(e)}", exc_info=True)
        logger.error(f"Workflow failed after {elapsed_time:.2f} seconds")
        logger.error("")
        logger.error(f"See log file for details: {log_file}")
        logger.error("=" * 80)
        return None


def cli() -> int:
    """Console entry point: parse arguments and run the export."""
    parser = argparse.ArgumentParser(description="Export AMDALNET Tapak Proyek map sheets and shapefile")
    parser.add_argument('input_file', help="JSON request file with projects, polygons and export settings")
    parser.add_argument('--output-name', default=None, help="Output directory name under outputs/")
    args = parser.parse_args()

    output_dir = main(args.input_file, args.output_name)

    if output_dir:
        print(f"\n✓ Success! Files written to {output_dir}")
        return 0
    print("\n✗ Export failed. Check log file for details.")
    return 1


if __name__ == "__main__":
    sys.exit(cli())
