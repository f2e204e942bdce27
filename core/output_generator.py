"""
Output generation module for the Tapak Proyek exporter.

Export operations return artifacts in memory; this module is the one place
that writes them to disk, for the command-line workflow. Creates a
timestamped directory holding the PDF map sheets, the shapefile package and
metadata.json.

Functions:
    save_artifacts: Write artifacts and metadata to an output directory
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from config.config_loader import OUTPUT_DIR
from core.models import ExportArtifact
from utils.logger import get_logger

logger = get_logger(__name__)


def unique_filename(filename: str, taken: set) -> str:
    """Add a ``_2``, ``_3``... suffix before the extension until unused."""
    if filename not in taken:
        return filename
    stem, dot, ext = filename.rpartition('.')
    if not dot:
        stem, ext = filename, ''
    n = 2
    while True:
        candidate = f"{stem}_{n}.{ext}" if ext else f"{stem}_{n}"
        if candidate not in taken:
            return candidate
        n += 1


def save_artifacts(
    artifacts: Sequence[ExportArtifact],
    output_name: Optional[str] = None,
    output_dir: Optional[Path] = None,
    metadata: Optional[Dict] = None
) -> Path:
    """
    Write export artifacts and a metadata.json summary.

    Parameters:
    -----------
    artifacts : Sequence[ExportArtifact]
        Artifacts to write, in order. Repeated filenames get a numeric suffix
    output_name : Optional[str]
        Output directory name (defaults to tapak_export_YYYYMMDD_HHMMSS)
    output_dir : Optional[Path]
        Parent directory (defaults to OUTPUT_DIR)
    metadata : Optional[Dict]
        Extra values merged into metadata.json

    Returns:
    --------
    Path
        Path to the output directory

    Example:
        >>> output_path = save_artifacts([pdf_artifact, zip_artifact])
        >>> output_path
        Path('outputs/tapak_export_20250108_143022')
    """
    logger.info("=" * 80)
    logger.info("Saving Output Files")
    logger.info("=" * 80)

    if output_name is None:
        output_name = f"tapak_export_{datetime.now().strftime('%Y%m%d_%H%M%S')}"

    output_path = (output_dir or OUTPUT_DIR) / output_name
    output_path.mkdir(parents=True, exist_ok=True)
    logger.info(f"Output directory: {output_path}")

    taken: set = set()
    written: List[Dict] = []
    for artifact in artifacts:
        filename = unique_filename(artifact.filename, taken)
        taken.add(filename)
        (output_path / filename).write_bytes(artifact.content)
        written.append({
            'filename': filename,
            'mime_type': artifact.mime_type,
            'size_bytes': artifact.size,
        })
        logger.info(f"  - {filename} ({artifact.size:,} bytes)")

    summary = {
        'generated_at': datetime.now().isoformat(),
        'artifacts': written,
    }
    if metadata:
        summary.update(metadata)

    with open(output_path / 'metadata.json', 'w', encoding='utf-8') as f:
        json.dump(summary, f, indent=2, ensure_ascii=False)

    logger.info("  - metadata.json (export summary)")
    logger.info(f"✓ {len(written)} artifact(s) saved to {output_path}")
    return output_path
