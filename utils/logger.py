"""
Logging for the Tapak Proyek exporter.

Every module logs through a child of the ``tapak`` logger, so one call to
setup_logging() at the start of a CLI run routes normalization warnings,
rendering progress and export failures to the terminal and to a per-run
file under logs/. Library callers that never call setup_logging() get no
handlers from this package and keep their own logging setup.
"""

import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional

ROOT_LOGGER_NAME = 'tapak'

CONSOLE_FORMAT = '%(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FILE_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(log_dir: Optional[Path] = None) -> Path:
    """
    Attach the run's handlers to the ``tapak`` logger.

    Progress lines (INFO and up) go to stdout without decoration; the
    run file ``tapak_YYYYMMDD_HHMMSS.log`` also keeps DEBUG records such
    as ring sizes and bounding boxes. Calling it again replaces the
    handlers of the previous run.

    Parameters:
    -----------
    log_dir : Optional[Path]
        Where the run file goes. Defaults to logs/ beside the packages

    Returns:
    --------
    Path
        The run file
    """
    if log_dir is None:
        log_dir = Path(__file__).parent.parent / 'logs'
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / f"tapak_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    run_file = logging.FileHandler(log_file, encoding='utf-8')
    run_file.setLevel(logging.DEBUG)
    run_file.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))

    logger.addHandler(console)
    logger.addHandler(run_file)

    logger.debug(f"Run log: {log_file}")

    return log_file


def get_logger(name: str) -> logging.Logger:
    """Child of the ``tapak`` logger for a module, usually ``get_logger(__name__)``."""
    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')
