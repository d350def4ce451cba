"""
log_utils.py
------------
Logging setup shared by the pipeline scripts.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

LOG_FORMAT = "%(asctime)s  %(levelname)s  %(message)s"
DATE_FORMAT = "%H:%M:%S"


def setup_logging(
    save_results: bool,
    log_subdir: str,
    script_name: str,
    log_root: Path = Path("logs"),
) -> logging.Logger:
    """
    Configure logging for a pipeline script:
      - save_results=False → StreamHandler (terminal) only
      - save_results=True  → FileHandler (file) only, no terminal output
    Log path: <log_root>/<log_subdir>/<script_name>_YYYYMMDD_HHMMSS.log

    The handler is attached to both the script logger and the ``twinprot``
    package logger so library messages end up in the same place.
    """
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    if save_results:
        log_dir = Path(log_root) / log_subdir
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = log_dir / f"{script_name}_{timestamp}.log"
        handler: logging.Handler = logging.FileHandler(log_path)
    else:
        handler = logging.StreamHandler()

    handler.setLevel(logging.INFO)
    handler.setFormatter(formatter)

    attached = False
    for name in (script_name, "twinprot"):
        logger = logging.getLogger(name)
        logger.setLevel(logging.INFO)
        if not _has_equivalent(logger, handler):
            logger.addHandler(handler)
            attached = True
    if not attached:
        handler.close()
    return logging.getLogger(script_name)


def _has_equivalent(logger: logging.Logger, handler: logging.Handler) -> bool:
    """True if *logger* already has a handler of the same type writing to the same place."""
    target = getattr(handler, "baseFilename", None)
    return any(
        type(h) is type(handler) and getattr(h, "baseFilename", None) == target
        for h in logger.handlers
    )
