# infra/logging_config.py
"""
Centralized logging setup: console always, rotating file when a log
directory is configured.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

LOG_FILE_NAME = "jarscope.log"


def configure_logging(level_name: str = "INFO", log_dir: Optional[Union[str, Path]] = None) -> None:
    """
    Configure console (stderr) + optional rotating file logging.

    Args:
        level_name: "DEBUG" | "INFO" | "WARNING" | "ERROR"
        log_dir: directory for jarscope.log (5 MB x 3); None/"" = console only
    """
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s")

    root = logging.getLogger()
    root.setLevel(level)
    # Streamlit reruns the script; keep the handlers already attached
    for h in root.handlers:
        h.setLevel(level)

    if not root.handlers:
        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(fmt)
        root.addHandler(console)

    if log_dir:
        log_path = Path(log_dir)
        target = os.path.abspath(log_path / LOG_FILE_NAME)
        if not any(isinstance(h, RotatingFileHandler) and h.baseFilename == target for h in root.handlers):
            log_path.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(target, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
            file_handler.setLevel(level)
            file_handler.setFormatter(fmt)
            root.addHandler(file_handler)
