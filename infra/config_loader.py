# infra/config_loader.py
"""
Central configuration loader for jarscope.

- One place for default values.
- Environment variable overrides for quick tweaks (no code changes).
- CLI flags and the Streamlit form take precedence over both; they read
  these values only as defaults.

Environment variables:
- JARSCOPE_LOG_LEVEL            (DEBUG/INFO/WARNING/ERROR)
- JARSCOPE_LOG_DIR              (directory for the rotating log file; empty = console only)
- JARSCOPE_JOBS                 (int; 0 = one worker per CPU)
- JARSCOPE_MAX_DEPTH            (int; nested archive depth bound, default 8)
- JARSCOPE_MIN_STRING_LENGTH    (int; shortest carved string, default 4)
- JARSCOPE_CARVE_INCLUDE_TAB    ("1"/"true"/"yes" -> True)
- JARSCOPE_MIN_SIZE             (int; bytes, filesystem files only)
- JARSCOPE_BATCH_SIZE           (int; work items per scheduled batch)
- JARSCOPE_EXCLUDES             (comma-separated path substrings)
"""

from __future__ import annotations

import os
from typing import Any, Dict, List


_DEFAULT: Dict[str, Any] = {
    "log_level": "INFO",
    "log_dir": "",

    # Scheduler
    "jobs": 0,
    "batch_size": 256,

    # Traversal
    "max_depth": 8,
    "min_size": 0,
    "exclusions": [],

    # Carving
    "min_string_length": 4,
    "carve_include_tab": True,
}


def load_config() -> Dict[str, Any]:
    """
    Return a config dict. Environment variables can override every key.

    Invalid integers are ignored and the default is kept.
    """
    cfg = dict(_DEFAULT)
    cfg["exclusions"] = list(_DEFAULT["exclusions"])

    # Numeric overrides
    _int_env(cfg, "jobs", "JARSCOPE_JOBS")
    _int_env(cfg, "batch_size", "JARSCOPE_BATCH_SIZE")
    _int_env(cfg, "max_depth", "JARSCOPE_MAX_DEPTH")
    _int_env(cfg, "min_size", "JARSCOPE_MIN_SIZE")
    _int_env(cfg, "min_string_length", "JARSCOPE_MIN_STRING_LENGTH")

    # Boolean overrides
    _bool_env(cfg, "carve_include_tab", "JARSCOPE_CARVE_INCLUDE_TAB")

    # String overrides
    _str_upper_env(cfg, "log_level", "JARSCOPE_LOG_LEVEL")
    _str_env(cfg, "log_dir", "JARSCOPE_LOG_DIR")

    # List overrides
    ex = os.getenv("JARSCOPE_EXCLUDES")
    if ex:
        cfg["exclusions"] = _split_list(ex)

    return cfg


# ----------------- helpers -----------------

def _split_list(s: str) -> List[str]:
    return [part.strip() for part in s.split(",") if part.strip()]


def _bool_env(cfg: Dict[str, Any], key: str, env_key: str) -> None:
    val = os.getenv(env_key)
    if val is None:
        return
    s = val.strip().lower()
    cfg[key] = s in {"1", "true", "yes", "on"}


def _int_env(cfg: Dict[str, Any], key: str, env_key: str) -> None:
    val = os.getenv(env_key)
    if val and val.strip().isdigit():
        cfg[key] = int(val.strip())


def _str_env(cfg: Dict[str, Any], key: str, env_key: str) -> None:
    val = os.getenv(env_key)
    if val is not None:
        cfg[key] = val.strip()


def _str_upper_env(cfg: Dict[str, Any], key: str, env_key: str) -> None:
    val = os.getenv(env_key)
    if val is not None:
        cfg[key] = val.strip().upper()
