# ui/__init__.py
"""
UI package convenience exports.

This keeps import sites clean:
    from ui import folder_picker, summary_panel, results_table
instead of:
    from ui.components import folder_picker, summary_panel, results_table
"""

from __future__ import annotations

from .components import (
    folder_picker,
    search_form,
    summary_panel,
    results_table,
    diagnostics_table,
    downloads,
    progress_widgets,
    hits_to_dataframe,
)

__all__ = [
    "folder_picker",
    "search_form",
    "summary_panel",
    "results_table",
    "diagnostics_table",
    "downloads",
    "progress_widgets",
    "hits_to_dataframe",
]

__version__ = "0.1.0"
