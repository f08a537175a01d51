# app/streamlit_app.py
"""
jarscope: Streamlit UI entry point.

Flow:
1) Configure logging + load config.
2) Let user pick a folder, a search mode, a pattern and options.
3) Build the SearchSpec (patterns are validated before anything is walked).
4) Run the orchestrator with a progress callback.
5) Show summary + hit table + skipped entries; allow CSV/JSON export.

Run:
    streamlit run app/streamlit_app.py
"""
from __future__ import annotations
# --- ensure project root is on sys.path ---
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]  # one level up from /app
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
# ------------------------------------------

import logging

import streamlit as st

from app.components import sidebar_archive_inventory
from core.errors import InvalidPattern, PathAccessError
from infra.config_loader import load_config
from infra.logging_config import configure_logging
from matchers.patterns import build_search_spec
from services.orchestrator import Orchestrator
from ui.components import (
    diagnostics_table,
    downloads,
    folder_picker,
    progress_widgets,
    results_table,
    search_form,
    summary_panel,
)


def main():
    st.set_page_config(page_title="jarscope | Archive Search", layout="wide")
    cfg = load_config()
    configure_logging(cfg.get("log_level", "INFO"), cfg.get("log_dir") or None)
    log = logging.getLogger("app")

    st.title("jarscope | Archive Search")
    st.caption("Search class names, packages, bytecode strings and text inside jar/zip/war/ear trees")

    root = folder_picker()
    request = search_form(cfg)

    colA, colB = st.columns([1, 3])
    run_clicked = colA.button("Search", type="primary", use_container_width=True)
    inventory_clicked = colB.button("List archives", use_container_width=True)

    if root and inventory_clicked:
        root_path = Path(root)
        if root_path.is_dir():
            sidebar_archive_inventory(root_path, request.exclusions)

    if run_clicked:
        if not root:
            st.error("Please enter a folder path.")
            return
        root_path = Path(root)

        try:
            spec = build_search_spec(
                request.mode,
                request.pattern,
                exclusions=request.exclusions,
                min_size=request.min_size,
                mini=request.mini,
                job_count=request.jobs,
                max_depth=request.max_depth,
                min_string_length=cfg.get("min_string_length", 4),
                carve_include_tab=cfg.get("carve_include_tab", True),
            )
        except (InvalidPattern, ValueError) as exc:
            st.error(str(exc))
            return

        on_progress = progress_widgets()
        orchestrator = Orchestrator(spec, on_progress=on_progress, batch_size=cfg.get("batch_size", 256))
        try:
            with st.spinner("Searching..."):
                report = orchestrator.run_scan(root_path)
        except PathAccessError as exc:
            st.error(str(exc))
            return

        st.divider()
        summary_panel(report)
        filtered_df = results_table(report)
        diagnostics_table(report)
        downloads(report, filtered_df)

        log.info("Search completed on %s. Results: %d hit(s).", root_path, len(report.hits))

    st.sidebar.header("Config")
    st.sidebar.write("**Jobs:**", cfg.get("jobs") or "CPU count")
    st.sidebar.write("**Max depth:**", cfg.get("max_depth", 8))
    st.sidebar.write("**Excluded:**", ", ".join(cfg.get("exclusions", [])) or "none")
    st.sidebar.write("**Log level:**", cfg.get("log_level", "INFO"))

    st.sidebar.markdown(
        "> Tip: Master search also matches file names inside archives."
    )


if __name__ == "__main__":
    main()
