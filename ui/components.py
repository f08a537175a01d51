# ui/components.py
"""
Streamlit UI helpers (pure rendering/inputs; no business logic).

Functions:
- folder_picker() -> Optional[str]
- search_form(cfg) -> SearchRequest
- progress_widgets() -> on_progress closure for the orchestrator callback
- progress_label(done, path) -> str (no Streamlit calls)
- summary_panel(report)
- results_table(report) -> pandas.DataFrame
- diagnostics_table(report)
- downloads(report, df)  -> renders CSV/JSON download buttons
- hits_to_dataframe(hits) -> pandas.DataFrame (no Streamlit calls)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

import pandas as pd
import streamlit as st

from core.models import Hit, ScanReport, SearchMode
from infra.exporters import report_to_json

HIT_COLUMNS = ["Path", "Line", "Kind", "Excerpt"]

_MODE_LABELS = {
    SearchMode.EXACT: "Exact class name",
    SearchMode.SUBSTRING: "Class name contains",
    SearchMode.PACKAGE: "Package prefix",
    SearchMode.CONTENT: "Regex in class bytecode",
    SearchMode.MASTER: "Master search (everything)",
}


@dataclass
class SearchRequest:
    """What the form collected; the app turns it into a SearchSpec."""
    mode: SearchMode
    pattern: str
    exclusions: List[str] = field(default_factory=list)
    min_size: int = 0
    mini: bool = False
    jobs: int = 0
    max_depth: int = 8


# -------- Inputs --------

def folder_picker() -> Optional[str]:
    """
    Folder entry. Streamlit doesn't have a native folder dialog, so we use
    a text input.
    """
    return st.text_input(
        "Folder to search",
        placeholder="/opt/app/lib",
        help="Subfolders and archives (jar, zip, war, ear) are searched recursively.",
    ).strip() or None


def search_form(cfg: Dict[str, Any]) -> SearchRequest:
    """Mode, pattern and options. Defaults come from the loaded config."""
    col1, col2 = st.columns([1, 2])
    mode = col1.selectbox(
        "Search mode",
        options=list(_MODE_LABELS),
        format_func=lambda m: _MODE_LABELS[m],
        index=list(_MODE_LABELS).index(SearchMode.MASTER),
    )
    pattern = col2.text_input("Pattern", placeholder="e.g. password|secret, or com.example.Util")

    with st.expander("Options", expanded=False):
        c1, c2, c3, c4 = st.columns(4)
        jobs = c1.number_input("Jobs (0 = CPU count)", min_value=0, value=int(cfg.get("jobs", 0)), step=1)
        max_depth = c2.number_input("Max nesting depth", min_value=0, value=int(cfg.get("max_depth", 8)), step=1)
        min_size = c3.number_input("Min file size (bytes)", min_value=0, value=int(cfg.get("min_size", 0)), step=1024)
        mini = c4.checkbox("Only list matching files", value=False)
        excludes = st.text_input(
            "Exclude paths containing (comma-separated)",
            value=", ".join(cfg.get("exclusions", [])),
        )

    return SearchRequest(
        mode=mode,
        pattern=pattern,
        exclusions=[e.strip() for e in excludes.split(",") if e.strip()],
        min_size=int(min_size),
        mini=bool(mini),
        jobs=int(jobs),
        max_depth=int(max_depth),
    )


# -------- Progress wiring --------

def progress_widgets() -> Callable[[int, str], None]:
    """
    Create a status placeholder and return on_progress(done, display_path).
    The total is unknown while the walk is running, so only the running
    count and the current path are shown; the caller wraps the scan in a
    spinner.
    """
    status = st.empty()

    def on_progress(done: int, display_path: str) -> None:
        status.caption(progress_label(done, display_path))

    return on_progress


def progress_label(done: int, display_path: str) -> str:
    return f"Searched {done} item(s) | {display_path}"


# -------- Results rendering --------

def hits_to_dataframe(hits: Iterable[Hit]) -> pd.DataFrame:
    rows = [
        {
            "Path": h.display_path,
            "Line": h.line_number,
            "Kind": h.kind_tag,
            "Excerpt": h.excerpt,
        }
        for h in hits
    ]
    df = pd.DataFrame(rows, columns=HIT_COLUMNS)
    # Nullable ints so missing line numbers stay empty instead of NaN floats
    df["Line"] = df["Line"].astype("Int64")
    return df


def summary_panel(report: ScanReport) -> None:
    st.subheader("Summary")
    s = report.stats
    c1, c2, c3, c4, c5 = st.columns(5)
    c1.metric("Files searched", s.total_files)
    c2.metric("Hits", s.total_hits)
    c3.metric("Files with hits", s.unique_files)
    c4.metric("Archives", s.jar_files + s.zip_files)
    c5.metric("Skipped", s.skipped)
    st.caption(f"{s.elapsed_seconds:.2f}s with {s.jobs} job(s), mode {report.header.mode.value!r}")


def results_table(report: ScanReport) -> pd.DataFrame:
    """
    Render the hit table with kind/text filters.
    Returns the filtered DataFrame (for export).
    """
    df = hits_to_dataframe(report.hits)
    if df.empty:
        st.info("No matches found.")
        return df

    with st.expander("Hits (filters)", expanded=False):
        cols = st.columns(2)
        kinds = sorted(df["Kind"].unique())
        kind_sel = cols[0].multiselect("Kind", options=kinds, default=kinds)
        substr = cols[1].text_input("Text filter", value="")

    fdf = filter_hits(df, kind_sel, substr)
    st.dataframe(fdf, use_container_width=True)
    return fdf


def filter_hits(df: pd.DataFrame, kinds: Iterable[str], substr: str = "") -> pd.DataFrame:
    mask = df["Kind"].isin(list(kinds))
    if substr:
        s = substr.lower()
        mask &= (
            df["Path"].str.lower().str.contains(s, na=False, regex=False)
            | df["Excerpt"].str.lower().str.contains(s, na=False, regex=False)
        )
    return df[mask].reset_index(drop=True)


def diagnostics_table(report: ScanReport) -> None:
    if not report.diagnostics:
        return
    with st.expander(f"Skipped ({len(report.diagnostics)})", expanded=False):
        st.dataframe(
            pd.DataFrame(
                [{"Location": d.location, "Error": d.error, "Detail": d.detail} for d in report.diagnostics]
            ),
            use_container_width=True,
        )


def downloads(report: ScanReport, df: pd.DataFrame) -> None:
    if df.empty:
        return
    csv = df.rename(columns=str.lower)[["path", "line", "excerpt", "kind"]].to_csv(index=False).encode("utf-8")
    c1, c2 = st.columns(2)
    c1.download_button("Download CSV", data=csv, file_name="jarscope_hits.csv", mime="text/csv")
    c2.download_button(
        "Download JSON report",
        data=report_to_json(report).encode("utf-8"),
        file_name="jarscope_report.json",
        mime="application/json",
    )
