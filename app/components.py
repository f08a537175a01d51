from pathlib import Path
from typing import List

import pandas as pd
import streamlit as st

from core.models import ArchiveSummary
from services.inventory import list_archives


def inventory_to_dataframe(summaries: List[ArchiveSummary]) -> pd.DataFrame:
    rows = [
        {
            "Archive": str(s.path),
            "Classes": s.class_count,
            "Java": s.java_count,
            "Files": s.file_count,
            "Size (MB)": round(s.size_bytes / (1024 * 1024), 2),
            "Error": s.error or "",
        }
        for s in summaries
    ]
    return pd.DataFrame(rows, columns=["Archive", "Classes", "Java", "Files", "Size (MB)", "Error"])


def sidebar_archive_inventory(root: Path, exclusions: List[str]) -> None:
    """
    Render a sidebar overview of the archives under `root`.

    Cached per (root, exclusions) in session state so reruns of the script
    don't walk the tree again.
    """
    state_key = f"inventory::{root.resolve()}::{','.join(sorted(exclusions))}"
    if state_key not in st.session_state:
        st.session_state[state_key] = list_archives(root, exclusions=exclusions)
    summaries = st.session_state[state_key]

    if not summaries:
        st.sidebar.info("No archives found in the selected folder.")
        return

    df = inventory_to_dataframe(summaries)
    st.sidebar.caption(
        f"{len(df)} archive(s), {int(df['Classes'].sum())} classes, {df['Size (MB)'].sum():.2f} MB"
    )
    st.sidebar.dataframe(df[["Archive", "Classes", "Files", "Size (MB)"]], use_container_width=True)
