# infra/exporters.py
"""
Writers for the hit-centric ScanReport.

Exports:
- JSON (schema_version "1.0-hits"): header + stats + hits[] + diagnostics[]
- CSV hits table: one row per hit (path, line, excerpt, kind)

Usage:
    from infra.exporters import JsonScanReportWriter, HitsCsvWriter
    JsonScanReportWriter("scan.json").write(report)
    HitsCsvWriter("hits.csv").write(report)
"""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Any, Dict

from core.interfaces import ScanReportWriter
from core.models import Hit, ScanReport

CSV_HEADER = ["path", "line", "excerpt", "kind"]


def _hit_to_plain(h: Hit) -> Dict[str, Any]:
    return {
        "path": h.display_path,
        "line": h.line_number,
        "excerpt": h.excerpt,
        "kind": h.kind_tag,
    }


def report_to_dict(report: ScanReport) -> Dict[str, Any]:
    header = report.header
    return {
        "schema_version": header.schema_version,
        "header": {
            "run_id": header.run_id,
            "root": str(header.root),
            "mode": header.mode.value,
            "pattern": header.pattern,
            "started_at_utc": header.started_at_utc.isoformat(),
            "finished_at_utc": header.finished_at_utc.isoformat(),
            "config_snapshot": header.config_snapshot,
        },
        "stats": report.stats.as_dict(),
        "hits": [_hit_to_plain(h) for h in report.hits],
        "diagnostics": [
            {"location": d.location, "error": d.error, "detail": d.detail}
            for d in report.diagnostics
        ],
    }


def report_to_json(report: ScanReport) -> str:
    return json.dumps(report_to_dict(report), ensure_ascii=False, indent=2)


def hits_to_csv(report: ScanReport) -> str:
    """CSV text for the hits table (used by file export and UI downloads)."""
    buf = io.StringIO()
    w = csv.writer(buf)
    w.writerow(CSV_HEADER)
    for h in report.hits:
        w.writerow([h.display_path, "" if h.line_number is None else h.line_number, h.excerpt, h.kind_tag])
    return buf.getvalue()


class JsonScanReportWriter(ScanReportWriter):
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def write(self, report: ScanReport) -> None:
        self.path.write_text(report_to_json(report), encoding="utf-8")


class HitsCsvWriter(ScanReportWriter):
    """
    Writes the hit table:
    path,line,excerpt,kind
    """
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def write(self, report: ScanReport) -> None:
        with self.path.open("w", newline="", encoding="utf-8") as fp:
            fp.write(hits_to_csv(report))
