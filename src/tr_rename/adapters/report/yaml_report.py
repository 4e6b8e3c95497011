"""YAML run report."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from ...domain.models import BatchReport, ProcessingResult

logger = logging.getLogger(__name__)


def _entry(result: ProcessingResult) -> dict[str, Any]:
    record = result.record
    entry: dict[str, Any] = {
        "source": str(result.source_path),
        "status": result.status.value,
        "target": str(result.output_path) if result.output_path else None,
        "type": record.doc_type.tag if record else None,
        "date": record.date.isoformat() if record and record.date else None,
        "isin": record.isin if record else None,
        "asset": record.asset if record else None,
    }
    if result.error:
        entry["error"] = {"kind": result.error.kind, "message": result.error.message}
    return entry


def report_to_dict(report: BatchReport) -> dict[str, Any]:
    return {
        "generated_at": datetime.now().isoformat(timespec="seconds"),
        "counts": {
            "total": len(report.results),
            "success": report.succeeded,
            "skipped": report.skipped,
            "error": report.failed,
        },
        "entries": [_entry(r) for r in report.results],
    }


def write_report(path: Path, report: BatchReport) -> Path:
    """Write the batch outcome as YAML and return the path."""
    path.write_text(
        yaml.safe_dump(
            report_to_dict(report),
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        ),
        encoding="utf-8",
    )
    logger.info(f"Report written: {path}")
    return path
