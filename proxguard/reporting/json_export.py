"""
JSON exporter — Produces the full serialised audit report.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from .. import __version__
from ..scoring.frameworks import build_compliance_summary
from ..scoring.models import AuditReport

logger = logging.getLogger("proxguard.reporting")


def build_payload(report: AuditReport, scan_id: str) -> dict:
    """Everything the JSON file contains, as plain data."""
    return {
        "metadata": {
            "engine": "ProxGuard",
            "version": __version__,
            "scan_id": scan_id,
            "generated_utc": datetime.now(timezone.utc).isoformat(),
            "mode": "READ-ONLY",
        },
        "report": report.to_dict(),
        "compliance": build_compliance_summary(report.findings).to_dict(),
    }


def export_json(report: AuditReport, output_dir: Path, scan_id: str) -> Path:
    """
    Write the audit report to a JSON file.

    Returns:
        Path to the created JSON file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    filepath = output_dir / f"proxguard_audit_{scan_id}.json"

    with open(filepath, "w", encoding="utf-8") as fh:
        json.dump(build_payload(report, scan_id), fh, indent=2, ensure_ascii=False)

    logger.debug(f"Wrote JSON report to {filepath}")
    return filepath
