"""
CSV exporter — Produces structured CSV summaries of findings and category scores.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from ..config import CATEGORY_WEIGHTS
from ..scoring.models import AuditReport

logger = logging.getLogger("proxguard.reporting")

FINDING_FIELDS = [
    "rule_id", "category", "severity", "title", "passed",
    "evidence", "details", "remediation", "cis_benchmark",
]

SCORE_FIELDS = [
    "category", "score", "weight", "finding_count", "failed_count",
    "critical", "high", "medium", "info",
]


def export_csv(report: AuditReport, output_dir: Path, scan_id: str) -> list[Path]:
    """
    Write CSV files for findings and category scores.

    Returns:
        List of created CSV file paths.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    created = []

    # --- Findings CSV ---
    findings_path = output_dir / f"findings_{scan_id}.csv"
    with open(findings_path, "w", newline="", encoding="utf-8-sig") as fh:
        writer = csv.DictWriter(fh, fieldnames=FINDING_FIELDS)
        writer.writeheader()
        for f in report.findings:
            writer.writerow({
                "rule_id": f.rule.id,
                "category": f.rule.category,
                "severity": f.rule.severity,
                "title": f.rule.title,
                "passed": "yes" if f.passed else "no",
                "evidence": f.result.evidence,
                "details": f.result.details or "",
                "remediation": f.rule.remediation,
                "cis_benchmark": f.rule.cis_benchmark or "",
            })
    created.append(findings_path)

    # --- Category Scores CSV ---
    scores_path = output_dir / f"category_scores_{scan_id}.csv"
    with open(scores_path, "w", newline="", encoding="utf-8-sig") as fh:
        writer = csv.DictWriter(fh, fieldnames=SCORE_FIELDS)
        writer.writeheader()
        for cat in report.categories:
            breakdown = cat.severity_breakdown()
            writer.writerow({
                "category": cat.category,
                "score": cat.score,
                "weight": CATEGORY_WEIGHTS.get(cat.category, 0),
                "finding_count": len(cat.findings),
                "failed_count": len(cat.failed),
                **breakdown,
            })
    created.append(scores_path)

    logger.debug(f"Wrote {len(created)} CSV file(s) to {output_dir}")
    return created
