"""
Markdown audit report — Full technical report rendered via Jinja2.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .. import __version__
from ..config import CATEGORY_DISPLAY, CATEGORY_WEIGHTS, SEVERITY_ICONS
from ..scoring.engine import prioritized_failures
from ..scoring.frameworks import build_compliance_summary
from ..scoring.models import AuditReport

logger = logging.getLogger("proxguard.reporting")

TEMPLATE_DIR = Path(__file__).parent / "templates"
TEMPLATE_NAME = "audit_report.md.j2"


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape([]),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def render_markdown(report: AuditReport, scan_id: str) -> str:
    template = _environment().get_template(TEMPLATE_NAME)
    generated = datetime.fromtimestamp(report.timestamp / 1000, tz=timezone.utc)
    return template.render(
        scan_id=scan_id,
        version=__version__,
        generated_utc=generated.strftime("%Y-%m-%d %H:%M:%S UTC"),
        report=report,
        failures=prioritized_failures(report),
        passed=[f for f in report.findings if f.passed],
        compliance=build_compliance_summary(report.findings),
        severity_icons=SEVERITY_ICONS,
        category_display=CATEGORY_DISPLAY,
        category_weights=CATEGORY_WEIGHTS,
    )


def export_markdown(report: AuditReport, output_dir: Path, scan_id: str) -> Path:
    """Generate the Markdown technical report and return its path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    filepath = output_dir / f"audit_report_{scan_id}.md"

    with open(filepath, "w", encoding="utf-8") as fh:
        fh.write(render_markdown(report, scan_id))

    logger.debug(f"Wrote Markdown report to {filepath}")
    return filepath
