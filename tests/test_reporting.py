"""Tests for the JSON, CSV and Markdown exporters."""

from __future__ import annotations

import csv
import json

import pytest

from proxguard.reporting import export_csv, export_json, export_markdown
from proxguard.reporting.markdown_report import render_markdown
from proxguard.scoring import generate_audit_report

SCAN_ID = "20240101_000000_test"


@pytest.fixture
def insecure_report(insecure_config):
    return generate_audit_report(insecure_config, timestamp=1704067200000)


@pytest.fixture
def hardened_report(hardened_config):
    return generate_audit_report(hardened_config, timestamp=1704067200000)


def test_json_export(insecure_report, tmp_path):
    path = export_json(insecure_report, tmp_path / "out", SCAN_ID)
    assert path.name == f"proxguard_audit_{SCAN_ID}.json"

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["metadata"]["scan_id"] == SCAN_ID
    assert data["metadata"]["mode"] == "READ-ONLY"
    assert data["report"]["overall_score"] == 38
    assert data["report"]["overall_grade"] == "F"
    assert len(data["report"]["findings"]) == 16
    assert data["compliance"]["total_mapped"] == 9


def test_csv_export(insecure_report, tmp_path):
    findings_path, scores_path = export_csv(insecure_report, tmp_path, SCAN_ID)
    assert findings_path.name == f"findings_{SCAN_ID}.csv"
    assert scores_path.name == f"category_scores_{SCAN_ID}.csv"

    with open(findings_path, newline="", encoding="utf-8-sig") as fh:
        rows = list(csv.DictReader(fh))
    assert len(rows) == 16
    assert rows[0]["rule_id"] == "root-ssh-password"
    assert rows[0]["passed"] == "no"
    assert rows[0]["cis_benchmark"] == "CIS Debian 11 - 5.2.10"

    with open(scores_path, newline="", encoding="utf-8-sig") as fh:
        scores = {row["category"]: row for row in csv.DictReader(fh)}
    assert list(scores) == ["ssh", "firewall", "auth", "container", "storage", "api"]
    assert scores["ssh"]["score"] == "15"
    assert scores["ssh"]["weight"] == "25"
    assert scores["ssh"]["critical"] == "1"
    assert scores["ssh"]["medium"] == "2"


def test_markdown_failed_checks(insecure_report, tmp_path):
    path = export_markdown(insecure_report, tmp_path, SCAN_ID)
    assert path.name == f"audit_report_{SCAN_ID}.md"

    text = path.read_text(encoding="utf-8")
    assert text.startswith("# ProxGuard Security Audit Report")
    assert "**38 / 100**" in text
    assert "2024-01-01 00:00:00 UTC" in text
    assert "`root-ssh-password`" in text
    assert "🔴 Root SSH with Password Authentication (critical)" in text
    assert "```bash" in text
    assert "pvesh set /cluster/firewall/options --enable 1" in text
    # most severe failure is listed first
    assert text.index("Root SSH with Password Authentication") < text.index("MaxAuthTries Too High")


def test_markdown_all_passed(hardened_report):
    text = render_markdown(hardened_report, SCAN_ID)
    assert "All 16 checks passed." in text
    assert "```bash" not in text
    assert "- `firewall-disabled`" in text
