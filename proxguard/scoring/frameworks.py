"""
Framework alignment — Groups findings by the CIS / Proxmox benchmark each rule cites.
"""

from __future__ import annotations

from typing import Iterable

from ..rules.base import Finding
from .models import ComplianceSummary


def build_compliance_summary(findings: Iterable[Finding]) -> ComplianceSummary:
    """
    Group findings by their declared benchmark reference.
    Percent is the share of mapped checks passing, 0 when none are mapped.
    """
    benchmarks: dict[str, list[Finding]] = {}
    unmapped: list[Finding] = []

    for finding in findings:
        ref = (finding.rule.cis_benchmark or "").strip()
        if ref:
            benchmarks.setdefault(ref, []).append(finding)
        else:
            unmapped.append(finding)

    mapped = [f for group in benchmarks.values() for f in group]
    passing = sum(1 for f in mapped if f.passed)
    total = len(mapped)
    percent = 0 if total == 0 else int(passing * 100 / total + 0.5)

    return ComplianceSummary(
        benchmarks={ref: tuple(benchmarks[ref]) for ref in sorted(benchmarks)},
        unmapped=tuple(unmapped),
        passing=passing,
        total=total,
        percent=percent,
    )
