"""
Scoring data models — Defines structured types for the scoring engine output.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..config import MAX_CATEGORY_SCORE
from ..rules.base import Finding


@dataclass(frozen=True)
class CategoryScore:
    """Score for a single audit category."""
    category: str
    score: int
    findings: tuple[Finding, ...] = ()
    max_score: int = MAX_CATEGORY_SCORE

    @property
    def failed(self) -> list[Finding]:
        return [f for f in self.findings if not f.passed]

    def severity_breakdown(self) -> dict[str, int]:
        """Failed finding counts per severity."""
        counts = {"critical": 0, "high": 0, "medium": 0, "info": 0}
        for f in self.failed:
            counts[f.severity] += 1
        return counts

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "score": self.score,
            "max_score": self.max_score,
            "finding_count": len(self.findings),
            "failed_count": len(self.failed),
            "severity_breakdown": self.severity_breakdown(),
            "findings": [f.rule.id for f in self.findings],
        }


@dataclass(frozen=True)
class ComplianceSummary:
    """Findings grouped by their external standard reference."""
    benchmarks: dict[str, tuple[Finding, ...]] = field(default_factory=dict)
    unmapped: tuple[Finding, ...] = ()
    passing: int = 0
    total: int = 0
    percent: int = 0

    def to_dict(self) -> dict:
        return {
            "compliance_percent": self.percent,
            "passing_mapped": self.passing,
            "total_mapped": self.total,
            "benchmarks": {
                ref: [
                    {"rule_id": f.rule.id, "passed": f.passed}
                    for f in findings
                ]
                for ref, findings in self.benchmarks.items()
            },
            "unmapped": [f.rule.id for f in self.unmapped],
        }


@dataclass(frozen=True)
class AuditReport:
    """Complete scoring result for one audit run."""
    timestamp: int                      # epoch milliseconds
    overall_grade: str
    overall_score: int
    categories: tuple[CategoryScore, ...]
    findings: tuple[Finding, ...]
    input_files: tuple[str, ...] = ()

    @property
    def failed_findings(self) -> list[Finding]:
        return [f for f in self.findings if not f.passed]

    def category(self, name: str) -> CategoryScore:
        for cat in self.categories:
            if cat.category == name:
                return cat
        raise KeyError(name)

    def finding(self, rule_id: str) -> Finding:
        for f in self.findings:
            if f.rule.id == rule_id:
                return f
        raise KeyError(rule_id)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "overall_grade": self.overall_grade,
            "overall_score": self.overall_score,
            "categories": [c.to_dict() for c in self.categories],
            "findings": [f.to_dict() for f in self.findings],
            "input_files": list(self.input_files),
        }
