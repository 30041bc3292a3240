"""
Scoring Engine — Computes the 0-100 security posture score from rule findings.

Scoring model:
  - Every rule in the catalog is evaluated exactly once per run.
  - Each category starts at 100; every failed finding deducts a fixed amount
    per severity, floored at 0.
  - Category scores are combined by a fixed weight table into the overall
    score, rounded half-up, then mapped to a letter grade.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Iterable, Mapping, Optional, Sequence

from ..config import (
    CATEGORIES,
    CATEGORY_WEIGHTS,
    GRADE_THRESHOLDS,
    MAX_CATEGORY_SCORE,
    SEVERITY_DEDUCTIONS,
)
from ..models import ParsedConfig
from ..parsers import parse_all_configs
from ..rules import ALL_RULES
from ..rules.base import Finding, SecurityRule
from .models import AuditReport, CategoryScore

logger = logging.getLogger("proxguard.scoring")

_SEVERITY_ORDER = {"critical": 0, "high": 1, "medium": 2, "info": 3}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_to_grade(score: float) -> str:
    """Map a 0-100 score to a letter grade; lower bounds are inclusive."""
    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return GRADE_THRESHOLDS[-1][1]


def compute_category_score(category: str, findings: Iterable[Finding]) -> CategoryScore:
    """Deduct per failed finding from 100, never going below 0."""
    findings = tuple(findings)
    deduction = sum(
        SEVERITY_DEDUCTIONS.get(f.severity, 0)
        for f in findings
        if not f.passed
    )
    return CategoryScore(
        category=category,
        score=max(0, MAX_CATEGORY_SCORE - deduction),
        findings=findings,
    )


def compute_overall_score(
    categories: Iterable[CategoryScore],
    weights: Optional[Mapping[str, float]] = None,
) -> int:
    """Weighted average of category scores; 0 when no weight applies."""
    weights = CATEGORY_WEIGHTS if weights is None else weights
    total_weight = 0.0
    weighted_sum = 0.0
    for cat in categories:
        weight = weights.get(cat.category, 0)
        weighted_sum += cat.score * weight
        total_weight += weight
    if total_weight == 0:
        return 0
    return round_half_up(weighted_sum / total_weight)


def evaluate_rules(config: ParsedConfig, rules: Sequence[SecurityRule] = ALL_RULES) -> list[Finding]:
    """Run every rule once, in catalog order, with no short-circuiting."""
    return [Finding(rule=rule, result=rule.evaluate(config)) for rule in rules]


def generate_audit_report(
    config: ParsedConfig,
    rules: Sequence[SecurityRule] = ALL_RULES,
    timestamp: Optional[int] = None,
) -> AuditReport:
    """
    Evaluate the rule catalog against a parsed configuration and score it.

    Returns:
        AuditReport with all six categories, even those with no findings.
    """
    findings = evaluate_rules(config, rules)

    by_category: dict[str, list[Finding]] = {cat: [] for cat in CATEGORIES}
    for f in findings:
        by_category.setdefault(f.category, []).append(f)

    categories = tuple(
        compute_category_score(cat, by_category[cat]) for cat in CATEGORIES
    )
    overall = compute_overall_score(categories)
    grade = score_to_grade(overall)

    report = AuditReport(
        timestamp=timestamp if timestamp is not None else int(time.time() * 1000),
        overall_grade=grade,
        overall_score=overall,
        categories=categories,
        findings=tuple(findings),
        input_files=tuple(config.input_files()),
    )

    failed = len(report.failed_findings)
    logger.info(
        f"Audit complete — score {overall}/100 (grade {grade}), "
        f"{failed}/{len(findings)} rule(s) failed"
    )
    return report


def run_audit(inputs: Optional[Mapping[str, str]] = None, timestamp: Optional[int] = None) -> AuditReport:
    """Parse raw file texts and produce the audit report in one call."""
    return generate_audit_report(parse_all_configs(inputs), timestamp=timestamp)


def prioritized_failures(report: AuditReport) -> list[Finding]:
    """Failed findings, most severe first, catalog order within a severity."""
    indexed = list(enumerate(report.failed_findings))
    indexed.sort(key=lambda pair: (_SEVERITY_ORDER.get(pair[1].severity, 99), pair[0]))
    return [f for _, f in indexed]
