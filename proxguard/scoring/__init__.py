"""Scoring package — security posture calculation and benchmark mapping."""

from .engine import (
    compute_category_score,
    compute_overall_score,
    evaluate_rules,
    generate_audit_report,
    prioritized_failures,
    run_audit,
    score_to_grade,
)
from .models import AuditReport, CategoryScore, ComplianceSummary
from .frameworks import build_compliance_summary

__all__ = [
    "compute_category_score",
    "compute_overall_score",
    "evaluate_rules",
    "generate_audit_report",
    "prioritized_failures",
    "run_audit",
    "score_to_grade",
    "AuditReport",
    "CategoryScore",
    "ComplianceSummary",
    "build_compliance_summary",
]
