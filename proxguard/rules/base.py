"""
Base rule types — the SecurityRule catalog entry, its evaluation result and
the Finding pairing both for one audit run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from ..config import CATEGORIES, SEVERITIES, ProxGuardError
from ..models import ParsedConfig

logger = logging.getLogger("proxguard.rules")


class RuleCatalogError(ProxGuardError):
    """Raised at import time when the rule catalog is malformed."""


@dataclass(frozen=True)
class RuleResult:
    """Outcome of one rule: evidence always states the observed value."""
    passed: bool
    evidence: str
    details: Optional[str] = None

    def __post_init__(self):
        if not self.evidence or not self.evidence.strip():
            raise ValueError("RuleResult evidence must not be empty")

    def to_dict(self) -> dict:
        return {
            "passed": self.passed,
            "evidence": self.evidence,
            "details": self.details,
        }


def not_provided(what: str) -> RuleResult:
    """Pass result for a rule whose input was never supplied."""
    return RuleResult(passed=True, evidence=f"No {what} provided — cannot assess")


@dataclass(frozen=True)
class SecurityRule:
    """
    A single catalog entry.
    The check callable must be pure: ParsedConfig in, RuleResult out.
    """
    id: str
    category: str
    severity: str
    title: str
    description: str
    check: Callable[[ParsedConfig], RuleResult] = field(repr=False, compare=False)
    remediation: str = ""
    remediation_script: str = ""
    cis_benchmark: Optional[str] = None

    def evaluate(self, config: ParsedConfig) -> RuleResult:
        try:
            result = self.check(config)
        except Exception:
            logger.error(f"[{self.id}] Rule evaluation raised")
            raise
        logger.debug(f"[{self.id}] passed={result.passed} — {result.evidence}")
        return result

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category,
            "severity": self.severity,
            "title": self.title,
            "description": self.description,
            "remediation": self.remediation,
            "remediation_script": self.remediation_script,
            "cis_benchmark": self.cis_benchmark,
        }


@dataclass(frozen=True)
class Finding:
    """A rule paired with its result for one audit run."""
    rule: SecurityRule
    result: RuleResult

    @property
    def passed(self) -> bool:
        return self.result.passed

    @property
    def category(self) -> str:
        return self.rule.category

    @property
    def severity(self) -> str:
        return self.rule.severity

    def to_dict(self) -> dict:
        return {
            "rule": self.rule.to_dict(),
            "result": self.result.to_dict(),
        }


def validate_catalog(rules: Iterable[SecurityRule]) -> tuple[SecurityRule, ...]:
    """
    Check the static catalog once at import and return it as a tuple.
    Any defect here is a programming error, so it fails fast.
    """
    catalog = tuple(rules)
    seen: set[str] = set()
    for rule in catalog:
        if rule.id in seen:
            raise RuleCatalogError(f"Duplicate rule id '{rule.id}'")
        seen.add(rule.id)
        if rule.category not in CATEGORIES:
            raise RuleCatalogError(f"Rule '{rule.id}' has unknown category '{rule.category}'")
        if rule.severity not in SEVERITIES:
            raise RuleCatalogError(f"Rule '{rule.id}' has unknown severity '{rule.severity}'")
        if not callable(rule.check):
            raise RuleCatalogError(f"Rule '{rule.id}' has no check function")
        if not rule.remediation_script.strip():
            raise RuleCatalogError(f"Rule '{rule.id}' has an empty remediation script")
    return catalog
