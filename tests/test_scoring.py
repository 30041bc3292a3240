"""Tests for category scoring, weighting, grading and report assembly."""

from __future__ import annotations

import pytest

from proxguard.config import CATEGORIES
from proxguard.rules import ALL_RULES, RuleResult, get_rule_by_id
from proxguard.rules.base import Finding
from proxguard.scoring import (
    CategoryScore,
    build_compliance_summary,
    compute_category_score,
    compute_overall_score,
    generate_audit_report,
    prioritized_failures,
    run_audit,
    score_to_grade,
)
from proxguard.scoring.engine import round_half_up


def finding(rule_id: str, passed: bool) -> Finding:
    return Finding(
        rule=get_rule_by_id(rule_id),
        result=RuleResult(passed=passed, evidence="observed"),
    )


@pytest.mark.parametrize("score, grade", [
    (100, "A"), (90, "A"),
    (89.9, "B"), (80, "B"),
    (79, "C"), (70, "C"),
    (69, "D"), (60, "D"),
    (59, "F"), (0, "F"),
])
def test_grade_boundaries(score, grade):
    assert score_to_grade(score) == grade


def test_grade_sweep_is_monotonic():
    rank = {"F": 0, "D": 1, "C": 2, "B": 3, "A": 4}
    grades = [score_to_grade(score) for score in range(0, 101)]
    assert all(rank[a] <= rank[b] for a, b in zip(grades, grades[1:]))
    assert {s: grades[s] for s in (59, 60, 69, 70, 79, 80, 89, 90)} == {
        59: "F", 60: "D", 69: "D", 70: "C", 79: "C", 80: "B", 89: "B", 90: "A",
    }
    assert grades[0] == "F" and grades[100] == "A"


@pytest.mark.parametrize("value, expected", [(0.5, 1), (2.5, 3), (37.5, 38), (37.49, 37), (99.4, 99)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


class TestCategoryScore:
    def test_no_findings_is_perfect(self):
        assert compute_category_score("storage", []).score == 100

    def test_deductions_per_severity(self):
        findings = [
            finding("root-ssh-password", False),      # critical
            finding("ssh-default-port", False),       # medium
            finding("password-auth-enabled", False),  # high
            finding("high-max-auth-tries", False),    # medium
        ]
        cat = compute_category_score("ssh", findings)
        assert cat.score == 15
        assert cat.max_score == 100
        assert cat.severity_breakdown() == {"critical": 1, "high": 1, "medium": 2, "info": 0}

    def test_passed_findings_cost_nothing(self):
        cat = compute_category_score("ssh", [finding("root-ssh-password", True)])
        assert cat.score == 100
        assert cat.failed == []

    def test_floor_at_zero(self):
        critical = finding("firewall-disabled", False)
        cat = compute_category_score("firewall", [critical, critical, critical])
        assert cat.score == 0

    def test_another_failure_never_raises_the_score(self):
        findings = []
        previous = compute_category_score("auth", findings).score
        for rule_id in ("no-2fa-users", "root-api-tokens", "overpermissive-roles"):
            findings.append(finding(rule_id, False))
            current = compute_category_score("auth", findings).score
            assert current <= previous
            previous = current

    @pytest.mark.parametrize("rule", ALL_RULES, ids=lambda r: r.id)
    def test_clearing_the_only_failure_restores_full_score(self, rule):
        failing = compute_category_score(rule.category, [finding(rule.id, False)])
        assert failing.score < 100
        assert compute_category_score(rule.category, []).score == 100
        assert compute_category_score(rule.category, [finding(rule.id, True)]).score == 100


class TestOverallScore:
    def test_all_perfect(self):
        cats = [CategoryScore(category=c, score=100) for c in CATEGORIES]
        assert compute_overall_score(cats) == 100

    def test_weighted_average(self):
        cats = [
            CategoryScore(category="ssh", score=0),
            CategoryScore(category="firewall", score=100),
        ]
        # ssh and firewall carry equal weight
        assert compute_overall_score(cats) == 50

    def test_custom_weights(self):
        cats = [CategoryScore(category="a", score=80), CategoryScore(category="b", score=40)]
        assert compute_overall_score(cats, {"a": 3, "b": 1}) == 70

    def test_zero_total_weight(self):
        cats = [CategoryScore(category="unknown", score=100)]
        assert compute_overall_score(cats) == 0
        assert compute_overall_score([]) == 0


class TestAuditReport:
    def test_insecure_host(self, insecure_config):
        report = generate_audit_report(insecure_config, timestamp=1700000000000)
        scores = {c.category: c.score for c in report.categories}
        assert scores == {
            "ssh": 15,
            "firewall": 25,
            "auth": 40,
            "container": 65,
            "storage": 65,
            "api": 65,
        }
        assert report.overall_score == 38
        assert report.overall_grade == "F"
        assert report.timestamp == 1700000000000
        assert len(report.failed_findings) == 16

    def test_hardened_host(self, hardened_config):
        report = generate_audit_report(hardened_config)
        assert report.failed_findings == []
        assert report.overall_score == 100
        assert report.overall_grade == "A"

    def test_empty_config(self, empty_config):
        report = generate_audit_report(empty_config)
        assert [c.category for c in report.categories] == list(CATEGORIES)
        assert all(c.score == 100 for c in report.categories)
        assert report.overall_score == 100
        assert report.overall_grade == "A"
        assert report.input_files == ()

    def test_every_rule_evaluated_once(self, insecure_config):
        report = generate_audit_report(insecure_config)
        ids = [f.rule.id for f in report.findings]
        assert ids == [r.id for r in ALL_RULES]
        for cat in report.categories:
            assert all(f.category == cat.category for f in cat.findings)
        assert sum(len(c.findings) for c in report.categories) == len(ALL_RULES)

    def test_timestamp_defaults_to_now(self, empty_config):
        report = generate_audit_report(empty_config)
        assert report.timestamp > 1_600_000_000_000

    def test_lookup_helpers(self, insecure_config):
        report = generate_audit_report(insecure_config)
        assert report.category("ssh").score == 15
        assert report.finding("firewall-disabled").passed is False
        with pytest.raises(KeyError):
            report.category("network")

    def test_run_audit_matches_two_step(self, insecure_inputs, insecure_config):
        one_shot = run_audit(insecure_inputs, timestamp=1)
        two_step = generate_audit_report(insecure_config, timestamp=1)
        assert one_shot.to_dict() == two_step.to_dict()

    def test_to_dict(self, insecure_config):
        data = generate_audit_report(insecure_config, timestamp=5).to_dict()
        assert data["overall_score"] == 38
        assert len(data["categories"]) == 6
        assert data["findings"][0]["rule"]["id"] == "root-ssh-password"
        assert data["findings"][0]["result"]["passed"] is False
        assert data["input_files"] == list(insecure_config.input_files())


def test_prioritized_failures(insecure_config):
    report = generate_audit_report(insecure_config)
    ordered = prioritized_failures(report)
    assert [f.rule.id for f in ordered[:2]] == ["root-ssh-password", "firewall-disabled"]
    ranks = {"critical": 0, "high": 1, "medium": 2, "info": 3}
    severities = [ranks[f.severity] for f in ordered]
    assert severities == sorted(severities)


def test_compliance_summary(insecure_config, hardened_config):
    weak = build_compliance_summary(generate_audit_report(insecure_config).findings)
    assert weak.total == 9
    assert weak.passing == 0
    assert weak.percent == 0
    assert len(weak.unmapped) == 7
    assert list(weak.benchmarks) == sorted(weak.benchmarks)

    strong = build_compliance_summary(generate_audit_report(hardened_config).findings)
    assert strong.percent == 100
    assert strong.to_dict()["passing_mapped"] == 9


def test_compliance_summary_without_mapped_rules():
    summary = build_compliance_summary([finding("firewall-disabled", True)])
    assert summary.total == 0
    assert summary.percent == 0
