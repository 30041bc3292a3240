"""Rules package — the fixed, validated security rule catalog."""

from __future__ import annotations

from typing import Optional

from .base import Finding, RuleCatalogError, RuleResult, SecurityRule, validate_catalog
from .ssh import SSH_RULES
from .auth import AUTH_RULES
from .firewall import FIREWALL_RULES
from .container import CONTAINER_RULES
from .storage import STORAGE_RULES
from .api import API_RULES

ALL_RULES = validate_catalog([
    *SSH_RULES,
    *AUTH_RULES,
    *FIREWALL_RULES,
    *CONTAINER_RULES,
    *STORAGE_RULES,
    *API_RULES,
])

_RULES_BY_ID = {rule.id: rule for rule in ALL_RULES}


def get_rules_by_category(category: str) -> list[SecurityRule]:
    return [r for r in ALL_RULES if r.category == category]


def get_rule_by_id(rule_id: str) -> Optional[SecurityRule]:
    return _RULES_BY_ID.get(rule_id)


__all__ = [
    "ALL_RULES",
    "Finding",
    "RuleCatalogError",
    "RuleResult",
    "SecurityRule",
    "get_rule_by_id",
    "get_rules_by_category",
    "validate_catalog",
]
