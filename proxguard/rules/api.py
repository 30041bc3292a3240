"""
API Security Rules
Evaluates API token configuration and the privileges tokens inherit.
"""

from __future__ import annotations

from ..config import ADMIN_ROLES
from ..models import ParsedConfig, PVEAcl, TriState
from .base import RuleResult, SecurityRule

_NO_TOKENS = "No API tokens configured"


def _tokens(config: ParsedConfig) -> list:
    if config.api is None:
        return []
    return list(config.api.tokens)


def _acls(config: ParsedConfig) -> tuple[PVEAcl, ...]:
    """Full ACL list when user.cfg was parsed, else the token-related subset."""
    if config.auth is not None and config.auth.acls:
        return config.auth.acls
    return config.api.token_acls if config.api is not None else ()


def check_admin_api_tokens(config: ParsedConfig) -> RuleResult:
    tokens = _tokens(config)
    if not tokens:
        return RuleResult(passed=True, evidence=_NO_TOKENS)

    admin_users = {acl.ugid for acl in _acls(config) if acl.role in ADMIN_ROLES}
    # Without privilege separation a token inherits every privilege of its user
    unrestricted = [
        t.full_id for t in tokens
        if t.userid in admin_users and t.privsep is not TriState.YES
    ]
    if unrestricted:
        return RuleResult(
            passed=False,
            evidence=f"{len(unrestricted)} admin-level API token(s): {', '.join(unrestricted)}",
            details=(
                "These tokens can perform destructive operations (delete VMs, modify cluster "
                "config). Use privilege-separated tokens with minimal roles."
            ),
        )
    return RuleResult(
        passed=True,
        evidence=f"{len(tokens)} API token(s) — none have unrestricted admin access",
    )


def check_no_token_expiry(config: ParsedConfig) -> RuleResult:
    tokens = _tokens(config)
    if not tokens:
        return RuleResult(passed=True, evidence=_NO_TOKENS)

    no_expiry = [t.full_id for t in tokens if not t.expire]
    if no_expiry:
        return RuleResult(
            passed=False,
            evidence=f"{len(no_expiry)} token(s) without expiration: {', '.join(no_expiry)}",
            details="Tokens without expiry remain valid until manually revoked. Set expiration dates for all tokens.",
        )
    return RuleResult(passed=True, evidence=f"All {len(tokens)} token(s) have expiration dates")


API_RULES = [
    SecurityRule(
        id="admin-api-tokens",
        category="api",
        severity="high",
        title="API Tokens with Full Admin Privileges",
        description=(
            "One or more API tokens belong to users holding the Administrator or PVEAdmin role "
            "without privilege separation. These tokens can perform any action on the cluster."
        ),
        check=check_admin_api_tokens,
        remediation=(
            "Create API tokens with privsep=1 (privilege separation) and assign minimal required "
            "roles instead of Administrator/PVEAdmin."
        ),
        remediation_script=(
            "# Create a privilege-separated token with limited role\n"
            "pveum user token add <userid> <tokenid> --privsep 1\n"
            "pveum acl modify <path> --tokens <userid>!<tokenid> --roles PVEAuditor"
        ),
    ),
    SecurityRule(
        id="no-token-expiry",
        category="api",
        severity="medium",
        title="API Tokens Without Expiration",
        description=(
            "One or more API tokens have no expiration date set. Long-lived tokens that are "
            "forgotten or leaked remain valid indefinitely."
        ),
        check=check_no_token_expiry,
        remediation="Set expiration dates on all API tokens. Rotate tokens regularly (every 90 days recommended).",
        remediation_script=(
            "# Set token expiry (epoch timestamp, e.g., 90 days from now)\n"
            'EXPIRY=$(date -d "+90 days" +%s)\n'
            "pveum user token modify <userid> <tokenid> --expire $EXPIRY"
        ),
    ),
]
