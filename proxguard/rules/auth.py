"""
Authentication & Authorization Security Rules
Evaluates user.cfg for 2FA coverage, root token usage and role assignments.
"""

from __future__ import annotations

from typing import Optional

from ..config import ROOT_USER
from ..models import ParsedAuth, ParsedConfig, TriState
from .base import RuleResult, SecurityRule, not_provided

_NO_INPUT = "user config"


def _auth(config: ParsedConfig) -> Optional[ParsedAuth]:
    if not config.has_input("user.cfg"):
        return None
    return config.auth or ParsedAuth()


def check_no_2fa_users(config: ParsedConfig) -> RuleResult:
    auth = _auth(config)
    if auth is None:
        return not_provided(_NO_INPUT)
    if not auth.users:
        return RuleResult(passed=True, evidence="No user accounts defined in user.cfg")

    active = [
        u for u in auth.users
        if u.enable is not TriState.NO and u.userid != ROOT_USER
    ]
    missing = [u.userid for u in active if not u.tfa]
    if missing:
        return RuleResult(
            passed=False,
            evidence=f"{len(missing)}/{len(active)} active users lack 2FA: {', '.join(missing)}",
            details="These accounts can be accessed with just a password.",
        )

    root = auth.get_user(ROOT_USER)
    if root is not None and not root.tfa:
        return RuleResult(
            passed=False,
            evidence=f"{ROOT_USER} does not have 2FA configured",
            details="The root account is the highest-privilege account and should always have 2FA.",
        )

    return RuleResult(
        passed=True,
        evidence=f"All {len(active)} active users have 2FA configured"
                 + (f" (including {ROOT_USER})" if root is not None else ""),
    )


def check_root_api_tokens(config: ParsedConfig) -> RuleResult:
    auth = _auth(config)
    if auth is None:
        return not_provided(_NO_INPUT)

    root_tokens = [t.token_id for t in auth.tokens if t.userid == ROOT_USER]
    if root_tokens:
        return RuleResult(
            passed=False,
            evidence=f"{ROOT_USER} has {len(root_tokens)} API token(s): {', '.join(root_tokens)}",
            details="Root API tokens have full system access. If leaked, an attacker has complete control.",
        )
    return RuleResult(
        passed=True,
        evidence=f"No API tokens found for {ROOT_USER} ({len(auth.tokens)} token(s) total)",
    )


def check_overpermissive_roles(config: ParsedConfig) -> RuleResult:
    auth = _auth(config)
    if auth is None:
        return not_provided(_NO_INPUT)

    entities: list[str] = []
    for acl in auth.acls:
        if acl.role == "Administrator" and acl.ugid != ROOT_USER and acl.ugid not in entities:
            entities.append(acl.ugid)

    if entities:
        return RuleResult(
            passed=False,
            evidence=f"{len(entities)} non-root entity(s) have Administrator role: {', '.join(entities)}",
            details=(
                "The Administrator role grants ALL privileges. Use more restrictive roles "
                "like PVEAdmin or custom roles."
            ),
        )
    return RuleResult(
        passed=True,
        evidence=f"No non-root users have the Administrator role ({len(auth.acls)} ACL(s) checked)",
    )


AUTH_RULES = [
    SecurityRule(
        id="no-2fa-users",
        category="auth",
        severity="high",
        title="Users Without Two-Factor Authentication",
        description=(
            "One or more users do not have 2FA (TOTP/U2F/WebAuthn) configured. Without 2FA, "
            "a compromised password grants full access."
        ),
        check=check_no_2fa_users,
        remediation=(
            "Configure TOTP or WebAuthn 2FA for all users via Datacenter → Permissions → "
            "Two Factor in the Proxmox web UI."
        ),
        remediation_script=(
            "# 2FA is enrolled per user in the web UI or via the API\n"
            '# pveum user tfa setup totp <userid> --description "TOTP 2FA"\n'
            'echo "2FA must be configured individually per user in the Proxmox web UI"'
        ),
        cis_benchmark="CIS Debian 11 - 5.4.2",
    ),
    SecurityRule(
        id="root-api-tokens",
        category="auth",
        severity="high",
        title="Root Account Has API Tokens",
        description=(
            "The root@pam account has API tokens configured. Root API tokens grant unrestricted "
            "access and should be replaced by dedicated service accounts."
        ),
        check=check_root_api_tokens,
        remediation=(
            "Create dedicated service accounts with minimal required permissions instead of "
            "using root API tokens. Delete root tokens with: pveum user token remove root@pam <tokenid>"
        ),
        remediation_script=(
            "# List root tokens\n"
            "pveum user token list root@pam\n"
            "# Remove a specific token\n"
            "# pveum user token remove root@pam <tokenid>"
        ),
        cis_benchmark="CIS Debian 11 - 5.4.1",
    ),
    SecurityRule(
        id="overpermissive-roles",
        category="auth",
        severity="medium",
        title="Users with Administrator Role",
        description=(
            "One or more users or groups have the Administrator role assigned. This built-in "
            "role grants all privileges and should be restricted to a minimum number of accounts."
        ),
        check=check_overpermissive_roles,
        remediation=(
            "Replace Administrator role assignments with more restrictive built-in roles "
            "(PVEAdmin, PVEVMAdmin, etc.) or custom roles with minimum required privileges."
        ),
        remediation_script=(
            "# List current ACLs\n"
            "pveum acl list\n"
            "# Change a user from Administrator to PVEAdmin\n"
            "# pveum acl modify <path> --roles PVEAdmin --users <userid>"
        ),
        cis_benchmark="CIS Debian 11 - 5.3.1",
    ),
]
