"""
SSH Security Rules
Evaluates sshd_config for Proxmox VE hardening best practices.
"""

from __future__ import annotations

from typing import Optional

from ..config import DEFAULT_SSH_MAX_AUTH_TRIES, DEFAULT_SSH_PORT
from ..models import ParsedConfig, ParsedSSH
from .base import RuleResult, SecurityRule, not_provided

_NO_INPUT = "SSH config"


def _ssh(config: ParsedConfig) -> Optional[ParsedSSH]:
    if config.ssh is None or not config.has_input("sshd_config"):
        return None
    return config.ssh


def check_root_ssh_password(config: ParsedConfig) -> RuleResult:
    ssh = _ssh(config)
    if ssh is None:
        return not_provided(_NO_INPUT)

    root_login = ssh.permit_root_login
    password_auth = ssh.password_authentication

    # An unset PermitRootLogin is treated as allowing root: many Proxmox
    # installs override the OpenSSH prohibit-password default to yes.
    root_allowed = root_login is None or root_login == "yes"
    password_allowed = password_auth != "no"

    if root_allowed and password_allowed:
        return RuleResult(
            passed=False,
            evidence=(
                f"PermitRootLogin={root_login or 'default (yes)'}, "
                f"PasswordAuthentication={password_auth or 'default (yes)'}"
            ),
            details="Root can authenticate via SSH using a password. An attacker only needs to guess the root password.",
        )
    return RuleResult(
        passed=True,
        evidence=(
            f"PermitRootLogin={root_login or 'default'}, "
            f"PasswordAuthentication={password_auth or 'default'}"
        ),
    )


def check_ssh_default_port(config: ParsedConfig) -> RuleResult:
    ssh = _ssh(config)
    if ssh is None:
        return not_provided(_NO_INPUT)

    port = ssh.port
    if port is None or port == DEFAULT_SSH_PORT:
        return RuleResult(
            passed=False,
            evidence=f"Port={port or f'{DEFAULT_SSH_PORT} (default)'}",
            details="Automated scanners and botnets target port 22 by default.",
        )
    return RuleResult(passed=True, evidence=f"Port={port}")


def check_password_auth_enabled(config: ParsedConfig) -> RuleResult:
    ssh = _ssh(config)
    if ssh is None:
        return not_provided(_NO_INPUT)

    password_auth = ssh.password_authentication
    if password_auth != "no":
        return RuleResult(
            passed=False,
            evidence=f"PasswordAuthentication={password_auth or 'yes (default)'}",
            details="All users can authenticate with passwords, making brute-force attacks viable.",
        )
    return RuleResult(passed=True, evidence="PasswordAuthentication=no")


def check_high_max_auth_tries(config: ParsedConfig) -> RuleResult:
    ssh = _ssh(config)
    if ssh is None:
        return not_provided(_NO_INPUT)

    max_tries = ssh.max_auth_tries
    if max_tries is not None and max_tries > DEFAULT_SSH_MAX_AUTH_TRIES:
        return RuleResult(
            passed=False,
            evidence=f"MaxAuthTries={max_tries}",
            details=f"Allows {max_tries} attempts per connection. Recommended maximum is 4.",
        )
    return RuleResult(
        passed=True,
        evidence=f"MaxAuthTries={max_tries if max_tries is not None else f'{DEFAULT_SSH_MAX_AUTH_TRIES} (default)'}",
    )


SSH_RULES = [
    SecurityRule(
        id="root-ssh-password",
        category="ssh",
        severity="critical",
        title="Root SSH with Password Authentication",
        description=(
            "Root login via SSH with password authentication is enabled. This is the most "
            "common attack vector for Proxmox VE hosts — brute-force attacks target root directly."
        ),
        check=check_root_ssh_password,
        remediation=(
            'Set "PermitRootLogin prohibit-password" or "PermitRootLogin no" in '
            "/etc/ssh/sshd_config, then restart sshd."
        ),
        remediation_script=(
            "sed -i 's/^#*PermitRootLogin.*/PermitRootLogin prohibit-password/' /etc/ssh/sshd_config\n"
            "systemctl restart sshd"
        ),
        cis_benchmark="CIS Debian 11 - 5.2.10",
    ),
    SecurityRule(
        id="ssh-default-port",
        category="ssh",
        severity="medium",
        title="SSH Running on Default Port 22",
        description=(
            "SSH is configured on the default port 22. Changing the port is not a primary "
            "defense, but it reduces noise from automated scanners."
        ),
        check=check_ssh_default_port,
        remediation=(
            "Change the SSH port in /etc/ssh/sshd_config to a non-standard port (e.g., 2222). "
            "Update your firewall rules accordingly."
        ),
        remediation_script=(
            "sed -i 's/^#*Port.*/Port 2222/' /etc/ssh/sshd_config\n"
            "# Update firewall rules for the new port before restarting\n"
            "systemctl restart sshd"
        ),
        cis_benchmark="CIS Debian 11 - 5.2.15",
    ),
    SecurityRule(
        id="password-auth-enabled",
        category="ssh",
        severity="high",
        title="Password Authentication Enabled Globally",
        description=(
            "SSH password authentication is enabled for all users. Key-based authentication "
            "is significantly more secure and should be the only allowed method."
        ),
        check=check_password_auth_enabled,
        remediation=(
            'Set "PasswordAuthentication no" in /etc/ssh/sshd_config. '
            "Ensure all users have SSH keys configured first."
        ),
        remediation_script=(
            "sed -i 's/^#*PasswordAuthentication.*/PasswordAuthentication no/' /etc/ssh/sshd_config\n"
            "systemctl restart sshd"
        ),
        cis_benchmark="CIS Debian 11 - 5.2.12",
    ),
    SecurityRule(
        id="high-max-auth-tries",
        category="ssh",
        severity="medium",
        title="MaxAuthTries Too High",
        description=(
            "MaxAuthTries is set higher than 6, allowing many authentication attempts per "
            "connection. This makes brute-force attacks easier."
        ),
        check=check_high_max_auth_tries,
        remediation='Set "MaxAuthTries 4" in /etc/ssh/sshd_config to limit authentication attempts.',
        remediation_script=(
            "sed -i 's/^#*MaxAuthTries.*/MaxAuthTries 4/' /etc/ssh/sshd_config\n"
            "systemctl restart sshd"
        ),
        cis_benchmark="CIS Debian 11 - 5.2.7",
    ),
]
