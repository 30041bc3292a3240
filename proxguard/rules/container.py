"""
Container Security Rules
Evaluates LXC container configurations for privilege escalation risks.
"""

from __future__ import annotations

from ..models import ParsedConfig, TriState
from .base import RuleResult, SecurityRule, not_provided

_NO_INPUT = "container config"


def _containers(config: ParsedConfig) -> list:
    if config.containers is None or not config.has_input("lxc.conf"):
        return []
    return list(config.containers.containers)


def check_privileged_containers(config: ParsedConfig) -> RuleResult:
    containers = _containers(config)
    if not containers:
        return not_provided(_NO_INPUT)

    # Anything short of an explicit unprivileged flag counts as privileged
    privileged = [c for c in containers if c.unprivileged is not TriState.YES]
    if privileged:
        return RuleResult(
            passed=False,
            evidence=(
                f"{len(privileged)} privileged container(s): "
                + ", ".join(f"{c.label} unprivileged={c.unprivileged}" for c in privileged)
            ),
            details="Privileged containers can potentially escape to the host. Convert to unprivileged where possible.",
        )
    return RuleResult(passed=True, evidence=f"All {len(containers)} container(s) are unprivileged")


def check_container_nesting(config: ParsedConfig) -> RuleResult:
    containers = _containers(config)
    if not containers:
        return not_provided(_NO_INPUT)

    nested = [c for c in containers if c.nesting]
    if nested:
        return RuleResult(
            passed=False,
            evidence=f"{len(nested)} container(s) with nesting: {', '.join(c.label for c in nested)}",
            details="Nesting grants additional kernel capabilities that increase container escape risk.",
        )
    return RuleResult(
        passed=True,
        evidence=f"No containers have nesting enabled ({len(containers)} checked)",
    )


CONTAINER_RULES = [
    SecurityRule(
        id="privileged-containers",
        category="container",
        severity="high",
        title="Privileged LXC Containers Detected",
        description=(
            "One or more LXC containers are running in privileged mode. Privileged containers "
            "share the host's UID namespace, so a root escape in the container gives root on the host."
        ),
        check=check_privileged_containers,
        remediation=(
            'Convert containers to unprivileged mode: back up, destroy and restore with "unprivileged: 1". '
            "Some workloads (e.g., Docker-in-LXC) may require privileged mode."
        ),
        remediation_script=(
            "# Check container privilege status\n"
            "pct config <CTID> | grep unprivileged\n"
            "# To convert: backup, destroy, restore as unprivileged\n"
            "# vzdump <CTID> --storage local\n"
            "# pct restore <new-CTID> <backup-file> --unprivileged 1"
        ),
    ),
    SecurityRule(
        id="container-nesting",
        category="container",
        severity="medium",
        title="Container Nesting Enabled",
        description=(
            "One or more containers have the nesting feature enabled. Nesting allows running "
            "containers inside containers (e.g., Docker in LXC) but increases the attack surface."
        ),
        check=check_container_nesting,
        remediation=(
            'Disable nesting unless required for Docker/Podman workloads. Remove "features: nesting=1" '
            "from the container config."
        ),
        remediation_script=(
            "# Check nesting status\n"
            "pct config <CTID> | grep features\n"
            "# Disable nesting\n"
            "pct set <CTID> --features nesting=0"
        ),
    ),
]
