"""
Firewall Security Rules
Evaluates cluster.fw, falling back to the iptables dump where cluster.fw is silent.
"""

from __future__ import annotations

from ..config import DEFAULT_FIREWALL_POLICY_IN
from ..models import ParsedConfig, ParsedFirewall, TriState
from .base import RuleResult, SecurityRule, not_provided

_NO_INPUT = "firewall config"


def _firewall(config: ParsedConfig):
    """The cluster firewall model when cluster.fw input was supplied."""
    if not config.has_input("cluster.fw"):
        return None
    return config.firewall or ParsedFirewall()


def check_firewall_disabled(config: ParsedConfig) -> RuleResult:
    fw = _firewall(config)
    if fw is None:
        return not_provided(_NO_INPUT)

    if fw.is_empty():
        return RuleResult(
            passed=False,
            evidence="Firewall enabled=not set (no parseable cluster.fw content)",
            details="Cannot verify firewall state: the supplied cluster.fw contained no recognisable settings.",
        )
    if fw.enabled is not TriState.YES:
        shown = fw.options.get("enable", "not set")
        return RuleResult(
            passed=False,
            evidence=f"Firewall enabled={shown}",
            details='The cluster firewall must be explicitly enabled in [OPTIONS] with "enable: 1".',
        )
    return RuleResult(passed=True, evidence=f"Cluster firewall is enabled (enable={fw.options.get('enable')})")


def check_default_accept_input(config: ParsedConfig) -> RuleResult:
    fw = _firewall(config)
    has_iptables = config.iptables is not None and config.has_input("iptables")
    if fw is None and not has_iptables:
        return not_provided(_NO_INPUT)

    # An explicit cluster policy takes precedence over chain inspection
    if fw is not None and fw.policy_in:
        if fw.policy_in == "ACCEPT":
            return RuleResult(
                passed=False,
                evidence=f"cluster.fw policy_in={fw.policy_in}",
                details="All inbound traffic is allowed by default. Only explicitly blocked traffic is dropped.",
            )
        return RuleResult(passed=True, evidence=f"cluster.fw policy_in={fw.policy_in}")

    if has_iptables:
        chain = config.iptables.get_chain("INPUT")
        if chain is not None and chain.policy == "ACCEPT":
            return RuleResult(
                passed=False,
                evidence="iptables INPUT chain default policy=ACCEPT",
                details="The iptables INPUT chain accepts all traffic by default.",
            )
        if fw is None:
            shown = chain.policy if chain is not None else "no INPUT chain"
            return RuleResult(passed=True, evidence=f"iptables INPUT chain default policy={shown}")

    return RuleResult(
        passed=True,
        evidence=f"policy_in=not set (Proxmox default: {DEFAULT_FIREWALL_POLICY_IN})",
    )


def check_no_firewall_rules(config: ParsedConfig) -> RuleResult:
    fw = _firewall(config)
    if fw is None:
        return not_provided(_NO_INPUT)

    if not fw.rules:
        return RuleResult(
            passed=False,
            evidence="Zero firewall rules defined in cluster.fw",
            details=(
                "A properly configured firewall should have explicit rules for allowed "
                "services (SSH, web UI, SPICE, etc.)."
            ),
        )
    disabled = sum(1 for r in fw.rules if not r.enable)
    suffix = f" ({disabled} disabled)" if disabled else ""
    return RuleResult(passed=True, evidence=f"{len(fw.rules)} firewall rule(s) defined{suffix}")


FIREWALL_RULES = [
    SecurityRule(
        id="firewall-disabled",
        category="firewall",
        severity="critical",
        title="Cluster Firewall Not Enabled",
        description=(
            "The Proxmox VE cluster firewall is not enabled. Without the firewall, all network "
            "traffic is allowed to reach cluster services, including the API (port 8006), SSH, "
            "and inter-node communication."
        ),
        check=check_firewall_disabled,
        remediation=(
            "Enable the cluster firewall: Datacenter → Firewall → Options → Enable: Yes. "
            'Or add "enable: 1" under [OPTIONS] in /etc/pve/firewall/cluster.fw.'
        ),
        remediation_script=(
            "# Enable via pvesh\n"
            "pvesh set /cluster/firewall/options --enable 1\n"
            "# Or manually edit /etc/pve/firewall/cluster.fw and add under [OPTIONS]:\n"
            "# enable: 1"
        ),
    ),
    SecurityRule(
        id="default-accept-input",
        category="firewall",
        severity="high",
        title="Default INPUT Policy is ACCEPT",
        description=(
            "The default INPUT policy is ACCEPT, meaning any traffic not explicitly blocked is "
            "allowed. A secure configuration should DROP by default and only allow explicitly "
            "permitted traffic."
        ),
        check=check_default_accept_input,
        remediation="Set the default INPUT policy to DROP: Datacenter → Firewall → Options → Input Policy: DROP.",
        remediation_script="pvesh set /cluster/firewall/options --policy_in DROP",
    ),
    SecurityRule(
        id="no-firewall-rules",
        category="firewall",
        severity="medium",
        title="No Firewall Rules Defined",
        description=(
            "Zero firewall rules are defined in the cluster firewall. Without explicit rules, "
            "the firewall relies entirely on the default policy."
        ),
        check=check_no_firewall_rules,
        remediation=(
            "Define explicit firewall rules for required services. At minimum, allow SSH "
            "(22/tcp), the Proxmox web UI (8006/tcp) and VNC/SPICE (3128/tcp) from trusted networks."
        ),
        remediation_script=(
            "pvesh create /cluster/firewall/rules --action ACCEPT --type in --proto tcp "
            '--dport 8006 --comment "Proxmox Web UI"\n'
            "pvesh create /cluster/firewall/rules --action ACCEPT --type in --proto tcp "
            '--dport 22 --comment "SSH"'
        ),
    ),
]
