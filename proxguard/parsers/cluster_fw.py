"""
Parser for Proxmox VE cluster.fw (cluster-level firewall configuration).

Sections:
  [OPTIONS]        key: value pairs (enable, policy_in, policy_out, ...)
  [RULES]          |IN/OUT ACTION -source ... -dest ... -p proto -dport port
  [IPSET name]     one address or CIDR per line
  [GROUP name]     security group rules, same grammar as [RULES]
  [ALIASES]        recognised, contents ignored
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from ..models import FirewallRule, IPSet, ParsedFirewall, TriState

logger = logging.getLogger("proxguard.parsers.cluster_fw")

_SECTION_RE = re.compile(r"^\[(\w+)(?:\s+(.+))?\]$")
_OPTION_RE = re.compile(r"^(\w+)[:\s]+(.+)$")
_RULE_RE = re.compile(r"^(IN|OUT|GROUP)\s+(\S+)(.*)$", re.IGNORECASE)
_IPSET_ENTRY_RE = re.compile(r"^([^\s#]+)")

_KNOWN_SECTIONS = {"options", "rules", "ipset", "group", "aliases"}

# rule attribute → flag pattern; each is scanned independently of the others
_RULE_FLAGS = {
    "source": re.compile(r"-source\s+(\S+)"),
    "dest":   re.compile(r"-dest\s+(\S+)"),
    "proto":  re.compile(r"-p\s+(\S+)"),
    "dport":  re.compile(r"-dport\s+(\S+)"),
    "sport":  re.compile(r"-sport\s+(\S+)"),
    "iface":  re.compile(r"-i\s+(\S+)"),
}
_COMMENT_RE = re.compile(r"#\s*(.+)$")


@dataclass
class _FirewallState:
    """Accumulator threaded through one forward scan of the file."""
    section: Optional[str] = None
    ipset_name: Optional[str] = None
    ipset_entries: list[str] = field(default_factory=list)
    ip_sets: list[IPSet] = field(default_factory=list)
    rules: list[FirewallRule] = field(default_factory=list)
    options: dict[str, str] = field(default_factory=dict)

    def flush_ipset(self):
        if self.ipset_name is not None:
            self.ip_sets.append(IPSet(name=self.ipset_name, entries=tuple(self.ipset_entries)))
        self.ipset_name = None
        self.ipset_entries = []


def parse_firewall_rule(line: str) -> Optional[FirewallRule]:
    """
    Parse a single rule line; None when it lacks a direction and action.

      IN ACCEPT -source 192.0.2.0/24 -p tcp -dport 22
      |IN ACCEPT -p tcp -dport 22     (disabled)
      OUT DROP
    """
    enabled = True
    if line.startswith("|"):
        enabled = False
        line = line[1:].strip()

    m = _RULE_RE.match(line)
    if not m:
        return None

    rest = m.group(3) or ""
    attrs = {}
    for name, pattern in _RULE_FLAGS.items():
        flag = pattern.search(rest)
        if flag:
            attrs[name] = flag.group(1)
    comment = _COMMENT_RE.search(rest)
    if comment:
        attrs["comment"] = comment.group(1).strip()

    return FirewallRule(
        direction=m.group(1).upper(),
        action=m.group(2).upper(),
        enable=enabled,
        **attrs,
    )


def parse_cluster_firewall(text: str) -> ParsedFirewall:
    """Parse cluster.fw text into a ParsedFirewall model."""
    if not text or not text.strip():
        return ParsedFirewall()

    state = _FirewallState()

    for line_num, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        header = _SECTION_RE.match(line)
        if header:
            state.flush_ipset()
            name = header.group(1).lower()
            state.section = name if name in _KNOWN_SECTIONS else None
            if name == "ipset":
                state.ipset_name = header.group(2) or "default"
            continue

        if state.section == "options":
            m = _OPTION_RE.match(line)
            if m:
                state.options[m.group(1).lower()] = m.group(2).strip()
            else:
                logger.debug(f"Skipping malformed option at line {line_num}: {line!r}")
        elif state.section in ("rules", "group"):
            rule = parse_firewall_rule(line)
            if rule:
                state.rules.append(rule)
            else:
                logger.debug(f"Skipping malformed rule at line {line_num}: {line!r}")
        elif state.section == "ipset":
            m = _IPSET_ENTRY_RE.match(line)
            if m:
                state.ipset_entries.append(m.group(1))

    state.flush_ipset()

    enable = state.options.get("enable")
    policy_in = state.options.get("policy_in")
    policy_out = state.options.get("policy_out")
    result = ParsedFirewall(
        enabled=TriState.from_flag(enable),
        policy_in=policy_in.upper() if policy_in else None,
        policy_out=policy_out.upper() if policy_out else None,
        rules=tuple(state.rules),
        ip_sets=tuple(state.ip_sets),
        options=state.options,
    )
    logger.debug(
        f"Parsed firewall: enabled={result.enabled}, {len(result.rules)} rule(s), "
        f"{len(result.ip_sets)} IP set(s)"
    )
    return result
