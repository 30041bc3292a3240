"""
Parser for packet-filter rule dumps.

Two formats are recognised, auto-detected from the text:
  1. iptables-save:   *table / :CHAIN POLICY [0:0] / -A CHAIN ... / COMMIT
  2. iptables -L -n:  Chain NAME (policy POLICY) / target prot opt source destination

Text in neither format yields no chains.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from ..models import UNKNOWN_POLICY, IptablesChain, IptablesRule, ParsedIptables

logger = logging.getLogger("proxguard.parsers.iptables")

_SAVE_CHAIN_RE = re.compile(r"^:(\S+)\s+(\S+)")
_SAVE_RULE_RE = re.compile(r"^-A\s+(\S+)\s+(.+)$")
_LIST_CHAIN_RE = re.compile(r"^Chain\s+(\S+)(?:\s+\(policy\s+(\S+?)\)?(?:\s|$))?")
_LIST_DETECT_RE = re.compile(r"^Chain\s+\S+")
_LIST_HEADER_RE = re.compile(r"^target\s+prot")

_TARGET_RE = re.compile(r"-j\s+(\S+)")
_PROTO_RE = re.compile(r"-p\s+(\S+)")
_SOURCE_RE = re.compile(r"-s\s+(\S+)")
_DEST_RE = re.compile(r"-d\s+(\S+)")
_DPORT_RE = re.compile(r"--dport\s+(\S+)")
_SPORT_RE = re.compile(r"--sport\s+(\S+)")

ANY_ADDRESS = "0.0.0.0/0"
ANY_PROTOCOL = "all"


def _search(pattern: re.Pattern, text: str, default: str) -> str:
    m = pattern.search(text)
    return m.group(1) if m else default


def parse_save_rule(rule_text: str, raw_line: str) -> IptablesRule:
    """Parse the body of an iptables-save "-A CHAIN" line."""
    options = []
    dport = _DPORT_RE.search(rule_text)
    if dport:
        options.append(f"dpt:{dport.group(1)}")
    sport = _SPORT_RE.search(rule_text)
    if sport:
        options.append(f"spt:{sport.group(1)}")

    return IptablesRule(
        target=_search(_TARGET_RE, rule_text, ""),
        protocol=_search(_PROTO_RE, rule_text, ANY_PROTOCOL),
        source=_search(_SOURCE_RE, rule_text, ANY_ADDRESS),
        destination=_search(_DEST_RE, rule_text, ANY_ADDRESS),
        options=" ".join(options),
        raw=raw_line,
    )


def _parse_save_format(lines: list[str]) -> list[IptablesChain]:
    # name → [policy, rules]; dict keeps declaration order
    chains: dict[str, list] = {}

    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith("#") or line == "COMMIT" or line.startswith("*"):
            continue

        m = _SAVE_CHAIN_RE.match(line)
        if m:
            # A redeclared chain starts over
            chains[m.group(1)] = [m.group(2), []]
            continue

        m = _SAVE_RULE_RE.match(line)
        if m:
            name = m.group(1)
            if name not in chains:
                chains[name] = [UNKNOWN_POLICY, []]
            chains[name][1].append(parse_save_rule(m.group(2), line))
            continue

        logger.debug(f"Skipping unrecognised iptables-save line: {line!r}")

    return [
        IptablesChain(name=name, policy=policy, rules=tuple(rules))
        for name, (policy, rules) in chains.items()
    ]


def _parse_list_format(lines: list[str]) -> list[IptablesChain]:
    chains: list[IptablesChain] = []
    name: Optional[str] = None
    policy = UNKNOWN_POLICY
    rules: list[IptablesRule] = []
    in_rows = False

    def flush():
        if name is not None:
            chains.append(IptablesChain(name=name, policy=policy, rules=tuple(rules)))

    for raw_line in lines:
        line = raw_line.strip()
        if not line:
            in_rows = False
            continue

        m = _LIST_CHAIN_RE.match(line)
        if m:
            flush()
            name = m.group(1)
            policy = m.group(2) or UNKNOWN_POLICY
            rules = []
            in_rows = False
            continue

        if name is not None and not in_rows and _LIST_HEADER_RE.match(line):
            in_rows = True
            continue

        if name is not None and in_rows:
            parts = line.split()
            if len(parts) < 5:
                logger.debug(f"Skipping short iptables row: {line!r}")
                continue
            # target prot opt source destination [options...]
            rules.append(IptablesRule(
                target=parts[0],
                protocol=parts[1],
                source=parts[3],
                destination=parts[4],
                options=" ".join(parts[5:]),
                raw=line,
            ))

    flush()
    return chains


def parse_iptables(text: str) -> ParsedIptables:
    """Parse an iptables dump into a ParsedIptables model."""
    if not text or not text.strip():
        return ParsedIptables()

    lines = text.splitlines()

    if any(l.startswith("*") or l.startswith(":") for l in lines):
        chains = _parse_save_format(lines)
        fmt = "save"
    elif any(_LIST_DETECT_RE.match(l) for l in lines):
        chains = _parse_list_format(lines)
        fmt = "list"
    else:
        logger.debug("Unrecognised iptables format; no chains parsed")
        return ParsedIptables()

    logger.debug(f"Parsed {len(chains)} chain(s) from iptables {fmt} format")
    return ParsedIptables(chains=tuple(chains))
