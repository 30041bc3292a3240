"""
Parser for LXC container configuration files.

Input may hold several containers, each introduced by a header line:
  # Container 100
  [CT:100]
  # /etc/pve/lxc/100.conf
  # CTID: 100
  # === 100 ===
Input with no header at all is read as a single container with id "unknown".

Key directives:
  unprivileged: 1 / lxc.idmap   unprivileged container
  features: nesting=1           nesting enabled
  mpN: / lxc.mount.entry        mount points
  lxc.cap.drop / lxc.cap.keep   capability adjustments
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from ..models import ContainerConfig, ParsedContainers, TriState

logger = logging.getLogger("proxguard.parsers.lxc")

UNKNOWN_CONTAINER_ID = "unknown"

_HEADER_PATTERNS = [
    re.compile(r"^#\s*Container\s+(\d+)", re.IGNORECASE),
    re.compile(r"^\[CT:(\d+)\]", re.IGNORECASE),
    re.compile(r"^#\s*/etc/pve/lxc/(\d+)\.conf", re.IGNORECASE),
    re.compile(r"^#\s*CTID:\s*(\d+)", re.IGNORECASE),
    re.compile(r"^#\s*=+\s*(\d+)\s*=+"),
]

_KV_RE = re.compile(r"^([^:]+):\s*(.+)$")
_LXC_RE = re.compile(r"^(lxc\.\S+)\s*=\s*(.+)$")
_MOUNT_POINT_RE = re.compile(r"^mp\d+$")


def _match_header(line: str) -> Optional[str]:
    for pattern in _HEADER_PATTERNS:
        m = pattern.match(line)
        if m:
            return m.group(1)
    return None


@dataclass
class _ContainerBuilder:
    """Mutable state for the container block currently being read."""
    id: str
    unprivileged: TriState = TriState.UNSPECIFIED
    nesting: bool = False
    hostname: Optional[str] = None
    mount_points: list[str] = field(default_factory=list)
    capabilities: list[str] = field(default_factory=list)
    raw_lines: list[str] = field(default_factory=list)

    def feed(self, raw_line: str):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            return
        self.raw_lines.append(line)

        kv = _KV_RE.match(line)
        if kv:
            self._apply_option(kv.group(1).strip().lower(), kv.group(2).strip())

        native = _LXC_RE.match(line)
        if native:
            self._apply_native(native.group(1).lower(), native.group(2).strip())

    def _apply_option(self, key: str, value: str):
        if key == "unprivileged":
            self.unprivileged = TriState.YES if value.lower() in ("1", "true") else TriState.NO
        elif key == "hostname":
            self.hostname = value
        elif key == "features":
            # features: nesting=1,keyctl=1,mount=nfs
            for feature in value.split(","):
                name, _, flag = feature.partition("=")
                if name.strip() == "nesting" and flag.strip() in ("1", "true"):
                    self.nesting = True
        elif _MOUNT_POINT_RE.match(key):
            self.mount_points.append(value)
        elif key.startswith("lxc."):
            # /etc/pve/lxc/*.conf writes raw lxc keys as "lxc.idmap: u 0 100000 65536"
            self._apply_native(key, value)

    def _apply_native(self, key: str, value: str):
        if key == "lxc.idmap":
            self.unprivileged = TriState.YES
        elif key == "lxc.mount.entry":
            self.mount_points.append(value)
        elif key == "lxc.cap.drop":
            self.capabilities.append(f"drop:{value}")
        elif key == "lxc.cap.keep":
            self.capabilities.append(f"keep:{value}")

    def build(self) -> ContainerConfig:
        return ContainerConfig(
            id=self.id,
            unprivileged=self.unprivileged,
            nesting=self.nesting,
            mount_points=tuple(self.mount_points),
            capabilities=tuple(self.capabilities),
            hostname=self.hostname,
            raw_lines=tuple(self.raw_lines),
        )


def parse_lxc_config(text: str) -> ParsedContainers:
    """Parse one or more LXC container configs into a ParsedContainers model."""
    if not text or not text.strip():
        return ParsedContainers()

    containers: list[ContainerConfig] = []
    current: Optional[_ContainerBuilder] = None
    # Lines seen before any header; used when the input has no headers at all
    preamble = _ContainerBuilder(id=UNKNOWN_CONTAINER_ID)
    saw_header = False

    def flush():
        if current is not None and current.raw_lines:
            containers.append(current.build())

    for raw_line in text.splitlines():
        ctid = _match_header(raw_line)
        if ctid is not None:
            flush()
            current = _ContainerBuilder(id=ctid)
            saw_header = True
            continue
        (current or preamble).feed(raw_line)

    flush()

    if not saw_header and preamble.raw_lines:
        containers.append(preamble.build())

    logger.debug(f"Parsed {len(containers)} container config(s)")
    return ParsedContainers(containers=tuple(containers))
