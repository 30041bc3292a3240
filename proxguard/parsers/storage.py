"""
Parser for Proxmox VE storage.cfg files.

Stanza format:
  <type>: <id>
      key value
      key value

Types include dir, nfs, cifs, zfspool, lvm, lvmthin, iscsi, glusterfs, pbs.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from ..models import ParsedStorage, StorageEntry

logger = logging.getLogger("proxguard.parsers.storage")

_HEADER_RE = re.compile(r"^(\S+):\s+(\S+)\s*$")
_OPTION_RE = re.compile(r"^(\S+)\s+(.+)$")

# storage.cfg key → StorageEntry field; mountoptions and mount share one field
_TEXT_KEYS = {
    "path": "path",
    "server": "server",
    "export": "export",
    "share": "share",
    "options": "options",
    "mountoptions": "mount_options",
    "mount": "mount_options",
    "domain": "domain",
    "username": "username",
    "subdir": "subdir",
}


def _typed_fields(raw_options: dict[str, str]) -> dict:
    typed: dict = {}
    for key, value in raw_options.items():
        if key in _TEXT_KEYS:
            typed[_TEXT_KEYS[key]] = value
        elif key == "content":
            typed["content"] = tuple(part.strip() for part in value.split(","))
        elif key == "maxfiles":
            try:
                typed["maxfiles"] = int(value) or None
            except ValueError:
                logger.debug(f"Ignoring non-numeric maxfiles value {value!r}")
    return typed


def _build_entry(storage_type: str, storage_id: str, raw_options: dict[str, str]) -> StorageEntry:
    return StorageEntry(
        id=storage_id,
        type=storage_type,
        raw_options=raw_options,
        **_typed_fields(raw_options),
    )


def parse_storage_config(text: str) -> ParsedStorage:
    """Parse storage.cfg text into a ParsedStorage model."""
    if not text or not text.strip():
        return ParsedStorage()

    entries: list[StorageEntry] = []
    header: Optional[tuple[str, str]] = None
    raw_options: dict[str, str] = {}

    for line_num, raw_line in enumerate(text.splitlines(), start=1):
        stripped = raw_line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        # Headers start in column 0
        m = _HEADER_RE.match(raw_line)
        if m:
            if header:
                entries.append(_build_entry(*header, raw_options))
            header = (m.group(1).lower(), m.group(2))
            raw_options = {}
            continue

        if header and raw_line[:1].isspace():
            kv = _OPTION_RE.match(stripped)
            if kv:
                raw_options[kv.group(1).lower()] = kv.group(2).strip()
                continue

        logger.debug(f"Skipping stray storage.cfg line {line_num}: {stripped!r}")

    if header:
        entries.append(_build_entry(*header, raw_options))

    logger.debug(f"Parsed {len(entries)} storage entr{'y' if len(entries) == 1 else 'ies'}")
    return ParsedStorage(entries=tuple(entries))
