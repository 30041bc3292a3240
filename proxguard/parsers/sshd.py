"""
Parser for OpenSSH sshd_config files.
Only the global scope is audited: parsing stops at the first Match block.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from ..models import ParsedSSH

logger = logging.getLogger("proxguard.parsers.sshd")

_DIRECTIVE_RE = re.compile(r"^(\S+)\s+(.+)$")
_MATCH_RE = re.compile(r"^match\s+", re.IGNORECASE)

# lower-cased directive → (ParsedSSH field, value normaliser)
_TYPED_DIRECTIVES = {
    "permitrootlogin":        ("permit_root_login", str.lower),
    "passwordauthentication": ("password_authentication", str.lower),
    "pubkeyauthentication":   ("pubkey_authentication", str.lower),
    "port":                   ("port", None),
    "maxauthtries":           ("max_auth_tries", None),
    "permitemptypasswords":   ("permit_empty_passwords", str.lower),
    "x11forwarding":          ("x11_forwarding", str.lower),
    "usepam":                 ("use_pam", str.lower),
    "protocol":               ("protocol", str),
    "logingracetime":         ("login_grace_time", str),
}

_INTEGER_FIELDS = {"port", "max_auth_tries"}


def _parse_int(value: str) -> Optional[int]:
    """Leading-digit integer parse; 0 and garbage both read as unset."""
    m = re.match(r"^[+-]?\d+", value)
    if not m:
        return None
    return int(m.group(0)) or None


def parse_ssh_config(text: str) -> ParsedSSH:
    """Parse sshd_config text into a ParsedSSH model."""
    if not text or not text.strip():
        return ParsedSSH()

    fields: dict = {}
    raw_directives: dict[str, str] = {}

    for line_num, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        if _MATCH_RE.match(line):
            logger.debug(f"Match block at line {line_num}; ignoring the rest of the file")
            break

        m = _DIRECTIVE_RE.match(line)
        if not m:
            logger.debug(f"Skipping directive without value at line {line_num}: {line!r}")
            continue

        key, value = m.group(1), m.group(2).strip()
        raw_directives[key] = value

        typed = _TYPED_DIRECTIVES.get(key.lower())
        if typed is None:
            continue
        field_name, normalise = typed
        if field_name in _INTEGER_FIELDS:
            fields[field_name] = _parse_int(value)
        else:
            fields[field_name] = normalise(value)

    logger.debug(f"Parsed {len(raw_directives)} sshd directive(s)")
    return ParsedSSH(raw_directives=raw_directives, **fields)
