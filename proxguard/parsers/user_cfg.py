"""
Parser for Proxmox VE user.cfg files.

Colon-delimited records, one per line:
  user:<userid>:<enable>:<expire>:<firstname>:<lastname>:<email>:<comment>:<keys>:
  group:<groupid>:<userlist>:<comment>:
  role:<roleid>:<privs>:
  acl:<propagate>:<path>:<ugid>:<roleid>:
  token:<userid>:<tokenid>:<expire>:<privsep>:<comment>:
  tfa:<userid>:<type>:<data>:

A tfa record may precede the user it belongs to, so users are collected in
file order first and merged by user id once the scan is finished.
"""

from __future__ import annotations

import logging
from dataclasses import fields, replace
from typing import Optional

from ..models import ParsedAuth, PVEAcl, PVEGroup, PVEToken, PVEUser, TriState

logger = logging.getLogger("proxguard.parsers.user_cfg")

DEFAULT_TFA_TYPE = "totp"
LEGACY_TFA_PREFIX = "x!"


def _field(parts: list[str], index: int) -> Optional[str]:
    """Positional field, None when missing or empty."""
    if index < len(parts) and parts[index]:
        return parts[index]
    return None


def _epoch(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value) or None
    except ValueError:
        return None


def _parse_user(parts: list[str]) -> Optional[PVEUser]:
    userid = _field(parts, 1)
    if not userid:
        return None
    enable = _field(parts, 2)
    keys = _field(parts, 8)
    return PVEUser(
        userid=userid,
        enable=TriState.UNSPECIFIED if enable is None else (
            TriState.YES if enable == "1" else TriState.NO
        ),
        expire=_epoch(_field(parts, 3)),
        first_name=_field(parts, 4),
        last_name=_field(parts, 5),
        email=_field(parts, 6),
        comment=_field(parts, 7),
        # Older releases kept the TFA descriptor in the keys field
        tfa=keys if keys and keys.startswith(LEGACY_TFA_PREFIX) else None,
    )


def _parse_group(parts: list[str]) -> Optional[PVEGroup]:
    groupid = _field(parts, 1)
    if not groupid:
        return None
    members = _field(parts, 2)
    return PVEGroup(
        groupid=groupid,
        users=tuple(u for u in (members or "").split(",") if u),
        comment=_field(parts, 3),
    )


def _parse_acl(parts: list[str]) -> Optional[PVEAcl]:
    ugid = _field(parts, 3)
    if not ugid:
        return None
    return PVEAcl(
        propagate=_field(parts, 1) == "1",
        path=_field(parts, 2) or "/",
        ugid=ugid,
        role=_field(parts, 4) or "",
    )


def _parse_token(parts: list[str]) -> Optional[PVEToken]:
    userid = _field(parts, 1)
    token_id = _field(parts, 2)
    if not userid or not token_id:
        return None
    privsep = _field(parts, 4)
    return PVEToken(
        userid=userid,
        token_id=token_id,
        expire=_epoch(_field(parts, 3)),
        privsep=TriState.UNSPECIFIED if privsep is None else (
            TriState.YES if privsep == "1" else TriState.NO
        ),
        comment=_field(parts, 5),
    )


def _merge_user(existing: PVEUser, incoming: PVEUser) -> PVEUser:
    """Fold incoming into existing; present values win, absent ones never overwrite."""
    updates = {}
    for f in fields(PVEUser):
        if f.name == "userid":
            continue
        value = getattr(incoming, f.name)
        if value is None or value is TriState.UNSPECIFIED:
            continue
        updates[f.name] = value
    return replace(existing, **updates)


def merge_users(users: list[PVEUser]) -> tuple[PVEUser, ...]:
    """Collapse records sharing a user id, keeping first-seen order."""
    merged: dict[str, PVEUser] = {}
    for user in users:
        if user.userid in merged:
            merged[user.userid] = _merge_user(merged[user.userid], user)
        else:
            merged[user.userid] = user
    return tuple(merged.values())


def parse_user_config(text: str) -> ParsedAuth:
    """Parse user.cfg text into a ParsedAuth model."""
    if not text or not text.strip():
        return ParsedAuth()

    users: list[PVEUser] = []
    groups: list[PVEGroup] = []
    acls: list[PVEAcl] = []
    tokens: list[PVEToken] = []
    roles: dict[str, str] = {}

    for line_num, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        parts = line.split(":")
        record_type = parts[0].lower()

        if record_type == "user":
            user = _parse_user(parts)
            if user:
                users.append(user)
        elif record_type == "group":
            group = _parse_group(parts)
            if group:
                groups.append(group)
        elif record_type == "role":
            role_id = _field(parts, 1)
            if role_id:
                roles[role_id] = _field(parts, 2) or ""
        elif record_type == "acl":
            acl = _parse_acl(parts)
            if acl:
                acls.append(acl)
        elif record_type == "token":
            token = _parse_token(parts)
            if token:
                tokens.append(token)
        elif record_type == "tfa":
            tfa_user = _field(parts, 1)
            if tfa_user:
                users.append(PVEUser(
                    userid=tfa_user,
                    tfa=_field(parts, 2) or DEFAULT_TFA_TYPE,
                ))
        else:
            logger.debug(f"Skipping unrecognised record at line {line_num}: {record_type!r}")

    result = ParsedAuth(
        users=merge_users(users),
        groups=tuple(groups),
        acls=tuple(acls),
        tokens=tuple(tokens),
        roles=roles,
    )
    logger.debug(
        f"Parsed {len(result.users)} user(s), {len(result.groups)} group(s), "
        f"{len(result.acls)} ACL(s), {len(result.tokens)} token(s)"
    )
    return result
