"""
Parsed configuration models — the structured view of every audited file.

All records are immutable and created fresh on each audit run. A sub-model
equal to its zero value means no usable input was provided for that file.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional


class TriState(Enum):
    """A flag that may be affirmed, denied or simply not specified."""
    YES = "yes"
    NO = "no"
    UNSPECIFIED = "unspecified"

    @classmethod
    def from_flag(cls, value: Optional[str]) -> "TriState":
        """Map "1"/"true" to YES, any other text to NO, and empty to UNSPECIFIED."""
        if value is None or not value.strip():
            return cls.UNSPECIFIED
        if value.strip().lower() in ("1", "true"):
            return cls.YES
        return cls.NO

    def __str__(self) -> str:
        return self.value


def _serialize(value):
    """Convert dataclass/enum/tuple trees into JSON-safe primitives."""
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _serialize(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, TriState):
        return value.value
    if isinstance(value, Mapping):
        return {k: _serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value


def _freeze(record, *names: str) -> None:
    """Replace the named dict fields of a frozen record with read-only views."""
    for name in names:
        object.__setattr__(record, name, MappingProxyType(dict(getattr(record, name))))


class _Record:
    """Mixin shared by the parsed sub-models."""

    def to_dict(self) -> dict:
        return _serialize(self)

    def is_empty(self) -> bool:
        return self == type(self)()


# ─── sshd_config ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ParsedSSH(_Record):
    permit_root_login: Optional[str] = None
    password_authentication: Optional[str] = None
    pubkey_authentication: Optional[str] = None
    port: Optional[int] = None
    max_auth_tries: Optional[int] = None
    permit_empty_passwords: Optional[str] = None
    x11_forwarding: Optional[str] = None
    use_pam: Optional[str] = None
    protocol: Optional[str] = None
    login_grace_time: Optional[str] = None
    # Every directive seen, key case preserved as written
    raw_directives: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        _freeze(self, "raw_directives")


# ─── cluster.fw ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FirewallRule:
    direction: str                      # IN, OUT or GROUP
    action: str
    source: Optional[str] = None
    dest: Optional[str] = None
    proto: Optional[str] = None
    dport: Optional[str] = None
    sport: Optional[str] = None
    iface: Optional[str] = None
    comment: Optional[str] = None
    enable: bool = True                 # False for "|"-prefixed rules


@dataclass(frozen=True)
class IPSet:
    name: str
    entries: tuple[str, ...] = ()


@dataclass(frozen=True)
class ParsedFirewall(_Record):
    enabled: TriState = TriState.UNSPECIFIED
    policy_in: Optional[str] = None
    policy_out: Optional[str] = None
    rules: tuple[FirewallRule, ...] = ()
    ip_sets: tuple[IPSet, ...] = ()
    options: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        _freeze(self, "options")


# ─── user.cfg ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PVEUser:
    userid: str
    enable: TriState = TriState.UNSPECIFIED
    expire: Optional[int] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    comment: Optional[str] = None
    tfa: Optional[str] = None


@dataclass(frozen=True)
class PVEGroup:
    groupid: str
    users: tuple[str, ...] = ()
    comment: Optional[str] = None


@dataclass(frozen=True)
class PVEAcl:
    propagate: bool
    path: str
    ugid: str
    role: str


@dataclass(frozen=True)
class PVEToken:
    userid: str
    token_id: str
    expire: Optional[int] = None
    privsep: TriState = TriState.UNSPECIFIED
    comment: Optional[str] = None

    @property
    def full_id(self) -> str:
        return f"{self.userid}!{self.token_id}"


@dataclass(frozen=True)
class ParsedAuth(_Record):
    users: tuple[PVEUser, ...] = ()
    groups: tuple[PVEGroup, ...] = ()
    acls: tuple[PVEAcl, ...] = ()
    tokens: tuple[PVEToken, ...] = ()
    roles: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        _freeze(self, "roles")

    def get_user(self, userid: str) -> Optional[PVEUser]:
        for user in self.users:
            if user.userid == userid:
                return user
        return None


# ─── lxc.conf ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ContainerConfig:
    id: str
    unprivileged: TriState = TriState.UNSPECIFIED
    nesting: bool = False
    mount_points: tuple[str, ...] = ()
    capabilities: tuple[str, ...] = ()   # "drop:<caps>" / "keep:<caps>"
    hostname: Optional[str] = None
    raw_lines: tuple[str, ...] = ()

    @property
    def label(self) -> str:
        return f"CT {self.id}" + (f" ({self.hostname})" if self.hostname else "")


@dataclass(frozen=True)
class ParsedContainers(_Record):
    containers: tuple[ContainerConfig, ...] = ()


# ─── derived API view ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class ParsedAPI(_Record):
    tokens: tuple[PVEToken, ...] = ()
    token_acls: tuple[PVEAcl, ...] = ()


# ─── storage.cfg ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class StorageEntry:
    id: str
    type: str
    path: Optional[str] = None
    server: Optional[str] = None
    export: Optional[str] = None
    share: Optional[str] = None
    content: Optional[tuple[str, ...]] = None
    options: Optional[str] = None
    mount_options: Optional[str] = None
    domain: Optional[str] = None
    username: Optional[str] = None
    maxfiles: Optional[int] = None
    subdir: Optional[str] = None
    raw_options: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        _freeze(self, "raw_options")

    def option_text(self) -> str:
        """Every option value of this entry joined into one searchable string."""
        parts = list(self.raw_options.values())
        parts.append(self.options or "")
        parts.append(self.mount_options or "")
        return " ".join(parts)


@dataclass(frozen=True)
class ParsedStorage(_Record):
    entries: tuple[StorageEntry, ...] = ()

    def of_type(self, storage_type: str) -> list[StorageEntry]:
        return [e for e in self.entries if e.type == storage_type]


# ─── iptables ───────────────────────────────────────────────────────────────

UNKNOWN_POLICY = "-"


@dataclass(frozen=True)
class IptablesRule:
    target: str
    protocol: str
    source: str
    destination: str
    options: str
    raw: str


@dataclass(frozen=True)
class IptablesChain:
    name: str
    policy: str = UNKNOWN_POLICY
    rules: tuple[IptablesRule, ...] = ()


@dataclass(frozen=True)
class ParsedIptables(_Record):
    chains: tuple[IptablesChain, ...] = ()

    def get_chain(self, name: str) -> Optional[IptablesChain]:
        for chain in self.chains:
            if chain.name == name:
                return chain
        return None


# ─── Aggregate ──────────────────────────────────────────────────────────────

# file type → ParsedConfig attribute holding its sub-model
FILE_TYPE_FIELDS = {
    "sshd_config": "ssh",
    "user.cfg": "auth",
    "cluster.fw": "firewall",
    "iptables": "iptables",
    "lxc.conf": "containers",
    "storage.cfg": "storage",
}


def _empty_raw() -> dict[str, str]:
    return {file_type: "" for file_type in FILE_TYPE_FIELDS}


@dataclass(frozen=True)
class ParsedConfig:
    """Everything parsed from one set of audit inputs."""
    ssh: Optional[ParsedSSH] = None
    firewall: Optional[ParsedFirewall] = None
    auth: Optional[ParsedAuth] = None
    containers: Optional[ParsedContainers] = None
    api: Optional[ParsedAPI] = None
    storage: Optional[ParsedStorage] = None
    iptables: Optional[ParsedIptables] = None
    raw: Mapping[str, str] = field(default_factory=_empty_raw)

    def __post_init__(self):
        _freeze(self, "raw")

    def has_input(self, file_type: str) -> bool:
        """
        True when input was supplied for file_type: either non-blank raw text
        or a sub-model carrying parsed content.
        """
        if self.raw.get(file_type, "").strip():
            return True
        sub_model = getattr(self, FILE_TYPE_FIELDS[file_type])
        return sub_model is not None and not sub_model.is_empty()

    def input_files(self) -> list[str]:
        """File types whose raw text was non-blank, in canonical order."""
        return [ft for ft in FILE_TYPE_FIELDS if self.raw.get(ft, "").strip()]
