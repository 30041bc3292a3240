"""
Storage Security Rules
Evaluates storage.cfg for NFS/CIFS security issues.
"""

from __future__ import annotations

from ..models import ParsedConfig
from .base import RuleResult, SecurityRule, not_provided

_NO_INPUT = "storage config"

CIFS_BROAD_MARKERS = ("0777", "0666", "file_mode=0777", "dir_mode=0777", "guest", "sec=none")


def _entries(config: ParsedConfig) -> list:
    if config.storage is None or not config.has_input("storage.cfg"):
        return []
    return list(config.storage.entries)


def check_nfs_no_root_squash(config: ParsedConfig) -> RuleResult:
    entries = _entries(config)
    if not entries:
        return not_provided(_NO_INPUT)

    nfs = [e for e in entries if e.type == "nfs"]
    if not nfs:
        return RuleResult(passed=True, evidence="No NFS storage backends configured")

    vulnerable = [e.id for e in nfs if "no_root_squash" in e.option_text()]
    if vulnerable:
        return RuleResult(
            passed=False,
            evidence=f"{len(vulnerable)} NFS mount(s) with no_root_squash: {', '.join(vulnerable)}",
            details=(
                "Root on this host can read/write any file on the NFS server as root. An attacker "
                "who compromises a container can leverage this."
            ),
        )
    return RuleResult(passed=True, evidence=f"{len(nfs)} NFS mount(s) — none use no_root_squash")


def check_cifs_world_readable(config: ParsedConfig) -> RuleResult:
    entries = _entries(config)
    if not entries:
        return not_provided(_NO_INPUT)

    cifs = [e for e in entries if e.type == "cifs"]
    if not cifs:
        return RuleResult(passed=True, evidence="No CIFS storage backends configured")

    vulnerable = []
    for entry in cifs:
        text = entry.option_text()
        hits = [m for m in CIFS_BROAD_MARKERS if m in text]
        if hits:
            vulnerable.append(f"{entry.id} ({', '.join(hits)})")

    if vulnerable:
        return RuleResult(
            passed=False,
            evidence=f"{len(vulnerable)} CIFS mount(s) with broad permissions: {', '.join(vulnerable)}",
            details=(
                "World-readable CIFS mounts or guest access allow any process on the host to "
                "access storage content."
            ),
        )
    return RuleResult(passed=True, evidence=f"{len(cifs)} CIFS mount(s) — permissions look reasonable")


STORAGE_RULES = [
    SecurityRule(
        id="nfs-no-root-squash",
        category="storage",
        severity="high",
        title="NFS Mount with no_root_squash",
        description=(
            "An NFS storage backend is configured with the no_root_squash option. Root on the "
            "Proxmox host then acts as root on the NFS server, a privilege escalation vector."
        ),
        check=check_nfs_no_root_squash,
        remediation=(
            "Remove no_root_squash from NFS mount options. Configure the NFS server with "
            "root_squash (the default) to map remote root to nobody."
        ),
        remediation_script=(
            "# Check current NFS options\n"
            "grep -A5 'nfs:' /etc/pve/storage.cfg\n"
            "# Remove no_root_squash on the NFS server's /etc/exports, then re-export:\n"
            "# exportfs -ra"
        ),
        cis_benchmark="PVE-STOR-001",
    ),
    SecurityRule(
        id="cifs-world-readable",
        category="storage",
        severity="medium",
        title="CIFS Mount with Broad Permissions",
        description=(
            "A CIFS/SMB storage backend is configured with world-readable permissions "
            "(file_mode=0777 or dir_mode=0777) or guest access, allowing any local user to reach the share."
        ),
        check=check_cifs_world_readable,
        remediation=(
            "Set restrictive file and directory modes (e.g., file_mode=0600, dir_mode=0700) on "
            "CIFS mounts and ensure proper credentials are configured."
        ),
        remediation_script='pvesm set <storage-id> --options "file_mode=0600,dir_mode=0700"',
        cis_benchmark="PVE-STOR-002",
    ),
]
