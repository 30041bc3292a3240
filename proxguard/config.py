"""
Configuration module for ProxGuard.
Defines the scoring tables, supported input file types and operational settings.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

logger = logging.getLogger("proxguard.config")


class ProxGuardError(Exception):
    """Base class for all ProxGuard errors."""


class InputFileError(ProxGuardError):
    """Raised when a requested configuration file exists but cannot be read."""
    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Cannot read input file {path}: {reason}")


# ─── Input File Types ───────────────────────────────────────────────────────

CONFIG_FILE_TYPES = (
    "sshd_config",
    "user.cfg",
    "cluster.fw",
    "iptables",
    "lxc.conf",
    "storage.cfg",
)


# ─── Categories & Severities ────────────────────────────────────────────────

# Report order of the category scores
CATEGORIES = ("ssh", "firewall", "auth", "container", "storage", "api")

SEVERITIES = ("critical", "high", "medium", "info")

CATEGORY_DISPLAY = {
    "ssh":       "SSH Daemon",
    "firewall":  "Cluster Firewall",
    "auth":      "Authentication & ACLs",
    "container": "LXC Containers",
    "storage":   "Storage Backends",
    "api":       "API Tokens",
}

SEVERITY_ICONS = {
    "critical": "🔴",
    "high":     "🟠",
    "medium":   "🟡",
    "info":     "⚪",
}


# ─── Scoring Weights ────────────────────────────────────────────────────────

CATEGORY_WEIGHTS = {
    "ssh": 25,
    "auth": 20,
    "firewall": 25,
    "container": 15,
    "storage": 10,
    "api": 5,
}

# Points deducted from a category per failed finding
SEVERITY_DEDUCTIONS = {
    "critical": 40,
    "high": 25,
    "medium": 10,
    "info": 5,
}

# Lower bound (inclusive) → grade, checked top-down
GRADE_THRESHOLDS = [
    (90, "A"),
    (80, "B"),
    (70, "C"),
    (60, "D"),
    ( 0, "F"),
]

MAX_CATEGORY_SCORE = 100


# ─── Documented Defaults ────────────────────────────────────────────────────

DEFAULT_SSH_PORT = 22
DEFAULT_SSH_MAX_AUTH_TRIES = 6        # OpenSSH default
DEFAULT_FIREWALL_POLICY_IN = "DROP"   # Proxmox VE default
ROOT_USER = "root@pam"
ADMIN_ROLES = ("Administrator", "PVEAdmin")


# ─── Input Configuration ────────────────────────────────────────────────────

@dataclass
class InputConfig:
    """Where to read each configuration file from."""
    input_dir: str = ""
    paths: dict[str, str] = field(default_factory=dict)

    def resolve(self) -> dict[str, Path]:
        """
        Map each file type to the path it should be read from.
        Explicit paths win over files found in input_dir.
        """
        resolved: dict[str, Path] = {}
        if self.input_dir:
            base = Path(self.input_dir)
            for file_type in CONFIG_FILE_TYPES:
                candidate = base / file_type
                if candidate.is_file():
                    resolved[file_type] = candidate
        for file_type, path in self.paths.items():
            if file_type not in CONFIG_FILE_TYPES:
                logger.warning(f"Ignoring unknown input file type '{file_type}'")
                continue
            if path:
                resolved[file_type] = Path(path)
        return resolved

    def read_all(self) -> dict[str, str]:
        """
        Read every configured file into a file-type → text mapping.
        Missing files are logged and treated as empty input.
        """
        inputs: dict[str, str] = {}
        for file_type, path in self.resolve().items():
            if not path.exists():
                logger.warning(f"Input file for {file_type} not found: {path}")
                inputs[file_type] = ""
                continue
            try:
                with open(path, "r", encoding="utf-8", errors="replace") as fh:
                    inputs[file_type] = fh.read()
            except OSError as e:
                raise InputFileError(str(path), str(e)) from e
            logger.debug(f"Read {len(inputs[file_type])} chars for {file_type} from {path}")
        return inputs


# ─── Output Configuration ───────────────────────────────────────────────────

@dataclass
class OutputConfig:
    """Output directory and format settings."""
    base_dir: str = ""
    timestamp: str = ""
    formats: list[str] = field(default_factory=lambda: [
        "json", "csv", "markdown"
    ])

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        if not self.base_dir:
            self.base_dir = os.path.join(
                os.getcwd(),
                f"proxguard_audit_{self.timestamp}"
            )

    @property
    def audit_dir(self) -> Path:
        return Path(self.base_dir)


# ─── Master Configuration ───────────────────────────────────────────────────

@dataclass
class AuditConfig:
    """Top-level configuration for an audit run."""
    inputs: InputConfig = field(default_factory=InputConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    fail_under: Optional[int] = None
    verbose: bool = False

    @classmethod
    def from_file(cls, path: str | Path) -> "AuditConfig":
        """Load configuration from a JSON file."""
        with open(path, "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a JSON object, got {type(data).__name__}")
        for section in ("inputs", "output"):
            if section in data and not isinstance(data[section], dict):
                raise ValueError(f"{path}: '{section}' must be a JSON object")
        config = cls()
        if "inputs" in data:
            inputs_data = data["inputs"]
            config.inputs.input_dir = inputs_data.get("input_dir", "")
            for file_type in CONFIG_FILE_TYPES:
                if inputs_data.get(file_type):
                    config.inputs.paths[file_type] = inputs_data[file_type]
        if "output" in data:
            for k, v in data["output"].items():
                if hasattr(config.output, k):
                    setattr(config.output, k, v)
        config.fail_under = data.get("fail_under")
        config.verbose = data.get("verbose", False)
        return config
