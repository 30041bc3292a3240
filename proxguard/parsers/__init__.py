"""Parsers package — turns raw config file text into the ParsedConfig model."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from ..config import CONFIG_FILE_TYPES
from ..models import ParsedAPI, ParsedAuth, ParsedConfig
from .cluster_fw import parse_cluster_firewall
from .iptables import parse_iptables
from .lxc import parse_lxc_config
from .sshd import parse_ssh_config
from .storage import parse_storage_config
from .user_cfg import parse_user_config

logger = logging.getLogger("proxguard.parsers")

TOKEN_DELIMITER = "!"


def derive_api_config(auth: ParsedAuth) -> ParsedAPI:
    """
    Build the API view: every token, plus the ACLs granted to a token-owning
    user or directly to a token (subject contains "!").
    """
    token_owners = {t.userid for t in auth.tokens}
    token_acls = tuple(
        acl for acl in auth.acls
        if acl.ugid in token_owners or TOKEN_DELIMITER in acl.ugid
    )
    return ParsedAPI(tokens=auth.tokens, token_acls=token_acls)


def parse_all_configs(inputs: Optional[Mapping[str, str]] = None) -> ParsedConfig:
    """
    Parse every supported file into one ParsedConfig.

    Args:
        inputs: file type (e.g. "sshd_config") → raw text. Missing file types
                are treated as empty input; unknown keys are ignored.
    """
    inputs = inputs or {}
    for key in inputs:
        if key not in CONFIG_FILE_TYPES:
            logger.warning(f"Ignoring input for unsupported file type '{key}'")

    raw = {ft: inputs.get(ft) or "" for ft in CONFIG_FILE_TYPES}

    auth = parse_user_config(raw["user.cfg"])
    config = ParsedConfig(
        ssh=parse_ssh_config(raw["sshd_config"]),
        firewall=parse_cluster_firewall(raw["cluster.fw"]),
        auth=auth,
        containers=parse_lxc_config(raw["lxc.conf"]),
        api=derive_api_config(auth),
        storage=parse_storage_config(raw["storage.cfg"]),
        iptables=parse_iptables(raw["iptables"]),
        raw=raw,
    )
    logger.info(f"Parsed configuration from {len(config.input_files())} input file(s)")
    return config


__all__ = [
    "parse_all_configs",
    "derive_api_config",
    "parse_ssh_config",
    "parse_user_config",
    "parse_cluster_firewall",
    "parse_iptables",
    "parse_lxc_config",
    "parse_storage_config",
]
