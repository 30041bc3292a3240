"""Tests for parse_all_configs and the derived API view."""

from __future__ import annotations

import logging

import pytest

from proxguard.config import CONFIG_FILE_TYPES
from proxguard.models import ParsedAuth, ParsedConfig, ParsedSSH, PVEAcl, PVEToken
from proxguard.parsers import derive_api_config, parse_all_configs


def test_every_sub_model_present_for_empty_input(empty_config):
    for attr in ("ssh", "firewall", "auth", "containers", "api", "storage", "iptables"):
        sub_model = getattr(empty_config, attr)
        assert sub_model is not None
        assert sub_model.is_empty()
    assert empty_config.raw == {ft: "" for ft in CONFIG_FILE_TYPES}
    assert empty_config.input_files() == []


def test_raw_text_retained(insecure_inputs, insecure_config):
    for file_type, text in insecure_inputs.items():
        assert insecure_config.raw[file_type] == text
    assert insecure_config.input_files() == list(CONFIG_FILE_TYPES)


def test_aggregate_parse_is_idempotent(insecure_inputs):
    assert parse_all_configs(insecure_inputs) == parse_all_configs(insecure_inputs)


def test_raw_is_read_only(insecure_config):
    with pytest.raises(TypeError):
        insecure_config.raw["sshd_config"] = ""


def test_input_files_skips_blank_text():
    config = parse_all_configs({"sshd_config": "Port 22\n", "storage.cfg": "  \n"})
    assert config.input_files() == ["sshd_config"]
    assert config.has_input("sshd_config")
    assert not config.has_input("storage.cfg")


def test_unknown_keys_are_ignored_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="proxguard.parsers"):
        config = parse_all_configs({"nginx.conf": "server {}", "sshd_config": "Port 2222\n"})
    assert config.ssh.port == 2222
    assert "nginx.conf" not in config.raw
    assert any("nginx.conf" in r.message for r in caplog.records)


def test_has_input_falls_back_to_sub_model():
    config = ParsedConfig(ssh=ParsedSSH(port=2222))
    assert config.has_input("sshd_config")
    assert not config.has_input("user.cfg")


def test_api_view_collects_tokens_and_their_acls():
    auth = ParsedAuth(
        tokens=(PVEToken(userid="ci@pve", token_id="deploy"),),
        acls=(
            PVEAcl(propagate=True, path="/", ugid="ci@pve", role="PVEAdmin"),
            PVEAcl(propagate=True, path="/vms", ugid="ops@pve!monitor", role="PVEAuditor"),
            PVEAcl(propagate=True, path="/", ugid="alice@pve", role="Administrator"),
        ),
    )
    api = derive_api_config(auth)
    assert api.tokens == auth.tokens
    assert [a.ugid for a in api.token_acls] == ["ci@pve", "ops@pve!monitor"]


def test_api_view_from_parsed_user_cfg(insecure_config):
    api = insecure_config.api
    assert [t.full_id for t in api.tokens] == ["root@pam!automation"]
    assert {a.ugid for a in api.token_acls} == {"root@pam", "root@pam!automation"}
