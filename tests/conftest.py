"""Shared fixtures: a deliberately weak host and a hardened one."""

from __future__ import annotations

import pytest

from proxguard.models import ParsedConfig
from proxguard.parsers import parse_all_configs


INSECURE_INPUTS = {
    "sshd_config": (
        "# stock sshd_config\n"
        "PermitRootLogin yes\n"
        "PasswordAuthentication yes\n"
        "Port 22\n"
        "MaxAuthTries 10\n"
    ),
    "user.cfg": (
        "user:root@pam:1:0:::root@example.com:::\n"
        "user:alice@pve:1:0:Alice:Admin:alice@example.com:::\n"
        "user:bob@pve:1:0:Bob:Ops::::\n"
        "token:root@pam:automation:0:0::\n"
        "acl:1:/:root@pam:Administrator:\n"
        "acl:1:/:alice@pve:Administrator:\n"
        "acl:1:/:root@pam!automation:PVEAdmin:\n"
    ),
    "cluster.fw": (
        "[OPTIONS]\n"
        "enable: 0\n"
        "policy_in: ACCEPT\n"
    ),
    "iptables": (
        "*filter\n"
        ":INPUT ACCEPT [0:0]\n"
        ":FORWARD ACCEPT [0:0]\n"
        ":OUTPUT ACCEPT [0:0]\n"
        "COMMIT\n"
    ),
    "lxc.conf": (
        "# /etc/pve/lxc/100.conf\n"
        "arch: amd64\n"
        "hostname: web\n"
        "features: nesting=1\n"
        "# /etc/pve/lxc/101.conf\n"
        "hostname: db\n"
        "unprivileged: 1\n"
    ),
    "storage.cfg": (
        "dir: local\n"
        "\tpath /var/lib/vz\n"
        "\tcontent iso,vztmpl,backup\n"
        "\n"
        "nfs: backup-nfs\n"
        "\tserver 10.0.0.5\n"
        "\texport /srv/backup\n"
        "\toptions vers=4,no_root_squash\n"
        "\n"
        "cifs: shared\n"
        "\tserver 10.0.0.6\n"
        "\tshare public\n"
        "\toptions file_mode=0777,dir_mode=0777\n"
    ),
}

HARDENED_INPUTS = {
    "sshd_config": (
        "PermitRootLogin prohibit-password\n"
        "PasswordAuthentication no\n"
        "PubkeyAuthentication yes\n"
        "Port 2222\n"
        "MaxAuthTries 3\n"
    ),
    "user.cfg": (
        "user:root@pam:1:0:::root@example.com:::\n"
        "user:ops@pve:1:0:Ops:Team::::\n"
        "tfa:root@pam:totp:\n"
        "tfa:ops@pve:webauthn:\n"
        "token:ops@pve:ci:1893456000:1::\n"
        "acl:1:/vms:ops@pve:PVEVMUser:\n"
    ),
    "cluster.fw": (
        "[OPTIONS]\n"
        "enable: 1\n"
        "policy_in: DROP\n"
        "policy_out: ACCEPT\n"
        "\n"
        "[RULES]\n"
        "IN ACCEPT -source 192.168.1.0/24 -p tcp -dport 8006 # Web UI\n"
        "IN ACCEPT -source 192.168.1.0/24 -p tcp -dport 22\n"
    ),
    "iptables": (
        "Chain INPUT (policy DROP)\n"
        "target     prot opt source               destination\n"
        "ACCEPT     tcp  --  192.168.1.0/24       0.0.0.0/0            tcp dpt:22\n"
    ),
    "lxc.conf": (
        "[CT:200]\n"
        "hostname: app\n"
        "unprivileged: 1\n"
        "[CT:201]\n"
        "hostname: cache\n"
        "unprivileged: 1\n"
    ),
    "storage.cfg": (
        "nfs: vmstore\n"
        "\tserver 10.0.0.5\n"
        "\texport /srv/vm\n"
        "\toptions vers=4,root_squash\n"
        "\n"
        "cifs: archive\n"
        "\tserver 10.0.0.6\n"
        "\tshare archive\n"
        "\toptions file_mode=0600,dir_mode=0700\n"
    ),
}


@pytest.fixture
def insecure_inputs() -> dict:
    return dict(INSECURE_INPUTS)


@pytest.fixture
def hardened_inputs() -> dict:
    return dict(HARDENED_INPUTS)


@pytest.fixture
def insecure_config() -> ParsedConfig:
    return parse_all_configs(INSECURE_INPUTS)


@pytest.fixture
def hardened_config() -> ParsedConfig:
    return parse_all_configs(HARDENED_INPUTS)


@pytest.fixture
def empty_config() -> ParsedConfig:
    return parse_all_configs({})


@pytest.fixture
def input_dir(tmp_path):
    """A directory holding the insecure sample files under their canonical names."""
    directory = tmp_path / "configs"
    directory.mkdir()
    for file_type, text in INSECURE_INPUTS.items():
        (directory / file_type).write_text(text, encoding="utf-8")
    return directory
