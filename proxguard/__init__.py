"""
ProxGuard — Proxmox VE Security Posture Auditor
================================================
Parses host configuration files (sshd_config, user.cfg, cluster.fw,
iptables, LXC and storage configs) into a unified model, evaluates a fixed
catalog of security rules against it and produces a graded report.

WARNING: This tool is STRICTLY READ-ONLY.
         It never modifies or writes back to the audited system.
"""

__version__ = "1.0.0"
__author__ = "ProxGuard"
__mode__ = "READ-ONLY"
