"""
ProxGuard — Main Orchestrator

Usage:
    python -m proxguard --input-dir ./configs                 # files named sshd_config, user.cfg, ...
    python -m proxguard --sshd-config /etc/ssh/sshd_config --user-cfg /etc/pve/user.cfg
    python -m proxguard --config audit.json                   # JSON config file
    python -m proxguard --input-dir ./configs --fail-under 80 --formats json

This tool is STRICTLY READ-ONLY. It never modifies the audited system.
"""

from __future__ import annotations

import argparse
import logging
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from . import __version__
from .config import (
    CATEGORY_DISPLAY,
    CONFIG_FILE_TYPES,
    SEVERITY_ICONS,
    AuditConfig,
    ProxGuardError,
)
from .parsers import parse_all_configs
from .reporting import export_csv, export_json, export_markdown
from .scoring import generate_audit_report, prioritized_failures
from .scoring.models import AuditReport

logger = logging.getLogger("proxguard.cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_BELOW_THRESHOLD = 2

# CLI flag → file type
_FILE_FLAGS = {
    "sshd_config": "sshd_config",
    "user_cfg": "user.cfg",
    "cluster_fw": "cluster.fw",
    "iptables": "iptables",
    "lxc_conf": "lxc.conf",
    "storage_cfg": "storage.cfg",
}


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="proxguard",
        description="Proxmox VE Security Posture Auditor (READ-ONLY)",
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Path to JSON configuration file",
    )
    parser.add_argument(
        "--input-dir", "-i",
        type=Path,
        help="Directory holding files named after their type (sshd_config, user.cfg, ...)",
    )
    for flag, file_type in _FILE_FLAGS.items():
        parser.add_argument(
            f"--{flag.replace('_', '-')}",
            dest=flag,
            type=Path,
            default=None,
            help=f"Path to the {file_type} file to audit",
        )
    parser.add_argument(
        "--output-dir", "-o",
        type=Path,
        default=None,
        help="Output directory for reports (default: ./proxguard_audit_<timestamp>)",
    )
    parser.add_argument(
        "--formats",
        nargs="*",
        choices=["json", "csv", "markdown"],
        default=None,
        help="Report formats to generate (default: json csv markdown; none to skip)",
    )
    parser.add_argument(
        "--fail-under",
        type=int,
        default=None,
        help="Exit with status 2 when the overall score is below this value",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> AuditConfig:
    """Build the audit configuration from a config file plus CLI overrides."""
    if args.config:
        config = AuditConfig.from_file(args.config)
    else:
        config = AuditConfig()

    if args.input_dir:
        config.inputs.input_dir = str(args.input_dir)
    for flag, file_type in _FILE_FLAGS.items():
        path = getattr(args, flag, None)
        if path:
            config.inputs.paths[file_type] = str(path)

    if args.output_dir:
        config.output.base_dir = str(args.output_dir)
    if args.formats is not None:
        config.output.formats = list(args.formats)
    if args.fail_under is not None:
        config.fail_under = args.fail_under
    config.verbose = config.verbose or args.verbose
    return config


def generate_reports(report: AuditReport, output_dir: Path, scan_id: str, formats: list[str]) -> list[Path]:
    """Generate all requested report formats."""
    created = []

    if "json" in formats:
        path = export_json(report, output_dir, scan_id)
        created.append(path)
        print(f"  📄 JSON:       {path}")

    if "csv" in formats:
        paths = export_csv(report, output_dir, scan_id)
        created.extend(paths)
        for p in paths:
            print(f"  📊 CSV:        {p}")

    if "markdown" in formats:
        path = export_markdown(report, output_dir, scan_id)
        created.append(path)
        print(f"  📝 Markdown:   {path}")

    return created


def print_summary(report: AuditReport):
    print(f"  Overall Score:    {report.overall_score}/100")
    print(f"  Grade:            {report.overall_grade}")
    print(f"  Failed Rules:     {len(report.failed_findings)}/{len(report.findings)}")
    print()
    for cat in report.categories:
        name = CATEGORY_DISPLAY.get(cat.category, cat.category)
        print(f"    {name:30s} {cat.score:3d}/100  ({len(cat.failed)} failed)")

    failures = prioritized_failures(report)
    if failures:
        print()
        for f in failures:
            icon = SEVERITY_ICONS.get(f.severity, "⚪")
            print(f"  {icon} [{f.severity.upper():8s}] {f.rule.id}: {f.result.evidence}")
            print(f"      ↳ {f.rule.remediation}")


def run(config: AuditConfig) -> int:
    scan_id = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S") + "_" + uuid.uuid4().hex[:8]

    print("=" * 70)
    print(f" ProxGuard Security Auditor v{__version__}")
    print(" Mode: READ-ONLY — the audited system is never modified")
    print("=" * 70)
    print(f"\n📋 Scan ID: {scan_id}")

    # --- Parsing Phase ---
    print("\n" + "=" * 70)
    print(" PHASE 1: CONFIGURATION PARSING")
    print("=" * 70 + "\n")
    inputs = config.inputs.read_all()
    if not any(text.strip() for text in inputs.values()):
        print("❌ No configuration input found. Use --input-dir or one of the per-file flags:")
        for flag, file_type in _FILE_FLAGS.items():
            print(f"   • --{flag.replace('_', '-'):14s} ({file_type})")
        return EXIT_ERROR

    parsed = parse_all_configs(inputs)
    for file_type in CONFIG_FILE_TYPES:
        marker = "✅" if file_type in parsed.input_files() else "⏭ "
        print(f"  {marker} {file_type}")

    # --- Evaluation & Scoring Phase ---
    print("\n" + "=" * 70)
    print(" PHASE 2: RULE EVALUATION & SCORING")
    print("=" * 70 + "\n")
    report = generate_audit_report(parsed)
    print_summary(report)

    # --- Reporting Phase ---
    if config.output.formats:
        print("\n" + "=" * 70)
        print(" PHASE 3: REPORT GENERATION")
        print("=" * 70 + "\n")
        generate_reports(report, config.output.audit_dir, scan_id, config.output.formats)

    print("\n" + "=" * 70)
    print(" AUDIT COMPLETE")
    print("=" * 70)
    print(f"\n  Score: {report.overall_score}/100 (grade {report.overall_grade})\n")

    if config.fail_under is not None and report.overall_score < config.fail_under:
        print(f"❌ Score {report.overall_score} is below the required {config.fail_under}.")
        return EXIT_BELOW_THRESHOLD
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for `python -m proxguard` and the `proxguard` script."""
    args = parse_args(argv)
    try:
        config = build_config(args)
    except (OSError, ValueError) as e:
        print(f"❌ Could not load configuration: {e}")
        return EXIT_ERROR

    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

    try:
        return run(config)
    except ProxGuardError as e:
        logger.error(str(e))
        print(f"❌ {e}")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
