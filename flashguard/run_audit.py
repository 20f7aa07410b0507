"""
flashguard - Command Line Entry Point

    flashguard scan [--config FILE] [--path DIR] [--output-dir DIR] [--fail-on SEV ...]
    flashguard gate --initiator ADDR --receiver ADDR [--amount N] [--fee N]
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .aggregator import aggregate_findings
from .callback_analyzer import scan_contracts
from .config import apply_overrides, load_config
from .errors import ConfigError
from .gate import evaluate_callback
from .models import AuditReport, LoanCallbackContext
from .report_generator import generate_json, generate_report, save_report
from .sarif_generator import save_sarif
from .solodit_client import attach_references

log = logging.getLogger("flashguard")


def run_scan(config: dict) -> AuditReport:
    """Analyze, aggregate, enrich and write reports. Returns the report."""
    result = scan_contracts(config)
    findings = aggregate_findings(result.findings)
    attach_references(findings, config)

    report = AuditReport(
        findings=findings,
        files_scanned=result.files_scanned,
        callbacks_checked=result.callbacks_checked,
    )

    output = config.get("output", {})
    out_dir = Path(output.get("dir", "results"))
    formats = output.get("formats", [])

    if "markdown" in formats:
        path = save_report(generate_report(report, config.get("project", "")), str(out_dir / "flashguard-report.md"))
        log.info(f"Markdown report: {path}")
    if "sarif" in formats:
        path = save_sarif(report, str(out_dir / "flashguard.sarif"))
        log.info(f"SARIF report: {path}")
    if "json" in formats:
        path = save_report(generate_json(report), str(out_dir / "flashguard.json"))
        log.info(f"JSON report: {path}")

    return report


def should_fail(report: AuditReport, fail_on: list[str]) -> bool:
    return any(report.count(sev) for sev in fail_on)


def _cmd_scan(args) -> int:
    try:
        config = load_config(args.config)
    except ConfigError as e:
        log.error(str(e))
        return 2
    config = apply_overrides(config, path=args.path, output_dir=args.output_dir, fail_on=args.fail_on)

    report = run_scan(config)
    log.info(
        f"Scan complete: {report.total} finding(s) "
        f"({len(report.critical)} critical, {len(report.high)} high)"
    )
    return 1 if should_fail(report, config.get("fail_on", [])) else 0


def _cmd_gate(args) -> int:
    try:
        context = LoanCallbackContext(
            initiator=args.initiator,
            receiver=args.receiver,
            token=args.token,
            amount=args.amount,
            fee=args.fee,
        )
    except ValueError as e:
        log.error(str(e))
        return 2

    decision = evaluate_callback(context)
    print(decision)
    return 0 if decision else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flashguard",
        description="Flash-loan receiver authorization gate and Naive Receiver scanner",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="scan Solidity sources for unguarded flash-loan callbacks")
    scan.add_argument("--config", help="JSON config file (default: ./flashguard.json if present)")
    scan.add_argument("--path", help="contracts directory or file")
    scan.add_argument("--output-dir", help="directory for reports")
    scan.add_argument("--fail-on", nargs="*", metavar="SEVERITY",
                      help="severities that make the scan exit non-zero")
    scan.set_defaults(func=_cmd_scan)

    gate = sub.add_parser("gate", help="evaluate the authorization gate for one callback")
    gate.add_argument("--initiator", required=True)
    gate.add_argument("--receiver", required=True)
    gate.add_argument("--token", default="")
    gate.add_argument("--amount", type=int, default=0)
    gate.add_argument("--fee", type=int, default=0)
    gate.set_defaults(func=_cmd_gate)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
