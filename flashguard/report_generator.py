"""
flashguard - Markdown Report Generator
Produces a receiver-safety report with summary, risk grade, per-finding
detail, remediation and real-world references.
"""

import json
from datetime import datetime
from pathlib import Path

from .aggregator import SEVERITIES, get_statistics
from .models import AuditReport, Finding


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _code_snippet(file_path: str, start: int, end: int, context: int = 2, max_lines: int = 25) -> str:
    """Extract a code snippet with line numbers."""
    try:
        lines = Path(file_path).read_text(encoding="utf-8", errors="ignore").splitlines()
    except (IOError, OSError):
        return ""
    s = max(0, start - context - 1)
    e = min(len(lines), (end or start) + context, s + max_lines)
    return "\n".join(f"{i + 1:4d} | {lines[i]}" for i in range(s, e))


def _severity_label(severity: str) -> str:
    return {
        "critical": "C", "high": "H", "medium": "M",
        "low": "L", "informational": "I",
    }.get(severity.lower(), "I")


def risk_grade(report: AuditReport) -> tuple[str, str]:
    """Overall grade (A-F) and description."""
    score = len(report.critical) * 25 + len(report.high) * 10 + len(report.medium) * 3 + len(report.low)
    if score == 0:
        return "A", "No flash-loan receiver issues detected"
    if score <= 5:
        return "B", "Minor issues only"
    if score <= 15:
        return "C", "Some callbacks need attention before deployment"
    if score <= 30:
        return "D", "Receivers can be driven by third parties, remediation required"
    return "F", "Receivers can be drained, do not deploy"


# ---------------------------------------------------------------------------
# Finding formatters
# ---------------------------------------------------------------------------


def _format_finding_detail(finding: Finding, label: str) -> str:
    parts: list[str] = []

    parts.append(f"### [{label}] {finding.title}\n")
    parts.append(f"**Location:** `{finding.location}`  ")
    if finding.function:
        parts.append(f"**Function:** `{finding.function}`  ")
    parts.append(f"**Detector:** `{finding.id}` ({finding.tool})\n")

    if finding.description:
        parts.append(f"**Description:** {finding.description}\n")

    if finding.line > 0:
        snippet = _code_snippet(finding.file, finding.line, finding.end_line or finding.line)
        if snippet:
            parts.append("**Proof of Code:**\n")
            parts.append(f"```solidity\n{snippet}\n```\n")

    if finding.recommendation:
        parts.append(f"**Recommendation:** {finding.recommendation}\n")

    if finding.references:
        parts.append("**Similar real-world findings:**\n")
        for ref in finding.references:
            line = f"- {ref.get('title', 'Untitled')}"
            if ref.get("protocol"):
                line += f" ({ref['protocol']})"
            if ref.get("impact"):
                line += f" - {ref['impact']}"
            parts.append(line)
        parts.append("")

    return "\n".join(parts)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def generate_report(report: AuditReport, project: str = "") -> str:
    """Render the full Markdown report."""
    grade, grade_desc = risk_grade(report)
    stats = get_statistics(report.findings)

    parts = [
        f"# Flash-Loan Receiver Audit{f': {project}' if project else ''}\n",
        f"_Generated {datetime.now().strftime('%Y-%m-%d %H:%M')} by flashguard_\n",
        "## Summary\n",
        f"**Risk grade:** {grade} - {grade_desc}\n",
        f"- Files scanned: {report.files_scanned}",
        f"- Callbacks checked: {report.callbacks_checked}",
        f"- Findings: {report.total} in {stats['files_affected']} file(s)\n",
        "| Severity | Count |",
        "|----------|-------|",
    ]
    for sev in SEVERITIES:
        parts.append(f"| {sev.capitalize()} | {stats['by_severity'][sev]} |")
    parts.append("")

    if not report.findings:
        parts.append("No issues found. Every receiver callback requires `initiator == address(this)`.\n")
        return "\n".join(parts)

    parts.append("## Findings\n")
    counters: dict[str, int] = {}
    for finding in report.findings:
        prefix = _severity_label(finding.severity)
        counters[prefix] = counters.get(prefix, 0) + 1
        parts.append(_format_finding_detail(finding, f"{prefix}-{counters[prefix]:02d}"))

    return "\n".join(parts)


def generate_json(report: AuditReport) -> str:
    payload = {
        "files_scanned": report.files_scanned,
        "callbacks_checked": report.callbacks_checked,
        "statistics": get_statistics(report.findings),
        "findings": [f.to_dict() for f in report.findings],
    }
    return json.dumps(payload, indent=2)


def save_report(content: str, output_path: str) -> str:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return str(path)
