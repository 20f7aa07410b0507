"""
flashguard - SARIF Output Generator
Converts findings to SARIF v2.1.0 for GitHub code scanning.
"""

import json
from datetime import datetime, timezone
from pathlib import Path

from . import __version__
from .models import AuditReport, Finding


SARIF_SCHEMA = "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/main/sarif-2.1/schema/sarif-schema-2.1.0.json"
SARIF_VERSION = "2.1.0"

SEVERITY_TO_SARIF_LEVEL = {
    "critical": "error",
    "high": "error",
    "medium": "warning",
    "low": "note",
    "informational": "note",
}

SEVERITY_TO_SECURITY_SEVERITY = {
    "critical": "9.5",
    "high": "8.0",
    "medium": "5.5",
    "low": "3.0",
    "informational": "1.0",
}


def _build_rule(finding: Finding) -> dict:
    """Build a SARIF reporting descriptor (rule) from a finding."""
    rule: dict = {
        "id": finding.id,
        "name": finding.title.replace(" ", ""),
        "shortDescription": {"text": finding.title},
        "properties": {
            "tags": ["security", "smart-contract", "flash-loan"],
            "security-severity": SEVERITY_TO_SECURITY_SEVERITY.get(
                finding.severity.lower(), "3.0"
            ),
        },
    }
    if finding.description:
        rule["fullDescription"] = {"text": finding.description}
    if finding.recommendation:
        rule["help"] = {
            "text": finding.recommendation,
            "markdown": f"**Fix:** {finding.recommendation}",
        }
    return rule


def _build_result(finding: Finding, rule_index: int) -> dict:
    region: dict = {"startLine": max(finding.line, 1)}
    if finding.end_line and finding.end_line > finding.line:
        region["endLine"] = finding.end_line

    result: dict = {
        "ruleId": finding.id,
        "ruleIndex": rule_index,
        "level": SEVERITY_TO_SARIF_LEVEL.get(finding.severity.lower(), "note"),
        "message": {"text": f"{finding.title}: {finding.description}" if finding.description else finding.title},
        "locations": [
            {
                "physicalLocation": {
                    "artifactLocation": {
                        "uri": finding.file,
                        "uriBaseId": "%SRCROOT%",
                    },
                    "region": region,
                }
            }
        ],
        "properties": {
            "severity": finding.severity,
            "tool": finding.tool,
        },
        "fingerprints": {
            "flashguard/v1": finding.dedup_key(),
        },
    }
    if finding.function:
        result["properties"]["function"] = finding.function
    if finding.references:
        result["properties"]["references"] = [r.get("title", "") for r in finding.references]
    return result


def generate_sarif(report: AuditReport) -> str:
    """Generate SARIF v2.1.0 JSON string from an audit report."""
    rule_map: dict[str, int] = {}
    rules: list[dict] = []
    for finding in report.findings:
        if finding.id not in rule_map:
            rule_map[finding.id] = len(rules)
            rules.append(_build_rule(finding))

    results = [_build_result(f, rule_map[f.id]) for f in report.findings]

    sarif = {
        "$schema": SARIF_SCHEMA,
        "version": SARIF_VERSION,
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": "flashguard",
                        "semanticVersion": __version__,
                        "informationUri": "https://eips.ethereum.org/EIPS/eip-3156",
                        "rules": rules,
                    }
                },
                "results": results,
                "invocations": [
                    {
                        "executionSuccessful": True,
                        "endTimeUtc": datetime.now(timezone.utc).isoformat(),
                    }
                ],
                "properties": {
                    "filesScanned": report.files_scanned,
                    "callbacksChecked": report.callbacks_checked,
                    "totalFindings": report.total,
                },
            }
        ],
    }

    return json.dumps(sarif, indent=2)


def save_sarif(report: AuditReport, output_path: str = "results/flashguard.sarif") -> str:
    """Generate and save SARIF report to file. Returns the file path."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(generate_sarif(report), encoding="utf-8")
    return str(path)
