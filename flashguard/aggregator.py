"""
flashguard - Finding Aggregator
Deduplicates and orders findings from the source analyzer and Slither plugins
"""

import logging
from typing import Any

from .models import SEVERITY_BUCKETS, Finding

log = logging.getLogger(__name__)

SEVERITIES = SEVERITY_BUCKETS


def aggregate_findings(all_findings: list[Finding]) -> list[Finding]:
    """
    Aggregate findings:
    1. Deduplicate by file + line + id
    2. Keep higher severity when duplicates found
    3. Sort by severity (critical first), then file and line
    """
    if not all_findings:
        return []

    seen: dict[str, Finding] = {}

    for finding in all_findings:
        key = finding.dedup_key()

        existing = seen.get(key)
        if existing is None:
            seen[key] = finding
        elif finding.severity_rank > existing.severity_rank:
            seen[key] = finding
        elif finding.severity_rank == existing.severity_rank:
            if finding.tool not in existing.tool:
                existing.tool = f"{existing.tool}, {finding.tool}"

    deduped = list(seen.values())
    deduped.sort(key=lambda x: (-x.severity_rank, x.file, x.line))

    log.info(f"Aggregated: {len(all_findings)} raw -> {len(deduped)} deduplicated")

    return deduped


def filter_by_severity(findings: list[Finding], exclude: list[str]) -> list[Finding]:
    """Filter out findings with specified severities"""
    if not exclude:
        return findings

    exclude_lower = [s.lower() for s in exclude]
    return [f for f in findings if f.severity.lower() not in exclude_lower]


def group_by_severity(findings: list[Finding]) -> dict[str, list[Finding]]:
    grouped: dict[str, list[Finding]] = {sev: [] for sev in SEVERITIES}

    for finding in findings:
        sev = finding.severity.lower()
        grouped.get(sev, grouped["informational"]).append(finding)

    return grouped


def get_statistics(findings: list[Finding]) -> dict[str, Any]:
    """Calculate statistics about findings"""
    grouped = group_by_severity(findings)

    return {
        "total": len(findings),
        "by_severity": {k: len(v) for k, v in grouped.items()},
        "by_detector": _count_by(findings, "id"),
        "files_affected": len({f.file for f in findings}),
        "critical_count": len(grouped["critical"]),
        "high_count": len(grouped["high"]),
    }


def _count_by(findings: list[Finding], attr: str) -> dict[str, int]:
    counts: dict[str, int] = {}
    for finding in findings:
        key = getattr(finding, attr)
        counts[key] = counts.get(key, 0) + 1
    return counts
