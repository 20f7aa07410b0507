"""
flashguard - Data Models
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Union

SEVERITY_BUCKETS = ("critical", "high", "medium", "low", "informational")


@dataclass(frozen=True)
class LoanCallbackContext:
    """A single flash-loan notification delivered to a receiver"""
    initiator: str                      # party that requested the loan
    receiver: str                       # identity of the receiver handling the callback
    token: str
    amount: Union[int, float]
    fee: Union[int, float] = 0
    data: Any = b""                     # opaque, never interpreted by the gate

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError(f"amount must be non-negative, got {self.amount}")
        if self.fee < 0:
            raise ValueError(f"fee must be non-negative, got {self.fee}")


class Outcome(str, Enum):
    PROCEED = "proceed"
    REJECT = "reject"


@dataclass(frozen=True)
class GateDecision:
    """Result of the authorization gate: Proceed or Reject(reason)"""
    outcome: Outcome
    reason: str = ""

    @classmethod
    def proceed(cls) -> "GateDecision":
        return cls(Outcome.PROCEED)

    @classmethod
    def reject(cls, reason: str) -> "GateDecision":
        return cls(Outcome.REJECT, reason)

    @property
    def allowed(self) -> bool:
        return self.outcome is Outcome.PROCEED

    def __bool__(self) -> bool:
        return self.allowed

    def __str__(self) -> str:
        if self.allowed:
            return "PROCEED"
        return f"REJECT: {self.reason}"


@dataclass
class Finding:
    """A receiver or lender weakness located in a Solidity source file"""
    id: str
    title: str
    severity: str                       # critical, high, medium, low, informational
    file: str
    line: int
    tool: str
    end_line: int = 0
    function: str = ""                  # callback or lender function the finding sits in
    description: str = ""
    recommendation: str = ""

    # Real-world references (Solodit)
    references: list[dict] = field(default_factory=list)

    @property
    def contract_name(self) -> str:
        """Extract contract name from file path"""
        return Path(self.file).stem if self.file else "Unknown"

    @property
    def location(self) -> str:
        if self.line:
            return f"{self.file}:{self.line}"
        return self.file

    @property
    def severity_rank(self) -> int:
        """Numeric rank for sorting (higher = more severe)"""
        ranks = {
            "critical": 5,
            "high": 4,
            "medium": 3,
            "low": 2,
            "informational": 1
        }
        return ranks.get(self.severity.lower(), 0)

    def dedup_key(self) -> str:
        return f"{self.file}:{self.line}:{self.id}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "severity": self.severity,
            "file": self.file,
            "line": self.line,
            "end_line": self.end_line,
            "function": self.function,
            "tool": self.tool,
            "description": self.description,
            "recommendation": self.recommendation,
            "references": self.references,
        }


@dataclass
class AuditReport:
    """Findings of one scan, bucketed by severity"""
    findings: list[Finding]
    files_scanned: int = 0
    callbacks_checked: int = 0

    critical: list[Finding] = field(default_factory=list)
    high: list[Finding] = field(default_factory=list)
    medium: list[Finding] = field(default_factory=list)
    low: list[Finding] = field(default_factory=list)
    informational: list[Finding] = field(default_factory=list)

    def __post_init__(self):
        for finding in self.findings:
            sev = finding.severity.lower()
            if sev in SEVERITY_BUCKETS:
                getattr(self, sev).append(finding)
            else:
                self.informational.append(finding)

    @property
    def total(self) -> int:
        return len(self.findings)

    def count(self, severity: str) -> int:
        sev = severity.lower()
        return len(getattr(self, sev)) if sev in SEVERITY_BUCKETS else 0
