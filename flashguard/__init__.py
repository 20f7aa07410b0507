"""
flashguard - Flash-Loan Receiver Guard
Authorization gate for ERC-3156 receiver callbacks, plus a scanner that finds
"Naive Receiver" callbacks acting on loans they did not initiate.
"""

__version__ = "1.0.0"

from .models import AuditReport, Finding, GateDecision, LoanCallbackContext, Outcome
from .errors import ConfigError, FlashGuardError, ReceiverConfigError, UnauthorizedInitiator
from .gate import UNAUTHORIZED_INITIATOR, enforce, evaluate_callback
from .receiver import CALLBACK_SUCCESS, ZERO_ADDRESS, GuardedReceiver
from .aggregator import aggregate_findings
from .callback_analyzer import analyze_callbacks, scan_contracts, scan_source
from .config import load_config
from .report_generator import generate_report
from .sarif_generator import generate_sarif, save_sarif
from .solodit_client import attach_references, search_findings

__all__ = [
    "AuditReport",
    "CALLBACK_SUCCESS",
    "ConfigError",
    "Finding",
    "FlashGuardError",
    "GateDecision",
    "GuardedReceiver",
    "LoanCallbackContext",
    "Outcome",
    "ReceiverConfigError",
    "UNAUTHORIZED_INITIATOR",
    "UnauthorizedInitiator",
    "ZERO_ADDRESS",
    "aggregate_findings",
    "analyze_callbacks",
    "attach_references",
    "enforce",
    "evaluate_callback",
    "generate_report",
    "generate_sarif",
    "load_config",
    "save_sarif",
    "scan_contracts",
    "scan_source",
]
