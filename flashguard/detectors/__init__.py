"""
flashguard - Slither Detector Plugins
AST-level checks for the Naive Receiver flash-loan pattern.

Plugin registration (pyproject.toml):
    [project.entry-points."slither_analyzer.plugin"]
    flashguard = "flashguard.detectors:make_plugin"
"""

from .naive_receiver import NaiveReceiverInitiator
from .zero_amount_loan import ZeroAmountFlashLoan


def make_plugin():
    """Slither plugin entry point - returns (detectors, printers)."""
    return [NaiveReceiverInitiator, ZeroAmountFlashLoan], []
