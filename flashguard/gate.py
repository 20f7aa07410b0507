"""
flashguard - Authorization Gate
Decides whether a flash-loan callback may act on the loan it was handed.

A receiver must only act on loans it requested itself. Because ERC-3156 lets
anyone name any receiver (and a zero-amount loan still carries a fee), the
only trustworthy signal is the initiator reported by the lender. The decision
reads initiator and receiver only, never amount, fee, token or data.
"""

from .errors import UnauthorizedInitiator
from .models import GateDecision, LoanCallbackContext

UNAUTHORIZED_INITIATOR = "unauthorized initiator"


def evaluate_callback(context: LoanCallbackContext) -> GateDecision:
    """Proceed iff the loan was initiated by the receiver itself."""
    if context.initiator == context.receiver:
        return GateDecision.proceed()
    return GateDecision.reject(UNAUTHORIZED_INITIATOR)


def enforce(context: LoanCallbackContext) -> GateDecision:
    """Evaluate the gate and raise UnauthorizedInitiator on rejection.

    Must be called before any approval, repayment or business logic tied to
    the callback; the exception is meant to abort the whole invocation.
    """
    decision = evaluate_callback(context)
    if not decision:
        raise UnauthorizedInitiator(context.initiator, context.receiver)
    return decision
