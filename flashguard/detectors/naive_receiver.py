"""
Detector: Naive Flash-Loan Receiver
Finds flash-loan callbacks that do not require initiator == address(this).
Solodit Tag: Flash Loan
"""

from slither.detectors.abstract_detector import AbstractDetector, DetectorClassification

from ..callback_analyzer import CALLBACKS, SENDER_CHECK_RE, _initiator_comparisons


def has_self_initiator_check(source: str, initiator: str) -> bool:
    """True when `source` compares `initiator` with address(this)."""
    if not initiator:
        return False
    return any(is_self for _, is_self in _initiator_comparisons(source, initiator))


class NaiveReceiverInitiator(AbstractDetector):
    ARGUMENT = "flashguard-naive-receiver"
    HELP = "Flash-loan callback does not require initiator == address(this)"
    IMPACT = DetectorClassification.HIGH
    CONFIDENCE = DetectorClassification.MEDIUM

    WIKI = "https://eips.ethereum.org/EIPS/eip-3156"
    WIKI_TITLE = "Naive Flash-Loan Receiver"
    WIKI_DESCRIPTION = (
        "Detects flash-loan callbacks (onFlashLoan, executeOperation, uniswapV2Call, "
        "pancakeCall) that accept loans initiated by anyone. Checking msg.sender alone "
        "is not enough: any account can ask the lender to lend to the receiver."
    )
    WIKI_RECOMMENDATION = (
        "Require `initiator == address(this)` as the first statement of the callback, "
        "in addition to validating msg.sender against the trusted lender."
    )
    WIKI_EXPLOIT_SCENARIO = (
        "The lender charges a fixed fee per loan. An attacker repeatedly requests "
        "zero-amount loans naming the victim receiver, which repays the fee each "
        "time until its balance is drained."
    )

    def _detect(self):
        results = []
        for contract in self.compilation_unit.contracts_derived:
            for function in contract.functions_declared:
                if not function.is_implemented:
                    continue
                if function.name not in CALLBACKS:
                    continue
                _, index = CALLBACKS[function.name]
                if index is None:
                    continue

                source = function.source_mapping.content if function.source_mapping else ""
                params = function.parameters
                initiator = params[index].name if index < len(params) else ""
                if has_self_initiator_check(source, initiator):
                    continue

                if SENDER_CHECK_RE.search(source):
                    reason = " checks msg.sender but not the loan initiator.\n"
                else:
                    reason = " validates neither msg.sender nor the loan initiator.\n"
                info = [
                    function, reason,
                    "\tRequire initiator == address(this) before any approval or repayment.\n",
                ]
                results.append(self.generate_result(info))
        return results
