"""
Detector: Zero-Amount Flash Loan
Finds fee-charging flashLoan functions that never reject amount == 0.
Solodit Tag: Flash Loan
"""

from slither.detectors.abstract_detector import AbstractDetector, DetectorClassification

from ..callback_analyzer import FEE_RE, LENDER_FUNCTIONS, has_amount_guard


class ZeroAmountFlashLoan(AbstractDetector):
    ARGUMENT = "flashguard-zero-amount-loan"
    HELP = "Fee-charging flash lender accepts zero-amount loans"
    IMPACT = DetectorClassification.LOW
    CONFIDENCE = DetectorClassification.MEDIUM

    WIKI = "https://eips.ethereum.org/EIPS/eip-3156"
    WIKI_TITLE = "Zero-Amount Flash Loan"
    WIKI_DESCRIPTION = (
        "Detects flashLoan functions that charge a fee without rejecting zero-amount "
        "loans. Such loans cost the receiver a fee while giving it nothing."
    )
    WIKI_RECOMMENDATION = (
        "Add `require(amount > 0)` or waive the fee for zero-amount loans."
    )
    WIKI_EXPLOIT_SCENARIO = (
        "Combined with a receiver that does not check the initiator, an attacker "
        "loops zero-amount loans against the receiver and moves its funds into the "
        "lender as fees."
    )

    def _detect(self):
        results = []
        for contract in self.compilation_unit.contracts_derived:
            for function in contract.functions_declared:
                if not function.is_implemented:
                    continue
                if function.name not in LENDER_FUNCTIONS:
                    continue
                amounts = [
                    p.name for p in function.parameters
                    if str(p.type).startswith("uint") and "amount" in p.name.lower()
                ]
                if not amounts:
                    continue
                source = function.source_mapping.content if function.source_mapping else ""
                if not FEE_RE.search(source) or has_amount_guard(source, amounts[0]):
                    continue
                info = [
                    function, " charges a flash-loan fee but accepts amount == 0.\n",
                    "\tReject zero-amount loans or waive their fee.\n",
                ]
                results.append(self.generate_result(info))
        return results
