"""
Unit tests for the flash-loan authorization gate
"""

import unittest
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from flashguard.errors import UnauthorizedInitiator
from flashguard.gate import UNAUTHORIZED_INITIATOR, enforce, evaluate_callback
from flashguard.models import GateDecision, LoanCallbackContext, Outcome

RECEIVER = "0xAAA"
ATTACKER = "0xBBB"
POOL = "0xP001"


def ctx(initiator, receiver=RECEIVER, amount=100, fee=1, token="WETH", data=b""):
    return LoanCallbackContext(
        initiator=initiator, receiver=receiver, token=token, amount=amount, fee=fee, data=data
    )


class TestEvaluateCallback(unittest.TestCase):
    """Decision depends on initiator and receiver only"""

    def test_self_initiated_proceeds(self):
        decision = evaluate_callback(ctx(RECEIVER, amount=100))
        self.assertEqual(decision.outcome, Outcome.PROCEED)
        self.assertTrue(decision)
        self.assertEqual(decision.reason, "")

    def test_third_party_rejected(self):
        decision = evaluate_callback(ctx(ATTACKER, amount=100))
        self.assertEqual(decision.outcome, Outcome.REJECT)
        self.assertFalse(decision)
        self.assertEqual(decision.reason, UNAUTHORIZED_INITIATOR)

    def test_zero_amount_third_party_rejected(self):
        decision = evaluate_callback(ctx(ATTACKER, amount=0))
        self.assertEqual(decision, GateDecision.reject("unauthorized initiator"))

    def test_zero_amount_self_initiated_proceeds(self):
        decision = evaluate_callback(ctx(RECEIVER, amount=0))
        self.assertEqual(decision, GateDecision.proceed())

    def test_pool_as_initiator_rejected(self):
        self.assertFalse(evaluate_callback(ctx(POOL)))

    def test_amount_fee_token_data_do_not_matter(self):
        variants = [
            dict(amount=0, fee=0, token="WETH", data=b""),
            dict(amount=10**24, fee=10**18, token="DAI", data=b"\x01\x02"),
            dict(amount=1, fee=0, token="", data={"route": ["a", "b"]}),
            dict(amount=0, fee=10**18, token="USDC", data=None),
        ]
        for kwargs in variants:
            with self.subTest(**{k: repr(v) for k, v in kwargs.items()}):
                self.assertTrue(evaluate_callback(ctx(RECEIVER, **kwargs)))
                self.assertFalse(evaluate_callback(ctx(ATTACKER, **kwargs)))

    def test_identity_compared_exactly(self):
        # no case folding on the opaque identity
        self.assertFalse(evaluate_callback(ctx("0xaaa")))

    def test_idempotent(self):
        context = ctx(ATTACKER, amount=0)
        self.assertEqual(evaluate_callback(context), evaluate_callback(context))
        context = ctx(RECEIVER)
        self.assertEqual(evaluate_callback(context), evaluate_callback(context))

    def test_decision_str(self):
        self.assertEqual(str(evaluate_callback(ctx(RECEIVER))), "PROCEED")
        self.assertEqual(str(evaluate_callback(ctx(ATTACKER))), "REJECT: unauthorized initiator")


class TestEnforce(unittest.TestCase):
    """enforce() raises instead of returning a rejection"""

    def test_returns_proceed(self):
        self.assertTrue(enforce(ctx(RECEIVER)))

    def test_raises_unauthorized_initiator(self):
        with self.assertRaises(UnauthorizedInitiator) as cm:
            enforce(ctx(ATTACKER, amount=0))
        self.assertEqual(cm.exception.initiator, ATTACKER)
        self.assertEqual(cm.exception.receiver, RECEIVER)
        self.assertIn("unauthorized initiator", str(cm.exception))


class TestLoanCallbackContext(unittest.TestCase):

    def test_negative_amount_rejected(self):
        with self.assertRaises(ValueError):
            ctx(RECEIVER, amount=-1)

    def test_negative_fee_rejected(self):
        with self.assertRaises(ValueError):
            ctx(RECEIVER, fee=-1)

    def test_frozen(self):
        context = ctx(ATTACKER)
        with self.assertRaises(Exception):
            context.initiator = RECEIVER


if __name__ == "__main__":
    unittest.main()
