"""
Tests for the Slither detector plugins
"""

import unittest
import sys
from pathlib import Path
from types import SimpleNamespace

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from flashguard.detectors import NaiveReceiverInitiator, ZeroAmountFlashLoan, make_plugin
from flashguard.detectors.naive_receiver import has_self_initiator_check


class TestPlugin(unittest.TestCase):

    def test_make_plugin(self):
        detectors, printers = make_plugin()
        self.assertEqual(detectors, [NaiveReceiverInitiator, ZeroAmountFlashLoan])
        self.assertEqual(printers, [])

    def test_arguments_unique(self):
        self.assertNotEqual(NaiveReceiverInitiator.ARGUMENT, ZeroAmountFlashLoan.ARGUMENT)


class TestInitiatorCheck(unittest.TestCase):

    def test_self_comparison(self):
        self.assertTrue(has_self_initiator_check(
            "require(initiator == address(this), 'bad');", "initiator"))
        self.assertTrue(has_self_initiator_check(
            "if (address(this) != _initiator) revert();", "_initiator"))

    def test_other_comparison(self):
        self.assertFalse(has_self_initiator_check("require(initiator == owner);", "initiator"))
        self.assertFalse(has_self_initiator_check("require(msg.sender == pool);", "initiator"))

    def test_unnamed_initiator(self):
        self.assertFalse(has_self_initiator_check("require(msg.sender == pool);", ""))


def param(type_name, name):
    return SimpleNamespace(type=type_name, name=name)


def function(name, params, source, implemented=True):
    return SimpleNamespace(
        name=name,
        is_implemented=implemented,
        parameters=params,
        source_mapping=SimpleNamespace(content=source),
    )


def run_detector(detector_cls, *functions):
    """Run a detector's _detect over stub contracts, collecting result infos."""
    stub = SimpleNamespace(
        compilation_unit=SimpleNamespace(
            contracts_derived=[SimpleNamespace(functions_declared=list(functions))]
        ),
        generate_result=lambda info: info,
    )
    return detector_cls._detect(stub)


ERC3156_PARAMS = [
    param("address", "initiator"),
    param("address", "token"),
    param("uint256", "amount"),
    param("uint256", "fee"),
    param("bytes", "data"),
]


class TestNaiveReceiverDetect(unittest.TestCase):

    def test_sender_only_callback_reported(self):
        fn = function("onFlashLoan", ERC3156_PARAMS, "require(msg.sender == pool); token.approve(pool, amount + fee);")
        results = run_detector(NaiveReceiverInitiator, fn)
        self.assertEqual(len(results), 1)
        self.assertIs(results[0][0], fn)
        self.assertIn("checks msg.sender but not the loan initiator", results[0][1])

    def test_unguarded_callback_reported(self):
        fn = function("onFlashLoan", ERC3156_PARAMS, "token.approve(msg.sender, amount + fee);")
        results = run_detector(NaiveReceiverInitiator, fn)
        self.assertIn("validates neither", results[0][1])

    def test_self_checked_callback_clean(self):
        fn = function("onFlashLoan", ERC3156_PARAMS, "require(initiator == address(this)); token.approve(pool, amount);")
        self.assertEqual(run_detector(NaiveReceiverInitiator, fn), [])

    def test_initiator_taken_from_aave_position(self):
        params = [
            param("address", "asset"),
            param("uint256", "amount"),
            param("uint256", "premium"),
            param("address", "origin"),
            param("bytes", "params"),
        ]
        checked = function("executeOperation", params, "require(origin == address(this));")
        wrong = function("executeOperation", params, "require(asset == address(this));")
        self.assertEqual(run_detector(NaiveReceiverInitiator, checked), [])
        self.assertEqual(len(run_detector(NaiveReceiverInitiator, wrong)), 1)

    def test_msg_sender_not_taken_for_sender_param(self):
        params = [param("address", "sender"), param("uint256", "amount0"), param("uint256", "amount1"), param("bytes", "data")]
        fn = function("uniswapV2Call", params, "require(msg.sender == pair);")
        self.assertEqual(len(run_detector(NaiveReceiverInitiator, fn)), 1)

    def test_skips_unrelated_unimplemented_and_initiatorless(self):
        functions = [
            function("deposit", ERC3156_PARAMS, ""),
            function("onFlashLoan", ERC3156_PARAMS, "", implemented=False),
            function("uniswapV3FlashCallback", [param("uint256", "fee0")], ""),
        ]
        self.assertEqual(run_detector(NaiveReceiverInitiator, *functions), [])


class TestZeroAmountDetect(unittest.TestCase):

    PARAMS = [
        param("address", "receiver"),
        param("address", "token"),
        param("uint256", "loanAmount"),
        param("bytes", "data"),
    ]

    def test_fee_without_guard_reported(self):
        fn = function("flashLoan", self.PARAMS, "uint256 fee = FIXED_FEE; receiver.onFlashLoan(msg.sender, token, loanAmount, fee, data);")
        results = run_detector(ZeroAmountFlashLoan, fn)
        self.assertEqual(len(results), 1)
        self.assertIn("accepts amount == 0", results[0][1])

    def test_guarded_amount_parameter_clean(self):
        fn = function("flashLoan", self.PARAMS, "require(loanAmount > 0); uint256 fee = FIXED_FEE;")
        self.assertEqual(run_detector(ZeroAmountFlashLoan, fn), [])

    def test_no_fee_clean(self):
        fn = function("flashLoan", self.PARAMS, "receiver.onFlashLoan(msg.sender, token, loanAmount, 0, data);")
        self.assertEqual(run_detector(ZeroAmountFlashLoan, fn), [])

    def test_requires_uint_amount_parameter(self):
        params = [param("address", "receiver"), param("address", "amountToken")]
        fn = function("flashLoan", params, "uint256 fee = FIXED_FEE;")
        self.assertEqual(run_detector(ZeroAmountFlashLoan, fn), [])


if __name__ == "__main__":
    unittest.main()
