"""
Unit tests for the Solodit client (network mocked)
"""

import unittest
import os
import sys
from pathlib import Path
from unittest import mock

import requests

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from flashguard import solodit_client
from flashguard.models import Finding


def response(status, payload=None):
    resp = mock.Mock()
    resp.status_code = status
    resp.json.return_value = payload or {}
    return resp


PAYLOAD = {
    "results": [
        {
            "title": "Anyone can drain receiver with zero-amount flash loans",
            "impact": "HIGH",
            "description": "x" * 800,
            "protocol": {"name": "Lender"},
            "firm": "Firm",
        }
    ]
}


class TestSearchFindings(unittest.TestCase):

    def setUp(self):
        solodit_client.clear_cache()

    def test_no_api_key(self):
        with mock.patch.dict(os.environ, {}, clear=True), \
                mock.patch.object(solodit_client.requests, "get") as get:
            self.assertEqual(solodit_client.search_findings("flash loan"), [])
            get.assert_not_called()

    def test_parses_and_caches(self):
        with mock.patch.dict(os.environ, {"SOLODIT_API_KEY": "k"}), \
                mock.patch.object(solodit_client.requests, "get", return_value=response(200, PAYLOAD)) as get:
            first = solodit_client.search_findings("flash loan", impact="High")
            second = solodit_client.search_findings("flash loan", impact="High")
        self.assertEqual(get.call_count, 1)
        self.assertEqual(first, second)
        self.assertEqual(first[0]["protocol"], "Lender")
        self.assertEqual(first[0]["firm"], "Firm")
        self.assertEqual(len(first[0]["description"]), 500)
        self.assertEqual(get.call_args.kwargs["params"]["impact"], "High")

    def test_request_error_returns_empty(self):
        with mock.patch.dict(os.environ, {"SOLODIT_API_KEY": "k"}), \
                mock.patch.object(solodit_client.requests, "get",
                                  side_effect=requests.ConnectionError("down")):
            self.assertEqual(solodit_client.search_findings("flash loan"), [])

    def test_unauthorized(self):
        with mock.patch.dict(os.environ, {"SOLODIT_API_KEY": "bad"}), \
                mock.patch.object(solodit_client.requests, "get", return_value=response(401)):
            self.assertEqual(solodit_client.search_findings("flash loan"), [])


class TestAttachReferences(unittest.TestCase):

    def setUp(self):
        solodit_client.clear_cache()
        self.findings = [
            Finding(id="naive-receiver-unguarded-callback", title="t", severity="critical",
                    file="a.sol", line=1, tool="flashguard-callback"),
            Finding(id="zero-amount-flash-loan", title="t", severity="low",
                    file="b.sol", line=1, tool="flashguard-callback"),
        ]

    def test_disabled_by_default(self):
        with mock.patch.object(solodit_client, "search_findings") as search:
            solodit_client.attach_references(self.findings, {})
            search.assert_not_called()

    def test_only_critical_and_high_enriched(self):
        refs = [{"title": "ref"}]
        with mock.patch.object(solodit_client, "search_findings", return_value=refs) as search:
            solodit_client.attach_references(self.findings, {"solodit": {"enabled": True, "max_results": 2}})
        search.assert_called_once_with(
            solodit_client.DETECTOR_QUERIES["naive-receiver-unguarded-callback"],
            impact="High",
            max_results=2,
        )
        self.assertEqual(self.findings[0].references, refs)
        self.assertEqual(self.findings[1].references, [])


if __name__ == "__main__":
    unittest.main()
