"""
flashguard - Solodit API Client
Looks up real-world audit findings similar to a flash-loan finding so the
report can point at prior incidents of the same pattern.
"""

import json
import logging
import os

import requests

from .models import Finding

log = logging.getLogger(__name__)

SOLODIT_API_BASE = "https://solodit.cyfrin.io/api/v1"
SOLODIT_SEARCH_URL = f"{SOLODIT_API_BASE}/findings"

# detector id -> search keywords
DETECTOR_QUERIES = {
    "naive-receiver-unguarded-callback": "flash loan callback unprotected onFlashLoan",
    "naive-receiver-missing-initiator-check": "onFlashLoan initiator not validated",
    "naive-receiver-ignored-initiator": "onFlashLoan initiator not validated",
    "naive-receiver-initiator-not-self": "flash loan initiator validation",
    "naive-receiver-late-initiator-check": "flash loan callback approve before check",
    "zero-amount-flash-loan": "zero amount flash loan fee",
}

IMPACT_MAP = {"critical": "High", "high": "High", "medium": "Medium", "low": "Low"}

# Avoid repeated API calls for the same query within a single scan
_cache: dict[str, list[dict]] = {}


def _get_api_key() -> str:
    return os.environ.get("SOLODIT_API_KEY", "")


def search_findings(
    query: str,
    impact: str = "",
    max_results: int = 5,
    timeout: int = 15,
) -> list[dict]:
    """Search Solodit for findings matching a query.

    Returns a list of dicts with keys: title, impact, description, mitigation,
    protocol, firm. Network and parse failures are logged and give [].
    """
    cache_key = f"{query}:{impact}:{max_results}"
    if cache_key in _cache:
        return _cache[cache_key]

    api_key = _get_api_key()
    if not api_key:
        log.debug("Solodit: no API key set (SOLODIT_API_KEY)")
        return []

    params: dict = {"q": query, "page_size": min(max_results, 10)}
    if impact:
        params["impact"] = impact

    try:
        resp = requests.get(
            SOLODIT_SEARCH_URL,
            params=params,
            headers={"Authorization": f"Bearer {api_key}", "Accept": "application/json"},
            timeout=timeout,
        )
        if resp.status_code == 200:
            results = _parse_results(resp.json(), max_results)
            _cache[cache_key] = results
            return results
        if resp.status_code in (401, 403):
            log.warning("Solodit: invalid API key")
            return []
        log.warning(f"Solodit: API returned {resp.status_code}")
    except requests.RequestException as e:
        log.warning(f"Solodit: request failed - {e}")
    except (json.JSONDecodeError, ValueError, AttributeError) as e:
        log.warning(f"Solodit: parse error - {e}")

    _cache[cache_key] = []
    return []


def _name_of(value) -> str:
    if isinstance(value, dict):
        return value.get("name", "")
    return value or ""


def _parse_results(data: dict, max_results: int) -> list[dict]:
    items = data.get("results", data.get("findings", data.get("data", [])))
    if not isinstance(items, list):
        return []
    return [
        {
            "title": item.get("title", ""),
            "impact": item.get("impact", item.get("severity", "")),
            "description": (item.get("description") or item.get("body") or "")[:500],
            "mitigation": item.get("mitigation", item.get("recommendation", "")),
            "protocol": _name_of(item.get("protocol")),
            "firm": _name_of(item.get("firm")),
        }
        for item in items[:max_results]
    ]


def get_similar_findings(finding: Finding, max_results: int = 3) -> list[dict]:
    query = DETECTOR_QUERIES.get(finding.id) or finding.title
    impact = IMPACT_MAP.get(finding.severity.lower(), "")
    return search_findings(query, impact=impact, max_results=max_results)


def attach_references(findings: list[Finding], config: dict) -> list[Finding]:
    """Attach Solodit references to critical/high findings. Mutates in-place."""
    solodit = config.get("solodit", {})
    if not solodit.get("enabled", False):
        return findings

    max_results = solodit.get("max_results", 3)
    targets = [f for f in findings if f.severity.lower() in ("critical", "high")]
    for finding in targets:
        finding.references = get_similar_findings(finding, max_results=max_results)

    enriched = sum(1 for f in targets if f.references)
    log.info(f"Solodit: {enriched}/{len(targets)} finding(s) enriched")
    return findings


def clear_cache() -> None:
    """Clear the search cache (useful between test runs)."""
    _cache.clear()
