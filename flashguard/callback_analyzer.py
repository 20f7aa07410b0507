"""
flashguard - Flash-Loan Callback Analysis
Finds receiver callbacks that act on loans they did not initiate (the
"Naive Receiver" pattern) and lenders that accept fee-bearing zero-amount
loans, by analyzing Solidity source code.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .models import Finding

log = logging.getLogger(__name__)

TOOL_NAME = "flashguard-callback"


# ---------------------------------------------------------------------------
# Pattern definitions
# ---------------------------------------------------------------------------

# callback name -> (label, index of the initiator-like parameter or None)
CALLBACKS = {
    "onFlashLoan": ("ERC-3156 onFlashLoan", 0),
    "executeOperation": ("Aave executeOperation", 3),
    "uniswapV2Call": ("Uniswap V2 flash swap callback", 0),
    "pancakeCall": ("PancakeSwap flash swap callback", 0),
    "uniswapV3FlashCallback": ("Uniswap V3 flash callback", None),
    "receiveFlashLoan": ("Balancer receiveFlashLoan", None),
}

LENDER_FUNCTIONS = {"flashLoan", "flashLoanSimple"}

FUNCTION_RE = re.compile(r"\bfunction\s+(\w+)\s*\(")
SELF_RE = re.compile(r"^address\s*\(\s*this\s*\)$")

SENDER_CHECK_RE = re.compile(r"msg\.sender\s*[!=]=|[!=]=\s*msg\.sender")
SENDER_MODIFIER_RE = re.compile(r"\bonly(?:Pool|LendingPool|Lender|Vault|FlashLender|Pair)\b")

EFFECT_RE = re.compile(
    r"\.\s*(?:approve|safeApprove|forceApprove|increaseAllowance|transfer|transferFrom|"
    r"safeTransfer|safeTransferFrom|call|deposit|withdraw|swap\w*)\s*[({]"
)

FEE_RE = re.compile(r"fee|premium", re.IGNORECASE)

STORAGE_KEYWORDS = {"memory", "calldata", "storage", "payable", "indexed"}

REMEDIATION = {
    "naive-receiver-unguarded-callback": (
        "Require that msg.sender is the trusted lender and that the initiator "
        "argument equals address(this) before any approval or repayment."
    ),
    "naive-receiver-missing-initiator-check": (
        "Checking msg.sender only proves the lender is calling. Anyone can ask the "
        "lender to lend to this receiver, so also require initiator == address(this)."
    ),
    "naive-receiver-ignored-initiator": (
        "Name the initiator parameter and require initiator == address(this) at the "
        "top of the callback."
    ),
    "naive-receiver-initiator-not-self": (
        "The initiator reported to a receiver is whoever called the lender. Only "
        "loans the receiver requested itself are safe: compare against address(this)."
    ),
    "naive-receiver-late-initiator-check": (
        "Move the initiator check to the first statement of the callback so no "
        "approval, transfer or repayment happens for unauthorized loans."
    ),
    "zero-amount-flash-loan": (
        "Reject zero-amount loans (require(amount > 0)) or charge no fee on them, "
        "so third parties cannot drain receivers through fee-only loans."
    ),
}


@dataclass
class CallbackSite:
    """A function declaration located in a Solidity source"""
    name: str
    params: list[tuple[str, str]]       # (type, name); name is "" when unnamed
    header: str                         # text between ")" and "{" (visibility, modifiers)
    body: str
    start_line: int
    end_line: int


@dataclass
class ScanResult:
    findings: list[Finding] = field(default_factory=list)
    files_scanned: int = 0
    callbacks_checked: int = 0


# ---------------------------------------------------------------------------
# Source helpers
# ---------------------------------------------------------------------------


def _strip_comments(content: str) -> str:
    """Blank out comments while keeping line numbers stable."""
    def _blank(m: re.Match) -> str:
        return re.sub(r"[^\n]", " ", m.group(0))
    return re.sub(r"/\*.*?\*/|//[^\n]*", _blank, content, flags=re.DOTALL)


def _matching(content: str, start: int, open_ch: str, close_ch: str) -> int:
    """Index of the bracket closing the one at `start`, or -1."""
    depth = 0
    for i in range(start, len(content)):
        ch = content[i]
        if ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                return i
    return -1


def _parse_params(raw: str) -> list[tuple[str, str]]:
    params = []
    for part in raw.split(","):
        tokens = part.split()
        if not tokens:
            continue
        name = ""
        if len(tokens) > 1 and tokens[-1] not in STORAGE_KEYWORDS:
            name = tokens[-1]
        params.append((tokens[0], name))
    return params


def find_functions(content: str, names) -> list[CallbackSite]:
    """Locate implemented functions whose name is in `names`."""
    sites = []
    for m in FUNCTION_RE.finditer(content):
        name = m.group(1)
        if name not in names:
            continue
        open_paren = m.end() - 1
        close_paren = _matching(content, open_paren, "(", ")")
        if close_paren < 0:
            continue

        brace = content.find("{", close_paren)
        semi = content.find(";", close_paren)
        if brace < 0 or (0 <= semi < brace):
            continue  # interface declaration, no body

        end = _matching(content, brace, "{", "}")
        if end < 0:
            end = len(content) - 1

        sites.append(CallbackSite(
            name=name,
            params=_parse_params(content[open_paren + 1:close_paren]),
            header=content[close_paren + 1:brace],
            body=content[brace + 1:end],
            start_line=content[:m.start()].count("\n") + 1,
            end_line=content[:end].count("\n") + 1,
        ))
    return sites


def _initiator_comparisons(body: str, name: str) -> list[tuple[int, bool]]:
    """(offset, compares_to_self) for each equality test involving `name`."""
    ident = re.escape(name)
    operand = r"[\w\.]+(?:\s*\(\s*[\w\.]*\s*\))?"
    patterns = [
        re.compile(rf"(?<![\w.]){ident}\s*[!=]=\s*({operand})"),
        re.compile(rf"({operand})\s*[!=]=\s*{ident}(?![\w.])"),
    ]
    found = []
    for pattern in patterns:
        for m in pattern.finditer(body):
            other = m.group(1).strip()
            if other == name:
                continue
            found.append((m.start(), bool(SELF_RE.match(other))))
    found.sort()
    return found


def has_amount_guard(body: str, amount: str) -> bool:
    """True when `body` rejects or branches on a zero `amount`."""
    ident = re.escape(amount)
    guards = [
        rf"(?<![\w.]){ident}\s*(?:>|!=)\s*0\b",
        rf"\b0\s*(?:<|!=)\s*{ident}(?![\w.])",
        rf"(?<![\w.]){ident}\s*==\s*0\b",
        rf"(?<![\w.]){ident}\s*>=\s*1\b",
    ]
    return any(re.search(g, body) for g in guards)


def _make_finding(det_id: str, title: str, severity: str, file_path: str,
                  site: CallbackSite, description: str) -> Finding:
    return Finding(
        id=det_id,
        title=title,
        severity=severity,
        file=file_path,
        line=site.start_line,
        end_line=site.end_line,
        tool=TOOL_NAME,
        function=site.name,
        description=description,
        recommendation=REMEDIATION.get(det_id, ""),
    )


# ---------------------------------------------------------------------------
# Analysis functions
# ---------------------------------------------------------------------------


def check_callback(file_path: str, site: CallbackSite) -> list[Finding]:
    """Apply the initiator rule to one receiver callback."""
    label, index = CALLBACKS[site.name]
    sender_checked = bool(
        SENDER_CHECK_RE.search(site.body) or SENDER_MODIFIER_RE.search(site.header)
    )

    if index is None:
        if sender_checked:
            return []
        return [_make_finding(
            "naive-receiver-unguarded-callback", "Unguarded Flash-Loan Callback", "critical",
            file_path, site,
            f"{label} `{site.name}` does not validate msg.sender; anyone can invoke "
            "the callback directly and drive its approvals and transfers.",
        )]

    initiator = site.params[index][1] if index < len(site.params) else ""
    comparisons = _initiator_comparisons(site.body, initiator) if initiator else []
    self_checks = [offset for offset, is_self in comparisons if is_self]

    if self_checks:
        effect = EFFECT_RE.search(site.body)
        if effect and effect.start() < self_checks[0]:
            return [_make_finding(
                "naive-receiver-late-initiator-check", "Initiator Checked After Effects", "high",
                file_path, site,
                f"{label} `{site.name}` validates `{initiator}` only after an approval, "
                "transfer or call has already been issued for the loan.",
            )]
        return []

    if comparisons:
        return [_make_finding(
            "naive-receiver-initiator-not-self", "Initiator Not Compared To Receiver", "medium",
            file_path, site,
            f"{label} `{site.name}` compares `{initiator}` against an identity other than "
            "address(this); loans requested by that identity on the receiver's behalf "
            "are still accepted.",
        )]

    if not sender_checked:
        return [_make_finding(
            "naive-receiver-unguarded-callback", "Unguarded Flash-Loan Callback", "critical",
            file_path, site,
            f"{label} `{site.name}` validates neither msg.sender nor the loan initiator. "
            "Anyone can trigger it and make the receiver pay fees or approve transfers.",
        )]

    if not initiator:
        return [_make_finding(
            "naive-receiver-ignored-initiator", "Initiator Parameter Ignored", "high",
            file_path, site,
            f"{label} `{site.name}` leaves the initiator parameter unnamed, so loans "
            "requested by third parties are handled like the receiver's own.",
        )]

    return [_make_finding(
        "naive-receiver-missing-initiator-check", "Naive Flash-Loan Receiver", "high",
        file_path, site,
        f"{label} `{site.name}` trusts msg.sender but never checks `{initiator}`. "
        "A third party can request loans (even zero-amount ones) naming this receiver "
        "and drain it through fees.",
    )]


def _amount_param(site: CallbackSite) -> Optional[str]:
    for type_name, name in site.params:
        if type_name.startswith("uint") and "amount" in name.lower():
            return name
    return None


def check_lender(file_path: str, site: CallbackSite) -> list[Finding]:
    """Flag fee-charging flash lenders that accept zero-amount loans."""
    amount = _amount_param(site)
    if not amount or not FEE_RE.search(site.body):
        return []

    if has_amount_guard(site.body, amount):
        return []

    return [_make_finding(
        "zero-amount-flash-loan", "Zero-Amount Flash Loans Accepted", "low",
        file_path, site,
        f"`{site.name}` charges a fee but never rejects `{amount} == 0`; combined "
        "with an arbitrary receiver this lets anyone burn a receiver's funds on fees.",
    )]


def scan_source(file_path: str, content: str) -> tuple[list[Finding], int]:
    """Scan one Solidity source. Returns (findings, callbacks checked)."""
    code = _strip_comments(content)
    findings: list[Finding] = []

    callbacks = find_functions(code, CALLBACKS)
    for site in callbacks:
        findings.extend(check_callback(file_path, site))

    for site in find_functions(code, LENDER_FUNCTIONS):
        findings.extend(check_lender(file_path, site))

    return findings, len(callbacks)


def find_sources(config: dict) -> list[Path]:
    contracts_path = config.get("contracts", {}).get("path", "src/")
    exclude_paths = config.get("contracts", {}).get("exclude_paths", [])

    root = Path(contracts_path)
    if root.is_file():
        return [root]

    sources = []
    for sol in sorted(root.rglob("*.sol")):
        if _is_excluded(sol.relative_to(root).parts[:-1], exclude_paths):
            continue
        sources.append(sol)
    return sources


def _is_excluded(dirs: tuple[str, ...], exclude_paths: list[str]) -> bool:
    """Match exclude entries against whole directory components below the scan root."""
    for excl in exclude_paths:
        wanted = tuple(p for p in excl.replace("\\", "/").split("/") if p and p != ".")
        if not wanted:
            continue
        for i in range(len(dirs) - len(wanted) + 1):
            if dirs[i:i + len(wanted)] == wanted:
                return True
    return False


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def scan_contracts(config: dict) -> ScanResult:
    """Run callback analysis on all Solidity files in scope."""
    result = ScanResult()

    for sol in find_sources(config):
        rel = str(sol)
        try:
            content = sol.read_text(encoding="utf-8", errors="ignore")
        except (IOError, OSError) as e:
            log.warning(f"Callback analyzer: could not read {rel}: {e}")
            continue
        findings, callbacks = scan_source(rel, content)
        result.findings.extend(findings)
        result.files_scanned += 1
        result.callbacks_checked += callbacks

    log.info(
        f"Callback analysis: {result.files_scanned} file(s), "
        f"{result.callbacks_checked} callback(s), {len(result.findings)} finding(s)"
    )
    return result


def analyze_callbacks(config: dict) -> list[Finding]:
    return scan_contracts(config).findings
