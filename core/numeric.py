# core/numeric.py
import re
from typing import List, Optional, Sequence, Tuple
from config.settings import settings
from model.claim import NumericCheck

_MAGNITUDE_WORDS = r"(?:trillion|billion|million|thousand)"

# Ordered: earlier patterns claim their span first, later overlapping matches are dropped.
_PATTERNS: Tuple[re.Pattern, ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        # currency with optional magnitude suffix: $96.8 billion, €5M, $1,234
        rf"[$€£¥₹]\s?(?:\d{{1,3}}(?:,\d{{3}})+|\d+)(?:\.\d+)?(?:\s?(?:{_MAGNITUDE_WORDS}|[tbmk])\b)?",
        # percentages: 18.5%, 12 %
        r"\d+(?:\.\d+)?\s?%",
        # thousands-separated integers: 1,234,567
        r"\b\d{1,3}(?:,\d{3})+(?:\.\d+)?\b",
        # bare magnitudes: 1.5 trillion, 40 million
        rf"\b\d+(?:\.\d+)?\s?{_MAGNITUDE_WORDS}\b",
        # decimals, optionally with a magnitude letter: 3.14, 96.8B
        r"\b\d+\.\d+(?:[tbmk]\b)?",
        # years
        r"\b(?:19|20)\d{2}\b",
        # other long integers
        r"\b\d{4,}\b",
    )
)

_CURRENCY = re.compile(r"[$€£¥₹]")
_LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)")
_YEAR = re.compile(r"^(?:19|20)\d{2}$")
_MULTIPLIERS = {
    "t": 1e12,
    "trillion": 1e12,
    "b": 1e9,
    "billion": 1e9,
    "m": 1e6,
    "million": 1e6,
    "k": 1e3,
    "thousand": 1e3,
}


def extract_numbers(text: str) -> List[str]:
    """
    Pull quantities out of free text.
    Returns lowercase raw matches, de-duplicated, in order of appearance.
    """
    if not text:
        return []
    taken: List[Tuple[int, int, str]] = []
    for pattern in _PATTERNS:
        for m in pattern.finditer(text):
            start, end = m.span()
            if any(start < e and s < end for s, e, _ in taken):
                continue
            taken.append((start, end, m.group().strip().lower()))

    out: List[str] = []
    for _, _, raw in sorted(taken):
        if raw not in out:
            out.append(raw)
    return out


def normalize_number(raw: str) -> Optional[float]:
    """
    Turn a raw match into a comparable float.
    - "$96.8 billion" -> 96.8e9, "50K" -> 50e3, "1,234" -> 1234.0
    - "18.5%" -> 18.5 (percentages are not scaled)
    - None for empty, symbol-only or non-numeric input
    Raises TypeError for non-string input.
    """
    if not isinstance(raw, str):
        raise TypeError(f"normalize_number expects str, got {type(raw).__name__}")

    s = _CURRENCY.sub("", raw).replace(",", "").strip().lower()
    if not s:
        return None

    if s.endswith("%"):
        m = _LEADING_NUMBER.match(s[:-1].strip())
        return float(m.group()) if m else None

    m = _LEADING_NUMBER.match(s)
    if not m:
        return None
    suffix = s[m.end() :].strip()
    return float(m.group()) * _MULTIPLIERS.get(suffix, 1.0)


def is_year(raw: str) -> bool:
    return bool(_YEAR.match(raw.strip()))


def _is_percent(raw: str) -> bool:
    return raw.strip().endswith("%")


def _roughly_equal(a: float, b: float, tolerance: float) -> bool:
    if a == b:
        return True
    return abs(a - b) <= tolerance * max(abs(a), abs(b))


def _fuzzy_match(claim_raw: str, claim_val: float, ev_raw: str, ev_val: float) -> bool:
    if _is_percent(claim_raw) or _is_percent(ev_raw):
        return abs(claim_val - ev_val) <= settings.PERCENT_ABS_TOLERANCE
    return _roughly_equal(claim_val, ev_val, settings.NUMERIC_RATIO_TOLERANCE)


def _comparable(raws: Sequence[str]) -> List[Tuple[str, float]]:
    out: List[Tuple[str, float]] = []
    for raw in raws:
        if is_year(raw):
            continue
        value = normalize_number(raw)
        if value is not None:
            out.append((raw, value))
    return out


def _ranges_agree(claim_vals: List[float], ev_vals: List[float]) -> bool:
    tol = settings.RANGE_ENDPOINT_TOLERANCE

    if len(claim_vals) >= 2 and len(ev_vals) >= 2:
        c_min, c_max = claim_vals[0], claim_vals[-1]
        e_min, e_max = ev_vals[0], ev_vals[-1]
        overlap = c_min <= e_max and e_min <= c_max
        return overlap and (
            _roughly_equal(c_min, e_min, tol) or _roughly_equal(c_max, e_max, tol)
        )

    if len(ev_vals) >= 2 and len(claim_vals) == 1:
        return ev_vals[0] <= claim_vals[0] <= ev_vals[-1]

    if len(claim_vals) >= 2 and len(ev_vals) == 1:
        return claim_vals[0] <= ev_vals[0] <= claim_vals[-1]

    return False


def check_numeric_consistency(
    claim_numbers: Sequence[str], evidence_numbers: Sequence[str]
) -> NumericCheck:
    """
    Compare the quantities of a claim with those of its evidence.

    1. No claim numbers: nothing can contradict, match.
    2. Strict: every non-year claim number fuzzy-matches some evidence number
       (percentages by absolute tolerance, everything else by ratio).
    3. Ranges: "$400-$800" vs "$400-$600" overlap with a shared endpoint,
       or a single value sits inside the other side's interval.
    """
    claim_numbers = list(claim_numbers)
    evidence_numbers = list(evidence_numbers)

    def _result(match: bool) -> NumericCheck:
        return NumericCheck(
            claimNumbers=claim_numbers, evidenceNumbers=evidence_numbers, match=match
        )

    if not claim_numbers:
        return _result(True)

    claim_pairs = _comparable(claim_numbers)
    ev_pairs = _comparable(evidence_numbers)

    strict = all(
        any(_fuzzy_match(c_raw, c_val, e_raw, e_val) for e_raw, e_val in ev_pairs)
        for c_raw, c_val in claim_pairs
    )
    if strict:
        return _result(True)

    claim_vals = sorted(v for _, v in claim_pairs)
    ev_vals = sorted(v for _, v in ev_pairs)
    return _result(_ranges_agree(claim_vals, ev_vals))
