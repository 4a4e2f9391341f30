"""
Shared utilities for the YouTube comment extractor.
"""

import re

_MULTIPLIERS = {
    "K": 1_000,
    "M": 1_000_000,
    "B": 1_000_000_000,
}

# "1,234", "1.2K", ".5K", "45 k", "2.5M Comments"
_COUNT_RE = re.compile(r"(\d*\.\d+|\d[\d,]*(?:\.\d+)?)\s*([KMB])?(?![A-Z])", re.IGNORECASE)


def parse_count(text) -> int | None:
    """Parse count strings like '1.2K', '3M', '1,234 Comments' to integers.

    Returns None when the text carries no number at all.
    """
    if text is None:
        return None
    if isinstance(text, bool):
        return None
    if isinstance(text, (int, float)):
        try:
            return int(text)
        except (OverflowError, ValueError):
            return None

    text = str(text).strip()
    if not text:
        return None

    match = _COUNT_RE.search(text)
    if not match:
        return None

    number = match.group(1).replace(",", "")
    suffix = (match.group(2) or "").upper()
    try:
        value = float(number)
    except ValueError:
        return None
    return int(round(value * _MULTIPLIERS.get(suffix, 1)))


def _parse_count_string(text) -> int:
    """Parse count strings like '1.2K', '3M', '42' to integers (0 if absent)."""
    value = parse_count(text)
    return value if value is not None else 0


def extract_count_from_label(label) -> int | None:
    """Pull the count out of an accessibility label.

    Labels are sentences, e.g. "Like this comment along with 2.5K other
    people" or "500 likes". A label without digits ("No likes") gives None.
    """
    if not label or not isinstance(label, str):
        return None
    return parse_count(label)


def runs_text(node, first_only: bool = False) -> str:
    """Flatten a {"runs": [...]} / {"simpleText": ...} text node to a string."""
    if not isinstance(node, dict):
        return node if isinstance(node, str) else ""

    if "simpleText" in node and isinstance(node["simpleText"], str):
        return node["simpleText"]

    runs = node.get("runs")
    if isinstance(runs, list) and runs:
        parts = [r["text"] for r in runs if isinstance(r, dict) and isinstance(r.get("text"), str)]
        if first_only:
            return parts[0] if parts else ""
        return "".join(parts)

    content = node.get("content")
    if isinstance(content, str):
        return content
    return ""


def dig(obj, *path, default=None):
    """Walk nested dicts/lists; any missing hop returns `default`."""
    cur = obj
    for key in path:
        if isinstance(key, int):
            if not isinstance(cur, list) or key >= len(cur) or key < -len(cur):
                return default
            cur = cur[key]
        else:
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
    return cur
