"""
Value parsers and lxml node helpers shared by provider rules.
"""
from __future__ import annotations

import re
from datetime import date


_WS_RE = re.compile(r"\s+")

# (pattern, group order)
_DATE_PATTERNS = (
    (re.compile(r"(\d{4})\s*[-/.年]\s*(\d{1,2})\s*[-/.月]\s*(\d{1,2})"), ("y", "m", "d")),
    (re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})"), ("m", "d", "y")),
)

_ISO_DURATION_RE = re.compile(r"^P(?:\d+D)?T?(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?$", re.IGNORECASE)
_CLOCK_RE = re.compile(r"(\d{1,3}):(\d{2})(?::(\d{2}))?")
_HOURS_MINUTES_RE = re.compile(r"(\d+)\s*(?:時間|hours?|hrs?)\s*(?:(\d+)\s*(?:分|min))?", re.IGNORECASE)
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


def squash_ws(value: str | None) -> str:
    return _WS_RE.sub(" ", value or "").strip()


def parse_date(value: str | None) -> date | None:
    """Parse the date formats seen on provider pages; None when unrecognized."""
    s = (value or "").strip()
    if not s:
        return None
    for pattern, order in _DATE_PATTERNS:
        m = pattern.search(s)
        if not m:
            continue
        parts = dict(zip(order, (int(g) for g in m.groups())))
        try:
            return date(parts["y"], parts["m"], parts["d"])
        except ValueError:
            return None
    return None


def parse_runtime(value: str | None) -> int:
    """Return a runtime in whole minutes, 0 when unknown.

    Accepts ISO-8601 durations (PT1H2M3S), clock strings (01:02:03 / 62:03),
    and labelled numbers (120分, 120 min, 2時間5分).
    """
    s = (value or "").strip()
    if not s:
        return 0

    m = _ISO_DURATION_RE.match(s)
    if m and any(m.groups()):
        hours, minutes, seconds = m.groups()
        total = int(hours or 0) * 3600 + int(minutes or 0) * 60 + float(seconds or 0)
        return int(total // 60)

    m = _CLOCK_RE.search(s)
    if m:
        a, b, c = m.groups()
        if c is not None:
            return int(a) * 60 + int(b) + (1 if int(c) >= 30 else 0)
        # two-part clock is minutes:seconds
        return int(a) + (1 if int(b) >= 30 else 0)

    m = _HOURS_MINUTES_RE.search(s)
    if m:
        return int(m.group(1)) * 60 + int(m.group(2) or 0)

    m = _NUMBER_RE.search(s)
    if m:
        return int(float(m.group(0)))
    return 0


def parse_score(value: str | None) -> float:
    """Parse a rating and normalize it into 0-5; 0.0 when unknown."""
    m = _NUMBER_RE.search((value or "").strip())
    if not m:
        return 0.0
    v = float(m.group(0))
    if v <= 5:
        pass
    elif v <= 10:
        v /= 2
    elif v <= 100:
        v /= 20
    else:
        return 0.0
    return round(v, 2)


# -- lxml node helpers --

def text_of(node) -> str:
    """Whitespace-trimmed text of an element, or of an xpath string result."""
    if node is None:
        return ""
    if isinstance(node, str):
        return node.strip()
    return "".join(node.itertext()).strip()


def first(node, xpath: str):
    found = node.xpath(xpath)
    return found[0] if found else None


def child_text(node, xpath: str) -> str:
    return text_of(first(node, xpath))


def child_texts(node, xpath: str) -> list[str]:
    out: list[str] = []
    for n in node.xpath(xpath):
        t = text_of(n)
        if t:
            out.append(t)
    return out


def child_attr(node, xpath: str, attr: str) -> str:
    n = first(node, xpath)
    if n is None or isinstance(n, str):
        return ""
    return (n.get(attr) or "").strip()


def parse_texts(node) -> list[str]:
    """Every non-empty text fragment under node, in document order."""
    if node is None:
        return []
    return [t.strip() for t in node.itertext() if t and t.strip()]
