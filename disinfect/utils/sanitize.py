"""Shared sanitization primitives used by the disinfection passes."""

from __future__ import annotations

import re
from typing import Any

import bleach

# Benign formatting markup survives; script, style, forms, embeds and
# anything unknown are stripped.
ALLOWED_TAGS: frozenset[str] = frozenset(bleach.sanitizer.ALLOWED_TAGS) | frozenset({
    "br",
    "dd",
    "del",
    "div",
    "dl",
    "dt",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "hr",
    "ins",
    "kbd",
    "mark",
    "p",
    "pre",
    "q",
    "s",
    "samp",
    "small",
    "span",
    "sub",
    "sup",
    "u",
    "var",
})

# Code points a whitespace-only value may consist of: tab, LF, VT, FF, CR,
# space, NBSP, Ogham space mark, Mongolian vowel separator, en quad through
# hair space, line and paragraph separators, narrow NBSP, medium math space,
# ideographic space and BOM. Python's \s and str.isspace() disagree with this
# set (they add \x1c-\x1f and drop U+180E and U+FEFF), so it is spelled out.
WHITESPACE_CODEPOINTS: tuple[int, ...] = (
    0x09, 0x0A, 0x0B, 0x0C, 0x0D, 0x20, 0xA0,
    0x1680, 0x180E,
    *range(0x2000, 0x200B),
    0x2028, 0x2029, 0x202F, 0x205F, 0x3000, 0xFEFF,
)

WHITESPACE_ONLY_RE = re.compile(
    "[" + "".join(re.escape(chr(cp)) for cp in WHITESPACE_CODEPOINTS) + "]+"
)


def sanitize_html(value: str) -> str:
    """Strip unsafe markup from a string, keeping whitelisted formatting tags."""
    return bleach.clean(value, tags=ALLOWED_TAGS, strip=True, strip_comments=True)


def is_whitespace_only(value: Any) -> bool:
    """True for a non-empty string made only of whitespace characters."""
    return isinstance(value, str) and WHITESPACE_ONLY_RE.fullmatch(value) is not None


def is_empty(value: Any) -> bool:
    return value is None or value == ""


def identity(mapping: dict[str, Any]) -> dict[str, Any]:
    """Default sanitizer: hand the mapping back untouched."""
    return mapping
