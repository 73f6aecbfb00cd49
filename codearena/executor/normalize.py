"""Output canonicalization used for pass/fail comparison."""
from __future__ import annotations

import re
from dataclasses import dataclass

_WHITESPACE_RE = re.compile(r'\s+')


@dataclass(frozen=True)
class CompareOptions:
    ignore_whitespace: bool = True
    ignore_case: bool = False

    @classmethod
    def from_mode(cls, mode: str | None) -> CompareOptions:
        """``strict`` disables both relaxations; anything else keeps the defaults."""
        if str(mode or '').strip().lower() == 'strict':
            return cls(ignore_whitespace=False, ignore_case=False)
        return cls()


def normalize(text, ignore_whitespace: bool = True, ignore_case: bool = False) -> str:
    """Canonicalize program output for comparison.

    With *ignore_whitespace* every whitespace run (newlines included) becomes
    a single space before trimming, so a trailing newline from the sandbox never
    causes a mismatch. Without it only the ends are trimmed.
    """
    if text is None:
        return ''
    result = str(text)
    if ignore_whitespace:
        result = _WHITESPACE_RE.sub(' ', result).strip()
    else:
        result = result.strip()
    if ignore_case:
        result = result.lower()
    return result


def outputs_match(actual, expected, options: CompareOptions | None = None) -> bool:
    options = options or CompareOptions()
    return (
        normalize(actual, options.ignore_whitespace, options.ignore_case)
        == normalize(expected, options.ignore_whitespace, options.ignore_case)
    )


def has_expectation(expected, options: CompareOptions | None = None) -> bool:
    """True when *expected* still has content after normalization."""
    options = options or CompareOptions()
    return bool(normalize(expected, options.ignore_whitespace, options.ignore_case))
