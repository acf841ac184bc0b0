"""Case folding for case-insensitive path comparison."""

from __future__ import annotations


def _fold_char(c: str) -> str:
    folded = c.casefold()
    if len(folded) == 1:
        return folded
    # Full folding expands some letters (e.g. "ß" -> "ss"); keep simple folding.
    lowered = c.lower()
    if len(lowered) == 1:
        return lowered
    return c


def str_to_fold(s: str) -> str:
    """
    Return a canonical form of `s` for case-insensitive comparison.

    Two strings fold to the same value iff they are equal under Unicode simple
    case folding, so "K" (Kelvin sign), "K" and "k" all fold together while
    "ß" and "ss" stay distinct.
    """
    if s.isascii():
        return s.lower()
    return "".join(_fold_char(c) for c in s)
