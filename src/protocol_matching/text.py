"""
Text normalization helpers for matching clinical terms.
"""

import re
from typing import Iterable, Optional

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
MIN_TERM_LENGTH = 3


def normalize_term(text: Optional[str]) -> str:
    """Lowercase, strip punctuation and collapse whitespace."""
    if not text:
        return ""
    return _NON_ALNUM.sub(" ", text.lower()).strip()


def terms_match(a: Optional[str], b: Optional[str]) -> bool:
    """
    Bidirectional case-insensitive substring match.

    'Severe penicillin allergy' matches 'penicillin' and vice versa. Terms
    shorter than three characters never match to avoid spurious hits.
    """
    left, right = normalize_term(a), normalize_term(b)
    if len(left) < MIN_TERM_LENGTH or len(right) < MIN_TERM_LENGTH:
        return False
    return left in right or right in left


def any_term_matches(term: Optional[str], candidates: Iterable[Optional[str]]) -> bool:
    return any(terms_match(term, c) for c in candidates)
