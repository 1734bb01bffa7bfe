"""
Text normalization and n-gram extraction for PDP title matching.

Both the catalog phrases and the PDP title go through normalize_text(), so
every comparison downstream is between lowercase ASCII alphanumeric tokens
separated by single spaces.
"""

import re
from typing import List, Tuple

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
MAX_WINDOW = 4  # Longest n-gram tried against the catalog

_NON_ALNUM = re.compile(r'[^a-z0-9\s]')
_WHITESPACE = re.compile(r'\s+')


# ---------------------------------------------------------------------------
# String normalization
# ---------------------------------------------------------------------------

def normalize_text(text: str) -> str:
    """
    Normalize a title or catalog phrase for comparison.

    Steps:
        1. Lowercase
        2. Replace every character outside [a-z0-9] and whitespace with a space
           ("Soft-Cotton" -> "soft cotton", "Kurta's" -> "kurta s")
        3. Collapse whitespace and trim

    Non-string input (None, NaN from pandas) normalizes to ''.

    Examples:
        'Soft-Cotton!'          -> 'soft cotton'
        '  Pink   DUPATTA  '    -> 'pink dupatta'
        '!!!'                   -> ''
    """
    if not isinstance(text, str):
        return ""

    s = text.lower()
    s = _NON_ALNUM.sub(' ', s)
    s = _WHITESPACE.sub(' ', s).strip()
    return s


def tokenize(normalized: str) -> List[str]:
    """Split normalized text on spaces, dropping empty tokens."""
    return [t for t in normalized.split(' ') if t]


# ---------------------------------------------------------------------------
# N-gram generation
# ---------------------------------------------------------------------------

def generate_ngrams(normalized: str, max_window: int = MAX_WINDOW) -> Tuple[List[str], List[str]]:
    """
    Build all contiguous token windows of a normalized title, longest first.

    Window sizes run from min(max_window, token count) down to 1 and each size
    is scanned left to right. A window whose text was already emitted is not
    emitted again, so the first (longest-window) occurrence wins.

    Returns:
        (tokens, ngrams)

    Example:
        'soft cotton scarf' ->
            tokens: ['soft', 'cotton', 'scarf']
            ngrams: ['soft cotton scarf', 'soft cotton', 'cotton scarf',
                     'soft', 'cotton', 'scarf']
    """
    tokens = tokenize(normalized)
    ngrams = []
    seen = set()

    for n in range(min(max_window, len(tokens)), 0, -1):
        for i in range(len(tokens) - n + 1):
            gram = ' '.join(tokens[i:i + n])
            if gram in seen:
                continue
            seen.add(gram)
            ngrams.append(gram)

    return tokens, ngrams
