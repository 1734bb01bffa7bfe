"""
Highlight matched phrases inside the original (non-normalized) PDP title.

Single left-to-right pass over the title's alphanumeric tokens. At each token
the matched spans are tried longest first; a hit wraps the original text from
the first token's start to the last token's end and the scan resumes after
it, so a shorter phrase can never re-match text a longer one already took.

Tokens are runs of ASCII letters/digits, the same boundaries normalize_text()
produces, so "Soft-Cotton" in the title lines up with the span "soft cotton".
Everything between wrapped spans is copied from the title unchanged.
"""

import html
import re
from typing import Dict, List, Optional, Tuple

HIGHLIGHT_OPEN = '<span class="highlight">'
HIGHLIGHT_CLOSE = '</span>'

_TOKEN = re.compile(r'[A-Za-z0-9]+')


def collect_spans(matches: List[Dict]) -> List[Tuple[str, ...]]:
    """
    Word sequences to highlight, longest first.

    exact/fallback matches contribute their matched span; scattered matches
    (no span) contribute each of their keywords as a one-word span.
    Ordered by word count, then character length, both descending.
    """
    spans = {}
    for m in matches:
        if m.get('matched_span'):
            spans[tuple(m['matched_span'].split())] = None
        else:
            for kw in m.get('keywords', []):
                spans[(kw,)] = None
    return sorted(spans, key=lambda words: (len(words), len(' '.join(words))), reverse=True)


def _span_length_at(tokens: List[Tuple[str, int, int]], i: int,
                    candidates: List[Tuple[str, ...]]) -> Optional[int]:
    """Token count of the first (longest) candidate span that starts at token i."""
    for words in candidates:
        n = len(words)
        if i + n > len(tokens):
            continue
        if all(tokens[i + k][0] == words[k] for k in range(n)):
            return n
    return None


def highlight_title(
    title: str,
    matches: List[Dict],
    escape: bool = False,
    open_tag: str = HIGHLIGHT_OPEN,
    close_tag: str = HIGHLIGHT_CLOSE,
) -> str:
    """
    Wrap every matched span of `title` in open_tag/close_tag.

    With escape=False the text outside wrapped spans is byte-identical to
    `title`. With escape=True all title text is HTML-escaped (tags are not),
    which is what the UI renders.
    """
    if not isinstance(title, str):
        return ''
    esc = html.escape if escape else (lambda s: s)

    # First word → spans starting with it, keeping longest-first order
    by_first_word: Dict[str, List[Tuple[str, ...]]] = {}
    for words in collect_spans(matches):
        by_first_word.setdefault(words[0], []).append(words)

    tokens = [(m.group(0).lower(), m.start(), m.end()) for m in _TOKEN.finditer(title)]
    if not by_first_word or not tokens:
        return esc(title)

    out = []
    cursor = 0
    i = 0
    while i < len(tokens):
        n = _span_length_at(tokens, i, by_first_word.get(tokens[i][0], []))
        if n is None:
            i += 1
            continue
        start, end = tokens[i][1], tokens[i + n - 1][2]
        out.append(esc(title[cursor:start]))
        out.append(open_tag + esc(title[start:end]) + close_tag)
        cursor = end
        i += n

    out.append(esc(title[cursor:]))
    return ''.join(out)
