"""
Core matching engine for PDP title → PLP link mapping.

Matching Approach:
    - Normalizes the PDP title the same way catalog phrases were normalized
    - Runs one of two strategies against the catalog:
        * exact (default): contiguous n-gram lookup, longest window first,
          then a single-keyword fallback for one-word phrases not yet matched
        * scattered: a phrase matches when all of its words appear anywhere in
          the title, in any order
    - Ranks candidates by score (= phrase word count), stable on ties
    - Deduplicates by (PLP URL, anchor text) so each link is shown once

Why longest first:
    Title "Soft Cotton Scarf" with catalog phrases "soft cotton" and "cotton":
    the n-gram "soft cotton" is looked up before "cotton", so the more specific
    phrase is discovered first and wins score ties and highlighting.

Non-contiguous phrases:
    Under the exact strategy "pink dupatta" does NOT match "Dupatta in Pink".
    Only the scattered strategy matches words regardless of position.
"""

import logging
from typing import Callable, Dict, List, Optional

from phrase_normalize import MAX_WINDOW, generate_ngrams, normalize_text
from title_highlight import highlight_title

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
STRATEGY_EXACT = "exact"
STRATEGY_SCATTERED = "scattered"
DEFAULT_STRATEGY = STRATEGY_EXACT

MATCH_TYPE_EXACT = "exact"          # Pass 1: phrase == contiguous n-gram
MATCH_TYPE_FALLBACK = "fallback"    # Pass 2: one-word phrase found as a token
MATCH_TYPE_SCATTERED = "scattered"  # All phrase words present, any order

ERROR_NO_CATALOG = "No catalog loaded"
ERROR_EMPTY_TITLE = "Empty title after normalization"


def _make_candidate(entry: Dict, match_type: str, score: int, matched_span: Optional[str]) -> Dict:
    return {
        'entry_id': entry['id'],
        'phrase': entry['normalized_phrase'],
        'url': entry['url'],
        'anchor': entry['anchor'],
        'keywords': list(entry['keywords']),
        'match_type': match_type,
        'score': score,
        'matched_span': matched_span,
    }


# ---------------------------------------------------------------------------
# Strategies: (catalog, query) → candidates in discovery order
# ---------------------------------------------------------------------------

def match_exact_with_fallback(catalog: Dict, query: Dict) -> List[Dict]:
    """
    Two-pass exact matching.

    Pass 1 (exact phrase):
        For each n-gram (longest window first), every catalog entry whose
        normalized phrase equals the n-gram becomes a candidate.
        score = number of words in the phrase.

    Pass 2 (single-token fallback):
        Every one-word entry not matched in pass 1 whose keyword is one of
        the title's tokens becomes a candidate with score 1. Token set
        membership, not substring: "cotton" does not match "cottons".

    An entry is matched at most once per run.
    """
    entries = catalog['entries']
    lookup = catalog['lookup']
    matched_ids = set()
    candidates = []

    # --- Pass 1: exact n-gram lookup ---
    for gram in query['ngrams']:
        for entry_id in lookup.get(gram, []):
            if entry_id in matched_ids:
                continue
            entry = entries[entry_id]
            matched_ids.add(entry_id)
            candidates.append(
                _make_candidate(entry, MATCH_TYPE_EXACT, len(entry['keywords']), gram)
            )

    # --- Pass 2: single-keyword fallback ---
    token_set = set(query['tokens'])
    for entry_id in catalog['single_keyword_ids']:
        if entry_id in matched_ids:
            continue
        entry = entries[entry_id]
        keyword = entry['keywords'][0]
        if keyword in token_set:
            matched_ids.add(entry_id)
            candidates.append(_make_candidate(entry, MATCH_TYPE_FALLBACK, 1, keyword))

    return candidates


def match_scattered(catalog: Dict, query: Dict) -> List[Dict]:
    """
    All-keywords-present matching: order and adjacency are ignored.

    One pass over the whole catalog; no fallback. Candidates carry no
    matched span, highlighting uses the union of their keywords instead.
    """
    token_set = set(query['tokens'])
    candidates = []
    for entry in catalog['entries']:
        if all(kw in token_set for kw in entry['keywords']):
            candidates.append(
                _make_candidate(entry, MATCH_TYPE_SCATTERED, len(entry['keywords']), None)
            )
    return candidates


MATCH_STRATEGIES: Dict[str, Callable[[Dict, Dict], List[Dict]]] = {
    STRATEGY_EXACT: match_exact_with_fallback,
    STRATEGY_SCATTERED: match_scattered,
}

STRATEGY_LABELS = {
    STRATEGY_EXACT: "Exact phrase + single-word fallback",
    STRATEGY_SCATTERED: "Scattered keywords (any order)",
}


# ---------------------------------------------------------------------------
# Ranking & deduplication
# ---------------------------------------------------------------------------

def rank_and_dedupe(candidates: List[Dict]) -> List[Dict]:
    """
    Sort by score descending and keep one candidate per (url, anchor).

    sorted() is stable, so equal scores keep discovery order; the first
    candidate seen for a link is the one kept.
    """
    ranked = sorted(candidates, key=lambda c: c['score'], reverse=True)

    seen_links = set()
    matches = []
    for cand in ranked:
        key = (cand['url'], cand['anchor'])
        if key in seen_links:
            continue
        seen_links.add(key)
        matches.append(cand)
    return matches


# ---------------------------------------------------------------------------
# One matching run
# ---------------------------------------------------------------------------

def build_query(title: str, max_window: int = MAX_WINDOW) -> Dict:
    """Normalize a title and derive its tokens and n-grams."""
    normalized = normalize_text(title)
    tokens, ngrams = generate_ngrams(normalized, max_window)
    return {
        'title': title,
        'normalized': normalized,
        'tokens': tokens,
        'ngrams': ngrams,
    }


def match_title(
    title: str,
    catalog: Optional[Dict],
    strategy: str = DEFAULT_STRATEGY,
    max_window: int = MAX_WINDOW,
) -> Dict:
    """
    Run one full match for a PDP title: normalize → match → rank → highlight.

    Empty input never reaches a strategy: with no catalog, or a title that is
    empty after normalization, the result carries an 'error' message and an
    empty 'matches' list (same shape the UI expects from any run).

    Returns dict:
        'title', 'normalized', 'tokens', 'strategy',
        'candidates': every candidate in discovery order,
        'matches':    ranked, deduplicated candidates,
        'highlighted': HTML-escaped title with matched spans wrapped
    """
    if strategy not in MATCH_STRATEGIES:
        raise ValueError(
            f"Unknown match strategy '{strategy}'. "
            f"Expected one of: {', '.join(MATCH_STRATEGIES)}"
        )

    if not catalog or not catalog.get('entries'):
        return {'title': title, 'strategy': strategy, 'error': ERROR_NO_CATALOG, 'matches': []}

    query = build_query(title, max_window)
    if not query['tokens']:
        return {'title': title, 'strategy': strategy, 'error': ERROR_EMPTY_TITLE, 'matches': []}

    candidates = MATCH_STRATEGIES[strategy](catalog, query)
    matches = rank_and_dedupe(candidates)
    logger.debug(
        "Matched %r with %s strategy: %d candidates, %d links",
        query['normalized'], strategy, len(candidates), len(matches),
    )

    return {
        'title': title,
        'normalized': query['normalized'],
        'tokens': query['tokens'],
        'strategy': strategy,
        'candidates': candidates,
        'matches': matches,
        'highlighted': highlight_title(title, matches, escape=True),
    }
