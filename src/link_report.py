"""
Related-links output for a match run: link list markup and JSON debug record.

Both exports are built from the run's final match set. A run without matches
has nothing to export (export_payloads() returns None).
"""

import html
import json
from typing import Dict, List, Optional, Tuple

EXPORT_HTML_FILENAME = "related-collections.html"
EXPORT_JSON_FILENAME = "matches.json"
EXPORT_HTML_MIME = "text/html"
EXPORT_JSON_MIME = "application/json"

DEBUG_RECORD_KEYS = ('phrase', 'url', 'anchor', 'matchType', 'score')


# ---------------------------------------------------------------------------
# Link list
# ---------------------------------------------------------------------------

def render_link_list(matches: List[Dict]) -> str:
    """
    Render matches as an ordered list (<ol>) of links, one per line.

    Links open in a new tab with rel="noopener noreferrer" so the PLP gets
    neither the referrer nor a handle on the opening window.
    Returns '' when there is nothing to show.
    """
    if not matches:
        return ''

    items = []
    for m in matches:
        href = html.escape(m['url'], quote=True)
        text = html.escape(m['anchor'])
        items.append(
            f'  <li><a href="{href}" target="_blank" rel="noopener noreferrer">{text}</a></li>'
        )
    return '<ol class="related-links">\n' + '\n'.join(items) + '\n</ol>'


# ---------------------------------------------------------------------------
# Debug record
# ---------------------------------------------------------------------------

def build_debug_record(matches: List[Dict]) -> List[Dict]:
    return [
        {
            'phrase': m['phrase'],
            'url': m['url'],
            'anchor': m['anchor'],
            'matchType': m['match_type'],
            'score': m['score'],
        }
        for m in matches
    ]


def serialize_debug_record(matches: List[Dict]) -> str:
    """Indented JSON of the debug record, in match-set order."""
    return json.dumps(build_debug_record(matches), indent=2, ensure_ascii=False)


def parse_debug_record(text: str) -> List[Dict]:
    """
    Read a debug record back (e.g. a downloaded matches.json).

    Raises ValueError if the text is not a JSON list of records carrying
    all of phrase, url, anchor, matchType, score.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Debug record is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise ValueError("Debug record must be a JSON list")
    for i, rec in enumerate(data):
        if not isinstance(rec, dict) or any(k not in rec for k in DEBUG_RECORD_KEYS):
            raise ValueError(f"Debug record entry {i} is missing one of {', '.join(DEBUG_RECORD_KEYS)}")

    return [{k: rec[k] for k in DEBUG_RECORD_KEYS} for rec in data]


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------

def export_payloads(run: Optional[Dict]) -> Optional[Dict[str, Tuple[str, str]]]:
    """
    Downloadable files for the most recent run: filename → (content, mime).

    None when no run has produced matches yet; exporting is then a no-op.
    """
    if not run or not run.get('matches'):
        return None

    matches = run['matches']
    return {
        EXPORT_HTML_FILENAME: (render_link_list(matches), EXPORT_HTML_MIME),
        EXPORT_JSON_FILENAME: (serialize_debug_record(matches), EXPORT_JSON_MIME),
    }
