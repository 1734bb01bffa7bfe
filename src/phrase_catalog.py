"""
Catalog loading for the PDP link mapper.

A catalog file is a CSV or Excel sheet with (at least) three columns:

    PDP Phrase  : the phrase to look for in a PDP title
    PLP URL     : the listing page the phrase should link to
    Anchor Text : the text shown for that link

Loading pipeline:
    1. read_catalog_file()     : raw grid of strings, no header applied
    2. parse_catalog_table()   : find the header row, pick the 3 columns
    3. load_and_clean_catalog(): normalize phrases, drop unusable rows
    4. build_catalog_index()   : entries + phrase lookup used by the matcher

Any failure in steps 1-2 (or a file with no usable rows) raises
CatalogLoadError and nothing is built, so the caller's previous catalog
stays in place.
"""

import csv
import io
import logging
import os
import zipfile
from typing import Dict, List, Optional, Tuple

import pandas as pd
from rapidfuzz import fuzz, process, utils

from phrase_normalize import normalize_text, tokenize

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
# Header name (matched case-insensitively after trimming) → internal column
REQUIRED_COLUMNS: Dict[str, str] = {
    'pdp phrase': 'phrase',
    'plp url': 'url',
    'anchor text': 'anchor',
}
REQUIRED_HEADERS = ['PDP Phrase', 'PLP URL', 'Anchor Text']

HEADER_SCAN_ROWS = 5            # Title/blank rows allowed above the header
HEADER_SUGGESTION_CUTOFF = 80   # Min fuzz.ratio for a "did you mean" hint

CSV_EXTENSIONS = ('.csv',)
EXCEL_EXTENSIONS = ('.xlsx',)


class CatalogLoadError(ValueError):
    """The catalog file could not be turned into a usable catalog."""


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------

def _read_csv_grid(file) -> pd.DataFrame:
    """
    Read a CSV whose rows may have different lengths.

    read_csv() with header=None takes its column count from line 1, so a
    one-cell title line above the header (or a data row with an extra note
    cell) would be a tokenizing error. The grid is sized to the widest row
    instead; shorter rows are padded with '' later.
    """
    if hasattr(file, 'read'):
        raw = file.read()
        if hasattr(file, 'seek'):
            file.seek(0)
    else:
        with open(file, 'rb') as f:
            raw = f.read()
    text = raw.decode('utf-8-sig') if isinstance(raw, bytes) else raw

    width = max((len(row) for row in csv.reader(io.StringIO(text))), default=0)
    if width == 0:
        raise pd.errors.EmptyDataError("No columns to parse from file")

    return pd.read_csv(io.StringIO(text), header=None, names=range(width), dtype=str,
                       keep_default_na=False, skip_blank_lines=True)


def read_catalog_file(file, filename: Optional[str] = None) -> pd.DataFrame:
    """
    Read an uploaded catalog into a raw grid of strings (no header applied).

    `file` may be a path or a file-like object (Streamlit UploadedFile).
    The file type is taken from `filename`, falling back to `file.name`.
    Empty cells come back as ''.
    """
    name = filename or getattr(file, 'name', None) or str(file)
    ext = os.path.splitext(name)[1].lower()

    if ext not in CSV_EXTENSIONS + EXCEL_EXTENSIONS:
        raise CatalogLoadError(
            f"Unsupported file type '{ext or name}'. Upload a .csv or .xlsx file."
        )

    try:
        if ext in CSV_EXTENSIONS:
            df = _read_csv_grid(file)
        else:
            df = pd.read_excel(file, header=None, dtype=str)
    except pd.errors.EmptyDataError as e:
        raise CatalogLoadError(f"'{name}' is empty.") from e
    except (pd.errors.ParserError, UnicodeDecodeError, ValueError, OSError,
            csv.Error, zipfile.BadZipFile) as e:
        raise CatalogLoadError(f"Could not read '{name}': {e}") from e

    if df.empty:
        raise CatalogLoadError(f"'{name}' is empty.")

    return df.fillna('')


# ---------------------------------------------------------------------------
# Header detection
# ---------------------------------------------------------------------------

def _locate_columns(cells: List[str]) -> Dict[str, int]:
    """
    Map each required header found in `cells` to its column position.

    Matching is case-insensitive after trimming; the first occurrence wins.
    """
    positions = {}
    for pos, cell in enumerate(cells):
        key = str(cell).strip().lower()
        if key in REQUIRED_COLUMNS and REQUIRED_COLUMNS[key] not in positions:
            positions[REQUIRED_COLUMNS[key]] = pos
    return positions


def _suggest_header(required: str, headers: List[str]) -> Optional[str]:
    """Closest present header to a missing required one, if any is close enough."""
    choices = [h for h in headers if h]
    if not choices:
        return None
    result = process.extractOne(
        required,
        choices,
        scorer=fuzz.ratio,
        processor=utils.default_process,
        score_cutoff=HEADER_SUGGESTION_CUTOFF,
    )
    return result[0] if result else None


def _missing_columns_message(headers: List[str], positions: Dict[str, int]) -> str:
    parts = []
    for header in REQUIRED_HEADERS:
        if REQUIRED_COLUMNS[header.lower()] in positions:
            continue
        hint = _suggest_header(header, headers)
        parts.append(f"'{header}' (found '{hint}'?)" if hint else f"'{header}'")
    return "Missing required column(s): " + ", ".join(parts)


def detect_header_row(df_raw: pd.DataFrame) -> Tuple[int, Dict[str, int]]:
    """
    Find the header row within the first HEADER_SCAN_ROWS rows.

    Strategy: the first row containing all three required headers wins.
    Title rows or blank rows above the header are tolerated.

    Returns:
        (header_row_index, {'phrase': col, 'url': col, 'anchor': col})

    Raises CatalogLoadError naming the missing headers (judged against the
    scanned row that had the most of them).
    """
    best_row, best_positions = 0, {}
    for i in range(min(HEADER_SCAN_ROWS, len(df_raw))):
        cells = [str(v) for v in df_raw.iloc[i].values]
        positions = _locate_columns(cells)
        if len(positions) == len(REQUIRED_COLUMNS):
            return i, positions
        if len(positions) > len(best_positions):
            best_row, best_positions = i, positions

    headers = [str(v).strip() for v in df_raw.iloc[best_row].values]
    raise CatalogLoadError(_missing_columns_message(headers, best_positions))


def parse_catalog_table(df_raw: pd.DataFrame) -> pd.DataFrame:
    """
    Turn a raw grid into a DataFrame with 'phrase', 'url', 'anchor' columns.

    Rows above and including the detected header row are dropped; every
    other column is ignored.
    """
    header_row, positions = detect_header_row(df_raw)
    body = df_raw.iloc[header_row + 1:]

    df = pd.DataFrame({
        col: body.iloc[:, pos].astype(str).values
        for col, pos in positions.items()
    }, columns=['phrase', 'url', 'anchor'])

    if df.empty:
        raise CatalogLoadError("The catalog has a header row but no data rows.")

    return df.reset_index(drop=True)


# ---------------------------------------------------------------------------
# Cleaning & indexing
# ---------------------------------------------------------------------------

def load_and_clean_catalog(df_rows: pd.DataFrame) -> Tuple[pd.DataFrame, Dict]:
    """
    Clean parsed catalog rows:
        1. Normalize the phrase, trim URL and anchor text
        2. Drop rows whose normalized phrase, URL or anchor is empty
           (an all-punctuation phrase like '---' normalizes to '' and is dropped)
        3. Assign stable ids in load order and split phrases into keywords

    Returns:
        - Cleaned DataFrame with columns: id, phrase, normalized_phrase,
          keywords, url, anchor
        - Stats dict: original, dropped, final
    """
    df = df_rows.copy()
    original_count = len(df)

    df['normalized_phrase'] = df['phrase'].apply(normalize_text)
    df['url'] = df['url'].fillna('').astype(str).str.strip()
    df['anchor'] = df['anchor'].fillna('').astype(str).str.strip()

    usable = (df['normalized_phrase'] != '') & (df['url'] != '') & (df['anchor'] != '')
    df = df[usable].reset_index(drop=True)
    dropped = original_count - len(df)
    if dropped:
        logger.debug("Dropped %d catalog rows with empty phrase, URL or anchor", dropped)

    df.insert(0, 'id', range(len(df)))
    df['keywords'] = df['normalized_phrase'].apply(tokenize)
    df = df[['id', 'phrase', 'normalized_phrase', 'keywords', 'url', 'anchor']]

    stats = {
        'original': original_count,
        'dropped': dropped,
        'final': len(df),
    }
    return df, stats


def build_catalog_index(df_clean: pd.DataFrame) -> Dict:
    """
    Build the in-memory catalog the matcher works on.

    Returns dict:
        'entries':            [entry dicts, position == id]
        'lookup':             normalized_phrase → [entry ids] (several rows may
                              share a phrase, e.g. one phrase linking to two PLPs)
        'single_keyword_ids': ids of one-word entries (fallback pass candidates)
    """
    entries = []
    lookup = {}
    single_keyword_ids = []

    for _, row in df_clean.iterrows():
        entry = {
            'id': int(row['id']),
            'normalized_phrase': row['normalized_phrase'],
            'keywords': list(row['keywords']),
            'url': row['url'],
            'anchor': row['anchor'],
        }
        entries.append(entry)
        lookup.setdefault(entry['normalized_phrase'], []).append(entry['id'])
        if len(entry['keywords']) == 1:
            single_keyword_ids.append(entry['id'])

    return {
        'entries': entries,
        'lookup': lookup,
        'single_keyword_ids': single_keyword_ids,
    }


def load_catalog(file, filename: Optional[str] = None) -> Tuple[Dict, pd.DataFrame, Dict]:
    """
    Full load: read → parse → clean → index.

    Returns (catalog, df_clean, stats). Raises CatalogLoadError if the file
    is unreadable, lacks a required column, or leaves no usable rows.
    """
    try:
        df_rows = parse_catalog_table(read_catalog_file(file, filename))
    except CatalogLoadError as e:
        logger.warning("Catalog load failed: %s", e)
        raise

    df_clean, stats = load_and_clean_catalog(df_rows)
    if stats['final'] == 0:
        logger.warning("Catalog load failed: all %d rows were unusable", stats['original'])
        raise CatalogLoadError(
            f"No usable rows: all {stats['original']} rows have an empty phrase, URL or anchor."
        )

    catalog = build_catalog_index(df_clean)
    logger.info(
        "Loaded catalog: %d phrases (%d of %d rows dropped)",
        stats['final'], stats['dropped'], stats['original'],
    )
    return catalog, df_clean, stats


def load_catalog_into_session(session, file, filename: Optional[str] = None,
                              source_key=None) -> Optional[str]:
    """
    Swap a freshly loaded catalog into `session` (st.session_state or a dict).

    On success 'catalog', 'catalog_df', 'catalog_stats' and 'catalog_source'
    are replaced together and the previous run is discarded. On failure the
    session is left untouched and the error message is returned.
    A `source_key` equal to the loaded one skips the reload.
    """
    if source_key is not None and session.get('catalog_source') == source_key:
        return None

    try:
        catalog, df_clean, stats = load_catalog(file, filename)
    except CatalogLoadError as e:
        return str(e)

    session['catalog'] = catalog
    session['catalog_df'] = df_clean
    session['catalog_stats'] = stats
    session['catalog_source'] = source_key
    session.pop('last_run', None)
    return None
