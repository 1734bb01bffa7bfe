import os
import sys

import pandas as pd
import pytest

# Modules live flat under src/ (run with `streamlit run src/app.py`)
SRC_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from phrase_catalog import build_catalog_index, load_and_clean_catalog  # noqa: E402


def build_catalog(rows):
    """Catalog from (phrase, url, anchor) tuples, cleaned and indexed like an upload."""
    df = pd.DataFrame(rows, columns=["phrase", "url", "anchor"])
    df_clean, _ = load_and_clean_catalog(df)
    return build_catalog_index(df_clean)


@pytest.fixture
def make_catalog():
    return build_catalog


@pytest.fixture
def dupatta_catalog():
    return build_catalog([
        ("pink dupatta", "https://shop.example/plp/pink-dupattas", "Pink Dupattas"),
        ("cotton", "https://shop.example/plp/cotton", "Cotton Collection"),
        ("soft cotton", "https://shop.example/plp/soft-cotton", "Soft Cotton Edit"),
    ])
