"""
Micro-benchmark for the phrase matching engine.

Tests:
1. normalize_text() / generate_ngrams() on typical PDP titles
2. load_and_clean_catalog() + build_catalog_index() on a synthetic 10k catalog
3. match_title() end-to-end on 1k synthetic titles, both strategies

Usage:
    python scripts/benchmark_matcher.py
"""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
import time
import numpy as np
import pandas as pd
from phrase_catalog import build_catalog_index, load_and_clean_catalog
from phrase_matcher import MATCH_STRATEGIES, match_title
from phrase_normalize import generate_ngrams, normalize_text

FABRICS = ['Cotton', 'Soft Cotton', 'Silk', 'Georgette', 'Chiffon', 'Linen', 'Rayon']
COLOURS = ['Pink', 'Red', 'Navy Blue', 'Mustard', 'Off-White', 'Black', 'Sea Green']
PRODUCTS = ['Dupatta', 'Kurta', 'Saree', 'Scarf', 'Stole', 'Anarkali Suit', 'Lehenga']
EXTRAS = ['', ' with Tassels', ' - Hand Block Print', ' (Set of 2)', ' for Women']


def generate_synthetic_catalog(n_rows: int = 10000) -> pd.DataFrame:
    """Generate synthetic catalog rows (phrase, url, anchor) for benchmarking."""
    data = []
    for i in range(n_rows):
        parts = np.random.choice([
            np.random.choice(FABRICS),
            np.random.choice(COLOURS),
            np.random.choice(PRODUCTS),
        ], size=np.random.randint(1, 4), replace=False)
        phrase = ' '.join(parts)
        data.append({
            'phrase': phrase,
            'url': f'https://example.com/collections/{i % 2000}',
            'anchor': f'{phrase} Collection',
        })
    return pd.DataFrame(data)


def generate_synthetic_titles(n_titles: int = 1000) -> list:
    """Generate synthetic PDP titles."""
    titles = []
    for _ in range(n_titles):
        titles.append(
            f"{np.random.choice(FABRICS)} {np.random.choice(PRODUCTS)} "
            f"in {np.random.choice(COLOURS)}{np.random.choice(EXTRAS)}"
        )
    return titles


def benchmark_function(func, *args, **kwargs):
    """Benchmark a function and return (result, elapsed_ms)."""
    start = time.perf_counter()
    result = func(*args, **kwargs)
    elapsed_ms = (time.perf_counter() - start) * 1000
    return result, elapsed_ms


def benchmark_normalize(n_iterations: int = 10000):
    """Benchmark normalize_text() + generate_ngrams() per title."""
    print("\n" + "="*70)
    print("BENCHMARK: normalize_text() + generate_ngrams()")
    print("="*70)

    for title in generate_synthetic_titles(3):
        start = time.perf_counter()
        for _ in range(n_iterations):
            generate_ngrams(normalize_text(title))
        elapsed_ms = (time.perf_counter() - start) * 1000

        print(f"\nInput: {title}")
        print(f"  Total: {elapsed_ms:.2f}ms ({n_iterations} calls)")
        print(f"  Per call: {elapsed_ms * 1000 / n_iterations:.2f}μs")


def benchmark_catalog_index():
    """Benchmark catalog cleaning + indexing on 10k rows."""
    print("\n" + "="*70)
    print("BENCHMARK: load_and_clean_catalog() + build_catalog_index() - 10k rows")
    print("="*70)

    df_rows = generate_synthetic_catalog(10000)
    (df_clean, stats), clean_time = benchmark_function(load_and_clean_catalog, df_rows)
    catalog, index_time = benchmark_function(build_catalog_index, df_clean)

    print(f"  Cleanup: {clean_time:.2f}ms ({stats['final']} kept, {stats['dropped']} dropped)")
    print(f"  Index: {index_time:.2f}ms")
    print(f"  Distinct phrases: {len(catalog['lookup'])}")
    print(f"  One-word entries: {len(catalog['single_keyword_ids'])}")
    return catalog


def benchmark_match_title(catalog: dict):
    """Benchmark match_title() on 1k titles for every strategy."""
    titles = generate_synthetic_titles(1000)

    for strategy in MATCH_STRATEGIES:
        print("\n" + "="*70)
        print(f"BENCHMARK: match_title() - 1k titles, strategy={strategy}")
        print("="*70)

        start = time.perf_counter()
        link_counts = [len(match_title(t, catalog, strategy)['matches']) for t in titles]
        elapsed_ms = (time.perf_counter() - start) * 1000

        print(f"  Matching time: {elapsed_ms:.2f}ms")
        print(f"  Per-title time: {elapsed_ms / len(titles):.3f}ms")
        print(f"  Avg links per title: {np.mean(link_counts):.1f}")


def main():
    print("="*70)
    print("PHRASE MATCHER PERFORMANCE BENCHMARK")
    print("="*70)

    benchmark_normalize()
    catalog = benchmark_catalog_index()
    benchmark_match_title(catalog)

    print("\n" + "="*70)
    print("BENCHMARK COMPLETE")
    print("="*70)


if __name__ == '__main__':
    main()
