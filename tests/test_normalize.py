import pytest

from phrase_normalize import MAX_WINDOW, generate_ngrams, normalize_text, tokenize

NORMALIZE_CASES = [
    ("Soft-Cotton!", "soft cotton"),
    ("  Pink   DUPATTA  ", "pink dupatta"),
    ("Kurta's", "kurta s"),
    ("100% Silk", "100 silk"),
    ("Off_White Stole", "off white stole"),
    ("tab\tnew\nline", "tab new line"),
    ("Café Latte", "caf latte"),       # non-ASCII letters are separators
    ("!!!", ""),
    ("", ""),
    (None, ""),
    (float("nan"), ""),                # empty pandas cell
]


@pytest.mark.parametrize("text,expected", NORMALIZE_CASES)
def test_normalize_text(text, expected):
    assert normalize_text(text) == expected


@pytest.mark.parametrize("text,_", NORMALIZE_CASES)
def test_normalize_is_idempotent(text, _):
    once = normalize_text(text)
    assert normalize_text(once) == once


def test_tokenize_drops_empty_tokens():
    assert tokenize("") == []
    assert tokenize("soft cotton") == ["soft", "cotton"]


def test_ngrams_longest_first_left_to_right():
    tokens, ngrams = generate_ngrams("soft cotton scarf")
    assert tokens == ["soft", "cotton", "scarf"]
    assert ngrams == [
        "soft cotton scarf",
        "soft cotton", "cotton scarf",
        "soft", "cotton", "scarf",
    ]


def test_ngrams_window_is_capped():
    tokens, ngrams = generate_ngrams("a b c d e f")
    assert len(tokens) == 6
    assert ngrams[0] == "a b c d"
    assert max(len(g.split()) for g in ngrams) == MAX_WINDOW
    # 3 four-grams + 4 trigrams + 5 bigrams + 6 unigrams
    assert len(ngrams) == 18


def test_ngrams_suppress_repeated_windows():
    _, ngrams = generate_ngrams("a b a b")
    assert ngrams == ["a b a b", "a b a", "b a b", "a b", "b a", "a", "b"]

    _, ngrams = generate_ngrams("red red")
    assert ngrams == ["red red", "red"]


def test_ngrams_custom_window_and_empty_input():
    _, ngrams = generate_ngrams("soft cotton scarf", max_window=1)
    assert ngrams == ["soft", "cotton", "scarf"]
    assert generate_ngrams("") == ([], [])
