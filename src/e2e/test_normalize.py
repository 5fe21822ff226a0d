import pytest

from docsearch.errors import IndexBuildError
from docsearch.normalize import (
    find_on_boundary,
    normalize_label,
    normalize_query,
    strip_markup,
    tokens,
    word_starts,
)


def test_key_is_lowercased_and_symbols_are_encoded():
    n = normalize_label("Why <em>LambLisp</em>?")
    assert n.display == "Why LambLisp?"
    assert n.key == "why_20lamblisp_3f"


def test_distinct_punctuation_never_collapses():
    assert normalize_label("C/C++").key == "c_2fc_2b_2b"
    assert normalize_label("C C").key == "c_20c"
    assert normalize_label("C/C++").key != normalize_label("C C").key
    assert normalize_label("a_b").key != normalize_label("a b").key


def test_whitespace_is_collapsed_and_trimmed():
    assert normalize_label("  Lexical \t  scoping ").key == normalize_label("Lexical scoping").key


def test_same_label_same_key():
    a = normalize_label("Tail recursion and tail-calls")
    b = normalize_label("Tail recursion and tail-calls")
    assert a.key == b.key and a.key_to_display == b.key_to_display


@pytest.mark.parametrize("raw", ["", "   ", "<em></em>", " <b> </b> "])
def test_empty_labels_are_rejected(raw):
    with pytest.raises(IndexBuildError):
        normalize_label(raw)


def test_markup_stripped_before_entities_decoded():
    assert strip_markup("Objects are <em>hierarchical</em>") == "Objects are hierarchical"
    assert strip_markup("The &lt;em&gt;dictionary&lt;/em&gt; type") == "The <em>dictionary</em> type"
    assert strip_markup("a &amp; b") == "a & b"


def test_non_ascii_letters_are_encoded_per_byte():
    n = normalize_label("Café")
    assert n.key == "caf_c3_a9"
    # both escape bytes point at the same display char
    assert {n.key_to_display[i] for i in range(3, len(n.key))} == {3}
    assert normalize_label("CAFÉ").key == n.key


def test_key_to_display_points_into_display_label():
    n = normalize_label("Why <em>LambLisp</em>?")
    start = n.key.index("lamblisp")
    assert n.display[n.key_to_display[start]] == "L"
    assert n.display[n.key_to_display[start + 7]] == "p"


def test_query_keeps_one_trailing_separator():
    assert normalize_query("data") == "data"
    assert normalize_query("  Data   ") == "data_20"
    assert normalize_query("   ") == ""


def test_tokens_split_escapes():
    assert tokens("c_2fc") == ["c", "_2f", "c"]
    assert tokens("") == []


def test_find_on_boundary_skips_matches_inside_escapes():
    key = normalize_label("C/C").key       # c_2fc
    assert find_on_boundary(key, "2f") == -1
    assert find_on_boundary(key, "_2fc") == 1
    assert find_on_boundary("ab_2fab", "ab") == 0


def test_word_starts():
    n = normalize_label("Objects are wrappers")
    assert [n.key[i:] for i in word_starts(n)] == ["are_20wrappers", "wrappers"]
    # an accented letter does not split a word
    assert word_starts(normalize_label("naïve")) == []
    # symbols do
    assert [normalize_label("C/C++").key[i:] for i in word_starts(normalize_label("C/C++"))] == ["c_2b_2b"]
