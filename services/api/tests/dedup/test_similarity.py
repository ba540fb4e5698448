"""
Name similarity tests.

Covers:
- normalization (case, trim, whitespace runs)
- edit distance against known values
- similarity bounds, symmetry, reflexivity, empty input
- business_key suffix stripping
"""

import pytest

from services.api.dedup.similarity import (
    business_key,
    levenshtein,
    normalize,
    similarity,
    similarity_upper_bound,
)


class TestNormalize:
    def test_lowercase_and_trim(self):
        assert normalize("  Smith Family ") == "smith family"

    def test_collapse_whitespace_runs(self):
        assert normalize("smith \t\n  family") == "smith family"

    def test_none_is_empty(self):
        assert normalize(None) == ""


class TestLevenshtein:
    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ("kitten", "sitting", 3),
            ("flaw", "lawn", 2),
            ("", "abc", 3),
            ("abc", "", 3),
            ("same", "same", 0),
            ("gurdwara", "gurudwara", 1),
        ],
    )
    def test_known_distances(self, a, b, expected):
        assert levenshtein(a, b) == expected

    def test_distance_is_symmetric(self):
        assert levenshtein("mehndi", "mehendi artist") == levenshtein("mehendi artist", "mehndi")

    def test_unicode(self):
        assert levenshtein("café", "cafe") == 1
        assert levenshtein("ਸਿੰਘ", "ਸਿੰਘ") == 0


class TestSimilarity:
    def test_identical_is_one(self):
        assert similarity("Royal Banquet Hall", "Royal Banquet Hall") == 1.0

    def test_case_and_whitespace_normalized(self):
        assert similarity("Smith Family", "smith   family") == 1.0

    def test_empty_against_anything_is_zero(self):
        assert similarity("", "anything") == 0.0
        assert similarity("anything", "") == 0.0

    def test_whitespace_only_counts_as_empty(self):
        assert similarity("   ", "anything") == 0.0

    def test_none_counts_as_empty(self):
        assert similarity(None, "anything") == 0.0

    def test_formula(self):
        # kitten -> sitting: distance 3 over length 7
        assert similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)

    def test_suffix_lowers_raw_score(self):
        assert similarity("Elegant Events", "Elegant Events Co") == pytest.approx(1 - 3 / 17)

    @pytest.mark.parametrize(
        "a, b",
        [
            ("Dhol Beats", "Dhol Beatz"),
            ("A", "Completely different"),
            ("Priya Sharma", "Sharma Priya"),
            ("", "x"),
        ],
    )
    def test_symmetric(self, a, b):
        assert similarity(a, b) == similarity(b, a)

    @pytest.mark.parametrize("text", ["x", "Sahil Sound & Lights", "ਗੁਰਦੁਆਰਾ"])
    def test_reflexive(self, text):
        assert similarity(text, text) == 1.0

    def test_always_in_unit_interval(self):
        for a, b in [("a", "bbbbbbbb"), ("abc", "xyz"), ("long name here", "l")]:
            assert 0.0 <= similarity(a, b) <= 1.0

    @pytest.mark.parametrize(
        "a, b",
        [
            ("Dhol Beats", "Dhol Beatz"),
            ("Mehndi by Priya", "Mehendi by Priya"),
            ("ਗੁਰਦੁਆਰਾ", "ਗੁਰਦਵਾਰਾ"),
            ("abc", "xyz"),
        ],
    )
    def test_matches_normalized_edit_distance(self, a, b):
        s1, s2 = normalize(a), normalize(b)
        expected = 1 - levenshtein(s1, s2) / max(len(s1), len(s2))
        assert similarity(a, b) == pytest.approx(expected)

    def test_long_strings_do_not_crash(self):
        a = "a" * 500
        b = "a" * 499 + "b"
        assert similarity(a, b) == pytest.approx(1 - 1 / 500)


class TestUpperBound:
    def test_bounds_actual_score(self):
        pairs = [("kitten", "sitting"), ("abc", "abcdef"), ("wedding", "bedding")]
        for a, b in pairs:
            assert similarity(a, b) <= similarity_upper_bound(len(a), len(b))

    def test_equal_lengths_bound_is_one(self):
        assert similarity_upper_bound(5, 5) == 1.0


class TestBusinessKey:
    def test_strips_trailing_legal_form(self):
        assert business_key("Elegant Events Co") == "elegant events"

    def test_strips_punctuated_suffix(self):
        assert business_key("Elegant Events, Co.") == "elegant events"

    def test_strips_stacked_suffixes(self):
        assert business_key("Sahil & Sons Company LLC") == "sahil sons"

    def test_strips_dotted_llc(self):
        assert business_key("Bay Tents L.L.C.") == "bay tents"

    def test_strips_dotted_llc_without_final_dot(self):
        assert business_key("Bay Tents L.L.C") == "bay tents"

    def test_strips_dotted_lp(self):
        assert business_key("Royal Hall L.P.") == "royal hall"

    def test_spaced_letters_are_not_a_suffix(self):
        assert business_key("A L L C") == "a l l c"
        assert business_key("Studio B L L C") == "studio b l l c"

    def test_only_trailing_tokens(self):
        assert business_key("Co Op Caterers") == "co op caterers"

    def test_never_empties_the_key(self):
        assert business_key("Company") == "company"

    def test_empty(self):
        assert business_key("") == ""
        assert business_key(None) == ""
