"""
Unit tests for term autocorrection.
"""

from oceanmd.autocorrect import TermCorrector, load_terms


class TestTermCorrector:
    """Tests for TermCorrector class."""

    def test_bundled_terms(self):
        """Test that the bundled term list loads."""
        terms = load_terms()
        assert "Bahá’í" in terms
        assert "Bahá’u’lláh" in terms

    def test_variants_corrected(self):
        """Test plain and straight-apostrophe spellings."""
        corrector = TermCorrector(["Bahá’u’lláh"])
        text, diff = corrector.correct("Bahaullah and Baha'u'llah")
        assert text == "Bahá’u’lláh and Bahá’u’lláh"
        assert diff == ["Bahaullah → Bahá’u’lláh", "Baha'u'llah → Bahá’u’lláh"]

    def test_canonical_spelling_not_reported(self):
        """Test that correct spellings produce no diff."""
        corrector = TermCorrector(["Báb"])
        text, diff = corrector.correct("The Báb")
        assert text == "The Báb"
        assert diff == []

    def test_whole_words_only(self):
        """Test that terms inside longer words are left alone."""
        corrector = TermCorrector(["Báb"])
        text, _ = corrector.correct("Babylon Bab")
        assert text == "Babylon Báb"

    def test_hyphen_or_space(self):
        """Test that a space may stand in for a hyphen."""
        corrector = TermCorrector(["Naw-Rúz"])
        text, _ = corrector.correct("Naw Ruz")
        assert text == "Naw-Rúz"

    def test_longest_term_first(self, corrector):
        """Test that compound names win over their parts."""
        text, _ = corrector.correct("Abdu'l-Baha spoke.")
        assert text == "‘Abdu’l-Bahá spoke."

    def test_correct_name_strips_underlines(self, empty_corrector):
        """Test that underline markers are removed from names."""
        assert empty_corrector.correct_name("S_hoghi") == "Shoghi"
