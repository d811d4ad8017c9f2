"""Tests for checkin_words.py."""

import pytest

import checkin_words
from checkin_words import (
    normalize_word,
    normalize_words_for_cloud,
    register_stopwords,
    resolve_locale,
    split_words,
    stopwords_for,
)


class TestNormalizeWord:
    def test_lowercases_and_strips_punctuation(self):
        assert normalize_word("Calm!") == "calm"
        assert normalize_word("(Focused),") == "focused"

    def test_keeps_hyphen_and_apostrophe(self):
        assert normalize_word("Well-Rested") == "well-rested"
        assert normalize_word("Don't") == "don't"

    def test_keeps_unicode_letters_and_digits(self):
        assert normalize_word("Zażółć") == "zażółć"
        assert normalize_word("24h") == "24h"

    def test_drops_emoji_and_symbols(self):
        assert normalize_word("happy🙂") == "happy"

    def test_punctuation_only_becomes_empty(self):
        assert normalize_word("...!?") == ""


class TestNormalizeWordsForCloud:
    def test_removes_english_stopwords(self):
        assert normalize_words_for_cloud(["Calm!", "and", "Hopeful"], "en") == ["calm", "hopeful"]

    def test_removes_polish_stopwords(self):
        assert normalize_words_for_cloud(["Spokój", "i", "się", "radość"], "pl") == ["spokój", "radość"]

    def test_drops_empties_and_keeps_order(self):
        assert normalize_words_for_cloud(["tired", "!!", "Calm", "tired"], "en") == ["tired", "calm", "tired"]

    def test_stopword_after_normalization(self):
        assert normalize_words_for_cloud(["The,", "IT"], "en") == []

    def test_region_locale_falls_back_to_language(self):
        assert normalize_words_for_cloud(["oraz", "dobrze"], "pl-PL") == ["dobrze"]

    def test_unknown_locale_uses_english(self):
        assert normalize_words_for_cloud(["the", "calm"], "fr") == ["calm"]


class TestLocaleRegistry:
    @pytest.fixture(autouse=True)
    def _restore_stopwords(self):
        saved = dict(checkin_words.STOPWORDS)
        yield
        checkin_words.STOPWORDS.clear()
        checkin_words.STOPWORDS.update(saved)

    def test_register_new_locale(self):
        register_stopwords("de", ["Und", "der"])
        assert normalize_words_for_cloud(["Ruhig", "und", "der", "müde"], "de") == ["ruhig", "müde"]

    def test_resolve_locale(self):
        assert resolve_locale("PL_pl", checkin_words.STOPWORDS) == "pl"
        assert resolve_locale(None, checkin_words.STOPWORDS) == "en"

    def test_stopwords_for_default(self):
        assert "the" in stopwords_for("en-US")


def test_split_words():
    assert split_words(" calm   hopeful  ") == ["calm", "hopeful"]
    assert split_words("   ") == []
