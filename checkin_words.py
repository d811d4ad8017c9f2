"""Free-text word normalization shared by the word cloud and the tag counters."""

from __future__ import annotations

import unicodedata
from typing import Iterable

DEFAULT_LOCALE = "en"

STOPWORDS: dict[str, frozenset[str]] = {
    "en": frozenset(
        ["the", "a", "an", "and", "or", "is", "are", "to", "of", "in", "on", "for", "it", "i", "you"]
    ),
    "pl": frozenset(["i", "oraz", "a", "to", "na", "w", "z", "że", "się", "jest", "dla", "do"]),
}

_KEPT_PUNCTUATION = frozenset("-'")


def resolve_locale(locale: str | None, table: dict) -> str:
    """Pick the key of *table* to use for *locale*.

    Tries the full identifier ("pl-PL"), then its language part ("pl"),
    then DEFAULT_LOCALE.
    """
    if locale:
        candidate = locale.replace("_", "-").lower()
        if candidate in table:
            return candidate
        language = candidate.split("-", 1)[0]
        if language in table:
            return language
    return DEFAULT_LOCALE


def register_stopwords(locale: str, words: Iterable[str]) -> None:
    """Add or replace the stopword set for *locale*.

    Words are stored normalized so lookups match normalize_word output.
    """
    normalized = (normalize_word(w) for w in words)
    STOPWORDS[locale.replace("_", "-").lower()] = frozenset(w for w in normalized if w)


def stopwords_for(locale: str | None) -> frozenset[str]:
    return STOPWORDS.get(resolve_locale(locale, STOPWORDS), frozenset())


def normalize_word(word: str) -> str:
    """Lowercase *word* and strip everything but letters, digits, - and '.

    Letters and digits are any Unicode letter (L*) or number (N*)
    category, so "Zażółć" keeps its diacritics and "Calm!" becomes "calm".
    """
    return "".join(
        ch
        for ch in word.lower()
        if ch in _KEPT_PUNCTUATION or unicodedata.category(ch)[0] in ("L", "N")
    )


def normalize_words_for_cloud(words: Iterable[str], locale: str | None) -> list[str]:
    """Normalize *words* and drop empties and stopwords, keeping input order.

    Args:
        words: Raw tokens as entered by the user.
        locale: Viewer locale used to choose the stopword set.

    Returns:
        Surviving normalized words in their original order.
    """
    stopwords = stopwords_for(locale)
    result: list[str] = []
    for raw in words:
        word = normalize_word(raw)
        if word and word not in stopwords:
            result.append(word)
    return result


def split_words(text: str) -> list[str]:
    """Split a free-text entry on whitespace, dropping empty tokens."""
    return text.split()
