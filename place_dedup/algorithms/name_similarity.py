#!/usr/bin/env python3
"""
Place Deduplication — Fuzzy Name Matching

Computes similarity scores between place names captured from different
sources (screenshots, imports, manual entry).  Three complementary measures
are computed on the normalised names and the best one wins:

    - Normalised Levenshtein distance  (typos, transliteration, accents)
    - Greedy fuzzy word overlap        (partial names, extra words)
    - Token-set Jaccard index          (reordered or decorated names)

No single measure handles both "Sagrada Familia" vs "Basílica de la Sagrada
Família" and "Café Münchën" vs "Cafe Munchen", so taking the maximum favours
recall; the other scoring factors keep false positives in check.

Dependencies:
    pip install rapidfuzz
"""

from __future__ import annotations

import re
import unicodedata
from functools import lru_cache
from typing import TYPE_CHECKING

from rapidfuzz.distance import Levenshtein

if TYPE_CHECKING:
    from .place import Place


# ---------------------------------------------------------------------------
# Locale naming noise
# ---------------------------------------------------------------------------

# Leading articles and religious-site prefixes (one is stripped)
_STRIP_PREFIXES = [
    "the",
    "la",
    "le",
    "el",
    "basilica de",
    "basílica de",
    "church of",
    "cathedral of",
    "temple of",
]

# Trailing building-type words (one is stripped)
_STRIP_SUFFIXES = [
    "church",
    "cathedral",
    "basilica",
    "basílica",
    "temple",
    "mosque",
]

_PREFIX_RE = re.compile(r"^(?:" + "|".join(_STRIP_PREFIXES) + r")\s+", re.IGNORECASE)
_SUFFIX_RE = re.compile(r"\s+(?:" + "|".join(_STRIP_SUFFIXES) + r")$", re.IGNORECASE)
_NON_WORD = re.compile(r"[^\w\s-]")
_EDGE_HYPHEN = re.compile(r"(?<!\w)-+|-+(?!\w)")
_MULTI_SPACE = re.compile(r"\s+")

# Word-overlap pairs two words when their edit similarity exceeds this
WORD_MATCH_THRESHOLD = 0.8

# Token-set similarity only counts words longer than this
MIN_TOKEN_LENGTH = 2


def normalize_name(name: str | None) -> str:
    """
    Normalize a place name for comparison.

    Steps:
        1. Lowercase and trim
        2. Strip one leading article / prefix and one trailing building word
        3. Unicode NFKD normalisation (strip accents)
        4. Remove punctuation, keeping hyphens inside words
        5. Collapse whitespace and trim
    """
    if not name:
        return ""

    text = name.lower().strip()
    text = _PREFIX_RE.sub("", text)
    text = _SUFFIX_RE.sub("", text)

    # Unicode normalise, dropping combining marks (accents)
    text = unicodedata.normalize("NFKD", text)
    text = "".join(c for c in text if not unicodedata.combining(c))

    text = _NON_WORD.sub("", text)
    text = _EDGE_HYPHEN.sub(" ", text)
    text = _MULTI_SPACE.sub(" ", text).strip()

    return text


@lru_cache(maxsize=16384)
def _normalized(name: str) -> str:
    """normalize_name, cached across a batch run."""
    return normalize_name(name)


# ---------------------------------------------------------------------------
# Scoring functions
# ---------------------------------------------------------------------------


def levenshtein_similarity(a: str, b: str) -> float:
    """
    Normalised Levenshtein similarity between two strings.

    Returns a value in [0.0, 1.0] where 1.0 means identical.
    """
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    max_len = max(len(a), len(b))
    dist = Levenshtein.distance(a, b)
    return 1.0 - (dist / max_len)


def _greedy_word_matches(words_a: tuple[str, ...], words_b: tuple[str, ...]) -> int:
    used = [False] * len(words_b)
    matched = 0
    for word_a in words_a:
        for i, word_b in enumerate(words_b):
            if not used[i] and levenshtein_similarity(word_a, word_b) > WORD_MATCH_THRESHOLD:
                used[i] = True
                matched += 1
                break
    return matched


def word_overlap_similarity(a: str, b: str) -> float:
    """
    Greedy fuzzy word overlap: 2 × matched pairs / total word count.

    Each word of one string is paired with the first unused word of the other
    whose edit similarity exceeds ``WORD_MATCH_THRESHOLD``.  Pairing is run in
    both directions and the larger count kept, so the score is symmetric.

    Returns a value in [0.0, 1.0].
    """
    words_a = tuple(a.split())
    words_b = tuple(b.split())

    if not words_a and not words_b:
        return 1.0
    if not words_a or not words_b:
        return 0.0

    matched = max(
        _greedy_word_matches(words_a, words_b),
        _greedy_word_matches(words_b, words_a),
    )
    return (2 * matched) / (len(words_a) + len(words_b))


def token_set_similarity(a: str, b: str) -> float:
    """
    Jaccard index over the sets of words longer than two characters.

    Short words ("la", "de", "st") carry little identity, so
    "la sagrada familia" and "sagrada familia" score 1.0.

    Returns a value in [0.0, 1.0].
    """
    tokens_a = {w for w in a.split() if len(w) > MIN_TOKEN_LENGTH}
    tokens_b = {w for w in b.split() if len(w) > MIN_TOKEN_LENGTH}

    if not tokens_a and not tokens_b:
        return 1.0
    if not tokens_a or not tokens_b:
        return 0.0

    return len(tokens_a & tokens_b) / len(tokens_a | tokens_b)


def compute_name_similarity(name_a: str | None, name_b: str | None) -> dict[str, float | str]:
    """
    Compute a name-similarity breakdown between two place names.

    Parameters
    ----------
    name_a, name_b : str
        Raw place names (pre-normalisation is handled internally).

    Returns
    -------
    dict with keys:
        - name_a_normalized, name_b_normalized: the cleaned names
        - levenshtein: float [0–1]
        - word_overlap: float [0–1]
        - token_set: float [0–1]
        - score: ``name_similarity`` — the maximum of the three, float [0–1]
    """
    norm_a = _normalized(name_a) if name_a else ""
    norm_b = _normalized(name_b) if name_b else ""

    lev = levenshtein_similarity(norm_a, norm_b)
    words = word_overlap_similarity(norm_a, norm_b)
    tset = token_set_similarity(norm_a, norm_b)

    return {
        "name_a_normalized": norm_a,
        "name_b_normalized": norm_b,
        "levenshtein": lev,
        "word_overlap": words,
        "token_set": tset,
        "score": name_similarity(name_a, name_b),
    }


def name_similarity(name_a: str | None, name_b: str | None) -> float:
    """
    Return the best name similarity score (0.0–1.0).

    Empty vs empty is 1.0; empty vs non-empty is 0.0.
    """
    if not name_a and not name_b:
        return 1.0
    if not name_a or not name_b:
        return 0.0

    norm_a = _normalized(name_a)
    norm_b = _normalized(name_b)
    if norm_a == norm_b:
        return 1.0

    return max(
        levenshtein_similarity(norm_a, norm_b),
        word_overlap_similarity(norm_a, norm_b),
        token_set_similarity(norm_a, norm_b),
    )


# ---------------------------------------------------------------------------
# Convenience helpers
# ---------------------------------------------------------------------------


def names_are_similar(
    name_a: str | None,
    name_b: str | None,
    threshold: float = 0.80,
) -> bool:
    """Return True if the two names reach the similarity threshold."""
    return name_similarity(name_a, name_b) >= threshold


def alt_name_similarity(place_a: "Place", place_b: "Place") -> float:
    """
    Best name similarity across every known name of both places.

    Compares the cross product of ``[name, *alt_names]`` from each side, so an
    alias recorded on either place can upgrade a match whose primary names
    differ.
    """
    best = 0.0
    for name_a in place_a.all_names:
        for name_b in place_b.all_names:
            best = max(best, name_similarity(name_a, name_b))
            if best == 1.0:
                return best
    return best
