"""Fuzzy duplicate-name detection for supplier, material and product names.

Names are compared after removing all whitespace and lower-casing. A pair
scores 1.0 when the normalized strings are equal, 0.8 when one contains the
other and ``1 - distance / longest`` otherwise, where ``distance`` is the
Levenshtein edit distance. Entries scoring at least 0.7 are reported, except
exact (normalized) matches, which are reuses of the same name.
"""

from __future__ import annotations

import re
from typing import Sequence

from .types import CanonicalNameEntry, DuplicateCandidate


SIMILARITY_THRESHOLD = 0.7
CONTAINMENT_SCORE = 0.8
MIN_CANDIDATE_LENGTH = 2
DEFAULT_RESULT_LIMIT = 5

# Float slack so 1 - 3/10 still counts as 0.7.
_EPSILON = 1e-9

_WHITESPACE_RE = re.compile(r"\s+")


def normalize(value: str) -> str:
    return _WHITESPACE_RE.sub("", value).lower()


def levenshtein_distance(a: str, b: str) -> int:
    """Classic dynamic-programming edit distance.

    ``track[j][i]`` holds the distance between the first ``i`` characters of
    ``a`` and the first ``j`` characters of ``b``.
    """
    track = [[0] * (len(a) + 1) for _ in range(len(b) + 1)]
    for i in range(len(a) + 1):
        track[0][i] = i
    for j in range(len(b) + 1):
        track[j][0] = j

    for j in range(1, len(b) + 1):
        for i in range(1, len(a) + 1):
            indicator = 0 if a[i - 1] == b[j - 1] else 1
            track[j][i] = min(
                track[j][i - 1] + 1,
                track[j - 1][i] + 1,
                track[j - 1][i - 1] + indicator,
            )
    return track[len(b)][len(a)]


def similarity(a: str, b: str) -> float:
    s1 = normalize(a)
    s2 = normalize(b)

    if s1 == s2:
        return 1.0
    if s1 in s2 or s2 in s1:
        return CONTAINMENT_SCORE

    distance = levenshtein_distance(s1, s2)
    return 1 - distance / max(len(s1), len(s2))


def is_similar(score: float) -> bool:
    return score + _EPSILON >= SIMILARITY_THRESHOLD


def find_similar(candidate: str, existing: Sequence[CanonicalNameEntry]) -> list[CanonicalNameEntry]:
    """Return the existing entries close enough to ``candidate`` to warn about.

    Candidates shorter than two characters (ignoring whitespace) are never
    checked. The result keeps the input order and is not truncated.
    """
    normalized = normalize(candidate)
    if len(normalized) < MIN_CANDIDATE_LENGTH:
        return []

    matches: list[CanonicalNameEntry] = []
    for entry in existing:
        if normalize(entry.name) == normalized:
            continue
        if is_similar(similarity(candidate, entry.name)):
            matches.append(entry)
    return matches


def build_duplicate_candidate(
    candidate: str,
    existing: Sequence[CanonicalNameEntry],
    limit: int = DEFAULT_RESULT_LIMIT,
    entity_type: str | None = None,
) -> DuplicateCandidate:
    similar = find_similar(candidate, existing)
    return DuplicateCandidate(
        input_name=candidate,
        similar_items=similar[:limit],
        entity_type=entity_type,
    )
