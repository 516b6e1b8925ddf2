"""Duplicate-name detection for the canonical name registries."""

from .resolution import InvalidResolution, ResolutionChoice, SaveCancelled, choice_for, resolve_duplicate
from .similarity import (
    SIMILARITY_THRESHOLD,
    build_duplicate_candidate,
    find_similar,
    levenshtein_distance,
    normalize,
    similarity,
)
from .types import CanonicalNameEntry, DuplicateCandidate

__all__ = [
    "CanonicalNameEntry",
    "DuplicateCandidate",
    "InvalidResolution",
    "ResolutionChoice",
    "SIMILARITY_THRESHOLD",
    "SaveCancelled",
    "build_duplicate_candidate",
    "choice_for",
    "find_similar",
    "levenshtein_distance",
    "normalize",
    "resolve_duplicate",
    "similarity",
]
