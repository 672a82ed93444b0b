"""Free-text filtering of the exercise library for program authoring."""

import re
from typing import List

from typedefs import Exercise

RESULT_LIMIT = 20
MATCH_LIMIT = 50
FETCH_LIMIT = 2000

WHITESPACE_RE = re.compile(r"\s+")
PUNCTUATION_RE = re.compile(r"[()\[\]{}.,/\\-]")


def normalize_search(value: str) -> str:
    """Lowercase and drop whitespace and bracket/separator punctuation."""
    return PUNCTUATION_RE.sub("", WHITESPACE_RE.sub("", value.lower()))


def normalize_option(exercise: Exercise) -> Exercise:
    """Fill effects from the legacy singular column when only that is set."""
    if exercise.effects is None and exercise.effect is not None:
        return exercise.model_copy(update={"effects": exercise.effect})
    return exercise


def _matches(text: str, query: str, normalized_query: str) -> bool:
    if query in text:
        return True
    if query.lower() in text.lower():
        return True
    return normalized_query in normalize_search(text)


def filter_exercises(candidates: List[Exercise], query: str) -> List[Exercise]:
    """Return candidates whose name or an alias contains query.

    Input order is kept; there is no relevance ranking.
    """
    trimmed = query.strip()
    if not trimmed:
        return candidates[:RESULT_LIMIT]

    normalized = normalize_search(trimmed)
    matches = []
    for exercise in candidates:
        haystack = [exercise.name, *(exercise.aliases or [])]
        if any(text and _matches(text, trimmed, normalized) for text in haystack):
            matches.append(exercise)
            if len(matches) >= MATCH_LIMIT:
                break
    return matches
