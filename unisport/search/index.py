"""Fuzzy course search over name, description and venue names."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from difflib import SequenceMatcher
from typing import Iterable, Mapping

from unisport.data.models import Course

logger = logging.getLogger("unisport")

# Shorter terms do not filter at all
MIN_TERM_LENGTH = 3

DEFAULT_THRESHOLD = 0.3
DEFAULT_WEIGHTS: dict[str, float] = {
    "name": 1.0,
    "description": 0.5,
    "location": 0.3,
}

_WORD = re.compile(r"\w+")


def _words(text: str) -> list[str]:
    return _WORD.findall(text.lower())


def is_search_term(term: str) -> bool:
    """True if *term* is long enough to restrict results."""
    return len(term) >= MIN_TERM_LENGTH


@dataclass
class _Field:
    weight: float
    text: str
    words: list[str]


class SearchIndex:
    """Weighted fuzzy index over a fixed list of courses.

    A field matches when the term, or a run of as many consecutive words
    of the field as the term has words, is at least ``1 - threshold``
    similar by :class:`difflib.SequenceMatcher` ratio.  A course matches
    when any of its fields does; its score is the best ``weight *
    similarity`` over matching fields.

    The index is built once per load and never updated.
    """

    def __init__(
        self,
        courses: Iterable[Course],
        weights: Mapping[str, float] | None = None,
        threshold: float = DEFAULT_THRESHOLD,
    ) -> None:
        self.weights = {**DEFAULT_WEIGHTS, **(weights or {})}
        self.threshold = threshold
        self._courses = list(courses)
        self._fields = [self._fields_for(course) for course in self._courses]

    def __len__(self) -> int:
        return len(self._courses)

    def _fields_for(self, course: Course) -> list[_Field]:
        texts = [
            (self.weights["name"], course.name),
            (self.weights["description"], course.description),
        ]
        seen: set[str] = set()
        for slot in course.slots:
            if slot.location is not None and slot.location.name not in seen:
                seen.add(slot.location.name)
                texts.append((self.weights["location"], slot.location.name))
        return [
            _Field(weight=weight, text=text.lower(), words=_words(text))
            for weight, text in texts
            if text
        ]

    def _similarity(self, matcher: SequenceMatcher, term: str, n_words: int, field: _Field) -> float:
        if term in field.text:
            return 1.0
        cutoff = 1.0 - self.threshold
        best = 0.0
        for start in range(max(len(field.words) - n_words + 1, 1)):
            window = " ".join(field.words[start:start + n_words])
            matcher.set_seq1(window)
            # Cheap upper bounds first, as difflib.get_close_matches does
            if (
                matcher.real_quick_ratio() >= cutoff
                and matcher.quick_ratio() >= cutoff
            ):
                best = max(best, matcher.ratio())
                if best == 1.0:
                    break
        return best

    def score(self, term: str) -> list[tuple[float, Course]]:
        """Return ``(score, course)`` for every matching course, best first."""
        words = _words(term)
        if not words:
            return []
        normalized = " ".join(words)
        matcher = SequenceMatcher(autojunk=False)
        matcher.set_seq2(normalized)
        cutoff = 1.0 - self.threshold

        scored: list[tuple[float, int, Course]] = []
        for position, (course, fields) in enumerate(zip(self._courses, self._fields)):
            best = 0.0
            for field in fields:
                similarity = self._similarity(matcher, normalized, len(words), field)
                if similarity >= cutoff:
                    best = max(best, field.weight * similarity)
            if best > 0.0:
                scored.append((best, position, course))

        scored.sort(key=lambda item: (-item[0], item[1]))
        return [(s, course) for s, _, course in scored]

    def search(self, term: str) -> list[Course]:
        """Courses matching *term*, best match first.

        Terms shorter than :data:`MIN_TERM_LENGTH` return every course in
        index order.
        """
        if not is_search_term(term):
            return list(self._courses)
        results = [course for _, course in self.score(term)]
        logger.debug("Search", extra={"term": term, "matches": len(results)})
        return results

    def matching_ids(self, term: str) -> set[str] | None:
        """Ids of courses matching *term*, or None if the term is too short."""
        if not is_search_term(term):
            return None
        return {course.id for course in self.search(term)}


def build_index(
    courses: Iterable[Course],
    weights: Mapping[str, float] | None = None,
    threshold: float = DEFAULT_THRESHOLD,
) -> SearchIndex:
    """Build a :class:`SearchIndex` over *courses*."""
    return SearchIndex(courses, weights=weights, threshold=threshold)
