"""
Lexical Search Module - Keyword scoring fallback over raw document text.
=======================================================================

Used when semantic search has nothing to offer. Scoring is driven by data:
- TermCluster rows map a query trigger to extra domain terms
- COMMON_TERMS are always searched
- Query words longer than three characters are searched literally

Units (sentences and paragraphs) are scored, the best ones returned, and a
lenient substring filter runs when nothing scores at all.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from course_advisor.shared.config import get_settings
from course_advisor.shared.logging import get_logger
from course_advisor.shared.schemas import SearchTier

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Rule Tables
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TermCluster:
    """Extra search terms added when a query matches ``trigger``."""

    name: str
    trigger: str
    terms: tuple[str, ...]

    def matches(self, query: str) -> bool:
        return re.search(self.trigger, query, re.IGNORECASE) is not None


TERM_CLUSTERS: tuple[TermCluster, ...] = (
    TermCluster(
        name="planning",
        trigger=r"plan|schedule|pathway",
        terms=("year", "grade", "prerequisite", "requirement", "recommended", "pathway"),
    ),
    TermCluster(
        name="math",
        trigger=r"math|calculus|algebra|geometry",
        terms=("math", "mathematics", "algebra", "geometry", "calculus", "integrated", "prerequisite"),
    ),
    TermCluster(
        name="science",
        trigger=r"science|physics|chemistry|biology",
        terms=("science", "physics", "chemistry", "biology", "laboratory"),
    ),
    TermCluster(
        name="engineering",
        trigger=r"engineering|technology",
        terms=("engineering", "technology", "design", "robotics", "computer"),
    ),
)

COMMON_TERMS: tuple[str, ...] = (
    "course",
    "class",
    "credit",
    "prerequisite",
    "requirement",
    "advanced placement",
    "honors",
)

# Six-digit catalog numbers such as "(100001)"
COURSE_CODE_PATTERN = re.compile(r"\(\d{6}\)")

UNIT_BOUNDARY = re.compile(r"[.!?]\s+|\n\s*\n")


@dataclass
class LexicalConfig:
    """Result limits and scoring weights."""

    top_n: int = 15
    lenient_top_n: int = 8
    proximity_window: int = 50
    min_word_length: int = 4

    pattern_weight: int = 2
    word_weight: int = 1
    proximity_bonus: int = 2
    course_code_bonus: int = 3


# ─────────────────────────────────────────────────────────────────────────────
# Lexical Searcher
# ─────────────────────────────────────────────────────────────────────────────


class LexicalSearcher:
    """
    Scored keyword search with a lenient fallback.

    Example:
        >>> searcher = LexicalSearcher()
        >>> units, tier = searcher.search_with_tier(catalog_text, "math courses")
    """

    def __init__(
        self,
        clusters: Optional[Iterable[TermCluster]] = None,
        common_terms: Optional[Iterable[str]] = None,
        config: Optional[LexicalConfig] = None,
    ):
        if config is None:
            retrieval = get_settings().retrieval
            config = LexicalConfig(
                top_n=retrieval.lexical_top_n,
                lenient_top_n=retrieval.lenient_top_n,
                proximity_window=retrieval.proximity_window,
            )

        self.clusters = tuple(clusters) if clusters is not None else TERM_CLUSTERS
        self.common_terms = tuple(common_terms) if common_terms is not None else COMMON_TERMS
        self.config = config

    # ─────────────────────────────────────────────────────────────────────────
    # Building Blocks
    # ─────────────────────────────────────────────────────────────────────────

    @staticmethod
    def split_units(content: str) -> list[str]:
        """Split text into trimmed, non-empty sentence-like units."""
        return [unit.strip() for unit in UNIT_BOUNDARY.split(content) if unit.strip()]

    @staticmethod
    def query_words(query: str) -> list[str]:
        """Lowercased query words with surrounding punctuation removed."""
        words = (word.strip(".,;:!?\"'()[]") for word in query.lower().split())
        return [word for word in words if word]

    def build_terms(self, query: str) -> list[str]:
        """
        Terms to search for: triggered clusters, common terms, then long query words.

        Duplicates are kept once, in first-seen order.
        """
        terms: list[str] = []
        for cluster in self.clusters:
            if cluster.matches(query):
                terms.extend(cluster.terms)
        terms.extend(self.common_terms)
        terms.extend(
            word for word in self.query_words(query)
            if len(word) >= self.config.min_word_length
        )
        return list(dict.fromkeys(term.lower() for term in terms))

    def build_patterns(self, query: str) -> list[re.Pattern]:
        return [re.compile(re.escape(term), re.IGNORECASE) for term in self.build_terms(query)]

    def score_unit(self, unit: str, patterns: list[re.Pattern], words: list[str]) -> int:
        """Relevance score of one unit."""
        config = self.config
        lowered = unit.lower()
        score = 0

        for pattern in patterns:
            score += config.pattern_weight * len(pattern.findall(unit))

        for i, word in enumerate(words):
            if len(word) < config.min_word_length or word not in lowered:
                continue
            score += config.word_weight

            if i + 1 < len(words):
                next_index = lowered.find(words[i + 1])
                if next_index != -1 and abs(next_index - lowered.find(word)) < config.proximity_window:
                    score += config.proximity_bonus

        if COURSE_CODE_PATTERN.search(unit):
            score += config.course_code_bonus

        return score

    # ─────────────────────────────────────────────────────────────────────────
    # Search Tiers
    # ─────────────────────────────────────────────────────────────────────────

    def scored_search(self, units: list[str], query: str) -> list[str]:
        """Top units with a positive score, best first (ties keep document order)."""
        patterns = self.build_patterns(query)
        words = self.query_words(query)

        scored = [(self.score_unit(unit, patterns, words), unit) for unit in units]
        ranked = sorted(
            (pair for pair in scored if pair[0] > 0),
            key=lambda pair: pair[0],
            reverse=True,
        )
        return [unit for _, unit in ranked[: self.config.top_n]]

    def lenient_search(self, units: list[str], query: str) -> list[str]:
        """Units where some unit word contains a long query word, in document order."""
        words = [w for w in self.query_words(query) if len(w) >= self.config.min_word_length]
        if not words:
            return []

        matches = []
        for unit in units:
            unit_words = unit.lower().split()
            if any(word in unit_word for word in words for unit_word in unit_words):
                matches.append(unit)
                if len(matches) >= self.config.lenient_top_n:
                    break
        return matches

    def search_with_tier(self, content: str, query: str) -> tuple[list[str], SearchTier]:
        """
        Run the scored search, then the lenient filter if nothing scored.

        Returns:
            Matching units and the tier that produced them
        """
        if not content or not query or not query.strip():
            return [], SearchTier.NONE

        units = self.split_units(content)

        results = self.scored_search(units, query)
        if results:
            return results, SearchTier.LEXICAL

        logger.info("No scored lexical matches, trying lenient search")
        results = self.lenient_search(units, query)
        if results:
            return results, SearchTier.LENIENT

        return [], SearchTier.NONE

    def search(self, content: str, query: str) -> list[str]:
        units, _ = self.search_with_tier(content, query)
        return units
