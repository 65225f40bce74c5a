"""
Entity matcher for ProviderMatch.

Classifies a candidate record against a corpus of existing entities using
an ordered rule set, exact field rules before fuzzy name rules:

    1. same name and company     -> exact
    2. same phone number         -> exact
    3. same email address        -> exact
    4. name similarity >= high   -> high
    5. name similarity >= uncertain -> uncertain

The first rule that fires decides the match for one entity. Every entity in
the corpus is visited; the most severe match wins, and among equally severe
matches the one found first in corpus order.
"""

import math
import logging
from typing import Dict, Iterator, List, Optional, Sequence

from .models import CandidateRecord, ExistingEntity, MatchResult, MatchType
from .similarity import similarity
from ..blocking.block_key_builder import CorpusBlocker
from ..normalize.field_normalizer import normalize_email, normalize_phone, normalize_text

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


class EntityMatcher:
    """
    Finds the existing entity a candidate record most likely duplicates.

    Stateless across calls: the same matcher can screen any number of
    candidates, from any number of threads.
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize entity matcher with configuration.

        Args:
            config: Configuration dictionary with matching and blocking sections

        Raises:
            ValueError: If the thresholds are out of order or out of range
        """
        config = config or {}
        self.config = config

        matching_config = config.get("matching") or {}
        thresholds = matching_config.get("thresholds") or {}
        self.high_threshold = float(thresholds.get("high", 85.0))
        self.uncertain_threshold = float(thresholds.get("uncertain", 60.0))

        if not 0 <= self.uncertain_threshold <= self.high_threshold <= 100:
            raise ValueError(
                f"Invalid thresholds: uncertain={self.uncertain_threshold}, "
                f"high={self.high_threshold}"
            )

        blocking_config = config.get("blocking") or {}
        self.blocker = None
        if blocking_config.get("enabled", False):
            self.blocker = CorpusBlocker(blocking_config)

        logger.info(f"Initialized EntityMatcher (high={self.high_threshold}, "
                    f"uncertain={self.uncertain_threshold}, "
                    f"blocking={'on' if self.blocker else 'off'})")

    def evaluate_entity(self, candidate: CandidateRecord,
                        entity: ExistingEntity) -> Optional[MatchResult]:
        """
        Apply the rule set to one corpus entity.

        Args:
            candidate: Validated candidate record
            entity: Existing entity

        Returns:
            MatchResult from the first rule that fires, or None
        """
        candidate_name = normalize_text(candidate.full_name)
        candidate_company = normalize_text(candidate.company_name)
        entity_company = normalize_text(entity.company)

        if (candidate_name == normalize_text(entity.name)
                and candidate_company and entity_company
                and candidate_company == entity_company):
            return MatchResult(entity, MatchType.EXACT, "Same name and company")

        candidate_phone = normalize_phone(candidate.phone)
        if candidate_phone and candidate_phone == normalize_phone(entity.phone):
            return MatchResult(entity, MatchType.EXACT, "Same phone number")

        candidate_email = normalize_email(candidate.email)
        if candidate_email and candidate_email == normalize_email(entity.email):
            return MatchResult(entity, MatchType.EXACT, "Same email address")

        score = similarity(candidate.full_name, entity.name or "")

        if score >= self.high_threshold:
            return MatchResult(
                entity, MatchType.HIGH,
                f"Very similar name ({round_half_up(score)}% match)",
                similarity=score,
            )

        if score >= self.uncertain_threshold:
            return MatchResult(
                entity, MatchType.UNCERTAIN,
                f"Possibly similar name ({round_half_up(score)}% match)",
                similarity=score,
            )

        return None

    def iter_matches(self, candidate: CandidateRecord,
                     corpus: Sequence[ExistingEntity]) -> Iterator[MatchResult]:
        """
        Scan the corpus lazily, yielding each entity's match in corpus order.

        Callers that need to stop a long scan early can simply stop
        iterating.

        Args:
            candidate: Candidate record
            corpus: Existing entities

        Yields:
            MatchResult for every entity that matches

        Raises:
            InvalidInput: If the candidate has no full_name
        """
        candidate.validate()

        entities = corpus
        if self.blocker is not None:
            entities = self.blocker.shortlist(candidate, corpus)

        for entity in entities:
            result = self.evaluate_entity(candidate, entity)
            if result is not None:
                logger.debug(f"Entity {entity.id} matched: {result.match_reason}")
                yield result

    def find_all_matches(self, candidate: CandidateRecord,
                         corpus: Sequence[ExistingEntity]) -> List[MatchResult]:
        """
        Find every matching entity, most severe first.

        The sort is stable, so equally severe matches keep corpus order.

        Args:
            candidate: Candidate record
            corpus: Existing entities

        Returns:
            Ranked list of matches (empty if none)

        Raises:
            InvalidInput: If the candidate has no full_name
        """
        matches = list(self.iter_matches(candidate, corpus))
        return sorted(matches, key=lambda match: match.match_type.severity, reverse=True)

    def find_duplicate(self, candidate: CandidateRecord,
                       corpus: Sequence[ExistingEntity]) -> Optional[MatchResult]:
        """
        Find the single most severe duplicate of a candidate.

        This is a single-best-match API: all other matches are dropped. Ties
        go to the entity found first in corpus order, not the one with the
        highest similarity.

        Args:
            candidate: Candidate record
            corpus: Existing entities

        Returns:
            Most severe MatchResult, or None if nothing matches

        Raises:
            InvalidInput: If the candidate has no full_name
        """
        matches = self.find_all_matches(candidate, corpus)
        if not matches:
            return None

        best = matches[0]
        logger.debug(f"Selected {best.match_type.value} match on entity {best.entity.id} "
                     f"out of {len(matches)} matches")
        return best


def find_duplicate(candidate: CandidateRecord,
                   corpus: Sequence[ExistingEntity],
                   config: Optional[Dict] = None) -> Optional[MatchResult]:
    """
    Convenience function to find the most severe duplicate of a candidate.

    Args:
        candidate: Candidate record
        corpus: Existing entities
        config: Configuration dictionary (optional)

    Returns:
        Most severe MatchResult, or None
    """
    matcher = EntityMatcher(config)
    return matcher.find_duplicate(candidate, corpus)
