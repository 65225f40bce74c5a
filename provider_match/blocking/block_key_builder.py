"""
Block key builder for ProviderMatch.

Generates cheap deterministic keys (phonetic name codes, phone, email) so a
candidate is only compared against corpus entities sharing at least one key.
Matching rules are unchanged on the shortlist; only the set of compared
entities shrinks.
"""

import hashlib
import logging
from typing import Dict, List, Optional, Sequence, Set
from jellyfish import metaphone, soundex

from ..match.models import CandidateRecord, ExistingEntity
from ..normalize.field_normalizer import normalize_email, normalize_phone, normalize_text

logger = logging.getLogger(__name__)

SUPPORTED_STRATEGIES = ("name_soundex", "name_metaphone", "phone", "email")


class CorpusBlocker:
    """
    Shortlists corpus entities for a candidate by shared block keys.

    A phonetic key on the first name token (Soundex) and the last name token
    (Metaphone) catches most spelling variants; phone and email keys keep
    every entity the exact contact rules could fire on.
    """

    def __init__(self, config: Dict):
        """
        Initialize blocker with configuration.

        Args:
            config: Blocking configuration dictionary
        """
        self.config = config
        self.strategies = []

        for strategy in config.get("strategies") or list(SUPPORTED_STRATEGIES):
            if strategy in SUPPORTED_STRATEGIES:
                self.strategies.append(strategy)
            else:
                logger.warning(f"Ignoring unknown blocking strategy: {strategy}")

        logger.info(f"Initialized CorpusBlocker with {len(self.strategies)} blocking strategies")

    @staticmethod
    def _make_key(strategy: str, value: str) -> str:
        # Hash for consistent length keys
        return f"{strategy}:{hashlib.md5(value.encode()).hexdigest()[:16]}"

    def build_keys(self, name: Optional[str], phone: Optional[str],
                   email: Optional[str]) -> Set[str]:
        """
        Build block keys for one record.

        Args:
            name: Person or organization name
            phone: Phone number
            email: Email address

        Returns:
            Set of block keys (empty if every field is missing)
        """
        keys = set()
        tokens = normalize_text(name).split()
        phone_norm = normalize_phone(phone)
        email_norm = normalize_email(email)

        for strategy in self.strategies:
            value = ""
            if strategy == "name_soundex" and tokens:
                value = soundex(tokens[0])
            elif strategy == "name_metaphone" and tokens:
                value = metaphone(tokens[-1])
            elif strategy == "phone":
                value = phone_norm
            elif strategy == "email":
                value = email_norm

            if value:
                keys.add(self._make_key(strategy, value))

        return keys

    def candidate_keys(self, candidate: CandidateRecord) -> Set[str]:
        """Block keys for a candidate record."""
        return self.build_keys(candidate.full_name, candidate.phone, candidate.email)

    def entity_keys(self, entity: ExistingEntity) -> Set[str]:
        """Block keys for an existing entity."""
        return self.build_keys(entity.name, entity.phone, entity.email)

    def shortlist(self, candidate: CandidateRecord,
                  corpus: Sequence[ExistingEntity]) -> List[ExistingEntity]:
        """
        Select the corpus entities sharing a block key with the candidate.

        Args:
            candidate: Candidate record
            corpus: Existing entities in corpus order

        Returns:
            Shortlisted entities, in corpus order
        """
        candidate_keys = self.candidate_keys(candidate)
        if not candidate_keys:
            return []

        shortlisted = [
            entity for entity in corpus
            if candidate_keys & self.entity_keys(entity)
        ]

        logger.debug(f"Blocking shortlisted {len(shortlisted)} of {len(corpus)} entities")
        return shortlisted

    def get_blocking_statistics(self, corpus: Sequence[ExistingEntity],
                                shortlisted: Sequence[ExistingEntity]) -> Dict[str, float]:
        """
        Calculate blocking effectiveness statistics.

        Args:
            corpus: Full corpus
            shortlisted: Entities kept by shortlist()

        Returns:
            Dictionary with blocking statistics
        """
        total = len(corpus)
        kept = len(shortlisted)

        return {
            "total_records": total,
            "shortlisted_records": kept,
            "reduction_ratio": 1 - (kept / total) if total > 0 else 0.0,
            "blocking_strategies": list(self.strategies),
        }
