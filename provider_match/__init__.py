"""
ProviderMatch - Directory Entity Duplicate Detection Engine

Decides whether a new person-or-organization record duplicates an entity
already in the directory, using exact field rules and edit-distance name
similarity with confidence tiering.
"""

from .match.models import CandidateRecord, ExistingEntity, InvalidInput, MatchResult, MatchType
from .match.similarity import similarity
from .match.entity_matcher import EntityMatcher, find_duplicate

__version__ = "1.0.0"
__author__ = "ProviderMatch Team"

__all__ = [
    "CandidateRecord",
    "ExistingEntity",
    "InvalidInput",
    "MatchResult",
    "MatchType",
    "EntityMatcher",
    "find_duplicate",
    "similarity",
]
