"""
Record and result types for ProviderMatch.

Candidates are built by the caller for one resolution call; existing
entities are read-only snapshots handed over by the record store.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from ..normalize.field_normalizer import clean_value, is_blank


class InvalidInput(ValueError):
    """Raised when a candidate record lacks its required identity field."""


class MatchType(Enum):
    """Confidence tier of a duplicate match."""

    EXACT = "exact"
    HIGH = "high"
    UNCERTAIN = "uncertain"

    @property
    def severity(self) -> int:
        """Ranking weight: exact (3) > high (2) > uncertain (1)."""
        return _SEVERITY[self]


_SEVERITY = {
    MatchType.EXACT: 3,
    MatchType.HIGH: 2,
    MatchType.UNCERTAIN: 1,
}


def _first_present(record: Mapping[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = clean_value(record.get(key))
        if value is not None:
            return value
    return None


@dataclass(frozen=True)
class CandidateRecord:
    """A record about to be created, checked against the directory."""

    full_name: str
    company_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    def validate(self) -> None:
        """
        Check the candidate can be matched.

        Raises:
            InvalidInput: If full_name is missing or whitespace-only
        """
        if not isinstance(self.full_name, str) or is_blank(self.full_name):
            raise InvalidInput("Candidate full_name must not be empty")

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "CandidateRecord":
        """
        Build a candidate from a loosely typed row (dict or pandas row).

        Args:
            record: Mapping with full_name/company_name/phone/email keys

        Returns:
            CandidateRecord with missing values mapped to None
        """
        return cls(
            full_name=_first_present(record, "full_name", "name") or "",
            company_name=_first_present(record, "company_name", "company"),
            phone=_first_present(record, "phone"),
            email=_first_present(record, "email"),
        )


@dataclass(frozen=True)
class ExistingEntity:
    """Snapshot of an entity already known to the record store."""

    id: Any
    name: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict, hash=False)

    IDENTITY_KEYS = ("id", "name", "full_name", "company", "company_name", "phone", "email")

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ExistingEntity":
        """
        Build an entity from a record store row.

        Accepts both name/company and full_name/company_name columns.
        Every other key is kept in attributes untouched.

        Args:
            record: Mapping describing one stored entity

        Returns:
            ExistingEntity snapshot
        """
        attributes = {
            key: value for key, value in record.items()
            if key not in cls.IDENTITY_KEYS
        }
        return cls(
            id=record.get("id"),
            name=_first_present(record, "name", "full_name"),
            company=_first_present(record, "company", "company_name"),
            phone=_first_present(record, "phone"),
            email=_first_present(record, "email"),
            attributes=attributes,
        )


@dataclass(frozen=True)
class MatchResult:
    """Outcome of matching a candidate against one existing entity."""

    entity: ExistingEntity
    match_type: MatchType
    match_reason: str
    similarity: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Flatten the result for tabular output."""
        return {
            "matched_entity_id": self.entity.id,
            "matched_name": self.entity.name,
            "match_type": self.match_type.value,
            "match_reason": self.match_reason,
            "similarity": self.similarity,
        }
