"""Shared data models for the risk similarity service."""

import math
from dataclasses import dataclass, field
from typing import Any, Optional

# Field names reported in matched_fields
TITLE = "title"
THREAT_DESCRIPTION = "threatDescription"
DESCRIPTION = "description"


@dataclass
class RiskText:
    """The comparable surface of a risk."""

    title: str
    threat_description: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "RiskText":
        """Build from a stored risk row or a draft payload."""
        return cls(
            title=record.get("title") or "",
            threat_description=record.get("threat_description"),
            description=record.get("description"),
        )

    @property
    def is_complete(self) -> bool:
        """A title plus at least one of threat or description."""
        has_title = bool((self.title or "").strip())
        has_body = bool((self.threat_description or "").strip()) or bool(
            (self.description or "").strip()
        )
        return has_title and has_body


@dataclass
class RiskCandidate:
    """A stored risk being compared against a query risk."""

    id: str
    title: str
    threat_description: Optional[str] = None
    description: Optional[str] = None
    embedding: Optional[list[float]] = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "RiskCandidate":
        return cls(
            id=record["id"],
            title=record.get("title") or "",
            threat_description=record.get("threat_description"),
            description=record.get("description"),
            embedding=record.get("embedding") or None,
        )


@dataclass
class SimilarityResult:
    """Score for one comparison. Score is clamped to [0, 100]."""

    risk_id: Optional[str]
    score: int
    matched_fields: list[str] = field(default_factory=list)

    def __post_init__(self):
        if math.isnan(self.score):
            self.score = 0
        else:
            self.score = max(0, min(100, self.score))


@dataclass
class SimilarRiskResult:
    """A similarity result joined with the full candidate record."""

    risk: dict[str, Any]
    score: int
    fields: list[str] = field(default_factory=list)


@dataclass
class SupplierRiskSuggestion:
    """An existing risk suggested as relevant to a supplier."""

    risk: dict[str, Any]
    similarity_score: int
    matched_fields: list[str] = field(default_factory=list)


@dataclass
class BackfillSummary:
    """Counters for an embedding backfill run."""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0
