"""Domain dataclasses shared across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

UNMATCHED_LABEL = "其他"


@dataclass(slots=True)
class Candidate:
    title: str
    summary: str
    url: Optional[str] = None
    source: Optional[str] = None
    fetched_at: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Candidate":
        """Build a candidate from a loose record, tolerating missing fields."""
        known = {"title", "summary", "url", "source", "fetchedAt", "fetched_at"}
        return cls(
            title=str(data.get("title") or ""),
            summary=str(data.get("summary") or ""),
            url=data.get("url"),
            source=data.get("source"),
            fetched_at=data.get("fetchedAt") or data.get("fetched_at"),
            extra={key: value for key, value in data.items() if key not in known},
        )


@dataclass(slots=True)
class ScoredCandidate:
    title: str
    summary: str
    url: Optional[str]
    source: Optional[str]
    fetched_at: Optional[str]
    score: int
    city: str = UNMATCHED_LABEL
    category: str = UNMATCHED_LABEL
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = dict(self.extra)
        payload.update(
            {
                "title": self.title,
                "summary": self.summary,
                "url": self.url,
                "source": self.source,
                "fetchedAt": self.fetched_at,
                "score": self.score,
                "city": self.city,
                "category": self.category,
            }
        )
        return payload


@dataclass(slots=True)
class SampleVerdict:
    title: str
    score: int
    city: str
    category: str
    passed: bool


__all__ = ["Candidate", "SampleVerdict", "ScoredCandidate", "UNMATCHED_LABEL"]
