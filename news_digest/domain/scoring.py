"""Relevance scoring and filtering of scraped candidates against a RuleSet."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Union

from .models import UNMATCHED_LABEL, Candidate, SampleVerdict, ScoredCandidate
from .rules import RuleSet

MAX_RESULTS = 50

CandidateLike = Union[Candidate, Mapping[str, Any]]


def _as_candidate(item: CandidateLike) -> Candidate:
    if isinstance(item, Candidate):
        return item
    return Candidate.from_mapping(item)


def _combined_text(candidate: Candidate) -> str:
    return f"{candidate.title or ''} {candidate.summary or ''}"


def calculate_score(item: CandidateLike, rules: RuleSet) -> int:
    """
    Sum weighted city and keyword hits; any exclude keyword forces zero.

    Every matching city and keyword contributes its group weight, so several
    hits accumulate. Matching is plain case-insensitive substring containment.
    """
    text = _combined_text(_as_candidate(item)).lower()
    score = 0
    for city in rules.cities.values:
        if city.lower() in text:
            score += rules.cities.weight
    for keyword in rules.keywords.values:
        if keyword.lower() in text:
            score += rules.keywords.weight
    for keyword in rules.exclude_keywords.values:
        if keyword.lower() in text:
            return 0
    return score


def extract_city(item: CandidateLike, rules: RuleSet) -> str:
    # case-sensitive, unlike scoring
    text = _combined_text(_as_candidate(item))
    for city in rules.cities.values:
        if city in text:
            return city
    return UNMATCHED_LABEL


def extract_category(item: CandidateLike, rules: RuleSet) -> str:
    text = _combined_text(_as_candidate(item)).lower()
    for category in rules.categories:
        for keyword in category.keywords:
            if keyword.lower() in text:
                return category.name
    return UNMATCHED_LABEL


def score_candidate(item: CandidateLike, rules: RuleSet) -> ScoredCandidate:
    candidate = _as_candidate(item)
    return ScoredCandidate(
        title=candidate.title or "",
        summary=candidate.summary or "",
        url=candidate.url,
        source=candidate.source,
        fetched_at=candidate.fetched_at,
        score=calculate_score(candidate, rules),
        city=extract_city(candidate, rules),
        category=extract_category(candidate, rules),
        extra=dict(candidate.extra),
    )


def filter_and_rank(
    items: Iterable[CandidateLike],
    rules: RuleSet,
    *,
    limit: int = MAX_RESULTS,
) -> List[ScoredCandidate]:
    """Score all candidates, drop those under ``min_score`` and keep the best ``limit``."""
    scored = [score_candidate(item, rules) for item in items]
    passing = [item for item in scored if item.score >= rules.min_score]
    # sorted() is stable, so equal scores keep their input order
    passing = sorted(passing, key=lambda item: item.score, reverse=True)
    return passing[: max(0, limit)]


def evaluate_samples(items: Iterable[CandidateLike], rules: RuleSet) -> List[SampleVerdict]:
    verdicts: List[SampleVerdict] = []
    for item in items:
        scored = score_candidate(item, rules)
        verdicts.append(
            SampleVerdict(
                title=scored.title,
                score=scored.score,
                city=scored.city,
                category=scored.category,
                passed=scored.score >= rules.min_score,
            )
        )
    return verdicts


__all__ = [
    "MAX_RESULTS",
    "calculate_score",
    "evaluate_samples",
    "extract_category",
    "extract_city",
    "filter_and_rank",
    "score_candidate",
]
