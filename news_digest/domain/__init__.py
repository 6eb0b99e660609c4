"""Domain-level objects shared across workers and adapters."""

from __future__ import annotations

from .models import UNMATCHED_LABEL, Candidate, SampleVerdict, ScoredCandidate
from .rules import (
    CategoryRule,
    RuleGroup,
    RuleLoadResult,
    RuleSet,
    ValidationResult,
    add_city,
    add_document_value,
    add_exclude_keyword,
    add_keyword,
    default_rules,
    describe_rules,
    load_rules,
    rules_from_mapping,
    rules_to_mapping,
    save_rules,
    validate_rules,
)
from .scoring import (
    MAX_RESULTS,
    calculate_score,
    evaluate_samples,
    extract_category,
    extract_city,
    filter_and_rank,
    score_candidate,
)

__all__ = [
    "Candidate",
    "CategoryRule",
    "MAX_RESULTS",
    "RuleGroup",
    "RuleLoadResult",
    "RuleSet",
    "SampleVerdict",
    "ScoredCandidate",
    "UNMATCHED_LABEL",
    "ValidationResult",
    "add_city",
    "add_document_value",
    "add_exclude_keyword",
    "add_keyword",
    "calculate_score",
    "default_rules",
    "describe_rules",
    "evaluate_samples",
    "extract_category",
    "extract_city",
    "filter_and_rank",
    "load_rules",
    "rules_from_mapping",
    "rules_to_mapping",
    "save_rules",
    "score_candidate",
    "validate_rules",
]
