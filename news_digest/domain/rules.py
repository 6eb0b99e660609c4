"""
Filter rule configuration: loading, validation and editing.

Rules are stored as a JSON document shaped like::

    {
      "filterRules": {
        "cities": {"values": [...], "weight": 10},
        "keywords": {"values": [...], "weight": 5},
        "excludeKeywords": {"values": [...], "weight": -100},
        "categoryKeywords": {"categories": {"name": {"keywords": [...], "weight": 3}}}
      },
      "scoringRules": {"minScore": 5}
    }

Loading never fails: when no document can be read the built-in defaults are
returned together with a flag the caller can log.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from numbers import Number
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

LOGGER = logging.getLogger(__name__)

_PACKAGE_DIR = Path(__file__).resolve().parent.parent
_REPO_ROOT = _PACKAGE_DIR.parent
DEFAULT_RULES_FILENAME = "filter-rules.json"
DEFAULT_RULES_PATH = Path("config") / DEFAULT_RULES_FILENAME

DEFAULT_CITY_WEIGHT = 10
DEFAULT_KEYWORD_WEIGHT = 5
DEFAULT_EXCLUDE_WEIGHT = -100
DEFAULT_MIN_SCORE = 5


@dataclass(frozen=True)
class RuleGroup:
    values: Tuple[str, ...] = ()
    weight: Union[int, float] = 0


@dataclass(frozen=True)
class CategoryRule:
    name: str
    keywords: Tuple[str, ...] = ()
    weight: Optional[Union[int, float]] = None


@dataclass(frozen=True)
class RuleSet:
    """Matching vocabulary, weights and threshold used for one run."""

    cities: RuleGroup = field(default_factory=lambda: RuleGroup(weight=DEFAULT_CITY_WEIGHT))
    keywords: RuleGroup = field(default_factory=lambda: RuleGroup(weight=DEFAULT_KEYWORD_WEIGHT))
    exclude_keywords: RuleGroup = field(default_factory=lambda: RuleGroup(weight=DEFAULT_EXCLUDE_WEIGHT))
    categories: Tuple[CategoryRule, ...] = ()
    min_score: Union[int, float] = DEFAULT_MIN_SCORE

    @property
    def category_names(self) -> Tuple[str, ...]:
        return tuple(category.name for category in self.categories)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RuleLoadResult:
    rules: RuleSet
    path: Optional[Path]
    used_default: bool
    error: Optional[str] = None
    # parsed JSON as written, before defaults are filled in
    document: Optional[Dict[str, Any]] = None


def default_rules() -> RuleSet:
    """Return the built-in rule set used when no configuration is available."""
    return RuleSet(
        cities=RuleGroup(
            values=("台北", "新北", "桃園", "台中", "台南", "高雄"),
            weight=DEFAULT_CITY_WEIGHT,
        ),
        keywords=RuleGroup(
            values=(
                "秘書處", "秘書長", "市政府", "市長", "副市長",
                "政策", "會議", "視察", "國際交流", "簽署",
                "協議", "公告", "通知", "宣布", "發布",
            ),
            weight=DEFAULT_KEYWORD_WEIGHT,
        ),
        exclude_keywords=RuleGroup(
            values=(
                "娛樂", "運動", "明星", "八卦", "股市", "房市",
                "天氣", "寵物", "美食", "旅遊",
            ),
            weight=DEFAULT_EXCLUDE_WEIGHT,
        ),
        categories=(
            CategoryRule("秘書處業務", ("秘書處", "秘書長", "行政", "公務", "人事"), 3),
            CategoryRule("市政新聞", ("市長", "副市長", "市政", "政策", "會議"), 2),
            CategoryRule("國際交流", ("國際", "交流", "簽署", "協議", "友好"), 2),
        ),
        min_score=DEFAULT_MIN_SCORE,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Document <-> RuleSet conversion
# ─────────────────────────────────────────────────────────────────────────────
def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _string_values(raw: Any) -> Tuple[str, ...]:
    if isinstance(raw, str) or not isinstance(raw, Sequence):
        return ()
    values: List[str] = []
    for item in raw:
        if item is None:
            continue
        token = str(item)
        if token:
            values.append(token)
    return tuple(values)


def _group_from_mapping(raw: Any, *, default_weight: Union[int, float]) -> RuleGroup:
    data = _as_mapping(raw)
    weight = data.get("weight")
    return RuleGroup(
        values=_string_values(data.get("values")),
        weight=weight if _is_number(weight) else default_weight,
    )


def _categories_from_mapping(raw: Any) -> Tuple[CategoryRule, ...]:
    categories = _as_mapping(_as_mapping(raw).get("categories"))
    result: List[CategoryRule] = []
    for name, config in categories.items():
        data = _as_mapping(config)
        weight = data.get("weight")
        result.append(
            CategoryRule(
                name=str(name),
                keywords=_string_values(data.get("keywords")),
                weight=weight if _is_number(weight) else None,
            )
        )
    return tuple(result)


def rules_from_mapping(document: Any) -> RuleSet:
    """Convert a rules document into a RuleSet, filling defaults for missing parts."""
    doc = _as_mapping(document)
    filter_rules = _as_mapping(doc.get("filterRules"))
    scoring_rules = _as_mapping(doc.get("scoringRules"))
    min_score = scoring_rules.get("minScore")
    return RuleSet(
        cities=_group_from_mapping(filter_rules.get("cities"), default_weight=DEFAULT_CITY_WEIGHT),
        keywords=_group_from_mapping(filter_rules.get("keywords"), default_weight=DEFAULT_KEYWORD_WEIGHT),
        exclude_keywords=_group_from_mapping(
            filter_rules.get("excludeKeywords"), default_weight=DEFAULT_EXCLUDE_WEIGHT
        ),
        categories=_categories_from_mapping(filter_rules.get("categoryKeywords")),
        min_score=min_score if _is_number(min_score) else DEFAULT_MIN_SCORE,
    )


def rules_to_mapping(rules: RuleSet) -> Dict[str, Any]:
    filter_rules: Dict[str, Any] = {
        "cities": {"values": list(rules.cities.values), "weight": rules.cities.weight},
        "keywords": {"values": list(rules.keywords.values), "weight": rules.keywords.weight},
        "excludeKeywords": {
            "values": list(rules.exclude_keywords.values),
            "weight": rules.exclude_keywords.weight,
        },
    }
    if rules.categories:
        categories: Dict[str, Any] = {}
        for category in rules.categories:
            entry: Dict[str, Any] = {"keywords": list(category.keywords)}
            if category.weight is not None:
                entry["weight"] = category.weight
            categories[category.name] = entry
        filter_rules["categoryKeywords"] = {"categories": categories}
    return {"filterRules": filter_rules, "scoringRules": {"minScore": rules.min_score}}


# ─────────────────────────────────────────────────────────────────────────────
# Loading
# ─────────────────────────────────────────────────────────────────────────────
def _candidate_paths(path: Optional[Path]) -> List[Path]:
    requested = Path(path) if path is not None else DEFAULT_RULES_PATH
    candidates = [
        requested,
        _PACKAGE_DIR / requested,
        _REPO_ROOT / "config" / DEFAULT_RULES_FILENAME,
        Path.cwd() / "config" / DEFAULT_RULES_FILENAME,
    ]
    unique: List[Path] = []
    for candidate in candidates:
        if candidate not in unique:
            unique.append(candidate)
    return unique


def load_rules(path: Optional[Path] = None) -> RuleLoadResult:
    """
    Locate and parse the rules document.

    The first existing candidate path wins. When nothing is found, or the file
    cannot be read or parsed, the built-in defaults are returned with
    ``used_default=True``.
    """
    found: Optional[Path] = None
    for candidate in _candidate_paths(path):
        if candidate.is_file():
            found = candidate
            break

    if found is None:
        LOGGER.warning("%s not found; using default rules", path or DEFAULT_RULES_PATH)
        return RuleLoadResult(rules=default_rules(), path=None, used_default=True)

    try:
        document = json.loads(found.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        LOGGER.error("Failed to load filter rules from %s: %s", found, exc)
        return RuleLoadResult(rules=default_rules(), path=found, used_default=True, error=str(exc))

    if not isinstance(document, Mapping):
        message = f"expected a JSON object, got {type(document).__name__}"
        LOGGER.error("Failed to load filter rules from %s: %s", found, message)
        return RuleLoadResult(rules=default_rules(), path=found, used_default=True, error=message)

    LOGGER.info("Loaded filter rules from %s", found)
    return RuleLoadResult(
        rules=rules_from_mapping(document),
        path=found,
        used_default=False,
        document=dict(document),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Validation and persistence
# ─────────────────────────────────────────────────────────────────────────────
def validate_rules(document: Union[Mapping[str, Any], RuleSet]) -> ValidationResult:
    """Check a rules document for the required groups without modifying it."""
    if isinstance(document, RuleSet):
        document = rules_to_mapping(document)
    doc = _as_mapping(document)
    errors: List[str] = []

    filter_rules = doc.get("filterRules")
    scoring_rules = doc.get("scoringRules")
    if not isinstance(filter_rules, Mapping):
        errors.append("missing filterRules section")
    if not isinstance(scoring_rules, Mapping):
        errors.append("missing scoringRules section")

    filter_map = _as_mapping(filter_rules)
    if not _string_values(_as_mapping(filter_map.get("cities")).get("values")):
        errors.append("cities.values is empty")
    if not _string_values(_as_mapping(filter_map.get("keywords")).get("values")):
        errors.append("keywords.values is empty")

    if not _is_number(_as_mapping(scoring_rules).get("minScore")):
        errors.append("scoringRules.minScore must be a number")

    return ValidationResult(valid=not errors, errors=tuple(errors))


def save_rules(rules: Union[Mapping[str, Any], RuleSet], path: Path) -> ValidationResult:
    """Validate and write a rules document; invalid documents are not written."""
    document = rules_to_mapping(rules) if isinstance(rules, RuleSet) else dict(rules)
    result = validate_rules(document)
    if not result.valid:
        return result
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(document, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        return ValidationResult(valid=False, errors=(f"failed to write {target}: {exc}",))
    LOGGER.info("Filter rules written to %s", target)
    return result


# ─────────────────────────────────────────────────────────────────────────────
# Editing
# ─────────────────────────────────────────────────────────────────────────────
def _add_value(group: RuleGroup, value: str) -> Tuple[RuleGroup, bool]:
    token = (value or "").strip()
    if not token or token in group.values:
        return group, False
    return replace(group, values=group.values + (token,)), True


def add_city(rules: RuleSet, city: str) -> Tuple[RuleSet, bool]:
    group, added = _add_value(rules.cities, city)
    return (replace(rules, cities=group), True) if added else (rules, False)


def add_keyword(rules: RuleSet, keyword: str) -> Tuple[RuleSet, bool]:
    group, added = _add_value(rules.keywords, keyword)
    return (replace(rules, keywords=group), True) if added else (rules, False)


def add_exclude_keyword(rules: RuleSet, keyword: str) -> Tuple[RuleSet, bool]:
    group, added = _add_value(rules.exclude_keywords, keyword)
    return (replace(rules, exclude_keywords=group), True) if added else (rules, False)


DOCUMENT_GROUPS = {
    "city": "cities",
    "keyword": "keywords",
    "exclude": "excludeKeywords",
}


def add_document_value(document: Dict[str, Any], kind: str, value: str) -> bool:
    """
    Append ``value`` to a group's ``values`` list inside a raw rules document.

    The document is edited in place so keys this module does not model are
    kept when it is written back. Returns False when the value is already there.
    """
    if kind not in DOCUMENT_GROUPS:
        raise ValueError(f"unknown rule kind: {kind}")
    token = (value or "").strip()
    if not token:
        raise ValueError("value must not be empty")

    filter_rules = document.setdefault("filterRules", {})
    if not isinstance(filter_rules, dict):
        raise ValueError("filterRules must be a JSON object")
    group = filter_rules.setdefault(DOCUMENT_GROUPS[kind], {})
    if not isinstance(group, dict):
        raise ValueError(f"filterRules.{DOCUMENT_GROUPS[kind]} must be a JSON object")
    values = group.setdefault("values", [])
    if not isinstance(values, list):
        raise ValueError(f"filterRules.{DOCUMENT_GROUPS[kind]}.values must be a JSON list")

    if token in values:
        return False
    values.append(token)
    return True


def describe_rules(rules: RuleSet) -> str:
    lines = [
        f"Cities (weight {rules.cities.weight}):",
        "  " + ", ".join(rules.cities.values),
        f"Keywords (weight {rules.keywords.weight}):",
        "  " + ", ".join(rules.keywords.values),
        "Exclude keywords:",
        "  " + ", ".join(rules.exclude_keywords.values),
        f"Minimum score: {rules.min_score}",
    ]
    if rules.categories:
        lines.append("Categories:")
        for category in rules.categories:
            lines.append(f"  {category.name}: {', '.join(category.keywords)}")
    return "\n".join(lines)


__all__ = [
    "CategoryRule",
    "DEFAULT_RULES_PATH",
    "RuleGroup",
    "RuleLoadResult",
    "RuleSet",
    "ValidationResult",
    "DOCUMENT_GROUPS",
    "add_city",
    "add_document_value",
    "add_exclude_keyword",
    "add_keyword",
    "default_rules",
    "describe_rules",
    "load_rules",
    "rules_from_mapping",
    "rules_to_mapping",
    "save_rules",
    "validate_rules",
]
