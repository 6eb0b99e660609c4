"""Maintenance commands for the filter rules file."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from news_digest.config import get_settings
from news_digest.domain import (
    SampleVerdict,
    ValidationResult,
    add_document_value,
    default_rules,
    describe_rules,
    evaluate_samples,
    load_rules,
    rules_to_mapping,
    save_rules,
    validate_rules,
)
from news_digest.domain.rules import DOCUMENT_GROUPS

LOGGER = logging.getLogger(__name__)

RULE_KINDS = tuple(DOCUMENT_GROUPS)


def _target_path(rules_path: Optional[Path]) -> Path:
    return Path(rules_path) if rules_path else get_settings().filter_rules_path


def show(rules_path: Optional[Path] = None) -> str:
    loaded = load_rules(_target_path(rules_path))
    origin = "built-in defaults" if loaded.used_default else str(loaded.path)
    return f"Filter rules ({origin})\n{describe_rules(loaded.rules)}"


def validate(rules_path: Optional[Path] = None) -> ValidationResult:
    """Validate the raw rules document at ``rules_path``."""
    path = _target_path(rules_path)
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return ValidationResult(valid=False, errors=(f"rules file not found: {path}",))
    except (OSError, ValueError) as exc:
        return ValidationResult(valid=False, errors=(f"rules file unreadable: {exc}",))
    if not isinstance(document, dict):
        return ValidationResult(valid=False, errors=("rules document must be a JSON object",))
    return validate_rules(document)


def _read_samples(samples_path: Path) -> List[Dict[str, Any]]:
    try:
        raw = json.loads(Path(samples_path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ValueError(f"samples file unreadable: {exc}") from exc
    if isinstance(raw, dict):
        raw = raw.get("items") or []
    if not isinstance(raw, list):
        raise ValueError("samples must be a JSON list or an object with an 'items' list")
    return [item for item in raw if isinstance(item, dict)]


def check(samples_path: Path, rules_path: Optional[Path] = None) -> List[SampleVerdict]:
    """Score sample items from a JSON list without sending anything."""
    samples = _read_samples(samples_path)
    loaded = load_rules(_target_path(rules_path))
    return evaluate_samples(samples, loaded.rules)


def format_verdicts(verdicts: List[SampleVerdict]) -> str:
    lines: List[str] = []
    for idx, verdict in enumerate(verdicts, start=1):
        status = "PASS" if verdict.passed else "FAIL"
        lines.append(f"{idx}. {verdict.title}")
        lines.append(f"   city: {verdict.city}")
        lines.append(f"   category: {verdict.category}")
        lines.append(f"   score: {verdict.score} {status}")
    return "\n".join(lines)


def _editable_document(path: Path) -> Dict[str, Any]:
    # Only a missing file starts from defaults; a broken one is left for the user to fix.
    if not path.exists():
        return rules_to_mapping(default_rules())
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ValueError(f"cannot update {path}: {exc}") from exc
    if not isinstance(document, dict):
        raise ValueError(f"cannot update {path}: rules document must be a JSON object")
    return document


def add(kind: str, value: str, rules_path: Optional[Path] = None) -> bool:
    """Add a city, keyword or exclude word and save; returns False when it already existed."""
    if kind not in DOCUMENT_GROUPS:
        raise ValueError(f"unknown rule kind: {kind}")
    path = _target_path(rules_path)
    document = _editable_document(path)
    if not add_document_value(document, kind, value):
        LOGGER.info("%s already present: %s", kind, value)
        return False
    result = save_rules(document, path)
    if not result.valid:
        raise ValueError("; ".join(result.errors))
    LOGGER.info("added %s: %s", kind, value)
    return True


__all__ = ["RULE_KINDS", "add", "check", "format_verdicts", "show", "validate"]
