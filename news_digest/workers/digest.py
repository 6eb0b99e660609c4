from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from news_digest.adapters.http_news_sites import DEFAULT_SOURCES, NewsSource, fetch_all_news
from news_digest.config import get_settings
from news_digest.core.reporting import render_digest_message, render_digest_text
from news_digest.domain import ScoredCandidate, filter_and_rank, load_rules, validate_rules
from news_digest.notifications.telegram import is_configured, send_message
from news_digest.workers import RunLog, open_run_log

WORKER = "digest"


class DigestRunError(RuntimeError):
    """Raised when a pipeline run cannot complete."""


def generate_output_path(output_dir: Path, now: datetime) -> Path:
    return Path(output_dir) / f"digest_{now:%Y%m%d}.txt"


def _ensure_unique_output(path: Path) -> Path:
    """Return a path with numeric suffixes when the target already exists."""
    if not path.exists():
        return path
    parent = path.parent
    stem = path.stem
    suffix = path.suffix
    counter = 1
    while True:
        candidate = parent / f"{stem}({counter}){suffix}"
        if not candidate.exists():
            return candidate
        counter += 1


def _archive_digest(items: Sequence[ScoredCandidate], output_dir: Path, now: datetime) -> Path:
    final_output = _ensure_unique_output(generate_output_path(output_dir, now))
    final_output.parent.mkdir(parents=True, exist_ok=True)
    final_output.write_text(render_digest_text(items, now=now), encoding="utf-8")
    return final_output


def _run_steps(
    log: RunLog,
    *,
    rules_path: Optional[Path],
    sources: Sequence[NewsSource],
    dry_run: bool,
    archive: bool,
) -> Dict[str, Any]:
    settings = get_settings()

    if not dry_run and not is_configured():
        raise DigestRunError("missing TELEGRAM_BOT_TOKEN or TELEGRAM_GROUP_ID")

    loaded = load_rules(rules_path or settings.filter_rules_path)
    if loaded.used_default:
        reason = f": {loaded.error}" if loaded.error else ""
        log.warning("using built-in default rules%s", reason)
    else:
        log.info("rules loaded from %s", loaded.path)
    validation = validate_rules(loaded.document if loaded.document is not None else loaded.rules)
    for error in validation.errors:
        log.warning("rule check: %s", error)

    candidates = fetch_all_news(
        sources,
        timeout=settings.fetch_timeout,
        delay=settings.fetch_delay,
        max_items=settings.max_items_per_source,
        log=log,
    )
    if not candidates:
        log.warning("no news items fetched")

    selected: List[ScoredCandidate] = filter_and_rank(candidates, loaded.rules)
    log.info("kept %d of %d items (min_score=%s)", len(selected), len(candidates), loaded.rules.min_score)

    now = datetime.now()
    message = render_digest_message(selected, now=now)

    message_id: Optional[int] = None
    if dry_run:
        log.info("[dry-run] Telegram message not sent (%d chars)", len(message))
    else:
        message_id = send_message(message, log=log)

    output_path: Optional[Path] = None
    if archive:
        output_path = _archive_digest(selected, settings.output_dir, now)
        log.info("output -> %s", output_path)

    log.summary(ok=len(selected), failed=0, skipped=len(candidates) - len(selected))
    return {
        "fetched": len(candidates),
        "selected": len(selected),
        "message_id": message_id,
        "output_path": output_path,
        "used_default_rules": loaded.used_default,
    }


def run(
    *,
    rules_path: Optional[Path] = None,
    sources: Sequence[NewsSource] = DEFAULT_SOURCES,
    dry_run: bool = False,
    archive: bool = True,
    log_dir: Optional[Path] = None,
) -> Dict[str, Any]:
    """Fetch, score, filter and send one digest; the run log is written to ``log_dir``."""
    settings = get_settings()
    with open_run_log(WORKER, log_dir or settings.log_dir) as log:
        with log.session():
            try:
                return _run_steps(log, rules_path=rules_path, sources=sources, dry_run=dry_run, archive=archive)
            except Exception as exc:
                log.error("run failed: %s", exc)
                raise


__all__ = ["DigestRunError", "generate_output_path", "run"]
