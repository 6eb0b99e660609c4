from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace
from typing import List

import pytest

from news_digest.domain import Candidate
from news_digest.notifications.telegram import TelegramRequestError
from news_digest.workers import digest


@pytest.fixture
def fake_environment(monkeypatch, tmp_path: Path):
    rules_path = tmp_path / "filter-rules.json"
    rules_path.write_text(
        json.dumps(
            {
                "filterRules": {
                    "cities": {"values": ["台北", "高雄"], "weight": 10},
                    "keywords": {"values": ["市長"], "weight": 5},
                    "excludeKeywords": {"values": ["股市"]},
                },
                "scoringRules": {"minScore": 10},
            },
            ensure_ascii=False,
        ),
        encoding="utf-8",
    )
    settings = SimpleNamespace(
        filter_rules_path=rules_path,
        log_dir=tmp_path / "logs",
        output_dir=tmp_path / "outputs",
        fetch_timeout=5,
        fetch_delay=0.0,
        max_items_per_source=50,
    )
    sent: List[str] = []
    candidates = [
        Candidate(title="台北市長出訪", summary="", url="https://e.com/1", source="A"),
        Candidate(title="高雄股市", summary="", url="https://e.com/2", source="B"),
        Candidate(title="高雄港", summary="", url="https://e.com/3", source="C"),
        Candidate(title="無關", summary="", url="https://e.com/4", source="D"),
    ]

    def fake_send(message, *, log=None):
        sent.append(message)
        return 99

    monkeypatch.setattr(digest, "get_settings", lambda: settings)
    monkeypatch.setattr(digest, "fetch_all_news", lambda sources, **kwargs: list(candidates))
    monkeypatch.setattr(digest, "send_message", fake_send)
    monkeypatch.setattr(digest, "is_configured", lambda: True)
    return SimpleNamespace(settings=settings, sent=sent, tmp_path=tmp_path)


def test_run_filters_sends_and_archives(fake_environment):
    env = fake_environment

    stats = digest.run()

    assert stats["fetched"] == 4
    assert stats["selected"] == 2
    assert stats["message_id"] == 99
    assert stats["used_default_rules"] is False
    assert len(env.sent) == 1
    message = env.sent[0]
    assert message.index("台北市長出訪") < message.index("高雄港")
    assert "高雄股市" not in message

    output_path = stats["output_path"]
    assert output_path.parent == env.settings.output_dir
    assert "[15] 台北市長出訪" in output_path.read_text(encoding="utf-8")

    log_files = list(env.settings.log_dir.glob("news-fetch-*.log"))
    assert len(log_files) == 1
    log_text = log_files[0].read_text(encoding="utf-8")
    assert "[INFO]" in log_text
    assert "kept 2 of 4 items" in log_text


def test_run_dry_run_skips_sending(fake_environment):
    env = fake_environment

    stats = digest.run(dry_run=True, archive=False)

    assert env.sent == []
    assert stats["message_id"] is None
    assert stats["output_path"] is None


def test_run_requires_telegram_credentials(monkeypatch, fake_environment):
    monkeypatch.setattr(digest, "is_configured", lambda: False)

    with pytest.raises(digest.DigestRunError):
        digest.run()
    assert fake_environment.sent == []


def test_run_propagates_send_failure_and_keeps_log(monkeypatch, fake_environment):
    env = fake_environment

    def failing_send(message, *, log=None):
        raise TelegramRequestError("Telegram sendMessage error: chat not found")

    monkeypatch.setattr(digest, "send_message", failing_send)

    with pytest.raises(TelegramRequestError):
        digest.run()
    log_text = next(env.settings.log_dir.glob("news-fetch-*.log")).read_text(encoding="utf-8")
    assert "run failed" in log_text


def test_run_uses_default_rules_when_file_missing(monkeypatch, fake_environment, tmp_path):
    from news_digest.domain import rules as rules_module

    monkeypatch.setattr(rules_module, "_REPO_ROOT", tmp_path / "repo")
    monkeypatch.chdir(tmp_path)

    stats = digest.run(rules_path=tmp_path / "missing.json", archive=False)

    assert stats["used_default_rules"] is True


def test_output_paths_are_unique(tmp_path):
    from datetime import datetime

    first = digest.generate_output_path(tmp_path, datetime(2025, 1, 7))
    first.write_text("x", encoding="utf-8")

    assert first.name == "digest_20250107.txt"
    assert digest._ensure_unique_output(first).name == "digest_20250107(1).txt"


def test_run_logs_problems_in_the_rules_file(fake_environment):
    env = fake_environment
    document = json.loads(env.settings.filter_rules_path.read_text(encoding="utf-8"))
    document["scoringRules"]["minScore"] = "10"
    document["filterRules"]["keywords"]["values"] = []
    env.settings.filter_rules_path.write_text(json.dumps(document, ensure_ascii=False), encoding="utf-8")

    stats = digest.run(dry_run=True, archive=False)

    assert stats["used_default_rules"] is False
    log_text = next(env.settings.log_dir.glob("news-fetch-*.log")).read_text(encoding="utf-8")
    assert "rule check: scoringRules.minScore must be a number" in log_text
    assert "rule check: keywords.values is empty" in log_text


def test_run_with_clean_rules_file_logs_no_rule_problems(fake_environment):
    env = fake_environment

    digest.run(dry_run=True, archive=False)

    log_text = next(env.settings.log_dir.glob("news-fetch-*.log")).read_text(encoding="utf-8")
    assert "rule check:" not in log_text
