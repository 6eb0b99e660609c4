from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace

import pytest

from news_digest.cli import main as cli
from news_digest.domain import rules as rules_module
from news_digest.domain.rules import default_rules, rules_to_mapping
from news_digest.workers import rules as rules_worker


@pytest.fixture
def isolated_paths(monkeypatch, tmp_path: Path) -> Path:
    monkeypatch.setattr(rules_module, "_REPO_ROOT", tmp_path / "repo")
    monkeypatch.setattr(rules_module, "_PACKAGE_DIR", tmp_path / "pkg")
    monkeypatch.setattr(
        rules_worker,
        "get_settings",
        lambda: SimpleNamespace(filter_rules_path=tmp_path / "config" / "filter-rules.json"),
    )
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_add_refuses_to_overwrite_unparsable_file(isolated_paths: Path) -> None:
    path = isolated_paths / "rules.json"
    broken = '{"filterRules": {"cities": {"values": ["台北", "基隆",]}}}'
    path.write_text(broken, encoding="utf-8")

    with pytest.raises(ValueError, match="cannot update"):
        rules_worker.add("city", "新竹", path)

    assert path.read_text(encoding="utf-8") == broken


def test_add_refuses_non_object_document(isolated_paths: Path) -> None:
    path = isolated_paths / "rules.json"
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(ValueError):
        rules_worker.add("keyword", "議會", path)

    assert path.read_text(encoding="utf-8") == "[]"


def test_add_preserves_keys_it_does_not_model(isolated_paths: Path) -> None:
    document = rules_to_mapping(default_rules())
    document["version"] = 2
    document["scoringRules"]["maxResults"] = 20
    document["filterRules"]["cities"]["comment"] = "六都"
    path = isolated_paths / "rules.json"
    path.write_text(json.dumps(document, ensure_ascii=False), encoding="utf-8")

    assert rules_worker.add("city", "基隆", path) is True

    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved["version"] == 2
    assert saved["scoringRules"]["maxResults"] == 20
    assert saved["filterRules"]["cities"]["comment"] == "六都"
    assert saved["filterRules"]["cities"]["values"][-1] == "基隆"


def test_add_to_missing_file_starts_from_defaults(isolated_paths: Path) -> None:
    # another candidate exists, but a missing target must not copy it
    other = isolated_paths / "config" / "filter-rules.json"
    other.parent.mkdir(parents=True)
    other.write_text(
        json.dumps({"filterRules": {"cities": {"values": ["金門"]}, "keywords": {"values": ["縣長"]}}, "scoringRules": {"minScore": 1}}, ensure_ascii=False),
        encoding="utf-8",
    )
    path = isolated_paths / "new" / "rules.json"

    assert rules_worker.add("city", "基隆", path) is True

    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved["filterRules"]["cities"]["values"] == list(default_rules().cities.values) + ["基隆"]
    assert "金門" not in saved["filterRules"]["cities"]["values"]


def test_add_existing_value_leaves_file_untouched(isolated_paths: Path) -> None:
    path = isolated_paths / "rules.json"
    text = json.dumps(rules_to_mapping(default_rules()), ensure_ascii=False)
    path.write_text(text, encoding="utf-8")

    assert rules_worker.add("city", "台北", path) is False
    assert path.read_text(encoding="utf-8") == text


def test_cli_rules_add_reports_broken_file(isolated_paths: Path, capsys) -> None:
    path = isolated_paths / "rules.json"
    path.write_text("{oops", encoding="utf-8")

    assert cli.main(["rules-add", "city", "基隆", "--rules", str(path)]) == 1

    assert "rules update failed" in capsys.readouterr().err
    assert path.read_text(encoding="utf-8") == "{oops"


@pytest.mark.parametrize("content", ["{not json", "42", '"text"'])
def test_check_rejects_unusable_samples(isolated_paths: Path, content: str) -> None:
    samples = isolated_paths / "samples.json"
    samples.write_text(content, encoding="utf-8")

    with pytest.raises(ValueError):
        rules_worker.check(samples)


def test_check_reads_items_wrapper(isolated_paths: Path) -> None:
    samples = isolated_paths / "samples.json"
    samples.write_text(
        json.dumps({"items": [{"title": "高雄市長視察", "summary": ""}, "skip me"]}, ensure_ascii=False),
        encoding="utf-8",
    )

    verdicts = rules_worker.check(samples)

    assert len(verdicts) == 1
    assert verdicts[0].city == "高雄"
    assert verdicts[0].passed is True


@pytest.mark.parametrize("name", ["missing.json", "samples.json"])
def test_cli_rules_check_reports_errors(isolated_paths: Path, capsys, name: str) -> None:
    (isolated_paths / "samples.json").write_text("{broken", encoding="utf-8")

    assert cli.main(["rules-check", str(isolated_paths / name)]) == 1

    assert "rules check failed" in capsys.readouterr().err


@pytest.mark.parametrize(
    "content, message",
    [
        (None, "rules file not found"),
        ("{broken", "rules file unreadable"),
        ("[1, 2]", "rules document must be a JSON object"),
    ],
)
def test_validate_reports_unusable_files(isolated_paths: Path, content, message: str) -> None:
    path = isolated_paths / "rules.json"
    if content is not None:
        path.write_text(content, encoding="utf-8")

    result = rules_worker.validate(path)

    assert result.valid is False
    assert result.errors[0].startswith(message)
