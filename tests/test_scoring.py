from __future__ import annotations

import pytest

from news_digest.domain import (
    MAX_RESULTS,
    UNMATCHED_LABEL,
    Candidate,
    calculate_score,
    default_rules,
    evaluate_samples,
    extract_category,
    extract_city,
    filter_and_rank,
    rules_from_mapping,
    score_candidate,
)

CITY_HALL_ITEM = Candidate(
    title="台北市政府秘書長視察活動",
    summary="市政府舉辦國際交流簽署儀式",
    url="https://example.com/a",
    source="聯合新聞網",
)


def _rules(**overrides):
    document = {
        "filterRules": {
            "cities": {"values": ["台北", "高雄"], "weight": 10},
            "keywords": {"values": ["市長", "會議"], "weight": 5},
            "excludeKeywords": {"values": ["股市"], "weight": -100},
        },
        "scoringRules": {"minScore": 5},
    }
    document["filterRules"].update(overrides)
    return rules_from_mapping(document)


def test_city_hall_item_scores_city_and_keywords() -> None:
    rules = default_rules()

    scored = score_candidate(CITY_HALL_ITEM, rules)

    assert scored.score == 35
    assert scored.city == "台北"
    assert scored.category == "秘書處業務"
    assert filter_and_rank([CITY_HALL_ITEM], rules) == [scored]


def test_exclude_keyword_forces_zero() -> None:
    rules = default_rules()
    item = Candidate(title=CITY_HALL_ITEM.title, summary=CITY_HALL_ITEM.summary + "，股市大漲")

    assert calculate_score(item, rules) == 0
    assert filter_and_rank([item], rules) == []


def test_matches_accumulate_per_city_and_keyword() -> None:
    rules = _rules()
    item = Candidate(title="台北與高雄市長會議", summary="")

    # two cities + two keywords
    assert calculate_score(item, rules) == 30


def test_score_matching_ignores_case_but_city_label_does_not() -> None:
    rules = _rules(cities={"values": ["Taipei"], "weight": 10})
    item = Candidate(title="TAIPEI mayor", summary="")

    assert calculate_score(item, rules) == 10
    assert extract_city(item, rules) == UNMATCHED_LABEL


def test_extract_city_returns_first_configured_match() -> None:
    rules = _rules()
    item = Candidate(title="高雄與台北合作", summary="")

    assert extract_city(item, rules) == "台北"


def test_extract_category_uses_mapping_order() -> None:
    rules = default_rules()
    item = Candidate(title="市長出席國際論壇", summary="")

    assert extract_category(item, rules) == "市政新聞"
    assert extract_category(Candidate(title="無關", summary=""), rules) == UNMATCHED_LABEL


def test_missing_optional_groups_degrade_gracefully() -> None:
    rules = rules_from_mapping({"filterRules": {"cities": {"values": ["台中"]}}})
    item = Candidate(title="台中新聞", summary="股市")

    assert rules.cities.weight == 10
    assert rules.keywords.weight == 5
    assert rules.min_score == 5
    assert calculate_score(item, rules) == 10
    assert extract_category(item, rules) == UNMATCHED_LABEL


def test_malformed_records_are_treated_as_empty_text() -> None:
    rules = _rules()

    scored = score_candidate({"title": None, "url": "https://example.com"}, rules)

    assert scored.score == 0
    assert scored.city == UNMATCHED_LABEL
    assert scored.url == "https://example.com"


def test_filter_and_rank_orders_by_score_and_keeps_ties_stable() -> None:
    rules = _rules()
    items = [
        {"title": "台北一", "summary": "", "url": "1"},
        {"title": "台北市長會議", "summary": "", "url": "2"},
        {"title": "高雄二", "summary": "", "url": "3"},
        {"title": "無關新聞", "summary": "", "url": "4"},
        {"title": "台北三", "summary": "", "url": "5"},
    ]

    ranked = filter_and_rank(items, rules)

    assert [item.url for item in ranked] == ["2", "1", "3", "5"]
    assert all(item.score >= rules.min_score for item in ranked)


def test_filter_and_rank_caps_output() -> None:
    rules = _rules()
    items = [Candidate(title=f"台北新聞 {idx}", summary="") for idx in range(MAX_RESULTS + 10)]

    ranked = filter_and_rank(items, rules)

    assert len(ranked) == MAX_RESULTS
    assert ranked[0].title == "台北新聞 0"
    assert filter_and_rank([], rules) == []


def test_scoring_is_repeatable() -> None:
    rules = default_rules()

    assert score_candidate(CITY_HALL_ITEM, rules) == score_candidate(CITY_HALL_ITEM, rules)


def test_passthrough_fields_survive_scoring() -> None:
    rules = _rules()

    scored = score_candidate({"title": "台北", "summary": "", "fetchedAt": "2025-01-01", "author": "x"}, rules)

    assert scored.fetched_at == "2025-01-01"
    assert scored.to_dict()["author"] == "x"


@pytest.mark.parametrize(
    ("title", "passed"),
    [("台北市長會議", True), ("今日天氣", False)],
)
def test_evaluate_samples_reports_pass_state(title: str, passed: bool) -> None:
    verdicts = evaluate_samples([{"title": title, "summary": ""}], default_rules())

    assert verdicts[0].passed is passed
