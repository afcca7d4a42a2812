"""Crime feed normalisation: legend ranking, feature ids, and the capped round-robin sampler."""

from collections import Counter
from datetime import datetime, timezone

from hydration.features import (
    BASE_COLORS,
    MAX_CRIME_FEATURES,
    OTHER_CATEGORY,
    build_crime_layer,
    build_legend,
    legend_color,
    normalize_features,
    rank_categories,
    sample_features,
    unavailable_layer,
)

NOW = datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


def test_legend_color_uses_palette_then_rotates_hue() -> None:
    assert legend_color(0) == "#0A8A4B"
    assert legend_color(7) == BASE_COLORS[7]
    assert legend_color(8) == "hsl(16 68% 42%)"
    assert legend_color(9) == "hsl(63 68% 42%)"


def test_rank_categories_sorts_by_count_and_keeps_first_seen_ties(make_crime_records) -> None:
    records = make_crime_records({"shoplifting": 2, "burglary": 3, "drugs": 2})
    assert rank_categories(records) == [("burglary", 3), ("shoplifting", 2), ("drugs", 2)]


def test_missing_or_blank_category_becomes_other_crime() -> None:
    records = [{"category": ""}, {"category": None}, {}, {"category": "  "}]
    assert rank_categories(records) == [(OTHER_CATEGORY, 4)]


def test_legend_has_every_category_with_humanized_label(make_crime_records) -> None:
    records = make_crime_records({"anti-social-behaviour": 3, "violent-crime": 1})
    legend = build_legend(rank_categories(records))
    assert [b.id for b in legend] == ["anti-social-behaviour", "violent-crime"]
    assert legend[0].label == "anti social behaviour (3)"
    assert legend[0].color == BASE_COLORS[0]
    assert legend[1].count == 1


def test_normalize_features_skips_bad_coordinates_and_keeps_raw_index() -> None:
    records = [
        {"id": 7, "category": "drugs", "location": {"latitude": "51.5", "longitude": "-0.1"}},
        {"id": 8, "category": "drugs", "location": {"latitude": "abc", "longitude": "-0.1"}},
        {"category": "burglary", "location": {"latitude": 51.6, "longitude": None}},
        {"category": "burglary", "location": {"latitude": 51.7, "longitude": -0.2}},
        {"id": 9, "category": "drugs"},
    ]
    features = normalize_features(records)
    assert [f.id for f in features] == ["7-0", "crime-3"]
    assert features[0].lat == 51.5
    assert features[1].category == "burglary"
    assert all(f.type == "point" for f in features)


def test_sample_features_under_cap_returns_everything(make_crime_records) -> None:
    features = normalize_features(make_crime_records({"drugs": 10, "burglary": 5}))
    assert sample_features(features, ["drugs", "burglary"]) == features


def test_sample_features_round_robin_keeps_small_categories(make_crime_records) -> None:
    features = normalize_features(make_crime_records({"a": 300, "b": 10, "c": 5}))
    selected = sample_features(features, ["a", "b", "c"])
    counts = Counter(f.category for f in selected)
    assert len(selected) == MAX_CRIME_FEATURES
    assert counts == {"a": 235, "b": 10, "c": 5}
    assert [f.category for f in selected[:6]] == ["a", "b", "c", "a", "b", "c"]


def test_sample_features_never_includes_non_top_when_top_fills_cap(make_crime_records) -> None:
    counts = {"a": 100, "b": 100, "c": 60, "d": 50, "e": 40, "f": 30, "g": 20}
    records = make_crime_records(counts)
    top = [category for category, _ in rank_categories(records)[:5]]
    selected = sample_features(normalize_features(records), top)
    by_category = Counter(f.category for f in selected)
    assert len(selected) == MAX_CRIME_FEATURES
    assert "f" not in by_category and "g" not in by_category
    assert by_category["e"] == 40
    assert by_category["d"] == 50


def test_sample_features_backfills_from_other_categories(make_crime_records) -> None:
    counts = {"a": 45, "b": 45, "c": 45, "d": 45, "e": 45, "f": 44, "g": 44}
    records = make_crime_records(counts)
    selected = sample_features(normalize_features(records), ["a", "b", "c", "d", "e"])
    by_category = Counter(f.category for f in selected)
    assert len(selected) == MAX_CRIME_FEATURES
    assert by_category["f"] == 25
    assert "g" not in by_category


def test_sample_features_without_top_features_takes_first_cap(make_crime_records) -> None:
    features = normalize_features(make_crime_records({"a": 260}))
    selected = sample_features(features, ["zzz"])
    assert selected == features[:MAX_CRIME_FEATURES]


def test_build_crime_layer_summarises_feed(make_crime_records) -> None:
    records = make_crime_records(
        {"anti-social-behaviour": 60, "violent-crime": 40, "shoplifting": 20, "drugs": 12, "burglary": 6, "robbery": 4},
        month="2023-11",
    )
    build = build_crime_layer("SW1A 1AA", records, NOW)

    assert build.provider_month == "2023-11"
    assert build.layer.status == "available"
    assert build.layer.source_name == "UK Police Data"
    assert build.layer.last_updated == "2023-11"
    assert len(build.layer.legend) == 6
    assert len(build.layer.features) == len(records)

    metric = build.crime_metric
    assert metric.total_incidents == len(records)
    assert metric.primary_type == "anti social behaviour"
    assert [c.category for c in metric.top_categories] == [
        "anti social behaviour",
        "violent crime",
        "shoplifting",
        "drugs",
        "burglary",
    ]
    assert metric.last_updated == "2023-11"


def test_build_crime_layer_empty_feed_uses_current_month() -> None:
    build = build_crime_layer("SW1A 1AA", [], NOW)
    assert build.provider_month == "2024-03"
    assert build.crime_metric.total_incidents == 0
    assert build.crime_metric.primary_type == "Unknown"
    assert build.layer.features == []
    assert build.layer.legend == []


def test_layer_json_uses_camel_case_and_drops_empty_reason(make_crime_records) -> None:
    body = build_crime_layer("SW1A 1AA", make_crime_records({"drugs": 1}), NOW).layer.to_json_dict()
    assert body["sourceName"] == "UK Police Data"
    assert body["lastUpdated"] == "2024-01"
    assert "reason" not in body


def test_unavailable_layer_shape() -> None:
    body = unavailable_layer("price", "SW1A 1AA", "not yet").to_json_dict()
    assert body == {
        "metric": "price",
        "postcode": "SW1A 1AA",
        "status": "unavailable",
        "reason": "not yet",
        "legend": [],
        "features": [],
    }
