import random
from datetime import datetime, timezone

import pytest

from flare_stats.aggregation.grid import generate_grid
from flare_stats.aggregation.normalizer import normalize
from flare_stats.domain.exceptions import MalformedSampleSetError
from flare_stats.domain.models import Period, Sample


def _sample(key: str, visits: int, page_views: int) -> Sample:
    return Sample(bucket_key=key, visits=visits, page_views=page_views)


def test_zero_fills_missing_buckets():
    result = normalize([_sample("k2", 5, 9)], ["k1", "k2", "k3"])

    assert [(p.timestamp, p.visits, p.page_views) for p in result.series] == [
        ("k1", 0, 0),
        ("k2", 5, 9),
        ("k3", 0, 0),
    ]
    assert (result.visits, result.page_views) == (5, 9)


def test_empty_samples_yield_all_zero_series():
    grid = generate_grid(Period.LAST_24_HOURS, datetime(2024, 1, 15, 3, tzinfo=timezone.utc))
    result = normalize([], grid)

    assert len(result.series) == 24
    assert all(p.visits == 0 and p.page_views == 0 for p in result.series)
    assert (result.visits, result.page_views) == (0, 0)


def test_full_data_is_kept_in_grid_order():
    keys = ["2024-01-15", "2024-01-16"]
    samples = [_sample("2024-01-16", 3, 4), _sample("2024-01-15", 1, 2)]
    result = normalize(samples, keys)

    assert [p.timestamp for p in result.series] == keys
    assert [p.visits for p in result.series] == [1, 3]


def test_out_of_grid_samples_are_ignored():
    result = normalize(
        [_sample("2023-12-31", 100, 100), _sample("k1", 1, 1)], ["k1", "k2"]
    )
    assert (result.visits, result.page_views) == (1, 1)
    assert [p.timestamp for p in result.series] == ["k1", "k2"]


def test_duplicate_keys_raise():
    with pytest.raises(MalformedSampleSetError) as exc_info:
        normalize([_sample("k1", 1, 1), _sample("k1", 2, 2)], ["k1"])
    assert exc_info.value.context["bucket_key"] == "k1"


def test_negative_counts_pass_through_unchanged():
    result = normalize([_sample("k1", -3, 2), _sample("k2", 4, 1)], ["k1", "k2"])
    assert result.series[0].visits == -3
    assert result.visits == 1
    assert result.page_views == 3


def test_series_matches_grid_and_totals_are_consistent():
    rng = random.Random(7)
    for period in Period:
        grid = generate_grid(period, datetime(2024, 5, 20, 17, 45, tzinfo=timezone.utc))
        chosen = rng.sample(list(grid.keys), k=len(grid.keys) // 2)
        samples = [
            _sample(key, rng.randint(0, 50), rng.randint(0, 80)) for key in chosen
        ]

        result = normalize(samples, grid)

        assert tuple(p.timestamp for p in result.series) == grid.keys
        assert result.visits == sum(p.visits for p in result.series)
        assert result.page_views == sum(p.page_views for p in result.series)


def test_normalize_is_deterministic():
    grid = generate_grid(Period.LAST_7_DAYS, datetime(2024, 1, 15, tzinfo=timezone.utc))
    samples = {_sample("2024-01-12", 4, 8), _sample("2024-01-14", 1, 1)}

    assert normalize(samples, grid) == normalize(samples, grid)
