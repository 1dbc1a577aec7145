"""Gap-filling of sparse samples onto a bucket grid."""

from __future__ import annotations

from typing import Dict, Iterable, NamedTuple, Sequence, Tuple, Union

from flare_stats.domain.exceptions import MalformedSampleSetError
from flare_stats.domain.models import BucketGrid, Sample, SeriesPoint


class NormalizedSeries(NamedTuple):
    series: Tuple[SeriesPoint, ...]
    visits: int
    page_views: int


def normalize(
    samples: Iterable[Sample], grid: Union[BucketGrid, Sequence[str]]
) -> NormalizedSeries:
    """Merge ``samples`` onto ``grid``, zero-filling buckets with no sample.

    ``grid`` may be a ``BucketGrid`` or a bare ordered sequence of keys.
    Samples outside the grid are ignored. Two samples for the same bucket key
    raise ``MalformedSampleSetError``. Totals are summed from the emitted
    series, so they always agree with it.
    """

    keys = grid.keys if isinstance(grid, BucketGrid) else tuple(grid)
    by_key = index_samples(samples)
    series = tuple(
        SeriesPoint(
            timestamp=key,
            visits=by_key[key].visits if key in by_key else 0,
            page_views=by_key[key].page_views if key in by_key else 0,
        )
        for key in keys
    )
    return NormalizedSeries(
        series=series,
        visits=sum(point.visits for point in series),
        page_views=sum(point.page_views for point in series),
    )


def index_samples(samples: Iterable[Sample]) -> Dict[str, Sample]:
    indexed: Dict[str, Sample] = {}
    for sample in samples:
        if sample.bucket_key in indexed:
            raise MalformedSampleSetError(
                "Duplicate sample for bucket",
                context={"bucket_key": sample.bucket_key},
            )
        indexed[sample.bucket_key] = sample
    return indexed
