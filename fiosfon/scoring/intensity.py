"""
Data collection intensity score.

Pure and total: any record (or none) yields a score in 0..100 and a
band.  Per bucket, category weights plus purpose bonuses are summed,
softened with a square root and capped; the capped parts are added
and mapped through a logistic curve.  Adding a category or a purpose
never lowers the score.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence

from fiosfon.models.charts import EnrichedEntry
from fiosfon.models.privacy import BUCKET_NAMES, BUCKET_TRACKED, CategoryDetail, PrivacyRecord
from fiosfon.models.score import Band, IntensityScore
from fiosfon.scoring import weights as w

_PART_KEYS = {
    BUCKET_NAMES[0]: "tracked",
    BUCKET_NAMES[1]: "linked",
    BUCKET_NAMES[2]: "notLinked",
}


def band_for(score_value: int) -> Band:
    if score_value >= w.HIGH_THRESHOLD:
        return "High"
    if score_value >= w.MEDIUM_THRESHOLD:
        return "Medium"
    return "Low"


def category_weight(bucket: str, category: str, detail: CategoryDetail | None) -> int:
    """Weight of one category in one bucket, purpose bonuses included."""
    base = w.BUCKET_WEIGHTS[bucket].get(category, 0)
    if detail is None:
        return base
    base += sum(w.PURPOSE_BONUS.get(purpose, 0) for purpose in detail.purposes)
    if bucket != BUCKET_TRACKED and detail.tracked:
        base += w.TRACKED_ELSEWHERE_BONUS
    return base


def bucket_part(bucket: str, categories: Sequence[str], details: Mapping[str, CategoryDetail]) -> float:
    """Capped, square-root-softened contribution of one bucket."""
    total = sum(category_weight(bucket, category, details.get(category)) for category in set(categories))
    cap = w.BUCKET_CAPS[bucket]
    return min(math.sqrt(total) * math.sqrt(cap), cap)


def curve(raw: float) -> int:
    """Map a raw total onto 0..100; zero stays zero."""
    if raw <= 0:
        return 0
    t = max(0.0, min(1.0, raw / w.RAW_MAX))
    y = 100 / (1 + math.exp(-w.CURVE_STEEPNESS * (t - 0.5)))
    # Round half up.
    return int(math.floor(y + 0.5))


def score_labels(
    buckets: Mapping[str, Sequence[str]] | None,
    details: Mapping[str, CategoryDetail] | None = None,
) -> IntensityScore:
    buckets = buckets or {}
    details = details or {}
    parts = {
        _PART_KEYS[bucket]: bucket_part(bucket, buckets.get(bucket, ()), details) for bucket in BUCKET_NAMES
    }
    value = curve(sum(parts.values()))
    return IntensityScore(score=value, band=band_for(value), parts=parts)


def score(record: PrivacyRecord | None) -> IntensityScore:
    """Score a record; ``None`` (no privacy data) scores 0 / Low."""
    if record is None:
        return score_labels(None)
    return score_labels(record.buckets, record.details)


def score_entry(entry: EnrichedEntry) -> IntensityScore:
    """Score the privacy fields carried by a merged chart entry."""
    return score_labels(entry.privacy_labels, entry.privacy_details)
