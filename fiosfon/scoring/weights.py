"""
Scoring tables for the data collection intensity score.

Each category weighs most when used for tracking, less when linked to
the user's identity and least when collected unlinked.
"""

from __future__ import annotations

from fiosfon.labels import taxonomy as t
from fiosfon.models.privacy import BUCKET_LINKED, BUCKET_NOT_LINKED, BUCKET_TRACKED

# category: (tracked, linked, not linked)
_CATEGORY_WEIGHTS: dict[str, tuple[int, int, int]] = {
    t.IDENTIFIERS: (12, 9, 2),
    t.LOCATION: (12, 9, 2),
    t.CONTACT_INFO: (10, 8, 2),
    t.FINANCIAL_INFO: (12, 9, 2),
    t.HEALTH_FITNESS: (12, 9, 2),
    t.BROWSING_SEARCH_HISTORY: (10, 8, 2),
    t.USER_CONTENT: (8, 7, 2),
    t.PURCHASES: (6, 4, 1),
    t.USAGE_DATA: (6, 4, 1),
    t.DIAGNOSTICS: (2, 1, 1),
    t.PHOTOS_VIDEOS: (8, 7, 2),
    t.AUDIO_DATA: (6, 5, 1),
    t.MESSAGES: (10, 8, 2),
    t.CONTACTS: (8, 6, 1),
    t.SENSITIVE_INFO: (12, 10, 3),
    t.OTHER_DATA_TYPES: (4, 3, 1),
}

BUCKET_WEIGHTS: dict[str, dict[str, int]] = {
    bucket: {category: weights[i] for category, weights in _CATEGORY_WEIGHTS.items()}
    for i, bucket in enumerate((BUCKET_TRACKED, BUCKET_LINKED, BUCKET_NOT_LINKED))
}

BUCKET_CAPS: dict[str, float] = {
    BUCKET_TRACKED: 70,
    BUCKET_LINKED: 50,
    BUCKET_NOT_LINKED: 20,
}

RAW_MAX = sum(BUCKET_CAPS.values())

PURPOSE_BONUS: dict[str, int] = {
    t.ADVERTISING: 6,
    t.DEVELOPERS_ADVERTISING: 4,
    t.PERSONALIZATION: 4,
    t.PRODUCT_PERSONALIZATION: 3,
    t.ANALYTICS: 2,
    t.FRAUD_PREVENTION: 3,
    t.APP_FUNCTIONALITY: 0,
    t.OTHER_PURPOSES: 1,
}

# Extra weight for a category that is also tracked, counted in the
# linked and not-linked buckets.
TRACKED_ELSEWHERE_BONUS = 3

# Steepness of the logistic curve mapping raw totals to 0..100.
CURVE_STEEPNESS = 5.0

HIGH_THRESHOLD = 66
MEDIUM_THRESHOLD = 33
