"""Category taxonomy and free-text label normalisation."""

from __future__ import annotations

from fiosfon.labels.normalizer import normalize, normalize_all, normalize_purpose

__all__ = ["normalize", "normalize_all", "normalize_purpose"]
