"""Data collection intensity scoring."""

from fiosfon.scoring.intensity import band_for, score, score_entry, score_labels

__all__ = ["band_for", "score", "score_entry", "score_labels"]
