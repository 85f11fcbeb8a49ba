"""
Features package - order-book feature vectors for the scoring model.
"""

from hedgebot.features.extractor import extract_features, feature_names, rolling_stats
from hedgebot.features.history import SnapshotHistory

__all__ = [
    "SnapshotHistory",
    "extract_features",
    "feature_names",
    "rolling_stats",
]
