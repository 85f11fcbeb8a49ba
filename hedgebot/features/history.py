"""
Rolling snapshot buffer feeding the feature extractor.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, List

from hedgebot.core.errors import FeatureExtractionError
from hedgebot.core.types import BookSnapshot
from hedgebot.features.extractor import DEFAULT_DEPTH, DEFAULT_HISTORY, extract_features


class SnapshotHistory:
    """Keeps the last `size` snapshots, oldest first."""

    def __init__(self, size: int = DEFAULT_HISTORY, depth: int = DEFAULT_DEPTH) -> None:
        if size < 2:
            raise ValueError("history size must be >= 2")
        self.size = size
        self.depth = depth
        self._buffer: Deque[BookSnapshot] = deque(maxlen=size)

    def __len__(self) -> int:
        return len(self._buffer)

    @property
    def is_full(self) -> bool:
        return len(self._buffer) == self.size

    def push(self, snapshot: BookSnapshot) -> None:
        self._buffer.append(snapshot)

    def snapshots(self) -> List[BookSnapshot]:
        return list(self._buffer)

    def features(self) -> Dict[str, float]:
        if not self.is_full:
            raise FeatureExtractionError(f"history holds {len(self._buffer)} of {self.size} snapshots")
        return extract_features(self.snapshots(), history_size=self.size, depth=self.depth)

    def clear(self) -> None:
        self._buffer.clear()
