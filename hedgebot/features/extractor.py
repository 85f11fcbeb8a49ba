"""
Order-book feature extraction.

Turns a fixed-length history of L2 snapshots into one flat feature map for
the most recent snapshot: per-level prices, sizes and ratios, level-to-level
price differences, book aggregates, and rolling moments of the top-of-book
series over shrinking trailing windows.

The key names match the columns the scoring model was trained on
(including the historical "spreed" spelling), so they must not change.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

import numpy as np
from scipy import stats

from hedgebot.core.errors import FeatureExtractionError
from hedgebot.core.types import BookSnapshot

DEFAULT_HISTORY = 10
DEFAULT_DEPTH = 10

# Series taken from level 0 of every snapshot: (feature key, rolling prefix).
ROLLING_SERIES = (
    ("ask_p_0", "ask_p_roll"),
    ("bid_p_0", "bid_p_roll"),
    ("ask_vol_0", "ask_v_roll"),
    ("bid_vol_0", "bid_v_roll"),
)
STAT_NAMES = ("mean", "std", "var", "skew", "kurt")

# Below this sample variance a series is treated as constant.
_CONSTANT_VARIANCE = 1e-19


def extract_features(
    history: Sequence[BookSnapshot],
    history_size: int = DEFAULT_HISTORY,
    depth: int = DEFAULT_DEPTH,
) -> Dict[str, float]:
    """
    Build the feature map for history[-1].

    Args:
        history: Snapshots ordered oldest first, exactly history_size long
        history_size: Expected history length (H)
        depth: Levels per side used for the per-level features

    Returns:
        Flat mapping of feature name to float

    Raises:
        FeatureExtractionError: history length, depth or sizes are invalid
    """
    _validate(history, history_size, depth)

    rows = [_snapshot_features(snapshot, depth) for snapshot in history]
    features = dict(rows[-1])

    for level_key, prefix in ROLLING_SERIES:
        series: List[float] = [row[level_key] for row in rows]
        for window in range(history_size - 1, 1, -1):
            series.pop(0)
            features.update(rolling_stats(series, f"{prefix}_{window}"))
    return features


def feature_names(history_size: int = DEFAULT_HISTORY, depth: int = DEFAULT_DEPTH) -> List[str]:
    """Every key extract_features produces for the given shape, in a stable order."""
    names: List[str] = []
    for i in range(depth):
        names.extend(
            f"{base}_{i}"
            for base in (
                "ask_p", "ask_vol", "bid_p", "bid_vol", "spreed", "mid_p", "spreed_vol",
                "vol_rate", "sask_vol_rate", "sbid_vol_rate", "ask_vol_rate", "bid_vol_rate",
            )
        )
    for k in range(1, depth):
        for name in (f"ask_p_diff_{k}_0", f"bid_p_diff_{k}_0", f"ask_p_diff_{k}_{k - 1}", f"bid_p_diff_{k}_{k - 1}"):
            if name not in names:
                names.append(name)
    names.extend(["ask_p_mean", "bid_p_mean", "ask_vol_mean", "bid_vol_mean", "accum_spreed_vol", "accum_spreed"])
    for window in range(history_size - 1, 1, -1):
        for _, prefix in ROLLING_SERIES:
            names.extend(f"{prefix}_{window}_{stat}" for stat in STAT_NAMES)
    return names


def _validate(history: Sequence[BookSnapshot], history_size: int, depth: int) -> None:
    if history_size < 2:
        raise FeatureExtractionError(f"history_size must be >= 2, got {history_size}")
    if depth < 1:
        raise FeatureExtractionError(f"depth must be >= 1, got {depth}")
    if len(history) != history_size:
        raise FeatureExtractionError(f"expected {history_size} snapshots, got {len(history)}")
    for idx, snapshot in enumerate(history):
        if len(snapshot.bids) < depth or len(snapshot.asks) < depth:
            raise FeatureExtractionError(
                f"snapshot {idx} has {len(snapshot.bids)} bids / {len(snapshot.asks)} asks, need {depth}"
            )
        for level in (*snapshot.bids[:depth], *snapshot.asks[:depth]):
            if level.size <= 0:
                raise FeatureExtractionError(f"snapshot {idx} has a non-positive size at price {level.price}")


def _snapshot_features(snapshot: BookSnapshot, depth: int) -> Dict[str, float]:
    row: Dict[str, float] = {}
    ask_price_sum = 0.0
    bid_price_sum = 0.0
    ask_size_sum = 0.0
    bid_size_sum = 0.0
    size_spread_sum = 0.0
    spread_sum = 0.0

    for i in range(depth):
        ask = snapshot.asks[i]
        bid = snapshot.bids[i]
        ask_px = float(ask.price)
        bid_px = float(bid.price)
        ask_sz = float(ask.size)
        bid_sz = float(bid.size)

        row[f"ask_p_{i}"] = ask_px
        row[f"ask_vol_{i}"] = ask_sz
        row[f"bid_p_{i}"] = bid_px
        row[f"bid_vol_{i}"] = bid_sz
        spread = ask_px - bid_px
        spread_sum += spread
        row[f"spreed_{i}"] = spread
        row[f"mid_p_{i}"] = (ask_px + bid_px) / 2
        size_spread = ask_sz - bid_sz
        row[f"spreed_vol_{i}"] = size_spread
        size_spread_sum += size_spread
        row[f"vol_rate_{i}"] = ask_sz / bid_sz
        row[f"sask_vol_rate_{i}"] = size_spread / ask_sz
        row[f"sbid_vol_rate_{i}"] = size_spread / bid_sz
        total = ask_sz + bid_sz
        row[f"ask_vol_rate_{i}"] = ask_sz / total
        row[f"bid_vol_rate_{i}"] = bid_sz / total

        ask_price_sum += ask_px
        bid_price_sum += bid_px
        ask_size_sum += ask_sz
        bid_size_sum += bid_sz

    for i in range(depth - 1):
        k = i + 1
        row[f"ask_p_diff_{k}_0"] = row[f"ask_p_{k}"] - row["ask_p_0"]
        row[f"bid_p_diff_{k}_0"] = row[f"bid_p_{k}"] - row["bid_p_0"]
        row[f"ask_p_diff_{k}_{i}"] = row[f"ask_p_{k}"] - row[f"ask_p_{i}"]
        row[f"bid_p_diff_{k}_{i}"] = row[f"bid_p_{k}"] - row[f"bid_p_{i}"]

    row["ask_p_mean"] = ask_price_sum / depth
    row["bid_p_mean"] = bid_price_sum / depth
    row["ask_vol_mean"] = ask_size_sum / depth
    row["bid_vol_mean"] = bid_size_sum / depth
    row["accum_spreed_vol"] = size_spread_sum
    row["accum_spreed"] = spread_sum
    return row


def rolling_stats(values: Sequence[float], prefix: str) -> Dict[str, float]:
    """
    Moments of one trailing window.

    std is the sample standard deviation, var the population variance.
    skew and kurt are the bias-corrected sample estimators (kurt is excess
    kurtosis); they are NaN when the window is too short (n < 3 and n < 4)
    and 0.0 for a constant window.
    """
    arr = np.asarray(values, dtype=np.float64)
    n = arr.size
    mean = float(arr.mean())
    std = float(arr.std(ddof=1)) if n > 1 else float("nan")
    var = float(arr.var())
    return {
        f"{prefix}_mean": mean,
        f"{prefix}_std": std,
        f"{prefix}_var": var,
        f"{prefix}_skew": _skewness(arr, mean),
        f"{prefix}_kurt": _kurtosis(arr, mean),
    }


def _skewness(arr: np.ndarray, mean: float) -> float:
    if arr.size < 3:
        return float("nan")
    if _is_constant(arr, mean):
        return 0.0
    return float(stats.skew(arr, bias=False))


def _kurtosis(arr: np.ndarray, mean: float) -> float:
    if arr.size < 4:
        return float("nan")
    if _is_constant(arr, mean):
        return 0.0
    return float(stats.kurtosis(arr, bias=False))


def _is_constant(arr: np.ndarray, mean: float) -> bool:
    # scipy returns NaN for a zero-variance window
    dev = arr - mean
    return float(np.sum(dev * dev)) / (arr.size - 1) < _CONSTANT_VARIANCE
