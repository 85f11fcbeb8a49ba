"""Tests for order-book feature extraction."""

import math

import pytest

from hedgebot.core.errors import FeatureExtractionError
from hedgebot.core.types import BookSnapshot, PriceLevel
from hedgebot.features.extractor import extract_features, feature_names, rolling_stats

from conftest import build_book


def _history(n=10, depth=10):
    return [
        build_book(best_bid=10000.0 + i, best_ask=10001.0 + i * 1.5, levels=depth, bid_size=5.0 + i, ask_size=4.0 + (i % 3))
        for i in range(n)
    ]


def _same(a, b):
    return (math.isnan(a) and math.isnan(b)) or a == b


def test_feature_key_set_has_320_keys():
    features = extract_features(_history())
    assert len(features) == 320
    assert set(features) == set(feature_names())
    assert len(feature_names()) == 320


def test_feature_names_include_model_columns():
    names = set(feature_names())
    for key in ("spreed_0", "sask_vol_rate_9", "ask_p_diff_1_0", "bid_p_diff_9_8",
                "accum_spreed", "ask_p_roll_9_mean", "bid_v_roll_2_kurt"):
        assert key in names
    assert "ask_p_roll_10_mean" not in names
    assert "ask_p_roll_1_mean" not in names


def test_extraction_is_deterministic():
    history = _history()
    first = extract_features(history)
    second = extract_features(list(history))
    assert first.keys() == second.keys()
    assert all(_same(first[k], second[k]) for k in first)


def test_per_level_values_describe_latest_snapshot():
    history = _history()
    latest = history[-1]
    f = extract_features(history)
    assert f["ask_p_0"] == latest.asks[0].price
    assert f["bid_vol_3"] == latest.bids[3].size
    assert f["spreed_0"] == latest.asks[0].price - latest.bids[0].price
    assert f["mid_p_0"] == (latest.asks[0].price + latest.bids[0].price) / 2
    assert f["spreed_vol_0"] == latest.asks[0].size - latest.bids[0].size
    assert f["vol_rate_0"] == latest.asks[0].size / latest.bids[0].size
    assert f["ask_vol_rate_0"] + f["bid_vol_rate_0"] == pytest.approx(1.0)
    assert f["ask_p_diff_2_0"] == latest.asks[2].price - latest.asks[0].price
    assert f["bid_p_diff_2_1"] == latest.bids[2].price - latest.bids[1].price
    assert f["ask_p_diff_1_0"] == latest.asks[1].price - latest.asks[0].price


def test_aggregates():
    history = _history()
    latest = history[-1]
    f = extract_features(history)
    assert f["ask_p_mean"] == pytest.approx(sum(l.price for l in latest.asks) / 10)
    assert f["accum_spreed"] == pytest.approx(sum(a.price - b.price for a, b in zip(latest.asks, latest.bids)))
    assert f["accum_spreed_vol"] == pytest.approx(sum(a.size - b.size for a, b in zip(latest.asks, latest.bids)))


def test_rolling_windows_drop_oldest_samples():
    history = _history()
    f = extract_features(history)
    bids = [s.bids[0].price for s in history]
    assert f["bid_p_roll_9_mean"] == pytest.approx(sum(bids[1:]) / 9)
    assert f["bid_p_roll_2_mean"] == pytest.approx(sum(bids[-2:]) / 2)
    assert math.isnan(f["bid_p_roll_2_skew"])
    assert math.isnan(f["bid_p_roll_3_kurt"])
    assert not math.isnan(f["bid_p_roll_3_skew"])


def test_rolling_stats_conventions():
    stats = rolling_stats([1.0, 2.0, 3.0, 4.0, 10.0], "x")
    assert stats["x_mean"] == pytest.approx(4.0)
    assert stats["x_std"] == pytest.approx(math.sqrt(12.5))  # sample
    assert stats["x_var"] == pytest.approx(10.0)  # population
    assert stats["x_skew"] == pytest.approx(1.2 * math.sqrt(2))
    assert stats["x_kurt"] == pytest.approx(3.152, abs=1e-9)


def test_rolling_stats_constant_series():
    stats = rolling_stats([5.0] * 6, "c")
    assert stats["c_std"] == 0.0
    assert stats["c_var"] == 0.0
    assert stats["c_skew"] == 0.0
    assert stats["c_kurt"] == 0.0


def test_wrong_history_length_raises():
    with pytest.raises(FeatureExtractionError):
        extract_features(_history(9))
    with pytest.raises(FeatureExtractionError):
        extract_features(_history(11))


def test_shallow_book_raises():
    history = _history()
    history[4] = build_book(levels=9)
    with pytest.raises(FeatureExtractionError):
        extract_features(history)


def test_non_positive_size_raises():
    history = _history()
    snap = history[-1]
    asks = list(snap.asks)
    asks[3] = PriceLevel(asks[3].price, 0.0)
    history[-1] = BookSnapshot(instrument=snap.instrument, bids=snap.bids, asks=asks)
    with pytest.raises(FeatureExtractionError):
        extract_features(history)


def test_custom_shape():
    history = _history(n=4, depth=3)
    f = extract_features(history, history_size=4, depth=3)
    assert set(f) == set(feature_names(4, 3))
    # 12*3 + (4*2 - 1*2) + 6 + 4 series * 2 windows * 5 stats
    assert len(f) == 36 + 6 + 6 + 40
