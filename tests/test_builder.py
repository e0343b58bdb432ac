"""Tests for filter sizing and construction."""
import math
import random

import pytest

from pyredirects.builder import (
    DEFAULT_ERROR_RATE,
    build_filter,
    create_bloom_filter,
    optimal_parameters,
)
from pyredirects.errors import InvalidParametersError


def random_paths(rng: random.Random, prefix: str, count: int) -> list[str]:
    return [f"{prefix}{rng.getrandbits(64):016x}" for _ in range(count)]


@pytest.mark.parametrize(
    "n, rate, expected",
    [
        (2, 0.0001, (39, 14)),
        (1000, 0.01, (9586, 7)),
        (1, 0.5, (2, 2)),
    ],
)
def test_optimal_parameters(n, rate, expected):
    """Test sizing for known key counts and error rates."""
    assert optimal_parameters(n, rate) == expected


def test_optimal_parameters_follow_formula():
    """Test sizing against the closed-form optimum."""
    n, p = 1234, 0.001
    m, k = optimal_parameters(n, p)
    assert m == math.ceil(-(n * math.log(p)) / math.log(2) ** 2)
    assert k == math.ceil((m / n) * math.log(2))


def test_empty_key_set_gets_minimal_filter():
    """Test building from no keys at all."""
    assert optimal_parameters(0) == (1, 1)
    bf = build_filter([])
    assert bf.size == 1
    assert bf.hash_count == 1
    assert not bf.has("/anything")
    assert not bf.has("/promo")


@pytest.mark.parametrize("rate", [0, 1, -0.1, 1.5, float("nan"), "0.01", None, True])
def test_invalid_error_rate(rate):
    """Test rejection of out-of-range error rates."""
    with pytest.raises(InvalidParametersError):
        build_filter(["/a"], rate)


def test_negative_key_count():
    """Test rejection of a negative key count."""
    with pytest.raises(InvalidParametersError):
        optimal_parameters(-1)


def test_scenario_promo_and_old_page():
    """Test a small filter with two redirect paths."""
    bf = build_filter(["/promo", "/old-page"], 0.0001)
    assert bf.has("/promo")
    assert bf.has("/old-page")
    assert not bf.has("/totally-unrelated-path-xyz123")


def test_create_bloom_filter_returns_record():
    """Test that create_bloom_filter returns a sized wire record."""
    record = create_bloom_filter(["/promo", "/old-page"])
    m, k = optimal_parameters(2, DEFAULT_ERROR_RATE)
    assert len(record["bitArray"]) == m
    assert record["hashFunctions"] == k


def test_build_filter_accepts_iterators():
    """Test building from a generator of keys."""
    bf = build_filter(f"/gen/{i}" for i in range(50))
    assert bf.size == optimal_parameters(50)[0]
    assert all(bf.has(f"/gen/{i}") for i in range(50))


def test_insertion_order_does_not_matter():
    """Test that key order does not change the bit state."""
    keys = [f"/k/{i}" for i in range(100)]
    forward = create_bloom_filter(keys, 0.01)
    backward = create_bloom_filter(list(reversed(keys)), 0.01)
    assert forward == backward


def test_no_false_negatives_for_random_keys():
    """Test random keys at several error rates."""
    rng = random.Random(7)
    for rate in (0.1, 0.01, 0.0001):
        keys = random_paths(rng, "/r/", 300)
        bf = build_filter(keys, rate)
        assert all(bf.has(k) for k in keys)


def test_false_positive_rate_is_bounded():
    """Test the observed false-positive rate at 1 %."""
    rng = random.Random(42)
    keys = random_paths(rng, "/products/", 1000)
    probes = random_paths(rng, "/missing/", 10000)
    bf = build_filter(keys, 0.01)
    observed = sum(bf.has(p) for p in probes) / len(probes)
    assert observed < 0.03


def test_false_positive_rate_at_default_rate():
    """Test the observed false-positive rate at the default rate."""
    rng = random.Random(1234)
    keys = random_paths(rng, "/redirect/", 200)
    probes = random_paths(rng, "/page/", 5000)
    bf = build_filter(keys)
    observed = sum(bf.has(p) for p in probes) / len(probes)
    assert observed < 0.005
