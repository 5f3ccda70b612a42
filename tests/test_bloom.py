import math

import mmh3
import pytest

from bloomd import bloom as bloom_module
from bloomd.bloom import BitStore, BloomFilter, HashFamily, calc_k, calc_m
from bloomd.errors import ConfigurationError


def test_calc_m():
    assert calc_m(1_000_000, 0.02) == 8_142_363


def test_calc_k():
    assert calc_k(1_000_000, 8_142_363) == 5


def test_geometry_of_default_service_filter():
    bloom = BloomFilter(100_000, 0.01)
    assert bloom.m == 958_505
    assert bloom.k == 6
    assert bloom.size == math.ceil(958_505 / 8) == 119_814


def test_tiny_filters_still_have_one_bit_and_one_hash():
    assert calc_m(1, 0.99) == 1
    assert calc_k(1, 1) == 1
    bloom = BloomFilter(1, 0.99)
    bloom.insert("x")
    assert bloom.contains("x")


def test_k_is_clamped_when_m_is_small_relative_to_n():
    assert calc_k(1000, 10) == 1


@pytest.mark.parametrize(
    "n, f",
    [(0, 0.01), (-5, 0.01), (1.5, 0.01), (True, 0.01), (10, 0.0), (10, 1.0), (10, -0.1), (10, 2.0)],
)
def test_invalid_configuration_is_rejected(n, f):
    with pytest.raises(ConfigurationError):
        BloomFilter(n, f)


def test_configuration_error_is_a_value_error():
    with pytest.raises(ValueError):
        calc_m(0, 0.5)


def test_bitstore_get_set():
    store = BitStore(13)
    assert len(store) == 13
    assert store.nbytes == 2
    assert not any(store.get(i) for i in range(13))
    store.set(0)
    store.set(12)
    store.set(12)
    assert store.get(0) and store.get(12)
    assert not store.get(11)
    assert store.count() == 2
    # LSB first: bit 0 in byte 0, bit 12 is bit 4 of byte 1
    assert store.to_bytes() == bytes([0b0000_0001, 0b0001_0000])


def test_hash_family_indexes_in_range_and_deterministic():
    family = HashFamily(k=7, m=97)
    first = list(family.indexes("item"))
    assert len(first) == 7
    assert all(0 <= i < 97 for i in first)
    assert first == list(HashFamily(k=7, m=97).indexes("item"))
    assert first == [family.index("item", i) for i in range(7)]


def test_secondary_key_changes_the_family():
    a = list(HashFamily(k=4, m=1 << 20).indexes("item"))
    b = list(HashFamily(k=4, m=1 << 20, secondary_key=0xDEADBEEF).indexes("item"))
    assert a != b


@pytest.fixture
def hash_calls(monkeypatch):
    calls = []
    real = mmh3.hash128

    def counting(*args, **kwargs):
        calls.append(args)
        return real(*args, **kwargs)

    monkeypatch.setattr(bloom_module.mmh3, "hash128", counting)
    return calls


def test_contains_stops_at_first_unset_slot(hash_calls):
    bloom = BloomFilter(100_000, 0.01)
    assert bloom.k > 1
    assert not bloom.contains("anything")
    assert len(hash_calls) == 1


def test_contains_of_inserted_item_checks_all_slots(hash_calls):
    bloom = BloomFilter(100_000, 0.01)
    bloom.insert("hi")
    del hash_calls[:]
    assert bloom.contains("hi")
    assert len(hash_calls) == bloom.k


def test_end_to_end_example():
    bloom = BloomFilter(100_000, 0.01)

    bloom.insert("hi")
    assert bloom.contains("hi")

    bloom.insert("no")
    assert bloom.contains("no")

    assert not bloom.contains("yo")


def test_in_operator():
    bloom = BloomFilter(100, 0.01)
    bloom.insert(b"abc")
    assert b"abc" in bloom
    assert b"abd" not in bloom


def test_no_false_negatives_with_interleaved_queries():
    bloom = BloomFilter(5_000, 0.01)
    inserted = []
    for i in range(5_000):
        item = f"user-{i}"
        bloom.insert(item)
        inserted.append(item)
        bloom.contains(f"probe-{i}")
        if i % 500 == 0:
            assert all(bloom.contains(x) for x in inserted)
    assert all(bloom.contains(x) for x in inserted)


def test_insert_is_idempotent():
    once = BloomFilter(1_000, 0.01)
    twice = BloomFilter(1_000, 0.01)
    for item in ("a", "b", ("tuple", 1)):
        once.insert(item)
        twice.insert(item)
        twice.insert(item)
    assert once.snapshot() == twice.snapshot()
    probes = [f"p{i}" for i in range(200)] + ["a", "b", ("tuple", 1)]
    assert [once.contains(p) for p in probes] == [twice.contains(p) for p in probes]


def test_two_filters_with_same_geometry_are_identical():
    a = BloomFilter(10_000, 0.001)
    b = BloomFilter(10_000, 0.001)
    for i in range(2_000):
        a.insert(i)
        b.insert(i)
    assert a.snapshot() == b.snapshot()
    probes = range(2_000, 12_000)
    assert [a.contains(p) for p in probes] == [b.contains(p) for p in probes]


def test_false_positive_rate_is_close_to_target():
    n, f = 100_000, 0.01
    bloom = BloomFilter(n, f)
    for i in range(n):
        bloom.insert(f"in-{i}")
    false_positives = sum(bloom.contains(f"out-{i}") for i in range(n))
    rate = false_positives / n
    assert f / 2 <= rate <= f * 2


def test_structured_items():
    bloom = BloomFilter(1_000, 0.01)
    bloom.insert(("user", 42, {"roles": frozenset({"a", "b"})}))
    assert bloom.contains(("user", 42, {"roles": frozenset({"b", "a"})}))
    assert not bloom.contains(("user", 43, {"roles": frozenset({"a", "b"})}))


def test_unhashable_item_raises_type_error():
    bloom = BloomFilter(1_000, 0.01)
    with pytest.raises(TypeError):
        bloom.insert(object())


def test_stats():
    bloom = BloomFilter(1_000, 0.01)
    empty = bloom.stats()
    assert empty.inserted == 0
    assert empty.fill_ratio == 0.0
    assert empty.estimated_false_positive_rate == 0.0

    bloom.insert("x")
    bloom.insert("x")
    stats = bloom.stats()
    assert stats.inserted == 2
    assert (stats.n, stats.f, stats.m, stats.k) == (bloom.n, bloom.f, bloom.m, bloom.k)
    assert stats.size_bytes == bloom.size
    assert 0 < stats.fill_ratio <= bloom.k / bloom.m
    assert stats.estimated_false_positive_rate == pytest.approx(stats.fill_ratio ** bloom.k)
    assert stats.estimated_false_positive_rate == bloom.estimated_false_positive_rate
