import threading

import pytest

from fairtopk.scq import InitialState, ScqRing, calc_remap_shift, remap_index


def drain(ring):
    values = []
    while True:
        value = ring.dequeue()
        if value is None:
            return values
        values.append(value)


@pytest.mark.parametrize("capacity", [8, 16, 64, 256])
def test_remap_shift_fits_ring(capacity):
    shift = calc_remap_shift(capacity)
    assert (1 << shift) * 8 == capacity * 2


@pytest.mark.parametrize("capacity", [1, 2, 4])
def test_small_capacity_has_no_remap(capacity):
    assert calc_remap_shift(capacity) == 0


@pytest.mark.parametrize("capacity", [0, 3, 12])
def test_remap_shift_rejects_non_powers(capacity):
    with pytest.raises(ValueError):
        calc_remap_shift(capacity)


@pytest.mark.parametrize("capacity", [1, 4, 8, 32])
def test_remap_index_is_a_permutation(capacity):
    n = capacity * 2
    shift = calc_remap_shift(capacity)
    slots = [remap_index(i << 1, shift, n) for i in range(n)]
    assert sorted(slots) == list(range(n))


def test_remap_index_rejects_mismatched_shift():
    with pytest.raises(ValueError):
        remap_index(0, 3, 16)


def test_empty_ring_yields_nothing():
    ring = ScqRing(8)
    assert ring.dequeue() is None


def test_full_ring_yields_every_index_in_order():
    ring = ScqRing(8, InitialState.FULL)
    assert drain(ring) == list(range(8))


def test_first_used_ring_holds_zero_only():
    ring = ScqRing(4, InitialState.FIRST_USED)
    assert drain(ring) == [0]


def test_first_empty_ring_holds_all_but_zero():
    ring = ScqRing(16, InitialState.FIRST_EMPTY)
    assert drain(ring) == list(range(1, 16))


@pytest.mark.parametrize("capacity", [2, 8, 32])
def test_fifo_round_trip(capacity):
    ring = ScqRing(capacity)
    values = list(reversed(range(capacity)))
    for value in values:
        assert ring.enqueue(value)
    assert drain(ring) == values


def test_refill_after_drain_many_rounds():
    ring = ScqRing(8, InitialState.FULL)
    for _ in range(20):
        values = drain(ring)
        assert sorted(values) == list(range(8))
        for value in values:
            assert ring.enqueue(value)
    assert drain(ring) == list(range(8))


@pytest.mark.parametrize("value", [-1, 8, 100])
def test_enqueue_rejects_out_of_range(value):
    ring = ScqRing(8)
    with pytest.raises(ValueError):
        ring.enqueue(value)


def test_finalized_ring_refuses_finalizable_enqueue():
    ring = ScqRing(8)
    assert ring.enqueue(3, finalizable=True)
    ring.finalize()
    assert ring.enqueue(4, finalizable=True) is False
    assert drain(ring) == [3]


def test_negative_threshold_hides_values():
    ring = ScqRing(8, InitialState.FULL)
    ring.set_threshold(-1)
    assert ring.dequeue() is None
    assert ring.dequeue(nonempty=True) == 0


def test_nonempty_dequeue_returns_values():
    ring = ScqRing(4)
    ring.enqueue(2)
    ring.enqueue(1)
    assert ring.dequeue(nonempty=True, pop_retries=5) == 2
    assert ring.dequeue(nonempty=True) == 1


def test_invalid_capacity_rejected():
    with pytest.raises(ValueError):
        ScqRing(6)


def test_concurrent_take_and_return_keeps_every_index():
    capacity = 8
    ring = ScqRing(capacity, InitialState.FULL)

    def worker():
        for _ in range(200):
            value = None
            while value is None:
                value = ring.dequeue(pop_retries=2)
            ring.enqueue(value)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    assert sorted(drain(ring)) == list(range(capacity))