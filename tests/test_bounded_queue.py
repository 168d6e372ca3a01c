import threading

import pytest

from fairtopk.bounded_queue import BoundedQueue, QueueEmpty


@pytest.mark.parametrize("size", [0, 1, 3, 6, 12])
def test_rejects_bad_sizes(size):
    with pytest.raises(ValueError):
        BoundedQueue(size)


def test_capacity_matches_size():
    assert BoundedQueue(8).capacity == 8


def test_fifo_order():
    queue = BoundedQueue(8)
    for item in ["a", "b", "c"]:
        assert queue.try_push(item)
    assert [queue.pop(), queue.pop(), queue.pop()] == ["a", "b", "c"]


def test_pop_empty_raises():
    queue = BoundedQueue(4)
    with pytest.raises(QueueEmpty):
        queue.pop()
    with pytest.raises(QueueEmpty):
        queue.pop_weak()
    with pytest.raises(QueueEmpty):
        queue.pop_strong()


@pytest.mark.parametrize("method", ["try_push", "try_push_strong", "try_push_weak"])
def test_push_fails_when_full(method):
    queue = BoundedQueue(4)
    push = getattr(queue, method)
    assert all(push(i) for i in range(4))
    assert push(99) is False
    assert len(queue) == 4


def test_none_is_a_valid_item():
    queue = BoundedQueue(2)
    assert queue.try_push(None)
    assert queue.pop() is None
    with pytest.raises(QueueEmpty):
        queue.pop()


def test_len_tracks_pushes_and_pops():
    queue = BoundedQueue(4)
    queue.try_push(1)
    queue.try_push(2)
    assert len(queue) == 2
    queue.pop()
    assert len(queue) == 1


def test_wraps_around_many_times():
    queue = BoundedQueue(4, default_to_weak=True)
    popped = []
    for round_ in range(50):
        items = [round_ * 3 + i for i in range(3)]
        for item in items:
            assert queue.try_push(item)
        popped.extend(queue.pop() for _ in items)
    assert popped == list(range(150))
    assert len(queue) == 0


def test_weak_and_strong_mix():
    queue = BoundedQueue(4)
    assert queue.try_push_weak("x")
    assert queue.try_push_strong("y")
    assert queue.pop_weak() == "x"
    assert queue.pop_strong() == "y"


def test_default_to_weak_flag():
    assert BoundedQueue(4, default_to_weak=True).default_to_weak is True
    assert BoundedQueue(4).default_to_weak is False


def test_concurrent_producers_and_consumers():
    queue = BoundedQueue(16)
    producers = 4
    per_producer = 300
    total = producers * per_producer
    received = []
    received_lock = threading.Lock()

    def produce(offset):
        for i in range(per_producer):
            while not queue.try_push(offset * per_producer + i):
                pass

    def consume():
        while True:
            with received_lock:
                if len(received) >= total:
                    return
            try:
                item = queue.pop()
            except QueueEmpty:
                continue
            with received_lock:
                received.append(item)

    threads = [threading.Thread(target=produce, args=(p,)) for p in range(producers)]
    threads += [threading.Thread(target=consume) for _ in range(3)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert [thread.is_alive() for thread in threads] == [False] * len(threads)
    assert len(queue) == 0
    assert sorted(received) == list(range(total))
    with pytest.raises(QueueEmpty):
        queue.pop()