import pytest

from optics_clustering_analysis.optics.priority_queue import ReachabilityHeap


def test_pop_orders_by_key_then_item():
    heap = ReachabilityHeap()
    for item, key in [(4, 2.0), (1, 1.0), (3, 1.0), (2, 5.0), (0, float("inf"))]:
        heap.push(item, key)

    popped = [heap.pop() for _ in range(len(heap))]

    assert popped == [(1, 1.0), (3, 1.0), (4, 2.0), (2, 5.0), (0, float("inf"))]
    assert not heap


def test_decrease_key_moves_item_forward():
    heap = ReachabilityHeap()
    heap.push(1, 3.0)
    heap.push(2, 2.0)

    heap.decrease_key(1, 1.0)

    assert heap.peek() == (1, 1.0)
    assert heap.key(1) == 1.0


def test_push_or_decrease_reports_changes():
    heap = ReachabilityHeap()

    assert heap.push_or_decrease(5, 2.0) is True
    assert heap.push_or_decrease(5, 3.0) is False
    assert heap.push_or_decrease(5, 1.5) is True
    assert 5 in heap
    assert len(heap) == 1


def test_invalid_operations_raise():
    heap = ReachabilityHeap()
    heap.push(1, 1.0)

    with pytest.raises(KeyError):
        heap.push(1, 0.5)
    with pytest.raises(ValueError, match="larger"):
        heap.decrease_key(1, 2.0)

    heap.clear()
    with pytest.raises(IndexError):
        heap.pop()


def test_many_items_come_out_sorted():
    heap = ReachabilityHeap()
    keys = [(i * 7919) % 101 / 10.0 for i in range(100)]
    for item, key in enumerate(keys):
        heap.push(item, key)
    for item in range(0, 100, 3):
        heap.push_or_decrease(item, keys[item] / 2.0)

    popped = [heap.pop() for _ in range(len(heap))]

    assert popped == sorted(popped, key=lambda entry: (entry[1], entry[0]))
