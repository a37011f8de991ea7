# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
Tests for the stable priority queue

These tests verify:
- Highest priority first, FIFO among equal priorities
- Non-destructive iteration
- Removal by identity and copying
"""

import copy
import pickle

import pytest

from filterbox.core.priority_queue import PriorityQueue


@pytest.fixture
def queue():
    q = PriorityQueue()
    q.insert("low", 1)
    q.insert("high", 100)
    q.insert("mid-a", 50)
    q.insert("mid-b", 50)
    return q


class TestOrdering:
    """Iteration order"""

    def test_highest_priority_first(self, queue):
        assert list(queue) == ["high", "mid-a", "mid-b", "low"]

    def test_equal_priorities_keep_insertion_order(self):
        q = PriorityQueue()
        for name in ["a", "b", "c", "d"]:
            q.insert(name, 7)
        assert list(q) == ["a", "b", "c", "d"]

    def test_negative_priorities_run_last(self):
        q = PriorityQueue()
        q.insert("neg", -5)
        q.insert("zero", 0)
        assert list(q) == ["zero", "neg"]

    def test_payloads_are_never_compared(self):
        q = PriorityQueue()
        q.insert({"a": 1}, 1)
        q.insert({"b": 2}, 1)
        assert q.to_list() == [{"a": 1}, {"b": 2}]

    def test_to_list_modes(self, queue):
        assert queue.to_list("priority") == [100, 50, 50, 1]
        assert queue.to_list("both")[0] == ("high", 100)

    def test_to_list_rejects_unknown_mode(self, queue):
        with pytest.raises(ValueError, match="Unknown extract mode"):
            queue.to_list("keys")


class TestNonDestructive:
    """Inspection never consumes the queue"""

    def test_iterating_twice(self, queue):
        assert list(queue) == list(queue)
        assert queue.count() == 4

    def test_top_and_extract(self, queue):
        assert queue.top() == "high"
        assert len(queue) == 4
        assert queue.extract() == "high"
        assert len(queue) == 3

    def test_empty_queue(self):
        q = PriorityQueue()
        assert q.is_empty()
        assert list(q) == []
        with pytest.raises(IndexError):
            q.extract()
        with pytest.raises(IndexError):
            q.top()


class TestMutation:
    def test_remove_by_identity(self):
        q = PriorityQueue()
        first, second = ["x"], ["x"]
        q.insert(first, 1)
        q.insert(second, 1)

        assert q.remove(second) is True
        assert q.to_list()[0] is first
        assert q.remove(second) is False

    def test_contains_and_has_priority(self, queue):
        item = object()
        queue.insert(item, 3)
        assert item in queue
        assert queue.has_priority(3)
        assert not queue.has_priority(4)

    def test_clear(self, queue):
        queue.clear()
        assert queue.count() == 0


class TestCopying:
    def test_copy_is_independent(self, queue):
        clone = queue.copy()
        clone.insert("extra", 1000)
        assert queue.count() == 4
        assert clone.count() == 5

    def test_copy_keeps_fifo_after_new_inserts(self):
        q = PriorityQueue()
        q.insert("first", 1)
        clone = copy.copy(q)
        clone.insert("second", 1)
        assert list(clone) == ["first", "second"]

    def test_copy_shares_items(self):
        item = ["shared"]
        q = PriorityQueue()
        q.insert(item, 1)
        assert copy.copy(q).top() is item
        assert copy.deepcopy(q).top() is not item

    def test_pickle_preserves_order(self, queue):
        restored = pickle.loads(pickle.dumps(queue))
        assert list(restored) == list(queue)
