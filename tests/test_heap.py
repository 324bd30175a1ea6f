from typing import Union

import pytest

from heap import (
    EMPTY,
    EmptyHeap,
    EmptyHeapError,
    Heap,
    Node,
    delete_min,
    depth,
    empty,
    find_min,
    from_iterable,
    get_stats,
    insert,
    is_empty,
    is_valid_heap,
    iter_sorted,
    meld,
    nsmallest,
    print_tree,
    rank,
    size,
    to_list,
    to_tree_repr,
)


def test_empty_heap():
    """The canonical empty heap is a singleton and reports itself empty"""
    h = empty()
    assert h is EMPTY
    assert EmptyHeap() is EMPTY
    assert is_empty(h)
    assert size(h) == 0
    assert rank(h) == 0
    assert depth(h) == 0
    assert is_valid_heap(h)


def test_find_min_on_empty_raises():
    with pytest.raises(EmptyHeapError):
        find_min(empty())


def test_delete_min_on_empty_raises():
    with pytest.raises(EmptyHeapError):
        delete_min(empty())


def test_empty_heap_error_is_index_error():
    with pytest.raises(IndexError):
        find_min(EMPTY)


def test_singleton_shape():
    """insert into empty builds a rank-1 leaf"""
    h = insert(7, empty())
    assert h == Node(7, EMPTY, EMPTY, 1)
    assert find_min(h) == 7
    assert not is_empty(h)
    assert delete_min(h) is EMPTY


def test_example_scenario():
    h = insert(5, insert(3, insert(8, empty())))
    assert find_min(h) == 3
    h = delete_min(h)
    assert find_min(h) == 5
    h = delete_min(h)
    assert find_min(h) == 8
    h = delete_min(h)
    assert h == empty()


def test_meld_with_empty_returns_operand():
    h = from_iterable([4, 2, 9])
    assert meld(h, EMPTY) is h
    assert meld(EMPTY, h) is h
    assert meld(EMPTY, EMPTY) is EMPTY


def test_meld_keeps_leftist_ranks():
    h1 = from_iterable([1, 3, 5, 7])
    h2 = from_iterable([2, 4, 6, 8])
    merged = meld(h1, h2)
    assert find_min(merged) == 1
    assert size(merged) == 8
    assert is_valid_heap(merged)
    assert rank(merged.left) >= rank(merged.right)


def test_meld_tie_prefers_first_operand():
    a = insert(1, insert(10, EMPTY))
    b = insert(1, insert(20, EMPTY))
    merged = meld(a, b)
    assert merged.left is a.left or merged.right is a.left


def test_persistence():
    """Operations never modify their inputs"""
    original = from_iterable([3, 1, 4])
    before = to_list(original)

    inserted = insert(0, original)
    deleted = delete_min(original)
    melded = meld(original, from_iterable([2, 2]))

    assert to_list(original) == before
    assert size(original) == 3
    assert size(inserted) == 4
    assert size(deleted) == 2
    assert size(melded) == 5
    assert find_min(original) == 1


def test_structural_sharing_on_insert():
    h = from_iterable([1, 2, 3, 4, 5, 6])
    h2 = insert(100, h)
    # the new element only descends the right spine; the left subtree survives
    assert h2.left is h.left or h2.right is h.left


def test_ordering_with_duplicates():
    h = from_iterable([3, 1, 3, 2, 1])
    assert list(iter_sorted(h)) == [1, 1, 2, 3, 3]


def test_string_values():
    words = ["zebra", "apple", "banana", "cherry"]
    h = from_iterable(words)
    assert find_min(h) == "apple"
    assert list(iter_sorted(h)) == sorted(words)


def test_deep_left_spine():
    """Decreasing inserts build an O(n) left spine; helpers must not recurse"""
    values = list(range(5000, 0, -1))
    h = from_iterable(values)
    assert depth(h) == 5000
    assert size(h) == 5000
    assert is_valid_heap(h)
    assert h == from_iterable(values)
    assert hash(h) == hash(from_iterable(values))
    assert repr(h).startswith("<LeftistHeap [1, 2, 3")
    assert list(iter_sorted(h)) == list(range(1, 5001))


def test_equality_is_structural():
    assert from_iterable([1, 2, 3]) == from_iterable([1, 2, 3])
    assert from_iterable([1, 2, 3]) != from_iterable([1, 2, 4])
    assert from_iterable([1, 2]) != EMPTY
    assert EMPTY != from_iterable([1])


def test_nsmallest():
    h = from_iterable([9, 4, 7, 1, 8, 2])
    assert nsmallest(h, 3) == [1, 2, 4]
    assert nsmallest(h, 0) == []
    assert nsmallest(h, -1) == []
    assert nsmallest(h, 100) == [1, 2, 4, 7, 8, 9]
    assert size(h) == 6


def test_is_valid_heap_detects_broken_order():
    broken = Node(5, Node(1, EMPTY, EMPTY, 1), EMPTY, 1)
    assert not is_valid_heap(broken)


def test_is_valid_heap_detects_broken_rank():
    leaf = Node(9, EMPTY, EMPTY, 1)
    right_heavy = Node(1, EMPTY, leaf, 1)
    assert not is_valid_heap(right_heavy)
    wrong_rank = Node(1, leaf, EMPTY, 3)
    assert not is_valid_heap(wrong_rank)


def test_get_stats():
    assert get_stats(EMPTY) == {
        "size": 0,
        "depth": 0,
        "rank": 0,
        "min": None,
        "is_valid": True,
    }
    stats = get_stats(from_iterable([5, 3, 8]))
    assert stats["size"] == 3
    assert stats["min"] == 3
    assert stats["is_valid"]
    assert stats["rank"] >= 1


def test_observer_receives_merge_events():
    events = []
    h = from_iterable([2, 4])
    insert(1, h, observer=lambda event, payload: events.append((event, payload)))

    names = [event for event, _ in events]
    assert names[0] == "compare"
    assert events[0][1] == {"a": 2, "b": 1}
    assert "link" in names
    assert events[-1] == ("link", {"value": 1, "rank": 1})


def test_observer_reports_swap():
    events = []
    h = insert(1, EMPTY)
    insert(2, h, observer=lambda event, payload: events.append(event))
    # 2 lands on the right of 1 and is moved to the left child
    assert events == ["compare", "swap", "link"]


def test_observer_failure_does_not_break_meld():
    def bad_observer(event, payload):
        raise RuntimeError("boom")

    h = meld(from_iterable([3, 1]), from_iterable([2]), observer=bad_observer)
    assert list(iter_sorted(h)) == [1, 2, 3]


def test_observer_payload_is_compacted():
    payloads = []
    big = "x" * 500
    meld(insert(big, EMPTY), insert(big + "y", EMPTY),
         observer=lambda event, payload: payloads.append(payload))
    compare = payloads[0]
    assert compare["a"].endswith("…")
    assert len(compare["a"]) == 201


def test_to_tree_repr():
    assert to_tree_repr(EMPTY) == ["[Empty heap]"]

    h = from_iterable([3, 1, 2])
    lines = to_tree_repr(h)
    assert lines[0] == "1 (r=2)"
    assert any(line.strip().startswith("L: ") for line in lines)
    assert any(line.strip().startswith("R: ") for line in lines)


def test_to_tree_repr_elides_deep_levels():
    h = from_iterable(range(10, 0, -1))
    lines = to_tree_repr(h, max_depth=2)
    assert lines[-1].strip() == "..."
    assert len(lines) <= 4


def test_print_tree(capsys):
    print_tree(from_iterable([2, 1]))
    out = capsys.readouterr().out
    assert "1 (r=1)" in out
    assert "L: 2 (r=1)" in out


def test_heap_alias_is_parameterized_by_element_type():
    assert Heap[int] == Union[EmptyHeap, Node[int]]
