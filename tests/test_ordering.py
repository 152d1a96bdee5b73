"""
Tests for order key assignment and moves
"""

import itertools
import pytest
from lynk.config.constants import ORDER_STEP
from lynk.services.ordering import move, next_order_key, rebalance, sort_by_order
from tests.fakes import make_task


def evenly_spaced(count):
    return [make_task(i + 1, (i + 1) * ORDER_STEP) for i in range(count)]


def test_first_task_gets_one_step():
    assert next_order_key([]) == ORDER_STEP


def test_appending_produces_multiples_of_step():
    tasks = []
    for i in range(1, 8):
        key = next_order_key(tasks)
        assert key == i * ORDER_STEP
        tasks.append(make_task(i, key))


def test_append_uses_largest_key_not_last_position():
    tasks = [make_task(1, 5000.0), make_task(2, 1000.0)]
    assert next_order_key(tasks) == 6000.0


def test_move_to_head():
    """[A, B, C] with C dropped at 0 -> C gets half of A's key"""
    tasks = [make_task(1, 1000.0, title="A"), make_task(2, 2000.0, title="B"), make_task(3, 3000.0, title="C")]

    result = move(tasks, 2, 0)

    assert result.task_id == 3
    assert result.new_key == 500.0
    assert result.changed == {3: 500.0}
    assert [task.title for task in result.tasks] == ["C", "A", "B"]
    assert [task.order_key for task in result.tasks] == [500.0, 1000.0, 2000.0]


def test_move_to_tail():
    tasks = [make_task(1, 1000.0, title="A"), make_task(2, 2000.0, title="B")]

    result = move(tasks, 0, 1)

    assert result.new_key == 3000.0
    assert [(task.title, task.order_key) for task in result.tasks] == [("B", 2000.0), ("A", 3000.0)]


def test_move_to_interior_takes_midpoint():
    tasks = evenly_spaced(4)

    result = move(tasks, 3, 1)

    assert result.new_key == 1500.0
    assert [task.id for task in result.tasks] == [1, 4, 2, 3]


def test_single_task_move_is_noop():
    tasks = [make_task(1, 1000.0)]

    result = move(tasks, 0, 0)

    assert result.new_key == 1000.0
    assert result.changed == {}
    assert result.tasks == tasks


def test_move_does_not_touch_other_tasks_or_input():
    tasks = evenly_spaced(3)
    before = [task.model_copy() for task in tasks]

    result = move(tasks, 0, 2)

    assert tasks == before
    untouched = [task for task in result.tasks if task.id != result.task_id]
    assert all(task.order_key == original.order_key for task in untouched for original in before if original.id == task.id)


@pytest.mark.parametrize("count", [2, 3, 5])
def test_every_move_sorts_into_the_dropped_arrangement(count):
    tasks = evenly_spaced(count)

    for from_index, to_index in itertools.product(range(count), repeat=2):
        expected = [task.id for task in tasks]
        expected.insert(to_index, expected.pop(from_index))

        result = move(tasks, from_index, to_index)

        assert [task.id for task in sort_by_order(result.tasks)] == expected


def test_move_out_of_range_raises():
    with pytest.raises(IndexError):
        move(evenly_spaced(2), 0, 2)
    with pytest.raises(IndexError):
        move([], 0, 0)


def test_repeated_inserts_into_same_gap_rebalance():
    tasks = evenly_spaced(3)
    rebalanced = False

    # Keep dropping the last task between the first two
    for _ in range(80):
        result = move(tasks, len(tasks) - 1, 1)
        expected = [task.id for task in tasks]
        expected.insert(1, expected.pop())
        assert [task.id for task in sort_by_order(result.tasks)] == expected
        if len(result.changed) > 1:
            rebalanced = True
        tasks = result.tasks

    assert rebalanced
    keys = [task.order_key for task in tasks]
    assert keys == sorted(set(keys))


def test_duplicate_keys_trigger_rebalance():
    tasks = [make_task(1, 1000.0), make_task(2, 1000.0), make_task(3, 1000.0)]

    result = move(tasks, 2, 1)

    assert [task.id for task in result.tasks] == [1, 3, 2]
    assert [task.order_key for task in result.tasks] == [1000.0, 2000.0, 3000.0]
    assert result.changed == {3: 2000.0, 2: 3000.0}


def test_rebalance_reports_only_changed_keys():
    tasks = [make_task(1, 1000.0), make_task(2, 1500.0), make_task(3, 3000.0)]

    rebalanced, changed = rebalance(tasks)

    assert [task.order_key for task in rebalanced] == [1000.0, 2000.0, 3000.0]
    assert changed == {2: 2000.0}
