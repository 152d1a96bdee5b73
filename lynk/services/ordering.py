"""
Order keys for drag-and-drop reordering

Tasks carry a sparse float ``order_key``. A move rewrites only the moved
task's key (midpoint of its new neighbours), unless the key space around
the drop position is exhausted, in which case the whole list is
renumbered to multiples of ``ORDER_STEP``.
"""

from typing import List, Dict, NamedTuple, Optional, Sequence, Tuple
from lynk.config.constants import ORDER_STEP, MIN_ORDER_GAP
from lynk.models.task import Task
from lynk.utils.logger import logger


class MoveResult(NamedTuple):
    """Outcome of a move: new sequence plus the keys that must be persisted"""
    tasks: List[Task]
    task_id: int
    new_key: float
    changed: Dict[int, float]


def sort_by_order(tasks: Sequence[Task]) -> List[Task]:
    """Stable ascending sort by order key"""
    return sorted(tasks, key=lambda task: task.order_key)


def next_order_key(tasks: Sequence[Task]) -> float:
    """Key for a task appended after every existing one"""
    if not tasks:
        return ORDER_STEP
    return max(task.order_key for task in tasks) + ORDER_STEP


def rebalance(tasks: Sequence[Task]) -> Tuple[List[Task], Dict[int, float]]:
    """
    Renumber tasks in their current sequence to ``(position + 1) * ORDER_STEP``

    Args:
        tasks: Tasks in display order

    Returns:
        New task list and a mapping of task id to key for the tasks whose
        key actually changed
    """
    rebalanced = []
    changed: Dict[int, float] = {}
    for position, task in enumerate(tasks):
        key = (position + 1) * ORDER_STEP
        if task.order_key != key:
            task = task.model_copy(update={"order_key": key})
            changed[task.id] = key
        rebalanced.append(task)
    return rebalanced, changed


def _is_spaced(tasks: Sequence[Task]) -> bool:
    return all(
        later.order_key - earlier.order_key >= MIN_ORDER_GAP
        for earlier, later in zip(tasks, tasks[1:])
    )


def _midpoint_key(previous: Optional[Task], following: Optional[Task]) -> float:
    if previous is None:
        if following is None:
            return ORDER_STEP / 2
        return following.order_key / 2
    if following is None:
        return previous.order_key + ORDER_STEP
    return (previous.order_key + following.order_key) / 2


def move(tasks: Sequence[Task], from_index: int, to_index: int) -> MoveResult:
    """
    Move the task at ``from_index`` to ``to_index``

    Args:
        tasks: Tasks in display order
        from_index: Current position of the dragged task
        to_index: Position it was dropped at

    Returns:
        MoveResult; ``changed`` is ``{task_id: new_key}`` for an ordinary
        move, every renumbered task after a rebalance, and empty for a no-op

    Raises:
        IndexError: If either index is outside the sequence
    """
    count = len(tasks)
    if not (0 <= from_index < count and 0 <= to_index < count):
        raise IndexError(f"Cannot move {from_index} -> {to_index} in a list of {count}")

    moved = tasks[from_index]
    if from_index == to_index:
        return MoveResult(list(tasks), moved.id, moved.order_key, {})

    reordered = list(tasks)
    reordered.pop(from_index)
    reordered.insert(to_index, moved)

    previous = reordered[to_index - 1] if to_index > 0 else None
    following = reordered[to_index + 1] if to_index < count - 1 else None
    new_key = _midpoint_key(previous, following)
    reordered[to_index] = moved.model_copy(update={"order_key": new_key})

    if not _is_spaced(reordered):
        logger.info(f"Order keys exhausted around position {to_index}, rebalancing {count} tasks")
        rebalanced, changed = rebalance(reordered)
        return MoveResult(rebalanced, moved.id, rebalanced[to_index].order_key, changed)

    return MoveResult(sort_by_order(reordered), moved.id, new_key, {moved.id: new_key})
