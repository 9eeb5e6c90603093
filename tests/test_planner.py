"""
Tests for the reorder planner.
"""
import pytest

from ordering.columns import tasks_in_column
from ordering.errors import PlanningError
from ordering.planner import plan_move
from ordering.types import DropResult, Move, Status


def _by_id(plan):
    return {t.id: t for t in plan.updated_tasks}


def _ops(plan):
    return {op.task_id: (op.status, op.position) for op in plan.persistence_ops}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# No-op drops
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_drop_in_place_is_identity_plan(make_task):
    tasks = [make_task("a", Status.TODO, 100), make_task("b", Status.TODO, 200)]
    move = Move("b", Status.TODO, Status.TODO, 1, 1)

    plan = plan_move(tasks, move)

    assert plan.updated_tasks is tasks
    assert plan.persistence_ops == ()
    assert plan.is_noop


def test_cancelled_drop_has_no_move():
    drop = DropResult.from_dict({
        "draggableId": "a",
        "source": {"droppableId": "todo", "index": 0},
        "destination": None,
    })

    assert Move.from_drop(drop) is None


def test_drop_on_unknown_column_is_rejected():
    drop = DropResult.from_dict({
        "draggableId": "a",
        "source": {"droppableId": "todo", "index": 0},
        "destination": {"droppableId": "archive", "index": 0},
    })

    with pytest.raises(ValueError):
        Move.from_drop(drop)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Same-column reorder
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_same_column_reorder_renumbers_whole_column(make_task):
    a = make_task("A", Status.TODO, 100)
    b = make_task("B", Status.TODO, 200)
    c = make_task("C", Status.TODO, 300)

    plan = plan_move([a, b, c], Move("A", Status.TODO, Status.TODO, 0, 2))

    column = tasks_in_column(plan.updated_tasks, Status.TODO)
    assert [t.id for t in column] == ["B", "C", "A"]
    assert [t.position for t in column] == [100, 200, 300]
    assert len(plan.persistence_ops) == 3
    assert _ops(plan) == {
        "B": (Status.TODO, 100),
        "C": (Status.TODO, 200),
        "A": (Status.TODO, 300),
    }


def test_same_column_move_up(make_task):
    tasks = [
        make_task("A", Status.DONE, 100),
        make_task("B", Status.DONE, 200),
        make_task("C", Status.DONE, 300),
    ]

    plan = plan_move(tasks, Move("C", Status.DONE, Status.DONE, 2, 0))

    column = tasks_in_column(plan.updated_tasks, Status.DONE)
    assert [t.id for t in column] == ["C", "A", "B"]
    assert [t.position for t in column] == [100, 200, 300]


def test_same_column_reorder_leaves_other_columns_alone(make_task):
    other = make_task("X", Status.DONE, 700)
    tasks = [make_task("A", Status.TODO, 100), make_task("B", Status.TODO, 200), other]

    plan = plan_move(tasks, Move("A", Status.TODO, Status.TODO, 0, 1))

    assert _by_id(plan)["X"] is other
    assert "X" not in _ops(plan)


def test_same_column_destination_past_end_appends(make_task):
    tasks = [make_task("A", Status.TODO, 100), make_task("B", Status.TODO, 200)]

    plan = plan_move(tasks, Move("A", Status.TODO, Status.TODO, 0, 9))

    assert [t.id for t in tasks_in_column(plan.updated_tasks, Status.TODO)] == ["B", "A"]


def test_stale_source_index_uses_task_identity(make_task):
    tasks = [
        make_task("A", Status.TODO, 100),
        make_task("B", Status.TODO, 200),
        make_task("C", Status.TODO, 300),
    ]

    # B really sits at index 1; the drop claims index 0.
    plan = plan_move(tasks, Move("B", Status.TODO, Status.TODO, 0, 2))

    column = tasks_in_column(plan.updated_tasks, Status.TODO)
    assert [t.id for t in column] == ["A", "C", "B"]
    assert len(plan.updated_tasks) == 3


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Cross-column moves
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_cross_column_move_without_collision_writes_one_row(make_task):
    a = make_task("A", Status.TODO, 100)
    b = make_task("B", Status.TODO, 200)
    x = make_task("X", Status.IN_PROGRESS, 100)

    plan = plan_move([a, b, x], Move("A", Status.TODO, Status.IN_PROGRESS, 0, 0))

    assert _ops(plan) == {"A": (Status.IN_PROGRESS, 0)}
    moved = _by_id(plan)["A"]
    assert moved.status == Status.IN_PROGRESS
    assert moved.position == 0
    # Source column keeps its positions.
    assert [t.position for t in tasks_in_column(plan.updated_tasks, Status.TODO)] == [200]
    assert _by_id(plan)["B"] is b
    assert [t.id for t in tasks_in_column(plan.updated_tasks, Status.IN_PROGRESS)] == ["A", "X"]


def test_cross_column_move_into_empty_column(make_task):
    tasks = [make_task("A", Status.TODO, 100)]

    plan = plan_move(tasks, Move("A", Status.TODO, Status.DONE, 0, 0))

    assert _ops(plan) == {"A": (Status.DONE, 0)}


def test_cross_column_collision_renumbers_destination(make_task):
    a = make_task("A", Status.TODO, 100)
    b = make_task("B", Status.TODO, 200)
    c = make_task("C", Status.DONE, 100)

    plan = plan_move([a, b, c], Move("A", Status.TODO, Status.DONE, 0, 1))

    done = tasks_in_column(plan.updated_tasks, Status.DONE)
    assert [t.id for t in done] == ["C", "A"]
    assert [t.position for t in done] == [100, 200]
    assert _ops(plan) == {"C": (Status.DONE, 100), "A": (Status.DONE, 200)}
    assert _by_id(plan)["B"] is b


def test_cross_column_drop_that_would_render_elsewhere_renumbers(make_task):
    tasks = [
        make_task("A", Status.TODO, 100),
        make_task("X", Status.DONE, 300),
        make_task("Y", Status.DONE, 400),
    ]

    # Index 1 gives position 100, which would sort before X.
    plan = plan_move(tasks, Move("A", Status.TODO, Status.DONE, 0, 1))

    done = tasks_in_column(plan.updated_tasks, Status.DONE)
    assert [t.id for t in done] == ["X", "A", "Y"]
    assert [t.position for t in done] == [100, 200, 300]
    assert len(plan.persistence_ops) == 3


def test_cross_column_drop_between_sparse_neighbours_fits(make_task):
    tasks = [
        make_task("A", Status.TODO, 100),
        make_task("X", Status.DONE, 50),
        make_task("Y", Status.DONE, 400),
    ]

    plan = plan_move(tasks, Move("A", Status.TODO, Status.DONE, 0, 1))

    assert _ops(plan) == {"A": (Status.DONE, 100)}
    assert [t.id for t in tasks_in_column(plan.updated_tasks, Status.DONE)] == ["X", "A", "Y"]


def test_plan_keeps_collection_order(make_task):
    tasks = [
        make_task("C", Status.DONE, 100),
        make_task("A", Status.TODO, 100),
        make_task("B", Status.TODO, 200),
    ]

    plan = plan_move(tasks, Move("A", Status.TODO, Status.IN_PROGRESS, 0, 0))

    assert [t.id for t in plan.updated_tasks] == ["C", "A", "B"]
    assert tasks[1].status == Status.TODO


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Planning errors
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_unknown_task_raises_planning_error(make_task):
    tasks = [make_task("A", Status.TODO, 100)]

    with pytest.raises(PlanningError):
        plan_move(tasks, Move("missing", Status.TODO, Status.DONE, 0, 0))


def test_source_column_mismatch_raises_planning_error(make_task):
    tasks = [make_task("A", Status.DONE, 100)]

    with pytest.raises(PlanningError):
        plan_move(tasks, Move("A", Status.TODO, Status.IN_PROGRESS, 0, 0))


def test_negative_destination_raises_planning_error(make_task):
    tasks = [make_task("A", Status.TODO, 100)]

    with pytest.raises(PlanningError):
        plan_move(tasks, Move("A", Status.TODO, Status.DONE, 0, -1))
