"""
Tests for position allocation.
"""
from ordering.positions import POSITION_STEP, dense_position, drop_position, next_position


def test_next_position_empty_column():
    assert next_position([]) == 100


def test_next_position_after_highest():
    assert next_position([100, 300]) == 400
    assert next_position([300, 100]) == 400


def test_next_position_accepts_any_iterable():
    assert next_position(p for p in (100.0, 200.0)) == 300


def test_next_position_treats_absent_as_zero():
    assert next_position([None]) == 100
    assert next_position([None, 250]) == 350


def test_dense_positions_are_spaced_by_step_from_first_slot():
    assert [dense_position(i) for i in range(3)] == [100, 200, 300]
    assert dense_position(0) == next_position([])


def test_drop_position_is_index_times_step():
    assert drop_position(0) == 0
    assert drop_position(1) == POSITION_STEP
    assert drop_position(4) == 400
