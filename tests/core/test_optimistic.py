"""Tests for OptimisticUpdate."""

import pytest

from src.core.services import OptimisticUpdate, UpdatePhase


class Box:
    def __init__(self, value: int):
        self.value = value


def update_for(box: Box, new_value: int) -> OptimisticUpdate[int]:
    def restore(value: int) -> None:
        box.value = value

    def change() -> None:
        box.value = new_value

    return OptimisticUpdate(lambda: box.value, restore, change)


class TestOptimisticUpdate:
    """Tests for apply, commit and rollback."""

    def test_apply_changes_immediately(self):
        box = Box(1)
        update = update_for(box, 2).apply()
        assert box.value == 2
        assert update.phase == UpdatePhase.APPLIED

    def test_commit_keeps_change(self):
        box = Box(1)
        update = update_for(box, 2).apply()
        update.commit()
        assert box.value == 2
        assert update.phase == UpdatePhase.COMMITTED

    def test_rollback_restores(self):
        box = Box(1)
        update = update_for(box, 2).apply()
        update.rollback()
        assert box.value == 1
        assert update.phase == UpdatePhase.ROLLED_BACK

    def test_failed_change_rolls_back(self):
        box = Box(1)

        def change() -> None:
            box.value = 5
            raise RuntimeError("nope")

        update = OptimisticUpdate(lambda: box.value, lambda v: setattr(box, "value", v), change)
        with pytest.raises(RuntimeError):
            update.apply()
        assert box.value == 1
        assert update.phase == UpdatePhase.ROLLED_BACK

    def test_cannot_commit_twice(self):
        update = update_for(Box(1), 2).apply()
        update.commit()
        with pytest.raises(RuntimeError):
            update.commit()

    def test_cannot_rollback_after_commit(self):
        update = update_for(Box(1), 2).apply()
        update.commit()
        with pytest.raises(RuntimeError):
            update.rollback()

    def test_cannot_apply_twice(self):
        update = update_for(Box(1), 2).apply()
        with pytest.raises(RuntimeError):
            update.apply()
