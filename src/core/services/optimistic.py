"""
Optimistic update command.

Applies a change immediately, keeps a snapshot of the prior state, and
later either commits (drops the snapshot) or rolls back (restores it).
"""

from collections.abc import Callable
from enum import Enum
from typing import Generic, TypeVar

S = TypeVar("S")


class UpdatePhase(str, Enum):
    PENDING = "pending"
    APPLIED = "applied"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class OptimisticUpdate(Generic[S]):
    """
    One reversible change.

    ``capture`` returns a snapshot of the current state, ``restore`` puts a
    snapshot back, and ``change`` performs the optimistic mutation.
    Commit and rollback are terminal and each may only happen once.
    """

    def __init__(
        self,
        capture: Callable[[], S],
        restore: Callable[[S], None],
        change: Callable[[], None],
    ):
        self._capture = capture
        self._restore = restore
        self._change = change
        self._snapshot: S | None = None
        self.phase = UpdatePhase.PENDING

    def apply(self) -> "OptimisticUpdate[S]":
        if self.phase != UpdatePhase.PENDING:
            raise RuntimeError(f"Optimistic update already {self.phase.value}")
        self._snapshot = self._capture()
        self.phase = UpdatePhase.APPLIED
        try:
            self._change()
        except Exception:
            self.rollback()
            raise
        return self

    def commit(self) -> None:
        self._require_applied()
        self._snapshot = None
        self.phase = UpdatePhase.COMMITTED

    def rollback(self) -> None:
        self._require_applied()
        self._restore(self._snapshot)  # type: ignore[arg-type]
        self._snapshot = None
        self.phase = UpdatePhase.ROLLED_BACK

    def _require_applied(self) -> None:
        if self.phase != UpdatePhase.APPLIED:
            raise RuntimeError(f"Optimistic update is {self.phase.value}, not applied")
