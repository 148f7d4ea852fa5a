from __future__ import annotations

from dataclasses import dataclass

from pixshop.domain.entities.image import ImageSnapshot
from pixshop.domain.errors import NothingToRedoError, NothingToUndoError


@dataclass(frozen=True)
class EditHistory:
    """Linear undo/redo history of image snapshots.

    Index 0 is always the original upload. Appending after an undo discards
    the undone entries, so the history never branches.

    Every operation returns a new value; a failed undo/redo raises and leaves
    the receiver untouched.
    """

    snapshots: tuple[ImageSnapshot, ...] = ()
    cursor: int = -1

    @classmethod
    def init(cls, snapshot: ImageSnapshot) -> EditHistory:
        return cls(snapshots=(snapshot,), cursor=0)

    @property
    def length(self) -> int:
        return len(self.snapshots)

    @property
    def can_undo(self) -> bool:
        return self.cursor > 0

    @property
    def can_redo(self) -> bool:
        return 0 <= self.cursor < len(self.snapshots) - 1

    def current(self) -> ImageSnapshot | None:
        if self.cursor < 0:
            return None
        return self.snapshots[self.cursor]

    def original(self) -> ImageSnapshot | None:
        if not self.snapshots:
            return None
        return self.snapshots[0]

    def append(self, snapshot: ImageSnapshot) -> EditHistory:
        kept = self.snapshots[: self.cursor + 1]
        return EditHistory(snapshots=kept + (snapshot,), cursor=len(kept))

    def undo(self) -> EditHistory:
        if not self.can_undo:
            raise NothingToUndoError()
        return EditHistory(snapshots=self.snapshots, cursor=self.cursor - 1)

    def redo(self) -> EditHistory:
        if not self.can_redo:
            raise NothingToRedoError()
        return EditHistory(snapshots=self.snapshots, cursor=self.cursor + 1)

    def reset(self) -> EditHistory:
        if not self.snapshots:
            return self
        return EditHistory(snapshots=self.snapshots, cursor=0)
