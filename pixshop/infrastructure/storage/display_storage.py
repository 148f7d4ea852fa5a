from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

from pixshop.domain.entities.image import ImageSnapshot
from pixshop.domain.errors import DisplayHandleError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DisplayHandle:
    id: str
    path: str  # storage path {owner}/{uuid}.{ext}
    content_type: str
    size: int

    @property
    def url(self) -> str:
        return f"/display/{self.id}"


class DisplayStorage:
    """Temporary viewable copies of snapshot bytes, kept on local disk.

    A handle is acquired when a snapshot starts being displayed and must be
    released exactly once when that display is replaced or torn down.
    """

    def __init__(self, local_dir: Path) -> None:
        self.local_dir = Path(local_dir)
        self.local_dir.mkdir(parents=True, exist_ok=True)
        self._live: dict[str, DisplayHandle] = {}

    def acquire(self, snapshot: ImageSnapshot, owner: str) -> DisplayHandle:
        handle_id = uuid.uuid4().hex
        storage_path = f"{owner}/{handle_id}.{snapshot.extension}"
        full_path = self.local_dir / storage_path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_bytes(snapshot.data)
        handle = DisplayHandle(
            id=handle_id, path=storage_path, content_type=snapshot.mime_type, size=len(snapshot.data)
        )
        self._live[handle_id] = handle
        logger.debug("Acquired display handle %s for %s", handle_id, owner)
        return handle

    def release(self, handle: DisplayHandle) -> None:
        if self._live.pop(handle.id, None) is None:
            raise DisplayHandleError(f"Display handle {handle.id} is not live")
        full_path = self.local_dir / handle.path
        if full_path.exists():
            full_path.unlink()
        logger.debug("Released display handle %s", handle.id)

    def get(self, handle_id: str) -> DisplayHandle | None:
        return self._live.get(handle_id)

    def read_bytes(self, handle: DisplayHandle) -> bytes:
        if handle.id not in self._live:
            raise DisplayHandleError(f"Display handle {handle.id} is not live")
        return (self.local_dir / handle.path).read_bytes()

    @property
    def live_count(self) -> int:
        return len(self._live)


class DisplayBindings:
    """Named display slots of one session, each bound to at most one handle."""

    def __init__(self, storage: DisplayStorage, owner: str) -> None:
        self.storage = storage
        self.owner = owner
        self._slots: dict[str, tuple[ImageSnapshot, DisplayHandle]] = {}

    def bind(self, slot: str, snapshot: ImageSnapshot | None) -> None:
        bound = self._slots.get(slot)
        if bound is not None and bound[0] is snapshot:
            return
        if bound is not None:
            del self._slots[slot]
            self.storage.release(bound[1])
        if snapshot is not None:
            self._slots[slot] = (snapshot, self.storage.acquire(snapshot, self.owner))

    def handle(self, slot: str) -> DisplayHandle | None:
        bound = self._slots.get(slot)
        return bound[1] if bound else None

    def urls(self) -> dict[str, str]:
        return {slot: handle.url for slot, (_, handle) in self._slots.items()}

    def release_all(self) -> None:
        for slot in list(self._slots):
            self.bind(slot, None)
