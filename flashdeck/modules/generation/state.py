"""In-memory review buffers, one per (owner, set).

Buffers live in-process only and are private to the user who generated them.
An entry exists only while it holds drafts or a running generation.
"""

from __future__ import annotations

from flashdeck.modules.access import Viewer
from flashdeck.modules.generation.buffer import ReviewBuffer


class DraftRegistry:
    def __init__(self) -> None:
        self._buffers: dict[tuple[int, int], ReviewBuffer] = {}

    def get(self, viewer: Viewer, set_id: int, *, create: bool = True) -> ReviewBuffer:
        """Buffer for the viewer's set; with ``create=False`` a missing one is
        returned as a fresh, unregistered buffer."""
        key = (int(viewer.user_id), set_id)
        buf = self._buffers.get(key)
        if buf is None:
            buf = ReviewBuffer()
            if create:
                self._buffers[key] = buf
        return buf

    def discard(self, viewer: Viewer, set_id: int) -> None:
        buf = self._buffers.pop((int(viewer.user_id), set_id), None)
        if buf is not None:
            buf.clear()

    def release(self, viewer: Viewer, set_id: int, buffer: ReviewBuffer) -> bool:
        """Forget ``buffer`` if it is still the registered one and holds nothing."""
        key = (int(viewer.user_id), set_id)
        if self._buffers.get(key) is not buffer or buffer.busy or not buffer.is_empty:
            return False
        del self._buffers[key]
        return True

    def discard_set(self, set_id: int) -> int:
        """Drop every buffer staged for ``set_id``, whoever owns it."""
        keys = [key for key in self._buffers if key[1] == set_id]
        for key in keys:
            self._buffers.pop(key).clear()
        return len(keys)

    def count(self) -> int:
        return len(self._buffers)


draft_registry = DraftRegistry()
