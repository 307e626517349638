from __future__ import annotations

import threading

from topic_catalog.extraction import ExtractionDraft


class ImportGuard:
    """
    Process-local set of connection ids with an import run in flight.

    One run per connection; different connections never block each other.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active: set[str] = set()

    def try_acquire(self, connection_id: str) -> bool:
        with self._lock:
            if connection_id in self._active:
                return False
            self._active.add(connection_id)
            return True

    def release(self, connection_id: str) -> None:
        with self._lock:
            self._active.discard(connection_id)

    def is_active(self, connection_id: str) -> bool:
        with self._lock:
            return connection_id in self._active


class DraftRegistry:
    """
    Holds extraction drafts until they are accepted or discarded.

    Drafts are never persisted; a restart drops them.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._drafts: dict[str, ExtractionDraft] = {}

    def put(self, draft: ExtractionDraft) -> None:
        with self._lock:
            # A newer draft for the same connection replaces the pending one.
            stale = [key for key, value in self._drafts.items() if value.connection_id == draft.connection_id]
            for key in stale:
                del self._drafts[key]
            self._drafts[draft.draft_id] = draft

    def get(self, draft_id: str) -> ExtractionDraft | None:
        with self._lock:
            return self._drafts.get(draft_id)

    def pop(self, draft_id: str) -> ExtractionDraft | None:
        with self._lock:
            return self._drafts.pop(draft_id, None)

    def clear(self) -> None:
        with self._lock:
            self._drafts.clear()
