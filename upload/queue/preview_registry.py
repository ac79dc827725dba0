"""
Preview Registry

Issues opaque preview handles ("preview://<uuid>") for local files shown
while an item is in the queue, and releases them exactly once.

Owned handles point at files the queue created itself (thumbnails,
converted or compressed intermediates); revoking them deletes the file.
"""

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

HANDLE_SCHEME = "preview://"


@dataclass(frozen=True)
class _PreviewEntry:
    path: Path
    owned: bool


class PreviewRegistry:
    """
    Registry of live preview handles.

    Injected into the queue (one registry per queue), never a module-level
    singleton.

    Usage:
        registry = PreviewRegistry()
        handle = registry.create(Path("/tmp/IMG_1.jpg"))
        registry.resolve(handle)  # Path("/tmp/IMG_1.jpg")
        registry.revoke(handle)   # True
        registry.revoke(handle)   # False (already released)
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._entries: Dict[str, _PreviewEntry] = {}
        self.revoked_count = 0

    def create(self, path: Path, owned: bool = False) -> str:
        """
        Issue a handle for a local file.

        Args:
            path: File the preview shows
            owned: Delete the file when the handle is revoked

        Returns:
            Handle string
        """
        handle = f"{HANDLE_SCHEME}{uuid.uuid4()}"
        self._entries[handle] = _PreviewEntry(path=Path(path), owned=owned)
        return handle

    def resolve(self, handle: Optional[str]) -> Optional[Path]:
        """Path behind a live handle, or None if unknown/revoked"""
        if not handle:
            return None
        entry = self._entries.get(handle)
        return entry.path if entry else None

    def is_active(self, handle: Optional[str]) -> bool:
        return bool(handle) and handle in self._entries

    def revoke(self, handle: Optional[str]) -> bool:
        """
        Release a handle.

        Idempotent: revoking an unknown or already-revoked handle does
        nothing.

        Returns:
            True if this call released the handle
        """
        if not handle:
            return False

        entry = self._entries.pop(handle, None)
        if entry is None:
            return False

        self.revoked_count += 1
        if entry.owned:
            try:
                entry.path.unlink(missing_ok=True)
            except OSError as e:
                self.logger.warning(f"Could not delete preview file {entry.path}: {e}")
        return True

    def revoke_all(self) -> int:
        """
        Release every live handle (teardown).

        Returns:
            Number of handles released
        """
        count = 0
        for handle in list(self._entries):
            if self.revoke(handle):
                count += 1
        if count:
            self.logger.debug(f"Revoked {count} preview handle(s)")
        return count

    @property
    def active_count(self) -> int:
        return len(self._entries)
