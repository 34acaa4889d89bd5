"""Process-wide manifest cache, loaded once on first use."""

import threading
from typing import Callable, Optional

from common.logging_config import get_logger
from common.types import Manifest

logger = get_logger(__name__)


class ManifestCache:
    """
    Lazily loads the manifest and keeps one read-only snapshot for the life
    of the process.

    Concurrent first callers wait on the same lock, so the loader runs once
    when it succeeds. A failed load is not cached: the error goes to the
    caller and the next call tries again. A new manifest is only picked up
    by restarting the process.
    """

    def __init__(self, loader: Callable[[], Manifest]):
        """
        Args:
            loader: Reads and decodes the manifest; raises on failure
        """
        self._loader = loader
        self._lock = threading.Lock()
        self._snapshot: Optional[Manifest] = None

    @property
    def loaded(self) -> bool:
        return self._snapshot is not None

    def get(self) -> Manifest:
        """
        Return the cached manifest, loading it on first call.

        Raises:
            ManifestUnavailable: If the manifest store cannot be read
            ManifestDecodeError: If the manifest is malformed
        """
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot

        with self._lock:
            if self._snapshot is None:
                manifest = self._loader()
                self._snapshot = manifest.frozen()
                logger.info(f"Manifest cached: {len(manifest)} files, {manifest.total_chunks()} chunks")
            return self._snapshot
