"""Utility functions for CLI operations."""

import sys

from cli.constants import GREEN, RESET


class DownloadProgress:
    """Displays chunk download progress to stdout."""

    def __init__(self, filename: str, total_bytes: int, chunk_count: int, enabled: bool = True):
        """
        Initialize the progress display.

        Args:
            filename: Display name for the file
            total_bytes: Sum of the stored chunk lengths
            chunk_count: Number of chunks to fetch
            enabled: Draw progress to stdout
        """
        self.filename = filename
        self.total_bytes = total_bytes
        self.chunk_count = chunk_count
        self.enabled = enabled
        self._fetched_bytes = 0
        self._fetched_chunks = 0

    def update(self, stored_bytes: int) -> None:
        """
        Record one fetched chunk and redraw.

        Args:
            stored_bytes: Stored length of the fetched chunk
        """
        self._fetched_bytes += stored_bytes
        self._fetched_chunks += 1
        if self.enabled:
            self._display_progress()

    def _display_progress(self) -> None:
        progress = (self._fetched_bytes / self.total_bytes) * 100 if self.total_bytes else 100.0
        fetched_str = format_file_size(self._fetched_bytes)
        total_str = format_file_size(self.total_bytes)
        sys.stdout.write(
            f"\rDownloading {self.filename}: chunk {self._fetched_chunks}/{self.chunk_count} "
            f"{fetched_str} / {total_str} ({GREEN}{progress:.1f}%{RESET})"
        )
        sys.stdout.flush()

    def finish(self) -> None:
        """Finalize progress display with newline."""
        if self.enabled:
            sys.stdout.write('\n')
            sys.stdout.flush()


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"
