"""Runs the chunker over many source files, optionally in parallel."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from chunker.chunker import FileChunker
from chunker.walker import SourceFile
from common.exceptions import ChunkCDNError
from common.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ChunkingReport:
    """
    Outcome of a chunking run.
    """
    succeeded: List[str] = field(default_factory=list)
    failures: List[Tuple[SourceFile, ChunkCDNError]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def _chunk_one(chunker: FileChunker, source: SourceFile):
    try:
        chunker.chunk_file(source.path, source.key, source.size)
        return source, None
    except ChunkCDNError as e:
        logger.error(f"error in copy chunks for path {source.path}: {e}")
        return source, e


def run_chunking(chunker: FileChunker, sources: Iterable[SourceFile], workers: int = 1) -> ChunkingReport:
    """
    Chunk every source file, continuing past files that fail.

    Each file is read by a single worker from start to end. Chunks a failed
    file already wrote stay in chunk storage; they are unreferenced because
    the file's descriptors are never published.

    Args:
        chunker: Configured FileChunker sharing the run context
        sources: Files to chunk
        workers: Number of files processed concurrently

    Returns:
        ChunkingReport listing succeeded keys and failures in input order
    """
    sources = list(sources)
    report = ChunkingReport()

    if workers <= 1:
        results = [_chunk_one(chunker, source) for source in sources]
    else:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='chunker') as pool:
            results = list(pool.map(lambda s: _chunk_one(chunker, s), sources))

    for source, error in results:
        if error is None:
            report.succeeded.append(source.key)
        else:
            report.failures.append((source, error))

    logger.info(f"Chunked {len(report.succeeded)} files, {len(report.failures)} failed")
    return report
