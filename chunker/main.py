"""Entry point for the chunker.

Scans a directory, splits every file into chunks under APPDIR/chunk,
and writes the manifest and app.yaml that the reconstructor is deployed with.
The reconstructor and common packages plus a requirements.txt are copied
alongside, so APPDIR can be deployed on its own.

    chunkcdn-build --dir DIR --appdir DIR --appname NAME
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from chunker import config
from chunker.batch import ChunkingReport, run_chunking
from chunker.chunk_storage import ChunkStorage
from chunker.chunker import FileChunker
from chunker.routing_config import bundle_runtime, write_app_yaml
from chunker.run_context import ChunkingRunContext
from chunker.walker import walk_sources
from common.constants import (
    APP_YAML_FILENAME,
    CHUNK_NAMESPACE,
    COMPRESSED_MANIFEST_FILENAME,
    MANIFEST_FILENAME,
)
from common.exceptions import ManifestEncodeError
from common.logging_config import setup_logging
from common.manifest_codec import write_manifest
from common.types import Manifest

logger = setup_logging('chunker')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='chunkcdn-build',
        description='Split files into bounded chunks and generate a deployable reconstructor app.',
    )
    parser.add_argument('--dir', default='.', help='input dir path, scanned recursively')
    parser.add_argument('--appdir', default='.', help='output app dir path')
    parser.add_argument('--appname', default='', help='App Engine app name, without the appspot.com suffix')
    parser.add_argument('--max-chunk-payload', type=int, default=config.MAX_CHUNK_PAYLOAD,
                        help='largest number of source bytes per chunk')
    parser.add_argument('--workers', type=int, default=config.WORKERS,
                        help='number of files chunked in parallel')
    parser.add_argument('--compress-manifest', action='store_true', default=config.COMPRESS_MANIFEST,
                        help='gzip the manifest')
    parser.add_argument('--dev', action='store_true', help='short cache expiration in app.yaml')
    parser.add_argument('--debug', action='store_true', help='enable debug logging')
    return parser


def validate_arguments(args: argparse.Namespace) -> Optional[str]:
    """
    Check command-line arguments.

    Returns:
        Error message, or None if the arguments are usable
    """
    if not args.appname:
        return "--appname must be passed"
    if args.max_chunk_payload <= 0:
        return "--max-chunk-payload must be positive"
    if args.workers <= 0:
        return "--workers must be positive"

    for value, name in ((args.dir, '--dir'), (args.appdir, '--appdir')):
        if not Path(value).is_dir():
            return f"{name} is not a valid directory"

    if args.dir == '.' and args.appdir == '.':
        return "one of the --dir or --appdir must be passed"

    source_dir = Path(args.dir).resolve()
    app_dir = Path(args.appdir).resolve()

    if source_dir == app_dir:
        return "both --dir and --appdir cannot be the same path"
    if source_dir == Path(source_dir.anchor) or app_dir == Path(app_dir.anchor):
        return "--dir or --appdir must not be the root directory"
    if app_dir in source_dir.parents:
        return "--dir must not be inside --appdir"
    if source_dir in app_dir.parents:
        logger.info(f"{app_dir} is inside {source_dir} and will not be scanned")

    return None


def print_summary(manifest: Manifest) -> None:
    for key in manifest.keys():
        print(f"Filename {key}")
        for descriptor in manifest.get(key):
            print(f"\t{descriptor.name:>28} numbytes {descriptor.compressed_length} ({descriptor.encoding})")


def print_failures(report: ChunkingReport) -> None:
    for source, error in report.failures:
        print(f"error in copy chunks for path {source.path}: {error}", file=sys.stderr)


def remove_previous_outputs(app_dir: Path) -> None:
    """
    Delete the manifest and app.yaml of an earlier run.

    Chunk names restart at C00000000.chk every run, so an old manifest left
    next to the new chunk directory would resolve to the wrong chunks.
    """
    for filename in (MANIFEST_FILENAME, COMPRESSED_MANIFEST_FILENAME, APP_YAML_FILENAME):
        path = Path(app_dir) / filename
        if path.exists():
            path.unlink()
            logger.info(f"Removed previous {path}")


def build(
    source_dir: Path,
    app_dir: Path,
    app_name: str,
    max_chunk_payload: int = config.MAX_CHUNK_PAYLOAD,
    workers: int = config.WORKERS,
    compress_manifest: bool = config.COMPRESS_MANIFEST,
    dev_mode: bool = False,
) -> ChunkingReport:
    """
    Chunk every file under source_dir into app_dir.

    The manifest, app.yaml and the reconstructor runtime are written only
    when every file chunked successfully. Outputs of an earlier run are
    removed first.

    Returns:
        ChunkingReport for the run
    """
    logger.info(f"Reading files from {source_dir}")
    logger.info(f"Writing to app dir {app_dir}")

    storage = ChunkStorage(Path(app_dir) / CHUNK_NAMESPACE)
    storage.reset()
    remove_previous_outputs(app_dir)

    context = ChunkingRunContext()
    chunker = FileChunker(storage, context, max_chunk_payload=max_chunk_payload)

    sources = walk_sources(source_dir, exclude=Path(app_dir))
    report = run_chunking(chunker, sources, workers=workers)
    logger.info(f"Allocated {context.chunks_allocated} chunk names, {len(storage.list_chunks())} chunk files stored")

    if not report.ok:
        return report

    manifest = context.snapshot()
    print_summary(manifest)

    manifest_filename = COMPRESSED_MANIFEST_FILENAME if compress_manifest else MANIFEST_FILENAME
    write_manifest(Path(app_dir) / manifest_filename, manifest, compress=compress_manifest)
    write_app_yaml(app_dir, app_name, manifest.keys(), manifest_filename=manifest_filename, dev_mode=dev_mode)
    bundle_runtime(app_dir)
    return report


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, run the chunker and return the process exit code."""
    args = build_parser().parse_args(argv)

    if args.debug:
        setup_logging('chunker', log_level='DEBUG')
        logger.info("Debug logging enabled")

    error = validate_arguments(args)
    if error:
        print(error, file=sys.stderr)
        return 1

    try:
        report = build(
            Path(args.dir),
            Path(args.appdir),
            args.appname,
            max_chunk_payload=args.max_chunk_payload,
            workers=args.workers,
            compress_manifest=args.compress_manifest,
            dev_mode=args.dev,
        )
    except (OSError, ManifestEncodeError) as e:
        logger.error(f"Build failed: {e}", exc_info=True)
        print(f"{e}", file=sys.stderr)
        return 1

    if not report.ok:
        print_failures(report)
        return 1
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
