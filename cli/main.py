"""CLI entry point."""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from cli.config import Config
from cli.constants import CONFIG_DIR_NAME, CONFIG_FILE_NAME, DESCRIPTION, EPILOG, PROG
from cli.reassembly import reassemble_from_directory
from cli.reconstructor_client import ReconstructorClient
from common.exceptions import ChunkCDNError
from common.logging_config import setup_logging
from common.manifest_codec import read_manifest


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--config', type=Path, default=Path.home() / CONFIG_DIR_NAME / CONFIG_FILE_NAME,
                        help='client config file')
    parser.add_argument('--host', help='reconstructor host (overrides config)')
    parser.add_argument('--port', type=int, help='reconstructor port (overrides config)')
    parser.add_argument('--scheme', choices=('http', 'https'), help='URL scheme (overrides config)')
    parser.add_argument('--debug', action='store_true', help='enable debug logging')

    subparsers = parser.add_subparsers(dest='command', required=True)

    list_parser = subparsers.add_parser('list', help='show the chunks of a file')
    list_parser.add_argument('key', help='file key, e.g. video.mp4')

    download_parser = subparsers.add_parser('download', help='download and reassemble a file')
    download_parser.add_argument('key', help='file key, e.g. video.mp4')
    download_parser.add_argument('output', nargs='?', help='output path (defaults to the key)')

    server_parser = subparsers.add_parser('server', help='save the reconstructor address to the config file')
    server_parser.add_argument('server_host', metavar='host', help='reconstructor host')
    server_parser.add_argument('server_port', metavar='port', type=int, help='reconstructor port')

    rebuild_parser = subparsers.add_parser('rebuild', help='reassemble a file from a local chunk directory')
    rebuild_parser.add_argument('manifest', type=Path, help='manifest file (chunks.json)')
    rebuild_parser.add_argument('chunk_dir', type=Path, help='chunk directory')
    rebuild_parser.add_argument('key', help='file key')
    rebuild_parser.add_argument('output', type=Path, help='output path')

    return parser


def load_config(args: argparse.Namespace) -> Config:
    config = Config(args.config)
    if args.host:
        config.data['reconstructor_host'] = args.host
    if args.port:
        config.data['reconstructor_port'] = args.port
    if args.scheme:
        config.data['scheme'] = args.scheme
    return config


def rebuild_local(manifest_path: Path, chunk_dir: Path, key: str, output: Path) -> str:
    """
    Reassemble a file from a build output directory without a server.

    Returns:
        Success or error message
    """
    try:
        manifest = read_manifest(manifest_path)
        if key not in manifest:
            return f"File not found: {key}"
        descriptors = manifest.get(key)
        with open(output, 'wb') as out:
            written = reassemble_from_directory(chunk_dir, descriptors, out)
    except (ChunkCDNError, OSError) as e:
        return f"Rebuild failed: {e}"
    return f"Rebuilt {key} to {output} ({written} bytes from {len(descriptors)} chunks)"


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for CLI."""
    args = build_parser().parse_args(argv)

    logger = setup_logging('cli', log_level='DEBUG' if args.debug else None)
    if args.debug:
        logger.info("Debug logging enabled")

    if args.command == 'server':
        config = Config(args.config)
        config.set_server(args.server_host, args.server_port)
        print(f"Reconstructor set to {config.get_base_url()}")
        return 0

    if args.command == 'rebuild':
        result = rebuild_local(args.manifest, args.chunk_dir, args.key, args.output)
        print(result)
        return 0 if result.startswith('Rebuilt') else 1

    client = ReconstructorClient(load_config(args), show_progress=sys.stdout.isatty())
    try:
        if args.command == 'list':
            result = client.list_file(args.key)
            ok = not result.startswith(('Error', 'File not found'))
        else:
            result = client.download(args.key, args.output)
            ok = result.startswith('Downloaded')
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise
    finally:
        client.close()

    print(result)
    return 0 if ok else 1


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
