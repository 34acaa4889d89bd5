"""Renders the App Engine app.yaml that routes file keys to the reconstructor.

Every chunked file gets a handler that runs the reconstructor app, which
answers with the file's chunk list. Chunk objects themselves are served
as static files from the chunk namespace.

The entrypoint imports reconstructor.main, so bundle_runtime copies the
reconstructor and common packages into the app directory and writes a
requirements.txt for them. After a build, deploying is just

    gcloud app deploy APPDIR/app.yaml
"""

import re
import shutil
from pathlib import Path
from typing import Iterable, Union

from common.constants import APP_YAML_FILENAME, CHUNK_NAMESPACE, MANIFEST_FILENAME
from common.logging_config import get_logger

logger = get_logger(__name__)

RUNTIME = "python312"
ENTRYPOINT = "uvicorn reconstructor.main:app --host 0.0.0.0 --port $PORT"
DEFAULT_EXPIRATION = "30d"
DEV_EXPIRATION = "1m"

REQUIREMENTS_FILENAME = "requirements.txt"
RUNTIME_REQUIREMENTS = (
    "fastapi>=0.110",
    "uvicorn>=0.27",
    "pydantic>=2.5",
)
RUNTIME_PACKAGES = ("common", "reconstructor")

_SOURCE_ROOT = Path(__file__).resolve().parent.parent


def app_base_url(app_name: str) -> str:
    """Public base URL of a deployed app, e.g. https://sinuous-vortex-700.appspot.com."""
    return f"https://{app_name}.appspot.com"


def _quote(value: str) -> str:
    escaped = value.replace('\\', '\\\\').replace('"', '\\"')
    return f'"{escaped}"'


def render_app_yaml(
    app_name: str,
    file_keys: Iterable[str],
    manifest_filename: str = MANIFEST_FILENAME,
    dev_mode: bool = False,
) -> str:
    """
    Build app.yaml text from the manifest key set.

    Args:
        app_name: App Engine project name, without the appspot.com suffix
        file_keys: Keys of the chunked files
        manifest_filename: Manifest file deployed next to the app
        dev_mode: Use a short cache expiration so changes show up quickly

    Returns:
        app.yaml contents
    """
    expiration = DEV_EXPIRATION if dev_mode else DEFAULT_EXPIRATION

    lines = [
        f"runtime: {RUNTIME}",
        f"entrypoint: {ENTRYPOINT}",
        "",
        f"default_expiration: {_quote(expiration)}",
        "",
        "env_variables:",
        f"  RECONSTRUCTOR_MANIFEST_PATH: {_quote(manifest_filename)}",
        f"  RECONSTRUCTOR_CHUNK_BASE_URL: {_quote(app_base_url(app_name))}",
        "",
        "handlers:",
        "",
    ]

    for key in sorted(file_keys):
        lines.append(f"- url: {_quote('/' + re.escape(key))}")
        lines.append("  script: auto")
        lines.append("")

    lines.append(f"- url: /{CHUNK_NAMESPACE}")
    lines.append(f"  static_dir: {CHUNK_NAMESPACE}")
    lines.append("")

    return "\n".join(lines)


def write_app_yaml(app_dir: Union[str, Path], app_name: str, file_keys: Iterable[str], **kwargs) -> Path:
    """
    Write app.yaml into the app directory.

    Returns:
        Path of the written file
    """
    yaml_path = Path(app_dir) / APP_YAML_FILENAME
    yaml_path.write_text(render_app_yaml(app_name, file_keys, **kwargs))
    logger.info(f"Wrote {yaml_path}")
    return yaml_path


def bundle_runtime(app_dir: Union[str, Path], source_root: Path = _SOURCE_ROOT) -> list[Path]:
    """
    Copy the packages the reconstructor imports into the app directory and
    write its requirements.txt.

    Args:
        app_dir: Build output directory
        source_root: Directory holding the common and reconstructor packages

    Returns:
        Paths written, requirements.txt first
    """
    app_dir = Path(app_dir)
    requirements = app_dir / REQUIREMENTS_FILENAME
    requirements.write_text("\n".join(RUNTIME_REQUIREMENTS) + "\n")
    written = [requirements]

    for package in RUNTIME_PACKAGES:
        source = source_root / package
        target = app_dir / package
        if source.resolve() == target.resolve():
            continue
        if target.exists():
            shutil.rmtree(target)
        shutil.copytree(source, target, ignore=shutil.ignore_patterns('__pycache__', '*.pyc'))
        written.append(target)

    logger.info(f"Bundled reconstructor runtime into {app_dir}")
    return written
