# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import hashlib
from pathlib import Path

from .error import JMIntegrityError
from .logger import get_logger

logger = get_logger(__name__)

# separator between the path and the digest on a manifest line
MANIFEST_SEPARATOR = ": "


def file_hash(path: Path, chunk_size: int = 1024 * 1024) -> str:
    """
    Compute the SHA-256 digest of a file.
    """
    h = hashlib.sha256()
    with path.open("rb") as f:
        while chunk := f.read(chunk_size):
            h.update(chunk)
    return h.hexdigest()


def read_manifest(path: Path) -> dict[Path, str]:
    """
    Read a manifest file.

    Each non-empty line of the manifest has the form `<file>: <sha256>`.
    Lines starting with `#` are ignored. Relative file paths are resolved
    against the directory containing the manifest.

    Args:
        path (Path): Path to the manifest file.

    Returns:
        dict[Path, str]: Mapping of files to their expected digests.

    Raises:
        JMIntegrityError: If the manifest cannot be read or contains an invalid line.
    """
    try:
        content = path.read_text()
    except OSError as e:
        raise JMIntegrityError(f"Could not read manifest '{path}': {e}.") from e

    entries = {}
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        file, sep, digest = stripped.rpartition(MANIFEST_SEPARATOR)
        if not sep or not file or not digest:
            raise JMIntegrityError(f"Invalid line in manifest '{path}': '{line}'.")

        file_path = Path(file)
        if not file_path.is_absolute():
            file_path = path.parent / file_path
        entries[file_path] = digest.strip()

    return entries


def check_manifest(path: Path) -> None:
    """
    Check that all files listed in a manifest exist and match their recorded digests.

    Args:
        path (Path): Path to the manifest file.

    Raises:
        JMIntegrityError: If the manifest is missing or invalid, or if any listed
            file is missing or has been modified.
    """
    if not path.is_file():
        raise JMIntegrityError(f"Manifest '{path}' does not exist.")

    for file, expected in read_manifest(path).items():
        if not file.is_file():
            raise JMIntegrityError(f"File '{file}' listed in manifest '{path}' is missing.")

        if (actual := file_hash(file)) != expected:
            raise JMIntegrityError(
                f"File '{file}' does not match manifest '{path}': expected '{expected}', got '{actual}'."
            )

    logger.debug(f"Manifest '{path}' successfully checked.")
