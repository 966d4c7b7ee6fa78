# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import hashlib

import pytest

from hpcjm_lib.core.error import JMIntegrityError
from hpcjm_lib.core.manifest import check_manifest, file_hash, read_manifest


def _sha(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


@pytest.fixture
def installation(tmp_path):
    (tmp_path / "bin").mkdir()
    (tmp_path / "bin" / "mpirun").write_bytes(b"mpirun")
    (tmp_path / "lib.so").write_bytes(b"library")

    manifest = tmp_path / "mpi.MANIFEST"
    manifest.write_text(
        "# generated at install time\n"
        f"bin/mpirun: {_sha(b'mpirun')}\n"
        "\n"
        f"{tmp_path / 'lib.so'}: {_sha(b'library')}\n"
    )
    return tmp_path, manifest


def test_file_hash_small_chunks(tmp_path):
    path = tmp_path / "file"
    path.write_bytes(b"0123456789" * 10)

    assert file_hash(path, chunk_size=7) == _sha(b"0123456789" * 10)


def test_read_manifest_resolves_relative_paths(installation):
    root, manifest = installation
    entries = read_manifest(manifest)

    assert entries == {
        root / "bin" / "mpirun": _sha(b"mpirun"),
        root / "lib.so": _sha(b"library"),
    }


def test_read_manifest_invalid_line(tmp_path):
    manifest = tmp_path / "mpi.MANIFEST"
    manifest.write_text("bin/mpirun\n")

    with pytest.raises(JMIntegrityError, match="Invalid line"):
        read_manifest(manifest)


def test_check_manifest_passes(installation):
    _, manifest = installation
    check_manifest(manifest)


def test_check_manifest_missing_manifest(tmp_path):
    with pytest.raises(JMIntegrityError, match="does not exist"):
        check_manifest(tmp_path / "mpi.MANIFEST")


def test_check_manifest_missing_file(installation):
    root, manifest = installation
    (root / "lib.so").unlink()

    with pytest.raises(JMIntegrityError, match="is missing"):
        check_manifest(manifest)


def test_check_manifest_modified_file(installation):
    root, manifest = installation
    (root / "bin" / "mpirun").write_bytes(b"tampered")

    with pytest.raises(JMIntegrityError, match="does not match"):
        check_manifest(manifest)
