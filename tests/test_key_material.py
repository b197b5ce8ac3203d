import logging
from pathlib import Path

import pytest

from policy_ledger.ledger.errors import FailureKind, IOFailureError, NotFoundError
from policy_ledger.ledger.keys import first_file_in, load_key_material, read_key_material


def test_empty_directory_is_not_found(tmp_path):
    with pytest.raises(NotFoundError) as exc_info:
        read_key_material(tmp_path)
    assert exc_info.value.kind == FailureKind.NOT_FOUND
    assert str(tmp_path) in exc_info.value.message


def test_missing_directory_is_not_found(tmp_path):
    with pytest.raises(NotFoundError):
        read_key_material(tmp_path / "does-not-exist")


def test_subdirectories_are_ignored(tmp_path):
    (tmp_path / "nested").mkdir()
    with pytest.raises(NotFoundError):
        first_file_in(tmp_path)


def test_first_file_by_name_is_used_and_extra_files_warn(tmp_path, caplog):
    (tmp_path / "b.pem").write_bytes(b"second")
    (tmp_path / "a.pem").write_bytes(b"first")

    with caplog.at_level(logging.WARNING, logger="policy_ledger.ledger.keys"):
        assert read_key_material(tmp_path) == b"first"

    assert "holds 2 files" in caplog.text


def test_load_key_material_reads_both_directories(msp_dirs, key_material):
    keystore, signcerts = msp_dirs
    material = load_key_material(keystore, signcerts)
    assert material.private_key == key_material.private_key
    assert material.certificate == key_material.certificate
    assert "private_key" not in repr(material)


def test_directory_path_that_is_a_file_is_io_failure(tmp_path):
    not_a_dir = tmp_path / "keystore"
    not_a_dir.write_bytes(b"pem")
    with pytest.raises(IOFailureError) as exc_info:
        read_key_material(not_a_dir)
    assert exc_info.value.kind == FailureKind.IO_FAILURE
    assert isinstance(exc_info.value.__cause__, OSError)


def test_unreadable_key_file_is_io_failure(tmp_path, monkeypatch):
    (tmp_path / "priv_sk").write_bytes(b"pem")

    def refuse(self):
        raise PermissionError(13, "Permission denied", str(self))

    monkeypatch.setattr(Path, "read_bytes", refuse)
    with pytest.raises(IOFailureError, match="Cannot read key material file"):
        read_key_material(tmp_path)
