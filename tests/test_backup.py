"""Tests for backups taken before sources are rewritten."""
import json
import re

import pytest

from staticizer.errors import BackupError
from staticizer.reaper.backup import Backup
from staticizer.reaper.manifest import Manifest


@pytest.fixture
def java_file(tmp_path):
    path = tmp_path / "src" / "T.java"
    path.parent.mkdir()
    path.write_text("class T { private int one() { return 1; } }\n")
    return path


def test_backup_copies_and_records(tmp_path, java_file):
    backup = Backup(tmp_path / "trash")
    backup_id = backup.backup(java_file, changes=["T.one()"])

    assert re.fullmatch(r"\d{8}_\d{6}_[0-9a-f]{6}", backup_id)
    copy = tmp_path / "trash" / backup_id / "T.java"
    assert copy.read_text() == java_file.read_text()

    record = backup.manifest.get_backup(backup_id)
    assert record["original_path"] == str(java_file.resolve())
    assert record["changes"] == ["T.one()"]
    assert record["reason"] == "staticize"
    assert record["restored"] is False
    assert record["file_hash"] == Manifest.calculate_file_hash(java_file)


def test_restore_puts_original_back(tmp_path, java_file):
    original = java_file.read_text()
    backup = Backup(tmp_path / "trash")
    backup_id = backup.backup(java_file)
    java_file.write_text(original.replace("private", "private static"))

    backup.restore(backup_id)

    assert java_file.read_text() == original
    assert backup.manifest.get_backup(backup_id)["restored"] is True


def test_restore_twice_is_a_no_op(tmp_path, java_file):
    backup = Backup(tmp_path / "trash")
    backup_id = backup.backup(java_file)
    backup.restore(backup_id)
    java_file.write_text("changed after restore")

    backup.restore(backup_id)

    assert java_file.read_text() == "changed after restore"


def test_unknown_backup_id(tmp_path):
    with pytest.raises(BackupError, match="not found"):
        Backup(tmp_path / "trash").restore("19700101_000000_abcdef")


def test_backup_of_missing_file(tmp_path):
    with pytest.raises(BackupError):
        Backup(tmp_path / "trash").backup(tmp_path / "Missing.java")


def test_restore_with_missing_copy(tmp_path, java_file):
    backup = Backup(tmp_path / "trash")
    backup_id = backup.backup(java_file)
    (tmp_path / "trash" / backup_id / "T.java").unlink()

    with pytest.raises(BackupError, match="trash"):
        backup.restore(backup_id)


def test_trash_info(tmp_path, java_file):
    backup = Backup(tmp_path / "trash")
    first = backup.backup(java_file)
    backup.backup(java_file)
    backup.restore(first)

    info = backup.get_trash_info()
    assert info["total_backups"] == 2
    assert info["restored_count"] == 1
    assert info["unrestored_count"] == 1


def test_manifest_survives_reload(tmp_path, java_file):
    backup_id = Backup(tmp_path / "trash").backup(java_file)

    data = json.loads((tmp_path / "trash" / "manifest.json").read_text(encoding="utf-8"))
    assert [record["id"] for record in data["backups"]] == [backup_id]
    assert Manifest(tmp_path / "trash").get_backup(backup_id) is not None
