"""Backups of source files before they are rewritten in place."""
import secrets
import shutil
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from .manifest import Manifest
from ..errors import BackupError


class Backup:
    """Copies originals into a trash directory so any rewrite can be undone."""

    def __init__(self, trash_dir: str | Path = ".staticizer_trash"):
        """Initialize backup store.

        Args:
            trash_dir: Path to trash directory (default: .staticizer_trash)
        """
        self.trash_dir = Path(trash_dir)
        self.trash_dir.mkdir(parents=True, exist_ok=True)
        self.manifest = Manifest(self.trash_dir)

    def backup(self, file_path: str | Path, reason: str = "staticize",
               changes: Optional[List[str]] = None) -> str:
        """Copy a file into the trash and record it in the manifest.

        The original stays where it is; the caller rewrites it afterwards.

        Args:
            file_path: File about to be rewritten
            reason: Reason recorded in the manifest
            changes: Methods about to be marked static

        Returns:
            Backup ID for restoration

        Raises:
            BackupError: If the file is missing or the copy fails
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise BackupError(f"File not found: {file_path}")

        backup_id = self._generate_backup_id()
        backup_dir = self.trash_dir / backup_id
        backup_dir.mkdir(parents=True, exist_ok=True)
        trash_path = backup_dir / file_path.name

        try:
            file_hash = self.manifest.calculate_file_hash(file_path)
            shutil.copy2(str(file_path), str(trash_path))
        except OSError as e:
            raise BackupError(f"Cannot back up {file_path}: {e}") from e

        self.manifest.add_backup(
            backup_id=backup_id,
            original_path=str(file_path.resolve()),
            trash_path=str(trash_path),
            reason=reason,
            file_hash=file_hash,
            changes=changes,
        )
        return backup_id

    def restore(self, backup_id: str):
        """Copy the original back over the rewritten file.

        Restoring an already restored backup is a no-op.

        Raises:
            BackupError: If the ID is unknown or the backup copy is gone
        """
        record = self.manifest.get_backup(backup_id)
        if not record:
            raise BackupError(f"Backup ID not found: {backup_id}")
        if record.get("restored", False):
            return

        trash_path = Path(record["trash_path"])
        original_path = Path(record["original_path"])
        if not trash_path.exists():
            raise BackupError(f"File not found in trash: {trash_path}")

        original_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            shutil.copy2(str(trash_path), str(original_path))
        except OSError as e:
            raise BackupError(f"Cannot restore {original_path}: {e}") from e
        self.manifest.mark_restored(backup_id)

    def get_trash_info(self) -> Dict:
        """Statistics about the trash directory."""
        backups = self.manifest.list_backups()
        pending = self.manifest.list_backups(include_restored=False)
        return {
            "total_backups": len(backups),
            "unrestored_count": len(pending),
            "restored_count": len(backups) - len(pending),
            "trash_dir": str(self.trash_dir),
        }

    def _generate_backup_id(self) -> str:
        """Backup ID in format: YYYYMMDD_HHMMSS_randomhex"""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{timestamp}_{secrets.token_hex(3)}"
