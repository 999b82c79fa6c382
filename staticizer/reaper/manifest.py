"""Backup manifest for files rewritten in place."""
import hashlib
import json
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

MANIFEST_VERSION = "1.0"


class Manifest:
    """JSON manifest tracking every backup taken before a rewrite."""

    def __init__(self, trash_dir: str | Path):
        """Initialize manifest.

        Args:
            trash_dir: Path to trash directory
        """
        self.trash_dir = Path(trash_dir)
        self.manifest_path = self.trash_dir / "manifest.json"
        self._ensure_manifest_exists()

    def _ensure_manifest_exists(self):
        self.trash_dir.mkdir(parents=True, exist_ok=True)
        if not self.manifest_path.exists():
            self._write_manifest({"version": MANIFEST_VERSION, "backups": []})

    def _read_manifest(self) -> Dict:
        try:
            with open(self.manifest_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (IOError, json.JSONDecodeError):
            return {"version": MANIFEST_VERSION, "backups": []}

    def _write_manifest(self, data: Dict):
        """Write manifest to disk atomically (temp file + rename)."""
        temp_path = self.manifest_path.with_suffix('.tmp')
        with open(temp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        temp_path.replace(self.manifest_path)

    def add_backup(self, backup_id: str, original_path: str, trash_path: str,
                   reason: str, file_hash: str, changes: Optional[List[str]] = None):
        """Record a backup.

        Args:
            backup_id: Unique backup identifier
            original_path: Absolute path of the rewritten file
            trash_path: Where the original bytes were copied
            reason: Why the backup was taken (e.g. 'staticize')
            file_hash: SHA256 of the original file
            changes: Methods marked static in this rewrite (Class.method(...))
        """
        manifest = self._read_manifest()
        manifest.setdefault("backups", []).append({
            "id": backup_id,
            "original_path": str(original_path),
            "trash_path": str(trash_path),
            "created_at": datetime.now().isoformat(),
            "reason": reason,
            "file_hash": file_hash,
            "changes": list(changes or []),
            "restored": False,
        })
        self._write_manifest(manifest)

    def get_backup(self, backup_id: str) -> Optional[Dict]:
        """Get backup record by ID, or None if unknown."""
        for record in self._read_manifest().get("backups", []):
            if record["id"] == backup_id:
                return record
        return None

    def mark_restored(self, backup_id: str):
        manifest = self._read_manifest()
        for record in manifest.get("backups", []):
            if record["id"] == backup_id:
                record["restored"] = True
                break
        self._write_manifest(manifest)

    def list_backups(self, include_restored: bool = True) -> List[Dict]:
        """All backup records, oldest first."""
        backups = self._read_manifest().get("backups", [])
        if include_restored:
            return backups
        return [b for b in backups if not b.get("restored", False)]

    @staticmethod
    def calculate_file_hash(file_path: str | Path) -> str:
        """Calculate SHA256 hash of file.

        Returns:
            SHA256 hash as hex string
        """
        sha256_hash = hashlib.sha256()
        with open(file_path, "rb") as f:
            for byte_block in iter(lambda: f.read(4096), b""):
                sha256_hash.update(byte_block)
        return sha256_hash.hexdigest()
