"""Trash manifest: one record per file moved out of the project.

Each record keeps the scan evidence that flagged the file (which names were
searched for, how many files were searched, the override state at the time)
so a restore can say why the file was removed in the first place.
"""
import hashlib
import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

MANIFEST_VERSION = "2.0"


@dataclass
class TrashRecord:
    """A file moved to the trash, plus the scan that flagged it."""
    id: str
    original_path: str
    trash_path: str
    file_hash: str
    reason: str = "unused"
    deleted_at: str = field(default_factory=lambda: datetime.now().isoformat())
    evidence: Dict = field(default_factory=dict)
    restored: bool = False

    @classmethod
    def from_dict(cls, data: Dict) -> Optional["TrashRecord"]:
        """Build a record from manifest JSON, or None if required keys are missing."""
        try:
            return cls(
                id=str(data["id"]),
                original_path=str(data["original_path"]),
                trash_path=str(data["trash_path"]),
                file_hash=str(data.get("file_hash", "")),
                reason=str(data.get("reason", "unused")),
                deleted_at=str(data.get("deleted_at", "")),
                evidence=data.get("evidence") if isinstance(data.get("evidence"), dict) else {},
                restored=bool(data.get("restored", False)),
            )
        except (KeyError, TypeError):
            return None

    def describe(self) -> str:
        """One-line explanation of why the file was trashed."""
        names = self.evidence.get("searched_for") or []
        if not names:
            return self.reason
        quoted = " or ".join(f"'{n}'" for n in names)
        searched = self.evidence.get("tracked_files")
        if searched is None:
            return f"no tracked file mentioned {quoted}"
        return f"none of {searched} tracked file(s) mentioned {quoted}"


class Manifest:
    """JSON manifest of TrashRecords stored inside the trash directory."""

    def __init__(self, trash_dir: str | Path):
        """Initialize manifest.

        Args:
            trash_dir: Path to trash directory
        """
        self.trash_dir = Path(trash_dir)
        self.manifest_path = self.trash_dir / "manifest.json"
        self.trash_dir.mkdir(parents=True, exist_ok=True)
        if not self.manifest_path.exists():
            self._save([])

    def _load(self) -> List[TrashRecord]:
        """Read every record from disk.

        Returns:
            Records in insertion order; an unreadable or malformed manifest
            reads as empty and malformed entries are dropped
        """
        try:
            with open(self.manifest_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError):
            return []
        entries = data.get("deletions") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            return []
        records = (TrashRecord.from_dict(e) for e in entries if isinstance(e, dict))
        return [r for r in records if r is not None]

    def _save(self, records: List[TrashRecord]):
        """Write records to disk atomically (temp file + rename)."""
        data = {"version": MANIFEST_VERSION, "deletions": [asdict(r) for r in records]}
        temp_path = self.manifest_path.with_suffix('.tmp')
        with open(temp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        temp_path.replace(self.manifest_path)

    def add(self, record: TrashRecord):
        """Append a record.

        Args:
            record: The trashed file and its scan evidence
        """
        records = self._load()
        records.append(record)
        self._save(records)

    def get(self, deletion_id: str) -> Optional[TrashRecord]:
        """Look up a record by deletion ID.

        Returns:
            The record, or None if the ID is unknown
        """
        for record in self._load():
            if record.id == deletion_id:
                return record
        return None

    def mark_restored(self, deletion_id: str):
        """Flag a record as restored so it is not restored twice.

        Args:
            deletion_id: Deletion identifier
        """
        records = self._load()
        for record in records:
            if record.id == deletion_id:
                record.restored = True
                break
        self._save(records)

    def records(self) -> List[TrashRecord]:
        """Get all records, restored or not."""
        return self._load()

    def unrestored(self) -> List[TrashRecord]:
        """Get records whose files are still in the trash."""
        return [r for r in self._load() if not r.restored]

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
