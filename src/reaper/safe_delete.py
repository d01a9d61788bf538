"""Move unused files to a trash directory instead of deleting them."""
import logging
import secrets
import shutil
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from src.errors import RestoreError
from .manifest import Manifest, TrashRecord

if TYPE_CHECKING:
    from src.analyzer.orchestrator import ScanOrchestrator

logger = logging.getLogger(__name__)

RestoredCallback = Callable[[str], object]


class SafeDeleter:
    """Trash-backed deleter with manifest-driven restoration.

    Files are never removed outright: each one is moved into its own
    ``<trash>/<deletion id>/`` folder and recorded in the manifest together
    with the scan evidence that flagged it.
    """

    def __init__(self, trash_dir: str | Path = ".scavenger_trash"):
        """Initialize safe deleter.

        Args:
            trash_dir: Path to trash directory (default: .scavenger_trash)
        """
        self.trash_dir = Path(trash_dir)
        self.manifest = Manifest(self.trash_dir)

    def delete(self, file_path: str | Path, evidence: Optional[Dict] = None,
               reason: str = "unused") -> str:
        """Move a file to the trash and record it.

        Args:
            file_path: File to remove
            evidence: Scan evidence stored with the record
            reason: Reason recorded in the manifest

        Returns:
            Deletion ID for restoration

        Raises:
            FileNotFoundError: If the file doesn't exist
            OSError: If the move fails
        """
        file_path = Path(file_path)
        if not file_path.is_file():
            raise FileNotFoundError(f"File not found: {file_path}")

        deletion_id = self._generate_deletion_id()
        deletion_dir = self.trash_dir / deletion_id
        deletion_dir.mkdir(parents=True, exist_ok=True)

        record = TrashRecord(
            id=deletion_id,
            original_path=str(file_path.resolve()),
            trash_path=str(deletion_dir / file_path.name),
            file_hash=self.manifest.calculate_file_hash(file_path),
            reason=reason,
            evidence=dict(evidence or {}),
        )
        shutil.move(str(file_path), record.trash_path)
        self.manifest.add(record)
        logger.debug("Moved %s to %s", record.original_path, record.trash_path)
        return deletion_id

    def delete_unused(self, orchestrator: "ScanOrchestrator") -> List[Optional[str]]:
        """Trash every visible unused file of the orchestrator's last scan.

        Each successful move is fed back through ``orchestrator.on_delete`` so
        the result shrinks without a rescan. Failures are logged and skipped.

        Returns:
            Deletion IDs in result order (None for files that could not be moved)
        """
        deletion_ids: List[Optional[str]] = []
        for file_path in orchestrator.visible_unused_files():
            try:
                deletion_ids.append(self.delete(file_path, orchestrator.evidence(file_path)))
            except OSError as e:
                logger.warning("Failed to delete %s: %s", file_path, e)
                deletion_ids.append(None)
                continue
            orchestrator.on_delete(file_path)
        return deletion_ids

    def restore(self, deletion_id: str, on_restored: Optional[RestoredCallback] = None) -> TrashRecord:
        """Move a trashed file back to where it came from.

        Args:
            deletion_id: ID returned by delete()
            on_restored: Called with the original path once the file is back

        Returns:
            The record (already-restored records are returned unchanged)

        Raises:
            RestoreError: If the ID is unknown, the trashed file is missing or
                          was modified, or the original location is occupied
        """
        record = self.manifest.get(deletion_id)
        if record is None:
            raise RestoreError(f"Deletion ID not found: {deletion_id}")
        if record.restored:
            return record

        trash_path = Path(record.trash_path)
        original_path = Path(record.original_path)

        if not trash_path.is_file():
            raise RestoreError(f"File not found in trash: {trash_path}")
        if record.file_hash and self.manifest.calculate_file_hash(trash_path) != record.file_hash:
            raise RestoreError(f"Trashed file was modified since deletion: {trash_path}")
        if original_path.exists():
            raise RestoreError(f"Refusing to overwrite existing file: {original_path}")

        original_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(trash_path), str(original_path))
        self.manifest.mark_restored(deletion_id)
        record.restored = True
        if on_restored is not None:
            on_restored(record.original_path)
        return record

    def restore_all(self, deletion_ids: Optional[List[str]] = None,
                    on_restored: Optional[RestoredCallback] = None) -> List[TrashRecord]:
        """Restore several deletions (default: every unrestored one).

        Returns:
            Records that were restored by this call

        Raises:
            RestoreError: If any restoration fails (the rest are still attempted)
        """
        if deletion_ids is None:
            deletion_ids = [r.id for r in self.manifest.unrestored()]

        errors = []
        restored = []
        for deletion_id in deletion_ids:
            try:
                restored.append(self.restore(deletion_id, on_restored))
            except (RestoreError, OSError) as e:
                errors.append(f"{deletion_id}: {e}")

        if errors:
            raise RestoreError("Failed to restore some files:\n" + "\n".join(errors))
        return restored

    def get_trash_info(self) -> dict:
        """Summarize the trash contents.

        Returns:
            Dictionary with counts, the trash directory and the unrestored records
        """
        records = self.manifest.records()
        unrestored = [r for r in records if not r.restored]
        return {
            "total_deletions": len(records),
            "unrestored_count": len(unrestored),
            "restored_count": len(records) - len(unrestored),
            "trash_dir": str(self.trash_dir),
            "unrestored": unrestored,
        }

    def _generate_deletion_id(self) -> str:
        """Generate unique deletion ID: YYYYMMDD_HHMMSS_randomhex."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{timestamp}_{secrets.token_hex(3)}"
