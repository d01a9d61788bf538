"""Session-scoped user overrides for scan classification.

An override pins a file as used (or explicitly unused) regardless of what the
reference heuristic decides. Overrides live only for the running session: the
application calls reset_all() once at startup and nothing is written to disk.
"""
from enum import Enum
from pathlib import Path
from typing import Dict, List


class OverrideStatus(str, Enum):
    """Tri-state override status for a path."""
    NONE = "none"
    USED = "used"
    UNUSED = "unused"


class OverrideStore:
    """Mapping from absolute file path to a user override."""

    def __init__(self):
        self._overrides: Dict[str, bool] = {}

    @staticmethod
    def _key(file_path: str | Path) -> str:
        return str(Path(file_path).resolve())

    def get(self, file_path: str | Path) -> bool:
        """Return True if the file is marked used (default False)."""
        return self._overrides.get(self._key(file_path), False)

    def set(self, file_path: str | Path, value: bool):
        self._overrides[self._key(file_path)] = bool(value)

    def clear(self, file_path: str | Path):
        """Remove any override, handing the file back to the heuristic."""
        self._overrides.pop(self._key(file_path), None)

    def toggle(self, file_path: str | Path) -> bool:
        """Flip the used/unused override for a file.

        Returns:
            The new override value
        """
        new_value = not self.get(file_path)
        self.set(file_path, new_value)
        return new_value

    def status(self, file_path: str | Path) -> OverrideStatus:
        value = self._overrides.get(self._key(file_path))
        if value is None:
            return OverrideStatus.NONE
        return OverrideStatus.USED if value else OverrideStatus.UNUSED

    def reset_all(self):
        """Discard every override (called once at process start)."""
        self._overrides.clear()

    def marked_used(self) -> List[str]:
        return [path for path, value in self._overrides.items() if value]

    def __contains__(self, file_path) -> bool:
        return self._key(file_path) in self._overrides

    def __len__(self) -> int:
        return len(self._overrides)
