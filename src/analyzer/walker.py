"""Project tree enumeration with folder and file-name exclusion."""
import logging
import os
from pathlib import Path
from typing import Collection, Iterable, List

from .project_config import ScanConfiguration

logger = logging.getLogger(__name__)


def walk(root: str | Path, ignore_folders: Collection[str] = (),
         ignore_root_files: Collection[str] = ()) -> List[str]:
    """Recursively collect every file under root.

    Directories whose name is in ignore_folders are pruned wherever they
    appear. Files whose name is in ignore_root_files are skipped at every
    depth, not only at the top level. Unreadable directories are skipped.
    Symlinks are never followed.

    Args:
        root: Directory to walk
        ignore_folders: Folder names to prune
        ignore_root_files: File names to skip

    Returns:
        Absolute file paths in traversal order
    """
    files: List[str] = []
    _walk_into(os.path.abspath(root), frozenset(ignore_folders), frozenset(ignore_root_files), files)
    return files


def _walk_into(dir_path: str, ignore_folders: frozenset, ignore_root_files: frozenset,
               files: List[str]):
    try:
        with os.scandir(dir_path) as it:
            entries = list(it)
    except OSError as e:
        logger.debug("Skipping unreadable directory %s: %s", dir_path, e)
        return

    for entry in entries:
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
            is_link = entry.is_symlink()
        except OSError:
            continue

        if is_dir:
            if entry.name in ignore_folders:
                continue
            _walk_into(entry.path, ignore_folders, ignore_root_files, files)
            continue

        if entry.name in ignore_root_files:
            continue
        if is_link:
            continue

        files.append(entry.path)


def tracked_files(paths: Iterable[str], config: ScanConfiguration) -> List[str]:
    """Keep only paths whose extension is tracked by the configuration."""
    return [p for p in paths if config.tracks(p)]
