"""Project-local scan configuration (.filescavengerrc).

The configuration file is a JSON object at the project root. Recognized keys
replace the built-in defaults wholesale; anything else is ignored. A missing
or malformed file silently yields the defaults.
"""
import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import FrozenSet, Iterable, Optional

from src.config import CONFIG_FILE_NAME

logger = logging.getLogger(__name__)


DEFAULT_FILE_TYPES = (
    '.js', '.ts', '.jsx', '.tsx', '.css', '.scss', '.less', '.html', '.htm',
    '.json', '.xml', '.yml', '.yaml',
    '.png', '.jpg', '.jpeg', '.svg', '.gif', '.bmp', '.ico', '.webp',
    '.mp4', '.mp3', '.wav', '.ogg', '.pdf',
    '.md', '.txt', '.csv', '.sql', '.sh', '.bat', '.ps1',
    '.py', '.rb', '.php', '.java', '.cpp', '.c', '.h', '.go', '.rs', '.swift',
    '.kt', '.dart', '.lua', '.pl', '.r', '.hs', '.scala', '.clj', '.elm',
    '.erl', '.ex', '.fs', '.groovy', '.jl', '.nim', '.pde', '.v', '.vb',
    '.vbs', '.zig',
)

DEFAULT_IGNORE_FOLDERS = (
    'node_modules', '.git', 'dist', 'build', 'out', 'bin', 'obj', 'vendor',
    'logs', 'temp',
)

DEFAULT_IGNORE_ROOT_FILES = (
    'README.md', 'package.json', 'package-lock.json', 'tsconfig.json',
    'webpack.config.js', '.gitignore', '.env', '.env.local',
    'docker-compose.yml', 'Makefile', 'Procfile',
)


def _normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    if ext and not ext.startswith('.'):
        ext = '.' + ext
    return ext


@dataclass(frozen=True)
class ScanConfiguration:
    """Resolved configuration for one scan."""
    file_types: FrozenSet[str]
    ignore_folders: FrozenSet[str]
    ignore_root_files: FrozenSet[str]

    @classmethod
    def build(cls, file_types: Iterable[str], ignore_folders: Iterable[str],
              ignore_root_files: Iterable[str]) -> "ScanConfiguration":
        return cls(
            file_types=frozenset(_normalize_extension(e) for e in file_types if e.strip()),
            ignore_folders=frozenset(ignore_folders),
            ignore_root_files=frozenset(ignore_root_files),
        )

    @classmethod
    def default(cls) -> "ScanConfiguration":
        return cls.build(DEFAULT_FILE_TYPES, DEFAULT_IGNORE_FOLDERS, DEFAULT_IGNORE_ROOT_FILES)

    def with_ignored_folders(self, *names: str) -> "ScanConfiguration":
        """Return a copy that also prunes the given folder names."""
        return replace(self, ignore_folders=self.ignore_folders | frozenset(names))

    def tracks(self, file_path: str | Path) -> bool:
        """Check whether a file's extension is tracked (case-insensitive)."""
        suffix = Path(file_path).suffix.lower()
        return bool(suffix) and suffix in self.file_types


def _string_list(value) -> Optional[list]:
    """Return value if it is a list of strings, otherwise None."""
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return value
    return None


def resolve_configuration(project_root: str | Path) -> ScanConfiguration:
    """Resolve the scan configuration for a project.

    Reads .filescavengerrc from the project root and overlays its fileTypes,
    ignoreFolders and ignoreRootFiles onto the defaults (full replacement per
    key, not a deep merge).

    Args:
        project_root: Root directory of the project

    Returns:
        ScanConfiguration (defaults if the file is absent or unparsable)
    """
    defaults = ScanConfiguration.default()
    config_path = Path(project_root) / CONFIG_FILE_NAME

    if not config_path.is_file():
        return defaults

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            user_config = json.load(f)
    except (OSError, ValueError, RecursionError) as e:
        logger.debug("Ignoring unreadable %s: %s", config_path, e)
        return defaults

    if not isinstance(user_config, dict):
        logger.debug("Ignoring %s: top-level value is not an object", config_path)
        return defaults

    file_types = _string_list(user_config.get('fileTypes'))
    ignore_folders = _string_list(user_config.get('ignoreFolders'))
    ignore_root_files = _string_list(user_config.get('ignoreRootFiles'))

    return ScanConfiguration.build(
        file_types if file_types is not None else defaults.file_types,
        ignore_folders if ignore_folders is not None else defaults.ignore_folders,
        ignore_root_files if ignore_root_files is not None else defaults.ignore_root_files,
    )
