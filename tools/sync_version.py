#!/usr/bin/env python3
"""Version Conductor - Single Source of Truth for version strings.

Reads the VERSION file and synchronizes version strings across:
- pyproject.toml ([project] version)
- src/config.py (__version__ constant)
- README.md (release badge)
"""

import re
from pathlib import Path


def read_version(project_root: Path) -> str:
    """Read version from VERSION file.

    Handles UTF-8 with BOM and stray whitespace or null bytes.

    Returns:
        Validated semantic version string (X.Y.Z)

    Raises:
        ValueError: If version format is invalid
    """
    raw_version = (project_root / "VERSION").read_text(encoding='utf-8-sig')
    version = raw_version.strip().strip('\x00').strip()

    if not re.match(r'^\d+\.\d+\.\d+$', version):
        raise ValueError(
            f"Invalid version format detected: '{version}' (raw: {raw_version!r})\n"
            f"Expected semantic version format: X.Y.Z (e.g., 1.0.0)"
        )

    return version


def update_pyproject(version: str, project_root: Path) -> None:
    """Update the [project] version in pyproject.toml."""
    pyproject_path = project_root / "pyproject.toml"
    content = pyproject_path.read_text(encoding="utf-8")
    content = re.sub(
        r'^version = "[\d.]+"',
        f'version = "{version}"',
        content,
        count=1,
        flags=re.MULTILINE
    )
    pyproject_path.write_text(content, encoding="utf-8")
    print(f"[OK] Updated pyproject.toml to v{version}")


def update_config(version: str, project_root: Path) -> None:
    """Update __version__ in src/config.py."""
    config_path = project_root / "src" / "config.py"
    content = config_path.read_text(encoding="utf-8")
    content = re.sub(
        r'__version__ = ["\'][\d.]+["\']',
        f'__version__ = "{version}"',
        content
    )
    config_path.write_text(content, encoding="utf-8")
    print(f"[OK] Updated src/config.py to v{version}")


def update_readme(version: str, project_root: Path) -> None:
    """Update the release badge in README.md."""
    readme_path = project_root / "README.md"
    if not readme_path.exists():
        return
    content = readme_path.read_text(encoding="utf-8")
    content = re.sub(r'release-v[\d.]+-blue', f'release-v{version}-blue', content)
    readme_path.write_text(content, encoding="utf-8")
    print(f"[OK] Updated README.md to v{version}")


def main():
    """Synchronize version across all project files."""
    project_root = Path(__file__).parent.parent
    version = read_version(project_root)

    print(f"Version Conductor: Synchronizing to v{version}")
    print("=" * 60)

    update_pyproject(version, project_root)
    update_config(version, project_root)
    update_readme(version, project_root)

    print("=" * 60)
    print(f"[OK] All files synchronized to v{version}")


if __name__ == "__main__":
    main()
