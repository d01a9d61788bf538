"""Helpers for building project trees in tests."""
import json
from pathlib import Path


def write_tree(root: Path, files: dict) -> Path:
    """Create files under root from a {relative_path: content} mapping."""
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding='utf-8')
    return root


def write_config(root: Path, **config) -> Path:
    """Write keyword arguments as the project's .filescavengerrc JSON object."""
    config_path = root / '.filescavengerrc'
    config_path.write_text(json.dumps(config), encoding='utf-8')
    return config_path
