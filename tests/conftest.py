"""Shared fixtures for File Scavenger tests."""
import pytest

from tests.helpers import write_config, write_tree


@pytest.fixture
def project(tmp_path):
    """Empty project root (resolved, so paths compare equal to scan output)."""
    return tmp_path.resolve()


@pytest.fixture
def ts_project(project):
    """The canonical three-file project: b.ts mentions a, nothing mentions b or c."""
    write_config(project, fileTypes=['.ts'], ignoreFolders=[], ignoreRootFiles=[])
    return write_tree(project, {
        'a.ts': '',
        'b.ts': 'import "./a"',
        'c.ts': '',
    })
