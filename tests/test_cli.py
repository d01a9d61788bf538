"""End-to-end tests for the scavenger CLI."""
import json
import time

import pytest
import typer
from typer.testing import CliRunner

from src.analyzer.orchestrator import ScanOrchestrator
from src.config import __version__
from src.main import app
from tests.helpers import write_config, write_tree

runner = CliRunner()


@pytest.fixture(autouse=True)
def quick_settings(monkeypatch):
    """No settle delay and no inherited trash or batch settings."""
    monkeypatch.setenv('SCAVENGER_SETTLE_DELAY', '0')
    monkeypatch.delenv('SCAVENGER_TRASH_PATH', raising=False)
    monkeypatch.delenv('SCAVENGER_BATCH_SIZE', raising=False)


def _scan_json(*args):
    result = runner.invoke(app, ['scan', *args, '--json'])
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestScanCommand:
    """The scan command and its output formats."""

    def test_json_output(self, ts_project):
        """--json prints the unused list and the cancelled flag."""
        data = _scan_json(str(ts_project))
        assert data['cancelled'] is False
        assert sorted(data['unusedFiles']) == [str(ts_project / 'b.ts'), str(ts_project / 'c.ts')]

    def test_mark_used_option(self, ts_project):
        """--mark-used resolves relative paths against the project root."""
        data = _scan_json(str(ts_project), '--mark-used', 'c.ts')
        assert data['unusedFiles'] == [str(ts_project / 'b.ts')]

    def test_overrides_do_not_leak_between_invocations(self, ts_project):
        """Each invocation starts with an empty override store."""
        _scan_json(str(ts_project), '--mark-used', 'c.ts')
        data = _scan_json(str(ts_project))
        assert str(ts_project / 'c.ts') in data['unusedFiles']

    def test_table_output(self, ts_project):
        """The default output is a table plus a summary."""
        result = runner.invoke(app, ['scan', str(ts_project), '--batch-size', '1'])
        assert result.exit_code == 0, result.output
        assert 'b.ts' in result.output
        assert 'c.ts' in result.output
        assert 'Tracked files: 3' in result.output
        assert 'Unused files: 2' in result.output

    def test_clean_project(self, project):
        """A project where every file is mentioned reports nothing."""
        write_config(project, fileTypes=['.ts'])
        write_tree(project, {'a.ts': 'import "./b"', 'b.ts': 'import "./a"'})
        result = runner.invoke(app, ['scan', str(project)])
        assert result.exit_code == 0, result.output
        assert 'No unused files found' in result.output

    def test_missing_project_fails(self, project):
        """A missing root exits with status 1."""
        result = runner.invoke(app, ['scan', str(project / 'missing')])
        assert result.exit_code == 1
        assert 'does not exist' in result.output


class TestOtherCommands:
    """config, why, review, watch and --version."""

    def test_version(self):
        """--version prints the package version."""
        result = runner.invoke(app, ['--version'])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_config_command(self, project):
        """config shows the resolved file types and ignore lists."""
        write_config(project, fileTypes=['.ts', '.vue'], ignoreFolders=['vendor'])
        result = runner.invoke(app, ['config', str(project)])
        assert result.exit_code == 0, result.output
        assert '.vue' in result.output
        assert 'vendor' in result.output

    def test_why_used_file(self, ts_project):
        """why names the file that mentions a used file."""
        result = runner.invoke(app, ['why', 'a.ts', '--project', str(ts_project)])
        assert result.exit_code == 0, result.output
        assert 'is used' in result.output
        assert 'b.ts' in result.output

    def test_why_unused_file(self, ts_project):
        """why reports an unmentioned file as unused."""
        result = runner.invoke(app, ['why', 'c.ts', '--project', str(ts_project)])
        assert result.exit_code == 0, result.output
        assert 'is unused' in result.output

    def test_why_untracked_file(self, ts_project):
        """why refuses files outside the tracked set."""
        write_tree(ts_project, {'notes.md': ''})
        result = runner.invoke(app, ['why', 'notes.md', '--project', str(ts_project)])
        assert 'not tracked' in result.output

    def test_review_marks_kept_files(self, ts_project):
        """Answering yes keeps a file out of the remaining list."""
        result = runner.invoke(app, ['review', str(ts_project)], input='y\nn\n')
        assert result.exit_code == 0, result.output
        assert 'Marked 1 file(s) as used' in result.output
        assert 'Unused files: 1' in result.output

    def test_review_refresh_settles_while_prompt_is_open(self, ts_project, monkeypatch):
        """The settle timer keeps running while the next question waits for an answer."""
        monkeypatch.setenv('SCAVENGER_SETTLE_DELAY', '0.05')
        answered_at = []
        refreshed_at = []

        def slow_second_answer(text, default=False):
            if answered_at:
                time.sleep(0.5)
            answered_at.append(time.monotonic())
            return len(answered_at) == 1

        real_refresh = ScanOrchestrator.refresh

        def timed_refresh(self):
            refreshed_at.append(time.monotonic())
            real_refresh(self)

        monkeypatch.setattr(typer, 'confirm', slow_second_answer)
        monkeypatch.setattr(ScanOrchestrator, 'refresh', timed_refresh)

        result = runner.invoke(app, ['review', str(ts_project)])
        assert result.exit_code == 0, result.output
        assert 'Marked 1 file(s) as used' in result.output
        assert len(answered_at) == 2
        assert refreshed_at and refreshed_at[0] < answered_at[1]

    def test_watch_stops_after_duration(self, ts_project):
        """watch exits on its own after --duration."""
        result = runner.invoke(app, ['watch', str(ts_project), '--duration', '0.2', '--interval', '0.05'])
        assert result.exit_code == 0, result.output
        assert 'Watching 2 unused file(s)' in result.output


class TestCleanAndRestore:
    """Trash round trips through clean, trash and restore."""

    def test_dry_run_touches_nothing(self, ts_project):
        """--dry-run lists files but moves nothing."""
        result = runner.invoke(app, ['clean', str(ts_project), '--dry-run'])
        assert result.exit_code == 0, result.output
        assert 'DRY RUN' in result.output
        assert (ts_project / 'b.ts').exists()
        assert (ts_project / 'c.ts').exists()

    def test_declined_confirmation_aborts(self, ts_project):
        """Answering no at the prompt leaves the project alone."""
        result = runner.invoke(app, ['clean', str(ts_project)], input='n\n')
        assert 'Aborted' in result.output
        assert (ts_project / 'c.ts').exists()

    def test_clean_then_restore(self, ts_project):
        """Cleaned files land in the trash and come back with their evidence."""
        result = runner.invoke(app, ['clean', str(ts_project), '--yes', '--mark-used', 'b.ts'])
        assert result.exit_code == 0, result.output
        assert 'Moved 1 file(s)' in result.output
        assert (ts_project / 'b.ts').exists()
        assert not (ts_project / 'c.ts').exists()

        # The trash is never scanned
        data = _scan_json(str(ts_project))
        assert data['unusedFiles'] == [str(ts_project / 'b.ts')]

        result = runner.invoke(app, ['trash', str(ts_project)])
        assert 'Restorable: 1' in result.output

        result = runner.invoke(app, ['restore', str(ts_project), '--all'])
        assert result.exit_code == 0, result.output
        assert (ts_project / 'c.ts').exists()
        assert 'Restored 1 file(s)' in result.output
        assert 'trashed because' in result.output

    def test_restore_requires_target(self, ts_project):
        """restore needs --id or --all."""
        runner.invoke(app, ['clean', str(ts_project), '--yes'])
        result = runner.invoke(app, ['restore', str(ts_project)])
        assert result.exit_code == 1

    def test_restore_unknown_id(self, ts_project):
        """An unknown deletion ID exits with status 1."""
        runner.invoke(app, ['clean', str(ts_project), '--yes'])
        result = runner.invoke(app, ['restore', str(ts_project), '--id', 'bogus'])
        assert result.exit_code == 1
        assert 'not found' in result.output
