"""Tests for the session override store and the deferred refresh."""
import asyncio
import os

from src.analyzer.debounce import DeferredRefresh
from src.analyzer.overrides import OverrideStatus, OverrideStore


class TestOverrideStore:
    """Tri-state overrides keyed by file path."""

    def test_default_is_not_marked_used(self):
        """An unknown path reads as not marked used with no override."""
        store = OverrideStore()
        assert store.get('/p/a.ts') is False
        assert store.status('/p/a.ts') == OverrideStatus.NONE

    def test_set_and_clear(self):
        """clear() returns a path to the NONE state."""
        store = OverrideStore()
        store.set('/p/a.ts', True)
        assert store.get('/p/a.ts') is True
        assert store.status('/p/a.ts') == OverrideStatus.USED

        store.clear('/p/a.ts')
        assert store.get('/p/a.ts') is False
        assert store.status('/p/a.ts') == OverrideStatus.NONE
        assert '/p/a.ts' not in store

    def test_toggle_flips_between_used_and_unused(self):
        """Toggling twice leaves an explicit UNUSED override."""
        store = OverrideStore()
        assert store.toggle('/p/a.ts') is True
        assert store.toggle('/p/a.ts') is False
        assert store.status('/p/a.ts') == OverrideStatus.UNUSED
        assert store.get('/p/a.ts') is False

    def test_clear_missing_entry_is_noop(self):
        """Clearing a path that was never set changes nothing."""
        store = OverrideStore()
        store.clear('/p/never-set.ts')
        assert len(store) == 0

    def test_reset_all_discards_everything(self):
        """reset_all() empties the store."""
        store = OverrideStore()
        store.set('/p/a.ts', True)
        store.set('/p/b.ts', False)
        store.reset_all()
        assert len(store) == 0
        assert store.marked_used() == []

    def test_marked_used_lists_only_true_entries(self):
        """Explicit UNUSED entries are not reported as marked used."""
        store = OverrideStore()
        store.set('/p/a.ts', True)
        store.set('/p/b.ts', False)
        assert store.marked_used() == ['/p/a.ts']

    def test_relative_and_absolute_paths_share_one_entry(self, project, monkeypatch):
        """A relative path reaches the same override as the absolute one."""
        (project / 'a.ts').write_text('', encoding='utf-8')
        monkeypatch.chdir(project)
        store = OverrideStore()
        store.toggle('a.ts')
        assert store.get(str(project / 'a.ts')) is True

        store.clear(os.path.join('.', 'a.ts'))
        assert store.status(str(project / 'a.ts')) == OverrideStatus.NONE


class TestDeferredRefresh:
    """Settle-delay debouncing of refresh callbacks."""

    def test_burst_of_schedules_fires_once(self):
        """Several schedules inside the delay collapse into one call."""
        calls = []

        async def run():
            refresh = DeferredRefresh(0.05, lambda: calls.append(1))
            for _ in range(5):
                refresh.schedule()
            assert refresh.pending
            await asyncio.sleep(0.2)
            assert not refresh.pending

        asyncio.run(run())
        assert calls == [1]

    def test_runs_immediately_without_event_loop(self):
        """Outside an event loop there is nothing to wait on, so it fires at once."""
        calls = []
        DeferredRefresh(10.0, lambda: calls.append(1)).schedule()
        assert calls == [1]

    def test_cancel_prevents_refresh(self):
        """A cancelled refresh never fires."""
        calls = []

        async def run():
            refresh = DeferredRefresh(0.05, lambda: calls.append(1))
            refresh.schedule()
            refresh.cancel()
            await asyncio.sleep(0.1)

        asyncio.run(run())
        assert calls == []

    def test_flush_runs_pending_refresh_now(self):
        """flush() fires a pending refresh without waiting for the delay."""
        calls = []

        async def run():
            refresh = DeferredRefresh(10.0, lambda: calls.append(1))
            refresh.schedule()
            refresh.flush()
            assert not refresh.pending

        asyncio.run(run())
        assert calls == [1]
