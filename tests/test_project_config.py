"""Tests for .filescavengerrc resolution."""
from src.analyzer.project_config import (
    DEFAULT_FILE_TYPES,
    DEFAULT_IGNORE_FOLDERS,
    DEFAULT_IGNORE_ROOT_FILES,
    ScanConfiguration,
    resolve_configuration,
)
from tests.helpers import write_config


class TestDefaults:
    """Behavior when no usable config file exists."""

    def test_missing_file_returns_defaults(self, project):
        """Without a config file every key takes its built-in default."""
        config = resolve_configuration(project)
        assert config == ScanConfiguration.default()
        assert '.ts' in config.file_types
        assert 'node_modules' in config.ignore_folders
        assert 'package.json' in config.ignore_root_files

    def test_default_sets_match_constants(self):
        """Default configuration is built from the module constants."""
        config = ScanConfiguration.default()
        assert len(config.file_types) == len(set(DEFAULT_FILE_TYPES))
        assert config.ignore_folders == frozenset(DEFAULT_IGNORE_FOLDERS)
        assert config.ignore_root_files == frozenset(DEFAULT_IGNORE_ROOT_FILES)

    def test_malformed_json_falls_back_entirely(self, project):
        """Truncated JSON discards the whole file."""
        (project / '.filescavengerrc').write_text('{"fileTypes": [".ts"', encoding='utf-8')
        assert resolve_configuration(project) == ScanConfiguration.default()

    def test_non_object_json_falls_back(self, project):
        """A top-level array is not a configuration."""
        (project / '.filescavengerrc').write_text('[".ts"]', encoding='utf-8')
        assert resolve_configuration(project) == ScanConfiguration.default()

    def test_invalid_utf8_falls_back(self, project):
        """Undecodable bytes fall back to defaults instead of raising."""
        (project / '.filescavengerrc').write_bytes(b'\xff\xfe\x00garbage')
        assert resolve_configuration(project) == ScanConfiguration.default()

    def test_oversized_integer_falls_back(self, project):
        """An integer beyond the interpreter's digit limit falls back to defaults."""
        (project / '.filescavengerrc').write_text('{"x": ' + '1' * 5000 + '}', encoding='utf-8')
        assert resolve_configuration(project) == ScanConfiguration.default()

    def test_deeply_nested_json_falls_back(self, project):
        """Nesting deep enough to exhaust the decoder's recursion falls back to defaults."""
        (project / '.filescavengerrc').write_text('[' * 100000 + ']' * 100000, encoding='utf-8')
        assert resolve_configuration(project) == ScanConfiguration.default()


class TestOverlay:
    """User keys replace defaults per key."""

    def test_file_types_replaced_not_merged(self, project):
        """fileTypes replaces the default list instead of extending it."""
        write_config(project, fileTypes=['.ts'])
        config = resolve_configuration(project)
        assert config.file_types == frozenset({'.ts'})
        # Untouched keys keep their defaults
        assert config.ignore_folders == frozenset(DEFAULT_IGNORE_FOLDERS)

    def test_empty_lists_are_respected(self, project):
        """An empty list is a valid value, not a missing key."""
        write_config(project, ignoreFolders=[], ignoreRootFiles=[])
        config = resolve_configuration(project)
        assert config.ignore_folders == frozenset()
        assert config.ignore_root_files == frozenset()

    def test_unknown_keys_ignored(self, project):
        """Extra keys do not disturb the known ones."""
        write_config(project, fileTypes=['.md'], somethingElse=True)
        assert resolve_configuration(project).file_types == frozenset({'.md'})

    def test_wrongly_typed_key_uses_default(self, project):
        """A key with the wrong type keeps its default; other keys still apply."""
        write_config(project, fileTypes='.ts', ignoreFolders=['vendor'])
        config = resolve_configuration(project)
        assert config.file_types == ScanConfiguration.default().file_types
        assert config.ignore_folders == frozenset({'vendor'})

    def test_extensions_normalized_to_lower_case(self, project):
        """Extensions are lower-cased and given a leading dot."""
        write_config(project, fileTypes=['.TS', 'Md'])
        assert resolve_configuration(project).file_types == frozenset({'.ts', '.md'})


class TestTracks:
    """Extension matching and configuration helpers."""

    def test_extension_match_is_case_insensitive(self):
        """App.TS is tracked by '.ts'; .tsx is not."""
        config = ScanConfiguration.build(['.ts'], [], [])
        assert config.tracks('/p/App.TS')
        assert config.tracks('/p/app.ts')
        assert not config.tracks('/p/app.tsx')

    def test_files_without_extension_are_not_tracked(self):
        """Dotless names and bare dotfiles have no extension to match."""
        config = ScanConfiguration.build(['.ts'], [], [])
        assert not config.tracks('/p/Makefile')
        assert not config.tracks('/p/.ts')

    def test_with_ignored_folders_adds_names(self):
        """with_ignored_folders extends the ignore set without replacing it."""
        config = ScanConfiguration.build(['.ts'], ['vendor'], []).with_ignored_folders('.scavenger_trash')
        assert config.ignore_folders == frozenset({'vendor', '.scavenger_trash'})
