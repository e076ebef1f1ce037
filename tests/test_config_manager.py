"""Tests for TOML-backed ingest settings."""

from pathlib import Path

import pytest

from codedna_cli import config_manager
from codedna_cli.config import DEFAULT_EXCLUDE_PATTERNS, IngestSettings
from codedna_cli.scanner import scan_project


@pytest.fixture
def write_config(codedna_home: Path):
    """Write ``config.toml`` into the temporary CodeDNA home."""

    def _write(text: str) -> Path:
        codedna_home.mkdir(parents=True, exist_ok=True)
        path = codedna_home / "config.toml"
        path.write_text(text, encoding="utf-8")
        return path

    return _write


def test_defaults_without_config_file():
    """Test that defaults apply when no config file exists."""
    settings = config_manager.load_ingest_settings()

    assert settings == IngestSettings()
    assert settings.exclude_patterns == DEFAULT_EXCLUDE_PATTERNS
    assert settings.damping == 0.85
    assert settings.max_iterations == 50


def test_overrides_from_ingest_section(write_config):
    """Test that [ingest] values override the defaults."""
    write_config(
        '[ingest]\n'
        'damping = 0.9\n'
        'max_iterations = 100\n'
        'top_files_count = 5\n'
        'exclude_patterns = ["vendor", "tmp"]\n'
        'unknown_key = "ignored"\n'
    )

    settings = config_manager.load_ingest_settings()

    assert settings.damping == 0.9
    assert settings.max_iterations == 100
    assert settings.top_files_count == 5
    assert settings.exclude_patterns == ["vendor", "tmp"]
    assert settings.convergence == 1e-6


def test_integer_damping_is_accepted(write_config):
    """Test that an integer is accepted for a float setting."""
    write_config("[ingest]\ndamping = 1\n")

    settings = config_manager.load_ingest_settings()
    assert settings.damping == 1.0
    assert isinstance(settings.damping, float)


def test_invalid_values_fall_back(write_config):
    """Test that values of the wrong type keep their defaults."""
    write_config(
        '[ingest]\n'
        'damping = "high"\n'
        'max_iterations = true\n'
        'exclude_patterns = "node_modules"\n'
    )

    assert config_manager.load_ingest_settings() == IngestSettings()


def test_blank_exclude_patterns_are_dropped(write_config):
    """Test that empty exclude patterns are discarded."""
    write_config('[ingest]\nexclude_patterns = ["", "vendor", "   "]\n')

    assert config_manager.load_ingest_settings().exclude_patterns == ["vendor"]


def test_blank_exclude_pattern_does_not_hide_sources(write_config, write_files):
    """Test that a blank exclude pattern still lets the scan find files."""
    write_config('[ingest]\nexclude_patterns = [""]\n')
    root = write_files({"src/a.ts": "export const a = 1;\n"})

    settings = config_manager.load_ingest_settings()
    files = scan_project(root, settings.exclude_patterns)
    assert [f.relative_path for f in files] == ["src/a.ts"]


def test_malformed_file_is_ignored(write_config):
    """Test that an unparsable config file falls back to defaults."""
    write_config("[ingest\ndamping = ")

    assert config_manager.load_full_config() == {}
    assert config_manager.load_ingest_settings() == IngestSettings()


def test_other_sections_are_ignored(write_config):
    """Test that sections other than [ingest] do not affect ingest settings."""
    write_config('[ui]\ntheme = "dark"\n')

    assert config_manager.load_full_config() == {"ui": {"theme": "dark"}}
    assert config_manager.load_ingest_settings() == IngestSettings()
