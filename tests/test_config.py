"""Tests for configuration handling."""

import json
from pathlib import Path

import pytest

from capture_dedupe.core.models import KeepStrategy, ScanOptions
from capture_dedupe.utils.config import Config


@pytest.fixture
def config_file(tmp_path):
    return tmp_path / "settings" / "config.json"


def test_creates_defaults(config_file):
    config = Config(config_file)

    assert config_file.exists()
    assert config.get("display_pattern") == "Display_*"
    assert config.get("extensions") == [".png"]
    assert config.get("report.verbosity") == 1


def test_invalid_file_falls_back_to_defaults(config_file):
    config_file.parent.mkdir(parents=True)
    config_file.write_text("{broken", encoding="utf-8")

    config = Config(config_file)

    assert config.get("keep_strategy") == "newest"


def test_partial_file_is_merged_with_defaults(config_file):
    config_file.parent.mkdir(parents=True)
    config_file.write_text(json.dumps({"keep_strategy": "oldest"}), encoding="utf-8")

    config = Config(config_file)

    assert config.get("keep_strategy") == "oldest"
    assert config.get("display_pattern") == "Display_*"


def test_set_persists_dotted_keys(config_file):
    config = Config(config_file)
    config.set("report.verbosity", 2)

    reloaded = Config(config_file)

    assert reloaded.get("report.verbosity") == 2
    assert reloaded.get("report.missing", "fallback") == "fallback"


def test_scan_options_use_settings(config_file, tmp_path):
    config = Config(config_file)
    config.set("keep_strategy", "oldest")
    config.set("extensions", [".png", ".bmp"])
    config.set("max_parallelism", 3)

    options = config.scan_options(tmp_path)

    assert isinstance(options, ScanOptions)
    assert options.keep_strategy is KeepStrategy.OLDEST
    assert options.normalized_extensions() == {".png", ".bmp"}
    assert options.resolve_parallelism() == 3
    assert options.use_manifest is False


def test_scan_options_overrides_win(config_file, tmp_path):
    config = Config(config_file)
    config.set("keep_strategy", "oldest")

    options = config.scan_options(
        tmp_path,
        keep_strategy="newest",
        display_pattern="Monitor_?",
        max_parallelism=None,
        use_manifest=True,
    )

    assert options.keep_strategy is KeepStrategy.NEWEST
    assert options.display_pattern == "Monitor_?"
    assert options.resolve_manifest_path() == Path(tmp_path) / "duplicate-manifest.json"


def test_scan_options_custom_manifest_filename(config_file, tmp_path):
    config = Config(config_file)
    config.set("manifest_filename", "hashes.json")

    options = config.scan_options(tmp_path, use_manifest=True)

    assert options.resolve_manifest_path() == Path(tmp_path) / "hashes.json"


def test_keep_strategy_parse():
    assert KeepStrategy.parse("OLDEST") is KeepStrategy.OLDEST
    assert KeepStrategy.parse(KeepStrategy.NEWEST) is KeepStrategy.NEWEST
    with pytest.raises(ValueError):
        KeepStrategy.parse("middle")


def test_scan_options_extension_defaults():
    assert ScanOptions(root_path=".", extensions=[]).normalized_extensions() == {".png"}
    assert ScanOptions(root_path=".", extensions=["JPG", ".Png"]).normalized_extensions() == {
        ".jpg",
        ".png",
    }


def test_scan_options_strip_padded_root(config_file, tmp_path):
    config = Config(config_file)

    options = config.scan_options(f"  {tmp_path}  ", use_manifest=True)

    assert options.root_path == str(tmp_path)
    assert options.resolve_manifest_path() == tmp_path / "duplicate-manifest.json"


def test_scan_options_keep_unknown_strategy_for_scan_to_report(config_file, tmp_path):
    config = Config(config_file)
    config.set("keep_strategy", "middle")
    config.set("max_parallelism", "4")

    options = config.scan_options(tmp_path)

    assert options.keep_strategy == "middle"
    assert options.resolve_parallelism() == 4
