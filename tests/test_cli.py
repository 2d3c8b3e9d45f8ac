"""Tests for the command-line interface."""

import json

import pytest
from click.testing import CliRunner

from capture_dedupe.cli import cli, normalize_root, parse_extensions

from conftest import RED, set_mtime


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_args(tmp_path):
    return ["--config", str(tmp_path / "config.json")]


def _invoke(runner, config_args, *args):
    return runner.invoke(cli, [*config_args, *args], obj={})


def test_scan_outputs_json(runner, config_args, capture_root, make_png):
    make_png(capture_root / "Display_1" / "a.png", RED)
    make_png(capture_root / "Display_1" / "b.png", RED)

    result = _invoke(runner, config_args, "scan", "--root", str(capture_root), "--json", "--no-progress")

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["stats"]["totalFiles"] == 2
    assert data["stats"]["duplicateGroups"] == 1
    assert len(data["groups"][0]["files"]) == 2
    assert data["errors"] == []


def test_scan_summary_output(runner, config_args, capture_root, make_png):
    make_png(capture_root / "Display_1" / "a.png", RED)
    make_png(capture_root / "Display_2" / "b.png", RED)

    result = _invoke(runner, config_args, "scan", "--root", str(capture_root), "--no-progress")

    assert result.exit_code == 0, result.output
    assert "Scanned files" in result.output
    assert "Duplicate groups" in result.output


def test_scan_full_output_lists_planned_deletions(runner, config_args, capture_root, make_png):
    older = make_png(capture_root / "Display_1" / "old.png", RED)
    make_png(capture_root / "Display_1" / "new.png", RED)
    set_mtime(older, 600)

    result = _invoke(
        runner,
        config_args,
        "scan",
        "--root",
        str(capture_root),
        "--delete-duplicates",
        "--dry-run",
        "-V",
        "2",
        "--no-progress",
    )

    assert result.exit_code == 0, result.output
    assert "Planned deletions" in result.output
    assert older.exists()


def test_scan_deletes_with_keep_oldest(runner, config_args, capture_root, make_png):
    older = make_png(capture_root / "Display_1" / "old.png", RED)
    newer = make_png(capture_root / "Display_1" / "new.png", RED)
    set_mtime(older, 600)

    result = _invoke(
        runner,
        config_args,
        "scan",
        "--root",
        str(capture_root),
        "--delete-duplicates",
        "--keep",
        "oldest",
        "--permanent",
        "--json",
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["deletedFiles"] == [str(newer)]
    assert older.exists()
    assert not newer.exists()


def test_scan_with_manifest(runner, config_args, capture_root, make_png, tmp_path):
    make_png(capture_root / "Display_1" / "a.png", RED)
    make_png(capture_root / "Display_1" / "b.png", RED)
    manifest = tmp_path / "cache" / "manifest.json"

    args = ["scan", "--root", str(capture_root), "--manifest", str(manifest), "--json"]
    first = _invoke(runner, config_args, *args)
    second = _invoke(runner, config_args, *args)

    assert manifest.exists()
    assert json.loads(first.output)["stats"]["hashedFiles"] == 2
    assert json.loads(second.output)["stats"]["hashedFiles"] == 0


def test_scan_missing_root_exits_with_error(runner, config_args, tmp_path):
    result = _invoke(runner, config_args, "scan", "--root", str(tmp_path / "missing"), "--json")

    assert result.exit_code == 2
    assert len(json.loads(result.output)["errors"]) == 1


def test_scan_rejects_bad_keep(runner, config_args, capture_root):
    result = _invoke(runner, config_args, "scan", "--root", str(capture_root), "--keep", "middle")

    assert result.exit_code == 2
    assert "newest" in result.output


def test_scan_rejects_zero_parallelism(runner, config_args, capture_root):
    result = _invoke(runner, config_args, "scan", "--root", str(capture_root), "--max-parallel", "0")

    assert result.exit_code == 2


def test_config_set_and_show(runner, config_args, tmp_path):
    result = _invoke(runner, config_args, "config", "set", "keep_strategy", "OLDEST")
    assert result.exit_code == 0, result.output

    stored = json.loads((tmp_path / "config.json").read_text(encoding="utf-8"))
    assert stored["keep_strategy"] == "oldest"

    result = _invoke(runner, config_args, "config", "show")
    assert result.exit_code == 0, result.output
    assert "keep_strategy" in result.output


def test_config_set_rejects_bad_keep_strategy(runner, config_args):
    result = _invoke(runner, config_args, "config", "set", "keep_strategy", "middle")

    assert result.exit_code == 2


def test_normalize_root():
    assert normalize_root("  /data/captures/*  ") == "/data/captures"
    assert normalize_root("/data/captures/") == "/data/captures"
    assert normalize_root("/") == "/"


def test_parse_extensions():
    assert parse_extensions(None) is None
    assert parse_extensions("png, .BMP,,jpg") == (".png", ".BMP", ".jpg")
