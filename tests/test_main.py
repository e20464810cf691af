"""Tests for the command-line entry points."""

from pathlib import Path

import pytest
from PIL import Image

import fast_tagger.main as m
from conftest import Workspace


def _write_config(workspace: Workspace, *extra: str) -> Path:
    config_file = workspace.root / "config.txt"
    lines = [
        f"IM_DIR {workspace.images}",
        f"SESSION_DIR {workspace.session}",
        f"OUT_DIR {workspace.out}",
        f"THUMBS_DIR {workspace.thumbs}",
        "EXTENSION png",
        *extra,
    ]
    config_file.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return config_file


QUIET = {"file_log_level": "OFF", "console_log_level": "OFF"}


def test_session_exits_when_config_is_missing(tmp_path: Path) -> None:
    """A missing configuration file ends the program with status 1."""
    with pytest.raises(SystemExit) as excinfo:
        m.session(tmp_path / "missing.txt", **QUIET)
    assert excinfo.value.code == 1


def test_session_exits_on_stale_backup(workspace: Workspace) -> None:
    """Startup errors are logged and turned into exit status 1."""
    workspace.write_tags("1 cat c\n")
    (workspace.out / ".cat.bak").write_text("")
    config_file = _write_config(workspace)

    with pytest.raises(SystemExit) as excinfo:
        m.session(config_file, **QUIET)
    assert excinfo.value.code == 1


def test_sort_index_sorts_without_session(workspace: Workspace) -> None:
    """sort-index rewrites the index files in ascending order."""
    workspace.write_tags("1 cat c\n")
    (workspace.out / "cat.txt").write_text("8\n3\n")
    config_file = _write_config(workspace)

    m.sort_index(config_file, **QUIET)

    assert (workspace.out / "cat.txt").read_text() == "3\n8\n"


def test_thumbs_writes_grid_thumbnails(workspace: Workspace) -> None:
    """The thumbs command produces the files grid mode looks for."""
    for i in (1, 2):
        Image.new("RGB", (50, 30)).save(workspace.images / f"im{i}.png")
    config_file = _write_config(workspace, "THUMB_SIZE 24", "THUMB_EXTENSION png")

    m.thumbs(config_file, **QUIET)

    for i in (1, 2):
        with Image.open(workspace.thumbs / f"im{i}_t24.png") as img:
            assert img.size == (24, 24)
    assert (workspace.session / "images.txt").read_text().count("\n") == 2


def test_setup_logging_off_adds_no_file(tmp_path: Path) -> None:
    """Level OFF disables a sink entirely."""
    m.setup_logging(file_log_level="OFF", console_log_level="OFF", log_folder=tmp_path / "logs")
    assert not (tmp_path / "logs").exists()


def test_thumbs_exits_when_session_directory_is_missing(workspace: Workspace) -> None:
    """A missing session directory is a startup error, not a traceback."""
    Image.new("RGB", (8, 8)).save(workspace.images / "im1.png")
    config_file = _write_config(workspace)
    workspace.session.rmdir()

    with pytest.raises(SystemExit) as excinfo:
        m.thumbs(config_file, **QUIET)
    assert excinfo.value.code == 1
    assert not any(workspace.thumbs.iterdir())


def test_thumbs_size_override_keeps_grid_names(workspace: Workspace) -> None:
    """--size changes the pixels only; names still follow THUMB_SIZE so grid mode finds them."""
    Image.new("RGB", (50, 30)).save(workspace.images / "im1.png")
    config_file = _write_config(workspace, "THUMB_SIZE 24", "THUMB_EXTENSION png")

    m.thumbs(config_file, size=12, **QUIET)

    with Image.open(workspace.thumbs / "im1_t24.png") as img:
        assert img.size == (12, 12)
