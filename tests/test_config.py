"""Tests for the directive-file configuration loader."""

from pathlib import Path

import pytest

import fast_tagger.config as m
from fast_tagger.errors import ConfigFileMissing, InvalidOption, UnrecognizedDirective


def test_load_config_accepts_both_separators_and_expands_variables(tmp_path: Path) -> None:
    """Directives split on whitespace or '=', comments are skipped and $NAME expands."""
    config_file = tmp_path / "config.txt"
    config_file.write_text(
        "# session setup\n"
        "\n"
        "IM_DIR       /data/mirflickr\n"
        "SESSION_DIR=$IM_DIR/tagsession\n"
        "   OUT_DIR = $SESSION_DIR/index\n"
        "N_ROWS 3\n",
        encoding="utf-8",
    )

    config = m.load_config(config_file)

    assert config.im_dir == "/data/mirflickr"
    assert config.session_dir == "/data/mirflickr/tagsession"
    assert config.out_dir == "/data/mirflickr/tagsession/index"
    assert config.as_int("N_ROWS") == 3
    assert config.grid is False


def test_mode_grid_selects_grid_and_anything_else_single(tmp_path: Path) -> None:
    """Only the literal value 'grid' switches to grid mode."""
    assert m.parse_config(["MODE grid"], tmp_path / "c").grid is True
    assert m.parse_config(["MODE single"], tmp_path / "c").grid is False
    assert m.parse_config(["MODE Grid"], tmp_path / "c").grid is False


def test_trailing_hash_text_belongs_to_the_value(tmp_path: Path) -> None:
    """Only whole lines starting with '#' are comments."""
    config = m.parse_config(["MODE grid # or single", "EXTENSION png"], tmp_path / "c")
    assert config.mode == "grid # or single"
    assert config.grid is False
    assert config.extension == "png"


def test_unrecognized_directive_names_directive_and_line(tmp_path: Path) -> None:
    """An unknown directive aborts with its name and line number."""
    source = tmp_path / "config.txt"
    with pytest.raises(UnrecognizedDirective) as excinfo:
        m.parse_config(["MODE grid", "", "IMAGE_DIR /data"], source)

    assert excinfo.value.directive == "IMAGE_DIR"
    assert excinfo.value.line_number == 3
    assert "line 3" in str(excinfo.value)


def test_unknown_variable_is_left_untouched() -> None:
    """$NAME only expands directives that were set on an earlier line."""
    assert m.substitute_variables("$OUT_DIR/x", {"IM_DIR": "/a"}) == "$OUT_DIR/x"
    assert m.substitute_variables("$IM_DIR/$IM_DIR", {"IM_DIR": "/a"}) == "/a//a"


def test_directive_without_value_is_empty(tmp_path: Path) -> None:
    """A bare directive clears the option."""
    config = m.parse_config(["SUBSET_FNAME"], tmp_path / "c")
    assert config.subset_fname == ""


def test_missing_config_file_is_fatal(tmp_path: Path) -> None:
    """A configuration file that does not exist raises ConfigFileMissing."""
    with pytest.raises(ConfigFileMissing):
        m.load_config(tmp_path / "nope.txt")


def test_as_int_rejects_non_numeric_values(tmp_path: Path) -> None:
    """Numeric options are parsed by consumers and junk is reported."""
    config = m.parse_config(["DELAY fast"], tmp_path / "c")
    with pytest.raises(InvalidOption):
        config.as_int("DELAY")


def test_page_size_and_thumb_suffix_defaults(tmp_path: Path) -> None:
    """Grid pages hold rows x columns images; the suffix derives from the thumb size."""
    grid = m.parse_config(["MODE grid", "N_ROWS 3", "N_COLS 4", "THUMB_SIZE 120"], tmp_path / "c")
    single = m.parse_config(["MODE single"], tmp_path / "c")

    assert grid.page_size == 12
    assert single.page_size == 1
    assert grid.resolved_thumb_suffix == "_t120"
    assert m.parse_config(["THUMB_SUFFIX _small"], tmp_path / "c").resolved_thumb_suffix == "_small"
