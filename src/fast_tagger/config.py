"""
Directive-file configuration loader.

A configuration file holds one directive per line, either ``NAME value`` or
``NAME=value``. Lines starting with ``#`` and blank lines are ignored, and ``$NAME``
inside a value expands to a previously set directive::

    MODE         single
    IM_DIR       /data/mirflickr
    SESSION_DIR  $IM_DIR/tagsession
    OUT_DIR      $SESSION_DIR/index
"""

import re
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from fast_tagger.errors import ConfigFileMissing, InvalidOption, UnrecognizedDirective


DIRECTIVES = (
    "MODE",
    "IM_DIR",
    "EXTENSION",
    "OUT_DIR",
    "SESSION_DIR",
    "THUMBS_DIR",
    "IM_LIST_FNAME",
    "SUBSET_FNAME",
    "N_ROWS",
    "N_COLS",
    "THUMB_SIZE",
    "DELAY",
    "TAGS_FNAME",
    "POSITION_FNAME",
    "LOG_OFFSET_X",
    "LOG_OFFSET_Y",
    "LOG_WIDTH",
    "LOG_LINES",
    "N_TAG_COLUMNS",
    "COLUMN_WIDTH",
    "AUTONEXT_CHAR",
    "VIEW_OFFSET",
    "SINGLE_PADDING",
    "GRID_PADDING",
    "SELECT_BORDER_WIDTH",
    "SELECT_BORDER_COLOR",
    "THUMB_EXTENSION",
    "THUMB_SUFFIX",
)

_SPLIT_RE = re.compile(r"[=\s]+")
_VARIABLE_RE = re.compile(r"\$(\w+)")


class TaggerConfig(BaseModel):
    """Immutable view of a parsed directive file. Values are kept as strings."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    grid: bool = False
    mode: str = Field(default="single", alias="MODE")
    im_dir: str = Field(default="", alias="IM_DIR")
    extension: str = Field(default="jpg", alias="EXTENSION")
    out_dir: str = Field(default="", alias="OUT_DIR")
    session_dir: str = Field(default="", alias="SESSION_DIR")
    thumbs_dir: str = Field(default="", alias="THUMBS_DIR")
    im_list_fname: str = Field(default="images.txt", alias="IM_LIST_FNAME")
    subset_fname: str = Field(default="", alias="SUBSET_FNAME")
    n_rows: str = Field(default="4", alias="N_ROWS")
    n_cols: str = Field(default="5", alias="N_COLS")
    thumb_size: str = Field(default="160", alias="THUMB_SIZE")
    delay: str = Field(default="3000", alias="DELAY")
    tags_fname: str = Field(default="tags.txt", alias="TAGS_FNAME")
    position_fname: str = Field(default="position.txt", alias="POSITION_FNAME")
    log_offset_x: str = Field(default="", alias="LOG_OFFSET_X")
    log_offset_y: str = Field(default="", alias="LOG_OFFSET_Y")
    log_width: str = Field(default="", alias="LOG_WIDTH")
    log_lines: str = Field(default="", alias="LOG_LINES")
    n_tag_columns: str = Field(default="3", alias="N_TAG_COLUMNS")
    column_width: str = Field(default="16", alias="COLUMN_WIDTH")
    autonext_char: str = Field(default="*", alias="AUTONEXT_CHAR")
    view_offset: str = Field(default="", alias="VIEW_OFFSET")
    single_padding: str = Field(default="", alias="SINGLE_PADDING")
    grid_padding: str = Field(default="", alias="GRID_PADDING")
    select_border_width: str = Field(default="", alias="SELECT_BORDER_WIDTH")
    select_border_color: str = Field(default="", alias="SELECT_BORDER_COLOR")
    thumb_extension: str = Field(default="jpg", alias="THUMB_EXTENSION")
    thumb_suffix: str = Field(default="", alias="THUMB_SUFFIX")

    def get(self, name: str) -> str:
        """Return the raw value of a directive by its upper-case name."""
        return str(getattr(self, name.lower()))

    def as_int(self, name: str, default: int | None = None) -> int:
        """
        Parse a numeric directive.

        Examples:
            >>> TaggerConfig(N_ROWS="3").as_int("N_ROWS")
            3
            >>> TaggerConfig(N_ROWS="").as_int("N_ROWS", 4)
            4

        """
        raw = self.get(name).strip()
        if not raw and default is not None:
            return default
        try:
            return int(raw)
        except ValueError as exc:
            raise InvalidOption(name, raw) from exc

    @property
    def page_size(self) -> int:
        """Number of images shown at once: a full grid page, or one."""
        if not self.grid:
            return 1
        return self.as_int("N_ROWS") * self.as_int("N_COLS")

    @property
    def resolved_thumb_suffix(self) -> str:
        """Thumbnail name suffix; defaults to ``_t<THUMB_SIZE>``."""
        return self.thumb_suffix or f"_t{self.as_int('THUMB_SIZE')}"

    @property
    def session_path(self) -> Path:
        return Path(self.session_dir)

    @property
    def out_path(self) -> Path:
        return Path(self.out_dir)


def substitute_variables(raw_value: str, values: dict[str, str]) -> str:
    """
    Expand ``$NAME`` tokens against already parsed directives.

    Unknown names are left as they are.

    Examples:
        >>> substitute_variables("$IM_DIR/thumbs", {"IM_DIR": "/data"})
        '/data/thumbs'
        >>> substitute_variables("$HOME/x", {})
        '$HOME/x'

    """

    def _replace(match: re.Match[str]) -> str:
        return values.get(match.group(1), match.group(0))

    return _VARIABLE_RE.sub(_replace, raw_value)


def parse_config(lines: list[str], source: Path) -> TaggerConfig:
    """Parse directive lines into a TaggerConfig; ``source`` is used in error messages."""
    values: dict[str, str] = {}
    for line_number, raw_line in enumerate(lines, start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        parts = _SPLIT_RE.split(line, maxsplit=1)
        directive = parts[0]
        raw_value = parts[1] if len(parts) > 1 else ""
        if directive not in DIRECTIVES:
            raise UnrecognizedDirective(directive, line_number, source)
        values[directive] = substitute_variables(raw_value, values)

    fields: dict[str, Any] = dict(values)
    fields["grid"] = values.get("MODE") == "grid"
    config = TaggerConfig.model_validate(fields)
    logger.debug("config_parsed", source=str(source), directives=len(values), grid=config.grid)
    return config


def load_config(path: Path) -> TaggerConfig:
    """Read and parse the directive file at ``path``."""
    if not path.is_file():
        raise ConfigFileMissing(path)
    lines = path.read_text(encoding="utf-8").splitlines()
    config = parse_config(lines, path)
    logger.info("config_loaded", file=str(path), mode="grid" if config.grid else "single")
    return config
