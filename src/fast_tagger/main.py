#!/usr/bin/env python3
"""
Fast Tagger: keyboard-driven tagging of large image collections.

Images are paged one at a time (or as a grid of thumbnails) and tagged with single key
presses. Each tag is kept as a plain-text index file listing the numbers of the images
that carry it, so results can be consumed by any script.

Everything is driven by a directive file (``config.txt`` by default) that names the image
directory, the session directory holding ``tags.txt`` and the output directory for the
index files.
"""
# ruff: noqa: PLR0913

import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated, Literal

from cyclopts import App, Parameter, validators
from loguru import logger

from fast_tagger.catalog import load_image_list
from fast_tagger.config import TaggerConfig, load_config
from fast_tagger.console import run_console
from fast_tagger.errors import StartupError
from fast_tagger.index_store import TagIndexStore
from fast_tagger.registry import load_tags
from fast_tagger.session import Session
from fast_tagger.thumbnails import generate_thumbnails


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "OFF"]

DEFAULT_CONFIG = Path("config.txt")


__version__ = "2.0.0"
app = App(
    name="fast-tagger",
    version=__version__,
)


def setup_logging(
    file_log_level: LogLevel = "DEBUG",
    console_log_level: LogLevel = "INFO",
    log_folder: Path = Path("logs"),
) -> None:
    """
    Configure Loguru for both console and file logging.

    Args:
        file_log_level: Log level for file (use 'OFF' to disable)
        console_log_level: Log level for console (use 'OFF' to disable)
        log_folder: Directory where log files are stored

    """
    logger.remove()

    if file_log_level != "OFF":
        log_folder.mkdir(parents=True, exist_ok=True)
        log_file = log_folder / Path(
            datetime.now(tz=UTC).strftime("%Y%m%d%H%M%S-fast_tagger.log"),
        )
        logger.add(
            log_file,
            level=file_log_level,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                "{level: <8} | "
                "{name:<8}:{function:<25}:{line:>4} | "
                "{message:<40} | "
                "{extra}"
            ),
            rotation="500 MB",
            retention="10 days",
            compression="zip",
        )

    if console_log_level != "OFF":
        logger.add(
            sys.stderr,
            level=console_log_level,
            colorize=True,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <7}</level> | "
                "<level>{message:<40.50}</level> | "
                "<yellow>{extra}</yellow>"
            ),
        )


def _abort(exc: StartupError) -> SystemExit:
    logger.error("startup_failed", error=str(exc), kind=type(exc).__name__)
    return SystemExit(1)


def _load_config(config_file: Path) -> TaggerConfig:
    try:
        return load_config(config_file)
    except StartupError as exc:
        raise _abort(exc) from exc


ConfigOption = Annotated[
    Path,
    Parameter(
        name=("--config", "-c"),
        help="Directive file describing the image set and session directories",
    ),
]
FileLogLevelOption = Annotated[
    LogLevel,
    Parameter(name="--file-log-level", help="Log level for file (use 'OFF' to disable)"),
]
ConsoleLogLevelOption = Annotated[
    LogLevel,
    Parameter(name="--console-log-level", help="Log level for console (use 'OFF' to disable)"),
]
LogFolderOption = Annotated[
    Path,
    Parameter(name=("--log-folder",), help="Folder where log files are stored"),
]


@app.default
def session(
    config_file: ConfigOption = DEFAULT_CONFIG,
    *,
    file_log_level: FileLogLevelOption = "DEBUG",
    console_log_level: ConsoleLogLevelOption = "WARNING",
    log_folder: LogFolderOption = Path("logs"),
) -> None:
    """
    Start an interactive tagging session in the terminal.

    Startup fails (exit status 1) when the configuration, the tag file, the session or
    output directory, the images or the thumbnails (grid mode) are missing, or when an
    index backup from an interrupted session is still present.

    Examples:
        fast-tagger
        fast-tagger -c ./mirflickr.txt --console-log-level INFO

    """
    setup_logging(
        file_log_level=file_log_level,
        console_log_level=console_log_level,
        log_folder=log_folder,
    )
    logger.info("starting_fast_tagger", config=str(config_file), version=__version__)
    config = _load_config(config_file)
    try:
        tagging_session = Session.open(config)
    except StartupError as exc:
        raise _abort(exc) from exc
    run_console(tagging_session)


@app.command
def thumbs(
    config_file: ConfigOption = DEFAULT_CONFIG,
    *,
    size: Annotated[
        int | None,
        Parameter(
            name=("--size",),
            validator=validators.Number(gt=0),
            help=(
                "Thumbnail width and height in pixels (default: THUMB_SIZE); "
                "file names keep following THUMB_SUFFIX or THUMB_SIZE"
            ),
        ),
    ] = None,
    numbered_prefix: Annotated[
        str | None,
        Parameter(
            name=("--numbered-prefix",),
            help="Name thumbnails <prefix><n> by position instead of after the image",
        ),
    ] = None,
    file_log_level: FileLogLevelOption = "DEBUG",
    console_log_level: ConsoleLogLevelOption = "INFO",
    log_folder: LogFolderOption = Path("logs"),
) -> None:
    """
    Generate the fixed-size thumbnails used by grid mode.

    Exit status: returns 1 if the image set cannot be built or any thumbnail fails.

    Examples:
        fast-tagger thumbs
        fast-tagger thumbs -c ./mirflickr.txt --size 120

    """
    setup_logging(
        file_log_level=file_log_level,
        console_log_level=console_log_level,
        log_folder=log_folder,
    )
    config = _load_config(config_file)
    try:
        images = load_image_list(config)
        thumb_size = size or config.as_int("THUMB_SIZE")
        suffix = config.resolved_thumb_suffix
    except StartupError as exc:
        raise _abort(exc) from exc

    logger.info(
        "generating_thumbnails",
        images=len(images),
        thumbs_dir=config.thumbs_dir,
        size=thumb_size,
        suffix=suffix,
    )
    result = generate_thumbnails(
        images,
        Path(config.thumbs_dir),
        size=thumb_size,
        suffix=suffix,
        extension=config.thumb_extension,
        numbered_prefix=numbered_prefix,
    )
    if result.failed:
        logger.error("thumbnails_failed", files=result.failed)
        raise SystemExit(1)


@app.command(name="sort-index")
def sort_index(
    config_file: ConfigOption = DEFAULT_CONFIG,
    *,
    file_log_level: FileLogLevelOption = "DEBUG",
    console_log_level: ConsoleLogLevelOption = "INFO",
    log_folder: LogFolderOption = Path("logs"),
) -> None:
    """
    Rewrite every tag index file in ascending order without starting a session.

    Examples:
        fast-tagger sort-index -c ./mirflickr.txt

    """
    setup_logging(
        file_log_level=file_log_level,
        console_log_level=console_log_level,
        log_folder=log_folder,
    )
    config = _load_config(config_file)
    try:
        store = TagIndexStore.load(load_tags(config), config.out_path)
    except StartupError as exc:
        raise _abort(exc) from exc
    for path in store.flush_all_sorted():
        logger.info("index_file_sorted", file=str(path))


if __name__ == "__main__":
    app()
