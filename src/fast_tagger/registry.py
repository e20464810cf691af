"""
Tag definitions and their key bindings.

Each non-blank line of the tag file reads ``tagId[marker] label [keys]``::

    1*  cat     c*
    2   dog     dD*
    12  bird    b

Tags 1-9 are also bound to their own digit. The auto-advance marker (``AUTONEXT_CHAR``)
after the tag id makes its digit key advance to the next image after tagging; after a
key in the key string it does the same for that key.
"""

from dataclasses import dataclass, field

from loguru import logger

from fast_tagger.commands import COMMAND_KEYS
from fast_tagger.config import TaggerConfig
from fast_tagger.errors import (
    DigitKeyNotAllowed,
    DuplicateTagId,
    DuplicateTagLabel,
    InvalidTagFile,
    MissingDirectory,
    ReservedKeyConflict,
    TagFileMissing,
    UnknownTag,
)


AUTO_ADVANCE = 0
MAX_DIGIT_TAG = 9


@dataclass(frozen=True)
class Tag:
    number: int
    label: str
    auto_advance: bool = False


@dataclass(frozen=True)
class KeyBinding:
    """Tags triggered by one key, in ascending order, and whether it advances after."""

    tags: tuple[int, ...]
    auto_advance: bool


@dataclass
class TagRegistry:
    tags: dict[int, Tag] = field(default_factory=dict)
    numbers_by_label: dict[str, int] = field(default_factory=dict)
    key_bindings: dict[str, frozenset[int]] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.tags)

    def __contains__(self, number: object) -> bool:
        return number in self.tags

    def numbers(self) -> list[int]:
        return sorted(self.tags)

    def label(self, number: int) -> str:
        try:
            return self.tags[number].label
        except KeyError as exc:
            raise UnknownTag(number) from exc

    def resolve(self, text: str) -> int:
        """
        Find a tag by number or by label.

        Examples:
            >>> reg = TagRegistry()
            >>> reg.add(Tag(3, "cat"))
            >>> reg.resolve("3"), reg.resolve("cat")
            (3, 3)

        """
        text = text.strip()
        if text.isdigit():
            number = int(text)
            if number in self.tags:
                return number
        elif text in self.numbers_by_label:
            return self.numbers_by_label[text]
        raise UnknownTag(text or "''")

    def binding(self, key: str) -> KeyBinding | None:
        bound = self.key_bindings.get(key)
        if bound is None:
            return None
        return KeyBinding(
            tags=tuple(sorted(n for n in bound if n != AUTO_ADVANCE)),
            auto_advance=AUTO_ADVANCE in bound,
        )

    def add(self, tag: Tag) -> None:
        if tag.number in self.tags:
            raise DuplicateTagId(tag.number)
        if tag.label in self.numbers_by_label:
            raise DuplicateTagLabel(tag.label)
        self.tags[tag.number] = tag
        self.numbers_by_label[tag.label] = tag.number

    def bind(self, key: str, number: int, *, auto_advance: bool = False) -> None:
        bound = set(self.key_bindings.get(key, frozenset()))
        bound.add(number)
        if auto_advance:
            bound.add(AUTO_ADVANCE)
        self.key_bindings[key] = frozenset(bound)


def _parse_tag_number(raw: str, marker: str, line_number: int) -> tuple[int, bool]:
    auto_advance = bool(marker) and raw.endswith(marker)
    if auto_advance:
        raw = raw[: -len(marker)]
    if not raw.isdigit() or int(raw) == 0:
        msg = (
            f"Line {line_number}: {raw!r} is not a positive tag number. "
            'Use "tag# tag_string key_string"'
        )
        raise InvalidTagFile(msg)
    return int(raw), auto_advance


def _bind_key_string(registry: TagRegistry, number: int, keys: str, marker: str) -> None:
    i = 0
    while i < len(keys):
        key = keys[i]
        if key == marker:
            msg = f"Do not put {marker} first in the key string of tag {number}"
            raise InvalidTagFile(msg)
        if key in COMMAND_KEYS:
            raise ReservedKeyConflict(key, number)
        if key.isdigit():
            raise DigitKeyNotAllowed(key, number)
        advance = bool(marker) and keys[i + 1 : i + 1 + len(marker)] == marker
        registry.bind(key, number, auto_advance=advance)
        i += 1 + (len(marker) if advance else 0)


def parse_tags(lines: list[str], marker: str) -> TagRegistry:
    """Build a registry from tag file lines."""
    registry = TagRegistry()
    for line_number, line in enumerate(lines, start=1):
        fields = line.split()
        if not fields:
            continue
        if len(fields) < 2:  # noqa: PLR2004
            msg = f'Line {line_number}: expected "tag# tag_string key_string", got {line!r}'
            raise InvalidTagFile(msg)

        number, auto_advance = _parse_tag_number(fields[0], marker, line_number)
        registry.add(Tag(number=number, label=fields[1], auto_advance=auto_advance))
        if number <= MAX_DIGIT_TAG:
            registry.bind(str(number), number, auto_advance=auto_advance)
        if len(fields) > 2:  # noqa: PLR2004
            _bind_key_string(registry, number, fields[2], marker)

    if not registry.tags:
        msg = "The tag file defines no tags"
        raise InvalidTagFile(msg)
    logger.debug("tags_parsed", tags=len(registry), keys=len(registry.key_bindings))
    return registry


def load_tags(config: TaggerConfig) -> TagRegistry:
    """Load the tag definitions of the session directory."""
    session_dir = config.session_path
    if not session_dir.is_dir():
        raise MissingDirectory("Session", session_dir)
    tags_file = session_dir / config.tags_fname
    if not tags_file.is_file():
        raise TagFileMissing(tags_file)

    registry = parse_tags(tags_file.read_text(encoding="utf-8").splitlines(), config.autonext_char)

    if config.grid:
        for key, bound in registry.key_bindings.items():
            if len(bound - {AUTO_ADVANCE}) > 1:
                logger.warning("key_ambiguous_in_grid_mode", key=key, tags=sorted(bound))
    logger.info("tags_loaded", file=str(tags_file), tags=len(registry))
    return registry
