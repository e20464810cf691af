"""
A tagging session: the state owned by one run of the tool and the command handler.

The interface layer feeds :mod:`fast_tagger.commands` values into :meth:`Session.handle`
and renders the returned status lines and :meth:`Session.view`.
"""

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from fast_tagger import commands as cmd
from fast_tagger.catalog import ImageCatalog, build_catalog, build_subset
from fast_tagger.config import TaggerConfig
from fast_tagger.errors import OutOfRange, UnknownTag
from fast_tagger.index_store import TagIndexStore
from fast_tagger.navigation import Navigation
from fast_tagger.registry import TagRegistry, load_tags


MIN_DELAY_MS = 1000

SINGLE_HELP = (
    "- navigation",
    "n/P/<space>      : next image",
    "N/p              : previous image",
    "G                : goto (nearest) image (in subset)",
    "A                : toggle autoforward",
    "+                : increase autoforward speed",
    "-                : decrease autoforward speed",
    "q                : quit",
    "- tagging",
    "1-9 + extra keys : fast tagging",
    "T                : tag (for tag id's >9)",
    "d                : delete tag",
    "s                : show image tags",
)

GRID_HELP = (
    "- navigation",
    "n/P/<space>      : next display",
    "N/p              : previous display",
    "G                : goto (nearest) image (sets top left image of display)",
    "A                : toggle autoforward",
    "+                : increase autoforward speed",
    "-                : decrease autoforward speed",
    "q                : quit",
    "- tagging",
    "click            : image click toggles tag",
    "1-9 + extra keys : set active tag",
    "T                : set active tag (for tag id's >9)",
    "s                : show image tags",
)


@dataclass
class AutoAdvanceClock:
    """
    State of the auto-advance timer.

    The session only records state; the interface arms a timer whenever ``generation``
    changes while ``running`` is set, and feeds a :class:`~fast_tagger.commands.Tick`
    when it fires.
    """

    delay_ms: int
    running: bool = False
    generation: int = 0

    def start(self) -> None:
        self.running = True
        self.generation += 1

    def stop(self) -> None:
        self.running = False
        self.generation += 1


@dataclass
class Response:
    lines: list[str] = field(default_factory=list)
    redraw: bool = False
    finished: bool = False

    def say(self, line: str) -> None:
        self.lines.append(line)


@dataclass(frozen=True)
class Slot:
    image: int
    path: str
    thumbnail: str | None
    tagged: bool


@dataclass(frozen=True)
class View:
    title: str
    slots: list[Slot | None]
    active_tag: str | None = None


def column_lines(
    entries: list[str],
    data: list[str],
    n_columns: int,
    entry_width: int,
    column_width: int,
) -> list[str]:
    """
    Lay out ``entry: data`` pairs in ``n_columns`` columns.

    Examples:
        >>> column_lines(["1", "2", "3"], ["cat", "dog", "owl"], 2, 1, 3)
        ['1: cat  2: dog', '3: owl']

    """
    lines: list[str] = []
    n_lines = math.ceil(len(data) / n_columns) if n_columns else 0
    for line_i in range(n_lines):
        cells: list[str] = []
        for c in range(n_columns):
            i = n_columns * line_i + c
            if i < len(entries):
                cells.append(f"{entries[i]:<{entry_width}}: {data[i]:<{column_width}}  ")
            else:
                cells.append(f"{'':<{entry_width}}  {'':<{column_width}}  ")
        lines.append("".join(cells).rstrip())
    return lines


class Session:
    """Owns the registry, the index store, navigation and the auto-advance clock."""

    def __init__(
        self,
        config: TaggerConfig,
        registry: TagRegistry,
        store: TagIndexStore,
        catalog: ImageCatalog,
        navigation: Navigation,
    ) -> None:
        self.config = config
        self.registry = registry
        self.store = store
        self.catalog = catalog
        self.navigation = navigation
        self.clock = AutoAdvanceClock(delay_ms=config.as_int("DELAY", 3000))
        self.active_tag: int | None = registry.numbers()[0] if config.grid and registry else None
        self._handlers: dict[type, Callable[[Any, Response], None]] = {
            cmd.Next: self._next,
            cmd.Previous: self._previous,
            cmd.Goto: self._goto,
            cmd.TagKey: self._tag_key,
            cmd.TagNumber: self._tag_number,
            cmd.DeleteTag: self._delete_tag,
            cmd.ShowTags: self._show_tags,
            cmd.Help: self._help,
            cmd.ToggleAutoAdvance: self._toggle_auto_advance,
            cmd.AdjustDelay: self._adjust_delay,
            cmd.Tick: self._tick,
            cmd.ToggleSlot: self._toggle_slot,
            cmd.SelectActiveTag: self._select_active_tag,
            cmd.Quit: self._quit,
        }

    @classmethod
    def open(cls, config: TaggerConfig) -> "Session":
        """
        Run the startup sequence.

        The index store is opened right after the tag registry so that a stale backup
        stops the session before the catalog or position files are touched.
        """
        registry = load_tags(config)
        store = TagIndexStore.load(registry, config.out_path)
        catalog = build_catalog(config)
        subset = build_subset(config, catalog)
        navigation = Navigation.restore(
            subset,
            len(catalog),
            config.session_path / config.position_fname,
            page_size=config.page_size,
        )
        logger.info(
            "session_opened",
            images=len(catalog),
            subset=len(subset),
            mode="grid" if config.grid else "single",
            start=navigation.current_image,
        )
        return cls(config, registry, store, catalog, navigation)

    @property
    def grid(self) -> bool:
        return self.config.grid

    def summary(self) -> list[str]:
        return [
            f"Total set : {len(self.catalog)} images",
            f"Subset    : {len(self.navigation.subset)} images",
        ]

    def handle(self, command: cmd.Command) -> Response:
        """Apply one command and report what happened."""
        response = Response()
        handler = self._handlers[type(command)]
        logger.debug("command_received", command=repr(command))
        handler(command, response)
        if response.redraw:
            self.navigation.persist_position()
            response.say(f"- @image {self.navigation.current_image}")
        return response

    def view(self) -> View:
        """What the interface should display for the current position."""
        current = self.navigation.current_image
        title = f"{self.catalog.image(current)} ({current})"
        slots: list[Slot | None] = [
            Slot(
                image=image,
                path=self.catalog.image(image),
                thumbnail=self.catalog.thumbnail(image),
                tagged=self.active_tag is not None and self.store.has_tag(self.active_tag, image),
            )
            for image in self.navigation.page()
        ]
        slots.extend([None] * (self.navigation.page_size - len(slots)))
        active = self.registry.label(self.active_tag) if self.active_tag is not None else None
        return View(title=title, slots=slots, active_tag=active)

    # navigation

    def _next(self, _command: object, response: Response) -> None:
        if self.navigation.next():
            if self.clock.running:
                self.clock.start()
        else:
            response.say("- AT LAST IMAGE!!!!")
            if self.clock.running:
                self.clock.stop()
                response.say("- autoforward turned off")
        response.redraw = True

    def _previous(self, _command: object, response: Response) -> None:
        if not self.navigation.previous():
            response.say("- AT FIRST IMAGE!!!!")
        if self.clock.running:
            self.clock.start()
        response.redraw = True

    def _goto(self, command: cmd.Goto, response: Response) -> None:
        self._stop_clock(response)
        try:
            self.navigation.goto_nearest(int(command.target.strip()))
        except (ValueError, OutOfRange):
            response.say(f"- {command.target.strip()} is not a valid image number")
            logger.debug("goto_rejected", target=command.target)
        response.redraw = True

    def _tick(self, _command: cmd.Tick, response: Response) -> None:
        if not self.clock.running:
            return
        response.say(" (autoforward)")
        self._next(_command, response)

    # tagging

    def _add(self, tag: int, image: int, response: Response) -> None:
        if self.store.add_tag(tag, image):
            label = self.registry.label(tag)
            response.say(f"TAG ====> Updated tagfile for tag {tag} ({label}), image: {image}")
        else:
            response.say("- Note: tag already existed")

    def _delete(self, tag: int, image: int, response: Response) -> None:
        if self.store.delete_tag(tag, image):
            label = self.registry.label(tag)
            response.say(f"DELETED TAG ====> Updated tagfile for tag {tag}: {label}")
        else:
            response.say("- Note: tag did not exist")

    def _set_active(self, tag: int, response: Response) -> None:
        label = self.registry.label(tag)
        if tag == self.active_tag:
            response.say(f"- Active tag is already set to tag {tag}: {label}")
            return
        self.active_tag = tag
        response.say(f"NEW ACTIVE TAG ====> Updated active to tag {tag}: {label}")
        response.redraw = True

    def _tag_key(self, command: cmd.TagKey, response: Response) -> None:
        binding = self.registry.binding(command.key)
        if binding is None:
            response.say(f"- {command.key} is not a command or tag key; press h for help")
            return

        if self.grid:
            if len(binding.tags) > 1:
                response.say(
                    f"- Key {command.key} is bound to several tags; use T to choose the active tag",
                )
                return
            self._set_active(binding.tags[0], response)
            return

        image = self.navigation.current_image
        for tag in binding.tags:
            self._add(tag, image, response)
        if binding.auto_advance:
            self._next(command, response)

    def _tag_number(self, command: cmd.TagNumber, response: Response) -> None:
        was_running = self._pause_clock()
        text = command.text.strip()
        number = int(text) if text.isdigit() else None
        if number is None or number not in self.registry:
            response.say("- Not a valid tag number")
        elif self.grid:
            self._set_active(number, response)
        else:
            self._add(number, self.navigation.current_image, response)
        if was_running:
            self.clock.start()

    def _delete_tag(self, command: cmd.DeleteTag, response: Response) -> None:
        if self.grid:
            response.say("- No delete command in grid mode. Re-click image to delete tag")
            return
        was_running = self._pause_clock()
        try:
            tag = self.registry.resolve(command.text)
        except UnknownTag as exc:
            response.say(f"- {exc}")
        else:
            self._delete(tag, self.navigation.current_image, response)
        if was_running:
            self.clock.start()

    def _toggle_slot(self, command: cmd.ToggleSlot, response: Response) -> None:
        position = self.navigation.offset + command.slot
        if not self.grid or self.active_tag is None or position >= len(self.navigation.subset):
            return
        image = self.navigation.subset[position]
        if command.checked:
            response.say(" <add-click>")
            self._add(self.active_tag, image, response)
        else:
            response.say(" <delete-click>")
            self._delete(self.active_tag, image, response)

    def _select_active_tag(self, command: cmd.SelectActiveTag, response: Response) -> None:
        if command.number not in self.registry:
            response.say("- Not a valid tag number")
            return
        self._set_active(command.number, response)

    def _show_tags(self, _command: cmd.ShowTags, response: Response) -> None:
        image = self.navigation.current_image
        response.say(f"- @image {image}")
        tags = self.store.tags_for_image(image)
        for tag in tags:
            response.say(f"- {self.registry.label(tag)}")
        if not tags:
            response.say("- no tags yet")

    # auto-advance

    def _pause_clock(self) -> bool:
        was_running = self.clock.running
        if was_running:
            self.clock.stop()
        return was_running

    def _stop_clock(self, response: Response) -> None:
        if self._pause_clock():
            response.say("- autoforward turned off")

    def _toggle_auto_advance(self, _command: cmd.ToggleAutoAdvance, response: Response) -> None:
        if self.clock.running:
            self.clock.stop()
            response.say("- autoforward turned off")
        else:
            self.clock.start()
            response.say("- autoforward turned on")

    def _adjust_delay(self, command: cmd.AdjustDelay, response: Response) -> None:
        was_running = self._pause_clock()
        self.clock.delay_ms = max(MIN_DELAY_MS, self.clock.delay_ms + command.step_ms)
        response.say(f"- new autoforward delay: {self.clock.delay_ms / 1000:g} sec")
        if was_running:
            self.clock.start()

    # help and shutdown

    def _help(self, _command: cmd.Help, response: Response) -> None:
        n_columns = self.config.as_int("N_TAG_COLUMNS", 3)
        column_width = self.config.as_int("COLUMN_WIDTH", 16)

        numbers = self.registry.numbers()
        response.say("- tags")
        response.lines.extend(
            column_lines(
                [str(n) for n in numbers],
                [self.registry.label(n) for n in numbers],
                n_columns,
                len(str(max(numbers))) if numbers else 1,
                column_width,
            ),
        )

        response.lines.extend(GRID_HELP if self.grid else SINGLE_HELP)

        keys: list[str] = []
        bound_labels: list[str] = []
        for key in sorted(self.registry.key_bindings):
            if key.isdigit():
                continue
            binding = self.registry.binding(key)
            if binding is None:
                continue
            labels = [self.registry.label(tag) for tag in binding.tags]
            if self.grid:
                # Only an unambiguous key selects a tag in grid mode.
                labels = labels[:1] + [f"({label})" for label in labels[1:]]
            keys.append(key)
            bound_labels.append(" ".join(labels))
        response.say("- extra keys")
        response.lines.extend(
            column_lines(
                keys,
                bound_labels,
                n_columns,
                1,
                max([column_width, *(len(s) for s in bound_labels)]),
            ),
        )

    def _quit(self, _command: cmd.Quit, response: Response) -> None:
        self._stop_clock(response)
        for path in self.store.flush_all_sorted():
            response.say(f"{path} - sorted, ok.")
        logger.info("session_closed", image=self.navigation.current_image)
        response.finished = True
