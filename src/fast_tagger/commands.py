"""
Logical commands understood by a tagging session.

The interface layer decodes key presses and clicks into one of these values once;
the session never sees raw key names.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Next:
    pass


@dataclass(frozen=True)
class Previous:
    pass


@dataclass(frozen=True)
class Goto:
    target: str


@dataclass(frozen=True)
class TagKey:
    key: str


@dataclass(frozen=True)
class TagNumber:
    text: str


@dataclass(frozen=True)
class DeleteTag:
    text: str


@dataclass(frozen=True)
class ShowTags:
    pass


@dataclass(frozen=True)
class Help:
    pass


@dataclass(frozen=True)
class ToggleAutoAdvance:
    pass


@dataclass(frozen=True)
class AdjustDelay:
    step_ms: int


@dataclass(frozen=True)
class Tick:
    """Fired by the interface when the auto-advance timer expires."""


@dataclass(frozen=True)
class ToggleSlot:
    """Grid click on slot ``slot`` (0-based, row-major); ``checked`` is the new state."""

    slot: int
    checked: bool


@dataclass(frozen=True)
class SelectActiveTag:
    number: int


@dataclass(frozen=True)
class Quit:
    pass


Command = (
    Next
    | Previous
    | Goto
    | TagKey
    | TagNumber
    | DeleteTag
    | ShowTags
    | Help
    | ToggleAutoAdvance
    | AdjustDelay
    | Tick
    | ToggleSlot
    | SelectActiveTag
    | Quit
)

DELAY_STEP_MS = 1000

# Keys with a fixed meaning. Commands that need an argument (goto, tag number, delete)
# get it from the interface layer.
COMMAND_KEYS: dict[str, str] = {
    "n": "next",
    "P": "next",
    " ": "next",
    "p": "previous",
    "N": "previous",
    "q": "quit",
    "G": "goto",
    "h": "help",
    "s": "show_tags",
    "T": "tag_number",
    "d": "delete_tag",
    "A": "toggle_autoadvance",
    "+": "delay_down",
    "=": "delay_down",
    "-": "delay_up",
    "_": "delay_up",
}


def command_for_key(key: str, argument: str = "") -> Command | None:
    """
    Translate a reserved command key into a command, or None for any other key.

    Examples:
        >>> command_for_key("n")
        Next()
        >>> command_for_key("G", "42")
        Goto(target='42')
        >>> command_for_key("x") is None
        True

    """
    simple: dict[str, Command] = {
        "next": Next(),
        "previous": Previous(),
        "quit": Quit(),
        "help": Help(),
        "show_tags": ShowTags(),
        "toggle_autoadvance": ToggleAutoAdvance(),
        "delay_down": AdjustDelay(-DELAY_STEP_MS),
        "delay_up": AdjustDelay(DELAY_STEP_MS),
    }
    name = COMMAND_KEYS.get(key)
    if name is None:
        return None
    if name == "goto":
        return Goto(argument)
    if name == "tag_number":
        return TagNumber(argument)
    if name == "delete_tag":
        return DeleteTag(argument)
    return simple[name]
