"""
Exception hierarchy for fast-tagger.

Startup errors abort the session before the operator sees anything: later components
assume the preconditions they guard. Interactive errors are reported as status text and
leave the session state untouched.
"""

from pathlib import Path


class TaggerError(Exception):
    """Base class for all fast-tagger errors."""


class StartupError(TaggerError):
    """Fatal error raised while a session is being set up."""


class InteractiveError(TaggerError):
    """Recoverable error raised while handling an operator command."""


class ConfigFileMissing(StartupError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"Configuration file {path} does not exist")
        self.path = path


class UnrecognizedDirective(StartupError):
    def __init__(self, directive: str, line_number: int, path: Path) -> None:
        super().__init__(f"Unrecognized directive {directive} on line {line_number} of {path}")
        self.directive = directive
        self.line_number = line_number
        self.path = path


class InvalidOption(StartupError):
    def __init__(self, name: str, value: str) -> None:
        super().__init__(f"Option {name} must be an integer, got {value!r}")
        self.name = name
        self.value = value


class MissingDirectory(StartupError):
    def __init__(self, name: str, path: Path) -> None:
        super().__init__(f"{name} directory {path} does not exist")
        self.name = name
        self.path = path


class EmptyCatalog(StartupError):
    """No images were found in the list file or the image directory."""


class MissingThumbnails(StartupError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"Thumbnail {path} does not exist; generate thumbnails first")
        self.path = path


class MissingSubsetFile(StartupError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"Subset file {path} does not exist")
        self.path = path


class InvalidSubset(StartupError):
    """The subset file lists something other than valid catalog identifiers."""


class TagFileMissing(StartupError):
    def __init__(self, path: Path) -> None:
        super().__init__(
            f"No tag definition file {path}; create one or change the session directory",
        )
        self.path = path


class InvalidTagFile(StartupError):
    """Malformed line in the tag definition file."""


class ReservedKeyConflict(InvalidTagFile):
    def __init__(self, key: str, tag: int) -> None:
        super().__init__(f"Key {key!r} of tag {tag} is already in use as a command")
        self.key = key
        self.tag = tag


class DigitKeyNotAllowed(InvalidTagFile):
    def __init__(self, key: str, tag: int) -> None:
        super().__init__(f"Do not use digits in the key string of tag {tag} (found {key!r})")
        self.key = key
        self.tag = tag


class DuplicateTagId(InvalidTagFile):
    def __init__(self, tag: int) -> None:
        super().__init__(f"Tag number {tag} is not unique")
        self.tag = tag


class DuplicateTagLabel(InvalidTagFile):
    def __init__(self, label: str) -> None:
        super().__init__(f"Tag label {label!r} is not unique")
        self.label = label


class InvalidIndexFile(StartupError):
    """A tag index file contains a line that is not an image identifier."""


class StaleBackupPresent(StartupError):
    def __init__(self, path: Path) -> None:
        super().__init__(
            f"In a previous session {path} was left behind; please resolve it manually first",
        )
        self.path = path


class OutOfRange(InteractiveError):
    def __init__(self, image: int, catalog_size: int) -> None:
        super().__init__(f"{image} is not a valid image number (1-{catalog_size})")
        self.image = image
        self.catalog_size = catalog_size


class UnknownTag(InteractiveError):
    def __init__(self, tag: object) -> None:
        super().__init__(f"{tag} is not a valid tag")
        self.tag = tag
