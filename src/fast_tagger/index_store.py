"""
Per-tag index files.

Every tag owns ``OUT_DIR/<label>.txt``, one image number per line. Adding a tag appends a
line; deleting one rewrites the file from memory. A rewrite always goes through a backup
copy (``OUT_DIR/.<label>.bak``) that is removed once the new file is complete, so a
backup found at startup means the previous session died half-way through a rewrite.
"""

import os
import shutil
from pathlib import Path

from loguru import logger

from fast_tagger.errors import InvalidIndexFile, MissingDirectory, StaleBackupPresent, UnknownTag
from fast_tagger.registry import TagRegistry


INDEX_EXTENSION = ".txt"
BACKUP_EXTENSION = ".bak"


def index_path_for(out_dir: Path, label: str) -> Path:
    return out_dir / f"{label}{INDEX_EXTENSION}"


def backup_path_for(out_dir: Path, label: str) -> Path:
    return out_dir / f".{label}{BACKUP_EXTENSION}"


def read_index_file(path: Path) -> tuple[set[int], bool]:
    """
    Read an index file.

    Returns:
        Tuple of (image numbers, whether the file was in ascending order).

    """
    images: set[int] = set()
    in_order = True
    previous = 0
    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        try:
            image = int(stripped)
        except ValueError as exc:
            msg = f"{path}: {stripped!r} is not an image number"
            raise InvalidIndexFile(msg) from exc
        if image < previous:
            in_order = False
        previous = image
        images.add(image)
    return images, in_order


def _ends_with_newline(path: Path) -> bool:
    """True for an empty or missing file, or one whose last byte is a newline."""
    if not path.exists() or path.stat().st_size == 0:
        return True
    with path.open("rb") as fh:
        fh.seek(-1, os.SEEK_END)
        return fh.read(1) == b"\n"


def render_index(images: set[int] | frozenset[int]) -> str:
    """
    Serialize image numbers in ascending order, one per line.

    Examples:
        >>> render_index({9, 1, 5})
        '1\\n5\\n9\\n'

    """
    return "".join(f"{image}\n" for image in sorted(images))


class TagIndexStore:
    """In-memory mirror of the index files, written through on every change."""

    def __init__(self, registry: TagRegistry, out_dir: Path) -> None:
        self.registry = registry
        self.out_dir = out_dir
        self._images_for: dict[int, set[int]] = {number: set() for number in registry.tags}

    @classmethod
    def load(cls, registry: TagRegistry, out_dir: Path) -> "TagIndexStore":
        """
        Open the index files of all registered tags.

        Raises:
            MissingDirectory: ``out_dir`` does not exist.
            StaleBackupPresent: a backup from an interrupted rewrite is still around.
            InvalidIndexFile: an index file holds something other than image numbers.

        """
        if not out_dir.is_dir():
            raise MissingDirectory("Output", out_dir)

        store = cls(registry, out_dir)
        # Refuse to start before touching any file if a previous rewrite was interrupted.
        for number in registry.numbers():
            backup = store.backup_path(number)
            if backup.exists():
                raise StaleBackupPresent(backup)

        for number in registry.numbers():
            index_file = store.index_path(number)
            if not index_file.exists():
                index_file.touch()
                logger.debug("index_file_created", file=str(index_file))
                continue
            images, in_order = read_index_file(index_file)
            store._images_for[number] = images
            if not in_order:
                logger.warning(
                    "index_file_unsorted",
                    file=str(index_file),
                    hint="will be sorted at the end of the session",
                )
        logger.info(
            "index_loaded",
            out_dir=str(out_dir),
            tags=len(registry),
            tagged=sum(len(images) for images in store._images_for.values()),
        )
        return store

    def index_path(self, tag: int) -> Path:
        return index_path_for(self.out_dir, self.registry.label(tag))

    def backup_path(self, tag: int) -> Path:
        return backup_path_for(self.out_dir, self.registry.label(tag))

    def _images(self, tag: int) -> set[int]:
        try:
            return self._images_for[tag]
        except KeyError as exc:
            raise UnknownTag(tag) from exc

    def add_tag(self, tag: int, image: int) -> bool:
        """Tag ``image``; returns False when it already carried the tag."""
        images = self._images(tag)
        if image in images:
            return False
        images.add(image)
        index_file = self.index_path(tag)
        separator = "" if _ends_with_newline(index_file) else "\n"
        with index_file.open("a", encoding="utf-8") as fh:
            fh.write(f"{separator}{image}\n")
        logger.info("tag_added", tag=tag, label=self.registry.label(tag), image=image)
        return True

    def delete_tag(self, tag: int, image: int) -> bool:
        """Untag ``image``; returns False when it did not carry the tag."""
        images = self._images(tag)
        if image not in images:
            return False
        images.discard(image)
        self._rewrite(tag)
        logger.info("tag_deleted", tag=tag, label=self.registry.label(tag), image=image)
        return True

    def _rewrite(self, tag: int) -> Path:
        index_file = self.index_path(tag)
        backup = self.backup_path(tag)
        if index_file.exists():
            shutil.copyfile(index_file, backup)
        index_file.write_text(render_index(self._images_for[tag]), encoding="utf-8")
        backup.unlink(missing_ok=True)
        return index_file

    def flush_all_sorted(self) -> list[Path]:
        """Rewrite every index file in ascending order; called at the end of a session."""
        written = [self._rewrite(tag) for tag in self.registry.numbers()]
        logger.info("index_files_sorted", count=len(written))
        return written

    def images_for_tag(self, tag: int) -> frozenset[int]:
        return frozenset(self._images(tag))

    def tags_for_image(self, image: int) -> list[int]:
        return [tag for tag in sorted(self._images_for) if image in self._images_for[tag]]

    def has_tag(self, tag: int, image: int) -> bool:
        return image in self._images(tag)
