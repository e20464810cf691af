"""Position of the session within its subset, and its persistence."""

from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from fast_tagger.errors import OutOfRange


class Navigation:
    """
    Current image and its offset in the subset.

    In grid mode ``page_size`` is the number of thumbnails per page and the current image
    is the top-left one.
    """

    def __init__(
        self,
        subset: Sequence[int],
        catalog_size: int,
        *,
        page_size: int = 1,
        position_file: Path | None = None,
    ) -> None:
        if not subset:
            msg = "subset must not be empty"
            raise ValueError(msg)
        self.subset = tuple(subset)
        self.catalog_size = catalog_size
        self.page_size = max(1, page_size)
        self.position_file = position_file
        self.offset = 0

    @classmethod
    def restore(
        cls,
        subset: Sequence[int],
        catalog_size: int,
        position_file: Path,
        *,
        page_size: int = 1,
    ) -> "Navigation":
        """Resume from ``position_file``, or start at the first image and create it."""
        nav = cls(subset, catalog_size, page_size=page_size, position_file=position_file)
        if not position_file.exists():
            nav.persist_position()
            logger.debug("position_file_created", file=str(position_file))
            return nav

        raw = position_file.read_text(encoding="utf-8").strip()
        try:
            nav.goto_nearest(int(raw))
        except (ValueError, OutOfRange):
            logger.warning("position_file_ignored", file=str(position_file), content=raw)
        logger.info("position_restored", image=nav.current_image, offset=nav.offset)
        return nav

    @property
    def current_image(self) -> int:
        return self.subset[self.offset]

    @property
    def at_first(self) -> bool:
        return self.offset == 0

    @property
    def at_last(self) -> bool:
        return self.offset >= len(self.subset) - self.page_size

    def next(self) -> bool:
        """Advance one image or one page; returns False at the end of the subset."""
        if self.at_last:
            return False
        self.offset += self.page_size
        return True

    def previous(self) -> bool:
        """Go back one image or one page; returns False at the start of the subset."""
        if self.at_first:
            return False
        self.offset = max(0, self.offset - self.page_size)
        return True

    def nearest(self, image: int) -> int:
        """
        Subset member closest to ``image``; ties go to the earlier member.

        Examples:
            >>> Navigation([3, 7, 9, 15, 20], 20).nearest(10)
            9

        """
        return min(self.subset, key=lambda member: abs(member - image))

    def goto_nearest(self, image: int) -> int:
        """Jump to the subset member nearest to ``image`` and return it."""
        if not 1 <= image <= self.catalog_size:
            raise OutOfRange(image, self.catalog_size)
        resolved = self.nearest(image)
        self.offset = self.subset.index(resolved)
        return resolved

    def page(self) -> list[int]:
        """Images visible from the current offset."""
        return list(self.subset[self.offset : self.offset + self.page_size])

    def persist_position(self) -> None:
        if self.position_file is None:
            return
        self.position_file.write_text(f"{self.current_image}\n", encoding="utf-8")
