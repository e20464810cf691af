"""Image catalog and session subset construction."""

import re
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from fast_tagger.config import TaggerConfig
from fast_tagger.errors import (
    EmptyCatalog,
    InvalidSubset,
    MissingDirectory,
    MissingSubsetFile,
    MissingThumbnails,
)


_DIGITS_RE = re.compile(r"(\d+)")


@dataclass(frozen=True)
class ImageCatalog:
    """Ordered image paths, 1-indexed, with index-aligned thumbnails in grid mode."""

    images: tuple[str, ...]
    thumbnails: tuple[str, ...] | None = None

    def __len__(self) -> int:
        return len(self.images)

    def image(self, image_id: int) -> str:
        return self.images[image_id - 1]

    def thumbnail(self, image_id: int) -> str | None:
        if self.thumbnails is None:
            return None
        return self.thumbnails[image_id - 1]


def natural_sort_key(path: str) -> list[int | str]:
    """
    Sort key that orders embedded numbers numerically.

    Examples:
        >>> sorted(["im10.jpg", "im9.jpg", "IM1.jpg"], key=natural_sort_key)
        ['IM1.jpg', 'im9.jpg', 'im10.jpg']

    """
    parts: list[int | str] = []
    for part in _DIGITS_RE.split(path):
        if part.isdigit():
            parts.append(int(part))
        else:
            parts.append(part.lower())
    return parts


def thumbnail_path_for(image_path: str, thumbs_dir: Path, suffix: str, extension: str) -> Path:
    """
    Derive the thumbnail file for an image.

    Examples:
        >>> thumbnail_path_for("/data/im12.jpg", Path("/t"), "_t160", "jpg").as_posix()
        '/t/im12_t160.jpg'

    """
    stem = Path(image_path).stem
    return thumbs_dir / f"{stem}{suffix}.{extension.lstrip('.')}"


def _read_lines(path: Path) -> list[str]:
    return [line.strip() for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def scan_images(image_dir: Path, extension: str) -> list[str]:
    """List ``image_dir/*.extension`` in natural order."""
    pattern = f"*.{extension.lstrip('.')}"
    found = [str(p) for p in image_dir.glob(pattern) if p.is_file()]
    return sorted(found, key=natural_sort_key)


def load_image_list(config: TaggerConfig) -> list[str]:
    """
    Return the image list of the session, creating the list file on first use.

    The list file pins the numbering of images: once written, identifiers stay stable
    even when files are later added to the image directory.
    """
    if not config.session_path.is_dir():
        raise MissingDirectory("Session", config.session_path)
    list_file = config.session_path / config.im_list_fname
    if list_file.exists():
        images = _read_lines(list_file)
        logger.debug("image_list_read", file=str(list_file), count=len(images))
    else:
        images = scan_images(Path(config.im_dir), config.extension)
        if images:
            list_file.write_text("".join(f"{im}\n" for im in images), encoding="utf-8")
            logger.info("image_list_written", file=str(list_file), count=len(images))

    if not images:
        msg = f"No images found in {list_file} or {config.im_dir}/*.{config.extension}"
        raise EmptyCatalog(msg)
    return images


def build_catalog(config: TaggerConfig) -> ImageCatalog:
    """Build the catalog; in grid mode also resolve and spot-check the thumbnails."""
    images = load_image_list(config)
    if not config.grid:
        logger.info("image_set_ok", images=len(images))
        return ImageCatalog(images=tuple(images))

    thumbs_dir = Path(config.thumbs_dir)
    suffix = config.resolved_thumb_suffix
    thumbnails = [
        thumbnail_path_for(im, thumbs_dir, suffix, config.thumb_extension) for im in images
    ]
    # Checking every thumbnail is too slow for large sets; first and last will do.
    for probe in (thumbnails[0], thumbnails[-1]):
        if not probe.exists():
            raise MissingThumbnails(probe)

    logger.info("image_set_ok", images=len(images), thumbnails_dir=str(thumbs_dir))
    return ImageCatalog(images=tuple(images), thumbnails=tuple(str(t) for t in thumbnails))


def build_subset(config: TaggerConfig, catalog: ImageCatalog) -> tuple[int, ...]:
    """
    Return the identifiers exposed in this session, in the order given.

    Without a subset file this is every image, ``1..N``.
    """
    if not config.subset_fname:
        return tuple(range(1, len(catalog) + 1))

    subset_file = config.out_path / config.subset_fname
    if not subset_file.is_file():
        raise MissingSubsetFile(subset_file)

    subset: list[int] = []
    for line in _read_lines(subset_file):
        try:
            image_id = int(line)
        except ValueError as exc:
            msg = f"{subset_file}: {line!r} is not an image number"
            raise InvalidSubset(msg) from exc
        if not 1 <= image_id <= len(catalog):
            msg = f"{subset_file}: image {image_id} is outside 1-{len(catalog)}"
            raise InvalidSubset(msg)
        subset.append(image_id)

    if not subset:
        msg = f"{subset_file} lists no images"
        raise InvalidSubset(msg)

    logger.info("subset_loaded", file=str(subset_file), count=len(subset))
    return tuple(subset)
