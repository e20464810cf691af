"""Fixed-size thumbnail generation for grid mode."""

from dataclasses import dataclass
from pathlib import Path

import rawpy
from loguru import logger
from PIL import Image

from fast_tagger.catalog import thumbnail_path_for


NON_RAW_EXTENSIONS = {
    ".jpg",
    ".jpeg",
    ".png",
    ".webp",
    ".bmp",
    ".gif",
    ".jpe",
    ".jp2",
    ".tif",
    ".tiff",
    ".ppm",
    ".pgm",
    ".pbm",
}


@dataclass
class ThumbnailResult:
    written: list[Path]
    failed: list[str]


def open_image(image_path: Path) -> Image.Image:
    """Open an image with PIL, decoding RAW formats through rawpy first."""
    suffix = image_path.suffix.lower()
    if suffix not in NON_RAW_EXTENSIONS:
        try:
            with rawpy.imread(str(image_path)) as raw:  # type: ignore[no-untyped-call]
                rgb = raw.postprocess()
            return Image.fromarray(rgb)
        except Exception as exc:  # noqa: BLE001
            logger.warning("rawpy_failed_falling_back_to_pil", file=image_path.name, error=str(exc))
    return Image.open(image_path)


def make_thumbnail(image_path: Path, thumb_path: Path, size: int) -> None:
    """Resize ``image_path`` to exactly ``size`` x ``size`` and save it as ``thumb_path``."""
    with open_image(image_path) as img:
        resized = img.convert("RGB").resize((size, size), Image.Resampling.BICUBIC)
    resized.save(thumb_path)


def generate_thumbnails(
    images: list[str] | tuple[str, ...],
    thumbs_dir: Path,
    *,
    size: int,
    suffix: str,
    extension: str,
    numbered_prefix: str | None = None,
) -> ThumbnailResult:
    """
    Write one thumbnail per image.

    Args:
        images: Image paths in catalog order
        thumbs_dir: Output directory; created if missing
        size: Width and height of the thumbnails in pixels
        suffix: Appended to the image stem, e.g. ``_t160``
        extension: Output extension, which also selects the format
        numbered_prefix: If set, name thumbnails ``<prefix><n>.<extension>`` by catalog
            position instead of after the image

    Returns:
        The written thumbnails and the images that could not be converted.

    """
    thumbs_dir.mkdir(parents=True, exist_ok=True)
    result = ThumbnailResult(written=[], failed=[])
    total = len(images)
    for i, image in enumerate(images, start=1):
        if numbered_prefix is not None:
            thumb_path = thumbs_dir / f"{numbered_prefix}{i}.{extension.lstrip('.')}"
        else:
            thumb_path = thumbnail_path_for(image, thumbs_dir, suffix, extension)
        with logger.contextualize(file=Path(image).name, index=f"{i}/{total}"):
            try:
                make_thumbnail(Path(image), thumb_path, size)
            except (OSError, ValueError) as exc:
                logger.error("thumbnail_failed", error=str(exc))
                result.failed.append(image)
                continue
            logger.debug("thumbnail_written", target=str(thumb_path))
        result.written.append(thumb_path)

    logger.info(
        "thumbnails_summary",
        total=total,
        written=len(result.written),
        failed=len(result.failed),
    )
    return result
