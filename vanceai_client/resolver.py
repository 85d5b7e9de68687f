"""Pick the smallest enlarge scale that reaches a target size."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from PIL import Image, UnidentifiedImageError

from .errors import ImageError, ValidationError
from .settings import DEFAULT_ENLARGE_SCALES


def read_dimensions(file_path: Path | str) -> tuple[int, int]:
    path = Path(file_path)
    if not path.is_file():
        raise ImageError(f"{path} is not a valid file", path=path)
    try:
        with Image.open(path) as image:
            width, height = image.size
    except (OSError, UnidentifiedImageError) as exc:
        raise ImageError(f"Could not get image information from {path}", path=path) from exc
    except Image.DecompressionBombError as exc:
        raise ImageError(f"Could not get image information from {path}: {exc}", path=path) from exc
    if not width or not height:
        raise ImageError(f"Could not get image information from {path}", path=path)
    return int(width), int(height)


def choose_scale(
    width: int,
    height: int,
    min_width: int,
    min_height: int,
    scales: Iterable[int] = DEFAULT_ENLARGE_SCALES,
) -> int | None:
    """First scale where either scaled side exceeds its target; None if none do."""
    for scale in sorted(scales):
        if width * scale > min_width or height * scale > min_height:
            return scale
    return None


def resolve(
    file_path: Path | str,
    min_width: int,
    min_height: int,
    scales: Iterable[int] = DEFAULT_ENLARGE_SCALES,
) -> int:
    width, height = read_dimensions(file_path)
    scale = choose_scale(width, height, min_width, min_height, scales)
    if scale is None:
        raise ValidationError(
            f"{file_path} is too small. Max scale could not reach desired width/height",
            path=str(file_path),
            width=width,
            height=height,
        )
    return scale
