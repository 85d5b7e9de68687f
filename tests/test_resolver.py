from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from vanceai_client.errors import ImageError, ValidationError
from vanceai_client.resolver import choose_scale, read_dimensions, resolve

SCALES = (2, 4, 6, 8)


def _image(tmp_path: Path, width: int, height: int, name: str = "source.png") -> Path:
    path = tmp_path / name
    Image.new("RGB", (width, height), (10, 20, 30)).save(path)
    return path


def test_read_dimensions(tmp_path: Path) -> None:
    assert read_dimensions(_image(tmp_path, 120, 80)) == (120, 80)


def test_resolve_picks_smallest_sufficient_scale(tmp_path: Path) -> None:
    path = _image(tmp_path, 100, 100)
    assert resolve(path, 150, 150) == 2
    assert resolve(path, 300, 300) == 4
    assert resolve(path, 500, 500) == 6
    assert resolve(path, 700, 700) == 8


def test_resolve_needs_only_one_dimension(tmp_path: Path) -> None:
    wide = _image(tmp_path, 400, 50)
    # width reaches 800 at 2x even though height stays far below target
    assert resolve(wide, 500, 5000) == 2


def test_width_is_compared_against_min_width(tmp_path: Path) -> None:
    tall = _image(tmp_path, 50, 400)
    # 50 * 2 = 100 < 500 and 400 * 2 = 800 < 1000; only 4x clears a target (1600 > 1000)
    assert resolve(tall, 500, 1000) == 4


def test_image_too_small_fails_with_validation_error(tmp_path: Path) -> None:
    path = _image(tmp_path, 100, 100)
    with pytest.raises(ValidationError, match="too small"):
        resolve(path, 10000, 10000)


def test_exact_target_is_not_enough(tmp_path: Path) -> None:
    path = _image(tmp_path, 100, 100)
    with pytest.raises(ValidationError):
        resolve(path, 800, 800)


def test_missing_file_is_an_image_error(tmp_path: Path) -> None:
    with pytest.raises(ImageError, match="not a valid file"):
        resolve(tmp_path / "missing.png", 10, 10)


def test_unreadable_image_is_an_image_error(tmp_path: Path) -> None:
    path = tmp_path / "notes.png"
    path.write_bytes(b"this is not an image")
    with pytest.raises(ImageError, match="Could not get image information"):
        resolve(path, 10, 10)


def test_oversized_image_is_an_image_error(tmp_path: Path) -> None:
    path = tmp_path / "huge.png"
    # 200M pixels, past Pillow's bomb limit but a small file on disk
    Image.new("1", (20000, 10000)).save(path)
    assert path.stat().st_size < 10 * 1024 * 1024

    with pytest.raises(ImageError, match="Could not get image information") as excinfo:
        resolve(path, 30000, 30000)
    assert isinstance(excinfo.value.__cause__, Image.DecompressionBombError)


def test_choose_scale_sorts_custom_sets() -> None:
    assert choose_scale(10, 10, 25, 25, (8, 3, 1)) == 3
    assert choose_scale(10, 10, 1000, 1000, (8, 3, 1)) is None


def test_choose_scale_only_returns_members_of_the_set() -> None:
    for width in (1, 7, 64, 333):
        for height in (1, 9, 128):
            for target in (0, 10, 100, 1000, 5000):
                scale = choose_scale(width, height, target, target, SCALES)
                assert scale is None or scale in SCALES


def test_choose_scale_is_monotonic_in_targets() -> None:
    width, height = 90, 140
    targets = list(range(0, 1300, 37))
    for target_w in targets:
        for target_h in targets:
            low = choose_scale(width, height, target_w, target_h, SCALES)
            high = choose_scale(width, height, target_w + 50, target_h + 50, SCALES)
            if high is not None:
                assert low is not None
                assert high >= low
