from __future__ import annotations

from pathlib import Path

from .config import MAX_UNIQUE_SIZES
from .detection import iter_svg_files
from .document import read_svg_size
from .errors import InvalidInput
from .models import FolderSizeInfo, SvgSize

INVALID_FOLDER = "Invalid folder path."


def _require_dir(path: Path) -> None:
    if not path.is_dir():
        raise InvalidInput(INVALID_FOLDER)


def count_svg_files(dir_path: Path) -> int:
    _require_dir(dir_path)
    return sum(1 for _ in iter_svg_files(dir_path))


def scan_folder_sizes(dir_path: Path, *, max_unique: int = MAX_UNIQUE_SIZES) -> FolderSizeInfo:
    """Summarise the sizes of the SVGs below *dir_path* for a UI preview.

    Sizes stop being parsed once a mismatch with the first size is seen, or
    once *max_unique* distinct sizes are known; files are still counted.
    """

    _require_dir(dir_path)
    total = 0
    all_same = True
    base_size: SvgSize | None = None
    unique_sizes: list[SvgSize] = []
    keep_parsing = True

    for svg_path in iter_svg_files(dir_path):
        total += 1
        if not keep_parsing:
            continue

        size = read_svg_size(svg_path)
        if base_size is None:
            base_size = size
        elif size != base_size:
            all_same = False
            if size not in unique_sizes:
                unique_sizes.append(size)
            keep_parsing = False
            continue

        if size not in unique_sizes:
            unique_sizes.append(size)
            if len(unique_sizes) >= max_unique and len(unique_sizes) > 1:
                all_same = False
                keep_parsing = False

    if all_same and base_size is not None and not unique_sizes:
        unique_sizes.append(base_size)

    return FolderSizeInfo(
        total=total,
        all_same=all_same,
        base_size=base_size,
        unique_sizes=unique_sizes,
    )


__all__ = ["INVALID_FOLDER", "count_svg_files", "scan_folder_sizes"]
