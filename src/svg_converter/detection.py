from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

SVG_EXTENSION = ".svg"


def is_svg(path: Path) -> bool:
    return path.suffix.lower() == SVG_EXTENSION


def is_svg_file(path: Path) -> bool:
    return is_svg(path) and path.is_file()


def iter_svg_files(root: Path) -> Iterator[Path]:
    """Yield every ``.svg`` file below *root*, directories visited in name order.

    Entries that cannot be listed or statted are skipped.
    """

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            candidate = Path(dirpath) / name
            if not is_svg(candidate):
                continue
            try:
                if not candidate.is_file():
                    continue
            except OSError:
                continue
            yield candidate


def collect_svg_files(root: Path) -> list[Path]:
    return sorted(iter_svg_files(root))


__all__ = ["SVG_EXTENSION", "collect_svg_files", "is_svg", "is_svg_file", "iter_svg_files"]
