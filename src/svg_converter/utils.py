from __future__ import annotations

import os
import tempfile
from pathlib import Path

from .errors import IoError

PNG_SUFFIX = ".png"


def output_filename(svg_path: Path, width: int, height: int) -> str:
    stem = svg_path.stem or "output"
    return f"{stem}_{width}x{height}{PNG_SUFFIX}"


def relative_prefix(svg_path: Path, root: Path | None, out_dir: Path | None) -> str:
    """Prefix that keeps flattened output names from colliding.

    Folder mode mirrors the sub-directory path relative to *root*; flat
    multi-file exports into a shared *out_dir* use the parent folder name.
    """

    if root is not None:
        try:
            relative = svg_path.relative_to(root)
        except ValueError:
            relative = None
        if relative is not None:
            parts = [part for part in relative.parent.parts if part not in ("", ".")]
            if parts:
                return "_".join(parts)
        return ""
    if out_dir is not None:
        return svg_path.parent.name
    return ""


def make_output_path(
    svg_path: Path,
    root: Path | None,
    out_dir: Path | None,
    width: int,
    height: int,
) -> Path:
    file_name = output_filename(svg_path, width, height)
    prefix = relative_prefix(svg_path, root, out_dir)
    final_name = f"{prefix}_{file_name}" if prefix else file_name
    if out_dir is not None:
        return out_dir / final_name
    return svg_path.with_name(final_name)


def ensure_parent(path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise IoError(f"Failed to create {path.parent}: {exc.strerror or exc}") from exc


def atomic_write_bytes(path: Path, data: bytes) -> None:
    ensure_parent(path)
    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile("wb", delete=False, dir=path.parent, suffix=".tmp") as tmp:
            tmp_path = Path(tmp.name)
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_path, path)
    except OSError as exc:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise IoError(f"Failed to write {path}: {exc.strerror or exc}") from exc


__all__ = [
    "PNG_SUFFIX",
    "atomic_write_bytes",
    "ensure_parent",
    "make_output_path",
    "output_filename",
    "relative_prefix",
]
