"""Loading SVG documents and resolving their natural size."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from pathlib import Path
from xml.etree.ElementTree import ParseError as XMLParseError

from cairosvg.parser import Tree

from .errors import ParseError
from .models import SvgSize

DEFAULT_NATURAL_SIZE = 100.0

_LENGTH_RE = re.compile(r"^\s*([+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)\s*([a-zA-Z%]*)\s*$")

# CSS pixels per unit at 96 dpi.
_UNITS: dict[str, float] = {
    "": 1.0,
    "px": 1.0,
    "in": 96.0,
    "cm": 96.0 / 2.54,
    "mm": 96.0 / 25.4,
    "pt": 96.0 / 72.0,
    "pc": 16.0,
}


@dataclass(slots=True)
class SvgDocument:
    """A parsed SVG tree with its natural size in CSS pixels."""

    tree: Tree
    natural_width: float
    natural_height: float
    viewbox: tuple[float, float, float, float] | None = None

    @property
    def intrinsic_size(self) -> SvgSize:
        return intrinsic_size(self.natural_width, self.natural_height)


def intrinsic_size(width: float, height: float) -> SvgSize:
    return SvgSize(
        width=max(1, math.ceil(width)),
        height=max(1, math.ceil(height)),
    )


def _absolute_length(value: str | None) -> float | None:
    if not value:
        return None
    match = _LENGTH_RE.match(value)
    if not match:
        return None
    factor = _UNITS.get(match.group(2).lower())
    if factor is None:
        return None
    return float(match.group(1)) * factor


def parse_length(value: str | None) -> float | None:
    """Convert an absolute SVG length to CSS pixels.

    Relative units and non-positive values yield ``None``.
    """

    number = _absolute_length(value)
    if number is None or not math.isfinite(number) or number <= 0:
        return None
    return number


def parse_viewbox(value: str | None) -> tuple[float, float, float, float] | None:
    if not value:
        return None
    parts = re.split(r"[\s,]+", value.strip())
    if len(parts) != 4:
        return None
    try:
        x, y, width, height = (float(part) for part in parts)
    except ValueError:
        return None
    if width <= 0 or height <= 0:
        return None
    return x, y, width, height


def natural_size(
    width: float | None,
    height: float | None,
    viewbox: tuple[float, float, float, float] | None,
) -> tuple[float, float]:
    if width is not None and height is not None:
        return width, height
    if viewbox is not None:
        vb_width, vb_height = viewbox[2], viewbox[3]
        if width is not None:
            return width, width * vb_height / vb_width
        if height is not None:
            return height * vb_width / vb_height, height
        return vb_width, vb_height
    return width or DEFAULT_NATURAL_SIZE, height or DEFAULT_NATURAL_SIZE


def _local_name(tag: object) -> str:
    return str(tag).rsplit("}", 1)[-1]


def _check_declared_size(tree: Tree, source: str) -> None:
    for name in ("width", "height"):
        number = _absolute_length(tree.get(name))
        if number is not None and number <= 0:
            raise ParseError(f"SVG {name} must be positive: {source}")


def parse_document(data: bytes, *, source: str = "<bytes>") -> SvgDocument:
    # Tree() treats empty input as "no bytestring" and falls back to fetching a URL.
    if not data.strip():
        raise ParseError(f"Empty SVG document: {source}")
    try:
        tree = Tree(bytestring=data)
    except (XMLParseError, ValueError, TypeError, OSError, RecursionError) as exc:
        raise ParseError(f"Failed to parse SVG {source}: {exc}") from exc
    if _local_name(tree.tag) != "svg":
        raise ParseError(f"Not an SVG document: {source}")
    _check_declared_size(tree, source)
    viewbox = parse_viewbox(tree.get("viewBox"))
    width, height = natural_size(
        parse_length(tree.get("width")),
        parse_length(tree.get("height")),
        viewbox,
    )
    return SvgDocument(tree=tree, natural_width=width, natural_height=height, viewbox=viewbox)


def read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise ParseError(f"Failed to read {path}: {exc.strerror or exc}") from exc


def load_document(path: Path) -> SvgDocument:
    return parse_document(read_bytes(path), source=path.name)


def read_svg_size(path: Path) -> SvgSize:
    return load_document(path).intrinsic_size


__all__ = [
    "SvgDocument",
    "intrinsic_size",
    "load_document",
    "natural_size",
    "parse_document",
    "parse_length",
    "parse_viewbox",
    "read_bytes",
    "read_svg_size",
]
