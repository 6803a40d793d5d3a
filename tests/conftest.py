from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

SvgFactory = Callable[..., Path]


def svg_markup(width: object = 50, height: object = 50, body: str = "", **attrs: str) -> str:
    extra = "".join(f' {name}="{value}"' for name, value in attrs.items())
    size = ""
    if width is not None:
        size += f' width="{width}"'
    if height is not None:
        size += f' height="{height}"'
    return f'<svg xmlns="http://www.w3.org/2000/svg"{size}{extra}>{body}</svg>'


@pytest.fixture
def make_svg() -> SvgFactory:
    def _make(path: Path, width: object = 50, height: object = 50, body: str = "", **attrs: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(svg_markup(width, height, body, **attrs), encoding="utf-8")
        return path

    return _make
