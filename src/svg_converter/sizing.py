"""Output size negotiation, the pixel cap and background colour validation."""

from __future__ import annotations

import math
import re

from .config import MAX_PIXELS
from .errors import InvalidInput, SizeLimitExceeded
from .models import ConversionRequest, SvgSize

_HEX_COLOR_RE = re.compile(r"^[0-9a-fA-F]{6}$")

INVALID_BACKGROUND = "Invalid background color (expected #RRGGBB)."


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_output_size(
    request: ConversionRequest,
    src: SvgSize,
    *,
    default_scale: float = 1.0,
) -> SvgSize:
    if request.size_mode == "scale":
        scale = default_scale if request.scale is None else float(request.scale)
        if not math.isfinite(scale) or scale <= 0:
            raise InvalidInput("Scale must be a positive number.")
        return SvgSize(
            width=max(1, round_half_up(src.width * scale)),
            height=max(1, round_half_up(src.height * scale)),
        )
    if request.size_mode == "exact":
        if request.width is None:
            raise InvalidInput("Width is required in Exact mode.")
        if request.height is None:
            raise InvalidInput("Height is required in Exact mode.")
        if request.width <= 0 or request.height <= 0:
            raise InvalidInput("Width/Height must be positive numbers.")
        return SvgSize(width=int(request.width), height=int(request.height))
    raise InvalidInput("Invalid size mode.")


def enforce_pixel_cap(width: int, height: int, max_pixels: int = MAX_PIXELS) -> None:
    if width * height > max_pixels:
        max_side = math.isqrt(max_pixels)
        max_mp = max_pixels / 1_000_000
        raise SizeLimitExceeded(f"Too large. Max is ~{max_side}×{max_side} ({max_mp:.0f}MP).")


def parse_background_color(value: str) -> tuple[int, int, int]:
    digits = value.strip().lstrip("#")
    if not _HEX_COLOR_RE.match(digits):
        raise InvalidInput(INVALID_BACKGROUND)
    return (
        int(digits[0:2], 16),
        int(digits[2:4], 16),
        int(digits[4:6], 16),
    )


def resolve_background(request: ConversionRequest) -> tuple[int, int, int] | None:
    value = request.background_value
    if value is None:
        return None
    return parse_background_color(value)


__all__ = [
    "INVALID_BACKGROUND",
    "compute_output_size",
    "enforce_pixel_cap",
    "parse_background_color",
    "resolve_background",
    "round_half_up",
]
