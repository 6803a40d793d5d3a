from __future__ import annotations

from dataclasses import dataclass

from .models import ConversionRequest, SvgSize


@dataclass(frozen=True, slots=True)
class Transform:
    """Affine map from SVG user space to output pixels, translation applied after scaling."""

    sx: float
    sy: float
    tx: float = 0.0
    ty: float = 0.0

    def as_row(self) -> tuple[float, float, float, float, float, float]:
        return (self.sx, 0.0, 0.0, self.sy, self.tx, self.ty)

    def apply(self, x: float, y: float) -> tuple[float, float]:
        return (x * self.sx + self.tx, y * self.sy + self.ty)


def stretch_transform(src_width: float, src_height: float, target: SvgSize) -> Transform:
    return Transform(sx=target.width / src_width, sy=target.height / src_height)


def cover_transform(src_width: float, src_height: float, target: SvgSize) -> Transform:
    scale = max(target.width / src_width, target.height / src_height)
    tx = (target.width - src_width * scale) * 0.5
    ty = (target.height - src_height * scale) * 0.5
    return Transform(sx=scale, sy=scale, tx=tx, ty=ty)


def build_transform(src_width: float, src_height: float, target: SvgSize, *, cover: bool = False) -> Transform:
    if cover:
        return cover_transform(src_width, src_height, target)
    return stretch_transform(src_width, src_height, target)


def transform_for_request(
    request: ConversionRequest, src_width: float, src_height: float, target: SvgSize
) -> Transform:
    return build_transform(src_width, src_height, target, cover=request.wants_cover)


__all__ = [
    "Transform",
    "build_transform",
    "cover_transform",
    "stretch_transform",
    "transform_for_request",
]
