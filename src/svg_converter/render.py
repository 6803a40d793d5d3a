"""Rasterise a parsed SVG document through an affine transform into PNG bytes."""

from __future__ import annotations

import io

import cairocffi
from cairosvg.surface import PNGSurface

from .document import SvgDocument
from .errors import ConversionError, RenderError, SizeLimitExceeded
from .models import SvgSize
from .transform import Transform

ENGINE = "cairosvg"
RENDER_DPI = 96
# Largest width or height a cairo image surface accepts.
MAX_SURFACE_SIDE = 32767

Color = tuple[int, int, int]


class _PlacedPNGSurface(PNGSurface):
    """PNG surface with a fixed pixel size and a caller-supplied placement.

    The root viewport keeps the document's natural size; the placement
    transform then maps natural-size user space onto the output pixels.
    """

    def __init__(
        self,
        document: SvgDocument,
        output: io.BytesIO,
        target: SvgSize,
        placement: Transform,
        background: Color | None,
    ) -> None:
        self._document = document
        self._target = target
        self._placement: Transform | None = placement
        self._background = background
        super().__init__(document.tree, output, RENDER_DPI)

    def _create_surface(self, width, height):  # type: ignore[no-untyped-def]
        try:
            surface = cairocffi.ImageSurface(
                cairocffi.FORMAT_ARGB32, self._target.width, self._target.height
            )
        except (cairocffi.CairoError, MemoryError) as exc:
            raise RenderError("Failed to allocate pixmap.") from exc
        if self._background is not None:
            red, green, blue = self._background
            context = cairocffi.Context(surface)
            context.set_source_rgba(red / 255, green / 255, blue / 255, 1.0)
            context.paint()
        return surface, self._target.width, self._target.height

    def set_context_size(self, width, height, viewbox, tree):  # type: ignore[no-untyped-def]
        # Nested <svg> elements reuse this hook; only the root gets the placement.
        placement, self._placement = self._placement, None
        if placement is None:
            return super().set_context_size(width, height, viewbox, tree)
        self.context.transform(cairocffi.Matrix(*placement.as_row()))
        document = self._document
        root_viewbox = document.viewbox or (0.0, 0.0, document.natural_width, document.natural_height)
        return super().set_context_size(
            document.natural_width, document.natural_height, root_viewbox, tree
        )


def render_png(
    document: SvgDocument,
    target: SvgSize,
    transform: Transform,
    background: Color | None = None,
) -> bytes:
    if max(target.width, target.height) > MAX_SURFACE_SIDE:
        raise SizeLimitExceeded(f"Too large. Max side is {MAX_SURFACE_SIDE} px.")
    output = io.BytesIO()
    try:
        surface = _PlacedPNGSurface(document, output, target, transform, background)
        surface.finish()
    except ConversionError:
        raise
    except Exception as exc:
        raise RenderError(f"Render failed: {exc}") from exc
    return output.getvalue()


__all__ = ["ENGINE", "MAX_SURFACE_SIDE", "render_png"]
