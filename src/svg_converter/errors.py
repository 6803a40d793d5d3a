from __future__ import annotations


class ConversionError(RuntimeError):
    """Base error carrying a stable ``code`` alongside the human message."""

    code = "CONVERSION_ERROR"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code

    @property
    def message(self) -> str:
        return str(self)


class InvalidInput(ConversionError):
    code = "INVALID_INPUT"


class ParseError(ConversionError):
    code = "PARSE_ERROR"


class SizeLimitExceeded(ConversionError):
    code = "SIZE_LIMIT"


class RenderError(ConversionError):
    code = "RENDER_ERROR"


class IoError(ConversionError):
    code = "IO_ERROR"


__all__ = [
    "ConversionError",
    "InvalidInput",
    "ParseError",
    "SizeLimitExceeded",
    "RenderError",
    "IoError",
]
