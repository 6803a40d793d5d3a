"""Local SVG-to-PNG conversion toolkit."""

from .config import AppConfig, load_config
from .core import ConversionService
from .errors import ConversionError
from .models import BatchSummary, ConversionRequest, FolderSizeInfo, SvgSize

__all__ = [
    "AppConfig",
    "load_config",
    "BatchSummary",
    "ConversionError",
    "ConversionRequest",
    "ConversionService",
    "FolderSizeInfo",
    "SvgSize",
]
